"""Institution model definitions."""

from sqlalchemy import Column, Integer, String

from coursehub.database import Base


class Institution(Base):
    """Represents a school or university users belong to."""
    __tablename__ = "institutions"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
