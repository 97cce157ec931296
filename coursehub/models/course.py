"""Course model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from coursehub.database import Base


class Course(Base):
    """Represents a course taught by an instructor of record."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    instructor_id = Column(Integer, ForeignKey("users.id"))
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=True)

    instructor = relationship("User", foreign_keys=[instructor_id])
    assignments = relationship("Assignment", back_populates="course")
    ta_mappings = relationship("TaMapping", back_populates="course")


class TaMapping(Base):
    """Assigns a teaching assistant to a course."""
    __tablename__ = "ta_mappings"

    id = Column(Integer, primary_key=True)
    ta_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)

    course = relationship("Course", back_populates="ta_mappings")
