"""Assignment and participant model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from coursehub.database import Base


class Assignment(Base):
    """Represents an assignment belonging to a course."""
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), index=True)

    course = relationship("Course", back_populates="assignments")
    participants = relationship("Participant", back_populates="assignment")


class Participant(Base):
    """Enrolls a user in an assignment."""
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id"), nullable=False)

    assignment = relationship("Assignment", back_populates="participants")
