"""
Models Package

Imports all SQLAlchemy models so relationships resolve by name.
"""

from coursehub.models.role import Role, RoleKind
from coursehub.models.institution import Institution
from coursehub.models.user import User
from coursehub.models.course import Course, TaMapping
from coursehub.models.assignment import Assignment, Participant

__all__ = [
    'Role',
    'RoleKind',
    'Institution',
    'User',
    'Course',
    'TaMapping',
    'Assignment',
    'Participant',
]
