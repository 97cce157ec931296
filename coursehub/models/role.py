"""Role model definitions."""

import enum

from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from coursehub.database import Base


class RoleKind(enum.IntEnum):
    """Closed set of role kinds. The value is the rank."""

    STUDENT = 1
    TEACHING_ASSISTANT = 2
    INSTRUCTOR = 3
    ADMINISTRATOR = 4
    SUPER_ADMINISTRATOR = 5


ROLE_NAMES = {
    RoleKind.STUDENT: "Student",
    RoleKind.TEACHING_ASSISTANT: "Teaching Assistant",
    RoleKind.INSTRUCTOR: "Instructor",
    RoleKind.ADMINISTRATOR: "Administrator",
    RoleKind.SUPER_ADMINISTRATOR: "Super Administrator",
}

ROLE_KINDS_BY_NAME = {name: kind for kind, name in ROLE_NAMES.items()}


class UnknownRoleError(RuntimeError):
    """Raised when a stored role name has no kind."""


class Role(Base):
    """Represents a role in the hierarchy."""
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    parent_id = Column(Integer, ForeignKey("roles.id"), nullable=True)

    parent = relationship("Role", remote_side=[id])

    @property
    def kind(self) -> RoleKind:
        try:
            return ROLE_KINDS_BY_NAME[self.name]
        except KeyError as exc:
            raise UnknownRoleError(f"Role {self.name!r} has no rank") from exc

    @property
    def rank(self) -> int:
        return int(self.kind)

    def is_student(self) -> bool:
        return self.kind is RoleKind.STUDENT

    def is_ta(self) -> bool:
        return self.kind is RoleKind.TEACHING_ASSISTANT

    def is_instructor(self) -> bool:
        return self.kind is RoleKind.INSTRUCTOR

    def is_administrator(self) -> bool:
        return self.kind is RoleKind.ADMINISTRATOR

    def is_super_administrator(self) -> bool:
        return self.kind is RoleKind.SUPER_ADMINISTRATOR

    def __repr__(self) -> str:
        return f"<Role id={self.id} name={self.name!r}>"
