"""Decides whether one user may act on behalf of another."""

import logging

from sqlalchemy.orm import Session

from coursehub.auth.course_membership import CourseMembershipIndex
from coursehub.auth.role_graph import RoleGraph
from coursehub.models.course import Course, TaMapping
from coursehub.models.role import RoleKind
from coursehub.models.user import User

logger = logging.getLogger(__name__)

SELF_INSTRUCTING_KINDS = frozenset({
    RoleKind.INSTRUCTOR,
    RoleKind.ADMINISTRATOR,
    RoleKind.SUPER_ADMINISTRATOR,
})


class UnsupportedRoleError(NotImplementedError):
    """Raised when an operation has no meaning for the user's role."""


class AuthorizationEngine:
    def __init__(self, role_graph: RoleGraph, memberships: CourseMembershipIndex):
        self.role_graph = role_graph
        self.memberships = memberships

    @classmethod
    def for_session(cls, db: Session) -> "AuthorizationEngine":
        return cls(RoleGraph(db), CourseMembershipIndex(db))

    def can_impersonate(self, actor: User, target: User) -> bool:
        """Return True when ``actor`` may act as ``target``.

        Instructors and teaching assistants are limited to users they are
        related to through a course; only the remaining roles fall through to
        the role parent chain.
        """
        if actor.is_super_administrator():
            return True
        if self.is_instructor_for(actor, target):
            return True
        if actor.is_instructor():
            logger.debug('Instructor %s is not related to user %s', actor.id, target.id)
            return False
        if self.is_teaching_assistant_for(actor, target):
            return True
        if actor.is_ta():
            logger.debug('TA %s is not related to user %s', actor.id, target.id)
            return False
        return self.role_graph.is_ancestor(actor.role, target.role)

    def is_instructor_for(self, actor: User, target: User) -> bool:
        if not actor.is_instructor():
            return False
        if target.is_student():
            courses = self.memberships.courses_instructed_by(actor)
            return self.memberships.participates_in_any(target, courses)
        if target.is_ta():
            return self.memberships.shared_course_exists(
                self.memberships.courses_instructed_by(actor),
                self.memberships.courses_assisted_by(target),
            )
        return False

    def is_teaching_assistant_for(self, actor: User, target: User) -> bool:
        if not actor.is_ta() or not target.is_student():
            return False
        return self.memberships.participates_in_any(target, self.memberships.courses_assisted_by(actor))

    def instructor_id(self, user: User) -> int | None:
        """Id of the instructor ``user`` works under.

        Instructors and above are their own instructor. A TA answers to the
        instructor of the first course they were mapped to, or to the parent
        account that created them when they have no mapping yet.
        """
        kind = user.role.kind
        if kind in SELF_INSTRUCTING_KINDS:
            return user.id
        if kind is RoleKind.TEACHING_ASSISTANT:
            return self._supervising_instructor_id(user)
        raise UnsupportedRoleError(f'Unknown role: {user.role.name}')

    def _supervising_instructor_id(self, ta_user: User) -> int | None:
        db = self.memberships.db
        row = (
            db.query(Course.instructor_id)
            .join(TaMapping, TaMapping.course_id == Course.id)
            .filter(TaMapping.ta_id == ta_user.id)
            .order_by(TaMapping.id.asc())
            .first()
        )
        if row is not None and row.instructor_id is not None:
            return row.instructor_id
        return ta_user.parent_id
