"""Role hierarchy: ranking, subordinate roles and parent-chain ancestry."""

import logging

from sqlalchemy.orm import Session

from coursehub.models.role import Role

logger = logging.getLogger(__name__)


class RoleGraphCorruptedError(RuntimeError):
    """Raised when a role's parent chain loops back on itself."""


class RoleGraph:
    def __init__(self, db: Session):
        self.db = db

    def rank(self, role: Role) -> int:
        return role.rank

    def subordinate_roles_and_self(self, role: Role) -> set[Role]:
        ceiling = self.rank(role)
        roles = {candidate for candidate in self.db.query(Role).all() if self.rank(candidate) <= ceiling}
        roles.add(role)
        return roles

    def is_ancestor(self, candidate_parent: Role, role: Role) -> bool:
        """Walk ``role``'s parent chain looking for ``candidate_parent``.

        The walk stops at the first super administrator it meets: authority
        delegated above that point does not reach ``role``.
        """
        visited = {role.id}
        parent = role.parent
        while parent is not None:
            if parent.id == candidate_parent.id:
                return True
            if parent.is_super_administrator():
                return False
            if parent.id in visited:
                logger.error('Role parent chain loops at role %s (%s)', parent.id, parent.name)
                raise RoleGraphCorruptedError(f'Role parent chain loops at role {parent.id}')
            visited.add(parent.id)
            parent = parent.parent
        return False
