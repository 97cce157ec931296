"""User lookups: login resolution and role-aware name search."""

import logging

from sqlalchemy.orm import Session

from coursehub.auth.role_graph import RoleGraph
from coursehub.models.user import User

logger = logging.getLogger(__name__)

# Substring matches examined before role filtering, and results returned after.
SEARCH_SCAN_LIMIT = 20
SEARCH_RESULT_LIMIT = 10
LIKE_ESCAPE = '\\'


def escape_like(fragment: str) -> str:
    """Make %, _ and the escape character match themselves in a LIKE pattern."""
    return (
        fragment.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace('%', LIKE_ESCAPE + '%')
        .replace('_', LIKE_ESCAPE + '_')
    )


class UserNotFoundError(LookupError):
    """Raised when an explicit id or name lookup finds nobody."""


class UserDirectory:
    def __init__(self, db: Session, role_graph: RoleGraph | None = None):
        self.db = db
        self.role_graph = role_graph or RoleGraph(db)

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_name(self, name: str) -> list[User]:
        return self.db.query(User).filter(User.name == name).all()

    def resolve_login(self, identifier: str) -> User | None:
        """Find the user for a login that is either an e-mail or a user name.

        When the e-mail is unknown, the part before ``@`` is tried as a user
        name. Ambiguous names resolve to nobody.
        """
        user = self.find_by_email(identifier)
        if user is not None:
            return user

        short_name = identifier.split('@', 1)[0]
        candidates = self.find_by_name(short_name)
        if len(candidates) == 1:
            return candidates[0]
        return None

    def authenticate(self, identifier: str, password: str) -> User | None:
        user = self.resolve_login(identifier)
        if user is None or not user.check_password(password):
            logger.info('Failed login attempt for %r', identifier)
            return None
        return user

    def search_visible_by_name(self, requester: User, name_fragment: str) -> list[User]:
        visible_roles = {role.id for role in self.role_graph.subordinate_roles_and_self(requester.role)}
        pattern = f'%{escape_like(name_fragment.lower())}%'
        candidates = (
            self.db.query(User)
            .filter(User.full_name.ilike(pattern, escape=LIKE_ESCAPE))
            .order_by(User.id.asc())
            .limit(SEARCH_SCAN_LIMIT)
            .all()
        )
        visible_users = [user for user in candidates if user.role_id in visible_roles]
        return visible_users[:SEARCH_RESULT_LIMIT]

    def find_by_id_or_name(self, user_id: int | None = None, name: str | None = None) -> User:
        if user_id is not None:
            user = self.db.get(User, user_id)
        else:
            user = self.db.query(User).filter(User.name == name).first()

        if user is None:
            raise UserNotFoundError(f'User {user_id if user_id is not None else name} not found')
        return user
