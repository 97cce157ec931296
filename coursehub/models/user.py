"""User model definitions."""

import secrets
import string

import bcrypt
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from coursehub.core import config
from coursehub.database import Base

RESET_PASSWORD_LENGTH = 10
_RESET_PASSWORD_ALPHABET = string.ascii_letters + string.digits

_FALSE_BY_DEFAULT = (
    "copy_of_emails",
    "email_on_review",
    "email_on_submission",
    "email_on_review_of_review",
)


def hash_password(password: str) -> str:
    # bcrypt only looks at the first 72 bytes.
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS))
    return hashed.decode("utf-8")


def verify_password(password: str, password_digest: str | None) -> bool:
    if not password_digest:
        return False
    return bcrypt.checkpw(password.encode("utf-8")[:72], password_digest.encode("utf-8"))


class User(Base):
    """Represents an application user.

    Sub-accounts point at the user that created them through ``parent_id``.
    Deleting a parent leaves its children in place with ``parent_id`` cleared.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False, index=True)
    full_name = Column(String(50), nullable=False)
    email = Column(String, nullable=False, index=True)
    password_digest = Column(String)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    institution_id = Column(Integer, ForeignKey("institutions.id"), nullable=True)
    parent_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    copy_of_emails = Column(Boolean, default=False)
    email_on_review = Column(Boolean, default=False)
    email_on_submission = Column(Boolean, default=False)
    email_on_review_of_review = Column(Boolean, default=False)
    etc_icons_on_homepage = Column(Boolean, default=True)
    is_new_user = Column(Boolean, default=True)

    role = relationship("Role")
    institution = relationship("Institution")
    parent = relationship("User", remote_side=[id], back_populates="children")
    children = relationship("User", back_populates="parent")

    def __init__(self, **kwargs):
        password = kwargs.pop("password", None)
        super().__init__(**kwargs)
        for flag in _FALSE_BY_DEFAULT:
            if getattr(self, flag) is None:
                setattr(self, flag, False)
        if self.etc_icons_on_homepage is None:
            self.etc_icons_on_homepage = True
        self.is_new_user = True
        if password is not None:
            self.password = password

    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, raw_password: str) -> None:
        self.password_digest = hash_password(raw_password)

    def check_password(self, raw_password: str) -> bool:
        return verify_password(raw_password, self.password_digest)

    def reset_password(self) -> str:
        """Replace the password with a random one and return it for delivery."""
        new_password = "".join(
            secrets.choice(_RESET_PASSWORD_ALPHABET) for _ in range(RESET_PASSWORD_LENGTH)
        )
        self.password = new_password
        return new_password

    def is_student(self) -> bool:
        return self.role.is_student()

    def is_ta(self) -> bool:
        return self.role.is_ta()

    def is_instructor(self) -> bool:
        return self.role.is_instructor()

    def is_administrator(self) -> bool:
        return self.role.is_administrator()

    def is_super_administrator(self) -> bool:
        return self.role.is_super_administrator()

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.name!r}>"
