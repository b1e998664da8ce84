"""Password hashing and pluggable credential verification."""

from typing import Protocol

import bcrypt
from sqlalchemy.orm import Session

from prase.errors import InvalidCredentialsError
from prase.models.user import User
from prase.validation import normalize_email


def _encode(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes.
    return password.encode("utf-8")[:72]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison of ``password`` against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


# Checked when the email is unknown so both failure paths do the same work.
_DUMMY_HASH = hash_password("prase-dummy-password")


class CredentialStrategy(Protocol):
    """Turns (email, password) into a User or raises InvalidCredentialsError."""

    name: str

    def verify(self, db: Session, email: str, password: str) -> User: ...


class LocalCredentialStrategy:
    """Email + password checked against the local user table."""

    name = "local"

    def verify(self, db: Session, email: str, password: str) -> User:
        user = db.query(User).filter(User.email == normalize_email(email)).first()
        if user is None:
            verify_password(password, _DUMMY_HASH)
            raise InvalidCredentialsError()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        return user
