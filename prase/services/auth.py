"""Account lifecycle: signup, login, password reset, profile and deletion."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from prase.config import get_settings
from prase.database import store_operation
from prase.errors import (
    DuplicateAccountError,
    NotificationDeliveryError,
    TokenExpiredOrInvalidError,
    TokenGenerationError,
)
from prase.models.user import User
from prase.schemas.auth import ForgotForm, LoginForm, PasswordForm, ProfileForm, ResetForm, SignupForm
from prase.services.credentials import CredentialStrategy, LocalCredentialStrategy, hash_password
from prase.services.notifications import Notifier, get_notifier
from prase.services.sessions import SessionStore
from prase.validation import validate_form

logger = logging.getLogger("prase")


@dataclass
class ResetIssue:
    """Outcome of a reset request for an existing account."""

    email: str
    token: str
    expires_at: datetime
    delivered: bool


def generate_reset_token() -> str:
    try:
        return secrets.token_hex(16)
    except (OSError, NotImplementedError) as exc:
        raise TokenGenerationError() from exc


class AuthService:
    """Handles account creation, authentication and credential recovery."""

    def __init__(self, strategy: CredentialStrategy | None = None, notifier: Notifier | None = None) -> None:
        self.strategy = strategy or LocalCredentialStrategy()
        self._notifier = notifier

    @property
    def notifier(self) -> Notifier:
        return self._notifier or get_notifier()

    def _form_context(self) -> dict:
        settings = get_settings()
        return {
            "password_min_length": settings.PASSWORD_MIN_LENGTH,
            "required_substring": settings.SIGNUP_EMAIL_REQUIRED_SUBSTRING,
        }

    def _notify(self, to: str, subject: str, body: str) -> bool:
        try:
            self.notifier.send(to, subject, body)
        except NotificationDeliveryError as exc:
            logger.warning("Notification '%s' to %s failed: %s", subject, to, exc.details.get("reason", ""))
            return False
        return True

    def find_by_email(self, db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == email).first()

    def signup(self, db: Session, data: dict) -> User:
        """Create an account. Raises ValidationError or DuplicateAccountError and writes nothing on failure."""
        form = validate_form(SignupForm, data, context=self._form_context())

        with store_operation(db, "user.signup"):
            if self.find_by_email(db, form.email):
                raise DuplicateAccountError()

            user = User(email=form.email, password_hash=hash_password(form.password), tokens=[])
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise DuplicateAccountError() from None
            db.refresh(user)

        logger.info("Account created: user_id=%s", user.id)
        return user

    def authenticate(self, db: Session, data: dict) -> User:
        """Check credentials through the configured strategy. Raises InvalidCredentialsError."""
        form = validate_form(LoginForm, data)
        with store_operation(db, "user.authenticate"):
            return self.strategy.verify(db, form.email, form.password)

    def request_password_reset(self, db: Session, data: dict, base_url: str) -> ResetIssue | None:
        """Issue a reset token and mail the link. Returns None when no account matches.

        Any earlier token is overwritten. A failed delivery leaves the stored
        token valid.
        """
        form = validate_form(ForgotForm, data)
        token = generate_reset_token()

        with store_operation(db, "user.issue_reset_token"):
            user = self.find_by_email(db, form.email)
            if user is None:
                return None
            expires_at = datetime.utcnow() + timedelta(minutes=get_settings().PASSWORD_RESET_TTL_MINUTES)
            user.password_reset_token = token
            user.password_reset_expires_at = expires_at
            db.commit()

        logger.info("Password reset issued: user_id=%s", user.id)
        delivered = self._notify(
            user.email,
            f"Reset your password on {get_settings().APP_NAME}",
            "You are receiving this email because you (or someone else) have requested the reset "
            "of the password for your account.\n\n"
            "Please click on the following link, or paste this into your browser to complete the process:\n\n"
            f"{base_url.rstrip('/')}/reset/{token}\n\n"
            "If you did not request this, please ignore this email and your password will remain unchanged.\n",
        )
        return ResetIssue(email=user.email, token=token, expires_at=expires_at, delivered=delivered)

    def find_by_reset_token(self, db: Session, token: str) -> User | None:
        """Return the user holding ``token`` while its window is open."""
        with store_operation(db, "user.find_by_reset_token"):
            return (
                db.query(User)
                .filter(User.password_reset_token == token, User.password_reset_expires_at > datetime.utcnow())
                .first()
            )

    def reset_password(self, db: Session, token: str, data: dict) -> User:
        """Consume ``token`` and set a new password.

        The password change and the token clearing are one conditional UPDATE,
        so a token can only be used once even under concurrent requests.
        """
        form = validate_form(ResetForm, data, context=self._form_context())
        now = datetime.utcnow()

        with store_operation(db, "user.reset_password"):
            user = self.find_by_reset_token(db, token)
            if user is None:
                raise TokenExpiredOrInvalidError()

            updated = (
                db.query(User)
                .filter(
                    User.id == user.id,
                    User.password_reset_token == token,
                    User.password_reset_expires_at > now,
                )
                .update(
                    {
                        User.password_hash: hash_password(form.password),
                        User.password_reset_token: None,
                        User.password_reset_expires_at: None,
                        User.updated_at: now,
                    },
                    synchronize_session=False,
                )
            )
            db.commit()
            if updated != 1:
                raise TokenExpiredOrInvalidError()
            db.refresh(user)

        logger.info("Password reset completed: user_id=%s", user.id)
        self._notify(
            user.email,
            f"Your {get_settings().APP_NAME} password has been changed",
            f"Hello,\n\nThis is a confirmation that the password for your account {user.email} "
            "has just been changed.\n",
        )
        return user

    def update_profile(self, db: Session, user: User, data: dict) -> User:
        form = validate_form(ProfileForm, data)
        with store_operation(db, "user.update_profile"):
            user.email = form.email
            user.name = form.name
            user.gender = form.gender
            user.location = form.location
            user.website = form.website
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                raise DuplicateAccountError(
                    "The email address you have entered is already associated with an account."
                ) from None
            db.refresh(user)
        return user

    def change_password(self, db: Session, user: User, data: dict) -> None:
        form = validate_form(PasswordForm, data, context=self._form_context())
        with store_operation(db, "user.change_password"):
            user.password_hash = hash_password(form.password)
            db.commit()
        logger.info("Password changed: user_id=%s", user.id)

    def delete_account(self, db: Session, user: User) -> None:
        """Remove the user and every session bound to it in one commit."""
        user_id = user.id
        with store_operation(db, "user.delete"):
            SessionStore(db).delete_for_user(user_id)
            db.delete(user)
            db.commit()
        logger.info("Account deleted: user_id=%s", user_id)

    def unlink_provider(self, db: Session, user: User, provider: str) -> None:
        with store_operation(db, "user.unlink_provider"):
            user.tokens = [token for token in (user.tokens or []) if token.get("kind") != provider]
            db.commit()


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
