"""Server-side session store and the per-request context built from it."""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from prase.config import get_settings
from prase.database import store_operation
from prase.models.web_session import WebSession


def _new_csrf_token() -> str:
    return secrets.token_urlsafe(32)


@dataclass
class RequestContext:
    """Session state for one request: identity, one-shot messages, return-to path, CSRF token.

    Handlers mutate it; the session middleware writes it back after the
    response is produced.
    """

    session_id: str | None = None
    user_id: int | None = None
    flashes: list[dict[str, str]] = field(default_factory=list)
    return_to: str | None = None
    csrf_token: str = field(default_factory=_new_csrf_token)
    created_at: datetime | None = None
    rotate: bool = False
    csrf_issued: bool = False

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def needs_storage(self) -> bool:
        """Anonymous contexts are kept only once they hold something worth keeping."""
        return bool(
            self.session_id
            or self.is_authenticated
            or self.flashes
            or self.return_to
            or self.csrf_issued
        )

    def issue_csrf_token(self) -> str:
        """The token to embed in a page; the session must be stored for it to verify later."""
        self.csrf_issued = True
        return self.csrf_token

    def establish(self, user_id: int) -> None:
        """Bind the session to ``user_id`` under a fresh session id."""
        self.user_id = user_id
        self.rotate = True

    def destroy(self) -> None:
        """Drop the identity and the stored row. Pending flash messages survive."""
        self.user_id = None
        self.return_to = None
        self.csrf_token = _new_csrf_token()
        self.rotate = True

    def flash(self, category: str, message: str) -> None:
        self.flashes.append({"category": category, "message": message})

    def flash_errors(self, violations: list[dict[str, str]]) -> None:
        for violation in violations:
            self.flash("errors", violation["message"])

    def pop_flashes(self) -> list[dict[str, str]]:
        flashes, self.flashes = self.flashes, []
        return flashes

    def pop_return_to(self) -> str | None:
        path, self.return_to = self.return_to, None
        return path

    def to_data(self) -> dict:
        return {"flashes": self.flashes, "return_to": self.return_to, "csrf_token": self.csrf_token}


class SessionStore:
    """Reads and writes ``web_session`` rows."""

    def __init__(self, db: Session) -> None:
        self.db = db
        settings = get_settings()
        self.max_age = timedelta(minutes=settings.SESSION_MAX_AGE_MINUTES)
        self.anonymous_max_age = timedelta(minutes=settings.SESSION_ANONYMOUS_MAX_AGE_MINUTES)
        self.sliding = settings.SESSION_SLIDING

    def load(self, session_id: str | None) -> RequestContext:
        """Build the context for ``session_id``; unknown or expired ids yield a fresh anonymous one."""
        if not session_id:
            return RequestContext()

        with store_operation(self.db, "session.load"):
            row = self.db.get(WebSession, session_id)
            if row is None:
                return RequestContext()
            if row.is_expired():
                self.db.delete(row)
                self.db.commit()
                return RequestContext()

            data = row.data or {}
            context = RequestContext(
                session_id=row.id,
                user_id=row.user_id,
                flashes=list(data.get("flashes", [])),
                return_to=data.get("return_to"),
                csrf_token=data.get("csrf_token") or _new_csrf_token(),
                created_at=row.created_at,
            )
            self.db.commit()
        return context

    def save(self, context: RequestContext) -> tuple[str, datetime]:
        """Persist ``context`` and return (session_id, expires_at) for the cookie."""
        now = datetime.utcnow()
        with store_operation(self.db, "session.save"):
            if context.rotate and context.session_id:
                self.db.query(WebSession).filter(WebSession.id == context.session_id).delete(
                    synchronize_session=False
                )
                context.session_id = None

            row = self.db.get(WebSession, context.session_id) if context.session_id else None
            if row is None:
                self.purge_expired(now)
                row = WebSession(id=secrets.token_urlsafe(32), created_at=now)
                self.db.add(row)
                context.session_id = row.id
                context.created_at = now

            max_age = self.max_age if context.is_authenticated else self.anonymous_max_age
            row.user_id = context.user_id
            row.data = context.to_data()
            row.last_seen_at = now
            if self.sliding or row.expires_at is None:
                row.expires_at = now + max_age
            expires_at = row.expires_at
            self.db.commit()

        context.rotate = False
        return context.session_id, expires_at

    def delete_for_user(self, user_id: int) -> int:
        """Remove every session row bound to ``user_id``. Does not commit."""
        return self.db.query(WebSession).filter(WebSession.user_id == user_id).delete(synchronize_session=False)

    def purge_expired(self, now: datetime | None = None) -> int:
        return (
            self.db.query(WebSession)
            .filter(WebSession.expires_at <= (now or datetime.utcnow()))
            .delete(synchronize_session=False)
        )
