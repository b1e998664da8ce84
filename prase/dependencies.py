"""Session, authentication and CSRF dependencies for FastAPI routes."""

import hmac

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from prase.database import get_db, store_operation
from prase.errors import CsrfError, LoginRequired
from prase.models.user import User
from prase.services.sessions import RequestContext

SAFE_METHODS = {"GET", "HEAD", "OPTIONS", "TRACE"}


def get_request_context(request: Request) -> RequestContext:
    """The session context loaded by WebSessionMiddleware for this request."""
    return request.state.context


def get_current_user(
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> User | None:
    """Resolve the session identity, or None for anonymous sessions."""
    if context.user_id is None:
        return None
    with store_operation(db, "user.load"):
        user = db.get(User, context.user_id)
    if user is None:
        # The account was deleted from another session.
        context.destroy()
    return user


def _local_path(request: Request) -> str:
    path = request.url.path
    if request.url.query:
        path = f"{path}?{request.url.query}"
    return path


def require_user(
    request: Request,
    context: RequestContext = Depends(get_request_context),
    user: User | None = Depends(get_current_user),
) -> User:
    """Require an authenticated session. Remembers the page so login can return to it."""
    if user is None:
        if request.method == "GET":
            context.return_to = _local_path(request)
        raise LoginRequired()
    return user


async def verify_csrf(request: Request, context: RequestContext = Depends(get_request_context)) -> None:
    """Reject state-changing requests whose anti-forgery token does not match the session."""
    if request.method in SAFE_METHODS:
        return
    provided = request.headers.get("X-CSRF-Token")
    if not provided:
        form = await request.form()
        value = form.get("_csrf")
        provided = value if isinstance(value, str) else None
    if not provided or not hmac.compare_digest(context.csrf_token, provided):
        raise CsrfError()
