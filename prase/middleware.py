"""HTTP middleware: server-side sessions, security headers and audit logging."""

import logging
import time
from datetime import datetime

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from prase.config import get_settings
from prase.database import get_db
from prase.errors import PersistenceError
from prase.services.sessions import SessionStore

logger = logging.getLogger("prase")

SESSIONLESS_PREFIXES = ("/api/", "/static/", "/uploads/")


class WebSessionMiddleware(BaseHTTPMiddleware):
    """Loads the session context before the route runs and stores it afterwards.

    The store session comes from the same ``get_db`` provider the routes use,
    honouring dependency overrides.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path.startswith(SESSIONLESS_PREFIXES):
            return await call_next(request)

        settings = get_settings()
        provider = request.app.dependency_overrides.get(get_db, get_db)
        db_gen = provider()
        db = next(db_gen)
        try:
            store = SessionStore(db)
            try:
                context = await run_in_threadpool(store.load, request.cookies.get(settings.SESSION_COOKIE_NAME))
            except PersistenceError as exc:
                return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

            request.state.context = context
            response = await call_next(request)

            if not context.needs_storage:
                if request.cookies.get(settings.SESSION_COOKIE_NAME):
                    response.delete_cookie(settings.SESSION_COOKIE_NAME)
                return response

            try:
                session_id, expires_at = await run_in_threadpool(store.save, context)
            except PersistenceError:
                logger.error("Session for %s %s could not be saved", request.method, request.url.path)
                return response
        finally:
            db_gen.close()

        response.set_cookie(
            key=settings.SESSION_COOKIE_NAME,
            value=session_id,
            httponly=True,
            samesite="lax",
            secure=settings.SESSION_COOKIE_SECURE,
            max_age=max(0, int((expires_at - datetime.utcnow()).total_seconds())),
        )
        response.headers["X-CSRF-Token"] = context.csrf_token
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:"
        )
        return response


class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = ("/login", "/signup", "/forgot", "/reset/", "/account/", "/api/v1/access")

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        path = request.url.path
        if request.method == "POST" and path.startswith(self.AUDIT_PATHS):
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                request.method,
                # Reset tokens are secrets.
                "/reset/<token>" if path.startswith("/reset/") else path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response
