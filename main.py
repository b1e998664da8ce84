"""P.R.A.S.E. - access ledger for projects, cards and locks."""

import html
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.responses import Response

from prase.config import get_settings
from prase.errors import CsrfError, LoginRequired, PraseError
from prase.middleware import AuditLogMiddleware, SecurityHeadersMiddleware, WebSessionMiddleware
from prase.rate_limit import limiter
from prase.routers import (
    access_log_router,
    account_router,
    api_router,
    auth_router,
    cards_router,
    locks_router,
    projects_router,
)

# Logging
logger = logging.getLogger("prase")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

settings = get_settings()
for warning in settings.validate():
    logger.warning("Configuration: %s", warning)

app = FastAPI(title="P.R.A.S.E.", version="0.1.0")
app.state.limiter = limiter

# Added last runs first: the session is loaded before headers and audit see the response.
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AuditLogMiddleware)
app.add_middleware(WebSessionMiddleware)

# Uploaded pictures and their resized variants
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")

app.include_router(auth_router)
app.include_router(account_router)
app.include_router(access_log_router)
app.include_router(projects_router)
app.include_router(cards_router)
app.include_router(locks_router)
app.include_router(api_router)


def _is_api(request: Request) -> bool:
    return request.url.path.startswith("/api/")


def _error_page(status_code: int, message: str) -> HTMLResponse:
    return HTMLResponse(content=f"<h1>{status_code}</h1><p>{html.escape(message)}</p>", status_code=status_code)


# --- Rate limit error handler ---
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handle rate limit exceeded."""
    if _is_api(request):
        return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded. Try again later."})
    return _error_page(429, "Too many requests. Please try again later.")


# --- Unauthenticated web requests go to the login page ---
@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired) -> Response:
    if _is_api(request):
        return JSONResponse(status_code=401, content=exc.to_dict())
    context = getattr(request.state, "context", None)
    if context is not None:
        context.flash("errors", "Please log in to access this page.")
    return RedirectResponse(url="/login", status_code=302)


@app.exception_handler(CsrfError)
async def csrf_handler(request: Request, exc: CsrfError) -> Response:
    logger.warning("CSRF check failed for %s %s", request.method, request.url.path)
    return _error_page(exc.status_code, exc.message)


@app.exception_handler(PraseError)
async def prase_error_handler(request: Request, exc: PraseError) -> Response:
    """Domain errors that reached the app: JSON for the API, a plain page otherwise."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    if _is_api(request):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
    return _error_page(exc.status_code, exc.message)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> Response:
    """JSON for API, HTML for web."""
    if _is_api(request):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
    return _error_page(exc.status_code, str(exc.detail))


@app.get("/")
def index() -> RedirectResponse:
    return RedirectResponse(url="/projects", status_code=302)
