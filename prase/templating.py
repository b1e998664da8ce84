"""Jinja2 templates with the session context injected."""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import BaseModel
from starlette.responses import Response

from prase.config import get_settings

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))


def render(request: Request, name: str, context: dict[str, Any] | None = None, status_code: int = 200) -> Response:
    """Render ``name`` with the user, pending flash messages and CSRF token available."""
    session = request.state.context
    values = {
        "request": request,
        "app_name": get_settings().APP_NAME,
        "messages": session.pop_flashes(),
        "csrf_token": session.issue_csrf_token(),
        "user": None,
        "authenticated": session.is_authenticated,
    }
    values.update(context or {})
    return templates.TemplateResponse(request, name, values, status_code=status_code)


def redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=302)


def wants_json(request: Request) -> bool:
    """Pages answer with JSON when asked with ``?json=1``."""
    return request.query_params.get("json") == "1"


def safe_return_path(path: str | None, default: str) -> str:
    """Only same-site absolute paths are followed after login."""
    if not path or not path.startswith("/") or path.startswith("//"):
        return default
    return path


def json_response(model: BaseModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=model.model_dump(mode="json"))
