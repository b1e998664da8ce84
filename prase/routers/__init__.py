"""Routers."""

from prase.routers.access_log import router as access_log_router
from prase.routers.account import router as account_router
from prase.routers.api import router as api_router
from prase.routers.auth import router as auth_router
from prase.routers.cards import router as cards_router
from prase.routers.locks import router as locks_router
from prase.routers.projects import router as projects_router

__all__ = [
    "auth_router",
    "account_router",
    "access_log_router",
    "projects_router",
    "cards_router",
    "locks_router",
    "api_router",
]
