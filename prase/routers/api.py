"""JSON API used by the access devices."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from prase.database import get_db
from prase.rate_limit import limiter
from prase.schemas.access_log import LogResponse
from prase.services.access_log import get_access_log_service

router = APIRouter(prefix="/api", tags=["API"])


@router.post("/v1/access", response_model=LogResponse, status_code=201)
@limiter.limit("60/minute")
def record_access(
    request: Request,
    payload: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
) -> LogResponse:
    """Record one access event reported by a device.

    The body is validated by the access log service so a missing ``key``
    comes back as the same VALIDATION_ERROR payload the rest of the app uses.
    """
    log = get_access_log_service().record_event(db, payload)
    return LogResponse.model_validate(log)


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": "prase", "version": "0.1.0"}
