"""Access log pages: listing, score editing and the score report."""

from fastapi import APIRouter, Depends, Form, Request
from sqlalchemy.orm import Session
from starlette.responses import Response

from prase.database import get_db
from prase.dependencies import get_request_context, require_user, verify_csrf
from prase.errors import ValidationError
from prase.schemas.access_log import LogListResponse, LogResponse, ReportResponse, ReportRowResponse
from prase.services.access_log import get_access_log_service
from prase.services.sessions import RequestContext
from prase.templating import json_response, redirect, render, wants_json

router = APIRouter(
    prefix="/access-log",
    tags=["Access Log"],
    dependencies=[Depends(verify_csrf), Depends(require_user)],
)


@router.get("")
def list_logs(request: Request, db: Session = Depends(get_db)) -> Response:
    """All access events, newest first."""
    logs = get_access_log_service().list_logs(db)
    if wants_json(request):
        return json_response(
            LogListResponse(
                items=[LogResponse.model_validate(log) for log in logs] if logs is not None else None,
                total=len(logs or []),
            )
        )
    return render(request, "access_log/list.html", {"title": "Access Log", "logs": logs})


@router.get("/score/report")
def score_report(request: Request, db: Session = Depends(get_db)) -> Response:
    """Successful scored events joined with card identity."""
    rows = get_access_log_service().score_report(db)
    if wants_json(request):
        return json_response(
            ReportResponse(rows=[ReportRowResponse.model_validate(row) for row in rows], total=len(rows))
        )
    return render(request, "access_log/report.html", {"title": "Score Report", "rows": rows})


@router.get("/{log_id}")
def show_score(request: Request, log_id: int, db: Session = Depends(get_db)) -> Response:
    log = get_access_log_service().get_log(db, log_id)
    if wants_json(request):
        return json_response(LogResponse.model_validate(log))
    return render(request, "access_log/score.html", {"title": "Score", "log": log})


@router.post("/{log_id}")
def update_score(
    log_id: int,
    score: str = Form(""),
    score_type: str = Form(""),
    note: str = Form(""),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Edit score, score type and note of one event."""
    try:
        updated = get_access_log_service().update_score(
            db, log_id, {"score": score, "score_type": score_type, "note": note}
        )
    except ValidationError as exc:
        context.flash_errors(exc.violations)
        return redirect(f"/access-log/{log_id}")

    if updated:
        context.flash("success", "Score updated successfully.")
    else:
        context.flash("errors", f"Log {log_id} not found; nothing was updated.")
    return redirect("/access-log")
