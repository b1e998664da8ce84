"""Lock pages."""

from fastapi import APIRouter, Depends, Form, Request
from sqlalchemy.orm import Session
from starlette.responses import Response

from prase.database import get_db
from prase.dependencies import get_request_context, require_user, verify_csrf
from prase.errors import DuplicateRecordError, ValidationError
from prase.services.catalog import get_lock_service
from prase.services.sessions import RequestContext
from prase.templating import redirect, render

router = APIRouter(
    prefix="/locks",
    tags=["Locks"],
    dependencies=[Depends(verify_csrf), Depends(require_user)],
)


@router.get("")
def list_locks(request: Request, db: Session = Depends(get_db)) -> Response:
    locks = get_lock_service().list_locks(db)
    return render(request, "locks/list.html", {"title": "Locks", "locks": locks})


@router.post("")
def create_lock(
    uid: str = Form(""),
    name: str = Form(""),
    description: str = Form(""),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    try:
        lock = get_lock_service().create_lock(db, {"uid": uid, "name": name, "description": description})
    except ValidationError as exc:
        context.flash_errors(exc.violations)
        return redirect("/locks")
    except DuplicateRecordError as exc:
        context.flash("errors", exc.message)
        return redirect("/locks")

    context.flash("success", f"Lock {lock.uid} created.")
    return redirect("/locks")


@router.get("/{lock_id}")
def show_lock(request: Request, lock_id: int, db: Session = Depends(get_db)) -> Response:
    lock = get_lock_service().get_lock(db, lock_id)
    return render(request, "locks/show.html", {"title": lock.name or lock.uid, "lock": lock})


@router.post("/delete/{lock_id}")
def delete_lock(
    lock_id: int,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    get_lock_service().delete_lock(db, lock_id)
    context.flash("info", "Lock deleted.")
    return redirect("/locks")


@router.post("/{lock_id}")
def update_lock(
    lock_id: int,
    name: str = Form(""),
    description: str = Form(""),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    get_lock_service().update_lock(db, lock_id, {"name": name, "description": description})
    context.flash("success", "Lock updated.")
    return redirect(f"/locks/{lock_id}")
