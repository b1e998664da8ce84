"""Card pages."""

from fastapi import APIRouter, Depends, Form, Request
from sqlalchemy.orm import Session
from starlette.responses import Response

from prase.database import get_db
from prase.dependencies import get_request_context, require_user, verify_csrf
from prase.errors import DuplicateRecordError, ValidationError
from prase.services.catalog import get_card_service, get_lock_service
from prase.services.sessions import RequestContext
from prase.templating import redirect, render

router = APIRouter(
    prefix="/cards",
    tags=["Cards"],
    dependencies=[Depends(verify_csrf), Depends(require_user)],
)


def _card_data(
    name: str = Form(""),
    idcard: str = Form(""),
    mobile: str = Form(""),
    qq: str = Form(""),
    memberid: str = Form(""),
    description: str = Form(""),
    profield: str = Form(""),
    locks: list[str] = Form([]),
) -> dict:
    return {
        "name": name,
        "idcard": idcard,
        "mobile": mobile,
        "qq": qq,
        "memberid": memberid,
        "description": description,
        "profield": profield,
        "locks": locks,
    }


@router.get("")
def list_cards(request: Request, db: Session = Depends(get_db)) -> Response:
    cards = get_card_service().list_cards(db)
    return render(request, "cards/list.html", {"title": "Cards", "cards": cards})


@router.get("/create")
def create_page(request: Request, db: Session = Depends(get_db)) -> Response:
    locks = get_lock_service().list_locks(db) or []
    return render(request, "cards/create.html", {"title": "Create Card", "locks": locks})


@router.post("")
def create_card(
    uid: str = Form(""),
    data: dict = Depends(_card_data),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    try:
        card = get_card_service().create_card(db, {"uid": uid, **data})
    except ValidationError as exc:
        context.flash_errors(exc.violations)
        return redirect("/cards/create")
    except DuplicateRecordError as exc:
        context.flash("errors", exc.message)
        return redirect("/cards/create")

    context.flash("success", f"Card {card.uid} created.")
    return redirect(f"/cards/{card.id}")


@router.get("/{card_id}")
def show_card(request: Request, card_id: int, db: Session = Depends(get_db)) -> Response:
    """Card detail and edit form."""
    card = get_card_service().get_card(db, card_id)
    locks = get_lock_service().list_locks(db) or []
    return render(request, "cards/show.html", {"title": card.name or card.uid, "card": card, "locks": locks})


@router.post("/delete/{card_id}")
def delete_card(
    card_id: int,
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    get_card_service().delete_card(db, card_id)
    context.flash("info", "Card deleted.")
    return redirect("/cards")


@router.post("/{card_id}")
def update_card(
    card_id: int,
    data: dict = Depends(_card_data),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    try:
        get_card_service().update_card(db, card_id, data)
    except ValidationError as exc:
        context.flash_errors(exc.violations)
    else:
        context.flash("success", "Card updated.")
    return redirect(f"/cards/{card_id}")
