"""Account management pages."""

from fastapi import APIRouter, Depends, Form, Request
from sqlalchemy.orm import Session
from starlette.responses import Response

from prase.database import get_db
from prase.dependencies import get_request_context, require_user, verify_csrf
from prase.errors import DuplicateAccountError, ValidationError
from prase.models.user import User
from prase.services.auth import get_auth_service
from prase.services.sessions import RequestContext
from prase.templating import redirect, render

router = APIRouter(prefix="/account", tags=["Account"], dependencies=[Depends(verify_csrf)])


@router.get("")
def account_page(request: Request, user: User = Depends(require_user)) -> Response:
    """Render profile page."""
    return render(request, "account/profile.html", {"title": "Account Management", "user": user})


@router.post("/profile")
def update_profile(
    email: str = Form(""),
    name: str = Form(""),
    gender: str = Form(""),
    location: str = Form(""),
    website: str = Form(""),
    user: User = Depends(require_user),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Update email and profile fields."""
    data = {"email": email, "name": name, "gender": gender, "location": location, "website": website}
    try:
        get_auth_service().update_profile(db, user, data)
    except ValidationError as exc:
        context.flash_errors(exc.violations)
    except DuplicateAccountError as exc:
        context.flash("errors", exc.message)
    else:
        context.flash("success", "Profile information has been updated.")
    return redirect("/account")


@router.post("/password")
def update_password(
    password: str = Form(""),
    confirm_password: str = Form("", alias="confirmPassword"),
    user: User = Depends(require_user),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Replace the current password."""
    try:
        get_auth_service().change_password(db, user, {"password": password, "confirm_password": confirm_password})
    except ValidationError as exc:
        context.flash_errors(exc.violations)
    else:
        context.flash("success", "Password has been changed.")
    return redirect("/account")


@router.post("/delete")
def delete_account(
    user: User = Depends(require_user),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Delete the account and end the session."""
    get_auth_service().delete_account(db, user)
    context.destroy()
    context.flash("info", "Your account has been deleted.")
    return redirect("/login")


@router.post("/unlink/{provider}")
def unlink_provider(
    provider: str,
    user: User = Depends(require_user),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Forget a linked identity provider."""
    get_auth_service().unlink_provider(db, user, provider)
    context.flash("info", f"{provider} account has been unlinked.")
    return redirect("/account")
