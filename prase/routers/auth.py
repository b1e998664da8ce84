"""Login, logout, signup and password recovery pages."""

import logging

from fastapi import APIRouter, Depends, Form, Request
from sqlalchemy.orm import Session
from starlette.responses import Response

from prase.database import get_db
from prase.dependencies import get_current_user, get_request_context, verify_csrf
from prase.errors import DuplicateAccountError, InvalidCredentialsError, TokenExpiredOrInvalidError, ValidationError
from prase.models.user import User
from prase.rate_limit import limiter
from prase.services.auth import get_auth_service
from prase.services.sessions import RequestContext
from prase.templating import redirect, render, safe_return_path

logger = logging.getLogger("prase")

router = APIRouter(tags=["Authentication"], dependencies=[Depends(verify_csrf)])

HOME = "/locks"
RESET_SENT_MESSAGE = "If an account with that e-mail address exists, an e-mail has been sent with further instructions."


@router.get("/login")
def login_page(request: Request, user: User | None = Depends(get_current_user)) -> Response:
    """Render login page."""
    if user:
        return redirect(HOME)
    return render(request, "account/login.html", {"title": "Login"})


@router.post("/login")
@limiter.limit("10/minute")
def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Handle login form submission."""
    try:
        user = get_auth_service().authenticate(db, {"email": email, "password": password})
    except ValidationError as exc:
        context.flash_errors(exc.violations)
        return redirect("/login")
    except InvalidCredentialsError as exc:
        logger.info("Failed login from %s", request.client.host if request.client else "unknown")
        context.flash("errors", exc.message)
        return redirect("/login")

    context.establish(user.id)
    context.flash("success", "Success! You are logged in.")
    return redirect(safe_return_path(context.pop_return_to(), HOME))


@router.get("/logout")
def logout(context: RequestContext = Depends(get_request_context)) -> Response:
    """End the session and go back to the login page."""
    context.destroy()
    return redirect("/login")


@router.get("/signup")
def signup_page(request: Request, user: User | None = Depends(get_current_user)) -> Response:
    """Render signup page."""
    if user:
        return redirect(HOME)
    return render(request, "account/signup.html", {"title": "Create Account"})


@router.post("/signup")
@limiter.limit("5/minute")
def signup_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    confirm_password: str = Form("", alias="confirmPassword"),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Handle signup form submission."""
    try:
        user = get_auth_service().signup(
            db, {"email": email, "password": password, "confirm_password": confirm_password}
        )
    except ValidationError as exc:
        context.flash_errors(exc.violations)
        return redirect("/signup")
    except DuplicateAccountError as exc:
        context.flash("errors", exc.message)
        return redirect("/signup")

    context.establish(user.id)
    return redirect(HOME)


@router.get("/forgot")
def forgot_page(request: Request, user: User | None = Depends(get_current_user)) -> Response:
    """Render forgot password page."""
    if user:
        return redirect(HOME)
    return render(request, "account/forgot.html", {"title": "Forgot Password"})


@router.post("/forgot")
@limiter.limit("3/minute")
def forgot_submit(
    request: Request,
    email: str = Form(""),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Issue a reset token. The reply is the same whether or not the account exists."""
    try:
        issue = get_auth_service().request_password_reset(db, {"email": email}, str(request.base_url))
    except ValidationError as exc:
        context.flash_errors(exc.violations)
        return redirect("/forgot")

    if issue is not None and not issue.delivered:
        # The reply must not reveal that the address has an account.
        logger.warning("Reset e-mail for an existing account was not delivered; the token stays valid")
    context.flash("info", RESET_SENT_MESSAGE)
    return redirect("/forgot")


@router.get("/reset/{token}")
def reset_page(
    request: Request,
    token: str,
    user: User | None = Depends(get_current_user),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Render the new-password form for a live reset token."""
    if user:
        return redirect(HOME)
    if get_auth_service().find_by_reset_token(db, token) is None:
        context.flash("errors", TokenExpiredOrInvalidError().message)
        return redirect("/forgot")
    return render(request, "account/reset.html", {"title": "Password Reset", "token": token})


@router.post("/reset/{token}")
@limiter.limit("5/minute")
def reset_submit(
    request: Request,
    token: str,
    password: str = Form(""),
    confirm: str = Form(""),
    context: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
) -> Response:
    """Consume the reset token, set the new password and log the user in."""
    try:
        user = get_auth_service().reset_password(db, token, {"password": password, "confirm": confirm})
    except ValidationError as exc:
        context.flash_errors(exc.violations)
        return redirect(f"/reset/{token}")
    except TokenExpiredOrInvalidError as exc:
        context.flash("errors", exc.message)
        return redirect("/forgot")

    context.establish(user.id)
    context.flash("success", "Success! Your password has been changed.")
    return redirect(HOME)
