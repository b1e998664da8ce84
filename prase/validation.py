"""Form validation helpers shared by the request schemas."""

from typing import Any, TypeVar

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import PydanticCustomError

from prase.errors import ValidationError

FormT = TypeVar("FormT", bound=BaseModel)

_GMAIL_DOMAINS = {"gmail.com", "googlemail.com"}


def normalize_email(email: str) -> str:
    """Canonical form used for storage and lookup.

    Everything is lowercased. Gmail ignores dots and ``+tag`` suffixes in the
    local part, so those are dropped for Gmail addresses only.
    """
    email = email.strip().lower()
    local, sep, domain = email.rpartition("@")
    if not sep:
        return email
    if domain in _GMAIL_DOMAINS:
        local = local.split("+", 1)[0].replace(".", "")
        domain = "gmail.com"
    return f"{local}@{domain}"


def check_email(value: str, message: str = "Email is not valid") -> str:
    """Field-validator body: format check followed by normalization."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise PydanticCustomError("email", message) from None
    return normalize_email(value)


def validate_form(model: type[FormT], data: dict[str, Any], context: dict[str, Any] | None = None) -> FormT:
    """Validate ``data`` against ``model``, raising ValidationError with one entry per violation.

    The raw input is available to validators as ``context["submitted"]``.
    """
    context = {**(context or {}), "submitted": data}
    try:
        return model.model_validate(data, context=context)
    except PydanticValidationError as exc:
        violations = []
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "__all__"
            violations.append({"field": field, "message": error["msg"]})
        raise ValidationError(violations) from None
