"""Pydantic schemas for account forms.

Each form is validated as a whole before any store work happens; a failing
form produces one violation per field.
"""

from pydantic import BaseModel, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from prase.validation import check_email


def check_password(value: str, info: ValidationInfo) -> str:
    min_length = (info.context or {}).get("password_min_length", 4)
    if len(value) < min_length:
        raise PydanticCustomError(
            "password_length",
            "Password must be at least {min_length} characters long",
            {"min_length": min_length},
        )
    return value


def check_confirmation(value: str, info: ValidationInfo, message: str = "Passwords do not match") -> str:
    # Compared with the submitted password, so a password failing its own
    # rules still gets its mismatch reported.
    submitted = (info.context or {}).get("submitted", info.data)
    if value != submitted.get("password"):
        raise PydanticCustomError("password_mismatch", message)
    return value


class SignupForm(BaseModel):
    email: str
    password: str
    confirm_password: str

    @field_validator("email")
    @classmethod
    def email_valid(cls, value: str, info: ValidationInfo) -> str:
        email = check_email(value)
        required = (info.context or {}).get("required_substring", "")
        if required and required.lower() not in email:
            raise PydanticCustomError("email_domain", "You must use valid e-mail address")
        return email

    @field_validator("password")
    @classmethod
    def password_long_enough(cls, value: str, info: ValidationInfo) -> str:
        return check_password(value, info)

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        return check_confirmation(value, info)


class LoginForm(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_valid(cls, value: str) -> str:
        return check_email(value)

    @field_validator("password")
    @classmethod
    def password_present(cls, value: str) -> str:
        if not value:
            raise PydanticCustomError("password_blank", "Password cannot be blank")
        return value


class ForgotForm(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def email_valid(cls, value: str) -> str:
        return check_email(value, "Please enter a valid email address.")


class ResetForm(BaseModel):
    password: str
    confirm: str

    @field_validator("password")
    @classmethod
    def password_long_enough(cls, value: str, info: ValidationInfo) -> str:
        return check_password(value, info)

    @field_validator("confirm")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        return check_confirmation(value, info, "Passwords must match.")


class PasswordForm(BaseModel):
    password: str
    confirm_password: str

    @field_validator("password")
    @classmethod
    def password_long_enough(cls, value: str, info: ValidationInfo) -> str:
        return check_password(value, info)

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        return check_confirmation(value, info)


class ProfileForm(BaseModel):
    email: str
    name: str = ""
    gender: str = ""
    location: str = ""
    website: str = ""

    @field_validator("email")
    @classmethod
    def email_valid(cls, value: str) -> str:
        return check_email(value, "Please enter a valid email address.")
