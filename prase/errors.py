"""Domain exceptions for PRASE.

Services raise these; routers turn the recoverable ones into flash messages,
and the application-level handlers in ``main.py`` map the rest to responses.
"""

from typing import Any


class PraseError(Exception):
    """Base exception for all PRASE errors."""

    status_code = 400

    def __init__(self, message: str, code: str = "INTERNAL_ERROR", details: dict[str, Any] | None = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(PraseError):
    """Caller input is malformed. Carries one entry per violated rule."""

    def __init__(self, violations: list[dict[str, str]]):
        self.violations = violations
        message = "; ".join(v["message"] for v in violations) or "Invalid input"
        super().__init__(message, code="VALIDATION_ERROR", details={"violations": violations})

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls([{"field": field, "message": message}])


class DuplicateAccountError(PraseError):
    status_code = 409

    def __init__(self, message: str = "Account with that email address already exists."):
        super().__init__(message, code="DUPLICATE_ACCOUNT")


class DuplicateRecordError(PraseError):
    status_code = 409

    def __init__(self, resource_type: str, uid: str):
        super().__init__(
            f"{resource_type} '{uid}' already exists.",
            code="DUPLICATE_RECORD",
            details={"resource_type": resource_type, "uid": uid},
        )


class InvalidCredentialsError(PraseError):
    """Authentication failed. The message never says which part was wrong."""

    status_code = 401

    def __init__(self, message: str = "Invalid email or password."):
        super().__init__(message, code="INVALID_CREDENTIALS")


class TokenExpiredOrInvalidError(PraseError):
    status_code = 400

    def __init__(self):
        super().__init__("Password reset token is invalid or has expired.", code="RESET_TOKEN_INVALID")


class TokenGenerationError(PraseError):
    """The entropy source failed. Not retried."""

    status_code = 500

    def __init__(self):
        super().__init__("Could not generate a secure token.", code="TOKEN_GENERATION_FAILED")


class NotFoundError(PraseError):
    status_code = 404

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class PersistenceError(PraseError):
    """The store was unreachable, timed out or rejected the operation."""

    status_code = 503
    retryable = True

    def __init__(self, operation: str):
        super().__init__(
            "The data store is temporarily unavailable. Please try again.",
            code="PERSISTENCE_ERROR",
            details={"operation": operation},
        )


class NotificationDeliveryError(PraseError):
    status_code = 502

    def __init__(self, destination: str, reason: str = ""):
        super().__init__(
            f"Could not deliver notification to {destination}",
            code="NOTIFICATION_FAILED",
            details={"reason": reason},
        )


class CsrfError(PraseError):
    status_code = 403

    def __init__(self):
        super().__init__("Invalid CSRF token. Refresh the page and try again.", code="CSRF_FAILED")


class LoginRequired(PraseError):
    status_code = 401

    def __init__(self):
        super().__init__("Not authenticated", code="LOGIN_REQUIRED")
