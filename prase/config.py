"""Configuration settings for PRASE."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str) -> list[str]:
    return [item.strip() for item in os.getenv(name, "").split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables."""

    APP_NAME: str = os.getenv("APP_NAME", "P.R.A.S.E.")

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./prase.db")
    DB_TIMEOUT_SECONDS: float = float(os.getenv("DB_TIMEOUT_SECONDS", "5"))

    # Sessions
    SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "prase_sid")
    SESSION_MAX_AGE_MINUTES: int = int(os.getenv("SESSION_MAX_AGE_MINUTES", str(14 * 24 * 60)))
    SESSION_ANONYMOUS_MAX_AGE_MINUTES: int = int(os.getenv("SESSION_ANONYMOUS_MAX_AGE_MINUTES", "60"))
    SESSION_SLIDING: bool = _env_bool("SESSION_SLIDING", "true")
    SESSION_COOKIE_SECURE: bool = _env_bool("SESSION_COOKIE_SECURE", "false")

    # Accounts
    SIGNUP_EMAIL_REQUIRED_SUBSTRING: str = os.getenv("SIGNUP_EMAIL_REQUIRED_SUBSTRING", os.getenv("MAIL_STRING", ""))
    PASSWORD_MIN_LENGTH: int = int(os.getenv("PASSWORD_MIN_LENGTH", "4"))
    PASSWORD_RESET_TTL_MINUTES: int = int(os.getenv("PASSWORD_RESET_TTL_MINUTES", "60"))

    # Mail
    MAIL_FROM: str = os.getenv("MAIL_FROM", "locks@localhost")
    SMTP_HOST: str = os.getenv("SMTP_HOST", "").strip()
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER: str = os.getenv("SMTP_USER", "").strip()
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS: bool = _env_bool("SMTP_USE_TLS", "true")

    # Upload
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
    MAX_UPLOAD_SIZE_MB: int = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10"))
    THUMBNAIL_SIZE: tuple[int, int] = (
        int(os.getenv("THUMBNAIL_WIDTH", "320")),
        int(os.getenv("THUMBNAIL_HEIGHT", "240")),
    )

    # Access log
    ACCESS_API_KEYS: list[str] = _env_list("ACCESS_API_KEYS")
    LOG_REFERENCE_POLICY: str = os.getenv("LOG_REFERENCE_POLICY", "allow").strip().lower()

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = _env_bool("DEBUG", "false")

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if self.LOG_REFERENCE_POLICY not in {"allow", "warn", "enforce"}:
            errors.append(f"LOG_REFERENCE_POLICY '{self.LOG_REFERENCE_POLICY}' is unknown - treating it as 'allow'")
        if self.APP_ENV == "production" and not self.SESSION_COOKIE_SECURE:
            errors.append("SESSION_COOKIE_SECURE is off in production - session cookies will be sent over plain HTTP")
        if not self.ACCESS_API_KEYS:
            errors.append("ACCESS_API_KEYS is not set - any non-empty key is accepted by the access API")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
