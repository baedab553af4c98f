"""Application configuration loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
    "postgres+psycopg2://",
    "sqlite://",
    "sqlite+pysqlite://",
)

# Placeholder values shipped in sample .env files; treated as "not configured".
EMAIL_PLACEHOLDERS = ("your-email", "your-app-password")


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"

    # Relational backend; when unset or unreachable the document store is used.
    DATABASE_URL: str | None = None
    STORAGE_BACKEND: Literal["auto", "relational", "document"] = "auto"
    # Optional JSON file the document store persists to; in-memory only when unset.
    DOCUMENT_STORE_PATH: str | None = None

    # JWT authentication: both secrets are required and must differ.
    JWT_SECRET: SecretStr
    JWT_REFRESH_SECRET: SecretStr
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # Per-account lockout
    MAX_LOGIN_ATTEMPTS: int = 5
    LOCKOUT_MINUTES: int = 30

    # Login endpoint throttle (process-local)
    LOGIN_RATE_LIMIT_ATTEMPTS: int = 5
    LOGIN_RATE_LIMIT_WINDOW_MINUTES: int = 15

    # Write-only JSON backup of every reservation created
    RESERVATION_BACKUP_PATH: str = "data/reservations.json"

    # Outbound mail (optional; confirmations are logged when not configured)
    EMAIL_USER: str | None = None
    EMAIL_PASS: SecretStr | None = None
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    EMAIL_FROM_NAME: str = "Tablebook"

    @property
    def is_production(self) -> bool:
        return self.APP_ENV == "prod"

    @property
    def email_configured(self) -> bool:
        """True when mail credentials are present and not sample placeholders."""
        if not self.EMAIL_USER or self.EMAIL_PASS is None:
            return False
        password = self.EMAIL_PASS.get_secret_value()
        if not password:
            return False
        return not any(
            marker in self.EMAIL_USER or marker in password
            for marker in EMAIL_PLACEHOLDERS
        )

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        if not any(v.startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a PostgreSQL URL (e.g. postgresql://) or a sqlite:// URL"
            )
        return v.strip()

    @field_validator("DOCUMENT_STORE_PATH")
    @classmethod
    def validate_document_store_path(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return v.strip()

    @field_validator("JWT_SECRET", "JWT_REFRESH_SECRET")
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value() or not v.get_secret_value().strip():
            raise ValueError("JWT secrets must be set and non-empty")
        return v

    @field_validator("JWT_ALGORITHM")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("JWT_ALGORITHM must be set and non-empty")
        return v.strip()

    @field_validator("ACCESS_TOKEN_EXPIRE_MINUTES")
    @classmethod
    def validate_access_expire_minutes(cls, v: int) -> int:
        if v < 1 or v > 1440:
            raise ValueError(
                "ACCESS_TOKEN_EXPIRE_MINUTES must be between 1 and 1440 (1 min to 1 day)"
            )
        return v

    @field_validator("REFRESH_TOKEN_EXPIRE_DAYS")
    @classmethod
    def validate_refresh_expire_days(cls, v: int) -> int:
        if v < 1 or v > 90:
            raise ValueError("REFRESH_TOKEN_EXPIRE_DAYS must be between 1 and 90")
        return v

    @field_validator(
        "MAX_LOGIN_ATTEMPTS",
        "LOCKOUT_MINUTES",
        "LOGIN_RATE_LIMIT_ATTEMPTS",
        "LOGIN_RATE_LIMIT_WINDOW_MINUTES",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Login attempt limits and windows must be at least 1")
        return v

    @field_validator("PORT", "SMTP_PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("Ports must be between 1 and 65535")
        return v

    @field_validator("RESERVATION_BACKUP_PATH")
    @classmethod
    def validate_backup_path(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("RESERVATION_BACKUP_PATH must be set and non-empty")
        return v.strip()

    @model_validator(mode="after")
    def validate_distinct_secrets(self) -> "Settings":
        if (
            self.JWT_SECRET.get_secret_value()
            == self.JWT_REFRESH_SECRET.get_secret_value()
        ):
            raise ValueError("JWT_SECRET and JWT_REFRESH_SECRET must be different")
        if self.STORAGE_BACKEND == "relational" and self.DATABASE_URL is None:
            raise ValueError("STORAGE_BACKEND=relational requires DATABASE_URL")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()
