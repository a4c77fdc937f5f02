"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults that match current behavior
  - Own the process-wide PIN salt (injected into PinCodec, never read globally)

Collaborators:
  - api/main.py: reads settings for CORS and startup validation
  - container.py: builds PinCodec and repositories from settings
  - identity/auth_users.py: JWT settings

Constraints:
  - Lives in API/infrastructure layer, NOT in domain/application
  - No business logic, pure configuration

Notes:
  - Uses pydantic-settings for env parsing and validation
  - Singleton via lru_cache for performance
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_SECRETS = {"dev-secret", "dev-pin-salt", "changeme", "change-me", "password"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: Application environment (development/test/production)
        database_url: PostgreSQL connection string
        pin_salt: Process-wide secret mixed into every PIN hash
        log_level: Root log level for the service logger
        log_json: Emit JSON logs (default: True)
        allowed_origins: Comma-separated CORS origins
        cors_allow_credentials: Allow cookies cross-origin (default: False)
        max_body_bytes: Max request body size (default: 1MB)
        jwt_secret: Secret for signing JWT access tokens
        jwt_access_ttl_minutes: Access token TTL in minutes
        jwt_cookie_name: Cookie name for access token
        jwt_cookie_secure: Set Secure on auth cookies
        offline_batch_max_items: Max tuples accepted in one offline batch
        request_update_max_retries: Optimistic retries for request projection
        urgent_due_hours: Requests due within this window notify as urgent
    """

    # Environment
    app_env: str = "development"

    # Database
    database_url: str = ""
    db_pool_min_size: int = 2
    db_pool_max_size: int = 10
    db_statement_timeout_ms: int = 5000
    db_slow_query_seconds: float = 0.25
    db_healthcheck_on_acquire: bool = True

    # Credentials
    pin_salt: str = "dev-pin-salt"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # CORS configuration
    allowed_origins: str = "http://localhost:5173"
    cors_allow_credentials: bool = False

    # Security - Hardening
    max_body_bytes: int = 1 * 1024 * 1024  # 1MB

    # Security - JWT Auth
    jwt_secret: str = "dev-secret"
    jwt_access_ttl_minutes: int = 60
    jwt_cookie_name: str = "access_token"
    jwt_cookie_secure: bool = False

    # Signatures
    offline_batch_max_items: int = 200
    request_update_max_retries: int = 3
    urgent_due_hours: int = 48

    @field_validator("offline_batch_max_items", "request_update_max_retries")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be greater than 0")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_upper(cls, v: str) -> str:
        return (v or "INFO").strip().upper()

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        pin_salt = (self.pin_salt or "").strip()
        if not pin_salt or pin_salt in _INSECURE_SECRETS:
            raise ValueError("PIN_SALT must be set to a non-default value in production")
        if len(pin_salt) < 16:
            raise ValueError("PIN_SALT must be at least 16 characters in production")

        jwt_secret = (self.jwt_secret or "").strip()
        if not jwt_secret or jwt_secret in _INSECURE_SECRETS:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        if not self.jwt_cookie_secure:
            raise ValueError("JWT_COOKIE_SECURE must be true in production")
        if not self.database_url.strip():
            raise ValueError("DATABASE_URL is required in production")

        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    def is_test(self) -> bool:
        return self.app_env.strip().lower() in {"test", "testing", "ci"}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
