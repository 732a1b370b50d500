"""
Application settings loaded from environment variables or .env file.

Priority:
  1. Environment variables (always win)
  2. .env file in project root (local dev)
  3. Defaults

DB_URL, when set, is used verbatim (tests point it at sqlite+aiosqlite).
Otherwise ENVIRONMENT=development uses the LOCAL_DB_* values and every other
environment requires DB_HOST.

ADVISOR_MODE=mock keeps classification/routing fully rule-based; "remote"
posts to the ADVISOR_*_URL endpoints and falls back to the rules on failure.
"""
import logging
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

_repo_root = Path(__file__).resolve().parents[3]  # backend/ → project root

_DEFAULT_JWT_SECRET = "dev-only-change-me"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_repo_root / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ------------------------------------------------------------------ #
    # Runtime environment
    # ------------------------------------------------------------------ #
    environment: str = "development"
    frontend_url: str = "http://localhost:3000"

    # ------------------------------------------------------------------ #
    # Database
    # ------------------------------------------------------------------ #
    db_url: str = ""
    db_host: str = ""
    db_port: int = 5432
    db_name: str = "complaint_tracker"
    db_user: str = "postgres"
    db_password: str = ""

    # Local dev overrides (used when ENVIRONMENT=development)
    local_db_host: str = "localhost"
    local_db_port: int = 5432
    local_db_name: str = "complaint_tracker_dev"
    local_db_user: str = "postgres"
    local_db_password: str = "localpassword"

    # ------------------------------------------------------------------ #
    # Bearer tokens
    # ------------------------------------------------------------------ #
    jwt_secret: str = _DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_expires_minutes: int = 60 * 24 * 7  # 7 days

    # ------------------------------------------------------------------ #
    # Advisor (classification / routing / summaries / analytics)
    # ------------------------------------------------------------------ #
    advisor_mode: str = "mock"
    advisor_classification_url: str = ""
    advisor_routing_url: str = ""
    advisor_summarization_url: str = ""
    advisor_analytics_url: str = ""
    advisor_api_key: str = ""
    advisor_timeout: float = 10.0

    # ------------------------------------------------------------------ #
    # Worker dashboard
    # ------------------------------------------------------------------ #
    overdue_after_days: int = 7

    # ------------------------------------------------------------------ #
    # Computed properties
    # ------------------------------------------------------------------ #

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def advisor_is_remote(self) -> bool:
        return self.advisor_mode == "remote"

    @property
    def database_url(self) -> str:
        """Async URL (asyncpg unless DB_URL overrides it)."""
        if self.db_url:
            return self.db_url
        host, port, name, user, password = self._resolve_db_credentials()
        return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{name}"

    def _resolve_db_credentials(self) -> tuple[str, int, str, str, str]:
        if self.is_development:
            return (
                self.local_db_host,
                self.local_db_port,
                self.local_db_name,
                self.local_db_user,
                self.local_db_password,
            )

        if not self.db_host:
            raise RuntimeError("DB_HOST is not set. Update your .env or the service environment.")

        return self.db_host, self.db_port, self.db_name, self.db_user, self.db_password

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {allowed}")
        return v.lower()

    @field_validator("advisor_mode")
    @classmethod
    def validate_advisor_mode(cls, v: str) -> str:
        allowed = {"mock", "remote"}
        if v.lower() not in allowed:
            raise ValueError(f"ADVISOR_MODE must be one of {allowed}")
        return v.lower()

    @model_validator(mode="after")
    def require_real_secret_outside_development(self) -> "Settings":
        if not self.is_development and self.jwt_secret == _DEFAULT_JWT_SECRET:
            raise ValueError("JWT_SECRET must be set outside development")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
