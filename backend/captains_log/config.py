"""Application configuration management."""

import os
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError


BACKEND_ROOT = Path(__file__).resolve().parents[1]
PROJECT_ROOT = BACKEND_ROOT.parent
STORAGE_ROOT = PROJECT_ROOT / "storage"
DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: Literal["development", "production", "testing"] = "development"

    # Database
    database_url: str = "sqlite+aiosqlite:///./captains_log.db"
    storage_backend: Literal["sql", "memory"] = "sql"
    auto_migrate: bool = False

    # Security
    secret_key: str = DEFAULT_SECRET_KEY
    algorithm: str = "HS256"
    session_expire_days: int = 7
    reset_token_expire_hours: int = 24

    # Storage
    media_storage_path: str = str(STORAGE_ROOT / "uploads")
    client_shell_path: str = str(PROJECT_ROOT / "dist")
    client_state_path: str = str(STORAGE_ROOT / "client_state.json")

    # Transcription
    openai_api_key: str | None = None
    transcription_model: str = "whisper-1"
    transcription_response_format: str = "json"

    # Search
    search_debounce_ms: int = 300

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = (
        "http://localhost:3000,"
        "http://localhost:8080,"
        "http://127.0.0.1:3000,"
        "http://127.0.0.1:8080"
    )

    # Logging
    log_level: str = "INFO"
    log_dir: str = str(PROJECT_ROOT / "logs")

    model_config = SettingsConfigDict(env_file=(".env.test", ".env"), case_sensitive=False)

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        env_var = os.getenv("ENVIRONMENT", "").lower() == "testing"
        pytest_flag = bool(os.getenv("PYTEST_CURRENT_TEST"))
        return self.environment == "testing" or env_var or pytest_flag

    @property
    def search_debounce_seconds(self) -> float:
        return self.search_debounce_ms / 1000

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str, info) -> str:
        """Validate secret key is secure in production."""
        env = info.data.get("environment", "development")
        if env == "production" and v == DEFAULT_SECRET_KEY:
            raise ValueError(
                "SECRET_KEY must be changed from default value in production. "
                "Generate a secure key with: python -c 'import secrets; print(secrets.token_urlsafe(32))'"
            )
        if env == "production" and len(v) < 32:
            raise ValueError(
                "SECRET_KEY must be at least 32 characters in production for security. "
                f"Current length: {len(v)}"
            )
        return v

    @field_validator("session_expire_days", "reset_token_expire_hours", "search_debounce_ms")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @model_validator(mode="after")
    def validate_storage_paths(self) -> "Settings":
        """Ensure storage directories exist."""
        Path(self.media_storage_path).mkdir(parents=True, exist_ok=True)
        Path(self.client_state_path).parent.mkdir(parents=True, exist_ok=True)
        return self

    @model_validator(mode="after")
    def normalize_database_path(self) -> "Settings":
        """Ensure SQLite URLs point to backend/ regardless of CWD."""
        try:
            url = make_url(self.database_url)
        except ArgumentError:
            return self

        if not url.get_backend_name().startswith("sqlite"):
            return self

        db_path = url.database
        if not db_path or db_path == ":memory:":
            return self

        path_obj = Path(db_path)
        if not path_obj.is_absolute():
            abs_path = (BACKEND_ROOT / path_obj).resolve()
            url = url.set(database=str(abs_path))
            self.database_url = url.render_as_string(hide_password=False)
        return self


# Global settings instance
settings = Settings()
if os.getenv("PYTEST_CURRENT_TEST"):
    settings.environment = "testing"
if settings.is_testing:
    settings.environment = "testing"
