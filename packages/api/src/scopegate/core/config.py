# This project was developed with assistance from AI tools.
"""
API settings.

Environment variables first, then the repository-root .env file, then the
defaults below. Database connection settings live in scopegate_db.config.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# packages/api/src/scopegate/core/config.py -> repository root
_PROJECT_ROOT = Path(__file__).resolve().parents[5]
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Settings for the HTTP layer, tokens, policy loading and the query engine."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- App --
    APP_NAME: str = "scopegate"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    AUTO_CREATE_SCHEMA: bool = Field(
        default=True,
        description="Create missing tables at startup. Disable when schema is managed externally.",
    )

    # -- CORS --
    ALLOWED_HOSTS: list[str] = ["http://localhost:5173"]

    # -- Auth --
    JWT_SECRET: str = Field(
        default="change-me-in-production-0123456789abcdef",
        description="HMAC secret used to sign access and refresh tokens.",
    )
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_TTL_MINUTES: int = Field(
        default=60,
        description="Lifetime of an access token.",
    )
    REFRESH_TOKEN_TTL_DAYS: int = Field(
        default=7,
        description="Window during which a refresh token can mint a new pair.",
    )

    # -- Policy --
    POLICY_FILE: str | None = Field(
        default=None,
        description="Path to a policy YAML document. Defaults to the bundled policy.yaml.",
    )

    # -- Query engine --
    QUERY_DEFAULT_LIMIT: int = 20
    QUERY_MAX_LIMIT: int = 100


settings = Settings()
