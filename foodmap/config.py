"""Configuration management with pydantic-settings and validation."""

import enum

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Environment(str, enum.Enum):
    """Deployment environment the client talks to."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

    @property
    def base_url(self) -> str:
        return {
            Environment.DEVELOPMENT: "http://localhost:3000",
            Environment.STAGING: "https://staging-api.foodmap.com",
            Environment.PRODUCTION: "https://api.foodmap.com",
        }[self]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    environment: Environment = Environment.DEVELOPMENT

    # Backend API (overrides the environment default when set)
    api_base_url: str = ""
    request_timeout: float = 30.0

    # Identity backend
    identity_api_key: str = ""
    identity_base_url: str = "https://identitytoolkit.googleapis.com/v1"
    identity_token_url: str = "https://securetoken.googleapis.com/v1/token"

    # App attestation
    attestation_enabled: bool = True
    attestation_exchange_url: str = ""
    attestation_debug_token: str = ""
    attestation_header: str = "X-Firebase-AppCheck"

    # Token cache
    token_default_ttl: int = 3600
    token_expiry_margin: int = 60

    # Local storage
    database_url: str = "sqlite:///foodmap.db"

    log_level: str = "INFO"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "FOODMAP_",
    }

    @field_validator("database_url", mode="before")
    @classmethod
    def fix_database_url(cls, v):
        """Heroku-style hosts use postgres:// but SQLAlchemy requires postgresql://."""
        if isinstance(v, str) and v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator(
        "api_base_url", "identity_base_url", "identity_token_url", "attestation_exchange_url",
        mode="before",
    )
    @classmethod
    def strip_trailing_slash(cls, v):
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v

    @field_validator("token_default_ttl", "token_expiry_margin")
    @classmethod
    def check_non_negative(cls, v, info):
        if v < 0:
            raise ValueError(f"{info.field_name} must not be negative")
        return v

    @property
    def base_url(self) -> str:
        """API base URL, falling back to the environment default."""
        return self.api_base_url or self.environment.base_url

    @property
    def attestation_configured(self) -> bool:
        """Attestation is used only when enabled and an exchange URL is set."""
        return self.attestation_enabled and bool(self.attestation_exchange_url)


def get_settings() -> Settings:
    """Load and validate settings from environment.

    Raises:
        ValidationError: If environment variables are invalid.
    """
    return Settings()
