"""
Package configuration management using Pydantic Settings.
"""
from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings loaded from environment variables.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Runtime
    ENVIRONMENT: str = Field(default="development", pattern="^(development|staging|production)$")
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Envato OAuth
    ENVATO_CLIENT_ID: Optional[str] = None
    ENVATO_CLIENT_SECRET: Optional[str] = None
    ENVATO_CALLBACK_URL: Optional[str] = None
    ENVATO_USER_AGENT: Optional[str] = None
    ENVATO_SCOPE: Annotated[List[str], NoDecode] = Field(default_factory=list)

    # HTTP transport
    ENVATO_HTTP_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)

    @field_validator("ENVATO_SCOPE", mode="before")
    @classmethod
    def assemble_scope(cls, v: str | List[str] | None) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.ENVIRONMENT == "development"

    @property
    def envato_configured(self) -> bool:
        """Whether client credentials for Envato are present."""
        return bool(self.ENVATO_CLIENT_ID and self.ENVATO_CLIENT_SECRET)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Package settings
    """
    return Settings()
