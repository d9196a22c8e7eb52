"""Configuration management for apiweave.

Loads settings from environment variables (and an optional .env file) using
Pydantic. Nothing here is required: every field has a working default so the
package can be imported without any environment prepared.

Usage:
    from apiweave.config import settings

    print(settings.cache_dir)
    print(settings.default_ttl)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """apiweave configuration from environment variables.

    Attributes:
        log_level: Logging verbosity (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        cache_dir: Directory holding one ``<name>.cache`` file per cache store
        default_ttl: TTL in seconds for cacheable endpoints that declare none
        http_timeout: Per-request timeout for the httpx transport (seconds)
        user_agent: User-Agent header sent by the httpx transport
        nhl_api_base: Base URI of the bundled NHL stats catalog
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="INFO", description="Logging level")
    cache_dir: str = Field(default="cache", description="Response cache directory")

    default_ttl: int = Field(
        default=300,
        ge=0,
        description="Fallback TTL for cached responses (seconds)",
    )
    http_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout (seconds)",
    )
    user_agent: str = Field(
        default="apiweave/0.1.0",
        min_length=1,
        description="User-Agent header for outbound requests",
    )
    nhl_api_base: str = Field(
        default="https://statsapi.web.nhl.com/api",
        description="Base URI for the bundled NHL catalog (no trailing slash)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid:
            raise ValueError(f"log_level must be one of {valid}, got {v}")
        return v_upper

    @field_validator("nhl_api_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


# Global settings instance — loaded once at import
settings = Settings()
