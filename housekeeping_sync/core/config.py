"""Configuration management for housekeeping-sync."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Remote task API
    api_base_url: str = Field(default="http://127.0.0.1:8000/api", description="Base URL of the remote task API")
    api_token: str | None = Field(default=None, description="Bearer token sent to the remote task API")
    http_timeout_seconds: float = Field(default=30.0, description="Per-request timeout for the HTTP client")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")

    # Task board behaviour
    default_per_page: int = Field(default=10, description="Page size used when no per_page filter is set")
    mutation_timeout_seconds: float = Field(
        default=30.0, description="Upper bound for the remote call of one optimistic mutation"
    )
    page_stale_after_seconds: int = Field(
        default=600, description="Age after which a cached page is refetched on the next natural fetch"
    )

    def require_credential(self, field_name: str, service_name: str) -> str:
        """Validate that a required credential is set, raising a clear error if missing.

        Args:
            field_name: Name of the field to check
            service_name: Human-readable service name for error message

        Returns:
            The credential value

        Raises:
            ValueError: If the credential is None or empty
        """
        value = getattr(self, field_name)
        if not value:
            raise ValueError(
                f"{service_name} credential not configured. "
                f"Set {field_name.upper()} environment variable or add to .env file."
            )
        return value


# Application Constants
class Constants:
    """Application-wide constants."""

    # HTTP Status Codes
    HTTP_NOT_FOUND: int = 404
    HTTP_UNPROCESSABLE_ENTITY: int = 422
    HTTP_CLIENT_ERROR_START: int = 400
    HTTP_CLIENT_ERROR_END: int = 500

    # Room status ids as stored by the remote API
    STATUS_DIRTY_ID: int = 3
    STATUS_CLEAN_ID: int = 4
    STATUS_DIRTY_NAME: str = "Sucia"
    STATUS_CLEAN_NAME: str = "Limpia"

    # Field limits
    NOTES_MAX_LENGTH: int = 500

    # Sorting
    DEFAULT_SORT_KEY: str = "room"


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
