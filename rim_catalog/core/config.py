"""Application configuration with environment variable validation."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env relative to the project root (2 levels up from this file)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase
    supabase_url: str = Field(..., validation_alias="SUPABASE_URL")
    supabase_key: str = Field(..., validation_alias="SUPABASE_KEY")
    wheels_table: str = Field(
        default="individual_wheels", validation_alias="WHEELS_TABLE"
    )

    # Catalog paging
    page_size: int = Field(default=12, gt=0, validation_alias="PAGE_SIZE")
    search_debounce_ms: int = Field(
        default=400, ge=0, validation_alias="SEARCH_DEBOUNCE_MS"
    )
    # PostgREST caps unranged selects server-side (1000 rows by default)
    projection_batch_size: int = Field(
        default=1000, gt=0, validation_alias="PROJECTION_BATCH_SIZE"
    )

    # Reference sheet used by the admin form
    reference_csv_path: str = Field(
        default=str(_PROJECT_ROOT / "data" / "wheels.csv"),
        validation_alias="REFERENCE_CSV_PATH",
    )

    # API settings
    api_admin_key: str = Field(default="", validation_alias="API_ADMIN_KEY")
    allowed_origins: list[str] = Field(
        default=["http://localhost:5173"],
        validation_alias="ALLOWED_ORIGINS",
    )
    rate_limit: str = Field(default="60/minute", validation_alias="RATE_LIMIT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @property
    def cors_origins(self) -> list[str]:
        """Parse ALLOWED_ORIGINS from comma-separated string or return list."""
        if isinstance(self.allowed_origins, str):
            return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return self.allowed_origins

    @property
    def search_debounce(self) -> float:
        """Debounce window in seconds."""
        return self.search_debounce_ms / 1000


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()  # type: ignore[call-arg]


def validate_settings() -> None:
    """Validate that all required settings are present."""
    settings = get_settings()
    errors = []

    if not settings.supabase_url:
        errors.append("SUPABASE_URL is required")
    if not settings.supabase_key:
        errors.append("SUPABASE_KEY is required")
    if not settings.wheels_table:
        errors.append("WHEELS_TABLE must not be empty")

    if errors:
        raise ValueError(f"Configuration errors: {'; '.join(errors)}")
