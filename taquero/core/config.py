"""Application configuration using pydantic-settings.

All environment variables should be accessed through the settings object
rather than using os.getenv() directly. This covers both halves of the
project: the record service (database, logging, rate limiting) and the
client cache stores (sheet URLs, timeouts, bucket storage).
"""

from functools import lru_cache
from typing import Dict, List, Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Record store
    database_url: str = "sqlite:///./taquero.db"
    sql_echo: bool = False

    # CORS - comma-separated origins or "*" for development only
    cors_origins: str = "http://localhost:5173,http://localhost:8000"

    # Server
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # API
    api_v1_prefix: str = "/api/v1"

    # Rate limiting
    rate_limit_enabled: bool = True

    # ==========================================================================
    # Client cache stores
    # ==========================================================================
    # Base URL of a running record service, e.g. "http://localhost:8000".
    # Module URLs are derived from it unless overridden in sheet_urls.
    service_base_url: str = ""
    # JSON mapping of module key -> endpoint URL, e.g.
    # SHEET_URLS='{"incidents": "https://script.google.com/macros/s/.../exec"}'
    sheet_urls: Dict[str, str] = {}
    client_timeout_seconds: float = 15.0

    # Persisted local buckets: JSON files under cache_dir, or Redis when set
    cache_dir: str = "./.taquero-cache"
    redis_url: Optional[str] = None

    @field_validator("service_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def sheet_url(self, module_path: str) -> str:
        """Resolve the endpoint URL for a module, or "" when not configured.

        ``module_path`` is the path below the API prefix, e.g. ``sheets/incidents``
        or ``proving/cooling``. An explicit entry in ``sheet_urls`` (keyed by the
        last path segment) wins over the derived service URL.
        """
        key = module_path.rsplit("/", 1)[-1]
        if key in self.sheet_urls:
            return self.sheet_urls[key]
        if not self.service_base_url:
            return ""
        return f"{self.service_base_url}{self.api_v1_prefix}/{module_path}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
