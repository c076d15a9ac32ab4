"""Application configuration via Pydantic Settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

# Resolve .env from the project root regardless of CWD
_ENV_FILE = Path(__file__).resolve().parents[3] / ".env"


class Settings(BaseSettings):
    """Central configuration loaded from environment variables / .env file."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./submissions.db"
    storage_timeout_seconds: float = 10.0

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Submissions
    default_source: str = "Website Form"
    allowed_sources: str = ""  # comma-separated; empty accepts any source
    local_timezone: str = "America/New_York"
    default_page_size: int = 10
    max_page_size: int = 100
    recent_submissions_limit: int = 5

    # General
    environment: str = "development"
    debug: bool = True

    model_config = {"env_file": str(_ENV_FILE), "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list.

        In debug mode, returns ["*"] so n8n and local tools can reach the API.
        """
        if self.debug:
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def allowed_sources_list(self) -> list[str]:
        """Sources accepted on ingest. An empty list means any string is allowed."""
        return [source.strip() for source in self.allowed_sources.split(",") if source.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
