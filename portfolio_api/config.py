"""
Folio Portfolio API — Configuration via environment variables.
"""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """All settings read from env / .env file."""

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./portfolio.db",
        description="Async SQLAlchemy DB URL",
    )

    # Analytics event store — "sql" (local DB) or "rest" (PostgREST-style remote)
    event_store_backend: str = Field(
        default="sql",
        description="Event store backend: 'sql' (SQLAlchemy) or 'rest' (remote PostgREST API)",
    )
    event_store_url: str = Field(default="", description="Base URL of the remote event store")
    event_store_api_key: str = Field(default="", description="API key for the remote event store")
    event_store_timeout: int = Field(default=10, description="Seconds before a store call is abandoned")

    # Aggregation
    analytics_window_days: int = Field(default=30, description="Trailing window for summaries")
    top_projects_limit: int = Field(default=5)

    # Visitor identity (browser cookie)
    visitor_cookie_name: str = Field(default="visitor_id")
    visitor_cookie_max_age: int = Field(
        default=400 * 24 * 3600, description="Cookie lifetime in seconds"
    )

    # CORS — public portfolio pages and dashboard
    cors_origins: list[str] = Field(default=["*"])

    @property
    def rest_store_enabled(self) -> bool:
        return self.event_store_backend == "rest" and bool(self.event_store_url)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


settings = Settings()
