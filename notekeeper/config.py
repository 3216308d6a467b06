"""Application settings (pydantic-settings).

Values come from ``NOTEKEEPER_*`` environment variables or a ``.env`` file in
the project root. Settings are read once per process; ``database_url`` may
be any SQLAlchemy URL for a SQLite, MySQL or PostgreSQL store.
"""
from __future__ import annotations
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = Path(__file__).resolve().parents[1] / ".env"


class Settings(BaseSettings):
    app_name: str = "notekeeper"
    api_prefix: str = "/api"

    # storage
    db_path: Optional[Path] = None
    database_url: Optional[str] = None
    echo_sql: bool = False

    log_level: str = "INFO"

    # listing
    default_page_size: int = 20
    quick_search_limit: int = 10
    # when false the pin ordering replaces the requested sort entirely
    honor_sort_within_pins: bool = False

    model_config = SettingsConfigDict(
        env_prefix="NOTEKEEPER_",
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def resolved_db_path(self) -> Path:
        return self.db_path or Path.home() / ".notekeeper" / "notekeeper.db"

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.resolved_db_path}"

    @property
    def api_prefix_normalized(self) -> str:
        """``api_prefix`` with a leading slash and no trailing one ("" for empty or "/")."""
        pref = (self.api_prefix or "").strip()
        if not pref:
            return ""
        if not pref.startswith("/"):
            pref = "/" + pref
        return pref.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    # cleared by db.reset_engine()
    return Settings()
