"""
Configuration helpers for the user service.

Exposes a Settings object read from environment variables (storage backend,
database URL, logging) so that routers/repositories do not fetch os.environ
directly.
"""

from dataclasses import dataclass
from functools import lru_cache
import os

STORE_MEMORY = "memory"
STORE_SQL = "sql"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    user_store: str
    database_url: str
    seed_file: str
    request_log: str
    log_level: str
    sql_echo: bool
    cors_origins: tuple[str, ...]


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _bool(value: str | None, default: bool = False) -> bool:
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    def _list(value: str | None) -> tuple[str, ...]:
        return tuple(item.strip() for item in (value or "").split(",") if item.strip())

    store = (os.getenv("USER_STORE") or STORE_MEMORY).strip().lower()
    if store not in (STORE_MEMORY, STORE_SQL):
        raise RuntimeError(f"USER_STORE must be '{STORE_MEMORY}' or '{STORE_SQL}', got {store!r}")

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        user_store=store,
        database_url=os.getenv("DATABASE_URL", "").strip(),
        seed_file=os.getenv("SEED_FILE", "").strip(),
        request_log=os.getenv("REQUEST_LOG", "").strip(),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        sql_echo=_bool(os.getenv("SQL_ECHO"), False),
        cors_origins=_list(os.getenv("CORS_ORIGINS")),
    )
