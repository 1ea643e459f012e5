"""Configuration loader for the blackjack table services."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from domain.models import DEFAULT_STARTING_CHIPS

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s %(message)s"


@dataclass
class Settings:
    db_backend: str = "sqlite"
    db_path: str = "blackjack.db"
    database_url: Optional[str] = None
    starting_chips: int = DEFAULT_STARTING_CHIPS
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    discord_token: Optional[str] = None
    client_id_path: str = ".blackjack_client_id"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables.

        Expected variables:
            DB_BACKEND: "sqlite" (default) or "postgres"
            DB_PATH: SQLite database file
            DATABASE_URL: Postgres DSN, required for the postgres backend
            STARTING_CHIPS: balance given to a first-time client
            GEMINI_API_KEY: optional, enables AI recommendations
            GEMINI_MODEL: Gemini model name
            DISCORD_TOKEN: bot token, only needed by discord_main.py
            CLIENT_ID_PATH: file holding this installation's client ID
            HOST / PORT: bind address for the web API
            LOG_LEVEL: logging level name
        """

        backend = os.environ.get("DB_BACKEND", "sqlite").strip().lower()
        if backend not in ("sqlite", "postgres"):
            raise RuntimeError(f"Unsupported DB_BACKEND: {backend}")

        database_url = os.environ.get("DATABASE_URL") or None
        if backend == "postgres" and not database_url:
            raise RuntimeError("DATABASE_URL is required for the postgres backend")

        return cls(
            db_backend=backend,
            db_path=os.environ.get("DB_PATH", "blackjack.db"),
            database_url=database_url,
            starting_chips=int(os.environ.get("STARTING_CHIPS", DEFAULT_STARTING_CHIPS)),
            gemini_api_key=os.environ.get("GEMINI_API_KEY") or None,
            gemini_model=os.environ.get("GEMINI_MODEL", "gemini-2.5-flash"),
            discord_token=os.environ.get("DISCORD_TOKEN") or None,
            client_id_path=os.environ.get("CLIENT_ID_PATH", ".blackjack_client_id"),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", 3000)),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


def setup_logging(settings: Settings) -> None:
    """Call once at program start."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
    )


def build_repositories(settings: Settings):
    """Return (profile_repo, game_repo) for the configured backend."""

    if settings.db_backend == "postgres":
        from infrastructure.db.game_repository_postgres import PostgresGameRepository
        from infrastructure.db.profile_repository_postgres import PostgresProfileRepository

        db_params = {"dsn": settings.database_url}
        return (
            PostgresProfileRepository(db_params, settings.starting_chips),
            PostgresGameRepository(db_params),
        )

    from infrastructure.db.game_repository_sqlite import SqliteGameRepository
    from infrastructure.db.profile_repository_sqlite import SqliteProfileRepository

    return (
        SqliteProfileRepository(settings.db_path, settings.starting_chips),
        SqliteGameRepository(settings.db_path),
    )


def build_advisor(settings: Settings):
    """Return a Gemini advisor, or None when no API key is configured."""

    if not settings.gemini_api_key:
        return None

    from infrastructure.ai.gemini_advisor import GeminiAdvisor

    return GeminiAdvisor(settings.gemini_api_key, settings.gemini_model)
