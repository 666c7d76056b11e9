from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class SqlStoreConfig:
    database_url: str
    echo: bool = False


def get_sql_store_config() -> SqlStoreConfig:
    """
    Load SQL record store configuration from environment variables.

    Reads:
      RECON_DATABASE_URL (required), RECON_SQL_ECHO
    """
    return SqlStoreConfig(
        database_url=_require_env("RECON_DATABASE_URL"),
        echo=_env_flag("RECON_SQL_ECHO"),
    )


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"Missing required environment variable: {name}")
    return value
