"""Runtime configuration for the loan ledger.

Settings are read from environment variables, optionally loaded from a
``.env`` file in the working directory.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite:///loan_ledger.sqlite3"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    secret_key: str = "dev-secret-key"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8710
    allow_migrations: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            database_url=os.environ.get("LOAN_LEDGER_DATABASE_URL") or DEFAULT_DATABASE_URL,
            secret_key=os.environ.get("FLASK_SECRET_KEY", "dev-secret-key"),
            log_level=os.environ.get("LOAN_LEDGER_LOG_LEVEL", "INFO").upper(),
            host=os.environ.get("LOAN_LEDGER_HOST", "0.0.0.0"),
            port=int(os.environ.get("LOAN_LEDGER_PORT", "8710")),
            allow_migrations=os.environ.get("LOAN_LEDGER_ALLOW_MIGRATIONS", "1").strip().lower() not in ("0", "false", "no"),
        )


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
