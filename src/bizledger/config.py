"""Runtime settings loaded from environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_CURRENCY = "USD"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 500
DEFAULT_LOW_STOCK_THRESHOLD = 10


@dataclass(frozen=True)
class Settings:
    """Application settings.

    Every field can be set through a ``BIZLEDGER_*`` environment variable;
    CLI options override the environment.
    """

    database_path: Optional[str] = None
    currency: str = DEFAULT_CURRENCY
    log_level: str = DEFAULT_LOG_LEVEL
    page_size: int = DEFAULT_PAGE_SIZE
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD

    def resolve_database_path(self) -> str:
        """Return the SQLite file path, defaulting to ~/.bizledger/bizledger.db."""
        if self.database_path:
            return self.database_path
        db_dir = Path.home() / ".bizledger"
        db_dir.mkdir(exist_ok=True)
        return str(db_dir / "bizledger.db")


def _int_from_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got '{raw}'")
    if value < 1:
        raise ValueError(f"{key} must be at least 1, got {value}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from environment variables.

    Args:
        env: Mapping to read from (defaults to ``os.environ``)

    Returns:
        Settings instance

    Raises:
        ValueError: If a numeric variable is malformed or the currency code is not
            three letters
    """
    if env is None:
        env = os.environ

    currency = env.get("BIZLEDGER_CURRENCY", DEFAULT_CURRENCY).strip().upper()
    if len(currency) != 3 or not currency.isalpha():
        raise ValueError(f"BIZLEDGER_CURRENCY must be a 3-letter code, got '{currency}'")

    page_size = min(_int_from_env(env, "BIZLEDGER_PAGE_SIZE", DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE)

    return Settings(
        database_path=env.get("BIZLEDGER_DB_PATH") or None,
        currency=currency,
        log_level=env.get("BIZLEDGER_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper(),
        page_size=page_size,
        low_stock_threshold=_int_from_env(env, "BIZLEDGER_LOW_STOCK", DEFAULT_LOW_STOCK_THRESHOLD),
    )
