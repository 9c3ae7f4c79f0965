"""Database factory functions for creating database instances."""

import os
from typing import Optional

from bizledger.config import Settings
from bizledger.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks BIZLEDGER_DB_PATH
            environment variable, then defaults to ~/.bizledger/bizledger.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = Settings(database_path=os.environ.get("BIZLEDGER_DB_PATH")).resolve_database_path()

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)
