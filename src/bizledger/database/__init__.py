"""Database layer for bizledger application."""

from bizledger.database.base import Database, Repository
from bizledger.database.factories import create_sqlite_database

__all__ = ["Database", "Repository", "create_sqlite_database"]
