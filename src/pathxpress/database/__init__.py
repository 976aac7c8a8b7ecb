"""Database layer for pathxpress application."""

from pathxpress.database.base import Database
from pathxpress.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
