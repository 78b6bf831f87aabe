"""Database layer for ifrs16 application."""

from ifrs16.database.base import Database
from ifrs16.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
