"""Database layer for extdata application."""

from extdata.database.base import Database
from extdata.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
