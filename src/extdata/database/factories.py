"""Database factory functions."""

import os
from pathlib import Path
from typing import Optional

from extdata.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENV = "EXTDATA_DB_PATH"


def default_database_path() -> str:
    """Return the database file to use when none is given.

    ``EXTDATA_DB_PATH`` wins; otherwise ``~/.extdata/extdata.db``, whose
    directory is created on demand.
    """
    env_path = os.environ.get(DB_PATH_ENV)
    if env_path:
        return env_path
    db_dir = Path.home() / ".extdata"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "extdata.db")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite-backed database.

    Args:
        database_path: Path to the database file (default: default_database_path())

    Returns:
        SQLAlchemyDatabase bound to the file
    """
    return SQLAlchemyDatabase(f"sqlite:///{database_path or default_database_path()}")
