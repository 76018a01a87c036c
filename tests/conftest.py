"""Shared pytest fixtures for extdata tests."""

import tempfile
import os
import pytest
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
)

from extdata.database.factories import create_sqlite_database
from extdata.domain.command_processing import ALL_FUNCTIONS, CommandProcessingService
from extdata.domain.datatable import DatatableService
from extdata.domain.entities import AppUser


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    db.engine.dispose()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def datatable_service(temp_db):
    """Create a DatatableService with a temporary database."""
    return DatatableService(temp_db)


@pytest.fixture
def admin_user():
    """A user holding every permission."""
    return AppUser(username="admin", permissions=frozenset({ALL_FUNCTIONS}), id=1)


@pytest.fixture
def processor(temp_db, admin_user, datatable_service):
    """Create a CommandProcessingService acting as the admin user."""
    return CommandProcessingService(temp_db, admin_user, datatable_service)


@pytest.fixture
def client_extra_table(temp_db):
    """Create a one-to-one table keyed by client_id."""
    metadata = MetaData()
    table = Table(
        "client_extra",
        metadata,
        Column("client_id", Integer, primary_key=True, autoincrement=False),
        Column("favoriteColor", String(50), nullable=True),
        Column("shoeSize", Integer, nullable=True),
        Column("vip", Boolean, nullable=True),
        Column("birthday", Date, nullable=True),
    )
    metadata.create_all(temp_db.engine)
    return table


@pytest.fixture
def loan_notes_table(temp_db):
    """Create a one-to-many table with its own id column."""
    metadata = MetaData()
    table = Table(
        "loan_notes",
        metadata,
        Column("id", Integer, primary_key=True),
        Column("loan_id", Integer, nullable=False),
        Column("note", String(100), nullable=False),
        Column("amount", Numeric(10, 2), nullable=True),
        Column("noted_on", Date, nullable=True),
    )
    metadata.create_all(temp_db.engine)
    return table


@pytest.fixture
def client_extra(datatable_service, client_extra_table):
    """Register client_extra against CLIENT."""
    return datatable_service.register_datatable("client_extra", "CLIENT")


@pytest.fixture
def loan_notes(datatable_service, loan_notes_table):
    """Register loan_notes against LOAN."""
    return datatable_service.register_datatable("loan_notes", "LOAN")


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
