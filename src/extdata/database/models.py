"""SQLAlchemy models for the extdata catalog and command audit log.

Datatables themselves are admin-defined and have no model here; they are
reflected at runtime.
"""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Boolean,
    Text,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

Base = declarative_base()


class RegisteredTable(Base):
    """Catalog row attaching a datatable to an application table."""

    __tablename__ = "x_registered_table"

    registered_table_name = Column(String(50), primary_key=True)
    application_table_name = Column(String(50), nullable=False, index=True)
    multi_row = Column(Boolean, default=False, nullable=False)
    registered_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class CommandSource(Base):
    """Audit record of a processed command."""

    __tablename__ = "m_portfolio_command_source"

    id = Column(Integer, primary_key=True)
    action_name = Column(String(50), nullable=False)
    entity_name = Column(String(50), nullable=False)
    resource_id = Column(Integer, nullable=True)
    apptable_id = Column(Integer, nullable=True)
    datatable_id = Column(Integer, nullable=True)
    command_as_json = Column(Text, nullable=True)
    changes_as_json = Column(Text, nullable=True)
    maker = Column(String(100), nullable=False)
    made_on = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


def create_engine_and_session_factory(database_url: str) -> tuple[Engine, sessionmaker[Session]]:
    """Create a SQLAlchemy engine and session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return engine, sessionmaker(bind=engine)
