"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from extdata.domain.entities import (
    ColumnHeader,
    CommandSource,
    Ordering,
    RegisteredDatatable,
)


class Database(ABC):
    """Abstract database interface for extdata."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create catalog and audit tables)."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Return a context manager wrapping one transaction.

        Nested blocks join the outermost one. The outermost block commits
        on success; any exception rolls back the whole transaction.
        """
        pass

    # Catalog operations
    @abstractmethod
    def create_registered_datatable(self, datatable_name: str, app_table: str, multi_row: bool) -> None:
        """Add a datatable to the catalog."""
        pass

    @abstractmethod
    def get_registered_datatable(self, datatable_name: str) -> Optional[RegisteredDatatable]:
        """Get catalog entry by datatable name."""
        pass

    @abstractmethod
    def list_registered_datatables(self, app_table: Optional[str] = None) -> list[RegisteredDatatable]:
        """List catalog entries, optionally filtered by application table."""
        pass

    @abstractmethod
    def delete_registered_datatable(self, datatable_name: str) -> None:
        """Remove a datatable from the catalog. The table itself is kept."""
        pass

    # Schema introspection
    @abstractmethod
    def table_exists(self, table_name: str) -> bool:
        """Check if a physical table exists."""
        pass

    @abstractmethod
    def get_column_headers(self, table_name: str, key_columns: tuple[str, ...] = ()) -> list[ColumnHeader]:
        """Get column metadata for a table, marking ``key_columns`` as keys."""
        pass

    @abstractmethod
    def invalidate_table_metadata(self, table_name: str) -> None:
        """Drop any cached metadata for a table."""
        pass

    # Datatable row operations
    @abstractmethod
    def count_datatable_rows(self, table_name: str, criteria: Optional[dict[str, Any]] = None) -> int:
        """Count rows matching all equality criteria."""
        pass

    @abstractmethod
    def select_datatable_rows(
        self,
        table_name: str,
        criteria: dict[str, Any],
        ordering: Optional[Ordering] = None,
    ) -> list[dict[str, Any]]:
        """Select rows matching all equality criteria.

        Rows are returned as raw column-name to stored-value mappings in
        primary key order unless an ordering is given.
        """
        pass

    @abstractmethod
    def insert_datatable_row(self, table_name: str, values: dict[str, Any]) -> Optional[int]:
        """Insert a row. Returns the generated ``id`` when the table has one."""
        pass

    @abstractmethod
    def update_datatable_rows(self, table_name: str, criteria: dict[str, Any], values: dict[str, Any]) -> int:
        """Update rows matching criteria. Returns number of rows updated."""
        pass

    @abstractmethod
    def delete_datatable_rows(self, table_name: str, criteria: dict[str, Any]) -> int:
        """Delete rows matching criteria. Returns number of rows deleted."""
        pass

    # Command audit log
    @abstractmethod
    def create_command_source(
        self,
        action_name: str,
        entity_name: str,
        maker: str,
        resource_id: Optional[int] = None,
        apptable_id: Optional[int] = None,
        datatable_id: Optional[int] = None,
        command_as_json: Optional[str] = None,
    ) -> int:
        """Record an inbound command. Returns command ID."""
        pass

    @abstractmethod
    def update_command_source_result(
        self, command_id: int, resource_id: Optional[int], changes_as_json: Optional[str]
    ) -> None:
        """Store the outcome of a processed command."""
        pass

    @abstractmethod
    def get_command_source(self, command_id: int) -> Optional[CommandSource]:
        """Get command source by ID."""
        pass

    @abstractmethod
    def list_command_sources(self, entity_name: Optional[str] = None) -> list[CommandSource]:
        """List recorded commands, newest first."""
        pass
