"""Datatable domain service.

Registers admin-defined tables against business entities and performs
generic CRUD on their rows. A datatable is one-to-one when the parent
foreign-key column is its primary key, and one-to-many when it has its own
``id`` primary key.
"""

import logging
from typing import Any, Optional

from extdata.database.base import Database
from extdata.domain.entities import (
    ColumnHeader,
    DatatableEntry,
    GenericResultset,
    Ordering,
    ParentEntityType,
    RegisteredDatatable,
)
from extdata.domain.errors import (
    ConflictError,
    DependencyError,
    DuplicateTableError,
    NotFoundError,
    TableNotFoundError,
    UnknownParentEntityError,
    ValidationError,
    datatable_already_registered,
    datatable_not_registered,
    deregister_blocked,
    entry_already_exists,
    entry_not_found,
    physical_table_missing,
    unknown_columns,
    unknown_parent_entity,
)
from extdata.domain.values import coerce_value, to_resultset_value

logger = logging.getLogger(__name__)

ROW_ID_COLUMN = "id"


def resolve_parent_entity_type(parent_entity_type: str) -> ParentEntityType:
    """Resolve a parent entity type by entity or application table name.

    Raises:
        UnknownParentEntityError: If the name is not a known business entity
    """
    parent = ParentEntityType.lookup(parent_entity_type or "")
    if parent is None:
        raise UnknownParentEntityError(unknown_parent_entity(parent_entity_type))
    return parent


def parse_ordering(order: Optional[str], columns: dict[str, ColumnHeader]) -> Optional[Ordering]:
    """Parse ``"column"`` or ``"column asc|desc"`` into an Ordering.

    Raises:
        ValidationError: If the column is unknown or the direction invalid
    """
    if order is None or not order.strip():
        return None
    parts = order.split()
    if len(parts) > 2:
        raise ValidationError(f"Invalid ordering '{order}'")
    column = parts[0]
    if column not in columns:
        raise ValidationError(f"Cannot order by unknown column '{column}'")
    direction = parts[1].lower() if len(parts) == 2 else "asc"
    if direction not in ("asc", "desc"):
        raise ValidationError(f"Invalid ordering direction '{parts[1]}'")
    return Ordering(column=column, descending=direction == "desc")


class DatatableService:
    """Service for registering datatables and managing their entries."""

    def __init__(self, db: Database):
        """Initialize datatable service.

        Args:
            db: Database instance
        """
        self.db = db

    # Catalog
    def list_datatables(self, parent_entity_type: Optional[str] = None) -> list[RegisteredDatatable]:
        """List registered datatables.

        Args:
            parent_entity_type: Optional parent entity type to filter by

        Returns:
            Registered datatables sorted by name
        """
        app_table = None
        if parent_entity_type is not None:
            app_table = resolve_parent_entity_type(parent_entity_type).app_table
        return self.db.list_registered_datatables(app_table=app_table)

    def get_datatable(self, datatable_name: str) -> RegisteredDatatable:
        """Get a registered datatable.

        Raises:
            TableNotFoundError: If the datatable is not registered
        """
        datatable = self.db.get_registered_datatable(datatable_name)
        if datatable is None:
            raise TableNotFoundError(datatable_not_registered(datatable_name))
        return datatable

    def register_datatable(self, datatable_name: str, parent_entity_type: str) -> RegisteredDatatable:
        """Register an existing table as a datatable of a parent entity type.

        Cardinality is read from the table's schema: an ``id`` primary key
        makes it one-to-many, otherwise the parent foreign-key column must
        be the primary key and the table is one-to-one.

        Args:
            datatable_name: Name of the physical table
            parent_entity_type: Parent entity (e.g. "CLIENT") or application table (e.g. "m_client")

        Returns:
            The new catalog entry

        Raises:
            DuplicateTableError: If the name is already registered
            UnknownParentEntityError: If the parent type is not recognized
            TableNotFoundError: If no such table exists in storage
            ValidationError: If the table lacks the parent foreign-key column
        """
        if not datatable_name or not datatable_name.strip():
            raise ValidationError("Datatable name is required")
        if self.db.get_registered_datatable(datatable_name) is not None:
            raise DuplicateTableError(datatable_already_registered(datatable_name))
        parent = resolve_parent_entity_type(parent_entity_type)
        if not self.db.table_exists(datatable_name):
            raise TableNotFoundError(physical_table_missing(datatable_name))

        columns = {c.column_name: c for c in self.db.get_column_headers(datatable_name)}
        fk_column = columns.get(parent.fk_column)
        if fk_column is None:
            raise ValidationError(
                f"Table '{datatable_name}' has no '{parent.fk_column}' column referencing {parent.app_table}"
            )
        row_id_column = columns.get(ROW_ID_COLUMN)
        multi_row = row_id_column is not None and row_id_column.is_primary_key
        if not multi_row and not fk_column.is_primary_key:
            raise ValidationError(
                f"Table '{datatable_name}' needs either an '{ROW_ID_COLUMN}' primary key "
                f"or '{parent.fk_column}' as its primary key"
            )

        with self.db.transaction():
            self.db.create_registered_datatable(datatable_name, parent.app_table, multi_row)
        logger.info(
            "Registered datatable %s for %s (%s)",
            datatable_name,
            parent.name,
            "one-to-many" if multi_row else "one-to-one",
        )
        return RegisteredDatatable(
            datatable_name=datatable_name, parent_entity_type=parent, multi_row=multi_row
        )

    def deregister_datatable(self, datatable_name: str) -> None:
        """Remove a datatable from the catalog.

        Only the catalog entry goes; the physical table is never dropped.

        Raises:
            TableNotFoundError: If the datatable is not registered
            DependencyError: If the datatable still holds entries
        """
        self.get_datatable(datatable_name)
        with self.db.transaction():
            row_count = 0
            if self.db.table_exists(datatable_name):
                row_count = self.db.count_datatable_rows(datatable_name)
            if row_count > 0:
                raise DependencyError(deregister_blocked(datatable_name, row_count))
            self.db.delete_registered_datatable(datatable_name)
        logger.info("Deregistered datatable %s", datatable_name)

    def get_columns(self, datatable: RegisteredDatatable) -> dict[str, ColumnHeader]:
        """Get column metadata of a registered datatable keyed by column name."""
        key_columns = (datatable.fk_column, ROW_ID_COLUMN) if datatable.multi_row else (datatable.fk_column,)
        headers = self.db.get_column_headers(datatable.datatable_name, key_columns=key_columns)
        return {c.column_name: c for c in headers}

    # Reads
    def read_entries(
        self,
        datatable_name: str,
        parent_id: int,
        row_id: Optional[int] = None,
        order: Optional[str] = None,
    ) -> GenericResultset:
        """Read entries of a datatable for a parent.

        Args:
            datatable_name: Registered datatable name
            parent_id: Parent entity ID
            row_id: Optional row ID (one-to-many datatables only)
            order: Optional ordering, e.g. "note desc"; defaults to primary key order

        Returns:
            Generic resultset with column metadata

        Raises:
            TableNotFoundError: If the datatable is not registered
            ValidationError: If ordering or row ID is invalid for the datatable
        """
        datatable = self.get_datatable(datatable_name)
        columns = self.get_columns(datatable)
        ordering = parse_ordering(order, columns)
        criteria = self._criteria(datatable, parent_id, row_id)

        rows = self.db.select_datatable_rows(datatable_name, criteria, ordering=ordering)
        return GenericResultset(
            columns=tuple(columns.values()),
            rows=tuple(
                {name: to_resultset_value(row.get(name)) for name in columns} for row in rows
            ),
        )

    # Writes
    def create_entry(self, datatable_name: str, parent_id: int, payload: dict[str, Any]) -> Optional[int]:
        """Create a datatable entry for a parent.

        A one-to-one datatable accepts one entry per parent; a second create
        is rejected rather than overwriting the first.

        Returns:
            New row ID for one-to-many datatables, None for one-to-one

        Raises:
            TableNotFoundError: If the datatable is not registered
            ValidationError: If the payload does not fit the schema
            ConflictError: If a one-to-one datatable already has an entry for the parent
        """
        datatable = self.get_datatable(datatable_name)
        columns = self.get_columns(datatable)
        values = self._coerce_payload(datatable, columns, payload)

        missing = [
            c.column_name
            for c in columns.values()
            if not (c.is_key or c.is_nullable or c.has_default) and c.column_name not in values
        ]
        if missing:
            raise ValidationError(
                f"Missing value{'s' if len(missing) != 1 else ''} for required "
                f"column{'s' if len(missing) != 1 else ''}: {', '.join(missing)}"
            )

        with self.db.transaction():
            if not datatable.multi_row:
                existing = self.db.count_datatable_rows(datatable_name, {datatable.fk_column: parent_id})
                if existing > 0:
                    raise ConflictError(entry_already_exists(datatable_name, parent_id))
            row_id = self.db.insert_datatable_row(datatable_name, {datatable.fk_column: parent_id, **values})

        logger.info("Created entry in %s for parent %s", datatable_name, parent_id)
        return row_id if datatable.multi_row else None

    def update_entry_one_to_one(
        self, datatable_name: str, parent_id: int, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Update the single entry of a one-to-one datatable.

        Returns:
            Changed fields mapped to their new values

        Raises:
            NotFoundError: If the parent has no entry
        """
        datatable = self.get_datatable(datatable_name)
        if datatable.multi_row:
            raise ValidationError(f"Datatable '{datatable_name}' is one-to-many; a row ID is required")
        return self._update_entry(datatable, parent_id, None, payload)

    def update_entry_one_to_many(
        self, datatable_name: str, parent_id: int, row_id: int, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Update one entry of a one-to-many datatable.

        Returns:
            Changed fields mapped to their new values

        Raises:
            NotFoundError: If the row does not exist for the parent
        """
        datatable = self.get_datatable(datatable_name)
        if not datatable.multi_row:
            raise ValidationError(f"Datatable '{datatable_name}' is one-to-one; row IDs are not supported")
        return self._update_entry(datatable, parent_id, row_id, payload)

    def delete_entries(self, datatable_name: str, parent_id: int) -> int:
        """Delete all entries of a datatable for a parent.

        Returns:
            Number of entries deleted

        Raises:
            NotFoundError: If the parent has no entries
        """
        datatable = self.get_datatable(datatable_name)
        return self._delete(datatable, parent_id, None)

    def delete_entry(self, datatable_name: str, parent_id: int, row_id: int) -> None:
        """Delete one entry of a one-to-many datatable.

        Raises:
            NotFoundError: If the row does not exist for the parent
        """
        datatable = self.get_datatable(datatable_name)
        if not datatable.multi_row:
            raise ValidationError(f"Datatable '{datatable_name}' is one-to-one; row IDs are not supported")
        self._delete(datatable, parent_id, row_id)

    def _criteria(self, datatable: RegisteredDatatable, parent_id: int, row_id: Optional[int]) -> dict[str, Any]:
        criteria: dict[str, Any] = {datatable.fk_column: parent_id}
        if row_id is not None:
            if not datatable.multi_row:
                raise ValidationError(
                    f"Datatable '{datatable.datatable_name}' is one-to-one; row IDs are not supported"
                )
            criteria[ROW_ID_COLUMN] = row_id
        return criteria

    def _coerce_payload(
        self, datatable: RegisteredDatatable, columns: dict[str, ColumnHeader], payload: dict[str, Any]
    ) -> dict[str, Any]:
        unknown = sorted(name for name in payload if name not in columns)
        if unknown:
            raise ValidationError(unknown_columns(datatable.datatable_name, unknown))
        managed = sorted(name for name in payload if columns[name].is_key)
        if managed:
            raise ValidationError(f"Column{'s' if len(managed) != 1 else ''} {', '.join(managed)} cannot be set")
        return {name: coerce_value(columns[name], value) for name, value in payload.items()}

    def _load_entry(
        self, datatable: RegisteredDatatable, parent_id: int, row_id: Optional[int]
    ) -> DatatableEntry:
        criteria = self._criteria(datatable, parent_id, row_id)
        rows = self.db.select_datatable_rows(datatable.datatable_name, criteria)
        if not rows:
            raise NotFoundError(entry_not_found(datatable.datatable_name, parent_id, row_id))
        return DatatableEntry(
            datatable_name=datatable.datatable_name,
            parent_id=parent_id,
            row_id=row_id,
            values=rows[0],
        )

    def _update_entry(
        self,
        datatable: RegisteredDatatable,
        parent_id: int,
        row_id: Optional[int],
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        columns = self.get_columns(datatable)
        values = self._coerce_payload(datatable, columns, payload)

        with self.db.transaction():
            entry = self._load_entry(datatable, parent_id, row_id)
            _, changes = entry.with_changes(values)
            if changes:
                self.db.update_datatable_rows(
                    datatable.datatable_name, self._criteria(datatable, parent_id, row_id), changes
                )

        if changes:
            logger.info(
                "Updated %s in %s for parent %s", ", ".join(changes), datatable.datatable_name, parent_id
            )
        return {name: to_resultset_value(value) for name, value in changes.items()}

    def _delete(self, datatable: RegisteredDatatable, parent_id: int, row_id: Optional[int]) -> int:
        datatable_name = datatable.datatable_name
        criteria = self._criteria(datatable, parent_id, row_id)
        with self.db.transaction():
            deleted = self.db.delete_datatable_rows(datatable_name, criteria)
            if deleted == 0:
                raise NotFoundError(entry_not_found(datatable_name, parent_id, row_id))
        logger.info("Deleted %d entries from %s for parent %s", deleted, datatable_name, parent_id)
        return deleted
