"""Mapper functions to convert storage representations to domain models.

This layer isolates the conversion logic: ORM rows for the catalog and
audit log, and reflected column descriptions for datatables.
"""

from typing import Any

from sqlalchemy import types as sqltypes

from extdata.domain import entities as domain
from extdata.domain import values
from extdata.domain.errors import UnknownParentEntityError, unknown_parent_entity
from extdata.database.models import (
    RegisteredTable as ORMRegisteredTable,
    CommandSource as ORMCommandSource,
)


def registered_datatable_to_domain(orm_table: ORMRegisteredTable) -> domain.RegisteredDatatable:
    """Convert SQLAlchemy RegisteredTable model to domain RegisteredDatatable entity."""
    parent = domain.ParentEntityType.lookup(orm_table.application_table_name)
    if parent is None:
        raise UnknownParentEntityError(unknown_parent_entity(orm_table.application_table_name))
    return domain.RegisteredDatatable(
        datatable_name=orm_table.registered_table_name,
        parent_entity_type=parent,
        multi_row=bool(orm_table.multi_row),
    )


def command_source_to_domain(orm_command: ORMCommandSource) -> domain.CommandSource:
    """Convert SQLAlchemy CommandSource model to domain CommandSource entity."""
    return domain.CommandSource(
        id=orm_command.id,
        action_name=orm_command.action_name,
        entity_name=orm_command.entity_name,
        resource_id=orm_command.resource_id,
        apptable_id=orm_command.apptable_id,
        datatable_id=orm_command.datatable_id,
        command_as_json=orm_command.command_as_json,
        changes_as_json=orm_command.changes_as_json,
        maker=orm_command.maker,
        made_on=orm_command.made_on,
    )


def column_type_name(sql_type: sqltypes.TypeEngine) -> str:
    """Map a reflected SQL type to a datatable column type name."""
    # Order matters: DateTime before Date, Boolean before Integer, Float before Numeric.
    if isinstance(sql_type, sqltypes.Boolean):
        return values.BOOLEAN
    if isinstance(sql_type, sqltypes.Integer):
        return values.INTEGER
    if isinstance(sql_type, sqltypes.Float):
        return values.FLOAT
    if isinstance(sql_type, sqltypes.Numeric):
        return values.DECIMAL
    if isinstance(sql_type, sqltypes.DateTime):
        return values.DATETIME
    if isinstance(sql_type, sqltypes.Date):
        return values.DATE
    if isinstance(sql_type, sqltypes.Text):
        return values.TEXT
    return values.VARCHAR


def column_header_from_reflection(
    column: dict[str, Any], primary_keys: set[str], key_columns: tuple[str, ...]
) -> domain.ColumnHeader:
    """Convert an inspector column description to a ColumnHeader."""
    sql_type = column["type"]
    name = column["name"]
    return domain.ColumnHeader(
        column_name=name,
        column_type=column_type_name(sql_type),
        is_nullable=bool(column.get("nullable", True)),
        column_length=getattr(sql_type, "length", None),
        is_primary_key=name in primary_keys,
        is_key=name in key_columns,
        has_default=column.get("default") is not None,
    )
