"""Domain model entities for extdata.

These are immutable data classes representing datatable concepts,
independent of the database schema. Admin-defined tables have no
compile-time shape, so rows are plain mappings from column name to a
loosely-typed value, paired with column metadata from introspection.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

# Closed variant of values a datatable row can hold once read back.
Value = Union[str, int, float, Decimal, bool, None]


class ParentEntityType(Enum):
    """Business entities a datatable can be attached to.

    Each member carries the application table name and the foreign-key
    column datatables use to reference it.
    """

    CLIENT = ("m_client", "client_id")
    GROUP = ("m_group", "group_id")
    LOAN = ("m_loan", "loan_id")
    OFFICE = ("m_office", "office_id")
    SAVINGSACCOUNT = ("m_saving_account", "saving_account_id")
    DEPOSITACCOUNT = ("m_deposit_account", "deposit_account_id")
    SAVINGSPRODUCT = ("m_product_savings", "product_savings_id")
    DEPOSITPRODUCT = ("m_product_deposit", "product_deposit_id")

    def __init__(self, app_table: str, fk_column: str):
        self.app_table = app_table
        self.fk_column = fk_column

    @classmethod
    def lookup(cls, name: str) -> Optional["ParentEntityType"]:
        """Find a parent type by entity name or application table name."""
        key = name.strip()
        for member in cls:
            if key.upper() == member.name or key.lower() == member.app_table:
                return member
        return None


@dataclass(frozen=True)
class RegisteredDatatable:
    """Catalog entry attaching a datatable to a parent entity type."""

    datatable_name: str
    parent_entity_type: ParentEntityType
    multi_row: bool

    @property
    def fk_column(self) -> str:
        return self.parent_entity_type.fk_column


@dataclass(frozen=True)
class ColumnHeader:
    """Column metadata sourced from schema introspection."""

    column_name: str
    column_type: str
    is_nullable: bool
    column_length: Optional[int] = None
    is_primary_key: bool = False
    is_key: bool = False
    has_default: bool = False


@dataclass(frozen=True)
class Ordering:
    """Caller-supplied ordering for a resultset."""

    column: str
    descending: bool = False


@dataclass(frozen=True)
class GenericResultset:
    """Type-agnostic rows of an admin-defined table plus column metadata."""

    columns: tuple[ColumnHeader, ...]
    rows: tuple[dict[str, Value], ...]

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def column_names(self) -> list[str]:
        return [c.column_name for c in self.columns]

    def data(self) -> list[dict[str, Value]]:
        """Rows without the parent foreign-key and row identity columns."""
        keys = {c.column_name for c in self.columns if c.is_key}
        return [{k: v for k, v in row.items() if k not in keys} for row in self.rows]


@dataclass(frozen=True)
class DatatableEntry:
    """A stored datatable row.

    Updates never mutate an entry: ``with_changes`` returns a new entry
    together with the change-set that produced it.
    """

    datatable_name: str
    parent_id: int
    row_id: Optional[int]
    values: dict[str, Any] = field(default_factory=dict)

    def changes_for(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Return payload fields whose value differs from the stored value."""
        changes = {}
        for column, new_value in payload.items():
            if self.values.get(column) != new_value:
                changes[column] = new_value
        return changes

    def with_changes(self, payload: dict[str, Any]) -> tuple["DatatableEntry", dict[str, Any]]:
        """Apply payload by value-equality diff.

        Returns:
            Tuple of (new entry, changed fields)
        """
        changes = self.changes_for(payload)
        if not changes:
            return self, changes
        return (
            DatatableEntry(
                datatable_name=self.datatable_name,
                parent_id=self.parent_id,
                row_id=self.row_id,
                values={**self.values, **changes},
            ),
            changes,
        )


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a successfully processed command."""

    command_id: Optional[int]
    entity_id: Optional[int]
    resource_id: Optional[int] = None
    changes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CommandSource:
    """Audit log record of a processed command."""

    id: int
    action_name: str
    entity_name: str
    resource_id: Optional[int]
    apptable_id: Optional[int]
    datatable_id: Optional[int]
    command_as_json: Optional[str]
    changes_as_json: Optional[str]
    maker: str
    made_on: datetime


@dataclass(frozen=True)
class AppUser:
    """Authenticated principal issuing commands."""

    username: str
    permissions: frozenset[str] = frozenset()
    id: Optional[int] = None

    def __post_init__(self) -> None:
        # Permission codes are compared upper-cased.
        object.__setattr__(self, "permissions", frozenset(p.upper() for p in self.permissions))

    def has_any_permission(self, *names: str) -> bool:
        return any(name.upper() in self.permissions for name in names)
