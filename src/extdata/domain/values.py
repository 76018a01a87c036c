"""Conversion between payload values, stored values and resultset values.

Payload values arrive loosely typed (JSON or command-line strings). They are
coerced to the Python type of the target column before storage and diffing;
stored values are rendered back into the closed ``Value`` variant when read.
"""

import math
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil import parser as date_parser

from extdata.domain.entities import ColumnHeader, Value
from extdata.domain.errors import ValidationError

INTEGER = "INTEGER"
DECIMAL = "DECIMAL"
FLOAT = "FLOAT"
BOOLEAN = "BOOLEAN"
DATE = "DATE"
DATETIME = "DATETIME"
VARCHAR = "VARCHAR"
TEXT = "TEXT"

_TRUE_STRINGS = {"true", "yes", "1"}
_FALSE_STRINGS = {"false", "no", "0"}


def _invalid(column: ColumnHeader, value: Any) -> ValidationError:
    return ValidationError(
        f"Invalid value {value!r} for column '{column.column_name}' of type {column.column_type}"
    )


def coerce_value(column: ColumnHeader, value: Any) -> Any:
    """Coerce a payload value to the type stored in a column.

    Args:
        column: Target column metadata
        value: Payload value (str, number, bool or None)

    Returns:
        Value ready to be bound to the column

    Raises:
        ValidationError: If the value cannot be held by the column
    """
    if value is None:
        if not column.is_nullable:
            raise ValidationError(f"Column '{column.column_name}' cannot be null")
        return None

    kind = column.column_type
    if kind == INTEGER:
        if isinstance(value, bool):
            raise _invalid(column, value)
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                raise _invalid(column, value) from None
        raise _invalid(column, value)

    if kind == DECIMAL:
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
            raise _invalid(column, value)
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            raise _invalid(column, value) from None
        if not result.is_finite():
            raise _invalid(column, value)
        return result

    if kind == FLOAT:
        if isinstance(value, bool) or not isinstance(value, (int, float, Decimal, str)):
            raise _invalid(column, value)
        try:
            result = float(value)
        except ValueError:
            raise _invalid(column, value) from None
        if not math.isfinite(result):
            raise _invalid(column, value)
        return result

    if kind == BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise _invalid(column, value)

    if kind in (DATE, DATETIME):
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        elif isinstance(value, str):
            try:
                parsed = date_parser.parse(value)
            except (ValueError, OverflowError):
                raise _invalid(column, value) from None
        else:
            raise _invalid(column, value)
        if kind == DATE:
            return parsed.date()
        # Offset-aware datetimes are stored as naive UTC.
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed

    # VARCHAR and TEXT
    if not isinstance(value, str):
        raise _invalid(column, value)
    if column.column_length is not None and len(value) > column.column_length:
        raise ValidationError(
            f"Value for column '{column.column_name}' exceeds maximum length {column.column_length}"
        )
    return value


def to_resultset_value(value: Any) -> Value:
    """Render a stored value as a resultset value."""
    if value is None or isinstance(value, (str, bool, int, float, Decimal)):
        return value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def to_json_value(value: Any) -> Any:
    """Render a value for the JSON audit log."""
    if isinstance(value, Decimal):
        return str(value)
    return to_resultset_value(value)
