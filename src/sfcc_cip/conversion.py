"""
Decoding of Avatica result rows into plain Python values.

Cells arrive as tagged TypedValues. The column metadata of the result signature is used
to recover DATE and TIMESTAMP columns that the server sends with an integer tag.
"""

import datetime
import decimal
import logging
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser

from sfcc_cip.backend.avatica.models.base import (
    BOOLEAN_REPS,
    DATE_MILLIS_REPS,
    FLOAT_REPS,
    INTEGER_REPS,
    STRING_REPS,
    ColumnMetaData,
    ColumnValue,
    Frame,
    Rep,
    Signature,
    TypedValue,
)

logger = logging.getLogger(__name__)

SQL_TYPE_DATE = 91
SQL_TYPE_TIMESTAMP = 93

_EPOCH_DATE = datetime.date(1970, 1, 1)
_EPOCH = datetime.datetime(1970, 1, 1)


def from_epoch_days(days: int) -> datetime.date:
    return _EPOCH_DATE + datetime.timedelta(days=days)


def from_epoch_millis(millis: int) -> datetime.datetime:
    """Naive UTC datetime for a count of milliseconds since the epoch."""
    return _EPOCH + datetime.timedelta(milliseconds=millis)


def from_millis_of_day(millis: int) -> datetime.time:
    return (_EPOCH + datetime.timedelta(milliseconds=millis)).time()


def _declared_sql_type(column: Optional[ColumnMetaData]) -> Optional[str]:
    if column is None or column.type is None:
        return None
    name = (column.type.name or "").upper()
    if name == "DATE" or column.type.id == SQL_TYPE_DATE:
        return "DATE"
    if name == "TIMESTAMP" or column.type.id == SQL_TYPE_TIMESTAMP:
        return "TIMESTAMP"
    return None


def _parse_datetime_string(text: str) -> Optional[datetime.datetime]:
    if not text:
        return None
    return date_parser.parse(text)


def _parse_time_string(text: str) -> Optional[datetime.time]:
    if not text:
        return None
    return date_parser.parse(text, default=_EPOCH).time()


def _populated_value(typed_value: TypedValue) -> Any:
    if typed_value.string_value:
        return typed_value.string_value
    if typed_value.number_value:
        return typed_value.number_value
    if typed_value.double_value:
        return typed_value.double_value
    if typed_value.bytes_value:
        return typed_value.bytes_value
    if typed_value.array_value:
        return [decode_typed_value(v) for v in typed_value.array_value]
    if typed_value.bool_value:
        return typed_value.bool_value
    return None


def decode_typed_value(
    typed_value: TypedValue, column: Optional[ColumnMetaData] = None
) -> Any:
    if typed_value.null:
        return None

    rep = typed_value.type

    if rep in INTEGER_REPS:
        declared = _declared_sql_type(column)
        if declared == "DATE":
            return from_epoch_days(typed_value.number_value)
        if declared == "TIMESTAMP":
            return from_epoch_millis(typed_value.number_value)
        return typed_value.number_value

    if rep in FLOAT_REPS:
        if rep == Rep.BIG_DECIMAL and not typed_value.double_value:
            if typed_value.string_value:
                return decimal.Decimal(typed_value.string_value)
        return typed_value.double_value

    if rep in BOOLEAN_REPS:
        return typed_value.bool_value

    if rep in STRING_REPS:
        return typed_value.string_value

    if rep == Rep.BYTE_STRING:
        return typed_value.bytes_value

    if rep == Rep.ARRAY:
        return [decode_typed_value(v) for v in typed_value.array_value]

    if rep in DATE_MILLIS_REPS:
        if typed_value.number_value or not typed_value.string_value:
            return from_epoch_millis(typed_value.number_value)
        return _parse_datetime_string(typed_value.string_value)

    if rep == Rep.JAVA_SQL_TIME:
        if typed_value.number_value or not typed_value.string_value:
            return from_millis_of_day(typed_value.number_value)
        return _parse_time_string(typed_value.string_value)

    return _populated_value(typed_value)


def decode_value(
    column_value: ColumnValue, column: Optional[ColumnMetaData] = None
) -> Any:
    """
    Decode one cell of a row.

    Args:
        column_value: The wire cell
        column: Metadata of the column at the same ordinal, if known

    Returns:
        The Python value, or None for SQL NULL and empty cells
    """
    if column_value.has_array_value:
        return [decode_typed_value(v) for v in column_value.array_value]

    if column_value.scalar_value is not None:
        return decode_typed_value(column_value.scalar_value, column)

    # Servers older than Avatica 1.10 only fill the deprecated repeated field
    if column_value.value:
        return decode_typed_value(column_value.value[0], column)

    return None


def process_frame(
    signature: Optional[Signature], frame: Optional[Frame]
) -> List[Dict[str, Any]]:
    """
    Materialize the rows of one frame as dicts keyed by column label.

    When two columns share a label, the later column's value is kept. Labelled columns
    without a cell in the row are set to None.
    """
    if signature is None or frame is None or not frame.rows:
        return []

    columns = signature.columns
    labels = [c.label for c in columns]

    rows = []
    for wire_row in frame.rows:
        cells = wire_row.value or []
        row: Dict[str, Any] = {}
        for index, column in enumerate(columns):
            if not labels[index]:
                continue
            if index < len(cells):
                row[labels[index]] = decode_value(cells[index], column)
            else:
                row[labels[index]] = None
        rows.append(row)
    return rows


def column_names(signature: Optional[Signature]) -> List[str]:
    if signature is None:
        return []
    names: List[str] = []
    for column in signature.columns:
        if column.label and column.label not in names:
            names.append(column.label)
    return names
