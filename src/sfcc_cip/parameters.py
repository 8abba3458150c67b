import datetime
import logging
from typing import Any, List, Sequence

from sfcc_cip.backend.avatica.models.base import Rep, TypedValue

logger = logging.getLogger(__name__)

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def _epoch_millis(value: datetime.date) -> int:
    if not isinstance(value, datetime.datetime):
        value = datetime.datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        # Naive values are taken as UTC
        value = value.replace(tzinfo=datetime.timezone.utc)
    delta = value - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1000 + delta.microseconds // 1000


def create_typed_value(value: Any) -> TypedValue:
    """
    Convert a plain Python value into a TypedValue for use as a bound parameter.

    This is a best-effort encoder: values without an obvious wire representation are
    sent as their string conversion.
    """
    if value is None:
        return TypedValue(type=Rep.NULL, null=True)

    if isinstance(value, str):
        return TypedValue(type=Rep.STRING, string_value=value)

    # bool is a subclass of int, so it must be tested first
    if isinstance(value, bool):
        return TypedValue(type=Rep.BOOLEAN, bool_value=value)

    if isinstance(value, int):
        return TypedValue(type=Rep.LONG, number_value=value)

    if isinstance(value, float):
        if value.is_integer():
            return TypedValue(type=Rep.LONG, number_value=int(value))
        return TypedValue(type=Rep.DOUBLE, double_value=value)

    if isinstance(value, datetime.date):
        return TypedValue(type=Rep.JAVA_SQL_TIMESTAMP, number_value=_epoch_millis(value))

    if isinstance(value, (bytes, bytearray, memoryview)):
        return TypedValue(type=Rep.BYTE_STRING, bytes_value=bytes(value))

    if isinstance(value, (list, tuple)):
        elements = [create_typed_value(v) for v in value]
        component_type = elements[0].type if elements else Rep.OBJECT
        return TypedValue(
            type=Rep.ARRAY, array_value=elements, component_type=component_type
        )

    return TypedValue(type=Rep.STRING, string_value=str(value))


def create_typed_values(values: Sequence[Any]) -> List[TypedValue]:
    return [create_typed_value(v) for v in values]
