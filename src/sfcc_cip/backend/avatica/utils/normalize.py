import logging
from typing import Any, Dict, Optional, Union

from sfcc_cip.backend.avatica.models.base import Frame

logger = logging.getLogger(__name__)


def normalize_long_value(value: Any) -> int:
    """
    Convert a wide-integer wire value (int, numeric string, float or None) to an int.

    Absent values count as 0.
    """
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(float(value))


def normalize_frame(frame: Union[Frame, Dict[str, Any], None]) -> Optional[Frame]:
    """
    Return a Frame whose offset is a plain int and whose rows is always a list.

    An absent frame stays absent. All other fields are carried over unchanged.
    """
    if frame is None:
        return None

    if isinstance(frame, dict):
        frame = Frame.from_dict(frame)

    return Frame(
        offset=normalize_long_value(frame.offset),
        done=frame.done,
        rows=list(frame.rows) if frame.rows is not None else [],
    )


def next_offset(frame: Frame) -> int:
    """Offset of the first row after `frame`, for use in the following fetch."""
    rows = frame.rows or []
    return normalize_long_value(frame.offset) + len(rows)
