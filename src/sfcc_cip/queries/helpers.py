import datetime
import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from sfcc_cip.exc import ProgrammingError

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


def format_date_for_sql(value: datetime.date) -> str:
    """Render a date as the YYYY-MM-DD literal CIP compares date columns against."""
    return value.strftime("%Y-%m-%d")


def validate_required_params(params: Dict[str, Any], required: Iterable[str]) -> None:
    missing = [name for name in required if params.get(name) is None]
    if missing:
        raise ProgrammingError(
            "Missing required parameters: {}".format(", ".join(missing)),
            {"missing": missing},
        )

    date_from, date_to = params.get("from"), params.get("to")
    if date_from is not None and date_to is not None and date_from > date_to:
        raise ProgrammingError(
            "Date range start {} is after its end {}".format(
                format_date_for_sql(date_from), format_date_for_sql(date_to)
            )
        )


def execute_query(
    connection,
    sql: str,
    parameters: Optional[Sequence[Any]] = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Iterator[List[Dict[str, Any]]]:
    """
    Run `sql` on a fresh cursor and yield its rows page by page.

    Empty pages are skipped. The cursor, and with it the server statement, is released
    when the generator finishes or is closed early.
    """
    with connection.cursor(arraysize=batch_size) as cursor:
        cursor.execute(sql, list(parameters) if parameters else None)
        if cursor.active_result_set is None:
            return
        for page in cursor.active_result_set.pages():
            if page:
                logger.debug("Yielding page with %d rows", len(page))
                yield page
