import logging
from typing import Any, Dict, Iterator, List, Optional, TYPE_CHECKING

import pandas

from sfcc_cip.backend.avatica.models import Frame, ResultSetResponse, Signature
from sfcc_cip.backend.avatica.utils.normalize import next_offset
from sfcc_cip.conversion import column_names, process_frame

if TYPE_CHECKING:
    from sfcc_cip.backend.avatica.backend import AvaticaClient

logger = logging.getLogger(__name__)


class ResultSet:
    """
    Pull-based pager over one Avatica result.

    Pages are produced in order: the first frame delivered with the execute response,
    then one fetch per page, each issued only after the previous page was handed out.
    Iteration ends when a frame reports `done` or the server returns no frame.
    """

    def __init__(
        self,
        backend: "AvaticaClient",
        result: ResultSetResponse,
        arraysize: int = 100,
    ):
        """
        Args:
            backend: Session engine used for follow-up fetches
            result: Execution result carrying the signature and first frame
            arraysize: Maximum rows requested per fetch
        """
        self.backend = backend
        self.statement_id = result.statement_id
        self.signature: Optional[Signature] = result.signature
        self.update_count = result.update_count
        self.arraysize = arraysize

        self._next_frame: Optional[Frame] = result.first_frame
        self._last_frame: Optional[Frame] = None
        self._exhausted = result.first_frame is None
        self._buffer: List[Dict[str, Any]] = []
        self.rows_delivered = 0

    @property
    def columns(self) -> List[str]:
        return column_names(self.signature)

    @property
    def description(self):
        """PEP-249 style column descriptions."""
        if self.signature is None:
            return None
        return [
            (
                column.label,
                column.type.name if column.type else None,
                column.display_size or None,
                None,
                column.precision or None,
                column.scale or None,
                column.nullable != 0,
            )
            for column in self.signature.columns
        ]

    @property
    def has_more(self) -> bool:
        return not self._exhausted or bool(self._buffer)

    def _advance(self) -> Optional[Frame]:
        if self._next_frame is not None:
            frame, self._next_frame = self._next_frame, None
            return frame

        if self._exhausted or self._last_frame is None:
            self._exhausted = True
            return None

        response = self.backend.fetch(
            self.statement_id, next_offset(self._last_frame), self.arraysize
        )
        if response.frame is None:
            logger.debug("No frame returned for statement %s", self.statement_id)
            self._exhausted = True
            return None
        return response.frame

    def next_page(self) -> Optional[List[Dict[str, Any]]]:
        """Return the next page of rows, or None once the result is exhausted."""
        if self._exhausted:
            return None

        frame = self._advance()
        if frame is None:
            return None

        self._last_frame = frame
        if frame.done:
            self._exhausted = True

        rows = process_frame(self.signature, frame)
        self.rows_delivered += len(rows)
        return rows

    def pages(self) -> Iterator[List[Dict[str, Any]]]:
        while True:
            page = self.next_page()
            if page is None:
                return
            yield page

    def _fill_buffer(self, size: int):
        while len(self._buffer) < size:
            page = self.next_page()
            if page is None:
                break
            self._buffer.extend(page)

    def fetchone(self) -> Optional[Dict[str, Any]]:
        self._fill_buffer(1)
        if not self._buffer:
            return None
        return self._buffer.pop(0)

    def fetchmany(self, size: Optional[int] = None) -> List[Dict[str, Any]]:
        size = self.arraysize if size is None else size
        if size < 0:
            raise ValueError("size argument for fetchmany is %s but must be >= 0" % size)
        self._fill_buffer(size)
        rows, self._buffer = self._buffer[:size], self._buffer[size:]
        return rows

    def fetchall(self) -> List[Dict[str, Any]]:
        rows = self._buffer
        self._buffer = []
        for page in self.pages():
            rows.extend(page)
        return rows

    def as_dataframe(self) -> pandas.DataFrame:
        """Consume the remaining rows into a DataFrame with the signature's columns."""
        return pandas.DataFrame(self.fetchall(), columns=self.columns)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        while True:
            row = self.fetchone()
            if row is None:
                return
            yield row
