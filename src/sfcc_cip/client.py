import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas

from sfcc_cip import __version__
from sfcc_cip.backend.avatica.backend import AvaticaClient
from sfcc_cip.backend.avatica.models import ResultSetResponse
from sfcc_cip.common.unified_http_client import UnifiedHttpClient
from sfcc_cip.exc import (
    DatabaseError,
    InterfaceError,
    NotSupportedError,
    OperationalError,
    ProgrammingError,
)
from sfcc_cip.parameters import create_typed_values
from sfcc_cip.result_set import ResultSet
from sfcc_cip.session import Session
from sfcc_cip.utils import build_client_context

logger = logging.getLogger(__name__)

DEFAULT_ARRAY_SIZE = 100

Row = Dict[str, Any]


class Connection:
    def __init__(
        self,
        instance: Optional[str] = None,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        connection_properties: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> None:
        """
        Connect to a Commerce Cloud CIP (B2C Commerce Intelligence) instance.

        :param instance: CIP instance id, e.g. "abcd_prd". Falls back to SFCC_CIP_INSTANCE.
        :param client_id: Account Manager API client id. Falls back to SFCC_CLIENT_ID.
        :param client_secret: Account Manager API client secret. Falls back to SFCC_CLIENT_SECRET.
        :param connection_properties: An optional dictionary of Avatica connection properties
            sent with the open request.

        Other parameters:
            access_token: `str`, optional
                A bearer token used instead of the client-credentials exchange.
            user_agent_entry: `str`, optional
                Appended to the User-Agent header, e.g. "MyApp/1.0".
            _socket_timeout: `float`, optional
                Connect and read timeout in seconds for every HTTP request.
            _tls_no_verify: `bool`, optional
                Disable certificate and hostname verification. Do not use in production.
            _server_url / _token_url: `str`, optional
                Endpoint overrides, mainly for testing against a local Avatica server.
        """

        self._cursors = []  # type: List[Cursor]

        client_context = build_client_context(
            instance, __version__, client_id, client_secret, **kwargs
        )
        self.http_client = UnifiedHttpClient(client_context)

        try:
            self.session = Session(
                client_context,
                self.http_client,
                connection_properties=connection_properties,
                **kwargs,
            )
            self.session.open()
        except Exception:
            self.http_client.close()
            raise

    # The ideal return type for this method is perhaps Self, but that was not added until 3.11, and we support pre-3.11 pythons, currently.
    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def get_connection_id(self) -> Optional[str]:
        return self.session.connection_id

    @property
    def open(self) -> bool:
        """Return whether the connection is open by checking if the session is open."""
        return self.session.is_open

    def cursor(self, arraysize: int = DEFAULT_ARRAY_SIZE, row_limit: Optional[int] = None) -> "Cursor":
        """
        Args:
            arraysize: The maximum number of rows requested per page.
            row_limit: The maximum number of rows in the result.

        Return a new Cursor object using the connection.

        Will throw an Error if the connection has been closed.
        """
        if not self.open:
            raise InterfaceError("Cannot create cursor from closed connection")

        cursor = Cursor(
            self, self.session.backend, arraysize=arraysize, row_limit=row_limit
        )
        self._cursors.append(cursor)
        return cursor

    def close(self) -> None:
        """Close the underlying session and mark all associated cursors as closed."""
        for cursor in self._cursors:
            cursor.close()

        try:
            self.session.close()
        except Exception as e:
            logger.error("Attempt to close session raised a local exception: %s", e)

        if self.http_client:
            self.http_client.close()

    def commit(self) -> None:
        if not self.open:
            raise InterfaceError("Cannot commit on closed connection")
        self.session.backend.commit()

    def rollback(self) -> None:
        if not self.open:
            raise InterfaceError("Cannot rollback on closed connection")
        self.session.backend.rollback()


class Cursor:
    def __init__(
        self,
        connection: Connection,
        backend: AvaticaClient,
        arraysize: int = DEFAULT_ARRAY_SIZE,
        row_limit: Optional[int] = None,
    ) -> None:
        """
        These objects represent a database cursor, which is used to manage the context of a fetch
        operation.

        Statements without parameters reuse one server statement that is allocated on first
        use. Statements with parameters are prepared server-side; the prepared statement is
        released before the next execute and when the cursor closes.
        """

        self.connection: Connection = connection
        self.backend: AvaticaClient = backend
        self.arraysize: int = arraysize
        self.row_limit: Optional[int] = row_limit
        self.rowcount: int = -1
        self.active_result_set: Optional[ResultSet] = None
        self.open: bool = True
        self.lastrowid = None

        self._statement_id: Optional[int] = None
        self._prepared_statement_id: Optional[int] = None

    # The ideal return type for this method is perhaps Self, but that was not added until 3.11, and we support pre-3.11 pythons, currently.
    def __enter__(self) -> "Cursor":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __iter__(self):
        if self.active_result_set:
            for row in self.active_result_set:
                yield row
        else:
            raise ProgrammingError("There is no active result set")

    def _check_not_closed(self):
        if not self.open:
            raise InterfaceError("Attempting operation on closed cursor")

    def _release_prepared_statement(self):
        if self._prepared_statement_id is None:
            return
        statement_id, self._prepared_statement_id = self._prepared_statement_id, None
        self.backend.close_statement(statement_id)

    def _max_row_count(self) -> int:
        return self.row_limit if self.row_limit is not None else -1

    def _set_result(self, result: Optional[ResultSetResponse]):
        if result is None:
            self.active_result_set = None
            self.rowcount = -1
            return

        self.active_result_set = ResultSet(self.backend, result, arraysize=self.arraysize)
        has_columns = result.signature is not None and bool(result.signature.columns)
        self.rowcount = -1 if has_columns else result.update_count

    def execute(
        self, operation: str, parameters: Optional[Sequence[Any]] = None
    ) -> "Cursor":
        """
        Execute a query and wait for execution to complete.

        Parameters are bound positionally to `?` markers:

            cursor.execute("SELECT * FROM ccdw_dim_site WHERE nsite_id = ?", ["RefArch"])

        :returns self
        """
        self._check_not_closed()
        self.active_result_set = None
        self._release_prepared_statement()

        if parameters is None:
            if self._statement_id is None:
                self._statement_id = self.backend.create_statement()
            response = self.backend.execute(
                self._statement_id, operation, self._max_row_count()
            )
        else:
            if isinstance(parameters, dict):
                raise NotSupportedError(
                    "Named parameters are not supported; pass a sequence for ? markers"
                )
            handle = self.backend.prepare(operation, self._max_row_count())
            self._prepared_statement_id = handle.id
            response = self.backend.execute_with_parameters(
                handle, create_typed_values(parameters), self.arraysize
            )

        if response.missing_statement:
            raise OperationalError("Server lost the statement during execution")

        self._set_result(response.results[0] if response.results else None)
        return self

    def executemany(self, operation, seq_of_parameters):
        """
        Execute the operation once for every set of passed in parameters.

        This will issue N sequential request to the server.

        Only the final result set is retained.

        :returns self
        """
        for parameters in seq_of_parameters:
            self.execute(operation, parameters)
        return self

    def catalogs(self) -> "Cursor":
        """
        Get all available catalogs.

        :returns self
        """
        self._check_not_closed()
        self._set_result(self.backend.get_catalogs())
        return self

    def schemas(
        self, catalog_name: Optional[str] = None, schema_name: Optional[str] = None
    ) -> "Cursor":
        """
        Get schemas corresponding to the catalog_name and schema_name.

        Names can contain % wildcards.
        :returns self
        """
        self._check_not_closed()
        self._set_result(self.backend.get_schemas(catalog_name, schema_name))
        return self

    def tables(
        self,
        catalog_name: Optional[str] = None,
        schema_name: Optional[str] = None,
        table_name: Optional[str] = None,
        table_types: Optional[List[str]] = None,
    ) -> "Cursor":
        """
        Get tables corresponding to the catalog_name, schema_name and table_name.

        Names can contain % wildcards.
        :returns self
        """
        self._check_not_closed()
        self._set_result(
            self.backend.get_tables(catalog_name, schema_name, table_name, table_types)
        )
        return self

    def columns(
        self,
        catalog_name: Optional[str] = None,
        schema_name: Optional[str] = None,
        table_name: Optional[str] = None,
        column_name: Optional[str] = None,
    ) -> "Cursor":
        """
        Get columns corresponding to the catalog_name, schema_name, table_name and column_name.

        Names can contain % wildcards.
        :returns self
        """
        self._check_not_closed()
        self._set_result(
            self.backend.get_columns(catalog_name, schema_name, table_name, column_name)
        )
        return self

    def table_types(self) -> "Cursor":
        self._check_not_closed()
        self._set_result(self.backend.get_table_types())
        return self

    def _require_result_set(self) -> ResultSet:
        self._check_not_closed()
        if self.active_result_set is None:
            raise ProgrammingError("There is no active result set")
        return self.active_result_set

    def fetchall(self) -> List[Row]:
        """
        Fetch all (remaining) rows of a query result, returning them as a list of rows.

        An exception is raised if the previous call to execute did not produce any result set
        or no call was issued yet.
        """
        return self._require_result_set().fetchall()

    def fetchone(self) -> Optional[Row]:
        """
        Fetch the next row of a query result set, returning a single row,
        or None when no more data is available.
        """
        return self._require_result_set().fetchone()

    def fetchmany(self, size: Optional[int] = None) -> List[Row]:
        """
        Fetch the next set of rows of a query result, returning a list of rows.

        An empty sequence is returned when no more rows are available.

        The number of rows to fetch per call is specified by the parameter. If it is not given, the
        cursor's arraysize determines the number of rows to be fetched.
        """
        return self._require_result_set().fetchmany(size)

    def fetchall_dataframe(self) -> pandas.DataFrame:
        return self._require_result_set().as_dataframe()

    def close(self) -> None:
        """Close cursor and release its server-side statements"""
        if not self.open:
            return
        self.open = False
        self.active_result_set = None

        if not self.connection.open:
            return

        statement_ids = [
            s for s in (self._prepared_statement_id, self._statement_id) if s is not None
        ]
        self._prepared_statement_id = None
        self._statement_id = None
        for statement_id in statement_ids:
            try:
                self.backend.close_statement(statement_id)
            except DatabaseError as e:
                logger.warning("Failed to close statement %s: %s", statement_id, e)

    @property
    def description(self) -> Optional[List[Tuple]]:
        """
        This read-only attribute is a sequence of 7-item sequences.

        Each of these sequences contains information describing one result column:

        - name
        - type_code
        - display_size
        - internal_size (always None)
        - precision
        - scale
        - null_ok

        This attribute will be ``None`` for operations that do not return rows or if the cursor has
        not had an operation invoked via the execute method yet.
        """
        if self.active_result_set:
            return self.active_result_set.description
        else:
            return None

    def setinputsizes(self, sizes):
        """Does nothing by default"""
        pass

    def setoutputsize(self, size, column=None):
        """Does nothing by default"""
        pass
