import logging
import threading
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sfcc_cip.auth.authenticators import AuthProvider
from sfcc_cip.auth.common import CIP_SERVER_URL
from sfcc_cip.backend.avatica.codec import WireCodec
from sfcc_cip.backend.avatica.models import (
    CatalogsRequest,
    CloseConnectionRequest,
    CloseStatementRequest,
    ColumnsRequest,
    CommitRequest,
    ConnectionProperties,
    ConnectionSyncRequest,
    ConnectionSyncResponse,
    CreateStatementRequest,
    CreateStatementResponse,
    ExecuteRequest,
    ExecuteResponse,
    FetchRequest,
    FetchResponse,
    OpenConnectionRequest,
    OpenConnectionResponse,
    PrepareAndExecuteRequest,
    PrepareRequest,
    PrepareResponse,
    ResultSetResponse,
    RollbackRequest,
    SchemasRequest,
    StatementHandle,
    TablesRequest,
    TableTypesRequest,
    TypedValue,
)
from sfcc_cip.backend.avatica.utils.normalize import normalize_frame
from sfcc_cip.common.http import HttpHeader, HttpMethod
from sfcc_cip.exc import (
    Error,
    InvalidServerResponseError,
    RequestError,
    SessionStateError,
)

logger = logging.getLogger(__name__)
unsafe_logger = logging.getLogger("sfcc_cip.unsafe")
unsafe_logger.setLevel(logging.DEBUG)

# To capture wire payloads (they contain SQL text), attach a handler to this logger.
if not unsafe_logger.handlers:
    unsafe_logger.addHandler(logging.NullHandler())

# Payloads must never leak into the application's regular log stream
unsafe_logger.propagate = False

CLIENT_VERSION = "2.11.0"
PROTOBUF_CONTENT_TYPE = "application/x-protobuf"

NO_CONNECTION_MESSAGE = "No connection available. Call open_connection() first."


class AvaticaClient:
    """
    Session engine for the Avatica protobuf-over-HTTP protocol.

    One instance drives one logical connection: it owns the connection id, the sticky
    session token echoed back to the load balancer, and the request discipline shared by
    every operation. Operations on the same instance are serialized by an internal lock.
    """

    def __init__(
        self,
        instance: str,
        auth_provider: AuthProvider,
        http_client,
        server_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        codec: Optional[WireCodec] = None,
        http_headers: Optional[List[Tuple[str, str]]] = None,
        **kwargs,
    ):
        """
        Initialize the Avatica session engine.

        Args:
            instance: CIP instance identifier, sent as the InstanceId header
            auth_provider: Adds the Authorization header, refreshing tokens as needed
            http_client: UnifiedHttpClient used for every request
            server_url: Endpoint override, defaults to the per-instance CIP URL
            logger: Logger for request traces, defaults to this module's logger
            codec: WireCodec override
            http_headers: Extra headers added to every request
        """
        self.instance = instance
        self.server_url = server_url or CIP_SERVER_URL.format(instance=instance)
        self._auth_provider = auth_provider
        self._http_client = http_client
        self._codec = codec or WireCodec()
        self._extra_headers = list(http_headers or [])
        self.logger = logger if logger is not None else logging.getLogger(__name__)

        self.connection_id: Optional[str] = None
        self.session_token: Optional[str] = None

        self._request_lock = threading.RLock()

    @property
    def is_open(self) -> bool:
        return self.connection_id is not None

    def _require_connection(self, operation: str) -> str:
        if self.connection_id is None:
            raise SessionStateError(NO_CONNECTION_MESSAGE, {"operation": operation})
        return self.connection_id

    def _build_headers(self) -> Dict[str, str]:
        headers = dict(self._extra_headers)
        headers.update(
            {
                HttpHeader.CONTENT_TYPE.value: PROTOBUF_CONTENT_TYPE,
                HttpHeader.CLIENT_VERSION.value: CLIENT_VERSION,
                HttpHeader.INSTANCE_ID.value: self.instance,
            }
        )
        self._auth_provider.add_headers(headers)
        if self.session_token:
            headers[HttpHeader.SESSION_ID.value] = self.session_token
        return headers

    def _make_request(
        self, kind: str, payload: Dict[str, Any], expected_kind: str
    ) -> Dict[str, Any]:
        """
        Send one Avatica request and return the decoded response payload.

        Raises:
            RequestError: If the server answers with a non-2xx status
            ServerOperationError: If the server answers with an ErrorResponse
            InvalidServerResponseError: If the response cannot be decoded or is of
                an unexpected kind
        """
        self._codec.schema.ensure_loaded()
        headers = self._build_headers()
        body = self._codec.encode_request(kind, payload)

        self.logger.debug("Sending %s (%d bytes)", kind, len(body))
        unsafe_logger.debug("%s payload: %s", kind, payload)

        response = self._http_client.request(
            HttpMethod.POST, self.server_url, headers=headers, body=body
        )

        if not 200 <= response.status < 300:
            text = response.data.decode("utf-8", errors="replace") if response.data else ""
            raise RequestError(
                "Avatica server error: {} {} - {}".format(
                    response.status, response.reason or "", text
                ),
                {
                    "method": kind,
                    "http-code": response.status,
                    "reason": response.reason,
                    "body": text,
                },
            )

        session_token = response.headers.get(HttpHeader.SESSION_ID.value)
        if session_token:
            if session_token != self.session_token:
                self.logger.debug("Session ID: %s", session_token)
            self.session_token = session_token

        response_kind, response_payload = self._codec.decode_response(response.data)
        if response_kind != expected_kind:
            raise InvalidServerResponseError(
                "Expected {} in reply to {}, got {}".format(
                    expected_kind, kind, response_kind
                ),
                {"response-type": response_kind, "method": kind},
            )

        self.logger.debug("Received %s", response_kind)
        unsafe_logger.debug("%s payload: %s", response_kind, response_payload)
        return response_payload

    @staticmethod
    def _normalize_results(response: ExecuteResponse) -> ExecuteResponse:
        for result in response.results:
            result.first_frame = normalize_frame(result.first_frame)
        return response

    def _result_set_request(self, kind: str, request) -> ResultSetResponse:
        data = self._make_request(kind, request.to_dict(), "ResultSetResponse")
        result = ResultSetResponse.from_dict(data)
        result.first_frame = normalize_frame(result.first_frame)
        return result

    # Connection lifecycle

    def open_connection(self, info: Optional[Dict[str, str]] = None) -> str:
        """
        Open a server-side connection.

        A fresh connection id is generated locally and kept unless the server returns
        one of its own.

        Returns:
            The active connection id
        """
        with self._request_lock:
            if self.connection_id is not None:
                raise SessionStateError(
                    "Connection already open. Close the existing connection first.",
                    {"operation": "open_connection"},
                )

            connection_id = str(uuid.uuid4())
            self.logger.debug(
                "AvaticaClient.open_connection(connection_id=%s)", connection_id
            )
            request = OpenConnectionRequest(
                connection_id=connection_id, info=dict(info or {})
            )
            data = self._make_request(
                "OpenConnectionRequest", request.to_dict(), "OpenConnectionResponse"
            )
            response = OpenConnectionResponse.from_dict(data)

            self.connection_id = response.connection_id or connection_id
            self.logger.info("Opened Avatica connection %s", self.connection_id)
            return self.connection_id

    def close_connection(self) -> None:
        with self._request_lock:
            if self.connection_id is None:
                raise SessionStateError(
                    "No connection to close.", {"operation": "close_connection"}
                )

            self.logger.debug(
                "AvaticaClient.close_connection(connection_id=%s)", self.connection_id
            )
            request = CloseConnectionRequest(connection_id=self.connection_id)
            self._make_request(
                "CloseConnectionRequest", request.to_dict(), "CloseConnectionResponse"
            )
            self.logger.info("Closed Avatica connection %s", self.connection_id)
            self.connection_id = None
            self.session_token = None

    def sync_connection(self, properties: ConnectionProperties) -> ConnectionProperties:
        """Push connection properties to the server and return what it settled on."""
        with self._request_lock:
            connection_id = self._require_connection("sync_connection")
            request = ConnectionSyncRequest(
                connection_id=connection_id, conn_props=properties
            )
            data = self._make_request(
                "ConnectionSyncRequest", request.to_dict(), "ConnectionSyncResponse"
            )
            return ConnectionSyncResponse.from_dict(data).conn_props

    def commit(self) -> None:
        with self._request_lock:
            connection_id = self._require_connection("commit")
            self._make_request(
                "CommitRequest",
                CommitRequest(connection_id=connection_id).to_dict(),
                "CommitResponse",
            )

    def rollback(self) -> None:
        with self._request_lock:
            connection_id = self._require_connection("rollback")
            self._make_request(
                "RollbackRequest",
                RollbackRequest(connection_id=connection_id).to_dict(),
                "RollbackResponse",
            )

    # Statements

    def create_statement(self) -> int:
        with self._request_lock:
            connection_id = self._require_connection("create_statement")
            data = self._make_request(
                "CreateStatementRequest",
                CreateStatementRequest(connection_id=connection_id).to_dict(),
                "CreateStatementResponse",
            )
            statement_id = CreateStatementResponse.from_dict(data).statement_id
            self.logger.debug("Created statement %s", statement_id)
            return statement_id

    def close_statement(self, statement_id: int) -> None:
        with self._request_lock:
            connection_id = self._require_connection("close_statement")
            self.logger.debug("AvaticaClient.close_statement(%s)", statement_id)
            request = CloseStatementRequest(
                connection_id=connection_id, statement_id=statement_id
            )
            self._make_request(
                "CloseStatementRequest", request.to_dict(), "CloseStatementResponse"
            )

    def execute(
        self, statement_id: int, sql: str, max_row_count: int = -1
    ) -> ExecuteResponse:
        """
        Prepare and run `sql` on an existing statement.

        Args:
            statement_id: Statement returned by create_statement()
            sql: SQL text, passed through unchanged
            max_row_count: Row limit for the result, -1 for all rows

        Returns:
            ExecuteResponse whose results carry a signature and a normalized first frame
        """
        with self._request_lock:
            connection_id = self._require_connection("execute")
            request = PrepareAndExecuteRequest(
                connection_id=connection_id,
                statement_id=statement_id,
                sql=sql,
                max_row_count=max_row_count,
            )
            data = self._make_request(
                "PrepareAndExecuteRequest", request.to_dict(), "ExecuteResponse"
            )
            return self._normalize_results(ExecuteResponse.from_dict(data))

    def prepare_and_execute(self, sql: str, max_row_count: int = -1) -> ExecuteResponse:
        """Allocate a statement and run `sql` on it.

        The statement id is available on each result; the caller closes it.
        If execution fails the statement is closed before the error propagates.
        """
        with self._request_lock:
            self._require_connection("prepare_and_execute")
            statement_id = self.create_statement()
            try:
                return self.execute(statement_id, sql, max_row_count)
            except Exception as e:
                if isinstance(e, Error):
                    e.context.setdefault("statement-id", statement_id)
                try:
                    self.close_statement(statement_id)
                except Error as close_error:
                    self.logger.warning(
                        "Failed to close statement %s after execute failed: %s",
                        statement_id,
                        close_error,
                    )
                raise

    def prepare(self, sql: str, max_row_count: int = -1) -> StatementHandle:
        with self._request_lock:
            connection_id = self._require_connection("prepare")
            request = PrepareRequest(
                connection_id=connection_id, sql=sql, max_row_count=max_row_count
            )
            data = self._make_request(
                "PrepareRequest", request.to_dict(), "PrepareResponse"
            )
            statement = PrepareResponse.from_dict(data).statement
            if statement is None:
                raise InvalidServerResponseError(
                    "PrepareResponse did not include a statement handle",
                    {"response-type": "PrepareResponse"},
                )
            return statement

    def execute_with_parameters(
        self,
        handle: StatementHandle,
        values: Sequence[TypedValue],
        first_frame_max_size: int = 100,
    ) -> ExecuteResponse:
        with self._request_lock:
            self._require_connection("execute_with_parameters")
            request = ExecuteRequest(
                statement_handle=handle,
                parameter_values=list(values),
                first_frame_max_size=first_frame_max_size,
            )
            data = self._make_request(
                "ExecuteRequest", request.to_dict(), "ExecuteResponse"
            )
            return self._normalize_results(ExecuteResponse.from_dict(data))

    def fetch(
        self, statement_id: int, offset: int, fetch_max_row_count: int
    ) -> FetchResponse:
        with self._request_lock:
            connection_id = self._require_connection("fetch")
            request = FetchRequest(
                connection_id=connection_id,
                statement_id=statement_id,
                offset=offset,
                fetch_max_row_count=fetch_max_row_count,
            )
            data = self._make_request("FetchRequest", request.to_dict(), "FetchResponse")
            response = FetchResponse.from_dict(data)
            response.frame = normalize_frame(response.frame)
            return response

    # Metadata

    def get_catalogs(self) -> ResultSetResponse:
        with self._request_lock:
            connection_id = self._require_connection("get_catalogs")
            return self._result_set_request(
                "CatalogsRequest", CatalogsRequest(connection_id=connection_id)
            )

    def get_table_types(self) -> ResultSetResponse:
        with self._request_lock:
            connection_id = self._require_connection("get_table_types")
            return self._result_set_request(
                "TableTypesRequest", TableTypesRequest(connection_id=connection_id)
            )

    def get_schemas(
        self, catalog: Optional[str] = None, schema_pattern: Optional[str] = None
    ) -> ResultSetResponse:
        with self._request_lock:
            connection_id = self._require_connection("get_schemas")
            return self._result_set_request(
                "SchemasRequest",
                SchemasRequest(
                    connection_id=connection_id,
                    catalog=catalog,
                    schema_pattern=schema_pattern,
                ),
            )

    def get_tables(
        self,
        catalog: Optional[str] = None,
        schema_pattern: Optional[str] = None,
        table_name_pattern: Optional[str] = None,
        type_list: Optional[List[str]] = None,
    ) -> ResultSetResponse:
        with self._request_lock:
            connection_id = self._require_connection("get_tables")
            return self._result_set_request(
                "TablesRequest",
                TablesRequest(
                    connection_id=connection_id,
                    catalog=catalog,
                    schema_pattern=schema_pattern,
                    table_name_pattern=table_name_pattern,
                    type_list=type_list,
                ),
            )

    def get_columns(
        self,
        catalog: Optional[str] = None,
        schema_pattern: Optional[str] = None,
        table_name_pattern: Optional[str] = None,
        column_name_pattern: Optional[str] = None,
    ) -> ResultSetResponse:
        with self._request_lock:
            connection_id = self._require_connection("get_columns")
            return self._result_set_request(
                "ColumnsRequest",
                ColumnsRequest(
                    connection_id=connection_id,
                    catalog=catalog,
                    schema_pattern=schema_pattern,
                    table_name_pattern=table_name_pattern,
                    column_name_pattern=column_name_pattern,
                ),
            )
