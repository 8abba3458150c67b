import pytest

from sfcc_cip.backend.avatica.codec import (
    REQUEST_NAME_PREFIX,
    WireCodec,
    request_identifier,
    response_kind,
)
from sfcc_cip.backend.avatica.schema import get_default_schema
from sfcc_cip.exc import InvalidServerResponseError, ServerOperationError


class TestWireCodec:
    @pytest.fixture
    def codec(self):
        return WireCodec()

    def test_request_identifier_uses_avatica_prefix(self):
        assert (
            request_identifier("FetchRequest")
            == "org.apache.calcite.avatica.proto.Requests$FetchRequest"
        )

    def test_response_kind_is_last_dollar_segment(self):
        assert (
            response_kind("org.apache.calcite.avatica.proto.Responses$ExecuteResponse")
            == "ExecuteResponse"
        )
        assert response_kind("ExecuteResponse") == "ExecuteResponse"

    def test_encode_request_wraps_message_in_envelope(self, codec, decode_request):
        body = codec.encode_request(
            "FetchRequest",
            {"connection_id": "c-1", "statement_id": 7, "offset": 200, "fetch_max_row_count": 100},
        )

        envelope = get_default_schema().message_class("WireMessage")()
        envelope.ParseFromString(body)
        assert envelope.name == REQUEST_NAME_PREFIX + "FetchRequest"

        kind, payload = decode_request(body)
        assert kind == "FetchRequest"
        assert payload["connection_id"] == "c-1"
        assert payload["statement_id"] == 7
        assert int(payload["offset"]) == 200
        assert payload["fetch_max_row_count"] == 100

    def test_encode_unknown_kind_raises(self, codec):
        with pytest.raises(ValueError, match="Unknown Avatica request kind"):
            codec.encode_request("TeleportRequest", {})

    def test_encode_open_connection_info_map(self, codec, decode_request):
        body = codec.encode_request(
            "OpenConnectionRequest", {"connection_id": "c-1", "info": {"user": "me"}}
        )
        _, payload = decode_request(body)
        assert payload["info"] == {"user": "me"}

    def test_decode_response_returns_kind_and_payload(self, codec, encode_response):
        data = encode_response(
            "CreateStatementResponse", {"connection_id": "c-1", "statement_id": 12}
        )
        kind, payload = codec.decode_response(data)
        assert kind == "CreateStatementResponse"
        assert payload == {"connection_id": "c-1", "statement_id": 12}

    def test_decode_int64_values_arrive_as_strings(self, codec, encode_response):
        data = encode_response("FetchResponse", {"frame": {"offset": 300, "done": True}})
        _, payload = codec.decode_response(data)
        assert payload["frame"]["offset"] == "300"
        assert payload["frame"]["done"] is True

    def test_decode_error_response_raises_server_operation_error(
        self, codec, encode_response
    ):
        data = encode_response(
            "ErrorResponse",
            {
                "error_message": "Table not found",
                "sql_state": "42S02",
                "error_code": 1146,
                "severity": "ERROR_SEVERITY",
            },
        )

        with pytest.raises(ServerOperationError) as excinfo:
            codec.decode_response(data)

        error = excinfo.value
        assert (
            str(error)
            == "Avatica Error: Table not found (SQLState: 42S02, ErrorCode: 1146)"
        )
        assert error.sql_state == "42S02"
        assert error.error_code == 1146
        assert error.context["severity"] == "ERROR_SEVERITY"

    def test_decode_error_response_without_details(self, codec, encode_response):
        with pytest.raises(ServerOperationError) as excinfo:
            codec.decode_response(encode_response("ErrorResponse", {}))
        assert str(excinfo.value) == "Avatica Error:  (SQLState: , ErrorCode: 0)"

    def test_decode_unknown_kind_raises(self, codec, encode_response):
        data = encode_response(
            "CommitResponse",
            name="org.apache.calcite.avatica.proto.Responses$MysteryResponse",
        )
        with pytest.raises(InvalidServerResponseError, match="MysteryResponse"):
            codec.decode_response(data)

    def test_decode_garbage_raises(self, codec):
        with pytest.raises(InvalidServerResponseError):
            codec.decode_response(b"\xff\xff\xff\xff")

    def test_decode_empty_envelope_raises(self, codec):
        with pytest.raises(InvalidServerResponseError, match="<empty>"):
            codec.decode_response(b"")
