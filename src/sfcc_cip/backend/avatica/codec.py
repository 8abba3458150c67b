import logging
from typing import Any, Dict, Optional, Tuple

from google.protobuf import json_format
from google.protobuf.message import DecodeError

from sfcc_cip.backend.avatica.schema import AvaticaSchema, get_default_schema
from sfcc_cip.exc import InvalidServerResponseError, ServerOperationError

logger = logging.getLogger(__name__)

REQUEST_NAME_PREFIX = "org.apache.calcite.avatica.proto.Requests$"
ERROR_RESPONSE_KIND = "ErrorResponse"


def request_identifier(kind: str) -> str:
    return REQUEST_NAME_PREFIX + kind


def response_kind(identifier: str) -> str:
    """Final `$`-separated segment of a wire message name."""
    return identifier.split("$")[-1]


class WireCodec:
    """
    Encodes request payloads into Avatica WireMessage envelopes and decodes response
    envelopes back into plain dicts.

    Decoded dicts use the proto field names. 64-bit integers arrive as strings, enums as
    their names and bytes as base64 text, as produced by protobuf's JSON mapping; fields
    holding their default value are omitted.
    """

    def __init__(self, schema: Optional[AvaticaSchema] = None):
        self.schema = schema or get_default_schema()

    def encode_request(self, kind: str, payload: Dict[str, Any]) -> bytes:
        if not self.schema.has_kind(kind):
            raise ValueError("Unknown Avatica request kind: {}".format(kind))

        request_class = self.schema.message_class(kind)
        message = json_format.ParseDict(payload, request_class())

        wire_class = self.schema.message_class("WireMessage")
        envelope = wire_class(
            name=request_identifier(kind),
            wrapped_message=message.SerializeToString(),
        )
        return envelope.SerializeToString()

    def decode_response(self, data: bytes) -> Tuple[str, Dict[str, Any]]:
        """
        Decode a response envelope.

        Returns:
            (kind, payload) where kind is the short message name, e.g. "ExecuteResponse"

        Raises:
            ServerOperationError: If the envelope wraps an ErrorResponse
            InvalidServerResponseError: If the bytes are not a valid envelope or name an
                unknown message kind
        """
        wire_class = self.schema.message_class("WireMessage")
        envelope = wire_class()
        try:
            envelope.ParseFromString(data)
        except DecodeError as e:
            raise InvalidServerResponseError(
                "Malformed Avatica response: {}".format(e),
                {"response-type": None, "original-exception": repr(e)},
            ) from e

        kind = response_kind(envelope.name)
        if not envelope.name or not self.schema.has_kind(kind):
            raise InvalidServerResponseError(
                "Unknown Avatica response type: {}".format(envelope.name or "<empty>"),
                {"response-type": envelope.name},
            )

        response_class = self.schema.message_class(kind)
        message = response_class()
        try:
            message.ParseFromString(envelope.wrapped_message)
        except DecodeError as e:
            raise InvalidServerResponseError(
                "Malformed Avatica {}: {}".format(kind, e),
                {"response-type": envelope.name, "original-exception": repr(e)},
            ) from e

        payload = json_format.MessageToDict(message, preserving_proto_field_name=True)

        if kind == ERROR_RESPONSE_KIND:
            raise self.error_from_payload(payload)

        return kind, payload

    @staticmethod
    def error_from_payload(payload: Dict[str, Any]) -> ServerOperationError:
        message = payload.get("error_message", "")
        sql_state = payload.get("sql_state", "")
        error_code = int(payload.get("error_code", 0))
        return ServerOperationError(
            "Avatica Error: {} (SQLState: {}, ErrorCode: {})".format(
                message, sql_state, error_code
            ),
            {
                "sql-state": sql_state,
                "error-code": error_code,
                "severity": payload.get("severity", "UNKNOWN_SEVERITY"),
                "exceptions": payload.get("exceptions", []),
            },
        )
