from unittest.mock import Mock

import pytest
from google.protobuf import json_format

from sfcc_cip.backend.avatica.codec import REQUEST_NAME_PREFIX, response_kind
from sfcc_cip.backend.avatica.schema import get_default_schema

RESPONSE_NAME_PREFIX = "org.apache.calcite.avatica.proto.Responses$"


def _encode(kind, payload=None, name=None):
    schema = get_default_schema()
    message = json_format.ParseDict(payload or {}, schema.message_class(kind)())
    envelope = schema.message_class("WireMessage")(
        name=name if name is not None else RESPONSE_NAME_PREFIX + kind,
        wrapped_message=message.SerializeToString(),
    )
    return envelope.SerializeToString()


def _decode_request(body):
    schema = get_default_schema()
    envelope = schema.message_class("WireMessage")()
    envelope.ParseFromString(body)
    assert envelope.name.startswith(REQUEST_NAME_PREFIX)
    kind = response_kind(envelope.name)
    message = schema.message_class(kind)()
    message.ParseFromString(envelope.wrapped_message)
    return kind, json_format.MessageToDict(message, preserving_proto_field_name=True)


def _http_response(data=b"", status=200, reason="OK", headers=None):
    response = Mock()
    response.status = status
    response.reason = reason
    response.data = data
    response.headers = headers or {}
    return response


@pytest.fixture
def encode_response():
    """Serialize a server reply of the given kind into WireMessage bytes."""
    return _encode


@pytest.fixture
def decode_request():
    """Parse a request body sent by the client back into (kind, payload)."""
    return _decode_request


@pytest.fixture
def http_response():
    return _http_response


@pytest.fixture
def avatica_reply(encode_response, http_response):
    """A 2xx HTTP response wrapping an Avatica reply."""

    def make(kind, payload=None, headers=None):
        return http_response(encode_response(kind, payload), headers=headers)

    return make


@pytest.fixture
def signature_payload():
    return {
        "columns": [
            {"ordinal": 0, "label": "id", "type": {"name": "BIGINT", "rep": "PRIMITIVE_LONG"}},
            {"ordinal": 1, "label": "name", "type": {"id": 12, "name": "VARCHAR", "rep": "STRING"}},
        ]
    }


def row_payload(identifier, name):
    return {
        "value": [
            {"scalar_value": {"type": "LONG", "number_value": identifier}},
            {"scalar_value": {"type": "STRING", "string_value": name}},
        ]
    }


@pytest.fixture
def make_rows():
    def make(start, count):
        return [row_payload(i, "row-%d" % i) for i in range(start, start + count)]

    return make
