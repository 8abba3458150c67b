"""
Runtime protobuf schema for the Avatica wire protocol.

The message definitions mirror Apache Calcite Avatica's common.proto, requests.proto and
responses.proto (field numbers are what matter on the wire). They are compiled into a
private DescriptorPool the first time a message class is needed.
"""

import logging
import threading
from typing import Dict, List, Optional, Tuple, Type

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory
from google.protobuf.message import Message

logger = logging.getLogger(__name__)

_FDP = descriptor_pb2.FieldDescriptorProto

_SCALARS = {
    "bool": _FDP.TYPE_BOOL,
    "string": _FDP.TYPE_STRING,
    "bytes": _FDP.TYPE_BYTES,
    "double": _FDP.TYPE_DOUBLE,
    "int32": _FDP.TYPE_INT32,
    "int64": _FDP.TYPE_INT64,
    "uint32": _FDP.TYPE_UINT32,
    "uint64": _FDP.TYPE_UINT64,
    "sint64": _FDP.TYPE_SINT64,
}

FILE_NAME = "avatica.proto"

REP_NAMES = [
    ("PRIMITIVE_BOOLEAN", 0),
    ("PRIMITIVE_BYTE", 1),
    ("PRIMITIVE_CHAR", 2),
    ("PRIMITIVE_SHORT", 3),
    ("PRIMITIVE_INT", 4),
    ("PRIMITIVE_LONG", 5),
    ("PRIMITIVE_FLOAT", 6),
    ("PRIMITIVE_DOUBLE", 7),
    ("BOOLEAN", 8),
    ("BYTE", 9),
    ("CHARACTER", 10),
    ("SHORT", 11),
    ("INTEGER", 12),
    ("LONG", 13),
    ("FLOAT", 14),
    ("DOUBLE", 15),
    ("JAVA_SQL_TIME", 16),
    ("JAVA_SQL_TIMESTAMP", 17),
    ("JAVA_SQL_DATE", 18),
    ("JAVA_UTIL_DATE", 19),
    ("BYTE_STRING", 20),
    ("STRING", 21),
    ("NUMBER", 22),
    ("OBJECT", 23),
    ("NULL", 24),
    ("BIG_INTEGER", 25),
    ("BIG_DECIMAL", 26),
    ("ARRAY", 27),
    ("STRUCT", 28),
    ("MULTISET", 29),
]

_ENUMS: Dict[str, List[Tuple[str, int]]] = {
    "Rep": REP_NAMES,
    "StatementType": [
        ("SELECT", 0),
        ("INSERT", 1),
        ("UPDATE", 2),
        ("DELETE", 3),
        ("UPSERT", 4),
        ("MERGE", 5),
        ("OTHER_DML", 6),
        ("CREATE", 7),
        ("DROP", 8),
        ("ALTER", 9),
        ("OTHER_DDL", 10),
        ("CALL", 11),
    ],
    "Severity": [
        ("UNKNOWN_SEVERITY", 0),
        ("FATAL_SEVERITY", 1),
        ("ERROR_SEVERITY", 2),
        ("WARNING_SEVERITY", 3),
    ],
}

_CURSOR_STYLES = [
    ("OBJECT", 0),
    ("RECORD", 1),
    ("RECORD_PROJECTION", 2),
    ("ARRAY", 3),
    ("LIST", 4),
    ("MAP", 5),
]

# (field name, number, scalar type or ".Message", repeated)
FieldSpec = Tuple[str, int, str, bool]


def _f(name: str, number: int, kind: str, repeated: bool = False) -> FieldSpec:
    return (name, number, kind, repeated)


_MESSAGES: Dict[str, List[FieldSpec]] = {
    "WireMessage": [_f("name", 1, "string"), _f("wrapped_message", 2, "bytes")],
    # common.proto
    "ConnectionProperties": [
        _f("is_dirty", 1, "bool"),
        _f("auto_commit", 2, "bool"),
        _f("read_only", 3, "bool"),
        _f("transaction_isolation", 4, "uint32"),
        _f("catalog", 5, "string"),
        _f("schema", 6, "string"),
        _f("has_auto_commit", 7, "bool"),
        _f("has_read_only", 8, "bool"),
    ],
    "StatementHandle": [
        _f("connection_id", 1, "string"),
        _f("id", 2, "uint32"),
        _f("signature", 3, ".Signature"),
    ],
    "Signature": [
        _f("columns", 1, ".ColumnMetaData", True),
        _f("sql", 2, "string"),
        _f("parameters", 3, ".AvaticaParameter", True),
        _f("cursor_factory", 4, ".CursorFactory"),
        _f("statement_type", 5, ".StatementType"),
    ],
    "ColumnMetaData": [
        _f("ordinal", 1, "uint32"),
        _f("auto_increment", 2, "bool"),
        _f("case_sensitive", 3, "bool"),
        _f("searchable", 4, "bool"),
        _f("currency", 5, "bool"),
        _f("nullable", 6, "uint32"),
        _f("signed", 7, "bool"),
        _f("display_size", 8, "uint32"),
        _f("label", 9, "string"),
        _f("column_name", 10, "string"),
        _f("schema_name", 11, "string"),
        _f("precision", 12, "uint32"),
        _f("scale", 13, "uint32"),
        _f("table_name", 14, "string"),
        _f("catalog_name", 15, "string"),
        _f("read_only", 16, "bool"),
        _f("writable", 17, "bool"),
        _f("definitely_writable", 18, "bool"),
        _f("column_class_name", 19, "string"),
        _f("type", 20, ".AvaticaType"),
    ],
    "AvaticaType": [
        _f("id", 1, "uint32"),
        _f("name", 2, "string"),
        _f("rep", 3, ".Rep"),
        _f("columns", 4, ".ColumnMetaData", True),
        _f("component", 5, ".AvaticaType"),
    ],
    "AvaticaParameter": [
        _f("signed", 1, "bool"),
        _f("precision", 2, "uint32"),
        _f("scale", 3, "uint32"),
        _f("parameter_type", 4, "uint32"),
        _f("type_name", 5, "string"),
        _f("class_name", 6, "string"),
        _f("name", 7, "string"),
    ],
    "CursorFactory": [
        _f("style", 1, ".CursorFactory.Style"),
        _f("class_name", 2, "string"),
        _f("field_names", 3, "string", True),
    ],
    "Frame": [
        _f("offset", 1, "uint64"),
        _f("done", 2, "bool"),
        _f("rows", 3, ".Row", True),
    ],
    "Row": [_f("value", 1, ".ColumnValue", True)],
    "ColumnValue": [
        _f("value", 1, ".TypedValue", True),
        _f("array_value", 2, ".TypedValue", True),
        _f("has_array_value", 3, "bool"),
        _f("scalar_value", 4, ".TypedValue"),
    ],
    "TypedValue": [
        _f("type", 1, ".Rep"),
        _f("bool_value", 2, "bool"),
        _f("string_value", 3, "string"),
        _f("number_value", 4, "sint64"),
        _f("bytes_value", 5, "bytes"),
        _f("double_value", 6, "double"),
        _f("null", 7, "bool"),
        _f("array_value", 8, ".TypedValue", True),
        _f("component_type", 9, ".Rep"),
        _f("implicitly_null", 10, "bool"),
    ],
    "RpcMetadata": [_f("server_address", 1, "string")],
    # requests.proto
    "CatalogsRequest": [_f("connection_id", 1, "string")],
    "SchemasRequest": [
        _f("catalog", 1, "string"),
        _f("schema_pattern", 2, "string"),
        _f("connection_id", 3, "string"),
        _f("has_catalog", 4, "bool"),
        _f("has_schema_pattern", 5, "bool"),
    ],
    "TablesRequest": [
        _f("catalog", 1, "string"),
        _f("schema_pattern", 2, "string"),
        _f("table_name_pattern", 3, "string"),
        _f("type_list", 4, "string", True),
        _f("has_type_list", 6, "bool"),
        _f("connection_id", 7, "string"),
        _f("has_catalog", 8, "bool"),
        _f("has_schema_pattern", 9, "bool"),
        _f("has_table_name_pattern", 10, "bool"),
    ],
    "TableTypesRequest": [_f("connection_id", 1, "string")],
    "ColumnsRequest": [
        _f("catalog", 1, "string"),
        _f("schema_pattern", 2, "string"),
        _f("table_name_pattern", 3, "string"),
        _f("column_name_pattern", 4, "string"),
        _f("connection_id", 5, "string"),
        _f("has_catalog", 6, "bool"),
        _f("has_schema_pattern", 7, "bool"),
        _f("has_table_name_pattern", 8, "bool"),
        _f("has_column_name_pattern", 9, "bool"),
    ],
    "PrepareAndExecuteRequest": [
        _f("connection_id", 1, "string"),
        _f("sql", 2, "string"),
        _f("max_row_count", 3, "uint64"),
        _f("statement_id", 4, "uint32"),
        _f("max_rows_total", 5, "int64"),
        _f("first_frame_max_size", 6, "int32"),
    ],
    "PrepareRequest": [
        _f("connection_id", 1, "string"),
        _f("sql", 2, "string"),
        _f("max_row_count", 3, "uint64"),
        _f("max_rows_total", 4, "int64"),
    ],
    "FetchRequest": [
        _f("connection_id", 1, "string"),
        _f("statement_id", 2, "uint32"),
        _f("offset", 3, "uint64"),
        _f("fetch_max_row_count", 4, "uint32"),
        _f("frame_max_size", 5, "int32"),
    ],
    "CreateStatementRequest": [_f("connection_id", 1, "string")],
    "CloseStatementRequest": [
        _f("connection_id", 1, "string"),
        _f("statement_id", 2, "uint32"),
    ],
    "OpenConnectionRequest": [
        _f("connection_id", 1, "string"),
        _f("info", 2, ".OpenConnectionRequest.InfoEntry", True),
    ],
    "CloseConnectionRequest": [_f("connection_id", 1, "string")],
    "ConnectionSyncRequest": [
        _f("connection_id", 1, "string"),
        _f("conn_props", 2, ".ConnectionProperties"),
    ],
    "ExecuteRequest": [
        _f("statement_handle", 1, ".StatementHandle"),
        _f("parameter_values", 2, ".TypedValue", True),
        _f("deprecated_first_frame_max_size", 3, "uint64"),
        _f("has_parameter_values", 4, "bool"),
        _f("first_frame_max_size", 5, "int32"),
    ],
    "CommitRequest": [_f("connection_id", 1, "string")],
    "RollbackRequest": [_f("connection_id", 1, "string")],
    # responses.proto
    "ResultSetResponse": [
        _f("connection_id", 1, "string"),
        _f("statement_id", 2, "uint32"),
        _f("own_statement", 3, "bool"),
        _f("signature", 4, ".Signature"),
        _f("first_frame", 5, ".Frame"),
        _f("update_count", 6, "uint64"),
        _f("metadata", 7, ".RpcMetadata"),
    ],
    "ExecuteResponse": [
        _f("results", 1, ".ResultSetResponse", True),
        _f("missing_statement", 2, "bool"),
        _f("metadata", 3, ".RpcMetadata"),
    ],
    "PrepareResponse": [
        _f("statement", 1, ".StatementHandle"),
        _f("metadata", 2, ".RpcMetadata"),
    ],
    "FetchResponse": [
        _f("frame", 1, ".Frame"),
        _f("missing_statement", 2, "bool"),
        _f("missing_results", 3, "bool"),
        _f("metadata", 4, ".RpcMetadata"),
    ],
    "CreateStatementResponse": [
        _f("connection_id", 1, "string"),
        _f("statement_id", 2, "uint32"),
        _f("metadata", 3, ".RpcMetadata"),
    ],
    "CloseStatementResponse": [_f("metadata", 1, ".RpcMetadata")],
    "OpenConnectionResponse": [_f("metadata", 1, ".RpcMetadata")],
    "CloseConnectionResponse": [_f("metadata", 1, ".RpcMetadata")],
    "ConnectionSyncResponse": [
        _f("conn_props", 1, ".ConnectionProperties"),
        _f("metadata", 2, ".RpcMetadata"),
    ],
    "ErrorResponse": [
        _f("exceptions", 1, "string", True),
        _f("error_message", 2, "string"),
        _f("severity", 3, ".Severity"),
        _f("error_code", 4, "uint32"),
        _f("sql_state", 5, "string"),
        _f("metadata", 6, ".RpcMetadata"),
        _f("has_exceptions", 7, "bool"),
    ],
    "CommitResponse": [],
    "RollbackResponse": [],
}

REQUEST_KINDS = frozenset(name for name in _MESSAGES if name.endswith("Request"))
RESPONSE_KINDS = frozenset(name for name in _MESSAGES if name.endswith("Response"))


def _add_fields(message_proto, fields: List[FieldSpec]):
    for name, number, kind, repeated in fields:
        field = message_proto.field.add()
        field.name = name
        field.number = number
        field.label = _FDP.LABEL_REPEATED if repeated else _FDP.LABEL_OPTIONAL
        if kind in _SCALARS:
            field.type = _SCALARS[kind]
        else:
            enum_names = set(_ENUMS) | {"CursorFactory.Style"}
            field.type = _FDP.TYPE_ENUM if kind[1:] in enum_names else _FDP.TYPE_MESSAGE
            field.type_name = kind


def build_file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    """Describe every Avatica message used by the client as a single proto3 file."""
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_proto.name = FILE_NAME
    file_proto.syntax = "proto3"

    for enum_name, values in _ENUMS.items():
        enum_proto = file_proto.enum_type.add()
        enum_proto.name = enum_name
        for value_name, number in values:
            enum_proto.value.add(name=value_name, number=number)

    for message_name, fields in _MESSAGES.items():
        message_proto = file_proto.message_type.add()
        message_proto.name = message_name
        _add_fields(message_proto, fields)

        if message_name == "CursorFactory":
            style = message_proto.enum_type.add()
            style.name = "Style"
            for value_name, number in _CURSOR_STYLES:
                style.value.add(name=value_name, number=number)

        if message_name == "OpenConnectionRequest":
            entry = message_proto.nested_type.add()
            entry.name = "InfoEntry"
            entry.options.map_entry = True
            _add_fields(entry, [_f("key", 1, "string"), _f("value", 2, "string")])

    return file_proto


class AvaticaSchema:
    """
    Lazily compiled message classes for the Avatica protocol.

    The descriptors are built at most once per instance even when several threads ask
    for a message class at the same time.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._classes: Optional[Dict[str, Type[Message]]] = None
        self.load_count = 0

    @property
    def is_loaded(self) -> bool:
        return self._classes is not None

    def ensure_loaded(self) -> Dict[str, Type[Message]]:
        classes = self._classes
        if classes is not None:
            return classes

        with self._lock:
            if self._classes is None:
                self._classes = self._load()
                self.load_count += 1
            return self._classes

    def _load(self) -> Dict[str, Type[Message]]:
        logger.debug("Building Avatica protobuf descriptors")
        pool = descriptor_pool.DescriptorPool()
        pool.AddSerializedFile(build_file_descriptor().SerializeToString())
        return {
            name: message_factory.GetMessageClass(pool.FindMessageTypeByName(name))
            for name in _MESSAGES
        }

    def message_class(self, kind: str) -> Type[Message]:
        """Return the generated class for `kind`, raising KeyError for unknown kinds."""
        return self.ensure_loaded()[kind]

    def has_kind(self, kind: str) -> bool:
        return kind in _MESSAGES


_default_schema = AvaticaSchema()


def get_default_schema() -> AvaticaSchema:
    return _default_schema
