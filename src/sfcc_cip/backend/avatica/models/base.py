"""
Base models for the Avatica wire protocol.

These models mirror the shared messages of Avatica's common.proto. Responses are built
from the dicts produced by WireCodec.decode_response; requests serialize back to dicts
accepted by WireCodec.encode_request.
"""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from sfcc_cip.backend.avatica.schema import REP_NAMES

_UINT64_MASK = 0xFFFFFFFFFFFFFFFF
_INT64_SIGN = 1 << 63
_REP_BY_NUMBER = {number: name for name, number in REP_NAMES}


def to_int(value: Any, default: int = 0) -> int:
    """Integer from a protobuf JSON scalar (64-bit values arrive as strings)."""
    if value is None or value == "":
        return default
    return int(value)


def to_signed64(value: Any) -> int:
    """Reinterpret a uint64 wire value as the signed quantity the server meant."""
    number = to_int(value)
    return number - (1 << 64) if number >= _INT64_SIGN else number


def to_uint64(value: int) -> int:
    """Two's-complement encoding of a possibly negative count for a uint64 field."""
    return int(value) & _UINT64_MASK


class Rep(str, Enum):
    """Avatica's internal representation tag of a value."""

    PRIMITIVE_BOOLEAN = "PRIMITIVE_BOOLEAN"
    PRIMITIVE_BYTE = "PRIMITIVE_BYTE"
    PRIMITIVE_CHAR = "PRIMITIVE_CHAR"
    PRIMITIVE_SHORT = "PRIMITIVE_SHORT"
    PRIMITIVE_INT = "PRIMITIVE_INT"
    PRIMITIVE_LONG = "PRIMITIVE_LONG"
    PRIMITIVE_FLOAT = "PRIMITIVE_FLOAT"
    PRIMITIVE_DOUBLE = "PRIMITIVE_DOUBLE"
    BOOLEAN = "BOOLEAN"
    BYTE = "BYTE"
    CHARACTER = "CHARACTER"
    SHORT = "SHORT"
    INTEGER = "INTEGER"
    LONG = "LONG"
    FLOAT = "FLOAT"
    DOUBLE = "DOUBLE"
    JAVA_SQL_TIME = "JAVA_SQL_TIME"
    JAVA_SQL_TIMESTAMP = "JAVA_SQL_TIMESTAMP"
    JAVA_SQL_DATE = "JAVA_SQL_DATE"
    JAVA_UTIL_DATE = "JAVA_UTIL_DATE"
    BYTE_STRING = "BYTE_STRING"
    STRING = "STRING"
    NUMBER = "NUMBER"
    OBJECT = "OBJECT"
    NULL = "NULL"
    BIG_INTEGER = "BIG_INTEGER"
    BIG_DECIMAL = "BIG_DECIMAL"
    ARRAY = "ARRAY"
    STRUCT = "STRUCT"
    MULTISET = "MULTISET"

    @classmethod
    def from_wire(cls, value: Any, default: Optional["Rep"] = None) -> Optional["Rep"]:
        if value is None:
            return default
        if isinstance(value, int):
            value = _REP_BY_NUMBER.get(value)
        try:
            return cls(value)
        except ValueError:
            return default


INTEGER_REPS = frozenset(
    [
        Rep.PRIMITIVE_BYTE,
        Rep.PRIMITIVE_SHORT,
        Rep.PRIMITIVE_INT,
        Rep.PRIMITIVE_LONG,
        Rep.BYTE,
        Rep.SHORT,
        Rep.INTEGER,
        Rep.LONG,
        Rep.BIG_INTEGER,
        Rep.NUMBER,
    ]
)

FLOAT_REPS = frozenset(
    [
        Rep.PRIMITIVE_FLOAT,
        Rep.PRIMITIVE_DOUBLE,
        Rep.FLOAT,
        Rep.DOUBLE,
        Rep.BIG_DECIMAL,
    ]
)

STRING_REPS = frozenset([Rep.STRING, Rep.PRIMITIVE_CHAR, Rep.CHARACTER])

BOOLEAN_REPS = frozenset([Rep.PRIMITIVE_BOOLEAN, Rep.BOOLEAN])

DATE_MILLIS_REPS = frozenset(
    [Rep.JAVA_SQL_DATE, Rep.JAVA_UTIL_DATE, Rep.JAVA_SQL_TIMESTAMP]
)


@dataclass
class TypedValue:
    """A single tagged value; `type` tells which payload field is meaningful."""

    type: Rep = Rep.PRIMITIVE_BOOLEAN
    bool_value: bool = False
    string_value: str = ""
    number_value: int = 0
    bytes_value: bytes = b""
    double_value: float = 0.0
    null: bool = False
    array_value: List["TypedValue"] = field(default_factory=list)
    component_type: Optional[Rep] = None
    implicitly_null: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TypedValue":
        raw_bytes = data.get("bytes_value")
        return cls(
            type=Rep.from_wire(data.get("type"), Rep.PRIMITIVE_BOOLEAN),
            bool_value=bool(data.get("bool_value", False)),
            string_value=data.get("string_value", ""),
            number_value=to_int(data.get("number_value")),
            bytes_value=base64.b64decode(raw_bytes) if raw_bytes else b"",
            double_value=float(data.get("double_value", 0.0)),
            null=bool(data.get("null", False)),
            array_value=[cls.from_dict(v) for v in data.get("array_value", [])],
            component_type=Rep.from_wire(data.get("component_type")),
            implicitly_null=bool(data.get("implicitly_null", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type.value}

        if self.null:
            result["null"] = True
            return result

        if self.bool_value:
            result["bool_value"] = True
        if self.string_value:
            result["string_value"] = self.string_value
        if self.number_value:
            result["number_value"] = self.number_value
        if self.bytes_value:
            result["bytes_value"] = base64.b64encode(self.bytes_value).decode("ascii")
        if self.double_value:
            result["double_value"] = self.double_value
        if self.array_value:
            result["array_value"] = [v.to_dict() for v in self.array_value]
        if self.component_type is not None:
            result["component_type"] = self.component_type.value

        return result


@dataclass
class ColumnValue:
    """One cell of a row as sent on the wire."""

    value: List[TypedValue] = field(default_factory=list)
    array_value: List[TypedValue] = field(default_factory=list)
    has_array_value: bool = False
    scalar_value: Optional[TypedValue] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnValue":
        scalar = data.get("scalar_value")
        return cls(
            value=[TypedValue.from_dict(v) for v in data.get("value", [])],
            array_value=[TypedValue.from_dict(v) for v in data.get("array_value", [])],
            has_array_value=bool(data.get("has_array_value", False)),
            scalar_value=TypedValue.from_dict(scalar) if scalar is not None else None,
        )


@dataclass
class WireRow:
    value: List[ColumnValue] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WireRow":
        return cls(value=[ColumnValue.from_dict(v) for v in data.get("value", [])])


@dataclass
class Frame:
    """
    A page of rows.

    Frames built by `from_dict` keep the offset exactly as decoded (a 64-bit integer may
    be a string); use normalize_frame before doing arithmetic with it.
    """

    offset: Union[int, str] = 0
    done: bool = False
    rows: Optional[List[WireRow]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Frame":
        rows = data.get("rows")
        return cls(
            offset=data.get("offset", 0),
            done=bool(data.get("done", False)),
            rows=[WireRow.from_dict(r) for r in rows] if rows is not None else None,
        )


@dataclass
class AvaticaType:
    id: int = 0
    name: str = ""
    rep: Optional[Rep] = None
    component: Optional["AvaticaType"] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AvaticaType":
        component = data.get("component")
        return cls(
            id=to_int(data.get("id")),
            name=data.get("name", ""),
            rep=Rep.from_wire(data.get("rep"), Rep.PRIMITIVE_BOOLEAN),
            component=cls.from_dict(component) if component else None,
        )


@dataclass
class ColumnMetaData:
    ordinal: int = 0
    label: str = ""
    column_name: str = ""
    table_name: str = ""
    schema_name: str = ""
    catalog_name: str = ""
    nullable: int = 0
    signed: bool = False
    display_size: int = 0
    precision: int = 0
    scale: int = 0
    column_class_name: str = ""
    type: Optional[AvaticaType] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnMetaData":
        type_data = data.get("type")
        return cls(
            ordinal=to_int(data.get("ordinal")),
            label=data.get("label", ""),
            column_name=data.get("column_name", ""),
            table_name=data.get("table_name", ""),
            schema_name=data.get("schema_name", ""),
            catalog_name=data.get("catalog_name", ""),
            nullable=to_int(data.get("nullable")),
            signed=bool(data.get("signed", False)),
            display_size=to_int(data.get("display_size")),
            precision=to_int(data.get("precision")),
            scale=to_int(data.get("scale")),
            column_class_name=data.get("column_class_name", ""),
            type=AvaticaType.from_dict(type_data) if type_data is not None else None,
        )


@dataclass
class AvaticaParameter:
    name: str = ""
    type_name: str = ""
    class_name: str = ""
    parameter_type: int = 0
    precision: int = 0
    scale: int = 0
    signed: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AvaticaParameter":
        return cls(
            name=data.get("name", ""),
            type_name=data.get("type_name", ""),
            class_name=data.get("class_name", ""),
            parameter_type=to_int(data.get("parameter_type")),
            precision=to_int(data.get("precision")),
            scale=to_int(data.get("scale")),
            signed=bool(data.get("signed", False)),
        )


@dataclass
class CursorFactory:
    style: str = "OBJECT"
    class_name: str = ""
    field_names: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CursorFactory":
        return cls(
            style=str(data.get("style", "OBJECT")),
            class_name=data.get("class_name", ""),
            field_names=list(data.get("field_names", [])),
        )


@dataclass
class Signature:
    """Result-set metadata: column descriptors in order, plus bind parameters."""

    columns: List[ColumnMetaData] = field(default_factory=list)
    sql: str = ""
    parameters: List[AvaticaParameter] = field(default_factory=list)
    cursor_factory: Optional[CursorFactory] = None
    statement_type: str = "SELECT"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Signature":
        cursor_factory = data.get("cursor_factory")
        return cls(
            columns=[ColumnMetaData.from_dict(c) for c in data.get("columns", [])],
            sql=data.get("sql", ""),
            parameters=[
                AvaticaParameter.from_dict(p) for p in data.get("parameters", [])
            ],
            cursor_factory=CursorFactory.from_dict(cursor_factory)
            if cursor_factory is not None
            else None,
            statement_type=str(data.get("statement_type", "SELECT")),
        )


@dataclass
class StatementHandle:
    """A server-side prepared statement."""

    connection_id: str
    id: int
    signature: Optional[Signature] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StatementHandle":
        signature = data.get("signature")
        return cls(
            connection_id=data.get("connection_id", ""),
            id=to_int(data.get("id")),
            signature=Signature.from_dict(signature) if signature is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        # The signature is not echoed back to the server.
        return {"connection_id": self.connection_id, "id": self.id}


@dataclass
class ConnectionProperties:
    auto_commit: Optional[bool] = None
    read_only: Optional[bool] = None
    transaction_isolation: int = 0
    catalog: str = ""
    schema: str = ""
    is_dirty: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionProperties":
        return cls(
            auto_commit=bool(data.get("auto_commit", False))
            if data.get("has_auto_commit")
            else None,
            read_only=bool(data.get("read_only", False))
            if data.get("has_read_only")
            else None,
            transaction_isolation=to_int(data.get("transaction_isolation")),
            catalog=data.get("catalog", ""),
            schema=data.get("schema", ""),
            is_dirty=bool(data.get("is_dirty", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"is_dirty": True}
        if self.auto_commit is not None:
            result["auto_commit"] = self.auto_commit
            result["has_auto_commit"] = True
        if self.read_only is not None:
            result["read_only"] = self.read_only
            result["has_read_only"] = True
        if self.transaction_isolation:
            result["transaction_isolation"] = self.transaction_isolation
        if self.catalog:
            result["catalog"] = self.catalog
        if self.schema:
            result["schema"] = self.schema
        return result


@dataclass
class RpcMetadata:
    server_address: str = ""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["RpcMetadata"]:
        if data is None:
            return None
        return cls(server_address=data.get("server_address", ""))
