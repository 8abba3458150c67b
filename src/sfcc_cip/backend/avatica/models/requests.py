"""
Request models for the Avatica backend.

Each class is named after its wire message kind and serializes with `to_dict()` into the
payload WireCodec.encode_request expects.
"""

from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field

from sfcc_cip.backend.avatica.models.base import (
    ConnectionProperties,
    StatementHandle,
    TypedValue,
    to_uint64,
)


def _pattern_fields(prefix: str, value: Optional[str]) -> Dict[str, Any]:
    if value is None:
        return {}
    return {prefix: value, "has_" + prefix: True}


@dataclass
class OpenConnectionRequest:
    connection_id: str
    info: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connection_id": self.connection_id,
            "info": {str(k): str(v) for k, v in self.info.items()},
        }


@dataclass
class CloseConnectionRequest:
    connection_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"connection_id": self.connection_id}


@dataclass
class ConnectionSyncRequest:
    connection_id: str
    conn_props: ConnectionProperties

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connection_id": self.connection_id,
            "conn_props": self.conn_props.to_dict(),
        }


@dataclass
class CreateStatementRequest:
    connection_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"connection_id": self.connection_id}


@dataclass
class CloseStatementRequest:
    connection_id: str
    statement_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {"connection_id": self.connection_id, "statement_id": self.statement_id}


@dataclass
class PrepareAndExecuteRequest:
    """Run SQL text on an already allocated statement.

    A negative max_row_count means "no limit"; it is sent as the unsigned two's
    complement value the server expects.
    """

    connection_id: str
    statement_id: int
    sql: str
    max_row_count: int = -1
    first_frame_max_size: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "connection_id": self.connection_id,
            "statement_id": self.statement_id,
            "sql": self.sql,
            "max_row_count": to_uint64(self.max_row_count),
        }
        if self.first_frame_max_size is not None:
            result["first_frame_max_size"] = self.first_frame_max_size
        return result


@dataclass
class PrepareRequest:
    connection_id: str
    sql: str
    max_row_count: int = -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connection_id": self.connection_id,
            "sql": self.sql,
            "max_row_count": to_uint64(self.max_row_count),
            "max_rows_total": self.max_row_count,
        }


@dataclass
class ExecuteRequest:
    statement_handle: StatementHandle
    parameter_values: List[TypedValue] = field(default_factory=list)
    first_frame_max_size: int = 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statement_handle": self.statement_handle.to_dict(),
            "parameter_values": [v.to_dict() for v in self.parameter_values],
            "has_parameter_values": True,
            "deprecated_first_frame_max_size": to_uint64(self.first_frame_max_size),
            "first_frame_max_size": self.first_frame_max_size,
        }


@dataclass
class FetchRequest:
    connection_id: str
    statement_id: int
    offset: int
    fetch_max_row_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "connection_id": self.connection_id,
            "statement_id": self.statement_id,
            "offset": self.offset,
            "fetch_max_row_count": self.fetch_max_row_count,
        }


@dataclass
class CommitRequest:
    connection_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"connection_id": self.connection_id}


@dataclass
class RollbackRequest:
    connection_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"connection_id": self.connection_id}


@dataclass
class CatalogsRequest:
    connection_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"connection_id": self.connection_id}


@dataclass
class TableTypesRequest:
    connection_id: str

    def to_dict(self) -> Dict[str, Any]:
        return {"connection_id": self.connection_id}


@dataclass
class SchemasRequest:
    connection_id: str
    catalog: Optional[str] = None
    schema_pattern: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"connection_id": self.connection_id}
        result.update(_pattern_fields("catalog", self.catalog))
        result.update(_pattern_fields("schema_pattern", self.schema_pattern))
        return result


@dataclass
class TablesRequest:
    connection_id: str
    catalog: Optional[str] = None
    schema_pattern: Optional[str] = None
    table_name_pattern: Optional[str] = None
    type_list: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"connection_id": self.connection_id}
        result.update(_pattern_fields("catalog", self.catalog))
        result.update(_pattern_fields("schema_pattern", self.schema_pattern))
        result.update(_pattern_fields("table_name_pattern", self.table_name_pattern))
        if self.type_list is not None:
            result["type_list"] = list(self.type_list)
            result["has_type_list"] = True
        return result


@dataclass
class ColumnsRequest:
    connection_id: str
    catalog: Optional[str] = None
    schema_pattern: Optional[str] = None
    table_name_pattern: Optional[str] = None
    column_name_pattern: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"connection_id": self.connection_id}
        result.update(_pattern_fields("catalog", self.catalog))
        result.update(_pattern_fields("schema_pattern", self.schema_pattern))
        result.update(_pattern_fields("table_name_pattern", self.table_name_pattern))
        result.update(_pattern_fields("column_name_pattern", self.column_name_pattern))
        return result
