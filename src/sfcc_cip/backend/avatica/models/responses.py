"""
Response models for the Avatica backend.

These models are built from the dicts returned by WireCodec.decode_response.
"""

from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field

from sfcc_cip.backend.avatica.models.base import (
    ConnectionProperties,
    Frame,
    RpcMetadata,
    Signature,
    StatementHandle,
    to_int,
    to_signed64,
)


@dataclass
class ResultSetResponse:
    """One result of an execution: its signature and first page of rows."""

    connection_id: str = ""
    statement_id: int = 0
    own_statement: bool = False
    signature: Optional[Signature] = None
    first_frame: Optional[Frame] = None
    update_count: int = 0
    metadata: Optional[RpcMetadata] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResultSetResponse":
        signature = data.get("signature")
        first_frame = data.get("first_frame")
        return cls(
            connection_id=data.get("connection_id", ""),
            statement_id=to_int(data.get("statement_id")),
            own_statement=bool(data.get("own_statement", False)),
            signature=Signature.from_dict(signature) if signature is not None else None,
            first_frame=Frame.from_dict(first_frame)
            if first_frame is not None
            else None,
            update_count=to_signed64(data.get("update_count")),
            metadata=RpcMetadata.from_dict(data.get("metadata")),
        )


@dataclass
class ExecuteResponse:
    results: List[ResultSetResponse] = field(default_factory=list)
    missing_statement: bool = False
    metadata: Optional[RpcMetadata] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecuteResponse":
        return cls(
            results=[ResultSetResponse.from_dict(r) for r in data.get("results", [])],
            missing_statement=bool(data.get("missing_statement", False)),
            metadata=RpcMetadata.from_dict(data.get("metadata")),
        )


@dataclass
class PrepareResponse:
    statement: Optional[StatementHandle] = None
    metadata: Optional[RpcMetadata] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrepareResponse":
        statement = data.get("statement")
        return cls(
            statement=StatementHandle.from_dict(statement)
            if statement is not None
            else None,
            metadata=RpcMetadata.from_dict(data.get("metadata")),
        )


@dataclass
class FetchResponse:
    frame: Optional[Frame] = None
    missing_statement: bool = False
    missing_results: bool = False
    metadata: Optional[RpcMetadata] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FetchResponse":
        frame = data.get("frame")
        return cls(
            frame=Frame.from_dict(frame) if frame is not None else None,
            missing_statement=bool(data.get("missing_statement", False)),
            missing_results=bool(data.get("missing_results", False)),
            metadata=RpcMetadata.from_dict(data.get("metadata")),
        )


@dataclass
class CreateStatementResponse:
    connection_id: str = ""
    statement_id: int = 0
    metadata: Optional[RpcMetadata] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreateStatementResponse":
        return cls(
            connection_id=data.get("connection_id", ""),
            statement_id=to_int(data.get("statement_id")),
            metadata=RpcMetadata.from_dict(data.get("metadata")),
        )


@dataclass
class OpenConnectionResponse:
    # Avatica does not echo the id; the client keeps the one it generated.
    connection_id: Optional[str] = None
    metadata: Optional[RpcMetadata] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OpenConnectionResponse":
        return cls(
            connection_id=data.get("connection_id"),
            metadata=RpcMetadata.from_dict(data.get("metadata")),
        )


@dataclass
class ConnectionSyncResponse:
    conn_props: ConnectionProperties = field(default_factory=ConnectionProperties)
    metadata: Optional[RpcMetadata] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConnectionSyncResponse":
        return cls(
            conn_props=ConnectionProperties.from_dict(data.get("conn_props", {})),
            metadata=RpcMetadata.from_dict(data.get("metadata")),
        )
