"""
Models for the Avatica protobuf backend.

This package contains data models for Avatica wire requests and responses.
"""

from sfcc_cip.backend.avatica.models.base import (
    Rep,
    TypedValue,
    ColumnValue,
    WireRow,
    Frame,
    AvaticaType,
    ColumnMetaData,
    AvaticaParameter,
    CursorFactory,
    Signature,
    StatementHandle,
    ConnectionProperties,
    RpcMetadata,
)

from sfcc_cip.backend.avatica.models.requests import (
    OpenConnectionRequest,
    CloseConnectionRequest,
    ConnectionSyncRequest,
    CreateStatementRequest,
    CloseStatementRequest,
    PrepareAndExecuteRequest,
    PrepareRequest,
    ExecuteRequest,
    FetchRequest,
    CommitRequest,
    RollbackRequest,
    CatalogsRequest,
    TableTypesRequest,
    SchemasRequest,
    TablesRequest,
    ColumnsRequest,
)

from sfcc_cip.backend.avatica.models.responses import (
    ResultSetResponse,
    ExecuteResponse,
    PrepareResponse,
    FetchResponse,
    CreateStatementResponse,
    OpenConnectionResponse,
    ConnectionSyncResponse,
)

__all__ = [
    # Base models
    "Rep",
    "TypedValue",
    "ColumnValue",
    "WireRow",
    "Frame",
    "AvaticaType",
    "ColumnMetaData",
    "AvaticaParameter",
    "CursorFactory",
    "Signature",
    "StatementHandle",
    "ConnectionProperties",
    "RpcMetadata",
    # Request models
    "OpenConnectionRequest",
    "CloseConnectionRequest",
    "ConnectionSyncRequest",
    "CreateStatementRequest",
    "CloseStatementRequest",
    "PrepareAndExecuteRequest",
    "PrepareRequest",
    "ExecuteRequest",
    "FetchRequest",
    "CommitRequest",
    "RollbackRequest",
    "CatalogsRequest",
    "TableTypesRequest",
    "SchemasRequest",
    "TablesRequest",
    "ColumnsRequest",
    # Response models
    "ResultSetResponse",
    "ExecuteResponse",
    "PrepareResponse",
    "FetchResponse",
    "CreateStatementResponse",
    "OpenConnectionResponse",
    "ConnectionSyncResponse",
]
