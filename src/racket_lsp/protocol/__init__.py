"""LSP protocol layer: JSON-RPC shapes, param decoding, lifecycle and transport."""

from racket_lsp.protocol.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    InvalidMessage,
    JsonRpcBatch,
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    ParamShapeError,
    classify,
    format_error,
    format_response,
    parse_message,
)
from racket_lsp.protocol.lifecycle import (
    LifecycleManager,
    LifecycleState,
    build_server_capabilities,
)
from racket_lsp.protocol.transport import StdioTransport

__all__ = [
    "INTERNAL_ERROR",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "InvalidMessage",
    "JsonRpcBatch",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "LifecycleManager",
    "LifecycleState",
    "ParamShapeError",
    "StdioTransport",
    "build_server_capabilities",
    "classify",
    "format_error",
    "format_response",
    "parse_message",
]
