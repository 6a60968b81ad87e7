"""JSON-RPC 2.0 message classification and formatting.

Implements the JSON-RPC 2.0 message shapes used by the Language Server
Protocol. The transport hands us already-decoded JSON values; ``classify``
turns them into tagged message objects and the ``format_*`` helpers build
the outgoing envelopes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Maximum message size (1 MB)
MAX_MESSAGE_SIZE = 1_048_576

INVALID_REQUEST_MESSAGE = "The JSON sent is not a valid request object."


class JsonRpcError(Exception):
    """JSON-RPC error with code and message."""

    def __init__(self, code: int, message: str, data: Any | None = None) -> None:
        """Initialize the error.

        Args:
            code: JSON-RPC error code.
            message: Human-readable error message.
            data: Optional additional error data.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class ParamShapeError(JsonRpcError):
    """Raised by a handler when its params do not have the expected shape."""

    def __init__(self, message: str) -> None:
        super().__init__(INVALID_PARAMS, message)


@dataclass(frozen=True)
class JsonRpcRequest:
    """Represents a JSON-RPC request (has id)."""

    id: int | float | str
    method: str
    params: Any = field(default_factory=dict)


@dataclass(frozen=True)
class JsonRpcNotification:
    """Represents a JSON-RPC notification (no id)."""

    method: str
    params: Any = field(default_factory=dict)


@dataclass(frozen=True)
class JsonRpcBatch:
    """Represents a non-empty batch of messages, in arrival order."""

    messages: tuple[JsonRpcRequest | JsonRpcNotification | InvalidMessage, ...]


@dataclass(frozen=True)
class InvalidMessage:
    """Represents a value that is not a valid request object.

    ``id`` is the original request id when one could be recovered, else None.
    """

    id: int | float | str | None = None


Message = JsonRpcRequest | JsonRpcNotification | JsonRpcBatch | InvalidMessage


def is_valid_id(value: Any) -> bool:
    """Check whether a value is a well-typed request id (number or string).

    JSON booleans decode to ``bool``, which is an ``int`` subclass, so they
    are excluded explicitly.
    """
    if isinstance(value, bool):
        return False
    return isinstance(value, int | float | str)


def classify(value: Any) -> Message:
    """Classify a decoded JSON value as a request, notification, batch or invalid.

    Args:
        value: Decoded JSON value as delivered by the transport.

    Returns:
        Tagged message object.
    """
    if isinstance(value, dict):
        msg_id = value.get("id")
        has_id = "id" in value and is_valid_id(msg_id)
        method = value.get("method")
        if isinstance(method, str):
            params = value.get("params")
            if params is None:
                params = {}
            if has_id:
                return JsonRpcRequest(id=msg_id, method=method, params=params)
            return JsonRpcNotification(method=method, params=params)
        return InvalidMessage(id=msg_id if has_id else None)

    # An empty list is not a valid batch
    if isinstance(value, list) and value and all(isinstance(item, dict) for item in value):
        return JsonRpcBatch(messages=tuple(classify(item) for item in value))

    return InvalidMessage()


def parse_message(raw: str, max_size: int = MAX_MESSAGE_SIZE) -> Any:
    """Decode a raw JSON-RPC payload received from the transport.

    Args:
        raw: Raw JSON string.
        max_size: Largest accepted payload, in characters.

    Returns:
        Decoded JSON value, ready for ``classify``.

    Raises:
        JsonRpcError: If the payload is too large or not valid JSON.
    """
    # Check message size before parsing to prevent DoS
    if len(raw) > max_size:
        raise JsonRpcError(
            PARSE_ERROR, f"Message too large: {len(raw)} bytes exceeds {max_size} limit"
        )

    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise JsonRpcError(PARSE_ERROR, f"Parse error: {e}") from e


def format_response(msg_id: int | float | str, result: Any) -> dict[str, Any]:
    """Format a successful JSON-RPC response.

    Args:
        msg_id: Request ID to echo back.
        result: Result payload.

    Returns:
        Response envelope.
    """
    return {
        "jsonrpc": "2.0",
        "id": msg_id,
        "result": result,
    }


def format_error(
    msg_id: int | float | str | None,
    code: int,
    message: str,
    data: Any | None = None,
) -> dict[str, Any]:
    """Format a JSON-RPC error response.

    Args:
        msg_id: Request ID (or None when it cannot be determined).
        code: Error code.
        message: Error message.
        data: Optional error data.

    Returns:
        Error envelope.
    """
    error_obj: dict[str, Any] = {
        "code": code,
        "message": message,
    }
    if data is not None:
        error_obj["data"] = data

    return {
        "jsonrpc": "2.0",
        "id": msg_id,
        "error": error_obj,
    }
