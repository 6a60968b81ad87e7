"""Message trace logging.

Append-only JSON Lines trace of every request, response and notification
handled by the server. Document text is elided so the trace stays small.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any


def _summarize(value: Any, max_length: int) -> Any:
    """Replace long strings (document text) with a length marker.

    Args:
        value: Params value to summarize.
        max_length: Longest string kept verbatim.

    Returns:
        New value with long strings elided.
    """
    if isinstance(value, str):
        return value if len(value) <= max_length else f"[{len(value)} chars]"
    if isinstance(value, dict):
        return {key: _summarize(item, max_length) for key, item in value.items()}
    if isinstance(value, list):
        return [_summarize(item, max_length) for item in value]
    return value


def _get_timestamp() -> str:
    """Get current UTC timestamp in ISO 8601 format."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class TraceLogger:
    """Append-only message trace in JSON Lines format.

    The file is flushed after each write so the trace survives an abrupt
    ``exit``.
    """

    def __init__(self, log_path: Path, max_string_length: int = 200) -> None:
        """Initialize the trace logger.

        Args:
            log_path: Path to the trace file.
            max_string_length: Longest param string written verbatim.
        """
        self._log_path = log_path
        self._max_string_length = max_string_length
        self._ensure_directory()
        self._file = open(log_path, "a", encoding="utf-8")  # noqa: SIM115

    def _ensure_directory(self) -> None:
        """Create log directory if it doesn't exist."""
        self._log_path.parent.mkdir(parents=True, exist_ok=True)

    def _write_line(self, data: dict[str, Any]) -> None:
        """Write a JSON line to the log file and flush."""
        line = json.dumps(data, default=repr)
        self._file.write(line + "\n")
        self._file.flush()

    def log_request(self, request_id: Any, method: str, params: Any) -> None:
        """Log an incoming request.

        Args:
            request_id: Request id as sent by the client.
            method: Method name.
            params: Request params (long strings are elided).
        """
        self._write_line(
            {
                "type": "request",
                "timestamp": _get_timestamp(),
                "request_id": request_id,
                "method": method,
                "params": _summarize(params, self._max_string_length),
            }
        )

    def log_response(self, request_id: Any, status: str, duration_ms: float) -> None:
        """Log the outcome of a request.

        Args:
            request_id: Request id to correlate with.
            status: "success" or the JSON-RPC error code as a string.
            duration_ms: Handling time in milliseconds.
        """
        self._write_line(
            {
                "type": "response",
                "timestamp": _get_timestamp(),
                "request_id": request_id,
                "result_status": status,
                "execution_time_ms": duration_ms,
            }
        )

    def log_notification(self, method: str, params: Any) -> None:
        self._write_line(
            {
                "type": "notification",
                "timestamp": _get_timestamp(),
                "method": method,
                "params": _summarize(params, self._max_string_length),
            }
        )

    def close(self) -> None:
        """Close the log file."""
        if self._file and not self._file.closed:
            self._file.close()

    def __enter__(self) -> TraceLogger:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()
