"""STDIO transport layer for LSP communication.

Reads and writes LSP base-protocol frames (``Content-Length`` header, blank
line, JSON body) over stdin/stdout.
"""

from __future__ import annotations

import json
import sys
from typing import Any, BinaryIO, TextIO

HEADER_ENCODING = "ascii"
BODY_ENCODING = "utf-8"


class StdioTransport:
    """STDIO transport for LSP communication.

    Reads framed JSON-RPC messages from stdin and writes responses to stdout.
    Logging goes to stderr to avoid corrupting the protocol stream.
    """

    def __init__(
        self,
        stdin: BinaryIO | None = None,
        stdout: BinaryIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            stdin: Binary input stream (defaults to sys.stdin.buffer).
            stdout: Binary output stream (defaults to sys.stdout.buffer).
            stderr: Log stream (defaults to sys.stderr).
        """
        self._stdin = stdin or sys.stdin.buffer
        self._stdout = stdout or sys.stdout.buffer
        self._stderr = stderr or sys.stderr

    def read_message(self) -> str | None:
        """Read one framed message body from stdin.

        Frames with a missing or malformed Content-Length are skipped.

        Returns:
            Message body, or None on EOF.
        """
        while True:
            headers: dict[str, str] = {}
            while True:
                try:
                    line = self._stdin.readline()
                except OSError:
                    return None

                if not line:  # EOF
                    return None
                if line in (b"\r\n", b"\n"):
                    break

                name, sep, value = line.decode(HEADER_ENCODING, errors="replace").partition(":")
                if sep:
                    headers[name.strip().lower()] = value.strip()

            try:
                length = int(headers.get("content-length", ""))
            except ValueError:
                self.log(f"Skipping frame without a valid Content-Length: {headers}")
                continue

            body = self._stdin.read(length)
            if len(body) < length:
                return None
            return body.decode(BODY_ENCODING, errors="replace")

    def write_message(self, message: dict[str, Any]) -> None:
        """Write a message to stdout as one frame.

        Args:
            message: JSON-RPC envelope to serialize.
        """
        body = json.dumps(message, ensure_ascii=False).encode(BODY_ENCODING)
        header = f"Content-Length: {len(body)}\r\n\r\n".encode(HEADER_ENCODING)
        self._stdout.write(header + body)
        self._stdout.flush()

    def log(self, message: str) -> None:
        """Write a log message to stderr.

        Args:
            message: Log message.
        """
        self._stderr.write(f"[LSP] {message}\n")
        self._stderr.flush()
