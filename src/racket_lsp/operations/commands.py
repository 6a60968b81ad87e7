"""workspace/executeCommand handler.

Opens the document named by the command's single URI argument with the
platform's default "open" handler and returns the handler's output.
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Sequence
from typing import Any
from urllib.parse import urlparse
from urllib.request import url2pathname

from racket_lsp.protocol.jsonrpc import ParamShapeError, format_response
from racket_lsp.protocol.params import decode_execute_command, describe


def default_open_command(platform: str = sys.platform) -> list[str]:
    """Return the argv prefix of the platform's default "open" handler.

    Args:
        platform: Value in the style of ``sys.platform``.
    """
    if platform == "darwin":
        return ["open"]
    if platform.startswith("win"):
        return ["cmd", "/c", "start", ""]
    return ["xdg-open"]


def uri_to_path(uri: str) -> str:
    """Resolve a ``file:`` URI (or a bare path) to a local file path.

    Raises:
        ParamShapeError: If the URI uses a scheme other than ``file``.
    """
    parsed = urlparse(uri)
    # Single-letter schemes are Windows drive letters, not URI schemes
    if parsed.scheme == "" or len(parsed.scheme) == 1:
        return uri
    if parsed.scheme != "file":
        raise ParamShapeError(f"expected a file URI, got {describe(uri)}")

    path = url2pathname(parsed.path)
    if parsed.netloc and parsed.netloc != "localhost":
        return f"//{parsed.netloc}{path}"
    return path


class ProcessRunner:
    """Runs an external program to completion and captures its output.

    The call blocks the dispatcher. ``timeout`` is None unless configured,
    in which case ``subprocess.TimeoutExpired`` propagates to the caller.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def run(self, argv: Sequence[str]) -> str:
        """Run ``argv`` and return its combined stdout and stderr.

        Raises:
            OSError: If the program cannot be started.
            subprocess.TimeoutExpired: If the timeout elapses.
        """
        completed = subprocess.run(
            list(argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            encoding="utf-8",
            errors="replace",
            timeout=self.timeout,
            check=False,
        )
        return completed.stdout or ""


class CommandExecutor:
    """Handles workspace/executeCommand requests."""

    def __init__(
        self,
        runner: ProcessRunner | None = None,
        open_command: Sequence[str] | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            runner: Process runner (defaults to one without a timeout).
            open_command: Argv prefix of the "open" handler; defaults to
                the platform's.
        """
        self._runner = runner or ProcessRunner()
        self._open_command = list(open_command) if open_command else default_open_command()

    @property
    def open_command(self) -> list[str]:
        return list(self._open_command)

    def execute(self, msg_id: Any, params: Any) -> dict[str, Any]:
        """Handle a workspace/executeCommand request.

        Args:
            msg_id: Request id.
            params: Raw request params.

        Returns:
            Success response with ``{"result": <captured output>}``.

        Raises:
            ParamShapeError: If params do not hold exactly one URI argument.
        """
        decoded = decode_execute_command(params)
        path = uri_to_path(decoded.uri)
        output = self._runner.run([*self._open_command, path])
        return format_response(msg_id, {"result": output})
