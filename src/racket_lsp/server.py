"""Racket language server - message dispatch core.

Classifies decoded JSON-RPC values, routes them through the operation
registry and emits one response per request.
"""

from __future__ import annotations

import sys
import time
import traceback
from collections.abc import Callable
from pathlib import Path
from typing import Any, NoReturn

from racket_lsp.config import ServerConfig
from racket_lsp.operations.base import LanguageBackend, NullBackend
from racket_lsp.operations.commands import CommandExecutor, ProcessRunner
from racket_lsp.operations.documents import DocumentStore
from racket_lsp.operations.registry import OperationRegistry
from racket_lsp.operations.text_document import text_document_handlers
from racket_lsp.protocol.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    INVALID_REQUEST_MESSAGE,
    METHOD_NOT_FOUND,
    InvalidMessage,
    JsonRpcBatch,
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    Message,
    classify,
    format_error,
    format_response,
)
from racket_lsp.protocol.lifecycle import LifecycleManager
from racket_lsp.protocol.params import decode_did_change, decode_did_close, decode_did_open
from racket_lsp.trace import TraceLogger


def _stderr_log(message: str) -> None:
    sys.stderr.write(f"[LSP] {message}\n")
    sys.stderr.flush()


class LanguageServer:
    """Language server dispatch core.

    Handles:
    - Classification of requests, notifications, batches and invalid values
    - Lifecycle management (initialize/shutdown/exit)
    - Routing of textDocument/* requests to a language backend
    - workspace/executeCommand through an external "open" handler

    Messages are processed strictly one at a time. Requests sent before
    initialize or after shutdown are still routed normally.
    """

    def __init__(
        self,
        emit: Callable[[dict[str, Any]], None],
        config: ServerConfig | None = None,
        backend: LanguageBackend | None = None,
        log: Callable[[str], None] | None = None,
        terminate: Callable[[int], NoReturn] = sys.exit,
        runner: ProcessRunner | None = None,
    ) -> None:
        """Initialize the server.

        Args:
            emit: Called with every outgoing response, in order.
            config: Server configuration (defaults to built-in settings).
            backend: Language backend (defaults to NullBackend).
            log: Diagnostic log sink (defaults to stderr).
            terminate: Called with the exit status on the exit notification.
            runner: Process runner for workspace/executeCommand.
        """
        self._config = config or ServerConfig()
        self._emit = emit
        self._log = log or _stderr_log
        self._terminate = terminate

        self._lifecycle = LifecycleManager(server_info=self._config.server_info)
        self._documents = DocumentStore()
        self._backend = backend or NullBackend()
        self._backend.attach(self._documents)
        self._executor = CommandExecutor(
            runner=runner or ProcessRunner(timeout=self._config.command_timeout),
            open_command=self._config.open_command,
        )

        if self._config.trace_log_file:
            self._trace: TraceLogger | None = TraceLogger(
                Path(self._config.trace_log_file),
                max_string_length=self._config.trace_max_string_length,
            )
        else:
            self._trace = None

        self._registry = OperationRegistry(
            requests={
                "initialize": self._handle_initialize,
                "shutdown": self._handle_shutdown,
                "workspace/executeCommand": self._executor.execute,
                **text_document_handlers(self._backend),
            },
            notifications={
                "exit": self._handle_exit,
                "textDocument/didOpen": self._handle_did_open,
                "textDocument/didChange": self._handle_did_change,
                "textDocument/didClose": self._handle_did_close,
            },
        )

    @property
    def lifecycle(self) -> LifecycleManager:
        return self._lifecycle

    @property
    def documents(self) -> DocumentStore:
        return self._documents

    @property
    def registry(self) -> OperationRegistry:
        return self._registry

    def process(self, message: Any) -> None:
        """Handle one decoded JSON value from the transport.

        Emits one response per request contained in the message. A batch
        is processed element by element, in order.

        Args:
            message: Decoded JSON value.
        """
        self._dispatch(classify(message))

    def _dispatch(self, message: Message) -> None:
        if isinstance(message, JsonRpcRequest):
            self._emit(self.route_request(message.id, message.method, message.params))
        elif isinstance(message, JsonRpcNotification):
            self.route_notification(message.method, message.params)
        elif isinstance(message, JsonRpcBatch):
            for item in message.messages:
                self._dispatch(item)
        elif isinstance(message, InvalidMessage):
            self._emit(format_error(message.id, INVALID_REQUEST, INVALID_REQUEST_MESSAGE))

    def route_request(self, msg_id: Any, method: str, params: Any) -> dict[str, Any]:
        """Route a request and return its response.

        Never raises for handler failures: a ``JsonRpcError`` becomes an
        error response with its own code, anything else becomes a generic
        internal error and is logged to the diagnostic stream.

        Args:
            msg_id: Request id.
            method: Method name.
            params: Request params.

        Returns:
            JSON-RPC response envelope.
        """
        if self._trace:
            self._record_trace(self._trace.log_request, msg_id, method, params)
        start = time.perf_counter()

        response = self._invoke(msg_id, method, params)

        if self._trace:
            error = response.get("error")
            status = "success" if error is None else str(error["code"])
            duration_ms = (time.perf_counter() - start) * 1000
            self._record_trace(self._trace.log_response, msg_id, status, duration_ms)
        return response

    def _invoke(self, msg_id: Any, method: str, params: Any) -> dict[str, Any]:
        handler = self._registry.request_handler(method)
        if handler is None:
            return format_error(msg_id, METHOD_NOT_FOUND, f"The method '{method}' was not found")

        try:
            return handler(msg_id, params)
        except JsonRpcError as e:
            return format_error(msg_id, e.code, e.message, e.data)
        except Exception as e:
            self._log(f"Error in method {method}: {e!r}\n{traceback.format_exc().rstrip()}")
            return format_error(msg_id, INTERNAL_ERROR, f"internal error in method {method}")

    def _record_trace(self, write: Callable[..., None], *args: Any) -> None:
        # Trace failures never affect routing
        try:
            write(*args)
        except OSError as e:
            self._log(f"Trace write failed: {e!r}")

    def route_notification(self, method: str, params: Any) -> None:
        """Route a notification. Nothing is ever sent back.

        Unknown methods are ignored and handler failures are logged and
        absorbed. The exit notification terminates the process.

        Args:
            method: Method name.
            params: Notification params.
        """
        if self._trace:
            self._record_trace(self._trace.log_notification, method, params)

        handler = self._registry.notification_handler(method)
        if handler is None:
            return

        try:
            handler(params)
        except Exception as e:
            self._log(f"Error in notification {method}: {e!r}")

    def _handle_initialize(self, msg_id: Any, params: Any) -> dict[str, Any]:
        result = self._lifecycle.handle_initialize(params)
        client = self._lifecycle.client_info or {}
        name = client.get("name", "unknown client")
        self._log(f"Initialized by {name} {client.get('version', '')}".rstrip())
        return format_response(msg_id, result)

    def _handle_shutdown(self, msg_id: Any, params: Any) -> dict[str, Any]:
        self._lifecycle.handle_shutdown()
        return format_response(msg_id, None)

    def _handle_exit(self, params: Any) -> None:
        self._terminate(self._lifecycle.exit_code)

    def _handle_did_open(self, params: Any) -> None:
        self._documents.open(decode_did_open(params))

    def _handle_did_change(self, params: Any) -> None:
        self._documents.change(decode_did_change(params))

    def _handle_did_close(self, params: Any) -> None:
        self._documents.close(decode_did_close(params))

    def close(self) -> None:
        """Close the server and release the trace log."""
        if self._trace:
            self._trace.close()

    def __enter__(self) -> LanguageServer:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()
