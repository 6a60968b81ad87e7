"""Tests for the language server dispatch core."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from racket_lsp.config import ServerConfig
from racket_lsp.operations.base import NullBackend
from racket_lsp.operations.registry import NOTIFICATION_METHODS, REQUEST_METHODS
from racket_lsp.protocol.jsonrpc import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
)
from racket_lsp.protocol.lifecycle import LifecycleState
from racket_lsp.server import LanguageServer
from racket_lsp.trace import TraceLogger
from conftest import INITIALIZE_PARAMS, make_notification, make_request

HOVER_PARAMS = {
    "textDocument": {"uri": "file:///a.rkt"},
    "position": {"line": 0, "character": 1},
}


class FailingBackend(NullBackend):
    """Backend whose hover always fails."""

    def hover(self, params):
        raise RuntimeError("secret detail: /home/user/.ssh")


class EchoBackend(NullBackend):
    """Backend that echoes the decoded hover params."""

    def hover(self, params):
        document = self.documents.get(params.uri)
        return {
            "contents": document.text if document else "",
            "line": params.position.line,
        }


class TestRequestRouting:
    """Tests for request routing."""

    def test_handles_initialize(self, server: LanguageServer, responses: list):
        """Should answer initialize with the capabilities document."""
        server.process(make_request(1, "initialize", INITIALIZE_PARAMS))

        assert len(responses) == 1
        assert responses[0]["id"] == 1
        assert responses[0]["result"]["capabilities"]["renameProvider"] is True
        assert server.lifecycle.state == LifecycleState.INITIALIZED

    def test_initialize_logs_client(self, server: LanguageServer, log_lines: list):
        """Should log the client named in clientInfo."""
        params = {"processId": 7.0, "capabilities": {}, "clientInfo": {"name": "DrRacket", "version": "8.12"}}

        server.process(make_request(1, "initialize", params))

        assert log_lines == ["Initialized by DrRacket 8.12"]

    def test_initialize_with_prepare_support(self, server: LanguageServer, responses: list):
        """Should negotiate prepareRename support from client capabilities."""
        params = {
            "processId": None,
            "capabilities": {"textDocument": {"rename": {"prepareSupport": True}}},
        }
        server.process(make_request("init", "initialize", params))

        assert responses[0]["result"]["capabilities"]["renameProvider"] == {"prepareProvider": True}

    def test_initialize_with_bad_params(self, server: LanguageServer, responses: list):
        """Should answer INVALID_PARAMS and stay uninitialized."""
        server.process(make_request(1, "initialize", {"processId": "x", "capabilities": {}}))

        assert responses[0]["id"] == 1
        assert responses[0]["error"]["code"] == INVALID_PARAMS
        assert server.lifecycle.initialized is False

    def test_handles_shutdown(self, initialized_server: LanguageServer, responses: list):
        """Should answer shutdown with a null result."""
        initialized_server.process(make_request(5, "shutdown"))

        assert responses == [{"jsonrpc": "2.0", "id": 5, "result": None}]
        assert initialized_server.lifecycle.shutting_down is True

    def test_unknown_method(self, server: LanguageServer, responses: list):
        """Should return METHOD_NOT_FOUND naming the method."""
        server.process(make_request(7, "nonexistent"))

        assert responses[0]["id"] == 7
        assert responses[0]["error"]["code"] == METHOD_NOT_FOUND
        assert "nonexistent" in responses[0]["error"]["message"]

    def test_notification_method_sent_as_request(self, server: LanguageServer, responses: list):
        """Should not route notification methods from the request table."""
        server.process(make_request(3, "textDocument/didClose", {"textDocument": {"uri": "x"}}))

        assert responses[0]["error"]["code"] == METHOD_NOT_FOUND

    def test_routes_to_backend(self, responses: list):
        """Should pass decoded params to the backend."""
        server = LanguageServer(emit=responses.append, backend=EchoBackend())
        server.process(
            make_notification(
                "textDocument/didOpen",
                {
                    "textDocument": {
                        "uri": "file:///a.rkt",
                        "languageId": "racket",
                        "version": 1,
                        "text": "(define x 1)",
                    }
                },
            )
        )
        server.process(make_request(2, "textDocument/hover", HOVER_PARAMS))

        assert responses == [
            {"jsonrpc": "2.0", "id": 2, "result": {"contents": "(define x 1)", "line": 0}}
        ]

    def test_bad_params_yield_invalid_params(self, server: LanguageServer, responses: list):
        """Should report handler param validation failures as INVALID_PARAMS."""
        server.process(make_request(4, "textDocument/hover", {"textDocument": {}}))

        assert responses[0]["id"] == 4
        assert responses[0]["error"]["code"] == INVALID_PARAMS

    def test_every_supported_request_is_routed(self, server: LanguageServer, responses: list):
        """Should never answer METHOD_NOT_FOUND for a supported method."""
        for index, method in enumerate(sorted(REQUEST_METHODS - {"workspace/executeCommand"})):
            server.process(make_request(index, method, {}))

        assert len(responses) == len(REQUEST_METHODS) - 1
        for response in responses:
            if "error" in response:
                assert response["error"]["code"] != METHOD_NOT_FOUND

    def test_registry_matches_supported_methods(self, server: LanguageServer):
        """Should register exactly the supported request and notification methods."""
        assert server.registry.request_methods == REQUEST_METHODS
        assert server.registry.notification_methods == NOTIFICATION_METHODS


class TestErrorContainment:
    """Tests for converting handler failures to INTERNAL_ERROR."""

    @pytest.fixture
    def failing_server(self, responses: list, log_lines: list) -> LanguageServer:
        return LanguageServer(emit=responses.append, backend=FailingBackend(), log=log_lines.append)

    def test_internal_error_keeps_id(self, failing_server: LanguageServer, responses: list):
        """Should answer INTERNAL_ERROR with the original id."""
        failing_server.process(make_request("abc", "textDocument/hover", HOVER_PARAMS))

        assert responses == [
            {
                "jsonrpc": "2.0",
                "id": "abc",
                "error": {
                    "code": INTERNAL_ERROR,
                    "message": "internal error in method textDocument/hover",
                },
            }
        ]

    def test_internal_error_does_not_leak_detail(self, failing_server: LanguageServer, responses: list):
        """Should keep the failure detail out of the response."""
        failing_server.process(make_request(1, "textDocument/hover", HOVER_PARAMS))

        assert "secret" not in json.dumps(responses)

    def test_internal_error_is_logged(self, failing_server: LanguageServer, log_lines: list):
        """Should log the method and failure detail to the diagnostic log."""
        failing_server.process(make_request(1, "textDocument/hover", HOVER_PARAMS))

        assert len(log_lines) == 1
        assert "textDocument/hover" in log_lines[0]
        assert "secret detail" in log_lines[0]
        assert "RuntimeError" in log_lines[0]

    def test_server_keeps_working_after_failure(self, failing_server: LanguageServer, responses: list):
        """Should continue processing later messages."""
        failing_server.process(make_request(1, "textDocument/hover", HOVER_PARAMS))
        failing_server.process(make_request(2, "shutdown"))

        assert responses[1] == {"jsonrpc": "2.0", "id": 2, "result": None}


class TestInvalidMessages:
    """Tests for messages that are not valid requests."""

    def test_empty_batch(self, server: LanguageServer, responses: list):
        """Should answer an empty batch with one INVALID_REQUEST and null id."""
        server.process([])

        assert len(responses) == 1
        assert responses[0]["id"] is None
        assert responses[0]["error"]["code"] == INVALID_REQUEST

    def test_missing_method_without_id(self, server: LanguageServer, responses: list):
        """Should answer with a null id."""
        server.process({"jsonrpc": "2.0", "params": {}})

        assert responses[0]["id"] is None
        assert responses[0]["error"]["code"] == INVALID_REQUEST

    def test_missing_method_with_id(self, server: LanguageServer, responses: list):
        """Should surface the original id."""
        server.process({"jsonrpc": "2.0", "id": 9})

        assert responses[0]["id"] == 9
        assert responses[0]["error"]["code"] == INVALID_REQUEST

    def test_missing_method_with_bad_id(self, server: LanguageServer, responses: list):
        """Should use a null id when the id is not a number or string."""
        server.process({"id": [1]})

        assert responses[0]["id"] is None

    @pytest.mark.parametrize("value", ["text", 3, None, [1, 2]])
    def test_non_object_values(self, server: LanguageServer, responses: list, value: Any):
        """Should answer non-object values with INVALID_REQUEST."""
        server.process(value)

        assert responses == [
            {
                "jsonrpc": "2.0",
                "id": None,
                "error": {
                    "code": INVALID_REQUEST,
                    "message": "The JSON sent is not a valid request object.",
                },
            }
        ]


class TestBatches:
    """Tests for batch processing."""

    def test_responses_follow_request_order(self, server: LanguageServer, responses: list):
        """Should emit one response per request, in batch order."""
        server.process(
            [
                make_request(1, "initialize", INITIALIZE_PARAMS),
                make_notification("textDocument/didClose", {"textDocument": {"uri": "x"}}),
                make_request(2, "nonexistent"),
                make_notification("unknown/notification"),
                make_request(3, "shutdown"),
            ]
        )

        assert [response["id"] for response in responses] == [1, 2, 3]
        assert "result" in responses[0]
        assert responses[1]["error"]["code"] == METHOD_NOT_FOUND
        assert responses[2]["result"] is None

    def test_batch_of_notifications_emits_nothing(self, server: LanguageServer, responses: list):
        """Should emit nothing for a batch made only of notifications."""
        server.process([make_notification("initialized"), make_notification("$/cancelRequest")])

        assert responses == []

    def test_invalid_member_in_batch(self, server: LanguageServer, responses: list):
        """Should answer an invalid member in place."""
        server.process([make_request(1, "shutdown"), {"id": 2}, make_request(3, "nonexistent")])

        assert [response["id"] for response in responses] == [1, 2, 3]
        assert responses[1]["error"]["code"] == INVALID_REQUEST

    def test_batch_state_changes_apply_in_order(self, server: LanguageServer, responses: list):
        """Should apply lifecycle transitions in batch order."""
        server.process([make_request(1, "shutdown"), make_request(2, "initialize", INITIALIZE_PARAMS)])

        assert server.lifecycle.state == LifecycleState.SHUTTING_DOWN
        assert server.lifecycle.initialized is True


class TestNotifications:
    """Tests for notification routing."""

    def test_unknown_notification_ignored(self, server: LanguageServer, responses: list, log_lines: list):
        """Should silently ignore unknown notifications."""
        server.process(make_notification("workspace/didChangeConfiguration", {"settings": {}}))

        assert responses == []
        assert log_lines == []

    def test_did_open_change_close(self, server: LanguageServer, responses: list):
        """Should keep the document store in sync."""
        uri = "file:///a.rkt"
        server.process(
            make_notification(
                "textDocument/didOpen",
                {"textDocument": {"uri": uri, "languageId": "racket", "version": 1, "text": "(+ 1 2)"}},
            )
        )
        server.process(
            make_notification(
                "textDocument/didChange",
                {
                    "textDocument": {"uri": uri, "version": 2},
                    "contentChanges": [
                        {
                            "range": {
                                "start": {"line": 0, "character": 1},
                                "end": {"line": 0, "character": 2},
                            },
                            "text": "*",
                        }
                    ],
                },
            )
        )

        document = server.documents.get(uri)
        assert document.text == "(* 1 2)"
        assert document.version == 2

        server.process(make_notification("textDocument/didClose", {"textDocument": {"uri": uri}}))

        assert uri not in server.documents
        assert responses == []

    def test_notification_failure_is_absorbed(self, server: LanguageServer, responses: list, log_lines: list):
        """Should log and absorb failures without responding."""
        server.process(
            make_notification(
                "textDocument/didChange",
                {"textDocument": {"uri": "file:///never-opened.rkt"}, "contentChanges": []},
            )
        )
        server.process(make_notification("textDocument/didOpen", {"textDocument": 5}))

        assert responses == []
        assert len(log_lines) == 2
        assert "textDocument/didChange" in log_lines[0]

    def test_notification_with_id_of_wrong_type(self, server: LanguageServer, responses: list):
        """Should treat a boolean id as absent and route as a notification."""
        server.process({"id": True, "method": "shutdown"})

        # shutdown is only registered as a request
        assert responses == []
        assert server.lifecycle.shutting_down is False


class TestExit:
    """Tests for the exit notification."""

    def test_exit_without_shutdown(self, server: LanguageServer):
        """Should terminate with status 1."""
        with pytest.raises(SystemExit) as exc_info:
            server.process(make_notification("exit"))

        assert exc_info.value.code == 1

    def test_exit_after_initialize_without_shutdown(self, initialized_server: LanguageServer):
        """Should terminate with status 1 when only initialized."""
        with pytest.raises(SystemExit) as exc_info:
            initialized_server.process(make_notification("exit"))

        assert exc_info.value.code == 1

    def test_exit_after_shutdown(self, initialized_server: LanguageServer):
        """Should terminate with status 0."""
        initialized_server.process(make_request(2, "shutdown"))

        with pytest.raises(SystemExit) as exc_info:
            initialized_server.process(make_notification("exit"))

        assert exc_info.value.code == 0

    def test_exit_after_shutdown_without_initialize(self, server: LanguageServer):
        """Should terminate with status 0 regardless of initialization."""
        server.process(make_request(1, "shutdown"))

        with pytest.raises(SystemExit) as exc_info:
            server.process(make_notification("exit"))

        assert exc_info.value.code == 0

    def test_exit_inside_batch_stops_processing(self, server: LanguageServer, responses: list):
        """Should terminate immediately, skipping the rest of the batch."""
        with pytest.raises(SystemExit):
            server.process([make_request(1, "shutdown"), make_notification("exit"), make_request(2, "shutdown")])

        assert [response["id"] for response in responses] == [1]

    def test_custom_terminate(self, responses: list):
        """Should call the injected terminate function."""
        codes: list[int] = []
        server = LanguageServer(emit=responses.append, terminate=codes.append)

        server.process(make_notification("exit"))
        server.process(make_request(1, "shutdown"))
        server.process(make_notification("exit"))

        assert codes == [1, 0]


class TestPermissiveLifecycle:
    """Requests outside the initialized window are still routed."""

    def test_hover_before_initialize(self, server: LanguageServer, responses: list):
        """Should route requests received before initialize."""
        server.process(make_request(1, "textDocument/hover", HOVER_PARAMS))

        assert responses == [{"jsonrpc": "2.0", "id": 1, "result": None}]
        assert server.lifecycle.state == LifecycleState.UNINITIALIZED

    def test_hover_after_shutdown(self, initialized_server: LanguageServer, responses: list):
        """Should route requests received after shutdown."""
        initialized_server.process(make_request(1, "shutdown"))
        initialized_server.process(make_request(2, "textDocument/documentSymbol", {"textDocument": {"uri": "u"}}))

        assert responses[1] == {"jsonrpc": "2.0", "id": 2, "result": []}


class TestTracing:
    """Tests for the optional message trace."""

    def test_writes_trace(self, tmp_path: Path, responses: list):
        """Should trace requests, responses and notifications."""
        trace_file = tmp_path / "logs" / "trace.jsonl"
        config = ServerConfig(trace_log_file=str(trace_file), trace_max_string_length=5)

        with LanguageServer(emit=responses.append, config=config) as server:
            server.process(make_request(1, "nonexistent", {"text": "a long document"}))
            server.process(make_notification("initialized"))

        events = [json.loads(line) for line in trace_file.read_text().splitlines()]
        assert [event["type"] for event in events] == ["request", "response", "notification"]
        assert events[0]["params"] == {"text": "[15 chars]"}
        assert events[1]["result_status"] == str(METHOD_NOT_FOUND)

    def test_no_trace_by_default(self, tmp_path: Path, responses: list, monkeypatch):
        """Should not create any trace file without configuration."""
        monkeypatch.chdir(tmp_path)

        with LanguageServer(emit=responses.append) as server:
            server.process(make_request(1, "shutdown"))

        assert list(tmp_path.iterdir()) == []

    def test_trace_write_failure_still_answers(self, tmp_path: Path, responses: list, log_lines: list):
        """Should log trace write errors and still answer the request."""
        config = ServerConfig(trace_log_file=str(tmp_path / "trace.jsonl"))
        disk_full = OSError(28, "No space left on device")

        with (
            patch.object(TraceLogger, "_write_line", side_effect=disk_full),
            LanguageServer(emit=responses.append, config=config, log=log_lines.append) as server,
        ):
            server.process(make_request(7, "shutdown"))
            server.process(make_notification("initialized"))

        assert responses == [{"jsonrpc": "2.0", "id": 7, "result": None}]
        assert len(log_lines) == 3
        assert all("No space left on device" in line for line in log_lines)
