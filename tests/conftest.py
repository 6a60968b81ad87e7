"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from racket_lsp.server import LanguageServer


class RecordingRunner:
    """Process runner that records argv instead of starting a program."""

    def __init__(self, output: str = "") -> None:
        self.output = output
        self.calls: list[list[str]] = []

    def run(self, argv: list[str]) -> str:
        self.calls.append(list(argv))
        return self.output


def make_request(msg_id: Any, method: str, params: Any | None = None) -> dict[str, Any]:
    """Build a request message."""
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": msg_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


def make_notification(method: str, params: Any | None = None) -> dict[str, Any]:
    """Build a notification message."""
    message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if params is not None:
        message["params"] = params
    return message


INITIALIZE_PARAMS = {"processId": 1234, "rootUri": "file:///project", "capabilities": {}}


@pytest.fixture
def responses() -> list[dict[str, Any]]:
    """Collect every response the server emits."""
    return []


@pytest.fixture
def log_lines() -> list[str]:
    """Collect diagnostic log lines."""
    return []


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner(output="opened\n")


@pytest.fixture
def server(
    responses: list[dict[str, Any]], log_lines: list[str], runner: RecordingRunner
) -> LanguageServer:
    """Create a server that records responses and log lines."""
    return LanguageServer(emit=responses.append, log=log_lines.append, runner=runner)


@pytest.fixture
def initialized_server(server: LanguageServer, responses: list[dict[str, Any]]) -> LanguageServer:
    """Create a server that has answered initialize."""
    server.process(make_request(0, "initialize", INITIALIZE_PARAMS))
    responses.clear()
    return server
