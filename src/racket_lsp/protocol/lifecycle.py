"""LSP lifecycle management.

Handles the initialize/shutdown/exit sequence and builds the capabilities
document advertised to the client.

The lifecycle is permissive: requests that arrive before ``initialize`` or
after ``shutdown`` are still routed. The state only decides the capabilities
answer and the exit code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from racket_lsp.protocol.params import decode_initialize

# TextDocumentSyncKind.Incremental
SYNC_INCREMENTAL = 2

EXECUTE_COMMANDS = ["racket"]


class LifecycleState(Enum):
    """LSP server lifecycle states."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    SHUTTING_DOWN = "shutting_down"


def supports_prepare_rename(client_capabilities: dict[str, Any]) -> bool:
    """Check whether the client declared ``textDocument.rename.prepareSupport``."""
    text_document = client_capabilities.get("textDocument")
    if not isinstance(text_document, dict):
        return False
    rename = text_document.get("rename")
    if not isinstance(rename, dict):
        return False
    return rename.get("prepareSupport") is True


def build_server_capabilities(client_capabilities: dict[str, Any]) -> dict[str, Any]:
    """Build the server capabilities document for an initialize response.

    Args:
        client_capabilities: Capabilities object sent by the client.

    Returns:
        ServerCapabilities document.
    """
    if supports_prepare_rename(client_capabilities):
        rename_provider: bool | dict[str, Any] = {"prepareProvider": True}
    else:
        rename_provider = True

    return {
        "textDocumentSync": {
            "openClose": True,
            "change": SYNC_INCREMENTAL,
            "willSave": False,
            "willSaveWaitUntil": False,
        },
        "hoverProvider": True,
        "codeActionProvider": True,
        "definitionProvider": True,
        "referencesProvider": True,
        "completionProvider": {"triggerCharacters": ["("]},
        "signatureHelpProvider": {"triggerCharacters": [" ", ")", "]"]},
        "inlayHintProvider": True,
        "renameProvider": rename_provider,
        "documentHighlightProvider": True,
        "documentSymbolProvider": True,
        "documentFormattingProvider": True,
        "documentRangeFormattingProvider": True,
        "codeLensProvider": {},
        "executeCommandProvider": {"commands": list(EXECUTE_COMMANDS)},
        "documentOnTypeFormattingProvider": {
            "firstTriggerCharacter": ")",
            "moreTriggerCharacter": ["\n", "]"],
        },
    }


@dataclass
class LifecycleManager:
    """Tracks the LSP lifecycle state of a single server.

    Transitions only move forward: UNINITIALIZED -> INITIALIZED on the first
    successful initialize, and any state -> SHUTTING_DOWN on shutdown.
    """

    server_info: dict[str, str] = field(
        default_factory=lambda: {"name": "racket-langserver", "version": "1.0.0"}
    )
    state: LifecycleState = LifecycleState.UNINITIALIZED
    client_info: dict[str, Any] | None = None
    # Kept separately so that a shutdown before initialize does not hide
    # whether initialize ever succeeded.
    _initialized: bool = field(default=False, repr=False)

    @property
    def initialized(self) -> bool:
        """True once an initialize request has succeeded."""
        return self._initialized

    @property
    def shutting_down(self) -> bool:
        """True once a shutdown request has been received."""
        return self.state == LifecycleState.SHUTTING_DOWN

    @property
    def exit_code(self) -> int:
        """Process exit status for the ``exit`` notification."""
        return 0 if self.shutting_down else 1

    def handle_initialize(self, params: Any) -> dict[str, Any]:
        """Handle initialize request.

        Args:
            params: Initialize request parameters.

        Returns:
            Initialize response result.

        Raises:
            ParamShapeError: If processId or capabilities are malformed.
        """
        decoded = decode_initialize(params)

        self.client_info = decoded.client_info
        capabilities = build_server_capabilities(decoded.capabilities)

        self._initialized = True
        if self.state == LifecycleState.UNINITIALIZED:
            self.state = LifecycleState.INITIALIZED

        return {"capabilities": capabilities, "serverInfo": dict(self.server_info)}

    def handle_shutdown(self) -> None:
        """Handle shutdown request."""
        self.state = LifecycleState.SHUTTING_DOWN
