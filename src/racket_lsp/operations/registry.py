"""Operation registry - maps method names to request and notification handlers."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any

RequestHandler = Callable[[Any, Any], dict[str, Any]]
NotificationHandler = Callable[[Any], None]

REQUEST_METHODS = frozenset(
    {
        "initialize",
        "shutdown",
        "textDocument/hover",
        "textDocument/codeAction",
        "textDocument/completion",
        "textDocument/signatureHelp",
        "textDocument/definition",
        "textDocument/documentHighlight",
        "textDocument/references",
        "textDocument/documentSymbol",
        "textDocument/inlayHint",
        "textDocument/rename",
        "textDocument/prepareRename",
        "textDocument/formatting",
        "textDocument/rangeFormatting",
        "textDocument/onTypeFormatting",
        "textDocument/codeLens",
        "workspace/executeCommand",
    }
)

NOTIFICATION_METHODS = frozenset(
    {
        "exit",
        "textDocument/didOpen",
        "textDocument/didClose",
        "textDocument/didChange",
    }
)


class RegistryError(Exception):
    """Raised when the handler tables are inconsistent."""

    pass


class OperationRegistry:
    """Static method tables for requests and notifications.

    Built once when the server starts. Requests produce a response and
    notifications never do, so the two tables are kept apart and may not
    share a method name.
    """

    def __init__(
        self,
        requests: Mapping[str, RequestHandler],
        notifications: Mapping[str, NotificationHandler],
    ) -> None:
        """Initialize the registry.

        Args:
            requests: Request method -> handler ``(msg_id, params) -> response``.
            notifications: Notification method -> handler ``(params) -> None``.

        Raises:
            RegistryError: If a method appears in both tables.
        """
        overlap = set(requests) & set(notifications)
        if overlap:
            raise RegistryError(
                f"Methods registered as both request and notification: {sorted(overlap)}"
            )

        self._requests = MappingProxyType(dict(requests))
        self._notifications = MappingProxyType(dict(notifications))

    @property
    def request_methods(self) -> frozenset[str]:
        return frozenset(self._requests)

    @property
    def notification_methods(self) -> frozenset[str]:
        return frozenset(self._notifications)

    def request_handler(self, method: str) -> RequestHandler | None:
        """Look up a request handler, or None if the method is unknown."""
        return self._requests.get(method)

    def notification_handler(self, method: str) -> NotificationHandler | None:
        """Look up a notification handler, or None if the method is unknown."""
        return self._notifications.get(method)
