"""Language backend base class.

Defines the interface that the language-analysis side of the server must
implement. The dispatcher decodes and validates params, then calls exactly
one backend method per request and sends back whatever it returns as the
``result`` of the response.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from racket_lsp.operations.documents import DocumentStore
from racket_lsp.protocol.params import (
    CodeActionParams,
    DocumentFormattingParams,
    DocumentOnTypeFormattingParams,
    DocumentParams,
    DocumentRangeFormattingParams,
    RangeParams,
    ReferenceParams,
    RenameParams,
    TextDocumentPositionParams,
)


class LanguageBackend(ABC):
    """Abstract base class for language-analysis backends.

    Results must already be in LSP wire shape (plain dicts, lists, None).
    A backend may raise any exception; the request router reports it to the
    client as an internal error without leaking the detail.

    Example:
        class WordBackend(LanguageBackend):
            def hover(self, params):
                document = self.documents.get(params.uri)
                ...
    """

    def __init__(self) -> None:
        self.documents = DocumentStore()

    def attach(self, documents: DocumentStore) -> None:
        """Share the server's open-document store with this backend."""
        self.documents = documents

    @abstractmethod
    def hover(self, params: TextDocumentPositionParams) -> dict[str, Any] | None:
        """Return a ``Hover`` or None."""

    @abstractmethod
    def code_action(self, params: CodeActionParams) -> list[dict[str, Any]] | None:
        """Return a list of ``CodeAction`` or ``Command``, or None."""

    @abstractmethod
    def completion(self, params: TextDocumentPositionParams) -> Any:
        """Return a list of ``CompletionItem`` or a ``CompletionList``."""

    @abstractmethod
    def signature_help(self, params: TextDocumentPositionParams) -> dict[str, Any] | None:
        """Return a ``SignatureHelp`` or None."""

    @abstractmethod
    def definition(self, params: TextDocumentPositionParams) -> Any:
        """Return a ``Location``, a list of them, or None."""

    @abstractmethod
    def document_highlight(self, params: TextDocumentPositionParams) -> list[dict[str, Any]] | None:
        """Return a list of ``DocumentHighlight`` or None."""

    @abstractmethod
    def references(self, params: ReferenceParams) -> list[dict[str, Any]] | None:
        """Return a list of ``Location`` or None."""

    @abstractmethod
    def document_symbol(self, params: DocumentParams) -> list[dict[str, Any]] | None:
        """Return a list of ``DocumentSymbol`` or ``SymbolInformation``, or None."""

    @abstractmethod
    def inlay_hint(self, params: RangeParams) -> list[dict[str, Any]] | None:
        """Return a list of ``InlayHint`` or None."""

    @abstractmethod
    def rename(self, params: RenameParams) -> dict[str, Any] | None:
        """Return a ``WorkspaceEdit`` or None."""

    @abstractmethod
    def prepare_rename(self, params: TextDocumentPositionParams) -> dict[str, Any] | None:
        """Return the ``Range`` to rename (optionally with a placeholder), or None."""

    @abstractmethod
    def formatting(self, params: DocumentFormattingParams) -> list[dict[str, Any]] | None:
        """Return a list of ``TextEdit``."""

    @abstractmethod
    def range_formatting(
        self, params: DocumentRangeFormattingParams
    ) -> list[dict[str, Any]] | None:
        """Return a list of ``TextEdit`` for the range."""

    @abstractmethod
    def on_type_formatting(
        self, params: DocumentOnTypeFormattingParams
    ) -> list[dict[str, Any]] | None:
        """Return a list of ``TextEdit`` triggered by the typed character."""

    @abstractmethod
    def code_lens(self, params: DocumentParams) -> list[dict[str, Any]] | None:
        """Return a list of ``CodeLens`` or None."""


class NullBackend(LanguageBackend):
    """Backend that answers every request with an empty result."""

    def hover(self, params: TextDocumentPositionParams) -> None:
        return None

    def code_action(self, params: CodeActionParams) -> list[dict[str, Any]]:
        return []

    def completion(self, params: TextDocumentPositionParams) -> list[dict[str, Any]]:
        return []

    def signature_help(self, params: TextDocumentPositionParams) -> None:
        return None

    def definition(self, params: TextDocumentPositionParams) -> None:
        return None

    def document_highlight(self, params: TextDocumentPositionParams) -> list[dict[str, Any]]:
        return []

    def references(self, params: ReferenceParams) -> list[dict[str, Any]]:
        return []

    def document_symbol(self, params: DocumentParams) -> list[dict[str, Any]]:
        return []

    def inlay_hint(self, params: RangeParams) -> list[dict[str, Any]]:
        return []

    def rename(self, params: RenameParams) -> None:
        return None

    def prepare_rename(self, params: TextDocumentPositionParams) -> None:
        return None

    def formatting(self, params: DocumentFormattingParams) -> list[dict[str, Any]]:
        return []

    def range_formatting(self, params: DocumentRangeFormattingParams) -> list[dict[str, Any]]:
        return []

    def on_type_formatting(self, params: DocumentOnTypeFormattingParams) -> list[dict[str, Any]]:
        return []

    def code_lens(self, params: DocumentParams) -> list[dict[str, Any]]:
        return []
