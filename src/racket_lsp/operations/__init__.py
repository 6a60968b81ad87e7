"""Operations: handler registry, language backend contract and built-in handlers."""

from racket_lsp.operations.base import LanguageBackend, NullBackend
from racket_lsp.operations.commands import CommandExecutor, ProcessRunner
from racket_lsp.operations.documents import DocumentStore, TextDocument
from racket_lsp.operations.registry import (
    NOTIFICATION_METHODS,
    REQUEST_METHODS,
    OperationRegistry,
)

__all__ = [
    "CommandExecutor",
    "DocumentStore",
    "LanguageBackend",
    "NOTIFICATION_METHODS",
    "NullBackend",
    "OperationRegistry",
    "ProcessRunner",
    "REQUEST_METHODS",
    "TextDocument",
]
