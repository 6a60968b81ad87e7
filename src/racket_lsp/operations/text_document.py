"""textDocument/* request handlers.

Each handler decodes its params (raising ``ParamShapeError`` on a shape
mismatch) and delegates to the matching ``LanguageBackend`` method.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from racket_lsp.operations.base import LanguageBackend
from racket_lsp.protocol import params as p
from racket_lsp.protocol.jsonrpc import format_response

RequestHandler = Callable[[Any, Any], dict[str, Any]]

# method -> (params decoder, backend method name)
TEXT_DOCUMENT_REQUESTS: dict[str, tuple[Callable[[Any, str], Any], str]] = {
    "textDocument/hover": (p.decode_text_document_position, "hover"),
    "textDocument/codeAction": (p.decode_code_action, "code_action"),
    "textDocument/completion": (p.decode_text_document_position, "completion"),
    "textDocument/signatureHelp": (p.decode_text_document_position, "signature_help"),
    "textDocument/definition": (p.decode_text_document_position, "definition"),
    "textDocument/documentHighlight": (p.decode_text_document_position, "document_highlight"),
    "textDocument/references": (p.decode_references, "references"),
    "textDocument/documentSymbol": (p.decode_document, "document_symbol"),
    "textDocument/inlayHint": (p.decode_range_params, "inlay_hint"),
    "textDocument/rename": (p.decode_rename, "rename"),
    "textDocument/prepareRename": (p.decode_text_document_position, "prepare_rename"),
    "textDocument/formatting": (p.decode_formatting, "formatting"),
    "textDocument/rangeFormatting": (p.decode_range_formatting, "range_formatting"),
    "textDocument/onTypeFormatting": (p.decode_on_type_formatting, "on_type_formatting"),
    "textDocument/codeLens": (p.decode_document, "code_lens"),
}


def make_handler(
    method: str,
    decode: Callable[[Any, str], Any],
    operation: Callable[[Any], Any],
) -> RequestHandler:
    """Bind a decoder and a backend operation into a request handler."""

    def handler(msg_id: Any, params: Any) -> dict[str, Any]:
        decoded = decode(params, method)
        return format_response(msg_id, operation(decoded))

    return handler


def text_document_handlers(backend: LanguageBackend) -> dict[str, RequestHandler]:
    """Build the request handlers for every textDocument/* method.

    Args:
        backend: Backend the handlers delegate to.

    Returns:
        Mapping of method name to handler.
    """
    return {
        method: make_handler(method, decode, getattr(backend, operation))
        for method, (decode, operation) in TEXT_DOCUMENT_REQUESTS.items()
    }
