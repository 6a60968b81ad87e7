"""Schema-validating decoders for LSP request and notification params.

Each ``decode_*`` function takes the raw ``params`` value of a message and
either returns a frozen dataclass or raises ``ParamShapeError``, which the
request router turns into an ``INVALID_PARAMS`` response.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from racket_lsp.protocol.jsonrpc import ParamShapeError


def describe(value: Any) -> str:
    """Render a received value for an error message."""
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError):
        return repr(value)


def _expect_object(params: Any, method: str) -> dict[str, Any]:
    if not isinstance(params, dict):
        raise ParamShapeError(
            f"invalid params for {method}: expected an object, got {describe(params)}"
        )
    return params


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


@dataclass(frozen=True)
class Position:
    """Zero-based line and UTF-16 character offset."""

    line: int
    character: int


@dataclass(frozen=True)
class Range:
    """Half-open range between two positions."""

    start: Position
    end: Position


@dataclass(frozen=True)
class DocumentParams:
    uri: str


@dataclass(frozen=True)
class TextDocumentPositionParams:
    uri: str
    position: Position


@dataclass(frozen=True)
class RangeParams:
    uri: str
    range: Range


@dataclass(frozen=True)
class ReferenceParams:
    uri: str
    position: Position
    include_declaration: bool


@dataclass(frozen=True)
class RenameParams:
    uri: str
    position: Position
    new_name: str


@dataclass(frozen=True)
class CodeActionParams:
    uri: str
    range: Range
    context: dict[str, Any]


@dataclass(frozen=True)
class FormattingOptions:
    tab_size: int
    insert_spaces: bool
    extra: dict[str, Any]


@dataclass(frozen=True)
class DocumentFormattingParams:
    uri: str
    options: FormattingOptions


@dataclass(frozen=True)
class DocumentRangeFormattingParams:
    uri: str
    range: Range
    options: FormattingOptions


@dataclass(frozen=True)
class DocumentOnTypeFormattingParams:
    uri: str
    position: Position
    ch: str
    options: FormattingOptions


@dataclass(frozen=True)
class InitializeParams:
    capabilities: dict[str, Any]
    client_info: dict[str, Any] | None = None


@dataclass(frozen=True)
class ExecuteCommandParams:
    command: Any
    uri: str
    work_done_token: Any


@dataclass(frozen=True)
class ContentChange:
    """One entry of ``contentChanges``; ``range`` is None for a full replacement."""

    text: str
    range: Range | None = None


@dataclass(frozen=True)
class DidOpenParams:
    uri: str
    language_id: str
    version: int
    text: str


@dataclass(frozen=True)
class DidChangeParams:
    uri: str
    version: int | None
    changes: tuple[ContentChange, ...]


@dataclass(frozen=True)
class DidCloseParams:
    uri: str


def decode_position(value: Any) -> Position:
    """Decode an LSP ``Position`` object."""
    if (
        isinstance(value, dict)
        and _is_int(value.get("line"))
        and _is_int(value.get("character"))
        and value["line"] >= 0
        and value["character"] >= 0
    ):
        return Position(line=value["line"], character=value["character"])
    raise ParamShapeError(f"invalid position: {describe(value)}")


def decode_range(value: Any) -> Range:
    """Decode an LSP ``Range`` object."""
    if not isinstance(value, dict):
        raise ParamShapeError(f"invalid range: {describe(value)}")
    return Range(start=decode_position(value.get("start")), end=decode_position(value.get("end")))


def decode_text_document_uri(params: dict[str, Any]) -> str:
    """Extract ``textDocument.uri`` from a params object."""
    text_document = params.get("textDocument")
    if isinstance(text_document, dict) and isinstance(text_document.get("uri"), str):
        return text_document["uri"]
    raise ParamShapeError(f"invalid textDocument: {describe(text_document)}")


def decode_formatting_options(value: Any) -> FormattingOptions:
    """Decode LSP ``FormattingOptions``; unknown keys are kept in ``extra``."""
    if (
        isinstance(value, dict)
        and _is_int(value.get("tabSize"))
        and isinstance(value.get("insertSpaces"), bool)
    ):
        extra = {k: v for k, v in value.items() if k not in ("tabSize", "insertSpaces")}
        return FormattingOptions(
            tab_size=value["tabSize"], insert_spaces=value["insertSpaces"], extra=extra
        )
    raise ParamShapeError(f"invalid formatting options: {describe(value)}")


def decode_document(params: Any, method: str) -> DocumentParams:
    params = _expect_object(params, method)
    return DocumentParams(uri=decode_text_document_uri(params))


def decode_text_document_position(params: Any, method: str) -> TextDocumentPositionParams:
    params = _expect_object(params, method)
    return TextDocumentPositionParams(
        uri=decode_text_document_uri(params),
        position=decode_position(params.get("position")),
    )


def decode_range_params(params: Any, method: str) -> RangeParams:
    params = _expect_object(params, method)
    return RangeParams(
        uri=decode_text_document_uri(params), range=decode_range(params.get("range"))
    )


def decode_references(params: Any, method: str) -> ReferenceParams:
    params = _expect_object(params, method)
    context = params.get("context")
    if not isinstance(context, dict) or not isinstance(context.get("includeDeclaration"), bool):
        raise ParamShapeError(f"invalid reference context: {describe(context)}")
    return ReferenceParams(
        uri=decode_text_document_uri(params),
        position=decode_position(params.get("position")),
        include_declaration=context["includeDeclaration"],
    )


def decode_rename(params: Any, method: str) -> RenameParams:
    params = _expect_object(params, method)
    new_name = params.get("newName")
    if not isinstance(new_name, str):
        raise ParamShapeError(f"invalid newName: {describe(new_name)}")
    return RenameParams(
        uri=decode_text_document_uri(params),
        position=decode_position(params.get("position")),
        new_name=new_name,
    )


def decode_code_action(params: Any, method: str) -> CodeActionParams:
    params = _expect_object(params, method)
    context = params.get("context")
    if not isinstance(context, dict) or not isinstance(context.get("diagnostics"), list):
        raise ParamShapeError(f"invalid code action context: {describe(context)}")
    return CodeActionParams(
        uri=decode_text_document_uri(params),
        range=decode_range(params.get("range")),
        context=context,
    )


def decode_formatting(params: Any, method: str) -> DocumentFormattingParams:
    params = _expect_object(params, method)
    return DocumentFormattingParams(
        uri=decode_text_document_uri(params),
        options=decode_formatting_options(params.get("options")),
    )


def decode_range_formatting(params: Any, method: str) -> DocumentRangeFormattingParams:
    params = _expect_object(params, method)
    return DocumentRangeFormattingParams(
        uri=decode_text_document_uri(params),
        range=decode_range(params.get("range")),
        options=decode_formatting_options(params.get("options")),
    )


def decode_on_type_formatting(params: Any, method: str) -> DocumentOnTypeFormattingParams:
    params = _expect_object(params, method)
    ch = params.get("ch")
    if not isinstance(ch, str):
        raise ParamShapeError(f"invalid ch: {describe(ch)}")
    return DocumentOnTypeFormattingParams(
        uri=decode_text_document_uri(params),
        position=decode_position(params.get("position")),
        ch=ch,
        options=decode_formatting_options(params.get("options")),
    )


def decode_initialize(params: Any) -> InitializeParams:
    """Decode ``initialize`` params.

    ``processId`` must be present and be a number or null; ``capabilities``
    must be an object.
    """
    params = _expect_object(params, "initialize")
    process_id = params.get("processId")
    capabilities = params.get("capabilities")
    if "processId" not in params or not (process_id is None or _is_number(process_id)):
        raise ParamShapeError(f"invalid processId: {describe(process_id)}")
    if not isinstance(capabilities, dict):
        raise ParamShapeError(f"invalid capabilities: {describe(capabilities)}")

    client_info = params.get("clientInfo")
    return InitializeParams(
        capabilities=capabilities,
        client_info=client_info if isinstance(client_info, dict) else None,
    )


def decode_execute_command(params: Any) -> ExecuteCommandParams:
    """Decode ``workspace/executeCommand`` params.

    ``arguments`` must hold exactly one URI string; ``command`` and
    ``workDoneToken`` only have to be present.
    """
    if isinstance(params, dict) and "command" in params and "workDoneToken" in params:
        arguments = params.get("arguments")
        if isinstance(arguments, list) and len(arguments) == 1 and isinstance(arguments[0], str):
            return ExecuteCommandParams(
                command=params["command"],
                uri=arguments[0],
                work_done_token=params["workDoneToken"],
            )
    raise ParamShapeError(f"invalid params for workspace/executeCommand: {describe(params)}")


def decode_did_open(params: Any) -> DidOpenParams:
    params = _expect_object(params, "textDocument/didOpen")
    document = params.get("textDocument")
    if (
        isinstance(document, dict)
        and isinstance(document.get("uri"), str)
        and isinstance(document.get("text"), str)
    ):
        version = document.get("version")
        language_id = document.get("languageId")
        return DidOpenParams(
            uri=document["uri"],
            language_id=language_id if isinstance(language_id, str) else "",
            version=version if _is_int(version) else 0,
            text=document["text"],
        )
    raise ParamShapeError(f"invalid textDocument: {describe(document)}")


def decode_did_change(params: Any) -> DidChangeParams:
    params = _expect_object(params, "textDocument/didChange")
    uri = decode_text_document_uri(params)
    version = params["textDocument"].get("version")
    raw_changes = params.get("contentChanges")
    if not isinstance(raw_changes, list):
        raise ParamShapeError(f"invalid contentChanges: {describe(raw_changes)}")

    changes = []
    for change in raw_changes:
        if not isinstance(change, dict) or not isinstance(change.get("text"), str):
            raise ParamShapeError(f"invalid content change: {describe(change)}")
        change_range = decode_range(change["range"]) if "range" in change else None
        changes.append(ContentChange(text=change["text"], range=change_range))

    return DidChangeParams(
        uri=uri, version=version if _is_int(version) else None, changes=tuple(changes)
    )


def decode_did_close(params: Any) -> DidCloseParams:
    params = _expect_object(params, "textDocument/didClose")
    return DidCloseParams(uri=decode_text_document_uri(params))
