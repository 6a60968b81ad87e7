"""Open-document store fed by didOpen/didChange/didClose notifications."""

from __future__ import annotations

from dataclasses import dataclass

from racket_lsp.protocol.params import (
    ContentChange,
    DidChangeParams,
    DidCloseParams,
    DidOpenParams,
    Position,
)


def _utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


@dataclass
class TextDocument:
    """An open text document as last synchronized by the client."""

    uri: str
    language_id: str
    version: int
    text: str

    def offset_at(self, position: Position) -> int:
        """Convert an LSP position to an index into ``text``.

        Characters are counted in UTF-16 code units. Positions past the end
        of a line clamp to the line end; lines past the end clamp to the end
        of the document.
        """
        lines = self.text.splitlines(keepends=True)
        if position.line >= len(lines):
            return len(self.text)

        offset = sum(len(line) for line in lines[: position.line])
        line = lines[position.line].rstrip("\r\n")
        units = 0
        for index, char in enumerate(line):
            if units >= position.character:
                return offset + index
            units += _utf16_length(char)
        return offset + len(line)

    def apply_change(self, change: ContentChange) -> None:
        """Apply one content change, either incremental or a full replacement."""
        if change.range is None:
            self.text = change.text
            return
        start = self.offset_at(change.range.start)
        end = max(start, self.offset_at(change.range.end))
        self.text = self.text[:start] + change.text + self.text[end:]


class DocumentStore:
    """Tracks the text of every document the client has opened."""

    def __init__(self) -> None:
        self._documents: dict[str, TextDocument] = {}

    def __contains__(self, uri: object) -> bool:
        return uri in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def get(self, uri: str) -> TextDocument | None:
        """Return the open document for a URI, or None."""
        return self._documents.get(uri)

    def open(self, params: DidOpenParams) -> TextDocument:
        document = TextDocument(
            uri=params.uri,
            language_id=params.language_id,
            version=params.version,
            text=params.text,
        )
        self._documents[params.uri] = document
        return document

    def change(self, params: DidChangeParams) -> TextDocument:
        """Apply content changes in order.

        Raises:
            KeyError: If the document was never opened.
        """
        document = self._documents[params.uri]
        for change in params.changes:
            document.apply_change(change)
        if params.version is not None:
            document.version = params.version
        return document

    def close(self, params: DidCloseParams) -> None:
        self._documents.pop(params.uri, None)
