"""
Document Store for SentinelLS

Holds the authoritative in-memory text of every document the editor has
open. The store is fed exclusively by the text synchronization handlers
(didOpen / didChange / didClose), so diagnostics and completion always read
the text the user is currently looking at.

Documents are kept as pygls ``TextDocument`` objects so that incremental
content changes and client position encodings are handled by pygls.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from lsprotocol.types import (
    Position,
    TextDocumentContentChangeEvent,
    TextDocumentContentChangeWholeDocument,
)
from pygls.workspace.text_document import TextDocument


# LSP only breaks lines on \n, \r\n and \r (str.splitlines also breaks on
# \x0c, \x85, \u2028 and friends)
LINE_BREAK = re.compile(r"(?<=\n)|(?<=\r)(?!\n)")


def _split_lines(text: str) -> list[str]:
    """Split ``text`` into lines the way LSP clients do, keeping terminators."""
    lines = LINE_BREAK.split(text)
    if lines[-1] == "":
        lines.pop()
    return lines


class DocumentStoreError(Exception):
    """Base class for document store errors."""

    def __init__(self, uri: str) -> None:
        super().__init__(uri)
        self.uri = uri


class DuplicateDocument(DocumentStoreError):
    """Raised when a document is opened twice without being closed."""

    def __str__(self) -> str:
        return f"Document already open: {self.uri}"


class UnknownDocument(DocumentStoreError):
    """Raised when a change targets a document that is not open."""

    def __str__(self) -> str:
        return f"Document not open: {self.uri}"


class DocumentStore:
    """
    In-memory store of open documents keyed by URI.

    Usage:
        store = DocumentStore()
        store.open("file:///policy.sentinel", "import \\"strings\\"\\n")
        store.apply_change("file:///policy.sentinel", change_event, version=2)

        text = store.get("file:///policy.sentinel")
        prefix = store.line_up_to("file:///policy.sentinel", 0, 6)

        store.close("file:///policy.sentinel")
    """

    def __init__(self) -> None:
        self._documents: dict[str, TextDocument] = {}

    def __contains__(self, uri: object) -> bool:
        return uri in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def uris(self) -> Iterator[str]:
        """Iterate over the URIs of all open documents."""
        return iter(list(self._documents))

    def open(self, uri: str, text: str, version: int | None = None) -> None:
        """
        Start tracking a document.

        Raises:
            DuplicateDocument: The URI is already tracked.
        """
        if uri in self._documents:
            raise DuplicateDocument(uri)

        self._documents[uri] = TextDocument(uri, source=text, version=version)

    def apply_change(
        self,
        uri: str,
        change: TextDocumentContentChangeEvent | str,
        version: int | None = None,
    ) -> None:
        """
        Apply a content change to a tracked document.

        ``change`` is either an LSP content change event (ranged or whole
        document) or a plain string that replaces the whole text.

        Raises:
            UnknownDocument: The URI is not tracked.
        """
        document = self._documents.get(uri)
        if document is None:
            raise UnknownDocument(uri)

        if isinstance(change, str):
            change = TextDocumentContentChangeWholeDocument(text=change)

        document.apply_change(change)
        if version is not None:
            document.version = version

    def close(self, uri: str) -> None:
        """Stop tracking a document. Unknown URIs are ignored."""
        self._documents.pop(uri, None)

    def get(self, uri: str) -> str | None:
        """Return the current text of a document, or None if not open."""
        document = self._documents.get(uri)
        if document is None:
            return None
        return document.source

    def version(self, uri: str) -> int | None:
        document = self._documents.get(uri)
        if document is None:
            return None
        return document.version

    def line_up_to(self, uri: str, line: int, character: int) -> str:
        """
        Return the text of ``line`` from column 0 up to ``character``.

        ``character`` is expressed in client position units. Out of range
        lines or characters produce an empty string.
        """
        document = self._documents.get(uri)
        if document is None:
            return ""

        lines = _split_lines(document.source)
        if line < 0 or line >= len(lines) or character < 0:
            return ""

        text = lines[line].rstrip("\r\n")
        codec = document.position_codec
        if character > codec.client_num_units(text):
            return ""

        position = codec.position_from_client_units(
            lines, Position(line=line, character=character)
        )
        return text[: position.character]

    def position_at(self, uri: str, offset: int) -> Position:
        """
        Convert a character offset into an LSP position in client units.

        Offsets are clamped to the bounds of the document.

        Raises:
            UnknownDocument: The URI is not tracked.
        """
        document = self._documents.get(uri)
        if document is None:
            raise UnknownDocument(uri)

        lines = _split_lines(document.source)
        offset = max(0, min(offset, len(document.source)))

        line_start = 0
        for index, line_text in enumerate(lines):
            if offset < line_start + len(line_text):
                return document.position_codec.position_to_client_units(
                    lines, Position(line=index, character=offset - line_start)
                )
            line_start += len(line_text)

        # Offset at the very end of the text
        if not lines:
            return Position(line=0, character=0)
        last = len(lines) - 1
        if lines[last].endswith(("\n", "\r")):
            return Position(line=len(lines), character=0)
        return document.position_codec.position_to_client_units(
            lines, Position(line=last, character=len(lines[last]))
        )
