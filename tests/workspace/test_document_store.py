"""
Tests for sentinells/workspace/documents.py
"""
from __future__ import annotations

import pytest
from lsprotocol.types import (
    Position,
    Range,
    TextDocumentContentChangePartial,
    TextDocumentContentChangeWholeDocument,
)

from sentinells.workspace.documents import (
    DocumentStore,
    DuplicateDocument,
    UnknownDocument,
)


URI = "file:///policies/main.sentinel"


@pytest.fixture
def store() -> DocumentStore:
    store = DocumentStore()
    store.open(URI, 'import "strings"\nmain = rule { strings.has_prefix("a", "b") }\n', 1)
    return store


# ============================================================================
# Lifecycle
# ============================================================================


def test_open_and_get(store):
    assert URI in store
    assert len(store) == 1
    assert store.get(URI).startswith('import "strings"')
    assert store.version(URI) == 1


def test_open_twice_raises(store):
    with pytest.raises(DuplicateDocument) as exc_info:
        store.open(URI, "other")

    assert exc_info.value.uri == URI
    # Existing text is untouched
    assert store.get(URI).startswith("import")


def test_close_removes_document(store):
    store.close(URI)

    assert URI not in store
    assert store.get(URI) is None
    assert store.version(URI) is None


def test_close_unknown_is_noop(store):
    store.close("file:///unknown")

    assert len(store) == 1


def test_uris(store):
    store.open("file:///second", "")

    assert sorted(store.uris()) == sorted([URI, "file:///second"])


# ============================================================================
# apply_change()
# ============================================================================


def test_whole_document_change(store):
    store.apply_change(
        URI, TextDocumentContentChangeWholeDocument(text="new text"), version=2
    )

    assert store.get(URI) == "new text"
    assert store.version(URI) == 2


def test_string_change_replaces_text(store):
    store.apply_change(URI, "replaced")

    assert store.get(URI) == "replaced"
    assert store.version(URI) == 1


def test_incremental_change(store):
    # Replace "strings" in the import with "json"
    change = TextDocumentContentChangePartial(
        range=Range(
            start=Position(line=0, character=8),
            end=Position(line=0, character=15),
        ),
        text="json",
    )

    store.apply_change(URI, change, version=3)

    assert store.get(URI).startswith('import "json"\n')
    assert store.version(URI) == 3


def test_change_unknown_document_raises(store):
    with pytest.raises(UnknownDocument):
        store.apply_change("file:///unknown", "text")


# ============================================================================
# line_up_to()
# ============================================================================


def test_line_up_to(store):
    assert store.line_up_to(URI, 1, 21) == "main = rule { strings"
    assert store.line_up_to(URI, 1, 22) == "main = rule { strings."
    assert store.line_up_to(URI, 0, 0) == ""


def test_line_up_to_end_of_line(store):
    line = 'import "strings"'

    assert store.line_up_to(URI, 0, len(line)) == line


@pytest.mark.parametrize(
    "line, character",
    [
        (0, 100),   # past end of line
        (5, 0),     # past last line
        (-1, 0),
        (0, -1),
    ],
)
def test_line_up_to_out_of_bounds(store, line, character):
    assert store.line_up_to(URI, line, character) == ""


def test_line_up_to_unknown_document(store):
    assert store.line_up_to("file:///unknown", 0, 0) == ""


def test_line_up_to_windows_line_endings():
    store = DocumentStore()
    store.open(URI, "x = strings.\r\nnext")

    assert store.line_up_to(URI, 0, 12) == "x = strings."
    assert store.line_up_to(URI, 0, 13) == ""


def test_line_up_to_ignores_form_feed():
    store = DocumentStore()
    store.open(URI, "x\x0cy = strings.\nz")

    assert store.line_up_to(URI, 0, 14) == "x\x0cy = strings."
    assert store.line_up_to(URI, 1, 1) == "z"


def test_line_up_to_utf16_units():
    store = DocumentStore()
    # The emoji takes two UTF-16 code units
    store.open(URI, "s = \U0001F600 strings.")

    assert store.line_up_to(URI, 0, 15) == "s = \U0001F600 strings."


# ============================================================================
# position_at()
# ============================================================================


def test_position_at():
    store = DocumentStore()
    store.open(URI, "let X = FOO\nAA BB")

    assert store.position_at(URI, 8) == Position(line=0, character=8)
    assert store.position_at(URI, 11) == Position(line=0, character=11)
    assert store.position_at(URI, 12) == Position(line=1, character=0)
    assert store.position_at(URI, 17) == Position(line=1, character=5)


def test_position_at_clamps():
    store = DocumentStore()
    store.open(URI, "AB\n")

    assert store.position_at(URI, -5) == Position(line=0, character=0)
    assert store.position_at(URI, 100) == Position(line=1, character=0)


def test_position_at_empty_document():
    store = DocumentStore()
    store.open(URI, "")

    assert store.position_at(URI, 0) == Position(line=0, character=0)


def test_position_at_utf16():
    store = DocumentStore()
    store.open(URI, "\U0001F600 FOO")

    # Emoji counts as two UTF-16 code units
    assert store.position_at(URI, 2) == Position(line=0, character=3)


@pytest.mark.parametrize("separator", ["\x0b", "\x0c", "\x1c", "\x85", "\u2028", "\u2029"])
def test_position_at_ignores_non_lsp_line_breaks(separator):
    store = DocumentStore()
    store.open(URI, f"a{separator}FOO\nBAR")

    assert store.position_at(URI, 2) == Position(line=0, character=2)
    assert store.position_at(URI, 6) == Position(line=1, character=0)


def test_position_at_mixed_line_endings():
    store = DocumentStore()
    store.open(URI, "AA\r\nBB\rCC\n")

    assert store.position_at(URI, 4) == Position(line=1, character=0)
    assert store.position_at(URI, 7) == Position(line=2, character=0)
    assert store.position_at(URI, 10) == Position(line=3, character=0)


def test_position_at_unknown_document():
    with pytest.raises(UnknownDocument):
        DocumentStore().position_at("file:///unknown", 0)
