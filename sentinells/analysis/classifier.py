"""
Completion context classifier.

Looks at the text of the current line up to the cursor and picks one of the
static suggestion catalogs from ``catalogs.yml``:

- ``strings.`` (optionally followed by whitespace) selects the strings catalog
- likewise for ``json``, ``http``, ``types``, ``base64``, ``time``, ``decimal``
- anything else selects the default catalog (keywords and builtins)

Catalogs are returned verbatim. Filtering by the partially typed word is
left to the editor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path

import yaml
from lsprotocol.types import CompletionItem, CompletionItemKind


CATALOGS_FILE = Path(__file__).parent / "catalogs.yml"

# Completion items resolved with extra documentation, keyed by item id
ITEM_DETAILS: dict[int, tuple[str, str]] = {
    1: (
        "Import plugin or standard library",
        "Import keyword allow us to import libraries",
    ),
}


class SuggestionCategory(Enum):
    """Kind of a suggestion, as shown by the editor."""

    METHOD = "Method"
    FIELD = "Field"
    FUNCTION = "Function"
    KEYWORD = "Keyword"

    @property
    def completion_kind(self) -> CompletionItemKind:
        return CompletionItemKind[self.value]


@dataclass(frozen=True)
class Suggestion:
    """A single entry of a completion catalog."""

    label: str
    category: SuggestionCategory
    id: int

    def to_completion_item(self) -> CompletionItem:
        return CompletionItem(
            label=self.label,
            kind=self.category.completion_kind,
            data=self.id,
        )


@dataclass(frozen=True)
class NamespaceCatalog:
    """Catalog offered after ``<namespace>.``"""

    namespace: str
    pattern: re.Pattern[str]
    items: tuple[Suggestion, ...]


@dataclass(frozen=True)
class Catalogs:
    namespaces: tuple[NamespaceCatalog, ...]
    default: tuple[Suggestion, ...]


def _parse_items(raw_items: list[dict]) -> tuple[Suggestion, ...]:
    return tuple(
        Suggestion(
            label=str(raw["label"]),
            category=SuggestionCategory(raw["kind"]),
            id=int(raw["id"]),
        )
        for raw in raw_items
    )


def trigger_pattern(namespace: str) -> re.Pattern[str]:
    """Pattern matching a line prefix that ends with ``<namespace>.``"""
    return re.compile(re.escape(namespace) + r"\.\s*$")


@lru_cache(maxsize=None)
def load_catalogs(path: Path = CATALOGS_FILE) -> Catalogs:
    """Load and validate the catalogs file. Cached after the first call."""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    namespaces = tuple(
        NamespaceCatalog(
            namespace=entry["namespace"],
            pattern=trigger_pattern(entry["namespace"]),
            items=_parse_items(entry["items"]),
        )
        for entry in data.get("namespaces", [])
    )

    return Catalogs(namespaces=namespaces, default=_parse_items(data["default"]))


def match_namespace(line_prefix: str) -> NamespaceCatalog | None:
    """Return the first namespace catalog triggered by ``line_prefix``."""
    for catalog in load_catalogs().namespaces:
        if catalog.pattern.search(line_prefix):
            return catalog
    return None


def classify(line_prefix: str) -> list[Suggestion]:
    """
    Select the suggestions for the text before the cursor.

    Args:
        line_prefix: Current line from column 0 up to the cursor

    Returns:
        The full catalog of the first matching namespace, or the default
        catalog when no namespace trigger matches.
    """
    catalog = match_namespace(line_prefix)
    if catalog is not None:
        return list(catalog.items)
    return list(load_catalogs().default)


def resolve(item: CompletionItem) -> CompletionItem:
    """Attach detail and documentation to items that have them."""
    if isinstance(item.data, bool) or not isinstance(item.data, int):
        return item

    details = ITEM_DETAILS.get(item.data)
    if details is None:
        return item

    item.detail, item.documentation = details
    return item
