"""
Completion capability.

Provides keyword, builtin and namespace member completions based on the text
before the cursor.
"""

from lsprotocol.types import (
    CompletionItem,
    CompletionList,
    CompletionParams,
)

from sentinells.analysis import classifier
from sentinells.lsp.capabilities.capabilities import CompletionCapability


class SentinelCompletionCapability(CompletionCapability):
    """Completes keywords, builtins and members of imported namespaces."""

    @property
    def name(self) -> str:
        return "sentinel_completion"

    @property
    def description(self) -> str:
        return "Autocomplete keywords, builtins and namespace members such as strings.has_prefix()"

    async def can_handle(self, params: CompletionParams) -> bool:
        """Any open document can be completed."""
        session = self.server.session
        return session is not None and params.text_document.uri in session.documents

    async def complete(self, params: CompletionParams) -> CompletionList:
        """Classify the line prefix and return the matching catalog."""
        session = self.server.session
        if session is None:
            return CompletionList(is_incomplete=False, items=[])

        line_prefix = session.documents.line_up_to(
            params.text_document.uri,
            params.position.line,
            params.position.character,
        )

        items = [
            suggestion.to_completion_item()
            for suggestion in classifier.classify(line_prefix)
        ]
        return CompletionList(is_incomplete=False, items=items)

    async def resolve(self, item: CompletionItem) -> CompletionItem:
        return classifier.resolve(item)
