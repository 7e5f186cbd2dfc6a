"""
Diagnostic capability.

Reports all-uppercase words as warnings. Diagnostics are served on demand
through ``textDocument/diagnostic`` and, for clients without pull
diagnostics support, pushed with ``textDocument/publishDiagnostics``
whenever a document is opened or changed.
"""

from __future__ import annotations

from lsprotocol.types import (
    Diagnostic,
    DiagnosticRelatedInformation,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    Location,
    PublishDiagnosticsParams,
    Range,
)

from sentinells.analysis.scanner import Finding, scan
from sentinells.lsp.capabilities.capabilities import DiagnosticCapability
from sentinells.workspace.documents import DocumentStore


def _finding_range(documents: DocumentStore, uri: str, finding: Finding) -> Range:
    return Range(
        start=documents.position_at(uri, finding.start),
        end=documents.position_at(uri, finding.end),
    )


def to_diagnostic(documents: DocumentStore, uri: str, finding: Finding) -> Diagnostic:
    """Convert a scanner finding into an LSP diagnostic for ``uri``."""
    related_information = [
        DiagnosticRelatedInformation(
            location=Location(uri=uri, range=_finding_range(documents, uri, finding)),
            message=message,
        )
        for message in finding.related
    ]

    return Diagnostic(
        range=_finding_range(documents, uri, finding),
        message=finding.message,
        severity=finding.severity,
        source=finding.source,
        related_information=related_information or None,
    )


class UppercaseDiagnosticCapability(DiagnosticCapability):
    """Warns about words written in all uppercase."""

    @property
    def name(self) -> str:
        return "uppercase_diagnostics"

    @property
    def description(self) -> str:
        return "Warn about words of two or more uppercase letters"

    def register(self) -> None:
        text_sync = self.server.text_sync_manager
        if text_sync is None:
            return

        text_sync.add_on_open_hook(self._on_open)
        text_sync.add_on_change_hook(self._on_change)
        text_sync.add_on_close_hook(self._on_close)

    async def can_handle(self, uri: str) -> bool:
        session = self.server.session
        return session is not None and uri in session.documents

    async def diagnose(self, uri: str) -> list[Diagnostic]:
        session = self.server.session
        if session is None:
            return []

        settings = await session.settings.resolve(uri)

        # Read the text only after settings resolved, it may have changed
        text = session.documents.get(uri)
        if text is None:
            return []

        findings = scan(
            text,
            settings,
            related_information=session.flags.supports_diagnostic_related_info,
        )
        return [to_diagnostic(session.documents, uri, f) for f in findings]

    def should_push(self) -> bool:
        """Push diagnostics only to clients that can't pull them."""
        session = self.server.session
        return session is not None and not session.flags.supports_pull_diagnostics

    async def publish(self, uri: str) -> None:
        """Scan a document and push the result to the client."""
        session = self.server.session
        if session is None:
            return

        diagnostics = await self.diagnose(uri)
        if uri not in session.documents:
            return

        self.server.text_document_publish_diagnostics(
            PublishDiagnosticsParams(
                uri=uri,
                diagnostics=diagnostics,
                version=session.documents.version(uri),
            )
        )

    async def publish_all(self) -> None:
        """Re-push diagnostics of every open document."""
        session = self.server.session
        if session is None or not self.should_push():
            return

        for uri in session.documents.uris():
            await self.publish(uri)

    async def _on_open(self, params: DidOpenTextDocumentParams) -> None:
        if self.should_push():
            await self.publish(params.text_document.uri)

    async def _on_change(self, params: DidChangeTextDocumentParams) -> None:
        if self.should_push():
            await self.publish(params.text_document.uri)

    async def _on_close(self, params: DidCloseTextDocumentParams) -> None:
        if self.should_push():
            self.server.text_document_publish_diagnostics(
                PublishDiagnosticsParams(uri=params.text_document.uri, diagnostics=[])
            )
