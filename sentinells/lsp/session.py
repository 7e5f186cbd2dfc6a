"""
Per-session state of the language server.

A ``Session`` is created when the client sends ``initialize`` and holds
everything handlers need: the client capability flags, the document store
and the settings resolver. Nothing else is kept in process-wide state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from lsprotocol.types import ClientCapabilities

from sentinells.workspace.documents import DocumentStore
from sentinells.workspace.settings import SettingsResolver

if TYPE_CHECKING:
    from sentinells.lsp.sentinel_language_server import SentinelLanguageServer


@dataclass(frozen=True)
class ClientCapabilityFlags:
    """Client features negotiated once during ``initialize``."""

    supports_configuration: bool = False
    supports_workspace_folders: bool = False
    supports_diagnostic_related_info: bool = False
    supports_pull_diagnostics: bool = False

    @classmethod
    def from_client_capabilities(
        cls, capabilities: ClientCapabilities | None
    ) -> ClientCapabilityFlags:
        if capabilities is None:
            return cls()

        workspace = capabilities.workspace
        text_document = capabilities.text_document
        publish_diagnostics = (
            text_document.publish_diagnostics if text_document else None
        )

        return cls(
            supports_configuration=bool(workspace and workspace.configuration),
            supports_workspace_folders=bool(
                workspace and workspace.workspace_folders
            ),
            supports_diagnostic_related_info=bool(
                publish_diagnostics and publish_diagnostics.related_information
            ),
            supports_pull_diagnostics=bool(
                text_document and text_document.diagnostic is not None
            ),
        )


@dataclass
class Session:
    """State shared by all handlers for the lifetime of one LSP session."""

    flags: ClientCapabilityFlags
    documents: DocumentStore
    settings: SettingsResolver

    @classmethod
    def create(
        cls,
        server: SentinelLanguageServer,
        capabilities: ClientCapabilities | None,
    ) -> Session:
        flags = ClientCapabilityFlags.from_client_capabilities(capabilities)
        return cls(
            flags=flags,
            documents=DocumentStore(),
            settings=SettingsResolver(
                server, supports_configuration=flags.supports_configuration
            ),
        )

    def close_document(self, uri: str) -> None:
        """Forget a document together with its cached settings."""
        self.documents.close(uri)
        self.settings.invalidate(uri)
