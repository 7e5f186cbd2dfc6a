from __future__ import annotations

from typing import TYPE_CHECKING

from pygls.lsp.server import LanguageServer

if TYPE_CHECKING:
    from sentinells.lsp.capabilities.capabilities import CapabilityManager
    from sentinells.lsp.session import Session
    from sentinells.lsp.text_sync_manager import TextSyncManager


class SentinelLanguageServer(LanguageServer):
    """
    Custom Language Server with SentinelLS-specific attributes.

    Attributes:
        session: Per-session state, created on ``initialize``
        capability_manager: Completion and diagnostic handlers
        text_sync_manager: Document lifecycle handlers and hooks
    """

    def __init__(self, name: str, version: str):
        super().__init__(name, version)

        self.session: Session | None = None
        self.capability_manager: CapabilityManager | None = None
        self.text_sync_manager: TextSyncManager | None = None
