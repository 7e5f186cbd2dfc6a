"""
Text Synchronization Manager

Keeps the session's DocumentStore in sync with the editor and provides
hook extension points for capabilities to react to document lifecycle
events.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, Callable

from lsprotocol.types import (
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    LogMessageParams,
    MessageType,
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_CLOSE,
    TEXT_DOCUMENT_DID_OPEN,
)

from sentinells.workspace.documents import DuplicateDocument, UnknownDocument

if TYPE_CHECKING:
    from sentinells.lsp.sentinel_language_server import SentinelLanguageServer


# Type aliases for hook signatures
OnOpenHook = Callable[[DidOpenTextDocumentParams], Awaitable[None]]
OnChangeHook = Callable[[DidChangeTextDocumentParams], Awaitable[None]]
OnCloseHook = Callable[[DidCloseTextDocumentParams], Awaitable[None]]


class TextSyncManager:
    """
    Manages text document synchronization and hook broadcasting.

    The manager is the only writer of the session's DocumentStore. Every
    notification is applied to the store first and only then broadcast to
    hooks, so hooks always see the up-to-date text.

    Design Principles:
    - Text sync is infrastructure, NOT a capability
    - Errors are isolated (one hook failure doesn't affect others)
    - Hooks run in registration order

    Usage:
        text_sync = TextSyncManager(server)
        text_sync.register_handlers()
        server.text_sync_manager = text_sync

        # Capabilities register hooks for feature-specific work
        class UppercaseDiagnosticCapability(DiagnosticCapability):
            def register(self):
                text_sync = self.server.text_sync_manager
                text_sync.add_on_change_hook(self._on_change)
    """

    def __init__(self, server: SentinelLanguageServer) -> None:
        self.server = server

        self._on_open_hooks: list[OnOpenHook] = []
        self._on_change_hooks: list[OnChangeHook] = []
        self._on_close_hooks: list[OnCloseHook] = []

    def add_on_open_hook(self, hook: OnOpenHook) -> None:
        """Register a hook for document open events."""
        self._on_open_hooks.append(hook)

    def add_on_change_hook(self, hook: OnChangeHook) -> None:
        """
        Register a hook for document change events.

        The hook will be called on EVERY keystroke, after the change was
        applied to the DocumentStore.
        """
        self._on_change_hooks.append(hook)

    def add_on_close_hook(self, hook: OnCloseHook) -> None:
        """
        Register a hook for document close events.

        The document is already gone from the DocumentStore when the hook
        runs.
        """
        self._on_close_hooks.append(hook)

    async def _broadcast(self, hooks: list, event: str, params) -> None:
        for hook in hooks:
            try:
                await hook(params)
            except Exception as e:
                self._log(
                    MessageType.Error,
                    f"Error in {event} hook {hook.__name__}: "
                    f"{type(e).__name__}: {e}",
                )

    def _log(self, type: MessageType, message: str) -> None:
        self.server.window_log_message(LogMessageParams(type=type, message=message))

    async def did_open(self, params: DidOpenTextDocumentParams) -> None:
        """Start tracking the opened document and notify hooks."""
        session = self.server.session
        if session is None:
            return

        document = params.text_document
        try:
            session.documents.open(document.uri, document.text, document.version)
        except DuplicateDocument as e:
            # Re-open without close: the editor's copy wins
            self._log(MessageType.Warning, f"{e}, replacing it")
            session.close_document(document.uri)
            session.documents.open(document.uri, document.text, document.version)

        self._log(MessageType.Info, f"Document opened: {document.uri}")
        await self._broadcast(self._on_open_hooks, "on_open", params)

    async def did_change(self, params: DidChangeTextDocumentParams) -> None:
        """Apply content changes in order and notify hooks."""
        session = self.server.session
        if session is None:
            return

        uri = params.text_document.uri
        try:
            for change in params.content_changes:
                session.documents.apply_change(
                    uri, change, version=params.text_document.version
                )
        except UnknownDocument as e:
            self._log(MessageType.Warning, f"Ignoring change: {e}")
            return

        self._log(MessageType.Info, f"Document changed: {uri}")
        await self._broadcast(self._on_change_hooks, "on_change", params)

    async def did_close(self, params: DidCloseTextDocumentParams) -> None:
        """Forget the document and its cached settings, then notify hooks."""
        session = self.server.session
        if session is None:
            return

        uri = params.text_document.uri
        session.close_document(uri)

        self._log(MessageType.Info, f"Document closed: {uri}")
        await self._broadcast(self._on_close_hooks, "on_close", params)

    def register_handlers(self) -> None:
        """
        Register LSP text synchronization handlers with the server.

        Registers handlers for:
        - textDocument/didOpen
        - textDocument/didChange
        - textDocument/didClose
        """

        @self.server.feature(TEXT_DOCUMENT_DID_OPEN)
        async def did_open(
            ls: SentinelLanguageServer,
            params: DidOpenTextDocumentParams,
        ) -> None:
            await self.did_open(params)

        @self.server.feature(TEXT_DOCUMENT_DID_CHANGE)
        async def did_change(
            ls: SentinelLanguageServer,
            params: DidChangeTextDocumentParams,
        ) -> None:
            await self.did_change(params)

        @self.server.feature(TEXT_DOCUMENT_DID_CLOSE)
        async def did_close(
            ls: SentinelLanguageServer,
            params: DidCloseTextDocumentParams,
        ) -> None:
            await self.did_close(params)
