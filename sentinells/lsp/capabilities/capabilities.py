"""
LSP Capabilities Manager

This module manages LSP feature handlers (completion, diagnostics) using
a plugin architecture.

Design Principles:
1. Plugin-based (add capabilities without modifying core)
2. Type-safe (abstract base class)
3. Composable (multiple handlers for same feature)
4. Testable (isolated capability handlers)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from lsprotocol.types import (
    CompletionItem,
    CompletionList,
    CompletionParams,
    Diagnostic,
    LogMessageParams,
    MessageType,
)


if TYPE_CHECKING:
    from sentinells.lsp.sentinel_language_server import SentinelLanguageServer


class Capability(ABC):
    """
    Base class for all LSP capability handlers.

    Each capability can handle one LSP feature (completion, diagnostics)
    and decides whether it can handle a specific request based on context.
    """

    def __init__(self, server: SentinelLanguageServer) -> None:
        self.server = server

    def register(self) -> None:
        """
        Register hooks with the server.

        This is called once during server creation.
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this capability."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what this capability does."""
        pass

    @abstractmethod
    async def can_handle(self, params) -> bool:
        """Check if the capability can handle the request."""
        pass


class CompletionCapability(Capability):
    """Base class for completion capabilities."""

    @abstractmethod
    async def can_handle(self, params: CompletionParams) -> bool:
        """
        Check if this capability can handle the completion request.

        Returns True if this capability should provide completions
        for the current context.
        """
        pass

    @abstractmethod
    async def complete(self, params: CompletionParams) -> CompletionList:
        """
        Provide completion items.

        Only called if can_handle() returns True.
        """
        pass

    async def resolve(self, item: CompletionItem) -> CompletionItem:
        """
        Resolve extra details of a completion item.

        Override this method to lazily attach detail and documentation.
        By default, returns the item unchanged.
        """
        return item


class DiagnosticCapability(Capability):
    """Base class for diagnostic capabilities."""

    @abstractmethod
    async def can_handle(self, uri: str) -> bool:
        """Check if this capability can diagnose the document."""
        pass

    @abstractmethod
    async def diagnose(self, uri: str) -> list[Diagnostic]:
        """Compute diagnostics for the current text of the document."""
        pass


class CapabilityManager:
    """
    Central manager for all LSP capabilities.

    Usage:
        # In server creation
        manager = CapabilityManager(server)
        manager.register_all()

        # Aggregated request handling
        result = await manager.handle_completion(params)
    """

    def __init__(
        self,
        server: SentinelLanguageServer,
        capabilities: dict[str, Capability] | None = None,
    ):
        self.server = server

        # Default capabilities
        if capabilities is None:
            from sentinells.lsp.capabilities.completion_capabilities import (
                SentinelCompletionCapability,
            )
            from sentinells.lsp.capabilities.diagnostic_capabilities import (
                UppercaseDiagnosticCapability,
            )

            capabilities = {
                "sentinel_completion": SentinelCompletionCapability(server),
                "uppercase_diagnostics": UppercaseDiagnosticCapability(server),
            }

        self.capabilities = capabilities
        self._registered = False

    def register_all(self) -> None:
        """Register all capabilities with the server."""
        if self._registered:
            return

        for capability in self.capabilities.values():
            capability.register()

        self._registered = True

    def get_capability(self, name: str) -> Capability | None:
        """Get a specific capability by name"""
        return self.capabilities.get(name)

    def get_capabilities_by_type(self, capability_type: type) -> list[Capability]:
        """Get all capabilities of a specific type (e.g., all CompletionCapability)."""
        return [
            cap
            for cap in self.capabilities.values()
            if isinstance(cap, capability_type)
        ]

    async def handle_completion(self, params: CompletionParams) -> CompletionList:
        """
        Handle completion requests by delegating to capable handlers.

        This aggregates results from all completion capabilities that
        can handle the request.
        """
        all_items = []

        for capability in self.get_capabilities_by_type(CompletionCapability):
            if await capability.can_handle(params):
                result = await capability.complete(params)  # pyright: ignore
                all_items.extend(result.items)

        return CompletionList(is_incomplete=False, items=all_items)

    async def resolve_completion(self, item: CompletionItem) -> CompletionItem:
        """Let every completion capability enrich the item in turn."""
        for capability in self.get_capabilities_by_type(CompletionCapability):
            try:
                item = await capability.resolve(item)  # pyright: ignore
            except Exception as e:
                self.server.window_log_message(
                    LogMessageParams(
                        type=MessageType.Error,
                        message=f"Completion resolve error in {capability.name}: {e}"
                    )
                )

        return item

    async def handle_diagnostic(self, uri: str) -> list[Diagnostic]:
        """Aggregate diagnostics from all capable handlers."""
        all_diagnostics: list[Diagnostic] = []

        for capability in self.get_capabilities_by_type(DiagnosticCapability):
            if await capability.can_handle(uri):
                diagnostics = await capability.diagnose(uri)  # pyright: ignore
                all_diagnostics.extend(diagnostics)

        return all_diagnostics
