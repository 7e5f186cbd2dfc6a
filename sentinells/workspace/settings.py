"""
Settings resolution for SentinelLS.

Settings come from the client. When the client supports the
``workspace/configuration`` request, settings are requested per document and
cached until the configuration changes. Otherwise a single global value,
pushed through ``workspace/didChangeConfiguration``, is used for everything.
"""

from __future__ import annotations

import asyncio
import functools
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from lsprotocol.types import (
    ConfigurationItem,
    ConfigurationParams,
    LogMessageParams,
    MessageType,
)

if TYPE_CHECKING:
    from sentinells.lsp.sentinel_language_server import SentinelLanguageServer


# Section of the client configuration holding our settings
CONFIGURATION_SECTION = "languageServerExample"

DEFAULT_MAX_NUMBER_OF_PROBLEMS = 1000


@dataclass(frozen=True)
class Settings:
    """Effective settings for a document."""

    max_number_of_problems: int = DEFAULT_MAX_NUMBER_OF_PROBLEMS

    @classmethod
    def from_dict(cls, raw: Any) -> Settings:
        """
        Build settings from the JSON blob sent by the client.

        Unknown keys are ignored, missing or malformed values fall back to
        the defaults and negative limits are clamped to 0.
        """
        if isinstance(raw, Mapping):
            value = raw.get("maxNumberOfProblems", DEFAULT_MAX_NUMBER_OF_PROBLEMS)
        else:
            value = getattr(raw, "maxNumberOfProblems", DEFAULT_MAX_NUMBER_OF_PROBLEMS)

        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return cls()
        # JSON numbers like 1e400 decode to inf
        if isinstance(value, float) and not math.isfinite(value):
            return cls()

        return cls(max_number_of_problems=max(0, int(value)))


DEFAULT_SETTINGS = Settings()


class SettingsResolver:
    """
    Resolves the effective settings of a document.

    At most one ``workspace/configuration`` request is in flight per URI:
    concurrent callers share the pending task stored in the cache.

    Usage:
        resolver = SettingsResolver(server, supports_configuration=True)
        settings = await resolver.resolve(uri)

        # Configuration changed on the client
        resolver.invalidate_all()

        # Document closed
        resolver.invalidate(uri)
    """

    def __init__(
        self,
        server: SentinelLanguageServer,
        supports_configuration: bool = False,
    ) -> None:
        self.server = server
        self.supports_configuration = supports_configuration

        self._global_settings: Settings = DEFAULT_SETTINGS
        self._document_settings: dict[str, asyncio.Future[Settings]] = {}

    @property
    def global_settings(self) -> Settings:
        return self._global_settings

    def update_global(self, raw: Any) -> None:
        """Replace the global settings from a client configuration blob."""
        self._global_settings = Settings.from_dict(raw)

    def is_cached(self, uri: str) -> bool:
        return uri in self._document_settings

    async def resolve(self, uri: str) -> Settings:
        """Return the settings that apply to ``uri``."""
        if not self.supports_configuration:
            return self._global_settings

        pending = self._document_settings.get(uri)
        if pending is None:
            pending = asyncio.ensure_future(self._fetch(uri))
            pending.add_done_callback(functools.partial(self._on_fetched, uri))
            self._document_settings[uri] = pending

        try:
            # Shielded so a cancelled request doesn't cancel the shared lookup
            return await asyncio.shield(pending)
        except Exception as e:
            self.server.window_log_message(
                LogMessageParams(
                    type=MessageType.Warning,
                    message=f"Could not fetch settings for {uri}: "
                            f"{type(e).__name__}: {e}",
                )
            )
            return self._global_settings

    def invalidate(self, uri: str) -> None:
        """Forget the cached settings of a single document."""
        self._document_settings.pop(uri, None)

    def invalidate_all(self) -> None:
        """Forget all cached document settings."""
        self._document_settings.clear()

    async def _fetch(self, uri: str) -> Settings:
        result = await self.server.workspace_configuration_async(
            ConfigurationParams(
                items=[
                    ConfigurationItem(scope_uri=uri, section=CONFIGURATION_SECTION)
                ]
            )
        )
        raw = result[0] if result else None
        return Settings.from_dict(raw)

    def _on_fetched(self, uri: str, task: asyncio.Future[Settings]) -> None:
        # Failed lookups are not cached, the next resolve() retries
        if task.cancelled() or task.exception() is not None:
            if self._document_settings.get(uri) is task:
                del self._document_settings[uri]
