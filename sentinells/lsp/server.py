import uuid
from collections.abc import Mapping

from lsprotocol.types import (
    COMPLETION_ITEM_RESOLVE,
    INITIALIZE,
    INITIALIZED,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_DIAGNOSTIC,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    WORKSPACE_DID_CHANGE_WATCHED_FILES,
    WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS,
    CompletionItem,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    DiagnosticOptions,
    DidChangeConfigurationParams,
    DidChangeWatchedFilesParams,
    DidChangeWorkspaceFoldersParams,
    DocumentDiagnosticParams,
    InitializedParams,
    InitializeParams,
    LogMessageParams,
    MessageType,
    Registration,
    RegistrationParams,
    RelatedFullDocumentDiagnosticReport,
)

from sentinells import __version__
from sentinells.lsp.capabilities.capabilities import CapabilityManager
from sentinells.lsp.capabilities.diagnostic_capabilities import (
    UppercaseDiagnosticCapability,
)
from sentinells.lsp.sentinel_language_server import SentinelLanguageServer
from sentinells.lsp.session import Session
from sentinells.lsp.text_sync_manager import TextSyncManager
from sentinells.workspace.settings import CONFIGURATION_SECTION


def _log(ls: SentinelLanguageServer, type: MessageType, message: str) -> None:
    ls.window_log_message(LogMessageParams(type=type, message=message))


async def initialize(ls: SentinelLanguageServer, params: InitializeParams):
    """Record the client capabilities and start a fresh session."""
    ls.session = Session.create(ls, params.capabilities)

    flags = ls.session.flags
    _log(
        ls,
        MessageType.Info,
        "Client capabilities: "
        f"configuration={flags.supports_configuration}, "
        f"workspace_folders={flags.supports_workspace_folders}, "
        f"related_information={flags.supports_diagnostic_related_info}, "
        f"pull_diagnostics={flags.supports_pull_diagnostics}",
    )


async def initialized(ls: SentinelLanguageServer, params: InitializedParams):
    """Ask the client to notify us about every configuration change."""
    if ls.session is None or not ls.session.flags.supports_configuration:
        return

    try:
        await ls.client_register_capability_async(
            RegistrationParams(
                registrations=[
                    Registration(
                        id=str(uuid.uuid4()),
                        method=WORKSPACE_DID_CHANGE_CONFIGURATION,
                    )
                ]
            )
        )
    except Exception as e:
        _log(
            ls,
            MessageType.Warning,
            f"Could not register for configuration changes: {e}",
        )


async def did_change_configuration(
    ls: SentinelLanguageServer, params: DidChangeConfigurationParams
):
    """Drop stale settings and have diagnostics recomputed."""
    session = ls.session
    if session is None:
        return

    if session.flags.supports_configuration:
        session.settings.invalidate_all()
    else:
        raw = params.settings
        if isinstance(raw, Mapping):
            section = raw.get(CONFIGURATION_SECTION)
        else:
            section = getattr(raw, CONFIGURATION_SECTION, None)
        session.settings.update_global(section)

    ls.workspace_diagnostic_refresh(None)
    if session.flags.supports_pull_diagnostics:
        return

    diagnostics = (
        ls.capability_manager.get_capability("uppercase_diagnostics")
        if ls.capability_manager
        else None
    )
    if isinstance(diagnostics, UppercaseDiagnosticCapability):
        await diagnostics.publish_all()


async def did_change_workspace_folders(
    ls: SentinelLanguageServer, params: DidChangeWorkspaceFoldersParams
):
    _log(ls, MessageType.Info, "Workspace folder change event received.")


async def did_change_watched_files(
    ls: SentinelLanguageServer, params: DidChangeWatchedFilesParams
):
    _log(ls, MessageType.Info, f"Watched files changed: {len(params.changes)} event(s)")


async def completion(ls: SentinelLanguageServer, params: CompletionParams):
    if ls.capability_manager:
        return await ls.capability_manager.handle_completion(params)
    return CompletionList(is_incomplete=False, items=[])


async def completion_item_resolve(ls: SentinelLanguageServer, item: CompletionItem):
    if ls.capability_manager:
        return await ls.capability_manager.resolve_completion(item)
    return item


async def diagnostic(ls: SentinelLanguageServer, params: DocumentDiagnosticParams):
    """Pull diagnostics. Unknown documents get an empty full report."""
    items = []
    if ls.capability_manager:
        items = await ls.capability_manager.handle_diagnostic(params.text_document.uri)
    return RelatedFullDocumentDiagnosticReport(items=items)


def create_server() -> SentinelLanguageServer:
    """
    Creates and returns a configured Language Server instance.

    The LanguageServer class from pygls handles:
    - JSON-RPC communication with clients (editors)
    - Request/response lifecycle
    - Notifications and event handling
    """
    server = SentinelLanguageServer("sentinells", __version__)

    # TextSyncManager comes BEFORE capabilities
    # so capabilities can register hooks during their initialization.
    server.text_sync_manager = TextSyncManager(server)
    server.text_sync_manager.register_handlers()

    server.capability_manager = CapabilityManager(server)
    server.capability_manager.register_all()

    server.feature(INITIALIZE)(initialize)
    server.feature(INITIALIZED)(initialized)
    server.feature(WORKSPACE_DID_CHANGE_CONFIGURATION)(did_change_configuration)
    server.feature(WORKSPACE_DID_CHANGE_WORKSPACE_FOLDERS)(did_change_workspace_folders)
    server.feature(WORKSPACE_DID_CHANGE_WATCHED_FILES)(did_change_watched_files)

    server.feature(
        TEXT_DOCUMENT_COMPLETION,
        CompletionOptions(trigger_characters=["."], resolve_provider=True),
    )(completion)
    server.feature(COMPLETION_ITEM_RESOLVE)(completion_item_resolve)
    server.feature(
        TEXT_DOCUMENT_DIAGNOSTIC,
        DiagnosticOptions(
            identifier="sentinells",
            inter_file_dependencies=False,
            workspace_diagnostics=False,
        ),
    )(diagnostic)

    return server
