import pytest
from unittest.mock import Mock
from lsprotocol.types import (
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    LogMessageParams,
    MessageType,
    Position,
    Range,
    TextDocumentContentChangePartial,
    TextDocumentContentChangeWholeDocument,
    TextDocumentIdentifier,
    TextDocumentItem,
    VersionedTextDocumentIdentifier,
)

from sentinells.lsp.session import Session
from sentinells.lsp.text_sync_manager import TextSyncManager


URI = "file:///test/policy.sentinel"


@pytest.fixture
def server():
    """Create a mock server with a fresh session."""
    server = Mock()
    server.window_log_message = Mock()
    server.session = Session.create(server, None)
    return server


@pytest.fixture
def text_sync(server):
    """Create TextSyncManager instance."""
    return TextSyncManager(server)


def open_params(text: str = "main = rule { true }", version: int = 1):
    return DidOpenTextDocumentParams(
        text_document=TextDocumentItem(
            uri=URI, language_id="sentinel", version=version, text=text
        )
    )


def change_params(*changes, version: int = 2):
    return DidChangeTextDocumentParams(
        text_document=VersionedTextDocumentIdentifier(uri=URI, version=version),
        content_changes=list(changes),
    )


def close_params():
    return DidCloseTextDocumentParams(text_document=TextDocumentIdentifier(uri=URI))


@pytest.mark.asyncio
async def test_did_open_stores_document(text_sync, server):
    await text_sync.did_open(open_params())

    assert server.session.documents.get(URI) == "main = rule { true }"
    assert server.session.documents.version(URI) == 1


@pytest.mark.asyncio
async def test_did_open_twice_replaces_document(text_sync, server):
    await text_sync.did_open(open_params("first"))
    await text_sync.did_open(open_params("second", version=5))

    assert server.session.documents.get(URI) == "second"
    assert server.session.documents.version(URI) == 5

    messages = [c[0][0] for c in server.window_log_message.call_args_list]
    assert any(m.type == MessageType.Warning for m in messages)


@pytest.mark.asyncio
async def test_did_change_applies_changes_in_order(text_sync, server):
    await text_sync.did_open(open_params("abc"))

    await text_sync.did_change(
        change_params(
            TextDocumentContentChangeWholeDocument(text="hello world"),
            TextDocumentContentChangePartial(
                range=Range(
                    start=Position(line=0, character=0),
                    end=Position(line=0, character=5),
                ),
                text="HELLO",
            ),
            version=3,
        )
    )

    assert server.session.documents.get(URI) == "HELLO world"
    assert server.session.documents.version(URI) == 3


@pytest.mark.asyncio
async def test_did_change_unknown_document_is_ignored(text_sync, server):
    hook_called = False

    async def on_change(params):
        nonlocal hook_called
        hook_called = True

    text_sync.add_on_change_hook(on_change)

    await text_sync.did_change(
        change_params(TextDocumentContentChangeWholeDocument(text="x"))
    )

    assert not hook_called
    assert URI not in server.session.documents


@pytest.mark.asyncio
async def test_did_close_removes_document(text_sync, server):
    await text_sync.did_open(open_params())

    await text_sync.did_close(close_params())

    assert URI not in server.session.documents


@pytest.mark.asyncio
async def test_notifications_before_initialize_are_ignored(server):
    server.session = None
    text_sync = TextSyncManager(server)

    await text_sync.did_open(open_params())
    await text_sync.did_change(
        change_params(TextDocumentContentChangeWholeDocument(text="x"))
    )
    await text_sync.did_close(close_params())

    server.window_log_message.assert_not_called()


@pytest.mark.asyncio
async def test_hook_registration(text_sync):
    """Test that hooks can be registered."""
    async def test_hook(params):
        pass

    text_sync.add_on_open_hook(test_hook)
    text_sync.add_on_change_hook(test_hook)
    text_sync.add_on_close_hook(test_hook)

    assert text_sync._on_open_hooks == [test_hook]
    assert text_sync._on_change_hooks == [test_hook]
    assert text_sync._on_close_hooks == [test_hook]


@pytest.mark.asyncio
async def test_change_hook_sees_updated_text(text_sync, server):
    """Hooks run after the store was updated."""
    seen = []

    async def on_change(params: DidChangeTextDocumentParams):
        seen.append(server.session.documents.get(params.text_document.uri))

    text_sync.add_on_change_hook(on_change)
    await text_sync.did_open(open_params("old"))

    await text_sync.did_change(
        change_params(TextDocumentContentChangeWholeDocument(text="new"))
    )

    assert seen == ["new"]


@pytest.mark.asyncio
async def test_close_hook_runs_after_removal(text_sync, server):
    still_open = []

    async def on_close(params: DidCloseTextDocumentParams):
        still_open.append(params.text_document.uri in server.session.documents)

    text_sync.add_on_close_hook(on_close)
    await text_sync.did_open(open_params())

    await text_sync.did_close(close_params())

    assert still_open == [False]


@pytest.mark.asyncio
async def test_multiple_hooks_execution_order(text_sync):
    """Test that multiple hooks run in registration order."""
    execution_order = []

    async def hook1(params):
        execution_order.append(1)

    async def hook2(params):
        execution_order.append(2)

    async def hook3(params):
        execution_order.append(3)

    text_sync.add_on_open_hook(hook1)
    text_sync.add_on_open_hook(hook2)
    text_sync.add_on_open_hook(hook3)

    await text_sync.did_open(open_params())

    assert execution_order == [1, 2, 3]


@pytest.mark.asyncio
async def test_hook_error_isolation(text_sync, server):
    """Test that hook errors don't prevent other hooks from running."""
    hook2_called = False

    async def failing_hook(params):
        raise ValueError("Test error")

    async def successful_hook(params):
        nonlocal hook2_called
        hook2_called = True

    text_sync.add_on_open_hook(failing_hook)
    text_sync.add_on_open_hook(successful_hook)

    # Should not raise exception
    await text_sync.did_open(open_params())

    # Second hook should still run
    assert hook2_called

    # Error should be logged
    errors = [
        c[0][0]
        for c in server.window_log_message.call_args_list
        if c[0][0].type == MessageType.Error
    ]
    assert len(errors) == 1
    assert isinstance(errors[0], LogMessageParams)
    assert "failing_hook" in errors[0].message
    assert "ValueError" in errors[0].message
