"""Workspace wiring tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from writebox.core.config import Settings
from writebox.models.entities import Attachment
from writebox.storage.store import DOCUMENTS, PersistenceStore, StoreError
from writebox.workspace.app import Workspace

from conftest import FakeAssistant


def _settings(tmp_path: Path) -> Settings:
    return Settings(data_dir=tmp_path / "ws", autosave_delay=60.0)


@pytest.mark.asyncio
async def test_page_hooks_refresh_lists(tmp_path: Path, assistant: FakeAssistant) -> None:
    workspace = await Workspace.open(_settings(tmp_path), assistant)
    await workspace.store.save(DOCUMENTS, {"title": "Note", "content": "x", "lastModified": "2024-01-01T00:00:00+00:00"})
    await workspace.vault.upload([Attachment(name="a.txt", mime_type="text/plain", content=b"a")])
    workspace.vault.cards = []

    workspace.navigation.navigate_to("documents")
    workspace.navigation.navigate_to("files")
    await workspace.tracker.drain()

    assert [card.title for card in workspace.library.cards] == ["Note"]
    assert [card.name for card in workspace.vault.cards] == ["a.txt"]
    await workspace.close()


@pytest.mark.asyncio
async def test_close_flushes_pending_autosave(tmp_path: Path, assistant: FakeAssistant) -> None:
    settings = _settings(tmp_path)
    workspace = await Workspace.open(settings, assistant)
    workspace.editor.edit(content="unsaved words", title="Draft")
    assert workspace.editor.autosave_pending
    await workspace.close()

    store = PersistenceStore(settings.resolved_db_path)
    await store.init()
    records = await store.get_all(DOCUMENTS)
    await store.close()
    assert [record["title"] for record in records] == ["Draft"]


@pytest.mark.asyncio
async def test_reopen_restores_last_document_and_chat(tmp_path: Path, assistant: FakeAssistant) -> None:
    settings = _settings(tmp_path)
    first = await Workspace.open(settings, assistant)
    first.editor.edit(content="body", title="Kept")
    await first.editor.save(manual=True)
    await first.chat.send_message("hello")
    await first.close()

    second = await Workspace.open(settings, assistant)
    assert second.editor.title == "Kept"
    assert [message.content for message in second.chat.messages] == ["hello", "Hi there"]
    await second.close()


@pytest.mark.asyncio
async def test_unopenable_store_is_fatal(tmp_path: Path, assistant: FakeAssistant) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file")
    with pytest.raises(StoreError):
        await Workspace.open(Settings(data_dir=blocker), assistant)
