"""Chat panel tests."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import pytest

from writebox.gateway.client import Completion, GatewayResponseError, GatewayTransportError
from writebox.models.entities import Attachment
from writebox.storage.history import CHAT_SESSIONS, HistoryStore
from writebox.storage.store import CHAT_HISTORY, PersistenceStore
from writebox.workspace.chat import APOLOGY, CURRENT_SESSION, ChatPanel

from conftest import FakeAssistant


class SlowAssistant(FakeAssistant):
    """Holds every chat reply until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def chat(self, message: str, **kwargs: Any) -> Completion:
        await self.release.wait()
        return await super().chat(message, **kwargs)


@pytest.mark.asyncio
async def test_send_message_appends_reply_and_persists(
    store: PersistenceStore, history: HistoryStore
) -> None:
    assistant = FakeAssistant(chat=Completion(text="Hello!", thinking="greeting"))
    panel = ChatPanel(store, assistant, history)
    reply = await panel.send_message("  Hi  ")

    assert reply.content == "Hello!"
    assert [(m.role, m.content) for m in panel.messages] == [("user", "Hi"), ("assistant", "Hello!")]
    assert panel.messages[1].thinking == "greeting"
    assert panel.sending is False

    saved = await store.get_slot(CHAT_HISTORY, CURRENT_SESSION)
    assert [m["content"] for m in saved["messages"]] == ["Hi", "Hello!"]


@pytest.mark.asyncio
async def test_prior_turns_are_sent_as_history(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore
) -> None:
    panel = ChatPanel(store, assistant, history)
    panel.use_search = True
    await panel.send_message("first")
    await panel.send_message("second")

    (args, kwargs) = assistant.called("chat")[-1]
    assert args == ("second",)
    assert kwargs["history"] == [
        {"role": "user", "parts": [{"text": "first"}]},
        {"role": "model", "parts": [{"text": "Hi there"}]},
    ]
    assert kwargs["use_search"] is True


@pytest.mark.asyncio
async def test_reported_error_is_shown_and_input_reenabled(store: PersistenceStore, history: HistoryStore) -> None:
    assistant = FakeAssistant(chat=GatewayResponseError("Chat API key is not configured"))
    panel = ChatPanel(store, assistant, history)
    await panel.send_message("hello")

    assert panel.messages[-1].content == "Error: Chat API key is not configured"
    assert panel.sending is False


@pytest.mark.asyncio
async def test_network_failure_shows_apology(store: PersistenceStore, history: HistoryStore) -> None:
    panel = ChatPanel(store, FakeAssistant(chat=GatewayTransportError("unreachable")), history)
    await panel.send_message("hello")
    assert panel.messages[-1].content == APOLOGY


@pytest.mark.asyncio
async def test_empty_message_is_ignored(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore
) -> None:
    panel = ChatPanel(store, assistant, history)
    assert await panel.send_message("   ") is None
    assert panel.messages == []
    assert assistant.calls == []


@pytest.mark.asyncio
async def test_attachments_are_sent_as_data_urls(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore
) -> None:
    panel = ChatPanel(store, assistant, history)
    assert panel.attach([Attachment(name="pic.png", mime_type="image/png", content=b"\x89PNG")]) == ["pic.png"]
    await panel.send_message("")

    (_, kwargs) = assistant.called("chat")[0]
    [payload] = kwargs["files"]
    assert payload.mime_type == "image/png"
    assert payload.data.startswith("data:image/png;base64,")
    assert panel.attachments == []


@pytest.mark.asyncio
async def test_new_chat_archives_and_clears(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore
) -> None:
    panel = ChatPanel(store, assistant, history)
    await panel.send_message("Plan my week")
    await panel.new_chat()

    assert panel.messages == []
    [archived] = panel.archived_sessions()
    assert archived["preview"] == "Plan my week"
    assert len(archived["messages"]) == 2
    assert history.entries(CHAT_SESSIONS) == [archived]
    assert (await store.get_slot(CHAT_HISTORY, CURRENT_SESSION))["messages"] == []


@pytest.mark.asyncio
async def test_new_chat_clears_when_history_file_is_unwritable(
    store: PersistenceStore, assistant: FakeAssistant, tmp_path: Path
) -> None:
    (tmp_path / "archive.json.tmp").mkdir()
    panel = ChatPanel(store, assistant, HistoryStore(tmp_path / "archive.json"))
    await panel.send_message("hello")
    await panel.new_chat()

    assert panel.messages == []
    assert [entry["preview"] for entry in panel.archived_sessions()] == ["hello"]


@pytest.mark.asyncio
async def test_clear_requires_confirmation(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore
) -> None:
    panel = ChatPanel(store, assistant, history)
    await panel.send_message("keep")
    assert await panel.clear_chat(confirmed=False) is False
    assert len(panel.messages) == 2


@pytest.mark.asyncio
async def test_reply_after_clear_is_dropped(store: PersistenceStore, history: HistoryStore) -> None:
    assistant = SlowAssistant()
    panel = ChatPanel(store, assistant, history)
    pending = asyncio.create_task(panel.send_message("slow question"))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert panel.sending is True

    await panel.clear_chat()
    assistant.release.set()
    assert await pending is None
    assert panel.messages == []
    assert panel.sending is False


@pytest.mark.asyncio
async def test_session_restored_by_fresh_panel(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore
) -> None:
    await ChatPanel(store, assistant, history).send_message("remember me")
    restored = ChatPanel(store, assistant, history)
    messages = await restored.load_history()
    assert [m.content for m in messages] == ["remember me", "Hi there"]
