"""Test fixtures for Writebox."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from writebox.gateway.client import Completion  # noqa: E402
from writebox.gateway.service import EmptyInputError  # noqa: E402
from writebox.storage.history import HistoryStore  # noqa: E402
from writebox.storage.store import PersistenceStore  # noqa: E402
from writebox.workspace.tasks import TaskTracker  # noqa: E402


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("WRITEBOX_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("WRITEBOX_CONFIG", raising=False)
    for feature in ("EDITOR", "CHAT", "TRANSCRIPTION", "FILE_ANALYSIS"):
        monkeypatch.delenv(f"GEMINI_{feature}_KEY", raising=False)
        monkeypatch.delenv(f"WRITEBOX_GEMINI_{feature}_KEY", raising=False)

    from writebox.api import dependencies as deps

    deps.reset_state()
    yield
    deps.reset_state()


class FakeAssistant:
    """Stands in for ``AIService``; records calls and replays canned output.

    ``replies`` maps a method name to either a value or an exception
    instance, which is raised instead.
    """

    def __init__(self, **replies: Any) -> None:
        self.replies = replies
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def called(self, name: str) -> list[tuple[tuple[Any, ...], dict[str, Any]]]:
        return [(args, kwargs) for method, args, kwargs in self.calls if method == name]

    def _reply(self, name: str, default: Any, *args: Any, **kwargs: Any) -> Any:
        self.calls.append((name, args, kwargs))
        reply = self.replies.get(name, default)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def generate_title(self, content: str) -> str:
        return self._reply("generate_title", "Generated Title", content)

    async def organize(self, text: str) -> Completion:
        return self._reply("organize", Completion(text=text), text)

    async def chat(self, message: str, **kwargs: Any) -> Completion:
        if not message and not kwargs.get("files"):
            raise EmptyInputError("Empty message")
        return self._reply("chat", Completion(text="Hi there"), message, **kwargs)

    async def process_transcription(self, text: str, language: str | None, action: str, **kwargs: Any) -> Completion:
        return self._reply(
            "process_transcription",
            Completion(text=f"{action} result"),
            text,
            language,
            action,
            **kwargs,
        )

    async def enhance_realtime(self, text: str, language: str | None) -> str:
        return self._reply("enhance_realtime", text, text, language)

    async def transcript_chat(self, message: str, transcript: str, **kwargs: Any) -> Completion:
        return self._reply("transcript_chat", Completion(text="An answer"), message, transcript, **kwargs)


@pytest.fixture
def assistant() -> FakeAssistant:
    return FakeAssistant()


@pytest_asyncio.fixture
async def store(tmp_path: Path) -> PersistenceStore:
    persistence = PersistenceStore(tmp_path / "store.db")
    await persistence.init()
    yield persistence
    await persistence.close()


@pytest.fixture
def history(tmp_path: Path) -> HistoryStore:
    return HistoryStore(tmp_path / "history.json", capacity=50)


@pytest_asyncio.fixture
async def tracker() -> TaskTracker:
    tasks = TaskTracker()
    yield tasks
    tasks.cancel_all()
    await tasks.drain()
