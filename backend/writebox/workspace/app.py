"""Assemble the workspace components around one persistence store."""

from __future__ import annotations

from dataclasses import dataclass

from writebox.core.config import Settings
from writebox.core.logging import get_logger
from writebox.gateway.service import AIService
from writebox.speech.recognizer import SpeechRecognizer
from writebox.storage.history import HistoryStore
from writebox.storage.store import PersistenceStore
from writebox.workspace.chat import ChatPanel
from writebox.workspace.editor import DocumentEditor
from writebox.workspace.library import DocumentLibrary
from writebox.workspace.navigation import NavigationController
from writebox.workspace.tasks import TaskTracker
from writebox.workspace.transcription import TranscriptionPanel
from writebox.workspace.vault import FileVault

logger = get_logger(__name__)


@dataclass
class Workspace:
    store: PersistenceStore
    history: HistoryStore
    tracker: TaskTracker
    navigation: NavigationController
    editor: DocumentEditor
    library: DocumentLibrary
    chat: ChatPanel
    vault: FileVault
    transcription: TranscriptionPanel

    @classmethod
    async def open(
        cls,
        settings: Settings,
        assistant: AIService,
        recognizer: SpeechRecognizer | None = None,
    ) -> "Workspace":
        """Open the store and build every component.

        Raises :class:`~writebox.storage.store.StoreError` when the store
        cannot be opened; nothing else about startup is fatal.
        """
        store = PersistenceStore(settings.resolved_db_path)
        await store.init()
        history = HistoryStore(settings.resolved_history_path, capacity=settings.history_capacity)
        tracker = TaskTracker()

        navigation = NavigationController()
        editor = DocumentEditor(
            store,
            assistant,
            tracker,
            autosave_delay=settings.autosave_delay,
            title_min_chars=settings.title_min_chars,
        )
        library = DocumentLibrary(store, editor, navigation)
        chat = ChatPanel(store, assistant, history)
        vault = FileVault(store)
        transcription = TranscriptionPanel(
            store,
            assistant,
            history,
            tracker,
            recognizer=recognizer,
            language=settings.default_language,
        )

        navigation.on_enter("documents", lambda _page: tracker.spawn(library.refresh(), name="library"))
        navigation.on_enter("files", lambda _page: tracker.spawn(vault.refresh(), name="vault"))

        workspace = cls(
            store=store,
            history=history,
            tracker=tracker,
            navigation=navigation,
            editor=editor,
            library=library,
            chat=chat,
            vault=vault,
            transcription=transcription,
        )
        await editor.load_last_document()
        await chat.load_history()
        logger.info("Workspace initialized")
        return workspace

    async def close(self) -> None:
        if self.editor.autosave_pending:
            await self.editor.save()
        await self.tracker.drain()
        await self.store.close()


__all__ = ["Workspace"]
