"""Document editor with debounced autosave."""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any

from writebox.core.logging import get_logger
from writebox.gateway.client import GatewayError
from writebox.gateway.service import AIService
from writebox.models.entities import Document, document_recency
from writebox.storage.store import DOCUMENTS, PersistenceStore, StoreError
from writebox.utils.text import html_to_text, text_to_html, word_count
from writebox.utils.time import next_after
from writebox.workspace.status import Status, failure, success
from writebox.workspace.tasks import Debouncer, Generation, TaskTracker

logger = get_logger(__name__)

UNTITLED = "Untitled"


class EditorState(str, Enum):
    EMPTY = "empty"
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"


class DocumentEditor:
    """Own the live document: its markup, title and save lifecycle."""

    def __init__(
        self,
        store: PersistenceStore,
        assistant: AIService,
        tracker: TaskTracker,
        autosave_delay: float = 2.0,
        title_min_chars: int = 20,
    ) -> None:
        self.store = store
        self.assistant = assistant
        self.title_min_chars = title_min_chars
        self.current: Document | None = None
        self.title = ""
        self.content = ""
        self.state = EditorState.EMPTY
        self.status = Status()
        self.saves = 0
        self._generation = Generation()
        self._autosave = Debouncer(autosave_delay, self._autosave_now, tracker, name="autosave")

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    def edit(self, content: str | None = None, title: str | None = None) -> None:
        """Apply a keystroke-level change and restart the autosave timer."""
        if content is not None:
            self.content = content
        if title is not None:
            self.title = title
        self.state = EditorState.DIRTY
        self._autosave.schedule()

    async def save(self, manual: bool = False) -> int | None:
        self._autosave.cancel()
        token = self._generation.token()
        self.state = EditorState.SAVING
        content = self.content
        title = self.title.strip()

        if not title:
            title = await self._suggest_title(content)
            if not self._generation.is_current(token):
                logger.debug("Discarding save for a document that is no longer open")
                return None
            self.title = title

        previous = self.current.lastModified if self.current else None
        doc = Document(
            id=self.current.id if self.current else None,
            title=title,
            content=content,
            lastModified=next_after(previous),
        )
        try:
            doc_id = await self.store.save(DOCUMENTS, doc.to_record())
        except StoreError as exc:
            logger.warning("Saving document failed: %s", exc)
            self.state = EditorState.DIRTY
            self.status = failure("Error saving")
            return None

        if not self._generation.is_current(token):
            return doc_id
        doc.id = doc_id
        self.current = doc
        self.saves += 1
        # Edits that arrived while saving keep the document dirty.
        if self.state is EditorState.SAVING:
            self.state = EditorState.CLEAN
        self.status = success("Saved!" if manual else "Auto-saved")
        return doc_id

    async def organize(self) -> bool:
        """Ask the assistant to clean up the text and replace the content with it."""
        text = html_to_text(self.content).strip()
        if not text:
            self.status = failure("Write something before organizing!")
            return False
        token = self._generation.token()
        self.status = success("Organizing...")
        try:
            completion = await self.assistant.organize(text)
        except GatewayError as exc:
            logger.warning("Organize failed: %s", exc)
            self.status = failure("Error organizing")
            return False
        if not self._generation.is_current(token):
            return False
        self.content = text_to_html(completion.text)
        self.state = EditorState.DIRTY
        await self.save(manual=True)
        if self.state is EditorState.CLEAN:
            self.status = success("Text organized!")
        return True

    async def load_last_document(self) -> Document | None:
        """Open the document with the latest ``lastModified`` timestamp."""
        try:
            records = await self.store.get_all(DOCUMENTS)
        except StoreError as exc:
            logger.warning("Loading documents failed: %s", exc)
            self.status = failure("Could not load documents")
            return None
        if not records:
            return None
        latest = max(records, key=document_recency)
        return self.load_document(latest)

    def load_document(self, record: dict[str, Any]) -> Document:
        self._reset()
        doc = Document.from_record(copy.deepcopy(record))
        self.current = doc
        self.title = doc.title
        self.content = doc.content
        self.state = EditorState.CLEAN
        return doc

    def new_document(self) -> None:
        self._reset()
        self.current = None
        self.title = ""
        self.content = ""
        self.state = EditorState.EMPTY

    def stats(self) -> dict[str, int]:
        text = html_to_text(self.content)
        return {"words": word_count(text), "characters": len(text)}

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.current.id if self.current else None,
            "title": self.title,
            "content": self.content,
            "lastModified": self.current.lastModified if self.current else None,
            "state": self.state.value,
            "status": self.status.to_dict(),
            "stats": self.stats(),
        }

    async def _autosave_now(self) -> None:
        if self.state is EditorState.DIRTY:
            await self.save(manual=False)

    async def _suggest_title(self, content: str) -> str:
        text = html_to_text(content)
        if len(text) <= self.title_min_chars:
            return UNTITLED
        try:
            title = await self.assistant.generate_title(text)
        except GatewayError as exc:
            logger.info("Title generation unavailable: %s", exc)
            return UNTITLED
        return title or UNTITLED

    def _reset(self) -> None:
        self._autosave.cancel()
        self._generation.bump()
        self.status = Status()


__all__ = ["DocumentEditor", "EditorState", "UNTITLED"]
