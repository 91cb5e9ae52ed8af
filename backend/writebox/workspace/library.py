"""Saved document listing and search."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from writebox.core.logging import get_logger
from writebox.models.entities import document_recency
from writebox.storage.store import DOCUMENTS, PersistenceStore, StoreError
from writebox.utils.text import html_to_text, preview, word_count
from writebox.workspace.editor import DocumentEditor
from writebox.workspace.navigation import NavigationController
from writebox.workspace.status import Status, failure

logger = get_logger(__name__)


@dataclass(slots=True)
class DocumentCard:
    id: int
    title: str
    preview: str
    lastModified: str
    words: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class DocumentLibrary:
    def __init__(
        self,
        store: PersistenceStore,
        editor: DocumentEditor,
        navigation: NavigationController,
    ) -> None:
        self.store = store
        self.editor = editor
        self.navigation = navigation
        self.cards: list[DocumentCard] = []
        self.status = Status()

    async def search(self, query: str = "") -> list[DocumentCard]:
        """List documents newest first, keeping those matching ``query``."""
        try:
            records = await self.store.get_all(DOCUMENTS)
        except StoreError as exc:
            logger.warning("Listing documents failed: %s", exc)
            self.status = failure("Could not load documents")
            return []
        records.sort(key=document_recency, reverse=True)
        needle = query.lower() if query.strip() else ""
        cards: list[DocumentCard] = []
        for record in records:
            text = html_to_text(record.get("content") or "")
            title = record.get("title") or ""
            if needle and needle not in title.lower() and needle not in text.lower():
                continue
            cards.append(
                DocumentCard(
                    id=record["id"],
                    title=title,
                    preview=preview(text),
                    lastModified=record.get("lastModified") or "",
                    words=word_count(text),
                )
            )
        self.cards = cards
        self.status = Status()
        return cards

    async def refresh(self) -> list[DocumentCard]:
        return await self.search()

    async def open_document(self, doc_id: int) -> bool:
        try:
            record = await self.store.get(DOCUMENTS, doc_id)
        except StoreError as exc:
            logger.warning("Opening document %s failed: %s", doc_id, exc)
            self.status = failure("Could not open document")
            return False
        if record is None:
            return False
        self.editor.load_document(record)
        self.navigation.navigate_to("editor")
        return True


__all__ = ["DocumentLibrary", "DocumentCard"]
