"""File vault backed by the ``files`` collection."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Iterable

from writebox.core.logging import get_logger
from writebox.core.metrics import UPLOADED_FILES
from writebox.models.entities import Attachment, StoredFile
from writebox.storage.store import FILES, PersistenceStore, StoreError
from writebox.utils.encoding import from_data_url, to_data_url
from writebox.utils.time import iso_now
from writebox.workspace.status import Status, failure, success

logger = get_logger(__name__)

KB = 1024
MB = 1024 * 1024


def format_size(size: int) -> str:
    if size < KB:
        return f"{size} B"
    if size < MB:
        return f"{size / KB:.1f} KB"
    return f"{size / MB:.1f} MB"


@dataclass(slots=True)
class FileCard:
    id: int
    name: str
    size: str
    mimeType: str
    uploadDate: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DropEvent:
    """A drag-and-drop gesture carrying files."""

    files: list[Attachment]
    default_prevented: bool = False

    def prevent_default(self) -> None:
        self.default_prevented = True


class FileVault:
    def __init__(self, store: PersistenceStore) -> None:
        self.store = store
        self.cards: list[FileCard] = []
        self.status = Status()

    async def upload(self, files: Iterable[Attachment]) -> list[int]:
        """Encode and store ``files`` one after another, then refresh once."""
        stored: list[int] = []
        for item in files:
            record = StoredFile(
                id=None,
                name=item.name,
                size=len(item.content),
                mimeType=item.mime_type,
                uploadDate=iso_now(),
                data=to_data_url(item.content, item.mime_type),
            )
            try:
                stored.append(await self.store.save(FILES, record.to_record()))
            except StoreError as exc:
                logger.warning("Storing %s failed: %s", item.name, exc)
                self.status = failure(f"Could not store {item.name}")
                continue
            UPLOADED_FILES.labels(destination="vault").inc()
        if stored:
            self.status = success(f"{len(stored)} file(s) uploaded")
        await self.refresh()
        return stored

    def on_drag_over(self, event: DropEvent) -> None:
        event.prevent_default()

    async def on_drop(self, event: DropEvent) -> list[int]:
        event.prevent_default()
        return await self.upload(event.files)

    async def refresh(self) -> list[FileCard]:
        return await self.list_files()

    async def list_files(self) -> list[FileCard]:
        """Return stored files, most recent upload first."""
        try:
            records = await self.store.get_all(FILES)
        except StoreError as exc:
            logger.warning("Listing files failed: %s", exc)
            self.status = failure("Could not load files")
            return self.cards
        cards = []
        for record in reversed(records):
            stored = StoredFile.from_record(record)
            cards.append(
                FileCard(
                    id=record["id"],
                    name=stored.name,
                    size=format_size(stored.size),
                    mimeType=stored.mimeType,
                    uploadDate=stored.uploadDate,
                )
            )
        self.cards = cards
        return cards

    async def delete(self, file_id: int) -> None:
        try:
            await self.store.delete(FILES, file_id)
        except StoreError as exc:
            logger.warning("Deleting file %s failed: %s", file_id, exc)
            self.status = failure("Could not delete file")
            return
        await self.refresh()

    async def download(self, file_id: int) -> tuple[str, str, bytes] | None:
        """Return ``(name, mime_type, content)`` for a stored file."""
        try:
            record = await self.store.get(FILES, file_id)
        except StoreError as exc:
            logger.warning("Reading file %s failed: %s", file_id, exc)
            self.status = failure("Could not read file")
            return None
        if record is None:
            return None
        stored = StoredFile.from_record(record)
        mime_type, content = from_data_url(stored.data)
        return stored.name, stored.mimeType or mime_type, content


__all__ = ["FileVault", "FileCard", "DropEvent", "format_size"]
