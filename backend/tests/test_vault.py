"""File vault and server file index tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from writebox.models.entities import Attachment
from writebox.storage.file_index import FileIndex
from writebox.storage.store import FILES, PersistenceStore
from writebox.workspace.vault import DropEvent, FileVault, format_size


def test_format_size() -> None:
    assert format_size(500) == "500 B"
    assert format_size(2000) == "2.0 KB"
    assert format_size(2048) == "2.0 KB"
    assert format_size(5 * 1024 * 1024) == "5.0 MB"


@pytest.mark.asyncio
async def test_upload_lists_newest_first(store: PersistenceStore) -> None:
    vault = FileVault(store)
    await vault.upload(
        [
            Attachment(name="a.txt", mime_type="text/plain", content=b"x" * 500),
            Attachment(name="b.bin", mime_type="application/octet-stream", content=b"y" * 2048),
        ]
    )
    cards = await vault.list_files()
    assert [(card.name, card.size) for card in cards] == [("b.bin", "2.0 KB"), ("a.txt", "500 B")]
    assert vault.status.message == "2 file(s) uploaded"


@pytest.mark.asyncio
async def test_download_returns_original_bytes(store: PersistenceStore) -> None:
    vault = FileVault(store)
    [file_id] = await vault.upload([Attachment(name="note.md", mime_type="text/markdown", content=b"# hi")])
    record = await store.get(FILES, file_id)
    assert record["data"].startswith("data:text/markdown;base64,")

    assert await vault.download(file_id) == ("note.md", "text/markdown", b"# hi")
    assert await vault.download(file_id + 1) is None


@pytest.mark.asyncio
async def test_delete_twice_is_harmless(store: PersistenceStore) -> None:
    vault = FileVault(store)
    [file_id] = await vault.upload([Attachment(name="a.txt", mime_type="text/plain", content=b"a")])
    await vault.delete(file_id)
    await vault.delete(file_id)
    assert vault.cards == []
    assert vault.status.ok is True


@pytest.mark.asyncio
async def test_drop_prevents_default_and_uploads(store: PersistenceStore) -> None:
    vault = FileVault(store)
    over = DropEvent(files=[])
    vault.on_drag_over(over)
    assert over.default_prevented

    drop = DropEvent(files=[Attachment(name="d.txt", mime_type="text/plain", content=b"drop")])
    await vault.on_drop(drop)
    assert drop.default_prevented
    assert [card.name for card in vault.cards] == ["d.txt"]


def test_file_index_add_list_delete(tmp_path: Path) -> None:
    index = FileIndex(tmp_path / "database.json", tmp_path / "uploads")
    first = index.add("report.pdf", b"%PDF", "application/pdf")
    second = index.add("../../etc/passwd", b"root", None)

    assert (first.id, second.id) == (1, 2)
    assert second.type == "application/octet-stream"
    assert Path(second.path).parent == tmp_path / "uploads"
    assert [entry.name for entry in index.list()] == ["../../etc/passwd", "report.pdf"]

    assert index.delete(first.id) is True
    assert not Path(first.path).exists()
    assert index.delete(first.id) is False
    assert index.add("next.txt", b"n", "text/plain").id == 3


def test_file_index_survives_reopen(tmp_path: Path) -> None:
    FileIndex(tmp_path / "database.json", tmp_path / "uploads").add("a.txt", b"a", "text/plain")
    reopened = FileIndex(tmp_path / "database.json", tmp_path / "uploads")
    assert reopened.get(1).name == "a.txt"
    assert reopened.get(2) is None
