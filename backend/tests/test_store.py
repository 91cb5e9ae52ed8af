"""Persistence store tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from writebox.storage.store import (
    CHAT_HISTORY,
    DOCUMENTS,
    FILES,
    TRANSCRIPTIONS,
    PersistenceStore,
    StoreError,
    UnknownCollectionError,
)


@pytest.mark.asyncio
async def test_save_assigns_increasing_ids(store: PersistenceStore) -> None:
    first = await store.save(DOCUMENTS, {"title": "A", "content": "", "lastModified": "2024-01-01T00:00:00+00:00"})
    second = await store.save(DOCUMENTS, {"title": "B", "content": "", "lastModified": "2024-01-02T00:00:00+00:00"})
    assert second > first
    records = await store.get_all(DOCUMENTS)
    assert [record["title"] for record in records] == ["A", "B"]
    assert [record["id"] for record in records] == [first, second]


@pytest.mark.asyncio
async def test_save_with_id_overwrites_in_place(store: PersistenceStore) -> None:
    doc_id = await store.save(DOCUMENTS, {"title": "Draft", "content": "one"})
    again = await store.save(DOCUMENTS, {"id": doc_id, "title": "Final", "content": "two"})
    assert again == doc_id
    records = await store.get_all(DOCUMENTS)
    assert len(records) == 1
    assert records[0] == {"id": doc_id, "title": "Final", "content": "two"}


@pytest.mark.asyncio
async def test_get_missing_returns_none(store: PersistenceStore) -> None:
    assert await store.get(FILES, 42) is None


@pytest.mark.asyncio
async def test_delete_is_idempotent(store: PersistenceStore) -> None:
    file_id = await store.save(FILES, {"name": "a.txt", "size": 1})
    await store.delete(FILES, file_id)
    await store.delete(FILES, file_id)
    await store.delete(FILES, 999)
    assert await store.get_all(FILES) == []


@pytest.mark.asyncio
async def test_collections_are_independent(store: PersistenceStore) -> None:
    await store.save(DOCUMENTS, {"title": "Doc"})
    transcript_id = await store.save(TRANSCRIPTIONS, {"text": "hello"})
    assert transcript_id == 1
    assert await store.get_all(FILES) == []


@pytest.mark.asyncio
async def test_unknown_collection_rejected(store: PersistenceStore) -> None:
    with pytest.raises(UnknownCollectionError):
        await store.save("notes", {"title": "x"})
    with pytest.raises(StoreError):
        await store.get_all("notes")


@pytest.mark.asyncio
async def test_slot_survives_reopen(tmp_path: Path) -> None:
    db_path = tmp_path / "slots.db"
    first = PersistenceStore(db_path)
    await first.init()
    slot_id = await first.put_slot(CHAT_HISTORY, "current", {"messages": [{"role": "user", "content": "hi"}]})
    assert await first.put_slot(CHAT_HISTORY, "current", {"messages": []}) == slot_id
    await first.close()

    second = PersistenceStore(db_path)
    await second.init()
    record = await second.get_slot(CHAT_HISTORY, "current")
    await second.close()
    assert record == {"id": slot_id, "messages": []}


@pytest.mark.asyncio
async def test_slot_rows_are_not_listed(store: PersistenceStore) -> None:
    await store.put_slot(CHAT_HISTORY, "current", {"messages": []})
    archived_id = await store.save(CHAT_HISTORY, {"messages": [{"role": "user", "content": "old"}]})
    assert [record["id"] for record in await store.get_all(CHAT_HISTORY)] == [archived_id]


@pytest.mark.asyncio
async def test_operations_after_close_raise_store_error(tmp_path: Path) -> None:
    persistence = PersistenceStore(tmp_path / "closed.db")
    await persistence.init()
    await persistence.close()
    with pytest.raises(StoreError):
        await persistence.get_all(DOCUMENTS)


@pytest.mark.asyncio
async def test_init_fails_when_path_is_unusable(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    persistence = PersistenceStore(blocker / "store.db")
    with pytest.raises(StoreError):
        await persistence.init()
