"""Server-side uploads: files on disk described by a flat JSON index."""

from __future__ import annotations

import random
import re
import threading
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import orjson

from writebox.core.logging import get_logger
from writebox.utils.time import iso_now, now_ms

logger = get_logger(__name__)

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(slots=True)
class IndexedFile:
    id: int
    name: str
    size: int
    type: str
    path: str
    uploadDate: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class FileIndex:
    """Persist uploaded files under ``uploads_dir`` and index them in JSON."""

    def __init__(self, index_path: Path, uploads_dir: Path) -> None:
        self.index_path = index_path.expanduser()
        self.uploads_dir = uploads_dir.expanduser()
        self._lock = threading.Lock()
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        if not self.index_path.exists():
            self._write({"files": []})

    def add(self, name: str, content: bytes, mime_type: str | None) -> IndexedFile:
        with self._lock:
            data = self._read()
            files = data["files"]
            next_id = max((entry["id"] for entry in files), default=0) + 1
            stored_name = f"{now_ms()}-{random.randint(0, 10**9)}-{_safe_name(name)}"
            target = self.uploads_dir / stored_name
            target.write_bytes(content)
            entry = IndexedFile(
                id=next_id,
                name=name,
                size=len(content),
                type=mime_type or "application/octet-stream",
                path=str(target),
                uploadDate=iso_now(),
            )
            files.append(entry.to_dict())
            self._write(data)
        logger.info("Stored upload %s (%s bytes) as %s", name, entry.size, stored_name)
        return entry

    def list(self) -> list[IndexedFile]:
        """Return indexed files, most recent first."""
        with self._lock:
            files = self._read()["files"]
        return [IndexedFile(**entry) for entry in reversed(files)]

    def get(self, file_id: int) -> IndexedFile | None:
        with self._lock:
            for entry in self._read()["files"]:
                if entry["id"] == file_id:
                    return IndexedFile(**entry)
        return None

    def delete(self, file_id: int) -> bool:
        with self._lock:
            data = self._read()
            files = data["files"]
            for index, entry in enumerate(files):
                if entry["id"] == file_id:
                    Path(entry["path"]).unlink(missing_ok=True)
                    del files[index]
                    self._write(data)
                    return True
        return False

    def _read(self) -> dict[str, Any]:
        raw = orjson.loads(self.index_path.read_bytes())
        raw.setdefault("files", [])
        return raw

    def _write(self, data: dict[str, Any]) -> None:
        self.index_path.parent.mkdir(parents=True, exist_ok=True)
        self.index_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))


def _safe_name(name: str) -> str:
    cleaned = _UNSAFE_NAME_RE.sub("_", Path(name).name).strip("._")
    return cleaned or "upload"


__all__ = ["FileIndex", "IndexedFile"]
