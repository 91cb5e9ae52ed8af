"""Bounded most-recent-first history logs kept outside the main store."""

from __future__ import annotations

import threading
from collections import deque
from pathlib import Path
from typing import Any, Iterable, Iterator

import orjson

from writebox.core.logging import get_logger

logger = get_logger(__name__)

CHAT_SESSIONS = "chat_sessions"
AI_RESULTS = "ai_results"

DEFAULT_CAPACITY = 50


class BoundedLog:
    """Fixed-capacity log holding the newest entries first.

    ``push`` prepends; anything beyond ``capacity`` is dropped from the old
    end at insert time.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, items: Iterable[Any] = ()) -> None:
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: deque[Any] = deque(maxlen=capacity)
        # ``items`` is already newest-first; keep its head.
        for item in list(items)[:capacity]:
            self._items.append(item)

    def push(self, item: Any) -> None:
        self._items.appendleft(item)

    def items(self) -> list[Any]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)


class HistoryStore:
    """Small keyed store of bounded logs persisted to one JSON file."""

    def __init__(self, path: Path, capacity: int = DEFAULT_CAPACITY) -> None:
        self.path = path.expanduser()
        self.capacity = capacity
        self._lock = threading.Lock()
        self._logs: dict[str, BoundedLog] = {}
        self._load()

    def push(self, key: str, entry: Any) -> None:
        with self._lock:
            self._log(key).push(entry)
            self._flush()

    def entries(self, key: str) -> list[Any]:
        with self._lock:
            return self._log(key).items()

    def clear(self, key: str) -> None:
        with self._lock:
            self._log(key).clear()
            self._flush()

    def _log(self, key: str) -> BoundedLog:
        log = self._logs.get(key)
        if log is None:
            log = BoundedLog(self.capacity)
            self._logs[key] = log
        return log

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            raw = orjson.loads(self.path.read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            # History is non-authoritative; start empty rather than fail.
            logger.warning("Discarding unreadable history file %s: %s", self.path, exc)
            return
        if not isinstance(raw, dict):
            return
        for key, items in raw.items():
            if isinstance(items, list):
                self._logs[key] = BoundedLog(self.capacity, items)

    def _flush(self) -> None:
        payload = {key: log.items() for key, log in self._logs.items()}
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
            tmp_path.replace(self.path)
        except OSError as exc:
            # The in-memory log stays current; the next flush retries the write.
            logger.warning("Could not write history file %s: %s", self.path, exc)


__all__ = ["BoundedLog", "HistoryStore", "CHAT_SESSIONS", "AI_RESULTS", "DEFAULT_CAPACITY"]
