"""Shared FastAPI dependencies."""

from __future__ import annotations

import asyncio
from functools import lru_cache

from writebox.core.config import Settings, get_settings
from writebox.gateway.client import GenerativeGateway
from writebox.gateway.service import AIService
from writebox.speech.recognizer import RelayRecognizer
from writebox.storage.file_index import FileIndex
from writebox.workspace.app import Workspace

_AI_SERVICE: AIService | None = None
_FILE_INDEX: FileIndex | None = None
_RECOGNIZER: RelayRecognizer | None = None
_WORKSPACE: Workspace | None = None
_WORKSPACE_LOCK: asyncio.Lock | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_ai_service() -> AIService:
    global _AI_SERVICE
    if _AI_SERVICE is None:
        _AI_SERVICE = AIService(GenerativeGateway(get_app_settings()))
    return _AI_SERVICE


def get_file_index() -> FileIndex:
    global _FILE_INDEX
    if _FILE_INDEX is None:
        settings = get_app_settings()
        _FILE_INDEX = FileIndex(settings.resolved_file_index_path, settings.resolved_uploads_dir)
    return _FILE_INDEX


def get_recognizer() -> RelayRecognizer:
    global _RECOGNIZER
    if _RECOGNIZER is None:
        _RECOGNIZER = RelayRecognizer()
    return _RECOGNIZER


async def get_workspace() -> Workspace:
    global _WORKSPACE, _WORKSPACE_LOCK
    if _WORKSPACE is not None:
        return _WORKSPACE
    if _WORKSPACE_LOCK is None:
        _WORKSPACE_LOCK = asyncio.Lock()
    async with _WORKSPACE_LOCK:
        if _WORKSPACE is None:
            _WORKSPACE = await Workspace.open(
                get_app_settings(),
                get_ai_service(),
                recognizer=get_recognizer(),
            )
    return _WORKSPACE


async def close_workspace() -> None:
    global _WORKSPACE
    if _WORKSPACE is not None:
        await _WORKSPACE.close()
        _WORKSPACE = None


def reset_state() -> None:
    """Forget cached singletons (used between test runs)."""
    global _AI_SERVICE, _FILE_INDEX, _RECOGNIZER, _WORKSPACE, _WORKSPACE_LOCK
    get_app_settings.cache_clear()
    get_settings.cache_clear()
    _AI_SERVICE = None
    _FILE_INDEX = None
    _RECOGNIZER = None
    _WORKSPACE = None
    _WORKSPACE_LOCK = None


__all__ = [
    "get_app_settings",
    "get_ai_service",
    "get_file_index",
    "get_recognizer",
    "get_workspace",
    "close_workspace",
    "reset_state",
]
