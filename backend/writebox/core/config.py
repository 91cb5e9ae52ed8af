"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "WRITEBOX_"
DEFAULT_CONFIG_PATH = Path("~/.config/writebox/config.yaml")
DEFAULT_DATA_DIR = Path.home() / ".writebox"

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "data_dir"): "data_dir",
    ("storage", "db_path"): "db_path",
    ("storage", "history_path"): "history_path",
    ("storage", "uploads_dir"): "uploads_dir",
    ("storage", "file_index_path"): "file_index_path",
    ("gemini", "editor"): "gemini_editor_key",
    ("gemini", "chat"): "gemini_chat_key",
    ("gemini", "transcription"): "gemini_transcription_key",
    ("gemini", "fileAnalysis"): "gemini_file_analysis_key",
    ("gemini", "file_analysis"): "gemini_file_analysis_key",
    ("gemini", "model"): "gemini_model",
    ("gemini", "analysis_model"): "gemini_analysis_model",
    ("gemini", "api_base"): "gemini_api_base",
    ("gemini", "timeout"): "gateway_timeout",
    ("editor", "autosave_delay"): "autosave_delay",
    ("editor", "title_min_chars"): "title_min_chars",
    ("history", "capacity"): "history_capacity",
    ("transcription", "language"): "default_language",
    ("server", "cors_origins"): "cors_origins",
}

_PATH_FIELDS = ("data_dir", "db_path", "history_path", "uploads_dir", "file_index_path")


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    data_dir: Path = Field(default=DEFAULT_DATA_DIR)
    db_path: Path | None = None
    history_path: Path | None = None
    uploads_dir: Path | None = None
    file_index_path: Path | None = None
    gemini_editor_key: str = ""
    gemini_chat_key: str = ""
    gemini_transcription_key: str = ""
    gemini_file_analysis_key: str = ""
    gemini_model: str = "gemini-2.5-flash"
    gemini_analysis_model: str = "gemini-2.5-pro"
    gemini_api_base: str = "https://generativelanguage.googleapis.com/v1beta"
    gateway_timeout: float = 60.0
    autosave_delay: float = 2.0
    title_min_chars: int = 20
    history_capacity: int = Field(default=50, ge=1)
    default_language: str = "en-US"
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://127.0.0.1:3000", "http://localhost:3000"]
    )

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator(*_PATH_FIELDS, mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path | None:
        if value is None or value == "":
            return None
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("path settings must be a path or string")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @property
    def resolved_db_path(self) -> Path:
        return self.db_path or self.data_dir / "writebox.db"

    @property
    def resolved_history_path(self) -> Path:
        return self.history_path or self.data_dir / "history.json"

    @property
    def resolved_uploads_dir(self) -> Path:
        return self.uploads_dir or self.data_dir / "uploads"

    @property
    def resolved_file_index_path(self) -> Path:
        return self.file_index_path or self.data_dir / "database.json"

    def api_key_for(self, feature: str) -> str:
        """Return the API key configured for a gateway feature (may be empty)."""
        return getattr(self, f"gemini_{feature}_key", "") or ""

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        mapped_key = _YAML_KEY_MAP.get(next_prefix)
        if mapped_key:
            flat[mapped_key] = value
        elif isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        elif key in Settings.model_fields:
            flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with WRITEBOX_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    # Legacy per-feature key variables used by earlier deployments.
    for feature in ("editor", "chat", "transcription", "file_analysis"):
        legacy = os.environ.get(f"GEMINI_{feature.upper()}_KEY")
        field_name = f"gemini_{feature}_key"
        if legacy and field_name not in overrides:
            overrides[field_name] = legacy
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]
