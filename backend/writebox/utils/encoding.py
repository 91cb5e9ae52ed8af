"""Data URL helpers for storable file payloads."""

from __future__ import annotations

import base64
import binascii

DEFAULT_MIME = "application/octet-stream"


def to_data_url(content: bytes, mime_type: str | None) -> str:
    """Encode bytes as a self-describing ``data:`` URL."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type or DEFAULT_MIME};base64,{encoded}"


def strip_data_url(payload: str) -> str:
    """Return the bare base64 part of a data URL (or the payload itself)."""
    if payload.startswith("data:") and "," in payload:
        return payload.split(",", 1)[1]
    return payload


def from_data_url(payload: str) -> tuple[str, bytes]:
    """Decode a data URL into ``(mime_type, content)``.

    Raises ``ValueError`` when the payload is not valid base64.
    """
    mime_type = DEFAULT_MIME
    if payload.startswith("data:") and "," in payload:
        header, _ = payload.split(",", 1)
        declared = header[len("data:") :].split(";", 1)[0]
        if declared:
            mime_type = declared
    try:
        content = base64.b64decode(strip_data_url(payload), validate=True)
    except binascii.Error as exc:
        raise ValueError("payload is not valid base64") from exc
    return mime_type, content


__all__ = ["to_data_url", "strip_data_url", "from_data_url", "DEFAULT_MIME"]
