"""Internal dataclasses representing persisted entities.

Records are stored with camelCase keys so they stay readable by the browser
client, which receives them unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from writebox.utils.time import parse_iso

Role = Literal["user", "assistant"]

USER = "user"
ASSISTANT = "assistant"


@dataclass(slots=True)
class Document:
    id: int | None
    title: str
    content: str
    lastModified: str

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "lastModified": self.lastModified,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Document":
        return cls(
            id=record.get("id"),
            title=record.get("title") or "",
            content=record.get("content") or "",
            lastModified=record.get("lastModified") or "",
        )


@dataclass(slots=True)
class StoredFile:
    id: int | None
    name: str
    size: int
    mimeType: str
    uploadDate: str
    data: str

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "mimeType": self.mimeType,
            "uploadDate": self.uploadDate,
            "data": self.data,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "StoredFile":
        return cls(
            id=record.get("id"),
            name=record.get("name") or "",
            size=int(record.get("size") or 0),
            mimeType=record.get("mimeType") or record.get("type") or "",
            uploadDate=record.get("uploadDate") or "",
            data=record.get("data") or "",
        )


@dataclass(slots=True)
class Transcript:
    id: int | None
    text: str
    language: str
    date: str
    title: str

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "language": self.language,
            "date": self.date,
            "title": self.title,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Transcript":
        return cls(
            id=record.get("id"),
            text=record.get("text") or "",
            language=record.get("language") or "",
            date=record.get("date") or "",
            title=record.get("title") or "",
        )


@dataclass(slots=True)
class Attachment:
    """An uploaded file before it is encoded for storage."""

    name: str
    mime_type: str
    content: bytes


@dataclass(slots=True)
class ChatMessage:
    role: Role
    content: str
    thinking: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.thinking:
            payload["thinking"] = self.thinking
        return payload

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChatMessage":
        role = data.get("role")
        # Older sessions tagged assistant turns as "ai".
        if role not in (USER, ASSISTANT):
            role = ASSISTANT
        return cls(role=role, content=data.get("content") or "", thinking=data.get("thinking") or None)


@dataclass(slots=True)
class ChatSession:
    messages: list[ChatMessage] = field(default_factory=list)
    lastModified: str = ""

    def to_record(self) -> dict[str, Any]:
        return {
            "messages": [message.to_dict() for message in self.messages],
            "lastModified": self.lastModified,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ChatSession":
        return cls(
            messages=[ChatMessage.from_dict(item) for item in record.get("messages") or []],
            lastModified=record.get("lastModified") or "",
        )


def document_recency(record: dict[str, Any]) -> tuple[float, int]:
    """Sort key ordering document records by lastModified, then id."""
    modified = parse_iso(record.get("lastModified"))
    return (modified.timestamp() if modified else 0.0, int(record.get("id") or 0))


__all__ = [
    "Document",
    "document_recency",
    "StoredFile",
    "Transcript",
    "Attachment",
    "ChatMessage",
    "ChatSession",
    "Role",
    "USER",
    "ASSISTANT",
]
