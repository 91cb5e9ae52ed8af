"""Pydantic DTOs exposed via API.

Fields are snake_case in Python and camelCase on the wire, matching what the
browser client sends.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# AI proxy ------------------------------------------------------------------


class GenerateRequest(CamelModel):
    prompt: str
    system_instruction: str | None = None
    use_thinking: bool = True
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)


class TitleRequest(CamelModel):
    content: str


class TitleResponse(CamelModel):
    title: str


class AnalyzeImageRequest(CamelModel):
    image_data: str
    mime_type: str | None = None
    prompt: str | None = None


class TextResponse(CamelModel):
    text: str
    thinking: str = ""


class FileData(CamelModel):
    data: str
    mime_type: str


class ChatRequest(CamelModel):
    message: str = ""
    history: list[dict[str, Any]] = Field(default_factory=list)
    files: list[FileData] = Field(default_factory=list)
    use_thinking: bool = False
    use_search: bool = False
    temperature: float = Field(default=0.9, ge=0.0, le=2.0)


class ChatResponse(CamelModel):
    response: str
    thinking: str = ""


class TranscriptionProcessRequest(CamelModel):
    text: str
    language: str | None = None
    action: str
    use_thinking: bool = False
    use_search: bool = False
    target_lang: str | None = None


class TranscriptionProcessResponse(CamelModel):
    text: str
    result: str
    thinking: str = ""


class EnhanceRequest(CamelModel):
    partial_text: str
    language: str | None = None


class EnhanceResponse(CamelModel):
    enhanced: str


class ChatTurn(CamelModel):
    role: str
    content: str


class TranscriptChatRequest(CamelModel):
    message: str
    transcript_context: str = ""
    history: list[ChatTurn] = Field(default_factory=list)
    language: str | None = None
    use_thinking: bool = False
    use_search: bool = False


class ErrorResponse(CamelModel):
    error: str


# Server file store ---------------------------------------------------------


class IndexedFileOut(CamelModel):
    id: int
    name: str
    size: int
    type: str
    path: str
    upload_date: str


class UploadResponse(CamelModel):
    success: bool
    files: list[IndexedFileOut]


class SuccessResponse(CamelModel):
    success: bool = True


# Workspace -----------------------------------------------------------------


class NavigateRequest(CamelModel):
    page: Literal["editor", "documents", "chat", "files", "transcription"]


class EditRequest(CamelModel):
    content: str | None = None
    title: str | None = None


class DocumentCardOut(CamelModel):
    id: int
    title: str
    preview: str
    last_modified: str
    words: int


class ChatSendRequest(CamelModel):
    text: str = ""
    use_thinking: bool | None = None
    use_search: bool | None = None


class FileCardOut(CamelModel):
    id: int
    name: str
    size: str
    mime_type: str
    upload_date: str


class LanguageRequest(CamelModel):
    language: str = Field(min_length=2)


class SegmentIn(CamelModel):
    text: str
    is_final: bool = False


class SegmentsRequest(CamelModel):
    segments: list[SegmentIn]


class RecognitionErrorRequest(CamelModel):
    error: str


class ActionRequest(CamelModel):
    target_language: str | None = None
    use_thinking: bool | None = None
    use_search: bool | None = None


class SideChatRequest(CamelModel):
    text: str
    use_thinking: bool | None = None
    use_search: bool | None = None


class TranscriptSummaryOut(CamelModel):
    id: int
    title: str
    date: str
    language: str
    preview: str


class SavedResponse(CamelModel):
    id: int


__all__ = [
    "GenerateRequest",
    "TitleRequest",
    "TitleResponse",
    "AnalyzeImageRequest",
    "TextResponse",
    "FileData",
    "ChatRequest",
    "ChatResponse",
    "TranscriptionProcessRequest",
    "TranscriptionProcessResponse",
    "EnhanceRequest",
    "EnhanceResponse",
    "ChatTurn",
    "TranscriptChatRequest",
    "ErrorResponse",
    "IndexedFileOut",
    "UploadResponse",
    "SuccessResponse",
    "NavigateRequest",
    "EditRequest",
    "DocumentCardOut",
    "ChatSendRequest",
    "FileCardOut",
    "LanguageRequest",
    "SegmentIn",
    "SegmentsRequest",
    "RecognitionErrorRequest",
    "ActionRequest",
    "SideChatRequest",
    "TranscriptSummaryOut",
    "SavedResponse",
]
