"""AI operations exposed to the workspace and the HTTP API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from writebox.core.logging import get_logger
from writebox.gateway import prompts
from writebox.gateway.client import Completion, Content, Feature, GenerativeGateway, user_text
from writebox.utils.encoding import strip_data_url

logger = get_logger(__name__)

TITLE_MAX_CHARS = 60


class EmptyInputError(ValueError):
    """Raised before any network call when there is nothing to send."""


class UnknownActionError(EmptyInputError):
    pass


@dataclass(slots=True)
class FilePayload:
    data: str
    mime_type: str


def to_gateway_turns(messages: Iterable[Mapping[str, Any]]) -> list[Content]:
    """Map ``{role, content}`` chat messages onto the API's turn vocabulary."""
    turns: list[Content] = []
    for message in messages:
        text = (message.get("content") or "").strip()
        if not text:
            continue
        role = "user" if message.get("role") == "user" else "model"
        turns.append({"role": role, "parts": [{"text": text}]})
    return turns


class AIService:
    """Prompting layer over :class:`GenerativeGateway`.

    Every method raises :class:`~writebox.gateway.client.GatewayError` on
    failure; callers decide how to surface it.
    """

    def __init__(self, gateway: GenerativeGateway) -> None:
        self.gateway = gateway

    async def generate(
        self,
        prompt: str,
        system_instruction: str | None = None,
        use_thinking: bool = True,
        temperature: float = 0.7,
    ) -> Completion:
        if not prompt.strip():
            raise EmptyInputError("Empty prompt")
        return await self.gateway.generate(
            Feature.EDITOR,
            user_text(prompt),
            system_instruction=system_instruction,
            use_thinking=use_thinking,
            temperature=temperature,
        )

    async def generate_title(self, content: str) -> str:
        if not content.strip():
            raise EmptyInputError("Empty content")
        completion = await self.gateway.generate(
            Feature.EDITOR,
            user_text(prompts.TITLE_PROMPT.format(text=content[:4000])),
            temperature=0.3,
        )
        return clean_title(completion.text)

    async def organize(self, text: str) -> Completion:
        if not text.strip():
            raise EmptyInputError("Empty text")
        return await self.gateway.generate(
            Feature.EDITOR,
            user_text(prompts.ORGANIZE_PROMPT.format(text=text)),
            system_instruction=prompts.WRITING_ASSISTANT,
        )

    async def analyze_image(self, data: str, mime_type: str | None = None, prompt: str | None = None) -> Completion:
        payload = strip_data_url(data or "").strip()
        if not payload:
            raise EmptyInputError("Empty image")
        contents = [
            {
                "role": "user",
                "parts": [
                    {"inlineData": {"data": payload, "mimeType": mime_type or "image/jpeg"}},
                    {"text": prompt or prompts.IMAGE_PROMPT},
                ],
            }
        ]
        return await self.gateway.generate(
            Feature.FILE_ANALYSIS,
            contents,
            model=self.gateway.settings.gemini_analysis_model,
        )

    async def chat(
        self,
        message: str,
        history: Sequence[Mapping[str, Any]] = (),
        files: Sequence[FilePayload] = (),
        use_thinking: bool = False,
        use_search: bool = False,
        temperature: float = 0.9,
    ) -> Completion:
        contents: list[Content] = []
        for item in history:
            parts = [
                part
                for part in item.get("parts") or []
                if (part.get("text") or "").strip() or (part.get("inlineData") or {}).get("data")
            ]
            if parts:
                contents.append({"role": item.get("role", "user"), "parts": parts})

        current: list[dict[str, Any]] = []
        for payload in files:
            data = strip_data_url(payload.data or "").strip()
            if data and payload.mime_type:
                current.append({"inlineData": {"mimeType": payload.mime_type, "data": data}})
        if message and message.strip():
            current.append({"text": message})
        if not current:
            raise EmptyInputError("Empty message")
        contents.append({"role": "user", "parts": current})

        return await self.gateway.generate(
            Feature.CHAT,
            contents,
            use_thinking=use_thinking,
            use_search=use_search,
            temperature=temperature,
        )

    async def process_transcription(
        self,
        text: str,
        language: str | None,
        action: str,
        use_thinking: bool = False,
        use_search: bool = False,
        target_language: str | None = None,
    ) -> Completion:
        if not text or not text.strip():
            raise EmptyInputError("Empty text")
        if action not in prompts.TRANSCRIPT_ACTIONS:
            raise UnknownActionError(f"Unknown action: {action}")
        prompt = prompts.render_action(action, text, language, target_language)
        return await self.gateway.generate(
            Feature.TRANSCRIPTION,
            user_text(prompt),
            use_thinking=use_thinking,
            use_search=use_search,
        )

    async def enhance_realtime(self, text: str, language: str | None) -> str:
        if not text.strip():
            raise EmptyInputError("Empty text")
        completion = await self.gateway.generate(
            Feature.TRANSCRIPTION,
            user_text(prompts.ENHANCE_PROMPT.format(text=text, language=prompts.language_name(language))),
            temperature=0.2,
        )
        return completion.text

    async def transcript_chat(
        self,
        message: str,
        transcript: str,
        history: Sequence[Mapping[str, Any]] = (),
        language: str | None = None,
        use_thinking: bool = False,
        use_search: bool = False,
    ) -> Completion:
        if not message.strip():
            raise EmptyInputError("Empty message")
        contents = to_gateway_turns(history)
        contents.append({"role": "user", "parts": [{"text": message}]})
        system = prompts.TRANSCRIPT_CHAT_SYSTEM.format(
            language=prompts.language_name(language),
            transcript=transcript.strip() or "(empty)",
        )
        return await self.gateway.generate(
            Feature.TRANSCRIPTION,
            contents,
            system_instruction=system,
            use_thinking=use_thinking,
            use_search=use_search,
        )


def clean_title(raw: str) -> str:
    line = next((line for line in raw.splitlines() if line.strip()), "")
    title = line.strip().strip("#*").strip().strip("\"'“”").strip()
    if len(title) > TITLE_MAX_CHARS:
        title = title[:TITLE_MAX_CHARS].rstrip()
    return title


__all__ = [
    "AIService",
    "EmptyInputError",
    "UnknownActionError",
    "FilePayload",
    "clean_title",
    "to_gateway_turns",
]
