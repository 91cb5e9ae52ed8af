"""Client for the hosted generative-language API."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

import httpx

from writebox.core.config import Settings
from writebox.core.logging import get_logger
from writebox.core.metrics import GATEWAY_LATENCY, GATEWAY_REQUESTS

logger = get_logger(__name__)


class Feature(str, Enum):
    """Each feature is billed against its own API key."""

    EDITOR = "editor"
    CHAT = "chat"
    TRANSCRIPTION = "transcription"
    FILE_ANALYSIS = "file_analysis"


class GatewayError(RuntimeError):
    """Base class for every failure of a completion request."""


class MissingCredentialsError(GatewayError):
    def __init__(self, feature: Feature) -> None:
        super().__init__(f"{feature.value.replace('_', ' ').capitalize()} API key is not configured")
        self.feature = feature


class EmptyResponseError(GatewayError):
    """The API answered but produced no usable text (empty or blocked)."""


class GatewayResponseError(GatewayError):
    """The API returned an explicit error body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GatewayTransportError(GatewayError):
    """The request never produced an HTTP response."""


@dataclass(slots=True)
class Completion:
    text: str
    thinking: str = ""


Content = dict[str, Any]


def user_text(text: str) -> list[Content]:
    """Wrap a single prompt as one user turn."""
    return [{"role": "user", "parts": [{"text": text}]}]


class GenerativeGateway:
    """Issue ``generateContent`` calls with per-feature credentials."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    def is_configured(self, feature: Feature) -> bool:
        return bool(self.settings.api_key_for(feature.value))

    async def generate(
        self,
        feature: Feature,
        contents: Sequence[Content],
        *,
        system_instruction: str | None = None,
        use_thinking: bool = False,
        use_search: bool = False,
        temperature: float = 0.7,
        model: str | None = None,
    ) -> Completion:
        api_key = self.settings.api_key_for(feature.value)
        if not api_key:
            GATEWAY_REQUESTS.labels(feature=feature.value, outcome="unconfigured").inc()
            raise MissingCredentialsError(feature)

        body = build_request_body(
            contents,
            system_instruction=system_instruction,
            use_thinking=use_thinking,
            use_search=use_search,
            temperature=temperature,
        )
        model_name = model or self.settings.gemini_model
        url = f"{self.settings.gemini_api_base.rstrip('/')}/models/{model_name}:generateContent"

        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.gateway_timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(url, params={"key": api_key}, json=body)
        except httpx.HTTPError as exc:
            GATEWAY_REQUESTS.labels(feature=feature.value, outcome="transport_error").inc()
            logger.warning("Gateway transport failure: %s", exc, extra={"ctx_feature": feature.value})
            raise GatewayTransportError(str(exc) or exc.__class__.__name__) from exc
        finally:
            GATEWAY_LATENCY.labels(feature=feature.value).observe(time.perf_counter() - started)

        if response.status_code >= 400:
            GATEWAY_REQUESTS.labels(feature=feature.value, outcome="api_error").inc()
            message = _error_message(response)
            logger.warning(
                "Gateway returned %s: %s", response.status_code, message, extra={"ctx_feature": feature.value}
            )
            raise GatewayResponseError(message, status_code=response.status_code)

        try:
            completion = parse_completion(response.json())
        except EmptyResponseError:
            GATEWAY_REQUESTS.labels(feature=feature.value, outcome="empty").inc()
            raise
        except ValueError as exc:
            GATEWAY_REQUESTS.labels(feature=feature.value, outcome="api_error").inc()
            raise GatewayResponseError(f"Malformed response: {exc}") from exc
        GATEWAY_REQUESTS.labels(feature=feature.value, outcome="ok").inc()
        return completion


def build_request_body(
    contents: Sequence[Content],
    *,
    system_instruction: str | None = None,
    use_thinking: bool = False,
    use_search: bool = False,
    temperature: float = 0.7,
) -> dict[str, Any]:
    generation_config: dict[str, Any] = {"temperature": temperature, "topP": 0.95, "topK": 40}
    if use_thinking:
        generation_config["thinkingConfig"] = {"includeThoughts": True}
    else:
        generation_config["thinkingConfig"] = {"thinkingBudget": 0}
    body: dict[str, Any] = {"contents": list(contents), "generationConfig": generation_config}
    if system_instruction:
        body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
    if use_search:
        body["tools"] = [{"google_search": {}}]
    return body


def parse_completion(payload: Any) -> Completion:
    """Split a response into visible text and the reasoning trace."""
    if not isinstance(payload, dict):
        raise ValueError("response is not an object")
    candidates = payload.get("candidates") or []
    if not candidates:
        reason = (payload.get("promptFeedback") or {}).get("blockReason")
        raise EmptyResponseError(f"Response blocked: {reason}" if reason else "No response from model")
    candidate = candidates[0]
    parts = (candidate.get("content") or {}).get("parts") or []
    answer: list[str] = []
    thoughts: list[str] = []
    for part in parts:
        text = part.get("text")
        if not text:
            continue
        if part.get("thought"):
            thoughts.append(text)
        else:
            answer.append(text)
    text = "".join(answer).strip()
    if not text:
        reason = candidate.get("finishReason")
        raise EmptyResponseError(f"Empty response ({reason})" if reason else "Empty response")
    return Completion(text=text, thinking="\n".join(thoughts).strip())


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error
    return f"HTTP {response.status_code}"


__all__ = [
    "Feature",
    "Completion",
    "GenerativeGateway",
    "GatewayError",
    "MissingCredentialsError",
    "EmptyResponseError",
    "GatewayResponseError",
    "GatewayTransportError",
    "build_request_body",
    "parse_completion",
    "user_text",
]
