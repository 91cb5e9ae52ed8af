"""Speech recognition event sources."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence


@dataclass(slots=True)
class Segment:
    """One recognition result; interim segments may still be revised."""

    text: str
    is_final: bool


class RecognitionListener(Protocol):
    def handle_result(self, segments: Sequence[Segment]) -> None: ...

    def handle_error(self, error: str) -> None: ...

    def handle_end(self) -> None: ...


class SpeechRecognizer(Protocol):
    listener: RecognitionListener | None

    def start(self, language: str) -> None: ...

    def stop(self) -> None: ...


class RelayRecognizer:
    """Recognizer whose events are produced by an outside client.

    The browser runs the actual speech engine and posts its events; this
    object keeps the listening state the browser polls and forwards each
    event to the listener.
    """

    def __init__(self) -> None:
        self.listener: RecognitionListener | None = None
        self.listening = False
        self.language: str | None = None
        self.sessions = 0

    def start(self, language: str) -> None:
        self.listening = True
        self.language = language
        self.sessions += 1

    def stop(self) -> None:
        self.listening = False

    def emit_result(self, segments: Sequence[Segment]) -> None:
        if self.listener is not None:
            self.listener.handle_result(segments)

    def emit_error(self, error: str) -> None:
        if self.listener is not None:
            self.listener.handle_error(error)

    def emit_end(self) -> None:
        self.listening = False
        if self.listener is not None:
            self.listener.handle_end()


__all__ = ["Segment", "RecognitionListener", "SpeechRecognizer", "RelayRecognizer"]
