"""Live transcription with AI cleanup, tools, side chat and saved snapshots."""

from __future__ import annotations

import html
from enum import Enum
from typing import Any, Sequence

from writebox.core.logging import get_logger
from writebox.gateway.client import GatewayError
from writebox.gateway.prompts import TRANSCRIPT_ACTIONS
from writebox.gateway.service import AIService
from writebox.models.entities import ASSISTANT, USER, ChatMessage, Transcript
from writebox.speech.recognizer import Segment, SpeechRecognizer
from writebox.storage.history import AI_RESULTS, HistoryStore
from writebox.storage.store import TRANSCRIPTIONS, PersistenceStore, StoreError
from writebox.utils.text import preview, sentence_count
from writebox.utils.time import iso_now, now_ms, to_iso, utc_now
from writebox.workspace.status import Status, failure, success
from writebox.workspace.tasks import Generation, TaskTracker

logger = get_logger(__name__)

# Recognition errors after which the stream simply ends and gets restarted.
TRANSIENT_ERRORS = frozenset({"no-speech", "aborted"})

ENHANCE_EVERY = 3


class RecordingState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"


class TranscriptionPanel:
    """Accumulate a running transcript from a speech recognizer."""

    def __init__(
        self,
        store: PersistenceStore,
        assistant: AIService,
        history: HistoryStore,
        tracker: TaskTracker,
        recognizer: SpeechRecognizer | None = None,
        language: str = "en-US",
    ) -> None:
        self.store = store
        self.assistant = assistant
        self.history = history
        self.tracker = tracker
        self.recognizer = recognizer
        self.language = language
        self.state = RecordingState.IDLE
        self.transcript = ""
        self.interim = ""
        self.ai_response = ""
        self.ai_thinking = ""
        self.chat_messages: list[ChatMessage] = []
        self.use_thinking = False
        self.use_search = False
        self.busy = False
        self.status = Status()
        self.restarts = 0
        self._enhanced_blocks = 0
        self._generation = Generation()
        if recognizer is not None:
            recognizer.listener = self

    @property
    def recording(self) -> bool:
        return self.state is RecordingState.RECORDING

    # Recording -------------------------------------------------------

    def toggle_recording(self) -> bool:
        """Start or stop listening; returns whether recording is now active."""
        if self.recognizer is None:
            self.status = failure("Speech recognition is not supported in this browser.")
            return False
        if self.recording:
            self.state = RecordingState.IDLE
            self.interim = ""
            self.recognizer.stop()
        else:
            self.state = RecordingState.RECORDING
            self.recognizer.start(self.language)
        return self.recording

    def handle_result(self, segments: Sequence[Segment]) -> None:
        final = ""
        interim = ""
        for segment in segments:
            if segment.is_final:
                final += segment.text if segment.text.endswith(" ") else segment.text + " "
            else:
                interim = segment.text
        if final:
            self.transcript += final
            self.interim = ""
            self._maybe_enhance()
        elif interim:
            self.interim = interim

    def handle_error(self, error: str) -> None:
        if error in TRANSIENT_ERRORS:
            logger.debug("Transient recognition error: %s", error)
            return
        logger.warning("Speech recognition error: %s", error)
        if self.recording:
            self.toggle_recording()
        self.status = failure(f"Speech recognition error: {error}")

    def handle_end(self) -> None:
        # The engine stops by itself after silence; keep listening.
        if self.recording and self.recognizer is not None:
            self.restarts += 1
            self.recognizer.start(self.language)

    def render(self) -> str:
        """Return the transcript markup with interim text set apart."""
        markup = html.escape(self.transcript)
        if self.interim:
            markup += f'<span class="interim">{html.escape(self.interim)}</span>'
        return markup

    def clear_transcript(self) -> None:
        self._generation.bump()
        self.transcript = ""
        self.interim = ""
        self._enhanced_blocks = 0

    # Realtime enhancement -------------------------------------------

    def _maybe_enhance(self) -> None:
        blocks = sentence_count(self.transcript) // ENHANCE_EVERY
        if blocks <= self._enhanced_blocks:
            return
        self._enhanced_blocks = blocks
        self.tracker.spawn(self._enhance(self.transcript, self._generation.token()), name="enhance")

    async def _enhance(self, text: str, token: int) -> None:
        try:
            enhanced = await self.assistant.enhance_realtime(text, self.language)
        except (GatewayError, ValueError) as exc:
            logger.debug("Realtime enhancement skipped: %s", exc)
            return
        # Newer speech or a reset since the request would be lost by replacing.
        if not self._generation.is_current(token) or self.transcript != text:
            return
        enhanced = enhanced.strip()
        if enhanced:
            self.transcript = enhanced + " "
            # The rewrite may merge or split sentences; count blocks afresh.
            self._enhanced_blocks = sentence_count(self.transcript) // ENHANCE_EVERY

    # AI tools --------------------------------------------------------

    async def run_action(self, action: str, target_language: str | None = None) -> str | None:
        if action not in TRANSCRIPT_ACTIONS:
            self.status = failure(f"Unknown action: {action}")
            return None
        text = self.transcript.strip()
        if not text:
            self.status = failure("There is no transcript to process!")
            return None
        if self.busy:
            self.status = failure("An AI request is already running")
            return None
        self.busy = True
        self.ai_response = "Processing..."
        self.ai_thinking = ""
        try:
            completion = await self.assistant.process_transcription(
                text,
                self.language,
                action,
                use_thinking=self.use_thinking,
                use_search=self.use_search,
                target_language=target_language,
            )
        except (GatewayError, ValueError) as exc:
            logger.warning("Transcript action %s failed: %s", action, exc)
            self.ai_response = f"Error: {exc}"
            return None
        finally:
            self.busy = False
        self.ai_response = completion.text
        self.ai_thinking = completion.thinking
        self.history.push(
            AI_RESULTS,
            {
                "action": action,
                "result": completion.text,
                "thinking": completion.thinking,
                "language": self.language,
                "date": iso_now(),
                "preview": preview(text, 100),
            },
        )
        return completion.text

    def ai_results(self) -> list[dict[str, Any]]:
        return self.history.entries(AI_RESULTS)

    # Side chat -------------------------------------------------------

    async def send_chat_message(self, text: str) -> ChatMessage | None:
        message = text.strip()
        if not message:
            return None
        if self.busy:
            self.status = failure("An AI request is already running")
            return None
        self.busy = True
        prior = [item.to_dict() for item in self.chat_messages]
        self.chat_messages.append(ChatMessage(role=USER, content=message))
        try:
            completion = await self.assistant.transcript_chat(
                message,
                self.transcript,
                history=prior,
                language=self.language,
                use_thinking=self.use_thinking,
                use_search=self.use_search,
            )
            reply = ChatMessage(role=ASSISTANT, content=completion.text, thinking=completion.thinking or None)
        except (GatewayError, ValueError) as exc:
            reply = ChatMessage(role=ASSISTANT, content=f"Error processing your question: {exc}")
        finally:
            self.busy = False
        self.chat_messages.append(reply)
        return reply

    # Saved transcripts -----------------------------------------------

    async def save_transcript(self) -> int | None:
        if not self.transcript.strip():
            self.status = failure("There is no transcript to save!")
            return None
        now = utc_now()
        snapshot = Transcript(
            id=None,
            text=self.transcript,
            language=self.language,
            date=to_iso(now),
            title=f"Transcript {now.strftime('%Y-%m-%d')}",
        )
        try:
            transcript_id = await self.store.save(TRANSCRIPTIONS, snapshot.to_record())
        except StoreError as exc:
            logger.warning("Saving transcript failed: %s", exc)
            self.status = failure("Error saving transcript")
            return None
        self.status = success("Transcript saved!")
        return transcript_id

    async def list_transcripts(self) -> list[dict[str, Any]]:
        try:
            records = await self.store.get_all(TRANSCRIPTIONS)
        except StoreError as exc:
            logger.warning("Listing transcripts failed: %s", exc)
            self.status = failure("Could not load transcripts")
            return []
        items = []
        for record in reversed(records):
            transcript = Transcript.from_record(record)
            items.append(
                {
                    "id": transcript.id,
                    "title": transcript.title,
                    "date": transcript.date,
                    "language": transcript.language,
                    "preview": preview(transcript.text),
                }
            )
        return items

    async def load_transcript(self, transcript_id: int) -> bool:
        try:
            record = await self.store.get(TRANSCRIPTIONS, transcript_id)
        except StoreError as exc:
            logger.warning("Loading transcript %s failed: %s", transcript_id, exc)
            self.status = failure("Could not load transcript")
            return False
        if record is None:
            return False
        transcript = Transcript.from_record(record)
        self.clear_transcript()
        self.transcript = transcript.text
        self._enhanced_blocks = sentence_count(transcript.text) // ENHANCE_EVERY
        if transcript.language:
            self.language = transcript.language
        return True

    async def delete_transcript(self, transcript_id: int, confirmed: bool = True) -> bool:
        if not confirmed:
            return False
        try:
            await self.store.delete(TRANSCRIPTIONS, transcript_id)
        except StoreError as exc:
            logger.warning("Deleting transcript %s failed: %s", transcript_id, exc)
            self.status = failure("Could not delete transcript")
            return False
        return True

    def export_transcript(self) -> tuple[str, str] | None:
        """Return ``(filename, text)`` for a plain-text download."""
        if not self.transcript.strip():
            self.status = failure("There is no transcript to export!")
            return None
        return f"transcript-{now_ms()}.txt", self.transcript

    def snapshot(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "language": self.language,
            "transcript": self.transcript,
            "interim": self.interim,
            "html": self.render(),
            "aiResponse": self.ai_response,
            "aiThinking": self.ai_thinking,
            "chat": [message.to_dict() for message in self.chat_messages],
            "useThinking": self.use_thinking,
            "useSearch": self.use_search,
            "busy": self.busy,
            "status": self.status.to_dict(),
        }


__all__ = ["TranscriptionPanel", "RecordingState", "TRANSIENT_ERRORS"]
