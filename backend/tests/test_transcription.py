"""Transcription panel tests."""

from __future__ import annotations

import asyncio
import re
from typing import Any

import pytest

from writebox.gateway.client import Completion, GatewayResponseError
from writebox.speech.recognizer import RelayRecognizer, Segment
from writebox.storage.history import AI_RESULTS, HistoryStore
from writebox.storage.store import PersistenceStore
from writebox.workspace.tasks import TaskTracker
from writebox.workspace.transcription import RecordingState, TranscriptionPanel

from conftest import FakeAssistant


class HeldAssistant(FakeAssistant):
    """Holds transcript actions and side chat replies until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.release = asyncio.Event()

    async def process_transcription(self, *args: Any, **kwargs: Any) -> Completion:
        await self.release.wait()
        return await super().process_transcription(*args, **kwargs)

    async def transcript_chat(self, *args: Any, **kwargs: Any) -> Completion:
        await self.release.wait()
        return await super().transcript_chat(*args, **kwargs)


def _panel(store, assistant, history, tracker, recognizer=None) -> TranscriptionPanel:
    return TranscriptionPanel(store, assistant, history, tracker, recognizer=recognizer, language="en-US")


@pytest.mark.asyncio
async def test_final_segment_gets_single_trailing_space(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    panel = _panel(store, assistant, history, tracker)
    panel.handle_result([Segment("hello", is_final=True)])
    assert panel.transcript == "hello "
    panel.handle_result([Segment("world ", is_final=True)])
    assert panel.transcript == "hello world "


@pytest.mark.asyncio
async def test_record_hello_then_stop(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    recognizer = RelayRecognizer()
    panel = _panel(store, assistant, history, tracker, recognizer=recognizer)
    panel.toggle_recording()
    recognizer.emit_result([Segment("hello ", is_final=True)])
    assert panel.toggle_recording() is False

    assert panel.transcript == "hello "
    assert panel.state is RecordingState.IDLE
    assert recognizer.listening is False


@pytest.mark.asyncio
async def test_interim_text_is_rendered_apart(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    panel = _panel(store, assistant, history, tracker)
    panel.handle_result([Segment("a < b", is_final=True)])
    panel.handle_result([Segment("and then", is_final=False)])
    assert panel.transcript == "a < b "
    assert panel.render() == 'a &lt; b <span class="interim">and then</span>'

    panel.handle_result([Segment("and then c", is_final=True)])
    assert panel.interim == ""


@pytest.mark.asyncio
async def test_recording_without_recognizer_reports_unsupported(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    panel = _panel(store, assistant, history, tracker)
    assert panel.toggle_recording() is False
    assert panel.status.message == "Speech recognition is not supported in this browser."


@pytest.mark.asyncio
async def test_recognizer_restarts_after_silence(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    recognizer = RelayRecognizer()
    panel = _panel(store, assistant, history, tracker, recognizer=recognizer)
    assert panel.toggle_recording() is True
    assert recognizer.language == "en-US"

    recognizer.emit_error("no-speech")
    recognizer.emit_end()
    assert panel.state is RecordingState.RECORDING
    assert recognizer.listening is True
    assert recognizer.sessions == 2
    assert panel.restarts == 1

    panel.toggle_recording()
    recognizer.emit_end()
    assert recognizer.sessions == 2
    assert recognizer.listening is False


@pytest.mark.asyncio
async def test_hard_error_stops_recording(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    recognizer = RelayRecognizer()
    panel = _panel(store, assistant, history, tracker, recognizer=recognizer)
    panel.toggle_recording()
    recognizer.emit_error("not-allowed")

    assert panel.state is RecordingState.IDLE
    assert recognizer.listening is False
    assert panel.status.message == "Speech recognition error: not-allowed"


@pytest.mark.asyncio
async def test_every_third_sentence_triggers_enhancement(
    store: PersistenceStore, history: HistoryStore, tracker: TaskTracker
) -> None:
    assistant = FakeAssistant(enhance_realtime="One. Two. Three.")
    panel = _panel(store, assistant, history, tracker)
    panel.handle_result([Segment("one. two.", is_final=True)])
    await tracker.drain()
    assert assistant.called("enhance_realtime") == []

    panel.handle_result([Segment("three.", is_final=True)])
    await tracker.drain()
    assert len(assistant.called("enhance_realtime")) == 1
    assert panel.transcript == "One. Two. Three. "


@pytest.mark.asyncio
async def test_enhancement_resumes_after_rewrite_merges_sentences(
    store: PersistenceStore, history: HistoryStore, tracker: TaskTracker
) -> None:
    assistant = FakeAssistant(enhance_realtime="One two three four five six.")
    panel = _panel(store, assistant, history, tracker)
    panel.handle_result([Segment("one. two. three. four. five. six.", is_final=True)])
    await tracker.drain()
    assert panel.transcript == "One two three four five six. "

    panel.handle_result([Segment("seven. eight.", is_final=True)])
    await tracker.drain()
    assert len(assistant.called("enhance_realtime")) == 2


@pytest.mark.asyncio
async def test_enhancement_is_dropped_after_clear(
    store: PersistenceStore, history: HistoryStore, tracker: TaskTracker
) -> None:
    assistant = FakeAssistant(enhance_realtime="Cleaned.")
    panel = _panel(store, assistant, history, tracker)
    panel.handle_result([Segment("a. b. c.", is_final=True)])
    panel.clear_transcript()
    await tracker.drain()
    assert panel.transcript == ""


@pytest.mark.asyncio
async def test_enhancement_failure_keeps_raw_text(
    store: PersistenceStore, history: HistoryStore, tracker: TaskTracker
) -> None:
    assistant = FakeAssistant(enhance_realtime=GatewayResponseError("busy"))
    panel = _panel(store, assistant, history, tracker)
    panel.handle_result([Segment("a. b. c.", is_final=True)])
    await tracker.drain()
    assert panel.transcript == "a. b. c. "
    assert panel.status.ok is True


@pytest.mark.asyncio
async def test_action_requires_transcript(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    panel = _panel(store, assistant, history, tracker)
    assert await panel.run_action("summarize") is None
    assert panel.status.message == "There is no transcript to process!"
    assert await panel.run_action("juggle") is None
    assert panel.status.message == "Unknown action: juggle"
    assert assistant.calls == []


@pytest.mark.asyncio
async def test_action_result_is_archived(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    panel = _panel(store, assistant, history, tracker)
    panel.use_thinking = True
    panel.handle_result([Segment("we agreed to ship on friday", is_final=True)])
    result = await panel.run_action("translate", target_language="German")

    assert result == "translate result"
    assert panel.ai_response == "translate result"
    (args, kwargs) = assistant.called("process_transcription")[0]
    assert args == ("we agreed to ship on friday", "en-US", "translate")
    assert kwargs["target_language"] == "German"
    assert kwargs["use_thinking"] is True

    [entry] = history.entries(AI_RESULTS)
    assert entry["action"] == "translate"
    assert entry["preview"] == "we agreed to ship on friday"
    assert panel.ai_results() == [entry]


@pytest.mark.asyncio
async def test_action_failure_is_reported_inline(
    store: PersistenceStore, history: HistoryStore, tracker: TaskTracker
) -> None:
    panel = _panel(store, FakeAssistant(process_transcription=GatewayResponseError("quota")), history, tracker)
    panel.handle_result([Segment("some words", is_final=True)])
    assert await panel.run_action("summarize") is None
    assert panel.ai_response == "Error: quota"
    assert history.entries(AI_RESULTS) == []


@pytest.mark.asyncio
async def test_side_chat_sends_prior_turns(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    panel = _panel(store, assistant, history, tracker)
    panel.handle_result([Segment("Alice proposed a budget", is_final=True)])
    await panel.send_chat_message("Who proposed it?")
    await panel.send_chat_message("And what?")

    (args, kwargs) = assistant.called("transcript_chat")[-1]
    assert args == ("And what?", "Alice proposed a budget ")
    assert [turn["role"] for turn in kwargs["history"]] == ["user", "assistant"]
    assert len(panel.chat_messages) == 4
    assert await panel.send_chat_message("   ") is None


@pytest.mark.asyncio
async def test_saved_transcripts_round_trip(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    panel = _panel(store, assistant, history, tracker)
    assert await panel.save_transcript() is None
    assert panel.status.message == "There is no transcript to save!"

    panel.handle_result([Segment("first meeting", is_final=True)])
    first_id = await panel.save_transcript()
    panel.clear_transcript()
    panel.language = "fr-FR"
    panel.handle_result([Segment("deuxième réunion", is_final=True)])
    second_id = await panel.save_transcript()

    listing = await panel.list_transcripts()
    assert [item["id"] for item in listing] == [second_id, first_id]
    assert re.fullmatch(r"Transcript \d{4}-\d{2}-\d{2}", listing[0]["title"])
    assert listing[1]["preview"] == "first meeting"

    assert await panel.load_transcript(first_id) is True
    assert panel.transcript == "first meeting "
    assert panel.language == "en-US"

    assert await panel.delete_transcript(second_id, confirmed=False) is False
    assert await panel.delete_transcript(second_id) is True
    assert [item["id"] for item in await panel.list_transcripts()] == [first_id]
    assert await panel.load_transcript(second_id) is False


@pytest.mark.asyncio
async def test_export_names_file_by_timestamp(
    store: PersistenceStore, assistant: FakeAssistant, history: HistoryStore, tracker: TaskTracker
) -> None:
    panel = _panel(store, assistant, history, tracker)
    assert panel.export_transcript() is None
    panel.handle_result([Segment("export me", is_final=True)])
    filename, text = panel.export_transcript()
    assert re.fullmatch(r"transcript-\d+\.txt", filename)
    assert text == "export me "


@pytest.mark.asyncio
async def test_second_request_is_refused_while_one_is_running(
    store: PersistenceStore, history: HistoryStore, tracker: TaskTracker
) -> None:
    assistant = HeldAssistant()
    panel = _panel(store, assistant, history, tracker)
    panel.handle_result([Segment("budget talk", is_final=True)])
    pending = asyncio.create_task(panel.run_action("summarize"))
    await asyncio.sleep(0)
    assert panel.busy is True
    assert panel.snapshot()["busy"] is True

    assert await panel.run_action("summarize") is None
    assert await panel.send_chat_message("Who spoke?") is None
    assert panel.status.message == "An AI request is already running"
    assert panel.chat_messages == []

    assistant.release.set()
    assert await pending == "summarize result"
    assert panel.busy is False
    assert len(assistant.called("process_transcription")) == 1
    assert (await panel.send_chat_message("Who spoke?")).content == "An answer"


@pytest.mark.asyncio
async def test_busy_flag_resets_after_failure(
    store: PersistenceStore, history: HistoryStore, tracker: TaskTracker
) -> None:
    panel = _panel(store, FakeAssistant(transcript_chat=GatewayResponseError("quota")), history, tracker)
    reply = await panel.send_chat_message("anything?")
    assert reply.content == "Error processing your question: quota"
    assert panel.busy is False
