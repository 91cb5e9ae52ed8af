"""Routes driving the workspace components."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile

from writebox.api.dependencies import get_recognizer, get_workspace
from writebox.models.dto import (
    ActionRequest,
    ChatSendRequest,
    DocumentCardOut,
    EditRequest,
    FileCardOut,
    LanguageRequest,
    NavigateRequest,
    RecognitionErrorRequest,
    SavedResponse,
    SegmentsRequest,
    SideChatRequest,
    SuccessResponse,
    TranscriptSummaryOut,
)
from writebox.models.entities import Attachment
from writebox.speech.recognizer import RelayRecognizer, Segment
from writebox.workspace.app import Workspace

router = APIRouter()


async def _read_uploads(files: list[UploadFile] | None) -> list[Attachment]:
    attachments = []
    for upload in files or []:
        attachments.append(
            Attachment(
                name=upload.filename or "upload",
                mime_type=upload.content_type or "application/octet-stream",
                content=await upload.read(),
            )
        )
    return attachments


# Navigation ------------------------------------------------------------------


@router.get("/navigation", summary="Current page and menu state")
async def get_navigation(workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    return workspace.navigation.snapshot()


@router.post("/navigation", summary="Switch page")
async def navigate(request: NavigateRequest, workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    workspace.navigation.navigate_to(request.page)
    return workspace.navigation.snapshot()


@router.post("/navigation/menu", summary="Toggle the side menu")
async def toggle_menu(workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    workspace.navigation.toggle_menu()
    return workspace.navigation.snapshot()


# Editor ----------------------------------------------------------------------


@router.get("/editor", summary="Editor state")
async def get_editor(workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    return workspace.editor.snapshot()


@router.post("/editor/edit", summary="Apply an edit and schedule autosave")
async def edit_document(request: EditRequest, workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    workspace.editor.edit(content=request.content, title=request.title)
    return workspace.editor.snapshot()


@router.post("/editor/save", summary="Save the open document")
async def save_document(workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    await workspace.editor.save(manual=True)
    return workspace.editor.snapshot()


@router.post("/editor/organize", summary="Let the assistant organize the text")
async def organize_document(workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    await workspace.editor.organize()
    return workspace.editor.snapshot()


@router.post("/editor/new", summary="Start a new document")
async def new_document(workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    workspace.editor.new_document()
    return workspace.editor.snapshot()


# Library ---------------------------------------------------------------------


@router.get("/documents", response_model=list[DocumentCardOut], summary="List or search documents")
async def search_documents(q: str = "", workspace: Workspace = Depends(get_workspace)) -> list[DocumentCardOut]:
    cards = await workspace.library.search(q)
    return [DocumentCardOut(**card.to_dict()) for card in cards]


@router.post("/documents/{doc_id}/open", summary="Open a document in the editor")
async def open_document(doc_id: int, workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    if not await workspace.library.open_document(doc_id):
        raise HTTPException(status_code=404, detail="Document not found")
    return workspace.editor.snapshot()


# Chat ------------------------------------------------------------------------


@router.get("/chat", summary="Chat session state")
async def get_chat(workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    return workspace.chat.snapshot()


@router.post("/chat/attachments", summary="Attach files to the next message")
async def attach_files(
    files: list[UploadFile] | None = File(default=None),
    workspace: Workspace = Depends(get_workspace),
) -> dict[str, Any]:
    workspace.chat.attach(await _read_uploads(files))
    return workspace.chat.snapshot()


@router.post("/chat/messages", summary="Send a chat message")
async def send_chat_message(request: ChatSendRequest, workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    chat = workspace.chat
    if request.use_thinking is not None:
        chat.use_thinking = request.use_thinking
    if request.use_search is not None:
        chat.use_search = request.use_search
    await chat.send_message(request.text)
    return chat.snapshot()


@router.delete("/chat", summary="Clear the conversation")
async def clear_chat(confirm: bool = False, workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    if not confirm:
        raise HTTPException(status_code=400, detail="Clearing the chat must be confirmed")
    await workspace.chat.clear_chat(confirmed=True)
    return workspace.chat.snapshot()


@router.post("/chat/new", summary="Archive the conversation and start over")
async def new_chat(workspace: Workspace = Depends(get_workspace)) -> dict[str, Any]:
    await workspace.chat.new_chat()
    return workspace.chat.snapshot()


@router.get("/chat/archive", summary="Archived chat sessions")
async def chat_archive(workspace: Workspace = Depends(get_workspace)) -> list[dict[str, Any]]:
    return workspace.chat.archived_sessions()


# Vault -----------------------------------------------------------------------


@router.get("/vault", response_model=list[FileCardOut], summary="List vault files")
async def list_vault(workspace: Workspace = Depends(get_workspace)) -> list[FileCardOut]:
    return [FileCardOut(**card.to_dict()) for card in await workspace.vault.list_files()]


@router.post("/vault", response_model=list[FileCardOut], summary="Upload files into the vault")
async def upload_vault(
    files: list[UploadFile] | None = File(default=None),
    workspace: Workspace = Depends(get_workspace),
) -> list[FileCardOut]:
    attachments = await _read_uploads(files)
    if not attachments:
        raise HTTPException(status_code=400, detail="No files uploaded")
    await workspace.vault.upload(attachments)
    return [FileCardOut(**card.to_dict()) for card in workspace.vault.cards]


@router.delete("/vault/{file_id}", response_model=SuccessResponse, summary="Delete a vault file")
async def delete_vault_file(file_id: int, workspace: Workspace = Depends(get_workspace)) -> SuccessResponse:
    await workspace.vault.delete(file_id)
    return SuccessResponse()


@router.get("/vault/{file_id}/download", summary="Download a vault file")
async def download_vault_file(file_id: int, workspace: Workspace = Depends(get_workspace)) -> Response:
    found = await workspace.vault.download(file_id)
    if found is None:
        raise HTTPException(status_code=404, detail="File not found")
    name, mime_type, content = found
    return Response(
        content=content,
        media_type=mime_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(name)}"},
    )


# Transcription ---------------------------------------------------------------


def _transcription_state(workspace: Workspace, recognizer: RelayRecognizer) -> dict[str, Any]:
    state = workspace.transcription.snapshot()
    state["listening"] = recognizer.listening
    return state


@router.get("/transcription", summary="Transcription state")
async def get_transcription(
    workspace: Workspace = Depends(get_workspace),
    recognizer: RelayRecognizer = Depends(get_recognizer),
) -> dict[str, Any]:
    return _transcription_state(workspace, recognizer)


@router.put("/transcription/language", summary="Select the recognition language")
async def set_language(
    request: LanguageRequest,
    workspace: Workspace = Depends(get_workspace),
    recognizer: RelayRecognizer = Depends(get_recognizer),
) -> dict[str, Any]:
    workspace.transcription.language = request.language
    return _transcription_state(workspace, recognizer)


@router.post("/transcription/toggle", summary="Start or stop recording")
async def toggle_recording(
    workspace: Workspace = Depends(get_workspace),
    recognizer: RelayRecognizer = Depends(get_recognizer),
) -> dict[str, Any]:
    workspace.transcription.toggle_recording()
    return _transcription_state(workspace, recognizer)


@router.post("/transcription/segments", summary="Deliver recognition results")
async def push_segments(
    request: SegmentsRequest,
    workspace: Workspace = Depends(get_workspace),
    recognizer: RelayRecognizer = Depends(get_recognizer),
) -> dict[str, Any]:
    recognizer.emit_result([Segment(text=item.text, is_final=item.is_final) for item in request.segments])
    return _transcription_state(workspace, recognizer)


@router.post("/transcription/error", summary="Report a recognition error")
async def push_error(
    request: RecognitionErrorRequest,
    workspace: Workspace = Depends(get_workspace),
    recognizer: RelayRecognizer = Depends(get_recognizer),
) -> dict[str, Any]:
    recognizer.emit_error(request.error)
    return _transcription_state(workspace, recognizer)


@router.post("/transcription/end", summary="Report that the recognition stream ended")
async def push_end(
    workspace: Workspace = Depends(get_workspace),
    recognizer: RelayRecognizer = Depends(get_recognizer),
) -> dict[str, Any]:
    recognizer.emit_end()
    return _transcription_state(workspace, recognizer)


@router.delete("/transcription", summary="Clear the live transcript")
async def clear_transcription(
    workspace: Workspace = Depends(get_workspace),
    recognizer: RelayRecognizer = Depends(get_recognizer),
) -> dict[str, Any]:
    workspace.transcription.clear_transcript()
    return _transcription_state(workspace, recognizer)


@router.post("/transcription/actions/{action}", summary="Run an AI tool on the transcript")
async def run_action(
    action: str,
    request: ActionRequest | None = None,
    workspace: Workspace = Depends(get_workspace),
    recognizer: RelayRecognizer = Depends(get_recognizer),
) -> dict[str, Any]:
    panel = workspace.transcription
    request = request or ActionRequest()
    if request.use_thinking is not None:
        panel.use_thinking = request.use_thinking
    if request.use_search is not None:
        panel.use_search = request.use_search
    await panel.run_action(action, target_language=request.target_language)
    return _transcription_state(workspace, recognizer)


@router.get("/transcription/results", summary="Archived AI tool results")
async def ai_results(workspace: Workspace = Depends(get_workspace)) -> list[dict[str, Any]]:
    return workspace.transcription.ai_results()


@router.post("/transcription/chat", summary="Ask a question about the transcript")
async def side_chat(
    request: SideChatRequest,
    workspace: Workspace = Depends(get_workspace),
    recognizer: RelayRecognizer = Depends(get_recognizer),
) -> dict[str, Any]:
    panel = workspace.transcription
    if request.use_thinking is not None:
        panel.use_thinking = request.use_thinking
    if request.use_search is not None:
        panel.use_search = request.use_search
    await panel.send_chat_message(request.text)
    return _transcription_state(workspace, recognizer)


@router.get("/transcription/export", summary="Download the transcript as plain text")
async def export_transcript(workspace: Workspace = Depends(get_workspace)) -> Response:
    exported = workspace.transcription.export_transcript()
    if exported is None:
        raise HTTPException(status_code=400, detail="There is no transcript to export")
    filename, text = exported
    return Response(
        content=text,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/transcripts", response_model=SavedResponse, summary="Save the transcript")
async def save_transcript(workspace: Workspace = Depends(get_workspace)) -> SavedResponse:
    transcript_id = await workspace.transcription.save_transcript()
    if transcript_id is None:
        raise HTTPException(status_code=400, detail=workspace.transcription.status.message)
    return SavedResponse(id=transcript_id)


@router.get("/transcripts", response_model=list[TranscriptSummaryOut], summary="List saved transcripts")
async def list_transcripts(workspace: Workspace = Depends(get_workspace)) -> list[TranscriptSummaryOut]:
    return [TranscriptSummaryOut(**item) for item in await workspace.transcription.list_transcripts()]


@router.post("/transcripts/{transcript_id}/load", summary="Load a saved transcript")
async def load_transcript(
    transcript_id: int,
    workspace: Workspace = Depends(get_workspace),
    recognizer: RelayRecognizer = Depends(get_recognizer),
) -> dict[str, Any]:
    if not await workspace.transcription.load_transcript(transcript_id):
        raise HTTPException(status_code=404, detail="Transcript not found")
    return _transcription_state(workspace, recognizer)


@router.delete("/transcripts/{transcript_id}", response_model=SuccessResponse, summary="Delete a saved transcript")
async def delete_transcript(
    transcript_id: int,
    confirm: bool = False,
    workspace: Workspace = Depends(get_workspace),
) -> SuccessResponse:
    if not confirm:
        raise HTTPException(status_code=400, detail="Deleting a transcript must be confirmed")
    await workspace.transcription.delete_transcript(transcript_id, confirmed=True)
    return SuccessResponse()


__all__ = ["router"]
