"""Generative API proxy routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from writebox.api.dependencies import get_ai_service
from writebox.gateway.service import AIService, FilePayload
from writebox.models.dto import (
    AnalyzeImageRequest,
    ChatRequest,
    ChatResponse,
    EnhanceRequest,
    EnhanceResponse,
    ErrorResponse,
    GenerateRequest,
    TextResponse,
    TitleRequest,
    TitleResponse,
    TranscriptChatRequest,
    TranscriptionProcessRequest,
    TranscriptionProcessResponse,
)

router = APIRouter(
    responses={
        400: {"model": ErrorResponse, "description": "Nothing to send"},
        500: {"model": ErrorResponse, "description": "Generative API failure"},
    }
)


@router.post("/generate", response_model=TextResponse, summary="Generate text for the editor")
async def generate(request: GenerateRequest, service: AIService = Depends(get_ai_service)) -> TextResponse:
    completion = await service.generate(
        request.prompt,
        system_instruction=request.system_instruction,
        use_thinking=request.use_thinking,
        temperature=request.temperature,
    )
    return TextResponse(text=completion.text, thinking=completion.thinking)


@router.post("/generate-title", response_model=TitleResponse, summary="Suggest a document title")
async def generate_title(request: TitleRequest, service: AIService = Depends(get_ai_service)) -> TitleResponse:
    return TitleResponse(title=await service.generate_title(request.content))


@router.post("/analyze-image", response_model=TextResponse, summary="Describe an image")
async def analyze_image(
    request: AnalyzeImageRequest,
    service: AIService = Depends(get_ai_service),
) -> TextResponse:
    completion = await service.analyze_image(request.image_data, request.mime_type, request.prompt)
    return TextResponse(text=completion.text, thinking=completion.thinking)


@router.post("/chat", response_model=ChatResponse, summary="One assistant chat turn")
async def chat(request: ChatRequest, service: AIService = Depends(get_ai_service)) -> ChatResponse:
    completion = await service.chat(
        request.message,
        history=request.history,
        files=[FilePayload(data=item.data, mime_type=item.mime_type) for item in request.files],
        use_thinking=request.use_thinking,
        use_search=request.use_search,
        temperature=request.temperature,
    )
    return ChatResponse(response=completion.text, thinking=completion.thinking)


@router.post(
    "/transcription/process",
    response_model=TranscriptionProcessResponse,
    summary="Run an AI tool over a transcript",
)
async def process_transcription(
    request: TranscriptionProcessRequest,
    service: AIService = Depends(get_ai_service),
) -> TranscriptionProcessResponse:
    completion = await service.process_transcription(
        request.text,
        request.language,
        request.action,
        use_thinking=request.use_thinking,
        use_search=request.use_search,
        target_language=request.target_lang,
    )
    return TranscriptionProcessResponse(text=completion.text, result=completion.text, thinking=completion.thinking)


@router.post(
    "/transcription/enhance-realtime",
    response_model=EnhanceResponse,
    summary="Clean up a live transcript",
)
async def enhance_realtime(
    request: EnhanceRequest,
    service: AIService = Depends(get_ai_service),
) -> EnhanceResponse:
    return EnhanceResponse(enhanced=await service.enhance_realtime(request.partial_text, request.language))


@router.post("/transcription/chat", response_model=ChatResponse, summary="Ask about a transcript")
async def transcript_chat(
    request: TranscriptChatRequest,
    service: AIService = Depends(get_ai_service),
) -> ChatResponse:
    completion = await service.transcript_chat(
        request.message,
        request.transcript_context,
        history=[turn.model_dump() for turn in request.history],
        language=request.language,
        use_thinking=request.use_thinking,
        use_search=request.use_search,
    )
    return ChatResponse(response=completion.text, thinking=completion.thinking)


__all__ = ["router"]
