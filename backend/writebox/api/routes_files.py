"""Server-side file storage routes."""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import FileResponse

from writebox.api.dependencies import get_file_index
from writebox.core.logging import get_logger
from writebox.core.metrics import UPLOADED_FILES
from writebox.models.dto import IndexedFileOut, SuccessResponse, UploadResponse
from writebox.storage.file_index import FileIndex

logger = get_logger(__name__)

router = APIRouter()


@router.post("/upload", response_model=UploadResponse, summary="Upload files to the server")
async def upload_files(
    files: list[UploadFile] | None = File(default=None),
    index: FileIndex = Depends(get_file_index),
) -> UploadResponse:
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    logger.info("Receiving %s uploaded file(s)", len(files))
    saved: list[IndexedFileOut] = []
    for upload in files:
        content = await upload.read()
        entry = index.add(upload.filename or "upload", content, upload.content_type)
        UPLOADED_FILES.labels(destination="server").inc()
        saved.append(IndexedFileOut(**entry.to_dict()))
    return UploadResponse(success=True, files=saved)


@router.get("", response_model=list[IndexedFileOut], summary="List uploaded files")
async def list_files(index: FileIndex = Depends(get_file_index)) -> list[IndexedFileOut]:
    return [IndexedFileOut(**entry.to_dict()) for entry in index.list()]


@router.delete("/{file_id}", response_model=SuccessResponse, summary="Delete an uploaded file")
async def delete_file(file_id: int, index: FileIndex = Depends(get_file_index)) -> SuccessResponse:
    if not index.delete(file_id):
        raise HTTPException(status_code=404, detail="File not found")
    return SuccessResponse()


@router.get("/download/{file_id}", summary="Download an uploaded file")
async def download_file(file_id: int, index: FileIndex = Depends(get_file_index)) -> FileResponse:
    entry = index.get(file_id)
    if entry is None or not Path(entry.path).exists():
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(
        entry.path,
        media_type=entry.type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(entry.name)}"},
    )


__all__ = ["router"]
