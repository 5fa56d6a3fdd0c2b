"""
LoveAlbum Backend — Upload Route Handlers
==========================================

What:  POST /api/upload stores one media file, either in a single request
       or as a sequence of chunks; GET /uploads/{path} serves stored media.
Who:   The admin panel uploads (large music files go through the chunked
       form); viewer pages load media from /uploads/.

Chunked form fields:
    upload_id     client-chosen id, [A-Za-z0-9_-]{1,64}, same for every chunk
    chunk_index   0-based index of this chunk
    total_chunks  number of chunks
    filename      original file name (its extension selects the stored type)

Media responses are sent with no-store headers so a replaced file shows up
immediately.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse

from app.dependencies import require_admin
from app.exceptions import ValidationError
from app.models.admin import Admin
from app.schemas.common import ErrorResponse
from app.schemas.upload import UploadResponse
from app.services.file_service import content_type_for, file_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])

NO_STORE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.post(
    "/api/upload",
    response_model=UploadResponse,
    responses={
        400: {"description": "Invalid type, extension, size or chunk", "model": ErrorResponse},
        401: {"description": "Admin session required", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Upload a media file",
    description=(
        "Stores one file under /uploads/<type>/. `type` is albums, avatars or audio. "
        "Send upload_id, chunk_index and total_chunks to upload in sequential "
        "chunks; the file is assembled when the last chunk arrives."
    ),
)
async def upload(
    file: Optional[UploadFile] = File(default=None),
    kind: str = Form(default="albums", alias="type", description="albums, avatars or audio"),
    upload_id: Optional[str] = Form(default=None),
    chunk_index: Optional[int] = Form(default=None),
    total_chunks: Optional[int] = Form(default=None),
    filename: Optional[str] = Form(default=None),
    admin: Admin = Depends(require_admin),
) -> UploadResponse:
    if file is None:
        raise ValidationError(message="No file provided", field="file")

    content = await file.read()
    name = filename or file.filename or ""

    if upload_id is None and chunk_index is None and total_chunks is None:
        stored = await file_service.validate_and_store(name, content, kind)
        return UploadResponse(url=stored.url, filename=stored.filename)

    if upload_id is None or chunk_index is None or total_chunks is None:
        raise ValidationError(
            message="Chunked uploads require upload_id, chunk_index and total_chunks",
            field="upload_id",
        )

    result = await file_service.store_chunk(
        upload_id=upload_id,
        chunk_index=chunk_index,
        total_chunks=total_chunks,
        filename=name,
        kind=kind,
        content=content,
    )
    if not result.complete:
        return UploadResponse(complete=False, chunk_index=result.received)
    return UploadResponse(
        complete=True,
        chunk_index=result.received,
        url=result.stored.url,
        filename=result.stored.filename,
    )


@router.get(
    "/uploads/{file_path:path}",
    responses={
        200: {"description": "Stored media file"},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Serve stored media",
)
async def serve_upload(file_path: str) -> FileResponse:
    path = file_service.resolve_upload_path(file_path)
    return FileResponse(
        path=str(path),
        media_type=content_type_for(path.name),
        headers=NO_STORE_HEADERS,
    )
