"""
LoveAlbum Backend — Notes Route Handlers
=========================================

What:  GET /api/notes?album=<slug> (public notes, newest first) and
       POST /api/notes (add a note to an album).
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.note import NoteCreate, NoteCreatedResponse, NoteListResponse
from app.services.note_service import note_service

router = APIRouter(prefix="/api", tags=["Notes"])


@router.get(
    "/notes",
    response_model=NoteListResponse,
    responses={
        400: {"description": "Album slug missing", "model": ErrorResponse},
        404: {"description": "Album not found", "model": ErrorResponse},
    },
    summary="List an album's public notes",
)
async def list_notes(
    album: Optional[str] = Query(default=None, description="Album slug"),
    db: AsyncSession = Depends(get_db_session),
) -> NoteListResponse:
    notes = await note_service.list_notes(db=db, album_slug=album)
    return NoteListResponse(notes=notes)


@router.post(
    "/notes",
    status_code=201,
    response_model=NoteCreatedResponse,
    responses={
        400: {"description": "Missing required fields", "model": ErrorResponse},
        404: {"description": "Album not found", "model": ErrorResponse},
    },
    summary="Add a note to an album",
)
async def create_note(
    payload: NoteCreate,
    db: AsyncSession = Depends(get_db_session),
) -> NoteCreatedResponse:
    note = await note_service.create_note(db=db, payload=payload)
    return NoteCreatedResponse(note=note)
