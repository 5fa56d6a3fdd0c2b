"""
LoveAlbum Backend — Album Note Schemas
"""

import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    """
    Body for POST /api/notes.

    Required fields are checked by NoteService so that a missing field
    yields the same 400 "Missing required fields" error as album creation.
    """
    album: str = Field(default="", description="Slug of the album the note belongs to")
    title: str = Field(default="")
    content: str = Field(default="")
    date: str = Field(default="", description="Display date, e.g. 14/02/2024")
    author: str = Field(default="")
    is_public: bool = Field(default=True)


class NoteResponse(BaseModel):
    id: uuid.UUID
    album_id: uuid.UUID
    title: str
    content: str
    date: str
    author: str
    is_public: bool
    likes: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NoteCreatedResponse(BaseModel):
    success: bool = True
    note: NoteResponse


class NoteListResponse(BaseModel):
    notes: List[NoteResponse]
