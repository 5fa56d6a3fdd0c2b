"""
LoveAlbum Backend — Album Request/Response Schemas
===================================================

What:  Pydantic models defining the album API contract.
How:   FastAPI validates JSON bodies against the request models and serializes
       ORM objects through the response models (`from_attributes`).

Album creation is multipart (files + form fields) and is therefore parsed
into `AlbumCreateForm` by the route rather than validated as a JSON body.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from app.models.album import TEMPLATES
from app.schemas.common import Pagination
from app.schemas.upload import IncomingFile


class LetterNote(BaseModel):
    """A letter shown as one flipbook page. `content` is stored as lines."""
    title: str = Field(default="", description="Letter title")
    content: List[str] = Field(default_factory=list, description="Letter body, one entry per line")
    date: str = Field(default="", description="Display date chosen by the author")


class AlbumSettings(BaseModel):
    auto_play: bool = True
    show_counter: bool = True
    allow_comments: bool = True


class AlbumResponse(BaseModel):
    """
    What:  Full representation of an album.
    Who:   Returned by GET /api/albums/{slug}, album listings and creation.
    """
    id: uuid.UUID
    slug: str
    name: str
    subtitle: str = ""
    day_start: str
    template: str
    cover_image: str = ""
    male_avatar: Optional[str] = None
    female_avatar: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    messages: Dict[str, str] = Field(default_factory=dict)
    quote: str = ""
    letter_notes: List[LetterNote] = Field(default_factory=list)
    music: Optional[str] = None
    is_public: bool = True
    views: int = 0
    likes: int = 0
    created_by: str = "admin"
    tags: List[str] = Field(default_factory=list)
    settings: AlbumSettings = Field(default_factory=AlbumSettings)
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AlbumCreatedResponse(BaseModel):
    """Returned by POST /api/albums with HTTP 201."""
    success: bool = True
    album: AlbumResponse


class AlbumListResponse(BaseModel):
    albums: List[AlbumResponse]
    pagination: Pagination


class AdminAlbumListResponse(AlbumListResponse):
    success: bool = True


class AlbumUpdate(BaseModel):
    """
    Partial update body for PUT /api/albums/{slug}.

    Only fields present in the request are written. The slug and counters
    are not editable through this endpoint.
    """
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    subtitle: Optional[str] = Field(default=None, max_length=500)
    day_start: Optional[str] = None
    template: Optional[str] = None
    cover_image: Optional[str] = None
    male_avatar: Optional[str] = None
    female_avatar: Optional[str] = None
    photos: Optional[List[str]] = None
    messages: Optional[Dict[str, str]] = None
    quote: Optional[str] = None
    letter_notes: Optional[List[LetterNote]] = None
    music: Optional[str] = None
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None
    settings: Optional[AlbumSettings] = None

    model_config = {"extra": "forbid"}

    @field_validator(
        "name", "subtitle", "day_start", "template", "cover_image", "photos",
        "messages", "quote", "letter_notes", "is_public", "tags", "settings",
    )
    @classmethod
    def reject_null(cls, v: Any, info: ValidationInfo) -> Any:
        # Explicit null is only meaningful for avatars and music
        if v is None:
            raise ValueError(f"'{info.field_name}' cannot be null")
        return v

    @field_validator("template")
    @classmethod
    def validate_template(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in TEMPLATES:
            raise ValueError(f"Invalid template '{v}'. Must be one of: {', '.join(TEMPLATES)}")
        return v


class VisibilityUpdate(BaseModel):
    """Body for PUT /api/admin/albums."""
    album_id: uuid.UUID
    is_public: bool


@dataclass
class AlbumCreateForm:
    """
    Multipart fields of POST /api/albums, collected by the route.

    `letter_notes` is the raw JSON string sent by the admin panel; the
    service parses and normalises it.
    """
    name: str = ""
    day_start: str = ""
    subtitle: str = ""
    template: str = "template1"
    quote: str = ""
    letter_notes: str = "[]"
    music_url: str = ""
    male_photo: Optional[IncomingFile] = None
    female_photo: Optional[IncomingFile] = None
    music: Optional[IncomingFile] = None
    photos: List[IncomingFile] = field(default_factory=list)
    photo_notes: List[str] = field(default_factory=list)
