"""
LoveAlbum Backend — Note Service
=================================

What:  Guestbook notes attached to an album.
Who:   Called by the /api/notes route handlers.

Notes are addressed by album slug at the API and stored with the album's
primary key, so a note can never point at a missing album.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, LoveAlbumError, ValidationError
from app.models.note import Note
from app.models.types import utcnow
from app.schemas.note import NoteCreate, NoteResponse
from app.services.album_service import album_service

logger = logging.getLogger(__name__)


class NoteService:
    """Business logic layer for album notes."""

    async def list_notes(self, db: AsyncSession, album_slug: Optional[str]) -> List[NoteResponse]:
        """
        Public notes of one album, newest first.

        Raises:
            ValidationError: no album slug given (→ 400)
            NotFoundError:   unknown album (→ 404)
        """
        if not album_slug:
            raise ValidationError(message="album is required", field="album")

        try:
            album_id = await album_service.get_album_id(db, album_slug)
            result = await db.execute(
                select(Note)
                .where(Note.album_id == album_id, Note.is_public.is_(True))
                .order_by(Note.created_at.desc())
            )
            return [NoteResponse.model_validate(n) for n in result.scalars().all()]

        except LoveAlbumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error listing notes for %s: %s", album_slug, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"album": album_slug},
            )

    async def create_note(self, db: AsyncSession, payload: NoteCreate) -> NoteResponse:
        """
        Raises:
            ValidationError: album, title, content or author missing (→ 400)
            NotFoundError:   unknown album (→ 404)
        """
        missing = [
            name
            for name in ("album", "title", "content", "author")
            if not getattr(payload, name).strip()
        ]
        if missing:
            raise ValidationError(
                message="Missing required fields",
                context={"missing": missing},
            )

        try:
            album_id = await album_service.get_album_id(db, payload.album)

            now = utcnow()
            note = Note(
                album_id=album_id,
                title=payload.title.strip(),
                content=payload.content,
                date=payload.date,
                author=payload.author.strip(),
                is_public=payload.is_public,
                likes=0,
                created_at=now,
                updated_at=now,
            )
            db.add(note)
            await db.flush()

            logger.info("Note %s added to album %s by %s", note.id, payload.album, note.author)
            return NoteResponse.model_validate(note)

        except LoveAlbumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error creating note for %s: %s", payload.album, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"album": payload.album},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()
