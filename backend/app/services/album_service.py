"""
LoveAlbum Backend — Album Service (Business Logic)
===================================================

What:  Album creation, lookup, listing, editing, visibility and deletion.
How:   Composes FileService (media), the album cache (single-album reads)
       and SQLAlchemy queries. Route handlers stay thin.
Who:   Called by the albums, admin and views routers.

Album creation flow (POST /api/albums):
    ┌──────────┐    ┌────────────┐    ┌──────────────┐    ┌──────────┐
    │ Validate │───▶│ Slug +     │───▶│ Store media  │───▶│ Insert   │
    │ fields   │    │ conflict   │    │ (placeholder │    │ album    │
    │ + media  │    │ check      │    │  on failure) │    │          │
    └──────────┘    └────────────┘    └──────────────┘    └──────────┘

    Every check that can reject the request runs before the first file
    is written. Storage failures after that point do not abort creation:
    the affected photo or avatar gets the placeholder URL instead.

Caching:
    get_album() reads through `album_cache` (key = slug). Every write path
    (update, visibility, delete) deletes the cached entry.
"""

import json
import logging
import math
import re
import unicodedata
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import String, cast, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import (
    ConflictError,
    DatabaseError,
    FileStorageError,
    LoveAlbumError,
    NotFoundError,
    ValidationError,
)
from app.models.album import DEFAULT_SETTINGS, TEMPLATES, Album
from app.models.analytics import AlbumAnalytics
from app.models.category import Category, category_albums
from app.models.note import Note
from app.models.types import utcnow
from app.schemas.album import (
    AlbumCreateForm,
    AlbumListResponse,
    AlbumResponse,
    AlbumUpdate,
)
from app.schemas.common import Pagination
from app.schemas.upload import IncomingFile
from app.services.album_cache import album_cache
from app.services.file_service import file_service

logger = logging.getLogger(__name__)

AUDIO_URL_PREFIX = "/uploads/audio/"


# ── Helpers ───────────────────────────────────────────────────────────────

def slugify(name: str) -> str:
    """
    Turns an album name into its URL slug.

        "Anh & Em 2024"     → "anh-em-2024"
        "Đà Lạt mùa thu"    → "da-lat-mua-thu"

    Raises:
        ValidationError if nothing URL-safe remains.
    """
    # đ/Đ have no NFKD decomposition
    folded = (name or "").replace("đ", "d").replace("Đ", "D")
    folded = unicodedata.normalize("NFKD", folded)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch))

    slug = folded.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")

    if not slug:
        raise ValidationError(
            message="Album name must contain at least one letter or digit",
            field="name",
            context={"name": name},
        )
    return slug


def normalize_lines(content: Any) -> List[str]:
    """Letter content as a list of non-empty, stripped lines."""
    if content is None:
        return []
    items = content if isinstance(content, list) else [content]
    lines: List[str] = []
    for item in items:
        for line in str(item).splitlines():
            line = line.strip()
            if line:
                lines.append(line)
    return lines


def parse_letter_notes(raw: Optional[str]) -> List[Dict[str, Any]]:
    """
    Parses the `letter_notes` form field (JSON list of
    {"title", "content", "date"}) into the stored shape.

    Raises:
        ValidationError for malformed JSON or a non-list payload.
    """
    if raw is None or not raw.strip():
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(
            message="Letter notes must be valid JSON",
            field="letter_notes",
            context={"error": str(e)},
        )
    if not isinstance(data, list) or not all(isinstance(n, dict) for n in data):
        raise ValidationError(
            message="Letter notes must be a list of objects",
            field="letter_notes",
        )
    return [
        {
            "title": str(note.get("title") or ""),
            "content": normalize_lines(note.get("content")),
            "date": str(note.get("date") or ""),
        }
        for note in data
    ]


def _like_pattern(term: str) -> str:
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _has_content(upload: Optional[IncomingFile]) -> bool:
    return upload is not None and bool(upload.filename) and upload.size > 0


class AlbumService:
    """
    Business logic layer for albums.

    Error Handling Strategy:
        Application exceptions (ValidationError, NotFoundError, ...) propagate
        untouched. SQLAlchemy failures are logged and wrapped in DatabaseError
        so query details never reach the client.
    """

    # ── Create ────────────────────────────────────────────────────────────

    def _validate_media(self, form: AlbumCreateForm) -> None:
        """Rejects bad extensions and sizes before anything is written."""
        for photo in form.photos:
            file_service.validate_extension(photo.filename, "albums")
            file_service.validate_size("albums", photo.size)
        for avatar in (form.male_photo, form.female_photo):
            file_service.validate_extension(avatar.filename, "avatars")
            file_service.validate_size("avatars", avatar.size)
        if _has_content(form.music):
            file_service.validate_extension(form.music.filename, "audio")
            file_service.validate_size("audio", form.music.size)
        elif form.music_url and not form.music_url.startswith(AUDIO_URL_PREFIX):
            raise ValidationError(
                message=f"music_url must point to an uploaded audio file ({AUDIO_URL_PREFIX}...)",
                field="music_url",
                context={"music_url": form.music_url},
            )

    async def _store_or_placeholder(self, upload: IncomingFile, kind: str) -> str:
        try:
            stored = await file_service.store_file(upload.content, upload.filename, kind)
            return stored.url
        except FileStorageError as e:
            logger.warning(
                "Storing %s file '%s' failed, using placeholder: %s",
                kind,
                upload.filename,
                e.message,
            )
            return settings.placeholder_url

    async def create_album(
        self,
        db: AsyncSession,
        form: AlbumCreateForm,
        created_by: str = "admin",
    ) -> AlbumResponse:
        """
        What:    Creates an album from the admin form and its uploaded media.
        Who:     POST /api/albums.

        Raises:
            ValidationError: missing fields, bad template, bad media, bad letter notes
            ConflictError:   an album with the same slug exists
            DatabaseError:   query or insert failed
        """
        # Captions follow their photo when empty slots are dropped
        captioned = [
            (photo, form.photo_notes[i] if i < len(form.photo_notes) else "")
            for i, photo in enumerate(form.photos)
            if _has_content(photo)
        ]
        photos = [photo for photo, _ in captioned]
        if (
            not form.name.strip()
            or not form.day_start.strip()
            or not _has_content(form.male_photo)
            or not _has_content(form.female_photo)
            or not photos
        ):
            raise ValidationError(
                message="Missing required fields",
                context={"required": ["name", "day_start", "male_photo", "female_photo", "photos"]},
            )
        form.photos = photos
        form.photo_notes = [note for _, note in captioned]

        template = form.template or "template1"
        if template not in TEMPLATES:
            raise ValidationError(
                message=f"Invalid template '{template}'. Must be one of: {', '.join(TEMPLATES)}",
                field="template",
            )

        slug = slugify(form.name)
        letter_notes = parse_letter_notes(form.letter_notes)
        self._validate_media(form)

        try:
            existing = await db.execute(select(Album.id).where(Album.slug == slug))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(
                    message="Album with this name already exists",
                    context={"slug": slug},
                )

            # ── Store media ───────────────────────────────────────────────
            photo_urls: List[str] = []
            messages: Dict[str, str] = {}
            for i, photo in enumerate(form.photos):
                photo_urls.append(await self._store_or_placeholder(photo, "albums"))
                messages[str(i)] = form.photo_notes[i] if i < len(form.photo_notes) else ""

            male_avatar = await self._store_or_placeholder(form.male_photo, "avatars")
            female_avatar = await self._store_or_placeholder(form.female_photo, "avatars")

            music_url: Optional[str] = None
            if _has_content(form.music):
                try:
                    stored = await file_service.store_file(
                        form.music.content, form.music.filename, "audio"
                    )
                    music_url = stored.url
                except FileStorageError as e:
                    logger.warning("Storing music failed, album has no music: %s", e.message)
            elif form.music_url:
                music_url = form.music_url

            # ── Insert ────────────────────────────────────────────────────
            now = utcnow()
            album = Album(
                slug=slug,
                name=form.name.strip(),
                subtitle=form.subtitle or "",
                day_start=form.day_start.strip(),
                template=template,
                cover_image=photo_urls[0],
                male_avatar=male_avatar,
                female_avatar=female_avatar,
                photos=photo_urls,
                messages=messages,
                quote=form.quote or "",
                letter_notes=letter_notes,
                music=music_url,
                is_public=True,
                views=0,
                likes=0,
                created_by=created_by,
                tags=[],
                settings=dict(DEFAULT_SETTINGS),
                created_at=now,
                updated_at=now,
            )
            db.add(album)
            await db.flush()

            logger.info(
                "Album created: %s (%d photos, music=%s) by %s",
                slug,
                len(photo_urls),
                bool(music_url),
                created_by,
            )
            return AlbumResponse.model_validate(album)

        except LoveAlbumError:
            raise
        except IntegrityError:
            raise ConflictError(
                message="Album with this name already exists",
                context={"slug": slug},
            )
        except SQLAlchemyError as e:
            logger.error("Database error creating album %s: %s", slug, str(e), exc_info=True)
            raise DatabaseError(context={"slug": slug})

    # ── Read ──────────────────────────────────────────────────────────────

    async def get_album(
        self,
        db: AsyncSession,
        slug: str,
        count_view: bool = True,
    ) -> AlbumResponse:
        """
        What:    Single-album lookup by slug.
        How:     Read-through album_cache. With count_view, the stored views
                 counter is incremented atomically on every call, cache hit
                 or miss. A cached copy's `views` lags by up to the TTL.

        Raises:
            NotFoundError: no album with this slug
        """
        try:
            if count_view:
                await db.execute(
                    update(Album)
                    .where(Album.slug == slug)
                    .values(views=Album.views + 1)
                    .execution_options(synchronize_session=False)
                )

            cached = album_cache.get(slug)
            if cached is not None:
                logger.debug("Album cache hit: %s", slug)
                return cached

            result = await db.execute(select(Album).where(Album.slug == slug))
            album = result.scalar_one_or_none()
            if album is None:
                raise NotFoundError(resource="album", resource_id=slug)

            response = AlbumResponse.model_validate(album)
            album_cache.set(slug, response)
            logger.debug("Album cache miss: %s (cached for %ds)", slug, album_cache.default_ttl)
            return response

        except LoveAlbumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error fetching album %s: %s", slug, str(e))
            raise DatabaseError(context={"slug": slug})

    async def _paginate(self, db: AsyncSession, query, page: int, limit: int):
        count_result = await db.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar() or 0

        result = await db.execute(
            query.order_by(Album.created_at.desc()).offset((page - 1) * limit).limit(limit)
        )
        albums = [AlbumResponse.model_validate(a) for a in result.scalars().all()]
        pagination = Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=math.ceil(total / limit) if limit else 0,
        )
        return albums, pagination

    async def list_public_albums(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> AlbumListResponse:
        """
        Public albums, newest first.

        `category` is a category slug; an unknown category yields an empty page.
        `search` matches name, subtitle and tags case-insensitively.
        """
        try:
            query = select(Album).where(Album.is_public.is_(True))

            if category:
                cat_result = await db.execute(select(Category.id).where(Category.slug == category))
                category_id = cat_result.scalar_one_or_none()
                if category_id is None:
                    return AlbumListResponse(
                        albums=[],
                        pagination=Pagination(page=page, limit=limit, total=0, pages=0),
                    )
                query = query.where(
                    Album.id.in_(
                        select(category_albums.c.album_id).where(
                            category_albums.c.category_id == category_id
                        )
                    )
                )

            if search:
                pattern = _like_pattern(search)
                query = query.where(
                    or_(
                        func.lower(Album.name).like(pattern, escape="\\"),
                        func.lower(Album.subtitle).like(pattern, escape="\\"),
                        func.lower(cast(Album.tags, String)).like(pattern, escape="\\"),
                    )
                )

            albums, pagination = await self._paginate(db, query, page, limit)
            return AlbumListResponse(albums=albums, pagination=pagination)

        except SQLAlchemyError as e:
            logger.error("Database error listing albums: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def list_all_albums(
        self,
        db: AsyncSession,
        page: int = 1,
        limit: int = 100,
        search: Optional[str] = None,
        is_public: Optional[bool] = None,
    ) -> AlbumListResponse:
        """Admin listing: private albums included, search also matches created_by."""
        try:
            query = select(Album)
            if is_public is not None:
                query = query.where(Album.is_public.is_(is_public))
            if search:
                pattern = _like_pattern(search)
                query = query.where(
                    or_(
                        func.lower(Album.name).like(pattern, escape="\\"),
                        func.lower(Album.subtitle).like(pattern, escape="\\"),
                        func.lower(Album.created_by).like(pattern, escape="\\"),
                    )
                )

            albums, pagination = await self._paginate(db, query, page, limit)
            return AlbumListResponse(albums=albums, pagination=pagination)

        except SQLAlchemyError as e:
            logger.error("Database error listing admin albums: %s", str(e), exc_info=True)
            raise DatabaseError(context={"error_type": type(e).__name__})

    # ── Update ────────────────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, condition, identifier: str) -> Album:
        result = await db.execute(select(Album).where(condition))
        album = result.scalar_one_or_none()
        if album is None:
            raise NotFoundError(resource="album", resource_id=identifier)
        return album

    async def update_album(
        self,
        db: AsyncSession,
        slug: str,
        changes: AlbumUpdate,
    ) -> AlbumResponse:
        """Partial update: only fields present in the request body are written."""
        try:
            album = await self._load(db, Album.slug == slug, slug)

            data = changes.model_dump(exclude_unset=True)
            for field_name, value in data.items():
                setattr(album, field_name, value)
            album.updated_at = utcnow()
            await db.flush()

            album_cache.delete(slug)
            logger.info("Album updated: %s (fields=%s)", slug, sorted(data))
            return AlbumResponse.model_validate(album)

        except LoveAlbumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating album %s: %s", slug, str(e), exc_info=True)
            raise DatabaseError(context={"slug": slug})

    async def set_visibility(
        self,
        db: AsyncSession,
        album_id: UUID,
        is_public: bool,
    ) -> AlbumResponse:
        try:
            album = await self._load(db, Album.id == album_id, str(album_id))
            album.is_public = is_public
            album.updated_at = utcnow()
            await db.flush()

            album_cache.delete(album.slug)
            logger.info("Album %s visibility set to %s", album.slug, "public" if is_public else "private")
            return AlbumResponse.model_validate(album)

        except LoveAlbumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating visibility of %s: %s", album_id, str(e))
            raise DatabaseError(context={"album_id": str(album_id)})

    # ── Delete ────────────────────────────────────────────────────────────

    async def _delete(self, db: AsyncSession, album: Album) -> None:
        """
        Removes the album with its analytics, notes and category links,
        then its media files. Child rows are deleted explicitly so the
        cascade does not depend on the database enforcing foreign keys.
        """
        media = album.media_urls()
        slug = album.slug

        await db.execute(delete(AlbumAnalytics).where(AlbumAnalytics.album_id == album.id))
        await db.execute(delete(Note).where(Note.album_id == album.id))
        await db.execute(delete(category_albums).where(category_albums.c.album_id == album.id))
        await db.delete(album)
        await db.flush()

        album_cache.delete(slug)
        await file_service.delete_urls(media)
        logger.info("Album deleted: %s (%d media files)", slug, len(set(media)))

    async def delete_album(self, db: AsyncSession, slug: str) -> None:
        try:
            album = await self._load(db, Album.slug == slug, slug)
            await self._delete(db, album)
        except LoveAlbumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting album %s: %s", slug, str(e), exc_info=True)
            raise DatabaseError(context={"slug": slug})

    async def admin_delete_album(self, db: AsyncSession, album_id: UUID) -> None:
        try:
            album = await self._load(db, Album.id == album_id, str(album_id))
            await self._delete(db, album)
        except LoveAlbumError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting album %s: %s", album_id, str(e), exc_info=True)
            raise DatabaseError(context={"album_id": str(album_id)})

    async def get_album_id(self, db: AsyncSession, slug: str) -> UUID:
        """Album primary key for a slug (notes and analytics reference albums by id)."""
        result = await db.execute(select(Album.id).where(Album.slug == slug))
        album_id = result.scalar_one_or_none()
        if album_id is None:
            raise NotFoundError(resource="album", resource_id=slug)
        return album_id


# ── Singleton Instance ────────────────────────────────────────────────────
album_service = AlbumService()
