"""
LoveAlbum Backend — File Storage Service
=========================================

What:  Validates, stores, serves and removes uploaded album media.
How:   Files are written under <storage_root>/uploads/<kind>/ with generated
       names and addressed by URL path (/uploads/<kind>/<name>), which is
       what the album documents store.
Who:   AlbumService (album creation, cascade delete), upload route
       (single and chunked uploads), uploads route (serving).

Upload kinds:
    albums   → photos          (.jpg .jpeg .png .gif .webp, MAX_FILE_SIZE)
    avatars  → male/female     (.jpg .jpeg .png .gif .webp, MAX_FILE_SIZE)
    audio    → background song (.mp3 .wma .wav .m4a .ogg,  MAX_AUDIO_SIZE)

Directory Structure:
    storage/
    ├── uploads/
    │   ├── albums/albums-1718000000000-1a2b3c4d.jpg
    │   ├── avatars/avatars-1718000000123-5e6f7a8b.png
    │   └── audio/audio-1718000000456-9c0d1e2f.mp3
    └── chunks/
        └── <upload_id>/0.part, 1.part, ...   (removed once assembled)

Generated names contain no user input except the validated extension,
so a stored name can never escape its kind directory.
"""

import asyncio
import logging
import os
import re
import secrets
import shutil
import time
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles

from app.config import settings
from app.exceptions import FileStorageError, NotFoundError, ValidationError
from app.schemas.upload import ChunkResult, StoredFile

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
AUDIO_EXTENSIONS = {".mp3", ".wma", ".wav", ".m4a", ".ogg"}

ALLOWED_EXTENSIONS: Dict[str, set] = {
    "albums": IMAGE_EXTENSIONS,
    "avatars": IMAGE_EXTENSIONS,
    "audio": AUDIO_EXTENSIONS,
}

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".mp3": "audio/mpeg",
    ".wma": "audio/x-ms-wma",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".ogg": "audio/ogg",
}

UPLOAD_URL_PREFIX = "/uploads/"

UPLOAD_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def content_type_for(filename: str) -> str:
    """Content-Type for a stored file, by extension."""
    return CONTENT_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")


class FileService:
    """
    Manages the upload lifecycle.

    Lifecycle of an uploaded file:
        1. validate_and_store() (or the last store_chunk() call)
        2. Kind and extension check
        3. Size check against the kind's limit
        4. Write to uploads/<kind>/ with a generated name
        5. URL path returned and stored in the album document
        6. delete_by_url() when the album is deleted
    """

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the default storage path (used in tests).
                          If None, uses settings.storage_root.
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.uploads_root = self.storage_root / "uploads"
        self.chunks_root = self.storage_root / "chunks"
        self.uploads_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_kind(self, kind: str) -> str:
        if kind not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"Unknown upload type '{kind}'. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="type",
                context={"type": kind},
            )
        return kind

    def validate_extension(self, filename: str, kind: str) -> str:
        """
        Returns:  Normalized extension (lowercase with dot).
        Raises:   ValidationError if the extension is not allowed for `kind`.
        """
        self.validate_kind(kind)
        ext = Path(filename or "").suffix.lower()
        allowed = ALLOWED_EXTENSIONS[kind]
        if ext not in allowed:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported for {kind} uploads. "
                    f"Allowed types: {', '.join(sorted(allowed))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(allowed)},
            )
        return ext

    def max_size_for(self, kind: str) -> int:
        return settings.max_audio_size if kind == "audio" else settings.max_file_size

    def validate_size(self, kind: str, size: int) -> None:
        """Rejects empty files and files over the kind's limit."""
        if size <= 0:
            raise ValidationError(
                message="Uploaded file is empty.",
                field="file",
                context={"size": size},
            )

        limit = self.max_size_for(kind)
        if size > limit:
            max_mb = limit / (1024 * 1024)
            raise ValidationError(
                message=f"File size ({size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": size},
            )

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_storage_path(self, kind: str, extension: str) -> Path:
        """<uploads>/<kind>/<kind>-<epoch ms>-<8 hex>.<ext>"""
        epoch_ms = int(time.time() * 1000)
        name = f"{kind}-{epoch_ms}-{secrets.token_hex(4)}{extension}"
        return self.uploads_root / kind / name

    async def store_file(self, content: bytes, filename: str, kind: str) -> StoredFile:
        """
        Writes already-validated content to disk.

        Raises:
            FileStorageError if directory creation or the write fails.
        """
        ext = Path(filename).suffix.lower()
        path = self._generate_storage_path(kind, ext)

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": str(path), "os_error": str(e)},
            )

        logger.info("File stored: %s/%s (%d bytes)", kind, path.name, len(content))
        return StoredFile(
            url=f"{UPLOAD_URL_PREFIX}{kind}/{path.name}",
            filename=path.name,
            path=str(path),
            size=len(content),
        )

    async def validate_and_store(self, filename: str, content: bytes, kind: str) -> StoredFile:
        """Validate extension and size, then store."""
        self.validate_extension(filename, kind)
        self.validate_size(kind, len(content))
        return await self.store_file(content, filename, kind)

    # ── Chunked Uploads ───────────────────────────────────────────────────

    def _chunk_dir(self, upload_id: str) -> Path:
        if not UPLOAD_ID_PATTERN.match(upload_id or ""):
            raise ValidationError(
                message="Invalid upload id. Use 1-64 letters, digits, '_' or '-'.",
                field="upload_id",
                context={"upload_id": upload_id},
            )
        return self.chunks_root / upload_id

    @staticmethod
    def _received_bytes(chunk_dir: Path, skip: str) -> int:
        """Total size of the parts already on disk, except the one named `skip`."""
        if not chunk_dir.is_dir():
            return 0
        return sum(p.stat().st_size for p in chunk_dir.glob("*.part") if p.name != skip)

    def purge_stale_chunks(self, max_age: Optional[int] = None) -> int:
        """
        Removes chunk directories not written to for `max_age` seconds.
        Returns the number of directories removed.
        """
        max_age = max_age if max_age is not None else settings.chunk_max_age
        if not self.chunks_root.is_dir():
            return 0

        cutoff = time.time() - max_age
        removed = 0
        for chunk_dir in self.chunks_root.iterdir():
            if chunk_dir.is_dir() and chunk_dir.stat().st_mtime < cutoff:
                shutil.rmtree(chunk_dir, ignore_errors=True)
                removed += 1
        if removed:
            logger.info("Removed %d abandoned chunked upload(s)", removed)
        return removed

    async def store_chunk(
        self,
        upload_id: str,
        chunk_index: int,
        total_chunks: int,
        filename: str,
        kind: str,
        content: bytes,
    ) -> ChunkResult:
        """
        What:  Writes one part of a chunked upload; assembles on the last part.
        How:   Parts are written to chunks/<upload_id>/<index>.part. When the
               part with index total_chunks - 1 arrives, every part must be
               present; they are concatenated in index order, size-checked and
               stored like a single upload, and the part directory is removed.

        Parts are expected one at a time and in order. There is no resume
        protocol: a client that loses a part restarts with a new upload id.
        A part that pushes the running total past the kind's limit, or a
        final part that finds earlier parts missing, discards the whole upload.
        """
        chunk_dir = self._chunk_dir(upload_id)
        self.validate_extension(filename, kind)

        if total_chunks < 1:
            raise ValidationError(
                message="total_chunks must be at least 1",
                field="total_chunks",
                context={"total_chunks": total_chunks},
            )
        if not 0 <= chunk_index < total_chunks:
            raise ValidationError(
                message=f"chunk_index must be between 0 and {total_chunks - 1}",
                field="chunk_index",
                context={"chunk_index": chunk_index, "total_chunks": total_chunks},
            )

        part_path = chunk_dir / f"{chunk_index}.part"
        self.validate_size(kind, len(content))
        received = self._received_bytes(chunk_dir, skip=part_path.name)
        if received + len(content) > self.max_size_for(kind):
            shutil.rmtree(chunk_dir, ignore_errors=True)
            logger.warning("Chunked upload %s exceeded the %s size limit", upload_id, kind)
            self.validate_size(kind, received + len(content))

        try:
            chunk_dir.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(part_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to write chunk %s: %s", part_path, str(e))
            raise FileStorageError(
                message="Failed to save upload chunk. Please try again.",
                context={"upload_id": upload_id, "chunk_index": chunk_index, "os_error": str(e)},
            )

        logger.debug("Chunk %d/%d received for upload %s", chunk_index + 1, total_chunks, upload_id)

        if chunk_index != total_chunks - 1:
            return ChunkResult(complete=False, received=chunk_index)

        missing = [i for i in range(total_chunks) if not (chunk_dir / f"{i}.part").exists()]
        if missing:
            shutil.rmtree(chunk_dir, ignore_errors=True)
            raise ValidationError(
                message=f"Upload is missing chunks: {', '.join(str(i) for i in missing)}",
                field="chunk_index",
                context={"upload_id": upload_id, "missing": missing},
            )

        assembled = bytearray()
        try:
            for i in range(total_chunks):
                async with aiofiles.open(chunk_dir / f"{i}.part", "rb") as f:
                    assembled.extend(await f.read())
        except OSError as e:
            logger.error("Failed to read chunks for upload %s: %s", upload_id, str(e))
            raise FileStorageError(
                message="Failed to assemble uploaded file. Please try again.",
                context={"upload_id": upload_id, "os_error": str(e)},
            )

        try:
            self.validate_size(kind, len(assembled))
            stored = await self.store_file(bytes(assembled), filename, kind)
        finally:
            shutil.rmtree(chunk_dir, ignore_errors=True)

        logger.info(
            "Chunked upload %s assembled from %d parts → %s",
            upload_id,
            total_chunks,
            stored.url,
        )
        return ChunkResult(complete=True, received=chunk_index, stored=stored)

    # ── Serving & Removal ─────────────────────────────────────────────────

    def resolve_upload_path(self, relative: str) -> Path:
        """
        Maps a request path (below /uploads/) to a file on disk.

        Raises:
            ValidationError  if the resolved path escapes the uploads directory.
            NotFoundError    if no such file exists.
        """
        root = self.uploads_root.resolve()
        candidate = (root / relative).resolve()
        if candidate != root and root not in candidate.parents:
            raise ValidationError(
                message="Invalid file path",
                field="path",
                context={"path": relative},
            )
        if not relative or not candidate.is_file():
            raise NotFoundError(resource="file", resource_id=relative or None)
        return candidate

    async def cleanup_file(self, file_path: str) -> None:
        """
        Removes a file from storage if it exists.

        Failures are logged, not raised: the caller has already finished
        its database work and a stray file is harmless.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))

    async def delete_by_url(self, url: Optional[str]) -> None:
        """Removes the stored file behind an /uploads/... URL. Other URLs are ignored."""
        if not url or not url.startswith(UPLOAD_URL_PREFIX):
            return
        if url == settings.placeholder_url:
            return
        try:
            path = self.resolve_upload_path(url[len(UPLOAD_URL_PREFIX):])
        except (ValidationError, NotFoundError):
            logger.debug("Skipping delete of unknown upload URL: %s", url)
            return
        await self.cleanup_file(str(path))

    async def delete_urls(self, urls: List[str]) -> None:
        for url in dict.fromkeys(urls):
            await self.delete_by_url(url)


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()


async def run_chunk_cleanup_loop(service: FileService, interval: Optional[int] = None) -> None:
    """
    What:  Removes abandoned chunked uploads every `interval` seconds until cancelled.
    When:  Started as an asyncio task by the lifespan handler; cancelled on shutdown.
    """
    interval = interval or settings.cache_cleanup_interval
    try:
        while True:
            service.purge_stale_chunks()
            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        logger.info("Chunk sweep stopped")
        raise
