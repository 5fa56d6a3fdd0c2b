"""
LoveAlbum Backend — Upload Schemas
===================================

What:  Response models for POST /api/upload and the plain value objects
       FileService exchanges with its callers.
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field


@dataclass
class IncomingFile:
    """An uploaded file already read into memory by the route."""
    filename: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class StoredFile:
    """A file written under <storage_root>/uploads/<kind>/."""
    url: str  # "/uploads/<kind>/<filename>"
    filename: str
    path: str  # absolute path on disk
    size: int


@dataclass
class ChunkResult:
    """Outcome of writing one chunk of a chunked upload."""
    complete: bool
    received: int  # index of the chunk just written
    stored: Optional[StoredFile] = None


class UploadResponse(BaseModel):
    """
    Returned by POST /api/upload.

    Single-request uploads and the final chunk of a chunked upload carry
    `url` and `filename`; intermediate chunks only acknowledge receipt.
    """
    success: bool = True
    complete: bool = Field(default=True, description="Whether the file is fully assembled")
    url: Optional[str] = Field(default=None, description="Public URL path of the stored file")
    filename: Optional[str] = Field(default=None, description="Stored file name")
    chunk_index: Optional[int] = Field(default=None, description="Index of the chunk received")
