"""
Shared data types for the comic reader.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class DocumentFormat(Enum):
    """Supported document kinds."""

    PAGINATED = "paginated"
    REFLOWABLE = "reflowable"
    ARCHIVE = "archive"


class Rotation(int, Enum):
    """Page rotation in degrees."""

    NONE = 0
    QUARTER = 90

    def toggled(self) -> "Rotation":
        return Rotation.QUARTER if self is Rotation.NONE else Rotation.NONE


class RenderStatus(Enum):
    """How a render request ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class Thumbnail:
    """A compressed preview image."""

    data: bytes = field(repr=False)
    mime_type: str = "image/jpeg"

    @property
    def base64(self) -> str:
        """Image data for ``ft.Image(src_base64=...)``."""
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


@dataclass(frozen=True)
class Document:
    """A document in the library.

    The payload is only carried in memory. Records written to the store
    keep ``source_path`` instead, and sessions re-read the bytes from it.
    """

    id: str
    name: str
    format: DocumentFormat
    payload: Optional[bytes] = field(default=None, repr=False, compare=False)
    source_path: Optional[str] = None
    thumbnail: Optional[Thumbnail] = None
    is_favorite: bool = False
    last_opened: Optional[datetime] = None
    total_pages: int = 0
    current_page: int = 0

    def to_record(self) -> Dict[str, Any]:
        """Serializable record for the store (payload excluded)."""
        return {
            "id": self.id,
            "name": self.name,
            "format": self.format.value,
            "source_path": self.source_path,
            "thumbnail": self.thumbnail.base64 if self.thumbnail else None,
            "thumbnail_mime": self.thumbnail.mime_type if self.thumbnail else None,
            "is_favorite": self.is_favorite,
            "last_opened": self.last_opened.isoformat() if self.last_opened else None,
            "total_pages": self.total_pages,
            "current_page": self.current_page,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Document":
        thumbnail = None
        if record.get("thumbnail"):
            thumbnail = Thumbnail(
                data=base64.b64decode(record["thumbnail"]),
                mime_type=record.get("thumbnail_mime") or "image/jpeg",
            )
        last_opened = record.get("last_opened")
        return cls(
            id=record["id"],
            name=record["name"],
            format=DocumentFormat(record.get("format", DocumentFormat.PAGINATED.value)),
            source_path=record.get("source_path"),
            thumbnail=thumbnail,
            is_favorite=bool(record.get("is_favorite", False)),
            last_opened=datetime.fromisoformat(last_opened) if last_opened else None,
            total_pages=int(record.get("total_pages", 0)),
            current_page=int(record.get("current_page", 0)),
        )


@dataclass(frozen=True)
class ImportedFile:
    """A raw file handed to the import boundary."""

    name: str
    data: bytes = field(repr=False)
    path: Optional[str] = None


@dataclass(frozen=True)
class RenderRequest:
    """A page render request. Page is 1-based."""

    page: int
    scale: float
    rotation: Rotation = Rotation.NONE
    fit_mode: bool = False


@dataclass(frozen=True)
class RenderedPage:
    """A rasterized page surface."""

    page: int
    width: int
    height: int
    scale: float
    rotation: Rotation
    image: bytes = field(repr=False)  # PNG

    @property
    def base64(self) -> str:
        return base64.b64encode(self.image).decode("ascii")


@dataclass(frozen=True)
class RenderOutcome:
    """Result of a render request."""

    request: RenderRequest
    generation: int
    status: RenderStatus
    surface: Optional[RenderedPage] = None
    scale: Optional[float] = None  # effective scale, set when fit mode applied

    @property
    def completed(self) -> bool:
        return self.status is RenderStatus.COMPLETED


@dataclass(frozen=True)
class PageImage:
    """A decoded archive page held in a temporary file.

    The file is the revocable handle: ``revoke`` deletes it, and no
    component may read ``path`` afterwards.
    """

    name: str
    path: str
    width: int
    height: int


# Type aliases for clarity
Size = Tuple[float, float]
