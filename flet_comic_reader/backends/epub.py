"""
Reflowable e-book backend.

PyMuPDF's reflowable engine owns layout and position. This backend binds
it to a display area and forwards navigation; it keeps no page index of
its own.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import pymupdf

from ..types import DocumentFormat, RenderedPage, Rotation
from .base import DocumentBackend
from .pymupdf import open_pymupdf

logger = logging.getLogger(__name__)

PLACEHOLDER_PAGE_COUNT = 100

# Display area used when the reader has not been laid out yet
DEFAULT_AREA = (600.0, 800.0)

Location = Tuple[int, int]  # (chapter, page within chapter)


class EpubBackend(DocumentBackend):
    """E-book backend.

    Usage:
        book = EpubBackend(payload)
        book.render_to(800, 1100)
        frame = book.display()
        book.next()
    """

    format = DocumentFormat.REFLOWABLE

    def __init__(
        self,
        source: Union[str, Path, bytes, io.BytesIO],
        font_size: float = 11.0,
        placeholder_page_count: int = PLACEHOLDER_PAGE_COUNT,
    ):
        self._doc = open_pymupdf(source, "epub")
        self._font_size = font_size
        self._placeholder = placeholder_page_count
        self._location: Optional[Location] = None
        self._page_count: Optional[int] = None
        self._area: Optional[Tuple[float, float]] = None

    @property
    def page_count(self) -> int:
        """Total from the engine's location index, or the placeholder."""
        if self._page_count is None:
            return self._placeholder
        return self._page_count

    @property
    def located(self) -> bool:
        """Whether the location index is available."""
        return self._page_count is not None

    @property
    def closed(self) -> bool:
        return self._doc.is_closed

    @property
    def location(self) -> Optional[Location]:
        return self._location

    @property
    def current_page(self) -> int:
        """1-based page number of the current location, as the engine reports it."""
        if self._location is None:
            return 1
        try:
            return self._doc.page_number_from_location(self._location) + 1
        except Exception:
            return 1

    def render_to(self, width: float, height: float) -> int:
        """Bind the engine to a display area and lay the book out.

        Re-binding keeps the current reading position.

        Returns:
            The page count after layout
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid display area {width}x{height}")

        bookmark = None
        if self._location is not None:
            bookmark = self._doc.make_bookmark(self._location)

        self._doc.layout(width=width, height=height, fontsize=self._font_size)
        self._area = (width, height)

        if bookmark is not None:
            self._location = tuple(self._doc.find_bookmark(bookmark))
        else:
            self._location = (0, 0)

        self._page_count = self._index_locations()
        return self.page_count

    def _index_locations(self) -> Optional[int]:
        try:
            count = self._doc.page_count
        except Exception as e:
            logger.warning("E-book location index unavailable: %s", e)
            return None
        return count if count > 0 else None

    def display(self, scale: float = 1.0) -> RenderedPage:
        """Render the page at the current location."""
        if self._location is None:
            raise ValueError("E-book is not bound to a display area")
        page = self._doc.load_page(self._location)
        pix = page.get_pixmap(matrix=pymupdf.Matrix(scale, scale), alpha=False)
        return RenderedPage(
            page=self.current_page,
            width=pix.width,
            height=pix.height,
            scale=scale,
            rotation=Rotation.NONE,
            image=pix.tobytes("png"),
        )

    def next(self) -> bool:
        """Move to the following location. False at the end of the book."""
        if self._location is None:
            return False
        following = self._doc.next_location(self._location)
        if not following:
            return False
        self._location = tuple(following)
        return True

    def prev(self) -> bool:
        """Move to the preceding location. False at the start of the book."""
        if self._location is None:
            return False
        preceding = self._doc.prev_location(self._location)
        if not preceding:
            return False
        self._location = tuple(preceding)
        return True

    def close(self) -> None:
        if not self._doc.is_closed:
            self._doc.close()
