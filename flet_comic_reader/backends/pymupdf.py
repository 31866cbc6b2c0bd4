"""
PyMuPDF backend for paginated documents.
"""

from __future__ import annotations

import io
import warnings
from pathlib import Path
from typing import Optional, Tuple, Union

warnings.filterwarnings("ignore", message="builtin type Swig")

import pymupdf

from ..types import DocumentFormat, RenderedPage, Rotation  # noqa: E402
from .base import DocumentBackend  # noqa: E402


def open_pymupdf(
    source: Union[str, Path, bytes, io.BytesIO], filetype: str
) -> pymupdf.Document:
    """Open a PyMuPDF document from a path, bytes or a BytesIO."""
    if isinstance(source, (str, Path)):
        return pymupdf.open(str(source), filetype=filetype)
    if isinstance(source, bytes):
        return pymupdf.open(stream=source, filetype=filetype)
    if isinstance(source, io.BytesIO):
        return pymupdf.open(stream=source.getvalue(), filetype=filetype)
    raise TypeError(f"Unsupported source type: {type(source)}")


class PyMuPDFBackend(DocumentBackend):
    """Paginated document backend.

    Page numbers are 1-based here, matching the reader.
    """

    format = DocumentFormat.PAGINATED

    def __init__(
        self,
        source: Union[str, Path, bytes, io.BytesIO],
        password: Optional[str] = None,
    ):
        self._doc = open_pymupdf(source, "pdf")

        if self._doc.needs_pass:
            if password is None:
                self._doc.close()
                raise ValueError("Document is encrypted and requires a password")
            if not self._doc.authenticate(password):
                self._doc.close()
                raise ValueError("Invalid password")

    @property
    def page_count(self) -> int:
        return len(self._doc)

    @property
    def closed(self) -> bool:
        return self._doc.is_closed

    def _load(self, page: int) -> pymupdf.Page:
        if page < 1 or page > len(self._doc):
            raise IndexError(f"Page {page} out of range")
        return self._doc.load_page(page - 1)

    def page_size(self, page: int, rotation: Rotation = Rotation.NONE) -> Tuple[float, float]:
        """Unscaled page size (width, height) at the given rotation."""
        rect = self._load(page).rect
        if rotation is Rotation.QUARTER:
            return rect.height, rect.width
        return rect.width, rect.height

    def rasterize(
        self, page: int, scale: float, rotation: Rotation = Rotation.NONE
    ) -> RenderedPage:
        """Render a page to a PNG surface sized to the rotated, scaled page."""
        matrix = pymupdf.Matrix(scale, scale).prerotate(int(rotation))
        pix = self._load(page).get_pixmap(matrix=matrix, alpha=False)
        return RenderedPage(
            page=page,
            width=pix.width,
            height=pix.height,
            scale=scale,
            rotation=rotation,
            image=pix.tobytes("png"),
        )

    def pixmap(self, page: int, scale: float) -> pymupdf.Pixmap:
        """Raw RGB pixmap of a page, used for previews."""
        return self._load(page).get_pixmap(matrix=pymupdf.Matrix(scale, scale), alpha=False)

    def close(self) -> None:
        if not self._doc.is_closed:
            self._doc.close()
