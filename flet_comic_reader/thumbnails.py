"""
Preview images for the library.

Previews are best effort: any failure is logged and the document is
imported without one.
"""

from __future__ import annotations

import io
import logging
from typing import Optional

from PIL import Image

from .backends.archive import read_first_image
from .backends.pymupdf import PyMuPDFBackend
from .config import ReaderConfig
from .types import DocumentFormat, Thumbnail

logger = logging.getLogger(__name__)


def _encode_jpeg(img: Image.Image, quality: int) -> Thumbnail:
    if img.mode != "RGB":
        img = img.convert("RGB")
    out = io.BytesIO()
    img.save(out, format="JPEG", quality=quality)
    return Thumbnail(data=out.getvalue(), mime_type="image/jpeg")


def paginated_thumbnail(payload: bytes, config: ReaderConfig) -> Thumbnail:
    """First page at the reduced preview scale."""
    with PyMuPDFBackend(payload) as backend:
        pix = backend.pixmap(1, config.thumbnail_scale)
        img = Image.frombytes("RGB", (pix.width, pix.height), pix.samples)
    return _encode_jpeg(img, config.thumbnail_quality)


def archive_thumbnail(payload: bytes, config: ReaderConfig) -> Optional[Thumbnail]:
    """First image entry, re-encoded as JPEG."""
    data = read_first_image(payload, config.image_extensions)
    if data is None:
        return None
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        return _encode_jpeg(img, config.thumbnail_quality)


def generate_thumbnail(
    payload: bytes,
    fmt: DocumentFormat,
    config: Optional[ReaderConfig] = None,
) -> Optional[Thumbnail]:
    """Build a preview image for a document, or None.

    E-books have no fixed first page without a full layout, so they never
    get a preview.
    """
    config = config or ReaderConfig()
    try:
        if fmt is DocumentFormat.PAGINATED:
            return paginated_thumbnail(payload, config)
        if fmt is DocumentFormat.ARCHIVE:
            return archive_thumbnail(payload, config)
    except Exception as e:
        logger.warning("Thumbnail generation failed (%s): %s", fmt.value, e)
    return None
