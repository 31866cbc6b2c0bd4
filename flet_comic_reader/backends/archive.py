"""
Zipped image archive backend (CBZ).

Pages are the archive's image entries in natural order. Each decoded page
is written to a temporary file; those files are the page image handles
and are revoked on ``close``.
"""

from __future__ import annotations

import io
import logging
import os
import re
import shutil
import tempfile
import zipfile
import zlib
from pathlib import PurePosixPath
from typing import Iterable, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from ..types import DocumentFormat, PageImage
from .base import DocumentBackend

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".webp"})

_DIGITS = re.compile(r"(\d+)")


def natural_key(name: str) -> Tuple:
    """Sort key comparing digit runs numerically ("page2" < "page10")."""
    parts = tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part.casefold())
        for part in _DIGITS.split(name)
        if part
    )
    return parts, name


def image_entries(
    archive: zipfile.ZipFile, extensions: Iterable[str] = IMAGE_EXTENSIONS
) -> List[zipfile.ZipInfo]:
    """Image entries of an archive, naturally sorted by name."""
    allowed = {ext.lower() for ext in extensions}
    entries = [
        info
        for info in archive.infolist()
        if not info.is_dir() and PurePosixPath(info.filename).suffix.lower() in allowed
    ]
    entries.sort(key=lambda info: natural_key(info.filename))
    return entries


def read_first_image(
    payload: bytes, extensions: Iterable[str] = IMAGE_EXTENSIONS
) -> Optional[bytes]:
    """Raw bytes of the first page image, without extracting the rest."""
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        entries = image_entries(archive, extensions)
        if not entries:
            return None
        return archive.read(entries[0])


def revoke(image: PageImage) -> None:
    """Release a page image handle."""
    try:
        os.unlink(image.path)
    except FileNotFoundError:
        pass


class ArchiveBackend(DocumentBackend):
    """Image archive backend.

    Args:
        payload: Raw bytes of the zip archive
        extensions: Image suffixes kept as pages
        handle_dir: Where the temporary page directory is created
    """

    format = DocumentFormat.ARCHIVE

    def __init__(
        self,
        payload: bytes,
        extensions: Iterable[str] = IMAGE_EXTENSIONS,
        handle_dir: Optional[str] = None,
    ):
        if not isinstance(payload, (bytes, bytearray)):
            raise TypeError(f"Unsupported source type: {type(payload)}")
        self._payload = bytes(payload)
        self._extensions = tuple(extensions)
        self._handle_dir = handle_dir
        self._dir: Optional[str] = None
        self._pages: List[PageImage] = []
        self._closed = False

        with zipfile.ZipFile(io.BytesIO(self._payload)) as archive:
            self._entries = image_entries(archive, self._extensions)

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def entry_names(self) -> List[str]:
        """Names of the image entries, in page order."""
        return [info.filename for info in self._entries]

    @property
    def pages(self) -> Tuple[PageImage, ...]:
        return tuple(self._pages)

    @property
    def closed(self) -> bool:
        return self._closed

    def page(self, number: int) -> PageImage:
        """Page image handle for a 1-based page number."""
        if self._closed:
            raise ValueError("Archive is closed")
        if number < 1 or number > len(self._pages):
            raise IndexError(f"Page {number} out of range")
        return self._pages[number - 1]

    def extract_page(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo) -> Optional[PageImage]:
        """Decode one entry into a page image handle.

        Returns None for entries that do not decode.
        """
        try:
            data = archive.read(info)
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                width, height = img.size
        except (zipfile.BadZipFile, zlib.error, UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning("Skipping undecodable archive entry %s: %s", info.filename, e)
            return None

        index = len(self._pages) + 1
        suffix = PurePosixPath(info.filename).suffix.lower()
        path = os.path.join(self._dir, f"page-{index:05d}{suffix}")
        with open(path, "wb") as fh:
            fh.write(data)
        return PageImage(name=info.filename, path=path, width=width, height=height)

    def extract(self):
        """Decode all image entries, one entry per step.

        A generator so the caller can suspend between entries; the
        session drives it on the event loop.
        """
        if self._dir is not None:
            raise RuntimeError("Archive already extracted")
        self._dir = tempfile.mkdtemp(prefix="comic-reader-", dir=self._handle_dir)
        try:
            with zipfile.ZipFile(io.BytesIO(self._payload)) as archive:
                for info in self._entries:
                    image = self.extract_page(archive, info)
                    if image is not None:
                        self._pages.append(image)
                    yield image
        except BaseException:
            self.close()
            raise
        logger.debug("Extracted %d pages from archive", len(self._pages))

    def extract_all(self) -> "ArchiveBackend":
        for _ in self.extract():
            pass
        return self

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for image in self._pages:
            revoke(image)
        self._pages.clear()
        if self._dir is not None:
            shutil.rmtree(self._dir, ignore_errors=True)
        self._payload = b""
