"""
Render sessions.

A session owns everything opened for one document while it is being
read: the payload, the format backend, the archive page handles and the
page renderer. It is entered once and closed once; closing releases all
of it regardless of how the session ends.

Usage:
    async with RenderSession(document, viewport=lambda: (800, 1000)) as session:
        outcome = await session.render(RenderRequest(page=1, scale=1.0))
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Set

from .backends import ArchiveBackend, EpubBackend, PyMuPDFBackend, RenderSource
from .backends.epub import DEFAULT_AREA
from .config import ReaderConfig
from .rendering.renderer import PageRenderer
from .types import Document, DocumentFormat, RenderOutcome, RenderRequest, Size

logger = logging.getLogger(__name__)

# Ids of documents with an open session
_active_documents: Set[str] = set()


class SessionConflictError(RuntimeError):
    """A second session was opened for a document that already has one."""


class DocumentOpenError(RuntimeError):
    """The document could not be opened for reading."""


class SessionState(Enum):
    NEW = "new"
    OPENING = "opening"
    OPEN = "open"
    CLOSED = "closed"


def load_payload(document: Document) -> bytes:
    """The document's bytes, re-read from its source when not in memory."""
    if document.payload is not None:
        return document.payload
    if document.source_path:
        return Path(document.source_path).read_bytes()
    raise DocumentOpenError(f"No payload available for {document.name!r}")


def is_open(document_id: str) -> bool:
    """Whether a session is currently open for the document."""
    return document_id in _active_documents


class RenderSession:
    """Transient reading state for one open document.

    Args:
        document: The document to open
        viewport: Returns the display area (width, height) in pixels
        config: Reader settings
        payload: Bytes to read instead of the document's own payload
    """

    def __init__(
        self,
        document: Document,
        viewport: Optional[Callable[[], Size]] = None,
        config: Optional[ReaderConfig] = None,
        payload: Optional[bytes] = None,
    ):
        self._document = document
        self._viewport = viewport or (lambda: (0.0, 0.0))
        self._config = config or ReaderConfig()
        self._payload = payload
        self._source: Optional[RenderSource] = None
        self._renderer: Optional[PageRenderer] = None
        self._total_pages: Optional[int] = None
        self._state = SessionState.NEW

    # Properties

    @property
    def document(self) -> Document:
        return self._document

    @property
    def format(self) -> DocumentFormat:
        return self._document.format

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def source(self) -> Optional[RenderSource]:
        """The opened backend (None until open and after close)."""
        return self._source

    @property
    def renderer(self) -> Optional[PageRenderer]:
        return self._renderer

    @property
    def viewport(self) -> Callable[[], Size]:
        return self._viewport

    @property
    def total_pages(self) -> int:
        return self._total_pages or 0

    @property
    def in_flight(self) -> Optional[int]:
        """Generation of the render in flight, if any."""
        return self._renderer.active if self._renderer else None

    # Lifecycle

    async def open(self) -> "RenderSession":
        """Open the document's backend.

        Raises:
            SessionConflictError: The document already has an open session
            DocumentOpenError: The payload could not be opened; everything
                acquired so far has been released
        """
        if self._state is not SessionState.NEW:
            raise RuntimeError(f"Session already {self._state.value}")
        if self._document.id in _active_documents:
            raise SessionConflictError(
                f"Document {self._document.id} already has an open session"
            )

        _active_documents.add(self._document.id)
        self._state = SessionState.OPENING
        logger.info("Opening %s (%s)", self._document.name, self.format.value)

        try:
            payload = self._payload if self._payload is not None else load_payload(self._document)
            self._payload = payload

            if self.format is DocumentFormat.PAGINATED:
                source = self._source = PyMuPDFBackend(payload)
                self._renderer = PageRenderer(source, self._viewport)
            elif self.format is DocumentFormat.REFLOWABLE:
                source = self._source = EpubBackend(
                    payload,
                    font_size=self._config.epub_font_size,
                    placeholder_page_count=self._config.placeholder_page_count,
                )
                width, height = self._viewport()
                if width <= 0 or height <= 0:
                    width, height = DEFAULT_AREA
                source.render_to(width, height)
            else:
                source = self._source = ArchiveBackend(
                    payload,
                    extensions=self._config.image_extensions,
                    handle_dir=self._config.handle_dir,
                )
                for _ in source.extract():
                    await asyncio.sleep(0)
                    if self._state is not SessionState.OPENING:
                        raise DocumentOpenError("Session closed while opening")
        except BaseException as e:
            self.close()
            if isinstance(e, (DocumentOpenError, asyncio.CancelledError)):
                raise
            if isinstance(e, Exception):
                raise DocumentOpenError(f"Could not open {self._document.name!r}: {e}") from e
            raise

        self._total_pages = source.page_count
        self._state = SessionState.OPEN
        logger.info("Opened %s with %d pages", self._document.name, self._total_pages)
        return self

    def close(self) -> None:
        """Cancel pending renders and release every owned resource."""
        if self._state is SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED
        try:
            if self._renderer is not None:
                self._renderer.cancel()
            if self._source is not None:
                self._source.close()
        finally:
            self._renderer = None
            self._source = None
            self._payload = None
            _active_documents.discard(self._document.id)
            logger.info("Closed session for %s", self._document.name)

    async def __aenter__(self) -> "RenderSession":
        return await self.open()

    async def __aexit__(self, *args):
        self.close()

    # Rendering

    async def render(self, request: RenderRequest) -> RenderOutcome:
        """Render a page of a paginated document."""
        if self._renderer is None:
            if self.format is not DocumentFormat.PAGINATED:
                raise TypeError(f"{self.format.value} documents are not rasterized per page")
            raise RuntimeError("Session is not open")
        return await self._renderer.render(request)

    def is_current(self, outcome: RenderOutcome) -> bool:
        """Whether an outcome belongs to the latest request."""
        return self._renderer is not None and self._renderer.is_current(outcome.generation)
