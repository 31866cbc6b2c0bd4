"""
Flet Comic Reader

A local reader for PDF documents, EPUB e-books and CBZ image archives,
built with Flet and PyMuPDF.

Usage:
    import flet as ft
    from flet_comic_reader import LibraryRepository, JsonRecordStore, ReaderView

    async def main(page: ft.Page):
        library = LibraryRepository(JsonRecordStore("library.json"))
        library.load()
        (document,) = library.import_paths(["/path/to/comic.cbz"])

        reader = ReaderView(page, repository=library)
        page.add(reader.control)
        await reader.open(document)

    ft.app(main)
"""

from __future__ import annotations

from .backends import ArchiveBackend, EpubBackend, PyMuPDFBackend, RenderSource
from .config import ReaderConfig, ZoomConfig
from .formats import detect_format
from .library import LibraryRepository
from .lifecycle import ReaderCoordinator
from .rendering import PageRenderer, fit_scale
from .session import DocumentOpenError, RenderSession, SessionConflictError
from .store import JsonRecordStore, MemoryRecordStore, RecordStore
from .thumbnails import generate_thumbnail
from .types import (
    Document,
    DocumentFormat,
    ImportedFile,
    PageImage,
    RenderedPage,
    RenderOutcome,
    RenderRequest,
    RenderStatus,
    Rotation,
    Thumbnail,
)
from .viewer import ReaderView
from .viewport import ViewportController

__version__ = "0.1.0"

__all__ = [
    "ArchiveBackend",
    "Document",
    "DocumentFormat",
    "DocumentOpenError",
    "EpubBackend",
    "ImportedFile",
    "JsonRecordStore",
    "LibraryRepository",
    "MemoryRecordStore",
    "PageImage",
    "PageRenderer",
    "PyMuPDFBackend",
    "ReaderConfig",
    "ReaderCoordinator",
    "ReaderView",
    "RecordStore",
    "RenderOutcome",
    "RenderRequest",
    "RenderSession",
    "RenderSource",
    "RenderStatus",
    "RenderedPage",
    "Rotation",
    "SessionConflictError",
    "Thumbnail",
    "ViewportController",
    "ZoomConfig",
    "detect_format",
    "fit_scale",
    "generate_thumbnail",
    "__version__",
]
