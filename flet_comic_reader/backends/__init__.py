"""
Render source backends - one per supported document format.
"""

from typing import Union

from .archive import ArchiveBackend
from .base import DocumentBackend
from .epub import EpubBackend
from .pymupdf import PyMuPDFBackend

RenderSource = Union[PyMuPDFBackend, EpubBackend, ArchiveBackend]

__all__ = [
    "ArchiveBackend",
    "DocumentBackend",
    "EpubBackend",
    "PyMuPDFBackend",
    "RenderSource",
]
