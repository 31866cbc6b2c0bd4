"""
Format detection from file names.
"""

from __future__ import annotations

from .types import DocumentFormat

_SUFFIXES = (
    (".epub", DocumentFormat.REFLOWABLE),
    (".cbz", DocumentFormat.ARCHIVE),
)


def detect_format(name: str) -> DocumentFormat:
    """Classify a file by its name suffix.

    Anything that is not ``.epub`` or ``.cbz`` is treated as a paginated
    document.
    """
    lower = (name or "").lower()
    for suffix, fmt in _SUFFIXES:
        if lower.endswith(suffix):
            return fmt
    return DocumentFormat.PAGINATED
