"""
Reader configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional


@dataclass(frozen=True)
class ZoomConfig:
    """Zoom limits and step for manual zoom."""

    initial: float = 1.0
    step: float = 0.05
    minimum: float = 0.05
    maximum: float = 12.0

    def __post_init__(self):
        if self.minimum <= 0 or self.minimum > self.maximum:
            raise ValueError(f"Invalid zoom range [{self.minimum}, {self.maximum}]")
        if self.step <= 0:
            raise ValueError("Zoom step must be positive")

    def clamp(self, scale: float) -> float:
        return max(self.minimum, min(self.maximum, scale))


@dataclass(frozen=True)
class ReaderConfig:
    """Settings shared by the import boundary and reader sessions.

    Args:
        zoom: Zoom limits
        thumbnail_scale: Scale of the first page when building a preview
        thumbnail_quality: JPEG quality of previews (1-95)
        placeholder_page_count: Page total reported for e-books whose
            location index is unavailable
        image_extensions: Archive entries kept as pages
        epub_font_size: Base font size for the e-book layout engine
        handle_dir: Parent directory for archive page files
            (system temp dir when None)
    """

    zoom: ZoomConfig = field(default_factory=ZoomConfig)
    thumbnail_scale: float = 0.5
    thumbnail_quality: int = 80
    placeholder_page_count: int = 100
    image_extensions: FrozenSet[str] = frozenset({".jpg", ".jpeg", ".png", ".webp"})
    epub_font_size: float = 11.0
    handle_dir: Optional[str] = None
