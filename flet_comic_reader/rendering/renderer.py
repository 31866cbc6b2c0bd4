"""
Page renderer - rasterizes paginated document pages for the reader.

Requests supersede each other. Every request captures the renderer's
generation when issued; a request whose generation is no longer current
when it resumes is reported as cancelled and its surface is discarded.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from ..backends.pymupdf import PyMuPDFBackend
from ..types import RenderOutcome, RenderRequest, RenderStatus, Rotation, Size

logger = logging.getLogger(__name__)


def fit_scale(page_size: Size, viewport: Size, rotation: Rotation) -> Optional[float]:
    """Scale that fits a page into the viewport.

    Rotated pages stretch to the viewport width instead of fitting both
    dimensions. Returns None when either size is degenerate.
    """
    page_width, page_height = page_size
    view_width, view_height = viewport
    if page_width <= 0 or page_height <= 0 or view_width <= 0 or view_height <= 0:
        return None

    scale_w = view_width / page_width
    scale_h = view_height / page_height
    if rotation is Rotation.QUARTER:
        return scale_w
    return min(scale_w, scale_h)


class PageRenderer:
    """Renders pages of a paginated document, one request at a time.

    Args:
        backend: The opened document
        viewport: Returns the current display area (width, height); read
            on every fit computation
    """

    def __init__(self, backend: PyMuPDFBackend, viewport: Callable[[], Size]):
        self._backend = backend
        self._viewport = viewport
        self._generation = 0
        self._active: Optional[int] = None

    @property
    def generation(self) -> int:
        """Generation of the most recently issued request."""
        return self._generation

    @property
    def active(self) -> Optional[int]:
        """Generation of the render currently in flight, if any."""
        return self._active

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def cancel(self) -> None:
        """Supersede whatever is in flight without issuing a new request."""
        self._generation += 1
        self._active = None

    async def render(self, request: RenderRequest) -> RenderOutcome:
        """Render a page.

        Never raises for decode errors: those are logged and reported as
        ``RenderStatus.FAILED`` so the previous frame stays visible.
        """
        self._generation += 1
        generation = self._generation
        self._active = generation

        def cancelled() -> RenderOutcome:
            logger.debug("Render of page %d superseded", request.page)
            return RenderOutcome(request, generation, RenderStatus.CANCELLED)

        try:
            scale = request.scale
            fitted = None
            if request.fit_mode:
                page_size = self._backend.page_size(request.page, request.rotation)
                fitted = fit_scale(page_size, self._viewport(), request.rotation)
                if fitted is not None:
                    scale = fitted

            await asyncio.sleep(0)
            if not self.is_current(generation):
                return cancelled()

            surface = self._backend.rasterize(request.page, scale, request.rotation)

            await asyncio.sleep(0)
            if not self.is_current(generation):
                return cancelled()

            return RenderOutcome(
                request, generation, RenderStatus.COMPLETED, surface=surface, scale=fitted
            )
        except asyncio.CancelledError:
            raise
        except Exception:
            if not self.is_current(generation):
                return cancelled()
            logger.exception("Failed to render page %d", request.page)
            return RenderOutcome(request, generation, RenderStatus.FAILED)
        finally:
            if self._active == generation:
                self._active = None
