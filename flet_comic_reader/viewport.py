"""
Viewport controller - zoom, fit, rotation and page state for a session.

For paginated documents every state change issues exactly one render
request through ``dispatch``. Archive pages and e-book layouts are not
re-decoded; zoom and rotation are applied to them as visual transforms.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .backends import ArchiveBackend, EpubBackend
from .config import ZoomConfig
from .session import RenderSession
from .types import (
    DocumentFormat,
    PageImage,
    RenderedPage,
    RenderOutcome,
    RenderRequest,
    Rotation,
)

logger = logging.getLogger(__name__)


class ViewportController:
    """State machine over ``{scale, rotation, fit_mode, current_page}``.

    Args:
        session: An open render session
        zoom: Zoom limits and step
        dispatch: Receives every render request issued for paginated
            documents; usually schedules ``execute`` on the event loop
        on_change: Called after any visible state change
    """

    def __init__(
        self,
        session: RenderSession,
        zoom: Optional[ZoomConfig] = None,
        dispatch: Optional[Callable[[RenderRequest], None]] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._session = session
        self._zoom = zoom or ZoomConfig()
        self._dispatch = dispatch
        self._on_change = on_change

        self._scale = self._zoom.clamp(self._zoom.initial)
        self._rotation = Rotation.NONE
        self._fit_mode = True
        self._current_page = 1
        self._frame: Optional[RenderedPage] = None
        self._last_request: Optional[RenderRequest] = None

    # Properties

    @property
    def format(self) -> DocumentFormat:
        return self._session.format

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def rotation(self) -> Rotation:
        return self._rotation

    @property
    def fit_mode(self) -> bool:
        return self._fit_mode

    @property
    def current_page(self) -> int:
        """Current page (1-based). E-books report the engine's position."""
        source = self._session.source
        if isinstance(source, EpubBackend):
            return source.current_page
        return self._current_page

    @property
    def total_pages(self) -> int:
        return self._session.total_pages

    @property
    def is_empty(self) -> bool:
        """Nothing to display (e.g. an archive without images)."""
        return self.total_pages == 0

    @property
    def frame(self) -> Optional[RenderedPage]:
        """Last rendered surface of a paginated document."""
        return self._frame

    @property
    def last_request(self) -> Optional[RenderRequest]:
        return self._last_request

    @property
    def current_image(self) -> Optional[PageImage]:
        """Page image handle of the current archive page."""
        source = self._session.source
        if isinstance(source, ArchiveBackend) and not self.is_empty:
            return source.page(self._current_page)
        return None

    @property
    def zoom_label(self) -> str:
        """``AUTO`` in fit mode, else the zoom as a percentage."""
        if self._fit_mode:
            return "AUTO"
        return f"{round(self._scale * 100)}%"

    @property
    def page_label(self) -> str:
        return f"{self.current_page} / {self.total_pages}"

    # Transitions

    def start(self) -> None:
        """Issue the first render of a paginated document."""
        self._changed()

    def zoom_in(self) -> None:
        self._set_zoom(self._scale + self._zoom.step)

    def zoom_out(self) -> None:
        self._set_zoom(self._scale - self._zoom.step)

    def _set_zoom(self, scale: float) -> None:
        scale = self._zoom.clamp(scale)
        if not self._fit_mode and scale == self._scale:
            return
        self._fit_mode = False
        self._scale = scale
        self._changed()

    def toggle_fit(self) -> None:
        """Switch to fit mode; later renders compute the scale."""
        if self._fit_mode:
            return
        self._fit_mode = True
        self._changed()

    def toggle_rotation(self) -> None:
        self._rotation = self._rotation.toggled()
        self._changed()

    def next_page(self) -> None:
        source = self._session.source
        if isinstance(source, EpubBackend):
            if source.next():
                self._changed(render=False)
            return
        if self._current_page < self.total_pages:
            self._current_page += 1
            self._changed()

    def prev_page(self) -> None:
        source = self._session.source
        if isinstance(source, EpubBackend):
            if source.prev():
                self._changed(render=False)
            return
        if self._current_page > 1 and self.total_pages > 0:
            self._current_page -= 1
            self._changed()

    def go_to(self, page: int) -> None:
        """Jump to a page, clamped to the document."""
        if self.format is DocumentFormat.REFLOWABLE or self.is_empty:
            return
        page = max(1, min(self.total_pages, page))
        if page != self._current_page:
            self._current_page = page
            self._changed()

    # Rendering

    def request(self) -> RenderRequest:
        """The render request matching the current state."""
        return RenderRequest(
            page=self._current_page,
            scale=self._scale,
            rotation=self._rotation,
            fit_mode=self._fit_mode,
        )

    def _changed(self, render: bool = True) -> None:
        if render and self.format is DocumentFormat.PAGINATED and not self.is_empty:
            self._last_request = self.request()
            if self._dispatch is not None:
                self._dispatch(self._last_request)
        if self._on_change is not None:
            self._on_change()

    def apply(self, outcome: RenderOutcome) -> bool:
        """Show a render result if it belongs to the latest request.

        Fit-mode results also update the visible zoom to the computed
        scale. Returns True when the frame changed.
        """
        if not outcome.completed or not self._session.is_current(outcome):
            return False
        self._frame = outcome.surface
        if outcome.scale is not None and outcome.request.fit_mode:
            self._scale = outcome.scale
        if self._on_change is not None:
            self._on_change()
        return True

    async def execute(self, request: RenderRequest) -> RenderOutcome:
        """Render a request on the session and apply the result."""
        outcome = await self._session.render(request)
        self.apply(outcome)
        return outcome
