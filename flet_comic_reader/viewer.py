"""
Reader View - Flet component for reading one document at a time.

Composes the lifecycle coordinator, viewport controller and the format
backends into a single control with a top and a bottom HUD.
"""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional, Tuple

import flet as ft

from .backends import ArchiveBackend, EpubBackend
from .config import ReaderConfig
from .library import LibraryRepository
from .lifecycle import ReaderCoordinator
from .types import Document, DocumentFormat, RenderedPage, Rotation

logger = logging.getLogger(__name__)

ACCENT = "#facc15"


class ReaderView:
    """
    Reader component.

    Usage:
        from flet_comic_reader import ReaderView

        reader = ReaderView(page)
        page.add(reader.control)
        await reader.open(document)
    """

    def __init__(
        self,
        page: ft.Page,
        config: Optional[ReaderConfig] = None,
        repository: Optional[LibraryRepository] = None,
        on_close: Optional[Callable[[], None]] = None,
        bgcolor: str = "#050505",
    ):
        self._page = page
        self._on_close = on_close
        self._bgcolor = bgcolor
        self._coordinator = ReaderCoordinator(
            viewport=self._viewport_size,
            schedule=page.run_task,
            config=config,
            repository=repository,
            on_change=self._update_content,
            fullscreen_setter=self._set_window_fullscreen,
        )

        # UI state
        self._wrapper: Optional[ft.Container] = None
        self._body: Optional[ft.Container] = None
        self._title: Optional[ft.Text] = None
        self._page_label: Optional[ft.Text] = None
        self._zoom_button: Optional[ft.TextButton] = None
        self._rotate_button: Optional[ft.IconButton] = None
        self._favorite_button: Optional[ft.IconButton] = None
        self._fullscreen_button: Optional[ft.IconButton] = None

        # E-book frame cache: (location, frame)
        self._epub_frame: Optional[Tuple[tuple, RenderedPage]] = None

        self._previous_window_handler = page.window.on_event
        page.window.on_event = self._on_window_event

        self._build()

    # Properties

    @property
    def control(self) -> ft.Control:
        """The Flet control to add to a page."""
        return self._wrapper

    @property
    def coordinator(self) -> ReaderCoordinator:
        return self._coordinator

    @property
    def document(self) -> Optional[Document]:
        return self._coordinator.document

    # Session

    async def open(self, document: Document) -> None:
        """Open a document, closing whatever was open before."""
        self._epub_frame = None
        await self._coordinator.open(document)

    def close(self) -> None:
        """Close the document and release its resources."""
        self._coordinator.close()
        self._epub_frame = None
        if self._on_close:
            self._on_close()

    # Private methods

    def _viewport_size(self) -> Tuple[float, float]:
        return (self._page.width or 0.0, self._page.height or 0.0)

    def _set_window_fullscreen(self, value: bool) -> None:
        self._page.window.full_screen = value
        self._page.update()

    def _on_window_event(self, e):
        if e.data == "enter-full-screen":
            self._coordinator.set_fullscreen(True)
        elif e.data == "leave-full-screen":
            self._coordinator.set_fullscreen(False)
        if self._previous_window_handler:
            self._previous_window_handler(e)

    def _controller_call(self, name: str):
        def handler(e):
            controller = self._coordinator.controller
            if controller is not None:
                getattr(controller, name)()

        return handler

    def _build(self):
        """Build the reader UI."""
        self._title = ft.Text("", size=20, weight=ft.FontWeight.BOLD, color="#ffffff", no_wrap=True)
        self._rotate_button = ft.IconButton(
            icon=ft.Icons.SCREEN_ROTATION,
            tooltip="Rotate Page",
            on_click=self._controller_call("toggle_rotation"),
        )
        self._favorite_button = ft.IconButton(
            icon=ft.Icons.FAVORITE_BORDER,
            on_click=lambda e: self._coordinator.toggle_favorite(),
        )

        header = ft.Container(
            content=ft.Row(
                controls=[
                    ft.Row(
                        controls=[
                            ft.IconButton(icon=ft.Icons.ARROW_BACK, on_click=lambda e: self.close()),
                            self._title,
                        ],
                    ),
                    ft.Row(controls=[self._rotate_button, self._favorite_button]),
                ],
                alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
            ),
            padding=ft.padding.symmetric(horizontal=16, vertical=8),
            bgcolor=ft.Colors.with_opacity(0.9, "#000000"),
        )

        self._page_label = ft.Text("0 / 0", size=16, color=ACCENT)
        self._zoom_button = ft.TextButton(text="AUTO", on_click=self._controller_call("toggle_fit"))
        self._fullscreen_button = ft.IconButton(
            icon=ft.Icons.FULLSCREEN,
            tooltip="Full Screen",
            on_click=lambda e: self._coordinator.toggle_fullscreen(),
        )

        hud = ft.Container(
            content=ft.Row(
                controls=[
                    ft.IconButton(icon=ft.Icons.CHEVRON_LEFT, on_click=self._controller_call("prev_page")),
                    self._page_label,
                    ft.IconButton(icon=ft.Icons.CHEVRON_RIGHT, on_click=self._controller_call("next_page")),
                    ft.Container(width=1, height=24, bgcolor="rgba(255,255,255,0.2)"),
                    ft.IconButton(icon=ft.Icons.REMOVE, on_click=self._controller_call("zoom_out")),
                    self._zoom_button,
                    ft.IconButton(icon=ft.Icons.ADD, on_click=self._controller_call("zoom_in")),
                    ft.Container(width=1, height=24, bgcolor="rgba(255,255,255,0.2)"),
                    self._fullscreen_button,
                ],
                spacing=4,
                alignment=ft.MainAxisAlignment.CENTER,
                tight=True,
            ),
            bgcolor=ft.Colors.with_opacity(0.95, "#000000"),
            border_radius=30,
            padding=ft.padding.symmetric(horizontal=12, vertical=6),
        )

        self._body = ft.Container(
            content=self._build_content(),
            alignment=ft.alignment.center,
            expand=True,
        )

        self._wrapper = ft.Container(
            content=ft.Column(
                controls=[
                    header,
                    ft.Column(
                        controls=[self._body],
                        scroll=ft.ScrollMode.AUTO,
                        expand=True,
                        horizontal_alignment=ft.CrossAxisAlignment.CENTER,
                    ),
                    ft.Row(controls=[hud], alignment=ft.MainAxisAlignment.CENTER),
                ],
                expand=True,
                spacing=0,
            ),
            bgcolor=self._bgcolor,
            expand=True,
        )

    def _build_content(self) -> ft.Control:
        """Build the page content for the current format."""
        coordinator = self._coordinator
        controller = coordinator.controller

        if coordinator.loading:
            return ft.ProgressRing(color=ACCENT)
        if controller is None or controller.is_empty:
            return ft.Text("Nothing to display", color="#a1a1a1")

        rotate = ft.Rotate(angle=math.pi / 2) if controller.rotation is Rotation.QUARTER else None
        visual_scale = None if controller.fit_mode else controller.scale

        if controller.format is DocumentFormat.PAGINATED:
            frame = controller.frame
            if frame is None:
                return ft.ProgressRing(color=ACCENT)
            return ft.Image(
                src_base64=frame.base64,
                width=frame.width,
                height=frame.height,
                fit=ft.ImageFit.NONE,
                gapless_playback=True,
            )

        source = coordinator.session.source if coordinator.session else None

        if isinstance(source, ArchiveBackend):
            image = controller.current_image
            fit = ft.ImageFit.CONTAIN
            if controller.fit_mode and controller.rotation is Rotation.QUARTER:
                fit = ft.ImageFit.COVER
            return ft.Image(
                src=image.path,
                fit=fit if controller.fit_mode else ft.ImageFit.NONE,
                rotate=rotate,
                scale=visual_scale,
                gapless_playback=True,
            )

        if isinstance(source, EpubBackend):
            frame = self._current_epub_frame(source)
            if frame is None:
                return ft.Text("Nothing to display", color="#a1a1a1")
            return ft.Image(
                src_base64=frame.base64,
                fit=ft.ImageFit.CONTAIN,
                rotate=rotate,
                scale=visual_scale,
                gapless_playback=True,
            )

        return ft.Container()

    def _current_epub_frame(self, source: EpubBackend) -> Optional[RenderedPage]:
        location = source.location
        if self._epub_frame and self._epub_frame[0] == location:
            return self._epub_frame[1]
        try:
            frame = source.display()
        except Exception:
            logger.exception("Failed to display e-book location %s", location)
            return self._epub_frame[1] if self._epub_frame else None
        self._epub_frame = (location, frame)
        return frame

    def _update_content(self):
        """Update the reader content and HUD."""
        if not self._wrapper:
            return

        coordinator = self._coordinator
        controller = coordinator.controller
        document = coordinator.document

        self._title.value = document.name if document else ""
        self._favorite_button.icon = (
            ft.Icons.FAVORITE if document and document.is_favorite else ft.Icons.FAVORITE_BORDER
        )
        self._favorite_button.icon_color = ACCENT if document and document.is_favorite else None
        self._fullscreen_button.icon = (
            ft.Icons.FULLSCREEN_EXIT if coordinator.is_fullscreen else ft.Icons.FULLSCREEN
        )

        if controller is not None:
            self._page_label.value = controller.page_label
            self._zoom_button.text = controller.zoom_label
            self._rotate_button.icon_color = (
                ACCENT if controller.rotation is Rotation.QUARTER else None
            )
        else:
            self._page_label.value = "0 / 0"
            self._zoom_button.text = "AUTO"
            self._rotate_button.icon_color = None

        self._body.content = self._build_content()

        if self._wrapper.page:
            self._wrapper.update()
