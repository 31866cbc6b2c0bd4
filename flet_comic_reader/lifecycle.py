"""
Reader lifecycle - opens sessions, tears them down, mirrors fullscreen.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

from .config import ReaderConfig
from .library import LibraryRepository
from .session import DocumentOpenError, RenderSession
from .types import Document, RenderRequest, Size
from .viewport import ViewportController

logger = logging.getLogger(__name__)


def _create_task(handler, *args):
    return asyncio.get_running_loop().create_task(handler(*args))


class ReaderCoordinator:
    """Supervises the reading session of the active document.

    Opening a document closes the previous session first. Closing cancels
    the in-flight render, releases the opened backend and revokes every
    archive page handle, on every exit path.

    Args:
        viewport: Returns the display area (width, height)
        schedule: Runs ``handler(*args)`` as a task on the UI loop
            (``page.run_task`` in Flet); defaults to ``create_task``
        config: Reader settings
        repository: Library to record favorites and last-opened times in
        on_change: Called after any state change the view shows
        fullscreen_setter: Applies a fullscreen request to the window
    """

    def __init__(
        self,
        viewport: Callable[[], Size],
        schedule: Optional[Callable[..., Any]] = None,
        config: Optional[ReaderConfig] = None,
        repository: Optional[LibraryRepository] = None,
        on_change: Optional[Callable[[], None]] = None,
        fullscreen_setter: Optional[Callable[[bool], None]] = None,
    ):
        self._viewport = viewport
        self._schedule = schedule or _create_task
        self._config = config or ReaderConfig()
        self._repository = repository
        self._on_change = on_change
        self._fullscreen_setter = fullscreen_setter

        self._document: Optional[Document] = None
        self._session: Optional[RenderSession] = None
        self._controller: Optional[ViewportController] = None
        self._fullscreen = False
        self._loading = False
        self._error: Optional[str] = None

    # Properties

    @property
    def document(self) -> Optional[Document]:
        return self._document

    @property
    def session(self) -> Optional[RenderSession]:
        return self._session

    @property
    def controller(self) -> Optional[ViewportController]:
        return self._controller

    @property
    def is_fullscreen(self) -> bool:
        return self._fullscreen

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def error(self) -> Optional[str]:
        """Why the last open failed, if it did."""
        return self._error

    # Sessions

    async def open(self, document: Document) -> Optional[ViewportController]:
        """Open a document for reading.

        Returns the viewport controller, or None when the document could
        not be opened (the reader then shows nothing).

        Raises:
            SessionConflictError: The document is open in another reader
        """
        self.close()

        if self._repository is not None:
            document = self._repository.mark_opened(document.id) or document

        session = RenderSession(document, viewport=self._viewport, config=self._config)
        self._document = document
        self._session = session
        self._error = None
        self._loading = True
        self._notify()

        try:
            await session.open()
        except DocumentOpenError as e:
            if self._session is session:
                logger.error("%s", e)
                self._session = None
                self._error = str(e)
                self._loading = False
                self._notify()
            return None
        except BaseException:
            if self._session is session:
                self._session = None
                self._document = None
                self._loading = False
            raise

        if self._session is not session:
            # Another document was opened while this one loaded
            session.close()
            return None

        self._loading = False
        self._controller = ViewportController(
            session,
            zoom=self._config.zoom,
            dispatch=self._dispatch,
            on_change=self._notify,
        )
        self._controller.start()
        self._notify()
        return self._controller

    def close(self) -> None:
        """Tear down the active session, if any."""
        session, self._session = self._session, None
        self._controller = None
        self._document = None
        self._loading = False
        if session is not None:
            session.close()
            self._notify()

    def _dispatch(self, request: RenderRequest) -> None:
        self._schedule(self._run, self._controller, request)

    async def _run(self, controller: Optional[ViewportController], request: RenderRequest) -> None:
        if controller is None or controller is not self._controller:
            return
        await controller.execute(request)

    # Document state

    def toggle_favorite(self) -> Optional[Document]:
        """Flip the favorite flag of the open document."""
        if self._document is None or self._repository is None:
            return None
        updated = self._repository.toggle_favorite(self._document.id)
        if updated is not None:
            self._document = updated
            self._notify()
        return updated

    # Fullscreen

    def set_fullscreen(self, value: bool) -> None:
        """Mirror a fullscreen change, including ones made outside the reader."""
        value = bool(value)
        if value != self._fullscreen:
            self._fullscreen = value
            self._notify()

    def toggle_fullscreen(self) -> None:
        target = not self._fullscreen
        if self._fullscreen_setter is not None:
            try:
                self._fullscreen_setter(target)
            except Exception as e:
                logger.error("Error attempting to change full-screen mode: %s", e)
                return
        self.set_fullscreen(target)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
