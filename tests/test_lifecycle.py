import asyncio
import os

import pytest

from flet_comic_reader import (
    Document,
    DocumentFormat,
    ImportedFile,
    LibraryRepository,
    ReaderCoordinator,
    SessionConflictError,
)
from flet_comic_reader.session import is_open


def run(coro):
    return asyncio.run(coro)


class Scheduler:
    """Collects scheduled handlers so tests decide when they run."""

    def __init__(self):
        self.pending = []

    def __call__(self, handler, *args):
        self.pending.append((handler, args))

    def drain(self):
        pending, self.pending = self.pending, []
        for handler, args in pending:
            run(handler(*args))
        return len(pending)


@pytest.fixture
def scheduler():
    return Scheduler()


@pytest.fixture
def library(store, pdf_bytes, cbz_bytes):
    repository = LibraryRepository(store)
    repository.import_files(
        [
            ImportedFile("book.pdf", pdf_bytes),
            ImportedFile("comic.cbz", cbz_bytes),
        ]
    )
    return repository


@pytest.fixture
def coordinator(scheduler, library):
    return ReaderCoordinator(lambda: (400, 900), schedule=scheduler, repository=library)


def test_open_schedules_initial_render(coordinator, library, scheduler):
    book = library.documents[0]
    controller = run(coordinator.open(book))

    assert controller is not None
    assert coordinator.session.total_pages == 5
    assert not coordinator.loading
    assert controller.frame is None
    assert scheduler.drain() == 1
    assert controller.frame.page == 1
    assert controller.scale == 2.0


def test_open_marks_document_opened(coordinator, library, store):
    book = library.documents[0]
    puts_before = len(store.puts)

    run(coordinator.open(book))

    assert len(store.puts) == puts_before + 1
    assert store.puts[-1]["id"] == book.id
    assert book.last_opened is None
    assert library.get(book.id).last_opened is not None
    assert coordinator.document.last_opened == library.get(book.id).last_opened


def test_switching_documents_releases_previous_session(coordinator, library, scheduler):
    book, comic = library.documents

    run(coordinator.open(comic))
    paths = [p.path for p in coordinator.session.source.pages]
    assert all(os.path.exists(p) for p in paths)

    run(coordinator.open(book))

    assert not any(os.path.exists(p) for p in paths)
    assert not is_open(comic.id)
    assert is_open(book.id)


def test_renders_for_a_closed_document_are_dropped(coordinator, library, scheduler):
    book = library.documents[0]
    controller = run(coordinator.open(book))
    controller.next_page()
    coordinator.close()

    assert scheduler.drain() == 2
    assert controller.frame is None
    assert coordinator.session is None
    assert not is_open(book.id)


def test_failed_open_shows_nothing(coordinator):
    broken = Document(id="broken", name="broken.pdf", format=DocumentFormat.PAGINATED, payload=b"nope")

    assert run(coordinator.open(broken)) is None

    assert coordinator.controller is None
    assert coordinator.session is None
    assert "broken.pdf" in coordinator.error
    assert not coordinator.loading
    assert not is_open("broken")


def test_empty_archive_opens_with_no_pages(scheduler, txt_only_cbz):
    coordinator = ReaderCoordinator(lambda: (400, 900), schedule=scheduler)
    document = Document(id="txt", name="notes.cbz", format=DocumentFormat.ARCHIVE, payload=txt_only_cbz)

    controller = run(coordinator.open(document))

    assert controller.is_empty
    assert controller.total_pages == 0
    assert scheduler.pending == []
    coordinator.close()


def test_document_open_elsewhere_is_rejected(coordinator, library):
    from flet_comic_reader import RenderSession

    book = library.documents[0]

    async def scenario():
        async with RenderSession(book):
            await coordinator.open(book)

    with pytest.raises(SessionConflictError):
        run(scenario())
    assert coordinator.session is None


def test_toggle_favorite_writes_once(coordinator, library, store):
    book = library.documents[0]
    run(coordinator.open(book))
    puts_before = len(store.puts)

    updated = coordinator.toggle_favorite()

    assert updated.is_favorite
    assert coordinator.document.is_favorite
    assert len(store.puts) == puts_before + 1
    assert store.puts[-1]["is_favorite"] is True
    assert library.favorites == (updated,)


def test_toggle_favorite_without_document(coordinator):
    assert coordinator.toggle_favorite() is None


def test_fullscreen_mirrors_external_changes():
    changes = []
    coordinator = ReaderCoordinator(lambda: (0, 0), on_change=lambda: changes.append(1))

    coordinator.set_fullscreen(True)
    assert coordinator.is_fullscreen
    coordinator.set_fullscreen(True)
    assert len(changes) == 1

    coordinator.set_fullscreen(False)
    assert not coordinator.is_fullscreen


def test_toggle_fullscreen_uses_setter():
    requested = []
    coordinator = ReaderCoordinator(lambda: (0, 0), fullscreen_setter=requested.append)

    coordinator.toggle_fullscreen()
    coordinator.toggle_fullscreen()

    assert requested == [True, False]
    assert not coordinator.is_fullscreen


def test_fullscreen_setter_failure_leaves_state(caplog):
    def refuse(value):
        raise RuntimeError("not allowed")

    coordinator = ReaderCoordinator(lambda: (0, 0), fullscreen_setter=refuse)
    coordinator.toggle_fullscreen()

    assert not coordinator.is_fullscreen
    assert "Error attempting to change full-screen mode" in caplog.text
