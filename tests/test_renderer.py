import asyncio

import pytest

from conftest import PAGE_SIZES, make_pdf
from flet_comic_reader import PyMuPDFBackend, RenderRequest, RenderStatus, Rotation
from flet_comic_reader.rendering import PageRenderer, fit_scale


@pytest.fixture
def backend(pdf_bytes):
    with PyMuPDFBackend(pdf_bytes) as backend:
        yield backend


def run(coro):
    return asyncio.run(coro)


def test_fit_scale_contains_page_when_upright():
    assert fit_scale((200, 300), (400, 900), Rotation.NONE) == 2.0
    assert fit_scale((200, 300), (1000, 600), Rotation.NONE) == 2.0


def test_fit_scale_stretches_to_width_when_rotated():
    # Height would only allow 0.5, rotated pages still fill the width
    assert fit_scale((300, 200), (900, 100), Rotation.QUARTER) == 3.0


def test_fit_scale_degenerate_sizes():
    assert fit_scale((0, 300), (400, 400), Rotation.NONE) is None
    assert fit_scale((200, 300), (0, 0), Rotation.NONE) is None


def test_page_size_swaps_when_rotated(backend):
    assert backend.page_size(1) == (200, 300)
    assert backend.page_size(1, Rotation.QUARTER) == (300, 200)


@pytest.mark.parametrize("rotation", [Rotation.NONE, Rotation.QUARTER])
@pytest.mark.parametrize("scale", [0.5, 1.0, 1.75])
def test_surface_matches_scaled_rotated_page(backend, scale, rotation):
    renderer = PageRenderer(backend, lambda: (800, 600))
    for page, (width, height) in enumerate(PAGE_SIZES, start=1):
        outcome = run(renderer.render(RenderRequest(page, scale, rotation)))
        assert outcome.status is RenderStatus.COMPLETED
        expected_w, expected_h = width * scale, height * scale
        if rotation is Rotation.QUARTER:
            expected_w, expected_h = expected_h, expected_w
        assert abs(outcome.surface.width - expected_w) <= 1
        assert abs(outcome.surface.height - expected_h) <= 1
        assert outcome.scale is None


def test_identical_requests_are_bit_identical(backend):
    renderer = PageRenderer(backend, lambda: (800, 600))
    request = RenderRequest(3, 1.25, Rotation.QUARTER)

    first = run(renderer.render(request))
    second = run(renderer.render(request))

    assert first.surface.image == second.surface.image
    assert (first.surface.width, first.surface.height) == (second.surface.width, second.surface.height)


def test_fit_mode_computes_scale_from_viewport(backend):
    renderer = PageRenderer(backend, lambda: (400, 900))
    outcome = run(renderer.render(RenderRequest(1, 1.0, fit_mode=True)))

    assert outcome.scale == 2.0
    assert (outcome.surface.width, outcome.surface.height) == (400, 600)


def test_viewport_is_read_on_every_fit(backend):
    sizes = iter([(400, 900), (200, 900)])
    renderer = PageRenderer(backend, lambda: next(sizes))

    first = run(renderer.render(RenderRequest(1, 1.0, fit_mode=True)))
    second = run(renderer.render(RenderRequest(1, 1.0, fit_mode=True)))

    assert first.scale == 2.0
    assert second.scale == 1.0


def test_fit_mode_with_empty_viewport_keeps_requested_scale(backend):
    renderer = PageRenderer(backend, lambda: (0, 0))
    outcome = run(renderer.render(RenderRequest(1, 1.5, fit_mode=True)))

    assert outcome.completed
    assert outcome.scale is None
    assert outcome.surface.width == 300


def test_newer_request_supersedes_older():
    async def scenario(renderer):
        tasks = [
            asyncio.create_task(renderer.render(RenderRequest(page, 1.0)))
            for page in (1, 2, 3)
        ]
        return await asyncio.gather(*tasks)

    with PyMuPDFBackend(make_pdf()) as backend:
        renderer = PageRenderer(backend, lambda: (800, 600))
        first, second, third = run(scenario(renderer))

    assert first.status is RenderStatus.CANCELLED
    assert second.status is RenderStatus.CANCELLED
    assert third.status is RenderStatus.COMPLETED
    assert third.surface.page == 3
    assert first.surface is None and second.surface is None
    assert renderer.is_current(third.generation)
    assert not renderer.is_current(first.generation)


def test_cancel_drops_in_flight_render(backend):
    renderer = PageRenderer(backend, lambda: (800, 600))

    async def scenario():
        task = asyncio.create_task(renderer.render(RenderRequest(1, 1.0)))
        await asyncio.sleep(0)
        assert renderer.active is not None
        renderer.cancel()
        return await task

    outcome = run(scenario())
    assert outcome.status is RenderStatus.CANCELLED
    assert renderer.active is None


def test_decode_failure_is_reported_not_raised(backend, caplog):
    renderer = PageRenderer(backend, lambda: (800, 600))
    outcome = run(renderer.render(RenderRequest(99, 1.0)))

    assert outcome.status is RenderStatus.FAILED
    assert outcome.surface is None
    assert "Failed to render page 99" in caplog.text
