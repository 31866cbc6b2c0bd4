import io

from PIL import Image

from conftest import make_image, make_zip
from flet_comic_reader import DocumentFormat, ReaderConfig, generate_thumbnail


def _open(thumbnail):
    img = Image.open(io.BytesIO(thumbnail.data))
    img.load()
    return img


def test_paginated_thumbnail_is_first_page_at_half_scale(pdf_bytes):
    thumbnail = generate_thumbnail(pdf_bytes, DocumentFormat.PAGINATED)

    assert thumbnail is not None
    assert thumbnail.mime_type == "image/jpeg"
    img = _open(thumbnail)
    assert img.format == "JPEG"
    assert img.size == (100, 150)


def test_thumbnail_scale_is_configurable(pdf_bytes):
    thumbnail = generate_thumbnail(
        pdf_bytes, DocumentFormat.PAGINATED, ReaderConfig(thumbnail_scale=0.25)
    )
    assert _open(thumbnail).size == (50, 75)


def test_archive_thumbnail_uses_first_image_in_natural_order(cbz_bytes):
    thumbnail = generate_thumbnail(cbz_bytes, DocumentFormat.ARCHIVE)

    img = _open(thumbnail).convert("RGB")
    assert img.size == (40, 60)
    r, g, b = img.getpixel((20, 30))
    assert r > 200 and g < 60 and b < 60


def test_archive_thumbnail_converts_png_with_alpha():
    out = io.BytesIO()
    Image.new("RGBA", (10, 10), (0, 255, 0, 128)).save(out, format="PNG")
    payload = make_zip([("1.png", out.getvalue()), ("2.png", make_image())])

    thumbnail = generate_thumbnail(payload, DocumentFormat.ARCHIVE)

    assert _open(thumbnail).mode == "RGB"


def test_reflowable_has_no_thumbnail(epub_bytes):
    assert generate_thumbnail(epub_bytes, DocumentFormat.REFLOWABLE) is None


def test_archive_without_images_has_no_thumbnail(txt_only_cbz):
    assert generate_thumbnail(txt_only_cbz, DocumentFormat.ARCHIVE) is None


def test_failures_are_swallowed(caplog):
    assert generate_thumbnail(b"garbage", DocumentFormat.PAGINATED) is None
    assert generate_thumbnail(b"garbage", DocumentFormat.ARCHIVE) is None
    assert "Thumbnail generation failed" in caplog.text


def test_thumbnail_data_url(pdf_bytes):
    thumbnail = generate_thumbnail(pdf_bytes, DocumentFormat.PAGINATED)
    assert thumbnail.data_url.startswith("data:image/jpeg;base64,")
