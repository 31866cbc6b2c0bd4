import io
import zipfile

import pymupdf
import pytest
from PIL import Image

from flet_comic_reader import session as session_module
from flet_comic_reader.store import MemoryRecordStore

PAGE_SIZES = ((200, 300), (300, 200), (210, 297), (200, 300), (150, 150))


def make_pdf(sizes=PAGE_SIZES) -> bytes:
    doc = pymupdf.open()
    for i, (width, height) in enumerate(sizes):
        page = doc.new_page(width=width, height=height)
        page.draw_rect(pymupdf.Rect(10, 10, width - 10, height - 10), color=(1, 0, 0), width=2)
        page.insert_text((20, 40), f"Page {i + 1}", fontsize=14)
    data = doc.tobytes()
    doc.close()
    return data


def make_image(color=(255, 0, 0), size=(40, 60), fmt="PNG") -> bytes:
    out = io.BytesIO()
    Image.new("RGB", size, color).save(out, format=fmt)
    return out.getvalue()


def make_zip(entries) -> bytes:
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w") as zf:
        for name, data in entries:
            if name.endswith("/"):
                zf.writestr(zipfile.ZipInfo(name), b"")
            else:
                zf.writestr(name, data)
    return out.getvalue()


def flip_byte(payload: bytes, data: bytes) -> bytes:
    """Corrupt one byte of a stored entry so its CRC check fails."""
    start = payload.index(data)
    corrupted = bytearray(payload)
    corrupted[start + len(data) // 2] ^= 0xFF
    return bytes(corrupted)


_CONTAINER = """<?xml version="1.0" encoding="UTF-8"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>
"""

_CHAPTER = """<?xml version="1.0" encoding="UTF-8"?>
<html xmlns="http://www.w3.org/1999/xhtml">
<head><title>Chapter {n}</title></head>
<body>
<h1>Chapter {n}</h1>
{paragraphs}
</body>
</html>
"""

_LOREM = (
    "It was a bright cold day in April, and the clocks were striking thirteen. "
    "The hallway smelt of boiled cabbage and old rag mats. "
)


def make_epub(chapters=3, paragraphs=40) -> bytes:
    manifest = "\n".join(
        f'<item id="c{n}" href="c{n}.xhtml" media-type="application/xhtml+xml"/>'
        for n in range(1, chapters + 1)
    )
    spine = "\n".join(f'<itemref idref="c{n}"/>' for n in range(1, chapters + 1))
    opf = f"""<?xml version="1.0" encoding="UTF-8"?>
<package xmlns="http://www.idpf.org/2007/opf" version="2.0" unique-identifier="bookid">
  <metadata xmlns:dc="http://purl.org/dc/elements/1.1/">
    <dc:title>Test Book</dc:title>
    <dc:identifier id="bookid">test-book</dc:identifier>
    <dc:language>en</dc:language>
  </metadata>
  <manifest>
{manifest}
  </manifest>
  <spine>
{spine}
  </spine>
</package>
"""
    out = io.BytesIO()
    with zipfile.ZipFile(out, "w") as zf:
        zf.writestr("mimetype", "application/epub+zip", compress_type=zipfile.ZIP_STORED)
        zf.writestr("META-INF/container.xml", _CONTAINER)
        zf.writestr("OEBPS/content.opf", opf)
        for n in range(1, chapters + 1):
            body = "\n".join(f"<p>{_LOREM * 3}</p>" for _ in range(paragraphs))
            zf.writestr(f"OEBPS/c{n}.xhtml", _CHAPTER.format(n=n, paragraphs=body))
    return out.getvalue()


class CountingStore(MemoryRecordStore):
    """Memory store that remembers every put."""

    def __init__(self):
        super().__init__()
        self.puts = []

    def put(self, record):
        self.puts.append(dict(record))
        super().put(record)


class BrokenStore(MemoryRecordStore):
    def get_all(self):
        raise OSError("store unavailable")

    def put(self, record):
        raise OSError("store unavailable")


@pytest.fixture
def pdf_bytes():
    return make_pdf()


@pytest.fixture
def cbz_bytes():
    return make_zip(
        [
            ("comic/", b""),
            ("comic/page10.jpg", make_image((0, 0, 255), fmt="JPEG")),
            ("comic/page1.jpg", make_image((255, 0, 0), fmt="JPEG")),
            ("comic/notes.txt", b"not a page"),
            ("comic/page2.PNG", make_image((0, 255, 0))),
        ]
    )


@pytest.fixture
def txt_only_cbz():
    return make_zip([("a.txt", b"one"), ("b.txt", b"two")])


@pytest.fixture
def epub_bytes():
    return make_epub()


@pytest.fixture
def store():
    return CountingStore()


@pytest.fixture(autouse=True)
def _reset_sessions():
    yield
    session_module._active_documents.clear()
