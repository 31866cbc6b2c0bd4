"""
Minimal reader example.
Opens the file given on the command line. For the library app check example.py
"""

import logging
import sys

import flet as ft

from flet_comic_reader import LibraryRepository, MemoryRecordStore, ReaderView

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


async def main(page: ft.Page):
    page.title = "Comic Reader"
    page.padding = 0
    page.theme_mode = ft.ThemeMode.DARK

    library = LibraryRepository(MemoryRecordStore())
    documents = library.import_paths(sys.argv[1:2])
    if not documents:
        page.add(ft.Text("Usage: python simple_example.py FILE"))
        return

    reader = ReaderView(page, repository=library, on_close=page.window.close)
    page.add(reader.control)
    await reader.open(documents[0])


if __name__ == "__main__":
    ft.app(target=main)
