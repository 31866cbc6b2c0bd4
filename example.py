"""
Comic Reader - library with import, favorites and the reader.
"""

import logging
from pathlib import Path

import flet as ft

from flet_comic_reader import (
    Document,
    JsonRecordStore,
    LibraryRepository,
    ReaderView,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

COLORS = {
    "bg": "#121212",
    "surface": "#1f1f1f",
    "border": "#000000",
    "text": "#ededed",
    "text_muted": "#737373",
    "accent": "#ffd700",
    "red": "#c41e3a",
    "badge": "#2563eb",
}

STORE_PATH = Path.home() / ".flet_comic_reader" / "library.json"


async def main(page: ft.Page):
    page.title = "Golden Age Comic Reader"
    page.padding = 0
    page.bgcolor = COLORS["bg"]
    page.theme_mode = ft.ThemeMode.DARK

    library = LibraryRepository(JsonRecordStore(STORE_PATH))
    library.load()

    show_favorites = [False]
    grid = ft.GridView(
        expand=True,
        max_extent=220,
        child_aspect_ratio=0.55,
        spacing=24,
        run_spacing=24,
        padding=24,
    )

    def build_card(document: Document) -> ft.Control:
        if document.thumbnail:
            cover = ft.Image(src_base64=document.thumbnail.base64, fit=ft.ImageFit.COVER)
        else:
            cover = ft.Container(
                content=ft.Text(document.name, color=COLORS["text_muted"], text_align=ft.TextAlign.CENTER),
                alignment=ft.alignment.center,
                bgcolor=COLORS["surface"],
                padding=12,
            )

        favorite = ft.IconButton(
            icon=ft.Icons.STAR if document.is_favorite else ft.Icons.STAR_BORDER,
            icon_color=COLORS["accent"] if document.is_favorite else "#ffffff",
            on_click=lambda e: library.toggle_favorite(document.id),
        )
        badge = ft.Container(
            content=ft.Text(document.format.value.upper(), size=10, weight=ft.FontWeight.BOLD),
            bgcolor=COLORS["badge"],
            border_radius=4,
            padding=ft.padding.symmetric(horizontal=6, vertical=2),
        )

        details = [ft.Text(document.name, weight=ft.FontWeight.BOLD, no_wrap=True, color=COLORS["text"])]
        if document.last_opened:
            details.append(
                ft.Text(
                    f"Last read: {document.last_opened:%Y-%m-%d}",
                    size=11,
                    italic=True,
                    color=COLORS["text_muted"],
                )
            )

        return ft.Column(
            controls=[
                ft.Container(
                    content=ft.Stack(
                        controls=[
                            ft.Container(content=cover, expand=True),
                            ft.Container(content=favorite, right=4, top=4),
                            ft.Container(content=badge, left=8, bottom=8),
                        ],
                        expand=True,
                    ),
                    border=ft.border.all(4, COLORS["border"]),
                    border_radius=12,
                    clip_behavior=ft.ClipBehavior.ANTI_ALIAS,
                    expand=True,
                    on_click=lambda e: page.run_task(open_document, document),
                ),
                *details,
            ],
            spacing=6,
        )

    def refresh(_snapshot=None):
        documents = library.favorites if show_favorites[0] else library.documents
        if documents:
            grid.controls = [build_card(d) for d in documents]
        else:
            grid.controls = [
                ft.Text("No editions yet. Import a PDF, EPUB or CBZ file.", color=COLORS["text_muted"])
            ]
        if grid.page and library_view in page.controls:
            grid.update()

    library.subscribe(refresh)

    def close_reader():
        page.controls = [library_view]
        refresh()
        page.update()

    reader = ReaderView(page, repository=library, on_close=close_reader)

    async def open_document(document: Document):
        page.controls = [reader.control]
        page.update()
        await reader.open(document)

    def on_files_picked(e: ft.FilePickerResultEvent):
        if e.files:
            library.import_paths([f.path for f in e.files if f.path])

    picker = ft.FilePicker(on_result=on_files_picked)
    page.overlay.append(picker)

    def set_filter(favorites_only: bool):
        show_favorites[0] = favorites_only
        refresh()

    library_view = ft.Column(
        controls=[
            ft.Container(
                content=ft.Row(
                    controls=[
                        ft.Text("Welcome, reader!", size=32, weight=ft.FontWeight.BOLD, color="#000000"),
                        ft.ElevatedButton(
                            "Import",
                            icon=ft.Icons.UPLOAD,
                            bgcolor=COLORS["red"],
                            color="#ffffff",
                            on_click=lambda e: picker.pick_files(
                                allow_multiple=True,
                                allowed_extensions=["pdf", "epub", "cbz"],
                            ),
                        ),
                    ],
                    alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
                ),
                bgcolor=COLORS["accent"],
                border=ft.border.all(4, COLORS["border"]),
                border_radius=16,
                padding=24,
                margin=24,
            ),
            ft.Row(
                controls=[
                    ft.TextButton("All editions", on_click=lambda e: set_filter(False)),
                    ft.TextButton("Favorites", on_click=lambda e: set_filter(True)),
                ],
                spacing=8,
            ),
            grid,
        ],
        expand=True,
    )

    page.add(library_view)
    refresh()


if __name__ == "__main__":
    ft.app(target=main)
