"""
Document library - the single owner of the document collection.

Observers only ever see immutable snapshots (tuples of frozen Documents).
Every change to a document's favorite flag or last-opened time is written
to the record store with exactly one ``put`` of the full record.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple, Union

from .config import ReaderConfig
from .formats import detect_format
from .store import RecordStore
from .thumbnails import generate_thumbnail
from .types import Document, ImportedFile

logger = logging.getLogger(__name__)

Snapshot = Tuple[Document, ...]


def _new_id() -> str:
    return uuid.uuid4().hex


class LibraryRepository:
    """Owns the library's documents and keeps the store in sync.

    Args:
        store: Record store for document metadata
        config: Reader settings (used for previews)
        clock: Returns the current time for last-opened stamps
    """

    def __init__(
        self,
        store: RecordStore,
        config: Optional[ReaderConfig] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._store = store
        self._config = config or ReaderConfig()
        self._clock = clock
        self._documents: Snapshot = ()
        self._subscribers: List[Callable[[Snapshot], None]] = []

    @property
    def documents(self) -> Snapshot:
        return self._documents

    @property
    def favorites(self) -> Snapshot:
        return tuple(d for d in self._documents if d.is_favorite)

    def get(self, document_id: str) -> Optional[Document]:
        for document in self._documents:
            if document.id == document_id:
                return document
        return None

    def subscribe(self, callback: Callable[[Snapshot], None]) -> Callable[[], None]:
        """Call ``callback`` with every new snapshot. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, documents: Snapshot) -> None:
        self._documents = documents
        for callback in list(self._subscribers):
            callback(documents)

    def _write(self, document: Document) -> None:
        try:
            self._store.put(document.to_record())
        except Exception as e:
            logger.error("Failed to store document %s: %s", document.id, e)

    # Operations

    def load(self) -> Snapshot:
        """Read all stored documents.

        An unavailable store leaves the library empty instead of failing.
        """
        try:
            records = self._store.get_all()
        except Exception as e:
            logger.error("Could not load stored documents: %s", e)
            records = []

        documents = []
        for record in records:
            try:
                documents.append(Document.from_record(record))
            except (KeyError, ValueError, TypeError) as e:
                logger.warning("Skipping invalid record %r: %s", record.get("id"), e)

        self._publish(tuple(documents))
        logger.info("Loaded %d documents", len(documents))
        return self._documents

    def import_files(self, files: Iterable[ImportedFile]) -> Snapshot:
        """Add a batch of files to the library.

        Files with a path are read again by the session that opens them,
        so only path-less imports keep their bytes in memory.

        Returns the new documents.
        """
        batch = []
        for file in files:
            fmt = detect_format(file.name)
            batch.append(
                Document(
                    id=_new_id(),
                    name=file.name,
                    format=fmt,
                    payload=None if file.path else file.data,
                    source_path=file.path,
                    thumbnail=generate_thumbnail(file.data, fmt, self._config),
                )
            )

        if not batch:
            return ()

        self._publish(self._documents + tuple(batch))
        for document in batch:
            self._write(document)
        logger.info("Imported %d documents", len(batch))
        return tuple(batch)

    def import_paths(self, paths: Iterable[Union[str, Path]]) -> Snapshot:
        """Read files from disk and import them."""
        files = []
        for path in paths:
            path = Path(path).resolve()
            try:
                files.append(ImportedFile(name=path.name, data=path.read_bytes(), path=str(path)))
            except OSError as e:
                logger.error("Could not read %s: %s", path, e)
        return self.import_files(files)

    def _update(self, document_id: str, **changes) -> Optional[Document]:
        current = self.get(document_id)
        if current is None:
            return None
        updated = replace(current, **changes)
        self._publish(tuple(updated if d.id == document_id else d for d in self._documents))
        self._write(updated)
        return updated

    def toggle_favorite(self, document_id: str) -> Optional[Document]:
        current = self.get(document_id)
        if current is None:
            return None
        return self._update(document_id, is_favorite=not current.is_favorite)

    def mark_opened(self, document_id: str) -> Optional[Document]:
        """Stamp the document's last-opened time."""
        return self._update(document_id, last_opened=self._clock())
