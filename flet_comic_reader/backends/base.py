"""
Abstract backend protocol for render sources.

Each supported format opens its payload through one of these backends.
"""

from abc import ABC, abstractmethod

from ..types import DocumentFormat


class DocumentBackend(ABC):
    """Abstract interface for an opened document."""

    format: DocumentFormat

    @property
    @abstractmethod
    def page_count(self) -> int:
        """Number of pages in the document."""
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Whether resources have been released."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close and release resources."""
        ...

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
