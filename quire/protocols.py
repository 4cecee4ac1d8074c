"""Protocol definitions for Quire.

This module defines the interfaces (protocols) used throughout Quire,
following the Dependency Inversion Principle (DIP) of SOLID.

These protocols enable:
- Loose coupling between components
- Easy testing through mock implementations
- Extensibility without modifying existing code (Open/Closed Principle)
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .checks import Issue
    from .content import Entry
    from .site import Site


@runtime_checkable
class MetadataExtractor(Protocol):
    """Protocol for extracting metadata from content.

    Implementations extract specific types of metadata (title, date, body stats).
    This follows ISP - clients only depend on extractors they need.
    """

    @abstractmethod
    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract metadata from content.

        Args:
            content: Source content.
            path: Path to the source file.

        Returns:
            Dictionary of extracted metadata.
        """
        ...


@runtime_checkable
class ContentLoader(Protocol):
    """Protocol for discovering content files.

    This separates file discovery from entry construction (SRP).
    """

    @abstractmethod
    def iter_files(self, include_drafts: bool = False) -> list[tuple[Path, str]]:
        """List content files with their entry kind.

        Args:
            include_drafts: Whether to include files under ``_drafts``.

        Returns:
            List of (path, kind) pairs where kind is post, page or draft.
        """
        ...


@runtime_checkable
class EntryBuilder(Protocol):
    """Protocol for building Entry objects from source files."""

    @abstractmethod
    def build(self, path: Path, kind: str) -> Entry:
        """Build an Entry from a source file.

        Args:
            path: Path to the source file.
            kind: ``post``, ``page`` or ``draft``.

        Returns:
            Entry object.
        """
        ...


@runtime_checkable
class Check(Protocol):
    """Protocol for a data-integrity check over a loaded site.

    Each check owns one issue ``code`` family and never mutates the site.
    """

    code: str
    description: str

    @abstractmethod
    def run(self, site: Site) -> list[Issue]:
        """Inspect the site and return any issues found."""
        ...
