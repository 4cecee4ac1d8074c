"""Metadata extractors for Quire.

This module contains implementations of the MetadataExtractor protocol.
Each extractor handles a single type of metadata, following the
Single Responsibility Principle (SRP).

Key classes:
- FrontmatterExtractor: Splits the YAML front-matter from the body.
- TitleExtractor: Falls back to a title derived from the filename.
- DateExtractor: Extracts the date prefix from a post filename.
- BodyExtractor: Word count and code languages of the body.
- CompositeMetadataExtractor: Runs extractors in order and merges results.

Field resolvers (``resolve_authors``, ``resolve_tags``, ``resolve_categories``,
``resolve_date``) read normalized values out of merged front-matter.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from .analysis import inspect_body
from .protocols import MetadataExtractor
from .utils import as_list, split_dated_name, titleize, unique

FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n?^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)


class FrontmatterError(ValueError):
    """Raised when a front-matter block exists but is not a YAML mapping."""


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML front-matter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (front-matter dict, remaining content). Content without a
        front-matter block returns an empty dict and the text unchanged.

    Raises:
        FrontmatterError: If the block is not valid YAML or not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        where = f" (line {mark.line + 2})" if mark is not None else ""
        problem = getattr(exc, "problem", None) or str(exc)
        raise FrontmatterError(f"Invalid YAML in front-matter{where}: {problem}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"Front-matter must be a mapping, got {type(data).__name__}"
        )
    return data, text[match.end() :]


class FrontmatterExtractor:
    """Extracts YAML front-matter from content.

    A malformed block does not raise: the error is reported under
    ``frontmatter_error`` and the whole text is kept as body.
    """

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        try:
            frontmatter, body = extract_frontmatter(content)
        except FrontmatterError as exc:
            return {"frontmatter": {}, "body": content, "frontmatter_error": str(exc)}
        return {"frontmatter": frontmatter, "body": body, "frontmatter_error": None}


class TitleExtractor:
    """Titleizes the filename as a fallback title."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        return {"title": titleize(path.name)}


class DateExtractor:
    """Extracts the date and slug from a ``YYYY-MM-DD-slug`` filename.

    Unlike page files, posts without a valid prefix get ``date=None``
    rather than the file modification time; the generator skips them.
    """

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract date and slug from the filename.

        Args:
            content: Source content (unused).
            path: Path to the source file.

        Returns:
            Dictionary with 'date' and 'name_slug' keys.
        """
        found, remainder = split_dated_name(path.stem)
        return {"date": found, "name_slug": remainder}


class BodyExtractor:
    """Word count and code block languages of the body."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        _, body = _split_leniently(content)
        stats = inspect_body(body)
        return {
            "word_count": stats.word_count,
            "code_languages": stats.code_languages,
            "code_blocks": stats.code_blocks,
            "body_stats": stats,
        }


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    This class aggregates multiple extractors and runs them
    all on the content, merging their results. Later extractors
    can override earlier ones.
    """

    def __init__(self, extractors: list[MetadataExtractor] | None = None):
        """Initialize with a list of extractors.

        Args:
            extractors: List of MetadataExtractor implementations.
                       If None, uses default extractors.
        """
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                DateExtractor(),
                FrontmatterExtractor(),
                BodyExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor: MetadataExtractor) -> None:
        self._extractors.append(extractor)

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(content, path))
        return result


def _split_leniently(content: str) -> tuple[dict[str, Any], str]:
    try:
        return extract_frontmatter(content)
    except FrontmatterError:
        return {}, content


def resolve_authors(data: dict[str, Any]) -> list[str]:
    """Author ids referenced by an entry (``author`` or ``authors`` key)."""
    value = data.get("author")
    if value is None:
        value = data.get("authors")
    if isinstance(value, dict):
        # Inline profile; the generator uses its name as the reference.
        value = value.get("name")
    if isinstance(value, str):
        value = [value.strip()] if value.strip() else []
    return unique(as_list(value))


def resolve_tags(data: dict[str, Any]) -> list[str]:
    """Tags of an entry, duplicates dropped (``tags`` plus ``tag``)."""
    return unique(as_list(data.get("tags")) + as_list(data.get("tag")))


def resolve_categories(data: dict[str, Any], implicit: list[str] | None = None) -> list[str]:
    """Categories from directories above ``_posts`` then ``categories``/``category``."""
    declared = as_list(data.get("categories")) + as_list(data.get("category"))
    return unique(list(implicit or []) + declared)


def resolve_date(value: Any, fallback: datetime | None) -> datetime | None:
    """Coerce a front-matter ``date`` value, falling back to the filename date.

    Args:
        value: Raw front-matter value (datetime, date, or string).
        fallback: Date parsed from the filename.

    Returns:
        A naive datetime, or the fallback when the value can't be read.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        for fmt in ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d"):
            try:
                return datetime.strptime(text, fmt).replace(tzinfo=None)
            except ValueError:
                continue
    return fallback


default_metadata_extractor = CompositeMetadataExtractor()
