"""Utility functions for Quire.

This module contains small string and path helpers used throughout the Quire codebase.
They mirror the naming rules the external generator applies to filenames, slugs and tags.

Key functions:
    slugify: Convert text to a URL slug (default, pretty or raw mode).
    split_dated_name: Split a YYYY-MM-DD- prefixed filename stem.
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from filename prefix.
    tag_slug: Slug a tag the way the tagging plugin names tag pages.
    as_list: Normalize a scalar/list front-matter value into a list of strings.
    is_markdown: Check if a path is a Markdown file.
    is_html: Check if a path is an HTML file.
    is_content_file: Check if a path is a content file the generator converts.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

MARKDOWN_EXTENSIONS = (".md", ".markdown", ".mkd", ".mkdn", ".mdown")

_DEFAULT_SLUG_RE = re.compile(r"[^a-zA-Z0-9]+")
_PRETTY_SLUG_RE = re.compile(r"[^a-zA-Z0-9._~!$&'()+,;=@]+")
_RAW_SLUG_RE = re.compile(r"\s+")


def slugify(text: str, mode: str = "default", cased: bool = False) -> str:
    """Convert text to a URL slug.

    Modes follow the generator's slug modes:
    - ``default``: every run of non-alphanumeric characters becomes ``-``.
    - ``pretty``: like default but keeps ``._~!$&'()+,;=@``.
    - ``raw``: only whitespace runs become ``-``.

    Args:
        text: Text to slugify.
        mode: Slug mode.
        cased: Keep the original letter case.

    Returns:
        Slug string (may be empty).

    Examples:
        >>> slugify("Continuous Delivery in iOS")
        'continuous-delivery-in-ios'

        >>> slugify("What's new?", mode="pretty")
        "what's-new"
    """
    if mode == "raw":
        pattern = _RAW_SLUG_RE
    elif mode == "pretty":
        pattern = _PRETTY_SLUG_RE
    else:
        pattern = _DEFAULT_SLUG_RE
    cleaned = pattern.sub("-", str(text)).strip("-")
    return cleaned if cased else cleaned.lower()


def split_dated_name(name: str) -> tuple[datetime | None, str]:
    """Split a filename stem into its date prefix and the remaining slug.

    Args:
        name: Filename stem (without extension).

    Returns:
        Tuple of (date or None, remainder). The remainder is the whole name
        when no valid date prefix exists.

    Examples:
        >>> split_dated_name("2019-03-04-continuous-delivery-in-ios")
        (datetime(2019, 3, 4, 0, 0), 'continuous-delivery-in-ios')
    """
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        date = extract_date_from_name(name)
        if date is not None:
            return date, "-".join(parts[3:])
    return None, name


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        datetime object if a valid date prefix is found, None otherwise.

    Examples:
        >>> extract_date_from_name("2024-01-15-hello-world")
        datetime(2024, 1, 15, 0, 0)

        >>> extract_date_from_name("hello-world")
        None
    """
    parts = name.split("-")
    if len(parts) >= 3 and all(p.isdigit() for p in parts[:3]):
        if len(parts[0]) != 4:
            return None
        try:
            return datetime(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None
    return None


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Args:
        filename: Filename with or without extension.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'
    """
    _, base = split_dated_name(Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def tag_slug(tag: str) -> str:
    """Slug a tag the way the tagging plugin names its tag pages.

    Args:
        tag: Tag as written in front-matter.

    Returns:
        Lower-cased tag with whitespace runs replaced by ``-``.
    """
    return re.sub(r"\s+", "-", str(tag).strip().lower())


def as_list(value: Any) -> list[str]:
    """Normalize a front-matter value into a list of strings.

    Strings are split on whitespace, matching how the generator reads
    ``tags: ios swift``. ``None`` becomes an empty list.

    Args:
        value: Raw front-matter value.

    Returns:
        List of non-empty strings.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, Iterable):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return [str(value)]


def unique(items: Iterable[str]) -> list[str]:
    """Drop duplicates while keeping first-seen order."""
    seen: list[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has a Markdown extension (case-insensitive).
    """
    return path.suffix.lower() in MARKDOWN_EXTENSIONS


def is_html(path: Path) -> bool:
    """Check if a path is an HTML file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .html or .htm extension.
    """
    return path.suffix.lower() in (".html", ".htm")


def is_content_file(path: Path) -> bool:
    """Check if a path is a file the generator converts (Markdown or HTML)."""
    return is_markdown(path) or is_html(path)


def has_frontmatter(path: Path) -> bool:
    """Check whether a file starts with a front-matter fence.

    Args:
        path: File to inspect.

    Returns:
        True if the first line is ``---``.
    """
    try:
        with open(path, encoding="utf-8") as f:
            first = f.readline()
    except (OSError, UnicodeDecodeError):
        return False
    return first.rstrip() == "---"
