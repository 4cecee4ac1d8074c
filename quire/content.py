"""Content loading for Quire.

This module discovers the content documents of a site, splits their
front-matter from the body, merges path-scoped defaults under the
front-matter and resolves each entry's URL.

Key classes:
- Entry: Dataclass representing one post, page or draft.
- FileContentLoader: Discovers content files using the generator's rules.
- DefaultEntryBuilder: Builds Entry objects from source files.
- ContentProcessor: Facade that loads every entry of a site.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from .analysis import WORDS_PER_MINUTE, BodyStats
from .config import SiteConfig
from .extractors import (
    CompositeMetadataExtractor,
    default_metadata_extractor,
    resolve_authors,
    resolve_categories,
    resolve_date,
    resolve_tags,
)
from .logging import get_logger
from .permalinks import PermalinkError, PermalinkResolver, output_path
from .protocols import ContentLoader, EntryBuilder
from .utils import has_frontmatter, is_content_file, slugify

logger = get_logger("content")

# Folders the generator reads for its own purposes; never content.
SPECIAL_DIRS = frozenset(
    {"_layouts", "_includes", "_sass", "_data", "_site", "_plugins", ".jekyll-cache", ".git"}
)

COLLECTION_TYPES = {"post": "posts", "page": "pages", "draft": "drafts"}


class SiteError(Exception):
    """Error while loading a site, with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class Entry:
    """Represents one content entry with its merged metadata.

    Attributes:
        path: Path to the source file.
        relative_path: POSIX path relative to the site root.
        kind: "post", "page" or "draft".
        frontmatter: The entry's own front-matter keys.
        data: Path-scoped defaults merged under the front-matter.
        body: Body text without front-matter.
        layout: Layout name, None when neither front-matter nor defaults set one.
        title: Title from front-matter or the filename.
        description: Optional description.
        authors: Referenced author ids.
        tags: Tags, duplicates removed.
        categories: Categories (directory-implied first, then declared).
        date: Entry date, None for undated posts and pages without one.
        slug: URL slug.
        url: Site-relative URL, None when the generator would not publish it.
        output_path: File the URL is written to, None when url is None.
        word_count: Prose words in the body.
        reading_time: Estimated minutes to read.
        code_languages: Languages named by code blocks.
        frontmatter_error: Parse error of a malformed front-matter block.
        permalink_error: Why the URL could not be resolved.
    """

    path: Path
    relative_path: str
    kind: str
    frontmatter: dict[str, Any]
    data: dict[str, Any]
    body: str
    layout: str | None
    title: str
    description: str
    authors: list[str]
    tags: list[str]
    categories: list[str]
    date: datetime | None
    slug: str
    url: str | None
    output_path: str | None
    word_count: int = 0
    reading_time: int = 0
    code_languages: list[str] = field(default_factory=list)
    frontmatter_error: str | None = None
    permalink_error: str | None = None

    @property
    def collection(self) -> str:
        return COLLECTION_TYPES[self.kind]

    @property
    def published(self) -> bool:
        """Whether the generator would write this entry."""
        return self.url is not None and self.data.get("published", True) is not False


def matches_any(relative_path: str, patterns: list[str]) -> bool:
    """Check a relative path against include/exclude style patterns.

    A pattern matches when it equals the path, names one of its parent
    directories, or matches it as a glob.
    """
    for raw in patterns:
        pattern = str(raw).strip().lstrip("/")
        if not pattern:
            continue
        stem = pattern.rstrip("/")
        if relative_path == stem or relative_path.startswith(stem + "/"):
            return True
        if fnmatch.fnmatch(relative_path, pattern):
            return True
    return False


class FileContentLoader:
    """Discovers content files in a site directory.

    Posts live under ``_posts`` (directories above it become categories),
    drafts under ``_drafts``. Any other Markdown or HTML file that starts
    with front-matter is a page. Names starting with ``_`` or ``.`` are
    skipped unless listed in ``include``; ``exclude`` always wins.

    Attributes:
        site_dir: Directory containing site content.
        config: Site configuration (include/exclude lists).
    """

    def __init__(self, site_dir: Path, config: SiteConfig):
        self.site_dir = site_dir
        self.config = config

    def iter_files(self, include_drafts: bool = False) -> list[tuple[Path, str]]:
        """List content files with their kind.

        Args:
            include_drafts: Whether to include files under ``_drafts``.

        Returns:
            Sorted list of (path, kind) pairs.
        """
        include = self.config.include
        exclude = self.config.exclude
        files: list[tuple[Path, str]] = []
        for path in sorted(self.site_dir.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(self.site_dir)
            rel_posix = rel.as_posix()
            parts = rel.parts
            if any(part in SPECIAL_DIRS for part in parts[:-1]):
                continue
            if not is_content_file(path):
                continue
            if matches_any(rel_posix, exclude) and not matches_any(rel_posix, include):
                logger.debug("Excluded %s", rel_posix)
                continue
            if "_posts" in parts[:-1]:
                files.append((path, "post"))
                continue
            if "_drafts" in parts[:-1]:
                if include_drafts:
                    files.append((path, "draft"))
                continue
            hidden = any(part.startswith(("_", ".")) for part in parts)
            if hidden and not matches_any(rel_posix, include):
                continue
            if has_frontmatter(path):
                files.append((path, "page"))
            else:
                logger.debug("Skipped %s: no front-matter (static file)", rel_posix)
        return files


class DefaultEntryBuilder:
    """Builds Entry objects from source files.

    Coordinates the metadata extractor, the configuration defaults and
    the permalink resolver.

    Attributes:
        site_dir: Directory containing site content.
        config: Site configuration.
        metadata_extractor: Composite metadata extractor.
        permalink_resolver: Permalink resolver for the site style.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig,
        metadata_extractor: CompositeMetadataExtractor | None = None,
    ):
        self.site_dir = site_dir
        self.config = config
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self.permalink_resolver = PermalinkResolver(config.permalink)
        self.words_per_minute = _positive_int(
            config.tool.get("words_per_minute"), WORDS_PER_MINUTE
        )

    def build(self, path: Path, kind: str) -> Entry:
        """Build an Entry from a source file.

        Args:
            path: Path to the source file.
            kind: "post", "page" or "draft".

        Returns:
            Entry object.
        """
        rel = path.relative_to(self.site_dir)
        relative_path = rel.as_posix()
        raw = path.read_text(encoding="utf-8")

        metadata = self.metadata_extractor.extract(raw, path)
        frontmatter = metadata.get("frontmatter", {})
        defaults = self.config.defaults_for(relative_path, COLLECTION_TYPES[kind])
        data = {**defaults, **frontmatter}

        name_slug = metadata.get("name_slug", path.stem)
        implicit = self._implicit_categories(rel) if kind != "page" else []
        categories = resolve_categories(data, implicit)
        if kind == "post" and metadata.get("date") is None:
            # The generator only reads posts named YYYY-MM-DD-slug
            date = None
        else:
            date = resolve_date(data.get("date"), metadata.get("date"))
        if kind == "draft" and date is None:
            date = datetime.fromtimestamp(path.stat().st_mtime)

        url: str | None = None
        permalink_error: str | None = None
        if kind == "page":
            try:
                url = self.permalink_resolver.resolve_page(data, relative_path)
            except PermalinkError as exc:
                permalink_error = str(exc)
        elif date is not None:
            try:
                url = self.permalink_resolver.resolve_post(
                    data, date, name_slug, categories, basename=path.stem
                )
            except PermalinkError as exc:
                permalink_error = str(exc)

        stats = metadata.get("body_stats") or BodyStats()
        layout = data.get("layout")

        return Entry(
            path=path,
            relative_path=relative_path,
            kind=kind,
            frontmatter=frontmatter,
            data=data,
            body=metadata.get("body", raw),
            layout=str(layout).strip() if layout is not None else None,
            title=str(data.get("title") or metadata.get("title", "")),
            description=str(data.get("description") or ""),
            authors=resolve_authors(data),
            tags=resolve_tags(data),
            categories=categories,
            date=date,
            slug=slugify(str(data.get("slug") or name_slug)) or "index",
            url=url,
            output_path=output_path(url) if url is not None else None,
            word_count=stats.word_count,
            reading_time=stats.reading_time(self.words_per_minute),
            code_languages=list(stats.code_languages),
            frontmatter_error=metadata.get("frontmatter_error"),
            permalink_error=permalink_error,
        )

    def _implicit_categories(self, rel: Path) -> list[str]:
        parts = list(rel.parts[:-1])
        for marker in ("_posts", "_drafts"):
            if marker in parts:
                parts = parts[: parts.index(marker)]
                break
        return [p for p in parts if not p.startswith("_")]


class ContentProcessor:
    """Facade for discovering content files and building Entry objects.

    Attributes:
        site_dir: Directory containing site content.
        config: Site configuration.
    """

    def __init__(
        self,
        site_dir: Path,
        config: SiteConfig,
        content_loader: ContentLoader | None = None,
        entry_builder: EntryBuilder | None = None,
    ):
        self.site_dir = site_dir
        self.config = config
        self._content_loader = content_loader or FileContentLoader(site_dir, config)
        self._entry_builder = entry_builder or DefaultEntryBuilder(site_dir, config)

    def load(self, include_drafts: bool = False) -> list[Entry]:
        """Load all content files and create Entry objects.

        Args:
            include_drafts: Whether to include drafts.

        Returns:
            List of Entry objects, in path order.

        Raises:
            SiteError: If a content file can't be read.
        """
        entries: list[Entry] = []
        for path, kind in self._content_loader.iter_files(include_drafts):
            try:
                entries.append(self._entry_builder.build(path, kind))
            except UnicodeDecodeError as exc:
                raise SiteError(path, f"File is not valid UTF-8: {exc.reason}", exc) from exc
            except OSError as exc:
                raise SiteError(path, f"Could not read file: {exc.strerror or exc}", exc) from exc
        logger.debug(
            "Loaded %d entries from %s (%d posts)",
            len(entries),
            self.site_dir,
            sum(1 for e in entries if e.kind == "post"),
        )
        return entries


def _positive_int(value: Any, fallback: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return fallback
