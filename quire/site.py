"""Site loading for Quire.

This module ties configuration and content together: it reads the
configuration once, loads every entry, and computes the table of output
paths the external generator would claim.

Key functions:
- load_site: Load configuration, entries, tags and routes.
- compute_routes: Every output path claimed by entries and plugins.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path

from .collections import EntryCollection, TagCollection
from .config import SiteConfig, load_config
from .content import ContentProcessor, SiteError
from .logging import get_logger
from .permalinks import Route, output_path, sanitize_url, tag_url

logger = get_logger("site")

TAGGING_PLUGINS = ("jekyll/tagging", "jekyll-tagging")


@dataclass
class Site:
    """A loaded site.

    Attributes:
        project_root: Site source directory.
        config: Site configuration.
        entries: Every loaded entry, published or not.
        tags: Tag index over published posts and drafts.
        routes: Output paths claimed by published entries and plugins.
    """

    project_root: Path
    config: SiteConfig
    entries: EntryCollection
    tags: TagCollection
    routes: list[Route]


def load_site(
    project_root: Path,
    include_drafts: bool = False,
    config_file: Path | None = None,
) -> Site:
    """Load a site from its source directory.

    Args:
        project_root: Site source directory (holds ``_config.yml``).
        include_drafts: Whether to load ``_drafts`` as entries.
        config_file: Optional explicit configuration path.

    Returns:
        Site with entries, tags and routes.

    Raises:
        ConfigError: If the configuration can't be read.
        SiteError: If a content file can't be read.
        FileNotFoundError: If the project root does not exist.
    """
    if not project_root.is_dir():
        raise FileNotFoundError(f"Expected site directory at {project_root}")
    config = load_config(project_root, config_file)
    processor = ContentProcessor(project_root, config)
    entries = EntryCollection(processor.load(include_drafts=include_drafts))
    # Tag pages index posts and drafts, never pages
    tagged = [e for e in entries.published() if e.kind in ("post", "draft")]
    tags = TagCollection.from_entries(tagged)
    routes = compute_routes(config, entries, tags)
    logger.debug("Computed %d routes", len(routes))
    return Site(
        project_root=project_root,
        config=config,
        entries=entries,
        tags=tags,
        routes=routes,
    )


def compute_routes(
    config: SiteConfig, entries: EntryCollection, tags: TagCollection
) -> list[Route]:
    """Every output path the generator would write.

    Args:
        config: Site configuration.
        entries: All entries; unpublished ones claim nothing.
        tags: Tag index of published posts and drafts.

    Returns:
        Routes from entries, then tag pages, feed, sitemap and paginator pages.
    """
    routes: list[Route] = []
    for entry in entries:
        if entry.published:
            routes.append(Route(entry.url, entry.output_path, entry.relative_path, entry.kind))

    if config.has_plugin(*TAGGING_PLUGINS):
        for slug in sorted(tags.by_slug()):
            url = tag_url(config.tag_page_dir, slug, config.tag_permalink_style)
            routes.append(Route(url, output_path(url), f"tag:{slug}", "tag"))

    if config.has_plugin("jekyll-feed"):
        routes.append(Route("/feed.xml", "feed.xml", "jekyll-feed", "feed"))
    if config.has_plugin("jekyll-sitemap"):
        routes.append(Route("/sitemap.xml", "sitemap.xml", "jekyll-sitemap", "sitemap"))
        routes.append(Route("/robots.txt", "robots.txt", "jekyll-sitemap", "robots"))

    per_page = config.paginate
    if (
        config.has_plugin("jekyll-paginate")
        and isinstance(per_page, int)
        and not isinstance(per_page, bool)
        and per_page > 0
        and ":num" in config.paginate_path
    ):
        posts = len(entries.posts().published())
        total_pages = math.ceil(posts / per_page)
        for num in range(2, total_pages + 1):
            url = sanitize_url(config.paginate_path.replace(":num", str(num)))
            routes.append(Route(url, output_path(url), "jekyll-paginate", "paginator"))
    return routes


__all__ = ["Site", "SiteError", "compute_routes", "load_site"]
