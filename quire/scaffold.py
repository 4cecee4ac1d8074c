"""New-post scaffolding for Quire.

Renders the front-matter of a new post from a Jinja2 template and refuses
to create a post whose file or URL is already taken.

Key functions:
- plan_post: Work out the path, URL and content of a new post.
- write_post: Write a planned post to disk.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .logging import get_logger
from .permalinks import PermalinkError, PermalinkResolver, output_path
from .site import Site
from .utils import slugify

logger = get_logger("scaffold")

_TEMPLATES_DIR = Path(__file__).parent / "templates"


class ScaffoldError(Exception):
    """Raised when a new post would overwrite or shadow an existing one."""


@dataclass
class NewPost:
    """A post ready to be written.

    Attributes:
        path: Target file path.
        url: URL the post will get.
        content: Rendered file content.
    """

    path: Path
    url: str
    content: str


def _yaml_inline(value: Any) -> str:
    """Dump a value as a single-line YAML scalar or flow sequence."""
    text = yaml.safe_dump(
        value, default_flow_style=True, allow_unicode=True, width=10**6
    ).strip()
    if text.endswith("\n..."):
        text = text[:-4].rstrip()
    return text


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        autoescape=False,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["yaml"] = _yaml_inline
    return env


def plan_post(
    site: Site,
    title: str,
    author: str | None = None,
    tags: list[str] | None = None,
    description: str = "",
    date: datetime | None = None,
    layout: str | None = None,
) -> NewPost:
    """Plan a new post under ``_posts``.

    Args:
        site: Loaded site (for defaults, routes and existing files).
        title: Post title; the filename slug derives from it.
        author: Author id.
        tags: Tags.
        description: Optional description.
        date: Post date, today when None.
        layout: Layout; falls back to the ``_posts`` defaults, then ``post``.

    Returns:
        NewPost with path, URL and content.

    Raises:
        ScaffoldError: If the title gives an empty slug, the file exists, or
            the URL is already claimed.
    """
    slug = slugify(title)
    if not slug:
        raise ScaffoldError(f"Title '{title}' does not produce a usable slug")
    when = date or datetime.now()
    filename = f"{when.strftime('%Y-%m-%d')}-{slug}.md"
    path = site.project_root / "_posts" / filename
    if path.exists():
        raise ScaffoldError(f"File already exists: _posts/{filename}")

    relative_path = f"_posts/{filename}"
    defaults = site.config.defaults_for(relative_path, "posts")
    resolved_layout = layout or defaults.get("layout") or "post"

    resolver = PermalinkResolver(site.config.permalink)
    try:
        url = resolver.resolve_post(defaults, when, slug, [])
    except PermalinkError as exc:
        raise ScaffoldError(str(exc)) from exc
    target = output_path(url)
    for route in site.routes:
        if route.output_path == target:
            raise ScaffoldError(f"URL {url} is already used by {route.source}")

    content = _environment().get_template("post.md.jinja").render(
        layout=resolved_layout,
        title=title,
        description=description,
        author=author or "",
        tags=list(tags or []),
    )
    return NewPost(path=path, url=url, content=content)


def write_post(post: NewPost) -> Path:
    """Write a planned post, creating ``_posts`` if needed."""
    post.path.parent.mkdir(parents=True, exist_ok=True)
    post.path.write_text(post.content, encoding="utf-8")
    logger.debug("Wrote %s", post.path)
    return post.path
