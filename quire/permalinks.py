"""Permalink resolution for Quire.

Maps an entry's metadata to the URL the external generator would give it and
to the file that URL is written to. Only paths are computed here; nothing is
rendered or written.

Key classes:
- PermalinkResolver: Resolves entry URLs from the site pattern or front-matter.
- Route: A claimed output path and what claims it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any
from urllib.parse import quote

from .utils import slugify

BUILTIN_STYLES = {
    "date": "/:categories/:year/:month/:day/:title:output_ext",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title:output_ext",
    "weekdate": "/:categories/:year/W:week/:short_day/:title:output_ext",
    "none": "/:categories/:title:output_ext",
}

TAG_PERMALINK_STYLES = ("default", "pretty")

OUTPUT_EXT = ".html"

PLACEHOLDER_RE = re.compile(r":([a-z_]+)")


class PermalinkError(ValueError):
    """Raised when a pattern names a placeholder the entry can't fill."""


@dataclass(frozen=True)
class Route:
    """An output path claimed by an entry or a plugin.

    Attributes:
        url: Site-relative URL.
        output_path: File path relative to the destination directory.
        source: Relative path of the claiming entry, or a plugin name.
        kind: ``post``, ``page``, ``draft``, ``tag``, ``feed``, ``sitemap``,
            ``robots`` or ``paginator``.
    """

    url: str
    output_path: str
    source: str
    kind: str


def style_template(permalink: Any) -> str:
    """Expand a permalink setting to a pattern.

    Args:
        permalink: Site ``permalink`` value (style name or pattern).

    Returns:
        The pattern string.
    """
    value = str(permalink or "date")
    return BUILTIN_STYLES.get(value, value)


def is_valid_style(permalink: Any) -> bool:
    """A permalink setting is a known style name or a pattern starting with ``/``."""
    if not isinstance(permalink, str) or not permalink:
        return False
    return permalink in BUILTIN_STYLES or permalink.startswith("/")


def page_template(permalink: Any, is_index: bool) -> str:
    """Default pattern for a page under the given site permalink style.

    Pretty-style sites give pages a trailing slash; date-like styles keep the
    extension; custom patterns inherit whichever suffix they end with.
    """
    if is_index:
        return "/:path/"
    template = "/:path/:basename"
    style = str(permalink or "date")
    if style == "pretty":
        return template + "/"
    if style in ("date", "ordinal", "none", "weekdate"):
        return template + ":output_ext"
    if style.endswith("/"):
        template += "/"
    if style.endswith(":output_ext"):
        template += ":output_ext"
    return template


def post_placeholders(
    date: datetime | None,
    title: str,
    slug: str,
    name: str,
    categories: list[str],
) -> dict[str, str]:
    """Placeholder values for a post.

    Args:
        date: Post date (date placeholders are left out when None).
        title: Slug source for ``:title`` (case preserved).
        slug: Slug source for ``:slug``.
        name: Full filename stem (date prefix included) for ``:name``.
        categories: Post categories.

    Returns:
        Mapping of placeholder name to value.
    """
    values = {
        "title": slugify(title, mode="pretty", cased=True),
        "slug": slugify(slug),
        "name": slugify(name),
        "categories": "/".join(_escape(c.lower()) for c in categories),
        "output_ext": OUTPUT_EXT,
    }
    if date is not None:
        values.update(
            {
                "year": date.strftime("%Y"),
                "month": date.strftime("%m"),
                "day": date.strftime("%d"),
                "hour": date.strftime("%H"),
                "minute": date.strftime("%M"),
                "second": date.strftime("%S"),
                "i_month": str(date.month),
                "i_day": str(date.day),
                "short_year": date.strftime("%y"),
                "y_day": date.strftime("%j"),
                "short_month": date.strftime("%b"),
                "long_month": date.strftime("%B"),
                "short_day": date.strftime("%a"),
                "long_day": date.strftime("%A"),
                "week": date.strftime("%V"),
                "w_year": date.strftime("%G"),
                "w_day": date.strftime("%u"),
            }
        )
    return values


def page_placeholders(relative_path: str) -> dict[str, str]:
    """Placeholder values for a page: ``:path``, ``:basename``, ``:output_ext``."""
    rel = PurePosixPath(relative_path)
    parent = rel.parent.as_posix()
    return {
        "path": "" if parent == "." else parent,
        "basename": rel.stem,
        "output_ext": OUTPUT_EXT,
    }


def expand(template: str, placeholders: dict[str, str]) -> str:
    """Fill a permalink pattern and sanitize the resulting URL.

    Args:
        template: Permalink pattern.
        placeholders: Values by placeholder name.

    Returns:
        Site-relative URL starting with ``/``.

    Raises:
        PermalinkError: If the pattern uses a placeholder with no value.
    """
    missing: list[str] = []

    def repl(match: re.Match) -> str:
        key = match.group(1)
        if key in placeholders:
            return placeholders[key]
        # ":title_foo" style suffixes: take the longest known prefix
        for known in sorted(placeholders, key=len, reverse=True):
            if key.startswith(known):
                return placeholders[known] + key[len(known) :]
        missing.append(key)
        return match.group(0)

    url = PLACEHOLDER_RE.sub(repl, template)
    if missing:
        raise PermalinkError(
            f"Permalink '{template}' uses unknown placeholder(s): "
            + ", ".join(f":{key}" for key in missing)
        )
    return sanitize_url(url)


def sanitize_url(url: str) -> str:
    """Collapse empty and dot segments and force a leading slash."""
    trailing = url.endswith("/")
    segments = [s for s in url.split("/") if s and s not in (".", "..")]
    if not segments:
        return "/"
    cleaned = "/" + "/".join(segments)
    return cleaned + "/" if trailing else cleaned


def output_path(url: str) -> str:
    """File written for a URL, relative to the destination directory.

    Examples:
        >>> output_path("/automation/continuous-delivery-in-ios/")
        'automation/continuous-delivery-in-ios/index.html'

        >>> output_path("/about")
        'about.html'
    """
    path = url.lstrip("/")
    if not path or url.endswith("/"):
        return f"{path}index.html"
    if PurePosixPath(path).suffix:
        return path
    return f"{path}{OUTPUT_EXT}"


def tag_url(tag_dir: str, tag_slug: str, style: Any) -> str:
    """URL of a tag page for the tagging plugin."""
    base = f"/{tag_dir.strip('/')}/{_escape(tag_slug)}" if tag_dir.strip("/") else f"/{_escape(tag_slug)}"
    if style == "pretty":
        return base + "/"
    return base + OUTPUT_EXT


def _escape(segment: str) -> str:
    return quote(segment, safe="!$&'()*+,;=:@-._~")


class PermalinkResolver:
    """Resolves entry URLs.

    An entry's own ``permalink`` (front-matter or merged defaults) wins over the
    site-wide pattern. Posts use the site pattern; pages use their path.

    Attributes:
        permalink: Site ``permalink`` setting.
    """

    def __init__(self, permalink: Any = "date"):
        self.permalink = permalink

    def resolve_post(
        self,
        data: dict[str, Any],
        date: datetime | None,
        name_slug: str,
        categories: list[str],
        basename: str | None = None,
    ) -> str:
        """Resolve a post URL.

        Args:
            data: Merged front-matter.
            date: Post date.
            name_slug: Filename without its date prefix.
            categories: Post categories.
            basename: Full filename stem, date included, for ``:name``.

        Returns:
            Site-relative URL.

        Raises:
            PermalinkError: If the pattern can't be filled.
        """
        slug_source = str(data.get("slug") or name_slug)
        placeholders = post_placeholders(
            date,
            title=slug_source,
            slug=slug_source,
            name=basename or name_slug,
            categories=categories,
        )
        template = self._entry_template(data) or style_template(self.permalink)
        return expand(template, placeholders)

    def resolve_page(self, data: dict[str, Any], relative_path: str) -> str:
        """Resolve a page URL from its path relative to the site root."""
        placeholders = page_placeholders(relative_path)
        template = self._entry_template(data)
        if template is None:
            is_index = PurePosixPath(relative_path).stem == "index"
            template = page_template(self.permalink, is_index)
        return expand(template, placeholders)

    def _entry_template(self, data: dict[str, Any]) -> str | None:
        value = data.get("permalink")
        if not value or not isinstance(value, str):
            return None
        return BUILTIN_STYLES.get(value, value)
