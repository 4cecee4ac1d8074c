"""Site configuration loading for Quire.

This module reads the site configuration document (``_config.yml``) and turns it
into a read-only ``SiteConfig``. Values missing from the file fall back to the
defaults the external generator would use.

Key classes:
- SiteConfig: Process-wide record of global settings.
- Author: Profile entry from the ``authors`` mapping.
- DefaultRule: A path-scoped set of front-matter defaults.
- ConfigError: Raised when the configuration file cannot be read.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

import yaml

from .logging import get_logger

logger = get_logger("config")

CONFIG_FILENAMES = ("_config.yml", "_config.yaml")

DEFAULT_EXCLUDE = [
    ".sass-cache",
    ".jekyll-cache",
    "gemfiles",
    "Gemfile",
    "Gemfile.lock",
    "node_modules",
    "vendor/bundle/",
    "vendor/cache/",
    "vendor/gems/",
    "vendor/ruby/",
]

DEFAULT_CONFIG: dict[str, Any] = {
    "title": "",
    "description": "",
    "url": "",
    "baseurl": "",
    "permalink": "date",
    "paginate": None,
    "paginate_path": "/page:num/",
    "markdown": "kramdown",
    "highlighter": "rouge",
    "plugins": [],
    "include": [],
    "exclude": [],
    "tag_page_dir": "tag",
    "tag_page_layout": None,
    "tag_permalink_style": "default",
    "authors": {},
    "defaults": [],
}

AUTHOR_FIELDS = (
    "name",
    "bio",
    "gravatar",
    "email",
    "website",
    "github_username",
    "twitter_username",
    "linkedin_username",
)


class ConfigError(Exception):
    """Error while reading the site configuration.

    Attributes:
        path: Path to the configuration file.
        message: Human-readable error message.
    """

    def __init__(self, path: Path, message: str):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


@dataclass(frozen=True)
class Author:
    """Author profile from the configuration's ``authors`` mapping.

    Attributes:
        id: Key under ``authors``; what entries reference.
        name: Display name. Required to be non-empty for referenced authors.
        extra: Keys not covered by the named fields.
    """

    id: str
    name: str = ""
    bio: str = ""
    gravatar: str = ""
    email: str = ""
    website: str = ""
    github_username: str = ""
    twitter_username: str = ""
    linkedin_username: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, author_id: str, data: Any) -> Author:
        if not isinstance(data, dict):
            return cls(id=author_id)
        known = {key: str(data[key] or "") for key in AUTHOR_FIELDS if key in data}
        extra = {key: value for key, value in data.items() if key not in AUTHOR_FIELDS}
        return cls(id=author_id, extra=extra, **known)


@dataclass(frozen=True)
class DefaultRule:
    """A (scope, values) pair applied under an entry's own front-matter.

    Attributes:
        scope_path: Path prefix or glob relative to the site root ("" matches all).
        scope_type: Optional entry type (``posts``, ``pages``, ``drafts``).
        values: Front-matter values to apply.
        index: Declaration order in the configuration.
    """

    scope_path: str
    values: dict[str, Any]
    scope_type: str | None = None
    index: int = 0

    @classmethod
    def from_mapping(cls, data: Any, index: int = 0) -> DefaultRule | None:
        if not isinstance(data, dict):
            return None
        scope = data.get("scope") or {}
        values = data.get("values") or {}
        if not isinstance(scope, dict) or not isinstance(values, dict):
            return None
        path = str(scope.get("path") or "").strip().strip("/")
        scope_type = scope.get("type")
        return cls(
            scope_path=path,
            values=dict(values),
            scope_type=str(scope_type) if scope_type else None,
            index=index,
        )

    def matches(self, relative_path: str, entry_type: str) -> bool:
        """Check whether this rule applies to an entry.

        Args:
            relative_path: Entry path relative to the site root, POSIX style.
            entry_type: ``posts``, ``pages`` or ``drafts``.

        Returns:
            True if both the path scope and the type scope match.
        """
        if self.scope_type and self.scope_type != entry_type:
            return False
        if not self.scope_path:
            return True
        if "*" in self.scope_path:
            return fnmatch.fnmatch(relative_path, self.scope_path) or fnmatch.fnmatch(
                relative_path, f"{self.scope_path}/*"
            )
        rel = PurePosixPath(relative_path)
        scope = PurePosixPath(self.scope_path)
        return rel == scope or scope in rel.parents

    @property
    def specificity(self) -> tuple[int, int, int]:
        depth = len(PurePosixPath(self.scope_path).parts) if self.scope_path else 0
        return (depth, 1 if self.scope_type else 0, self.index)


@dataclass(frozen=True)
class SiteConfig:
    """Read-only view of the site configuration.

    Attributes:
        raw: Full parsed mapping with defaults applied.
        source: Path the configuration was read from (None when absent).
        authors: Author profiles keyed by author id.
        defaults: Path-scoped default rules.
    """

    raw: dict[str, Any]
    source: Path | None
    authors: dict[str, Author]
    defaults: list[DefaultRule]

    @property
    def title(self) -> str:
        return str(self.raw.get("title") or "")

    @property
    def description(self) -> str:
        return str(self.raw.get("description") or "")

    @property
    def url(self) -> str:
        return str(self.raw.get("url") or "")

    @property
    def baseurl(self) -> str:
        return str(self.raw.get("baseurl") or "")

    @property
    def permalink(self) -> Any:
        return self.raw.get("permalink")

    @property
    def paginate(self) -> Any:
        return self.raw.get("paginate")

    @property
    def paginate_path(self) -> str:
        return str(self.raw.get("paginate_path") or DEFAULT_CONFIG["paginate_path"])

    @property
    def markdown(self) -> str:
        return str(self.raw.get("markdown") or "")

    @property
    def highlighter(self) -> str:
        return str(self.raw.get("highlighter") or "")

    @property
    def plugins(self) -> list[str]:
        plugins = _string_list(self.raw.get("plugins"))
        plugins.extend(_string_list(self.raw.get("gems")))
        return plugins

    @property
    def include(self) -> list[str]:
        return _string_list(self.raw.get("include"))

    @property
    def exclude(self) -> list[str]:
        return DEFAULT_EXCLUDE + _string_list(self.raw.get("exclude"))

    @property
    def tag_page_dir(self) -> str:
        return str(self.raw.get("tag_page_dir") or "tag").strip("/")

    @property
    def tag_page_layout(self) -> str | None:
        value = self.raw.get("tag_page_layout")
        return str(value) if value else None

    @property
    def tag_permalink_style(self) -> Any:
        return self.raw.get("tag_permalink_style")

    @property
    def tool(self) -> dict[str, Any]:
        """Quire's own settings from the optional ``quire:`` mapping."""
        value = self.raw.get("quire")
        return value if isinstance(value, dict) else {}

    def has_plugin(self, *names: str) -> bool:
        enabled = set(self.plugins)
        return any(name in enabled for name in names)

    def author(self, author_id: str) -> Author | None:
        return self.authors.get(author_id)

    def defaults_for(self, relative_path: str, entry_type: str) -> dict[str, Any]:
        """Merge every matching default rule, least specific first.

        Args:
            relative_path: Entry path relative to the site root.
            entry_type: ``posts``, ``pages`` or ``drafts``.

        Returns:
            Merged default values.
        """
        merged: dict[str, Any] = {}
        matching = [rule for rule in self.defaults if rule.matches(relative_path, entry_type)]
        for rule in sorted(matching, key=lambda r: r.specificity):
            merged.update(rule.values)
        return merged


def find_config(project_root: Path) -> Path | None:
    """Locate the configuration file in a project root."""
    for name in CONFIG_FILENAMES:
        candidate = project_root / name
        if candidate.exists():
            return candidate
    return None


def load_config(project_root: Path, config_file: Path | None = None) -> SiteConfig:
    """Load site configuration from ``_config.yml``.

    Args:
        project_root: Root directory of the site.
        config_file: Optional explicit configuration path.

    Returns:
        SiteConfig with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    config_path = config_file or find_config(project_root)
    raw = dict(DEFAULT_CONFIG)
    if config_path is None:
        logger.debug("No configuration file under %s; using defaults", project_root)
        return _build(raw, None)
    if not config_path.exists():
        raise ConfigError(config_path, "Configuration file not found")
    try:
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(config_path, f"Invalid YAML: {exc}") from exc
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ConfigError(config_path, "Top level must be a mapping")
    raw.update(loaded)
    logger.debug("Loaded configuration from %s (%d keys)", config_path, len(loaded))
    return _build(raw, config_path)


def _build(raw: dict[str, Any], source: Path | None) -> SiteConfig:
    authors_raw = raw.get("authors") or {}
    authors: dict[str, Author] = {}
    if isinstance(authors_raw, dict):
        for author_id, data in authors_raw.items():
            authors[str(author_id)] = Author.from_mapping(str(author_id), data)
    defaults: list[DefaultRule] = []
    defaults_raw = raw.get("defaults") or []
    if isinstance(defaults_raw, list):
        for index, item in enumerate(defaults_raw):
            rule = DefaultRule.from_mapping(item, index)
            if rule is not None:
                defaults.append(rule)
    return SiteConfig(raw=raw, source=source, authors=authors, defaults=defaults)


def _string_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [str(item) for item in value if item is not None]
    return []
