"""Data-integrity checks for Quire.

Each check inspects a loaded ``Site`` and returns ``Issue`` objects; none of
them raise for authoring defects or mutate the site. The registry runs the
checks in order and collects a ``Report``.

Key classes:
- Issue: One finding, with severity, code, message and source path.
- Report: All findings of a run and whether the site passes.
- CheckRegistry: Ordered set of checks, filterable by issue code.

Checks:
- AuthorCheck: author references resolve to a profile with a name.
- LayoutCheck: every entry names a layout that exists.
- RouteCollisionCheck: no two routes write the same output file.
- PermalinkCheck: entry permalinks can be resolved.
- ConfigCheck: pagination, tag style, permalink style and engines are valid.
- PluginCheck: plugins are known and listed once.
- FrontmatterCheck: front-matter blocks parse to a mapping.
- PostDateCheck: post filenames carry a date prefix.
- TagCheck: no two spellings of one tag.
- CodeLanguageCheck: code block languages have a lexer.
- DescriptionCheck: posts carry a description.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .logging import get_logger
from .permalinks import TAG_PERMALINK_STYLES, is_valid_style
from .protocols import Check
from .utils import as_list

if TYPE_CHECKING:
    from .site import Site

logger = get_logger("checks")

KNOWN_PLUGINS = frozenset(
    {
        "jekyll-paginate",
        "jekyll-paginate-v2",
        "jekyll/tagging",
        "jekyll-tagging",
        "jekyll-time-to-read",
        "jekyll-seo-tag",
        "jekyll-feed",
        "jekyll-sitemap",
        "jekyll-tidy",
        "jekyll-archives",
        "jekyll-redirect-from",
        "jekyll-gist",
        "jekyll-mentions",
        "jekyll-avatar",
        "jemoji",
        "jekyll-relative-links",
        "jekyll-optional-front-matter",
        "jekyll-readme-index",
        "jekyll-default-layout",
        "jekyll-titles-from-headings",
        "jekyll-github-metadata",
        "jekyll-include-cache",
        "jekyll-remote-theme",
        "jekyll-coffeescript",
        "jekyll-commonmark-ghpages",
        "jekyll-sass-converter",
        "jekyll-watch",
    }
)

MARKDOWN_ENGINES = frozenset({"kramdown", "commonmark", "commonmarkghpages", "gfm", "redcarpet"})
HIGHLIGHTERS = frozenset({"rouge", "pygments", "none"})

PAGINATION_PLUGINS = ("jekyll-paginate",)

# Rouge names without a Pygments alias of the same spelling.
LEXER_ALIASES = {
    "plaintext": "text",
    "plain": "text",
    "txt": "text",
    "yml": "yaml",
    "terminal": "console",
    "shell_session": "console",
    "objective_c": "objective-c",
    "sh": "bash",
    "zsh": "bash",
}


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return {"error": 0, "warning": 1, "info": 2}[self.value]


@dataclass(frozen=True)
class Issue:
    """A single finding.

    Attributes:
        severity: error, warning or info.
        code: Stable identifier of the rule, e.g. ``author-unknown``.
        message: Human-readable explanation.
        path: Relative path of the offending file, or ``_config.yml``.
    """

    severity: Severity
    code: str
    message: str
    path: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "path": self.path,
        }


@dataclass
class Report:
    """All issues of a check run.

    Attributes:
        issues: Findings sorted by severity, then path.
        strict: Treat warnings as failures.
    """

    issues: list[Issue] = field(default_factory=list)
    strict: bool = False

    def __post_init__(self):
        self.issues = sorted(
            self.issues, key=lambda i: (i.severity.rank, i.path, i.code, i.message)
        )

    @property
    def errors(self) -> list[Issue]:
        return [i for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Issue]:
        return [i for i in self.issues if i.severity is Severity.WARNING]

    @property
    def infos(self) -> list[Issue]:
        return [i for i in self.issues if i.severity is Severity.INFO]

    @property
    def ok(self) -> bool:
        if self.errors:
            return False
        return not (self.strict and self.warnings)

    def codes(self) -> set[str]:
        return {i.code for i in self.issues}

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "infos": len(self.infos),
            "issues": [i.to_dict() for i in self.issues],
        }


def _config_path(site: Site) -> str:
    source = site.config.source
    if source is None:
        return "_config.yml"
    try:
        return source.relative_to(site.project_root).as_posix()
    except ValueError:
        return str(source)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class AuthorCheck:
    """Author references resolve to a profile with a non-empty name."""

    code = "author"
    description = "Author ids referenced by entries exist in the authors mapping"

    def run(self, site: Site) -> list[Issue]:
        issues: list[Issue] = []
        known = site.config.authors
        for entry in site.entries:
            if not entry.authors:
                if entry.kind == "post":
                    issues.append(
                        Issue(
                            Severity.WARNING,
                            "author-missing",
                            "Post does not name an author",
                            entry.relative_path,
                        )
                    )
                continue
            for author_id in entry.authors:
                author = known.get(author_id)
                if author is None:
                    hint = f"; known authors: {', '.join(sorted(known))}" if known else ""
                    issues.append(
                        Issue(
                            Severity.ERROR,
                            "author-unknown",
                            f"Author '{author_id}' is not defined under 'authors'{hint}",
                            entry.relative_path,
                        )
                    )
                elif not author.name.strip():
                    issues.append(
                        Issue(
                            Severity.ERROR,
                            "author-incomplete",
                            f"Author '{author_id}' has no 'name'",
                            entry.relative_path,
                        )
                    )
        return issues


class LayoutCheck:
    """Every entry names a layout, and it resolves when layouts are local."""

    code = "layout"
    description = "Entries name a non-empty layout that exists in _layouts"

    LAYOUT_SUFFIXES = (".html", ".htm", ".md", ".markdown", ".xml")

    def run(self, site: Site) -> list[Issue]:
        issues: list[Issue] = []
        layout_dir = site.project_root / "_layouts"
        available = self._available(layout_dir)
        for entry in site.entries:
            if entry.frontmatter_error:
                continue
            if not entry.layout:
                issues.append(
                    Issue(
                        Severity.ERROR,
                        "layout-missing",
                        "No layout set in front-matter or defaults",
                        entry.relative_path,
                    )
                )
            elif available is not None and entry.layout not in available:
                issues.append(
                    Issue(
                        Severity.WARNING,
                        "layout-unresolved",
                        f"Layout '{entry.layout}' not found in _layouts/",
                        entry.relative_path,
                    )
                )
        tag_layout = site.config.tag_page_layout
        if (
            tag_layout
            and available is not None
            and tag_layout not in available
            and site.config.has_plugin("jekyll/tagging", "jekyll-tagging")
        ):
            issues.append(
                Issue(
                    Severity.WARNING,
                    "layout-unresolved",
                    f"tag_page_layout '{tag_layout}' not found in _layouts/",
                    _config_path(site),
                )
            )
        return issues

    def _available(self, layout_dir) -> set[str] | None:
        if not layout_dir.is_dir():
            return None
        names: set[str] = set()
        for path in layout_dir.rglob("*"):
            if path.is_file() and path.suffix.lower() in self.LAYOUT_SUFFIXES:
                rel = path.relative_to(layout_dir).with_suffix("")
                names.add(rel.as_posix())
        return names


class RouteCollisionCheck:
    """No two routes resolve to the same output file."""

    code = "route"
    description = "No two entries or plugin pages share an output path"

    def run(self, site: Site) -> list[Issue]:
        claims: dict[str, list] = {}
        for route in site.routes:
            claims.setdefault(route.output_path, []).append(route)
        issues: list[Issue] = []
        for target, routes in sorted(claims.items()):
            if len(routes) < 2:
                continue
            sources = ", ".join(r.source for r in routes)
            path = next((r.source for r in routes if r.kind in ("post", "page", "draft")), "")
            issues.append(
                Issue(
                    Severity.ERROR,
                    "route-collision",
                    f"{len(routes)} sources write {routes[0].url} ({target}): {sources}",
                    path,
                )
            )
        return issues


class PermalinkCheck:
    """Entry permalinks expand with the placeholders the entry has."""

    code = "permalink"
    description = "Entry permalinks resolve"

    def run(self, site: Site) -> list[Issue]:
        return [
            Issue(Severity.ERROR, "permalink-invalid", entry.permalink_error, entry.relative_path)
            for entry in site.entries
            if entry.permalink_error
        ]


class ConfigCheck:
    """Configuration values are within the generator's accepted ranges."""

    code = "config"
    description = "Pagination, permalink and tag settings are valid"

    def run(self, site: Site) -> list[Issue]:
        config = site.config
        where = _config_path(site)
        issues: list[Issue] = []

        paginate = config.paginate
        if paginate is not None and not _is_positive_int(paginate):
            issues.append(
                Issue(
                    Severity.ERROR,
                    "paginate-invalid",
                    f"'paginate' must be a positive integer, got {paginate!r}",
                    where,
                )
            )
        elif paginate is not None and ":num" not in config.paginate_path:
            issues.append(
                Issue(
                    Severity.ERROR,
                    "paginate-invalid",
                    f"'paginate_path' must contain ':num', got {config.paginate_path!r}",
                    where,
                )
            )
        if paginate is None and config.has_plugin(*PAGINATION_PLUGINS):
            issues.append(
                Issue(
                    Severity.WARNING,
                    "paginate-unset",
                    "jekyll-paginate is enabled but 'paginate' is not set",
                    where,
                )
            )

        style = config.tag_permalink_style
        if style not in TAG_PERMALINK_STYLES:
            issues.append(
                Issue(
                    Severity.ERROR,
                    "tag-style-invalid",
                    f"'tag_permalink_style' must be one of {', '.join(TAG_PERMALINK_STYLES)}, got {style!r}",
                    where,
                )
            )

        if not is_valid_style(config.permalink):
            issues.append(
                Issue(
                    Severity.ERROR,
                    "permalink-invalid",
                    f"'permalink' must be a built-in style or start with '/', got {config.permalink!r}",
                    where,
                )
            )

        if config.markdown and config.markdown.lower() not in MARKDOWN_ENGINES:
            issues.append(
                Issue(
                    Severity.WARNING,
                    "engine-unknown",
                    f"Unknown markdown engine '{config.markdown}'",
                    where,
                )
            )
        if config.highlighter and config.highlighter.lower() not in HIGHLIGHTERS:
            issues.append(
                Issue(
                    Severity.WARNING,
                    "engine-unknown",
                    f"Unknown highlighter '{config.highlighter}'",
                    where,
                )
            )
        return issues


class PluginCheck:
    """Plugins are recognized and listed once."""

    code = "plugin"
    description = "Plugin identifiers are known and unique"

    def run(self, site: Site) -> list[Issue]:
        config = site.config
        where = _config_path(site)
        known = KNOWN_PLUGINS | set(as_list(config.tool.get("known_plugins")))
        issues: list[Issue] = []
        seen: set[str] = set()
        for plugin in config.plugins:
            if plugin in seen:
                issues.append(
                    Issue(Severity.WARNING, "plugin-duplicate", f"Plugin '{plugin}' listed twice", where)
                )
                continue
            seen.add(plugin)
            if plugin not in known:
                issues.append(
                    Issue(Severity.WARNING, "plugin-unknown", f"Unknown plugin '{plugin}'", where)
                )
        return issues


class FrontmatterCheck:
    """Front-matter blocks parse to a mapping."""

    code = "frontmatter"
    description = "Front-matter is valid YAML"

    def run(self, site: Site) -> list[Issue]:
        return [
            Issue(Severity.ERROR, "frontmatter-invalid", entry.frontmatter_error, entry.relative_path)
            for entry in site.entries
            if entry.frontmatter_error
        ]


class PostDateCheck:
    """Post filenames carry the YYYY-MM-DD- prefix the generator requires."""

    code = "post"
    description = "Post filenames are dated"

    def run(self, site: Site) -> list[Issue]:
        return [
            Issue(
                Severity.WARNING,
                "post-undated",
                "Post filename lacks a YYYY-MM-DD- prefix; the generator will skip it",
                entry.relative_path,
            )
            for entry in site.entries
            if entry.kind == "post" and entry.url is None and not entry.permalink_error
        ]


class TagCheck:
    """Flags tags spelled differently that land on the same tag page."""

    code = "tag"
    description = "Tags are spelled consistently"

    def run(self, site: Site) -> list[Issue]:
        issues: list[Issue] = []
        for slug, spellings in sorted(site.tags.by_slug().items()):
            if len(spellings) < 2:
                continue
            usage = ", ".join(
                f"'{tag}' ({len(site.tags[tag])})" for tag in sorted(spellings)
            )
            first = site.tags[sorted(spellings)[0]][0]
            issues.append(
                Issue(
                    Severity.WARNING,
                    "tag-inconsistent",
                    f"Tag '{slug}' is spelled several ways: {usage}",
                    first.relative_path,
                )
            )
        return issues


class CodeLanguageCheck:
    """Code block languages resolve to a syntax lexer."""

    code = "code"
    description = "Code block languages are recognized"

    def __init__(self):
        self._cache: dict[str, bool] = {}

    def run(self, site: Site) -> list[Issue]:
        issues: list[Issue] = []
        for entry in site.entries:
            for lang in entry.code_languages:
                if not self._known(lang):
                    issues.append(
                        Issue(
                            Severity.WARNING,
                            "code-language-unknown",
                            f"No lexer for code language '{lang}'",
                            entry.relative_path,
                        )
                    )
        return issues

    def _known(self, lang: str) -> bool:
        key = lang.lower()
        if key not in self._cache:
            try:
                get_lexer_by_name(LEXER_ALIASES.get(key, key))
                self._cache[key] = True
            except ClassNotFound:
                self._cache[key] = False
        return self._cache[key]


class DescriptionCheck:
    """Posts carry a description for feed and search consumers."""

    code = "description"
    description = "Posts have a description"

    def run(self, site: Site) -> list[Issue]:
        return [
            Issue(
                Severity.INFO,
                "description-missing",
                "Post has no description",
                entry.relative_path,
            )
            for entry in site.entries
            if entry.kind == "post" and entry.published and not entry.description.strip()
        ]


class CheckRegistry:
    """Ordered collection of checks.

    Attributes:
        checks: Registered check instances.
    """

    def __init__(self, checks: Iterable[Check] | None = None):
        if checks is None:
            self.checks = [
                FrontmatterCheck(),
                ConfigCheck(),
                PluginCheck(),
                AuthorCheck(),
                LayoutCheck(),
                PostDateCheck(),
                PermalinkCheck(),
                RouteCollisionCheck(),
                TagCheck(),
                CodeLanguageCheck(),
                DescriptionCheck(),
            ]
        else:
            self.checks = list(checks)

    def register(self, check: Check) -> None:
        self.checks.append(check)

    def run(
        self,
        site: Site,
        select: Iterable[str] | None = None,
        skip: Iterable[str] | None = None,
        strict: bool = False,
    ) -> Report:
        """Run every check and collect a report.

        Args:
            site: Loaded site.
            select: Only keep issues whose code (or code prefix) is listed.
            skip: Drop issues whose code (or code prefix) is listed.
            strict: Treat warnings as failures.

        Returns:
            Report of the kept issues.
        """
        selected = list(select or [])
        skipped = list(skip or [])
        issues: list[Issue] = []
        for check in self.checks:
            found = check.run(site)
            logger.debug("%s: %d issue(s)", type(check).__name__, len(found))
            issues.extend(found)
        if selected:
            issues = [i for i in issues if _code_matches(i.code, selected)]
        if skipped:
            issues = [i for i in issues if not _code_matches(i.code, skipped)]
        return Report(issues=issues, strict=strict)


def _code_matches(code: str, patterns: list[str]) -> bool:
    return any(code == p or code.startswith(p + "-") for p in patterns)


def run_checks(
    site: Site,
    select: Iterable[str] | None = None,
    skip: Iterable[str] | None = None,
    strict: bool | None = None,
) -> Report:
    """Run the default checks, honoring the ``quire:`` configuration block.

    Args:
        site: Loaded site.
        select: Issue codes or prefixes to keep.
        skip: Issue codes or prefixes to drop, added to the configured ones.
        strict: Override the configured ``strict`` setting.

    Returns:
        Report of the run.
    """
    tool = site.config.tool
    configured_skip = as_list(tool.get("skip"))
    effective_strict = bool(tool.get("strict", False)) if strict is None else strict
    return CheckRegistry().run(
        site,
        select=select,
        skip=configured_skip + list(skip or []),
        strict=effective_strict,
    )
