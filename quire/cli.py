"""Command-line interface for Quire.

This module defines the CLI commands using Click framework.
Every command reads the site from the project root (the directory holding
``_config.yml``), which defaults to the current directory.

Commands:
- check: Run the integrity checks and exit non-zero on failure.
- routes: List every output path the generator would write.
- tags: List tags with their entry counts.
- authors: List authors with their posts and reading time.
- new: Create a new post interactively.
- watch: Re-run the checks whenever content or configuration changes.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
import questionary

from . import __version__
from .checks import Report, Severity, run_checks
from .config import ConfigError
from .logging import configure_logging
from .site import Site, SiteError, load_site

_SEVERITY_COLORS = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "cyan",
}


@click.group()
@click.version_option(version=__version__, prog_name="quire")
@click.option(
    "--root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Site source directory (defaults to the current directory)",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write debug logs to this file",
)
@click.pass_context
def cli(ctx: click.Context, root: Path | None, verbose: bool, log_file: Path | None):
    """Quire: integrity checks for a static blog's configuration and content."""
    configure_logging(verbose=verbose, log_file=log_file)
    ctx.ensure_object(dict)
    ctx.obj["root"] = (root or Path.cwd()).resolve()


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--strict", is_flag=True, help="Fail on warnings too")
@click.option("--select", multiple=True, help="Only report these issue codes")
@click.option("--skip", multiple=True, help="Do not report these issue codes")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
)
@click.pass_context
def check(
    ctx: click.Context,
    drafts: bool,
    strict: bool,
    select: tuple[str, ...],
    skip: tuple[str, ...],
    output_format: str,
):
    """Run the integrity checks."""
    site = _load(ctx, drafts)
    report = run_checks(site, select=select, skip=skip, strict=strict or None)
    if output_format == "json":
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        _print_report(site, report)
    if not report.ok:
        raise SystemExit(1)


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.pass_context
def routes(ctx: click.Context, drafts: bool, as_json: bool):
    """List every output path the generator would write."""
    site = _load(ctx, drafts)
    ordered = sorted(site.routes, key=lambda r: r.url)
    if as_json:
        payload = [
            {"url": r.url, "output": r.output_path, "source": r.source, "kind": r.kind}
            for r in ordered
        ]
        click.echo(json.dumps(payload, indent=2))
        return
    width = max((len(r.url) for r in ordered), default=0)
    for route in ordered:
        click.echo(f"{route.url.ljust(width)}  {route.kind:<9}  {route.source}")
    click.echo(f"{len(ordered)} routes")


@cli.command()
@click.pass_context
def tags(ctx: click.Context):
    """List tags with the number of entries using each."""
    site = _load(ctx, False)
    for tag, count in site.tags.most_used():
        click.echo(f"{count:>4}  {tag}")
    click.echo(f"{len(site.tags)} tags")


@cli.command()
@click.pass_context
def authors(ctx: click.Context):
    """List authors with their post counts and total reading time."""
    site = _load(ctx, False)
    posts = site.entries.posts().published()
    referenced = {a for entry in posts for a in entry.authors}
    for author_id in sorted(set(site.config.authors) | referenced):
        author = site.config.author(author_id)
        written = posts.by_author(author_id)
        minutes = sum(entry.reading_time for entry in written)
        name = author.name if author and author.name else click.style("(undefined)", fg="red")
        click.echo(f"{author_id}: {name} - {len(written)} posts, {minutes} min")


@cli.command()
@click.pass_context
def new(ctx: click.Context):
    """Create a new post interactively."""
    from .scaffold import ScaffoldError, plan_post, write_post

    site = _load(ctx, False)

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()

    author = None
    if site.config.authors:
        choices = sorted(site.config.authors)
        author = questionary.select(
            "Author:",
            choices=choices,
            style=_questionary_style(),
        ).ask()
        if author is None:
            raise click.Abort()

    raw_tags = questionary.text(
        "Tags (space separated):",
        style=_questionary_style(),
    ).ask()
    if raw_tags is None:
        raise click.Abort()

    description = questionary.text(
        "Description:",
        style=_questionary_style(),
    ).ask()
    if description is None:
        raise click.Abort()

    try:
        post = plan_post(
            site,
            title.strip(),
            author=author,
            tags=raw_tags.split(),
            description=description.strip(),
        )
    except ScaffoldError as exc:
        raise click.ClickException(str(exc)) from None

    path = write_post(post)
    click.echo(f"Created {path.relative_to(site.project_root)} -> {post.url}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--strict", is_flag=True, help="Fail on warnings too")
@click.pass_context
def watch(ctx: click.Context, drafts: bool, strict: bool):
    """Re-run the checks whenever content or configuration changes."""
    from .watcher import CheckWatcher

    root: Path = ctx.obj["root"]

    def recheck() -> None:
        try:
            site = load_site(root, include_drafts=drafts)
        except (ConfigError, SiteError) as exc:
            _print_load_error(root, exc)
            return
        _print_report(site, run_checks(site, strict=strict or None))

    CheckWatcher(root, recheck).start()


def _load(ctx: click.Context, drafts: bool) -> Site:
    root: Path = ctx.obj["root"]
    try:
        return load_site(root, include_drafts=drafts)
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from None
    except (ConfigError, SiteError) as exc:
        _print_load_error(root, exc)
        raise SystemExit(1) from None


def _print_load_error(root: Path, exc: ConfigError | SiteError) -> None:
    path = exc.path if isinstance(exc, ConfigError) else exc.source_path
    try:
        shown = path.relative_to(root)
    except ValueError:
        shown = path
    click.echo(click.style("Load failed:", fg="red", bold=True), err=True)
    click.echo(click.style(f"  File: {shown}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)


def _print_report(site: Site, report: Report) -> None:
    for issue in report.issues:
        label = click.style(f"{issue.severity.value:<7}", fg=_SEVERITY_COLORS[issue.severity])
        where = f"{issue.path}: " if issue.path else ""
        click.echo(f"{label} {issue.code:<22} {where}{issue.message}")
    summary = (
        f"{len(site.entries)} entries, {len(site.routes)} routes: "
        f"{len(report.errors)} errors, {len(report.warnings)} warnings, "
        f"{len(report.infos)} notes"
    )
    if report.ok:
        click.echo(click.style(summary, fg="green"))
    else:
        click.echo(click.style(summary, fg="red", bold=True))


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
