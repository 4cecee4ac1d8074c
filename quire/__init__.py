"""Quire: integrity checks for a static blog's configuration and content.

A Jekyll-style blog is a site configuration (``_config.yml``) plus a corpus of
Markdown documents with YAML front-matter, turned into HTML by an external
generator. Quire reads the same inputs, applies the same defaults-merging and
permalink rules, and reports authoring defects before they reach a build:
dangling author references, missing layouts, output path collisions, invalid
configuration values and inconsistent tags.

The main entry point is the CLI module; ``load_site`` and ``run_checks`` are
the programmatic equivalents of ``quire check``.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
