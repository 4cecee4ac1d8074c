from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import datetime

from .content import Entry
from .utils import tag_slug


class EntryCollection(Sequence[Entry]):
    """Lightweight helper for working with lists of Entries in reports and checks."""

    def __init__(self, entries: Iterable[Entry]):
        self._entries = list(entries)

    def __iter__(self) -> Iterator[Entry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, item):
        return self._entries[item]

    def posts(self) -> EntryCollection:
        return EntryCollection(e for e in self._entries if e.kind == "post")

    def pages(self) -> EntryCollection:
        return EntryCollection(e for e in self._entries if e.kind == "page")

    def drafts(self) -> EntryCollection:
        return EntryCollection(e for e in self._entries if e.kind == "draft")

    def published(self) -> EntryCollection:
        return EntryCollection(e for e in self._entries if e.published)

    def with_tag(self, tag: str) -> EntryCollection:
        return EntryCollection(e for e in self._entries if tag in e.tags)

    def by_author(self, author_id: str) -> EntryCollection:
        return EntryCollection(e for e in self._entries if author_id in e.authors)

    def sorted(self, reverse: bool = True) -> EntryCollection:
        """Sort entries by date, then by relative path.

        Undated entries sort as the oldest.

        Args:
            reverse: If True (default), newest first.

        Returns:
            A new EntryCollection with sorted entries.
        """

        def sort_key(e: Entry):
            return (e.date or datetime.min, e.relative_path)

        return EntryCollection(sorted(self._entries, key=sort_key, reverse=reverse))

    def latest(self, count: int = 5) -> EntryCollection:
        return EntryCollection(self.posts().sorted()[:count])

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"EntryCollection({len(self._entries)} entries)"


class TagCollection(Mapping[str, EntryCollection]):
    """Mapping of tag name to EntryCollection with convenience helpers."""

    def __init__(self, mapping: dict[str, Iterable[Entry]]):
        self._mapping = {k: EntryCollection(v) for k, v in mapping.items()}

    @classmethod
    def from_entries(cls, entries: Iterable[Entry]) -> TagCollection:
        tags: dict[str, list[Entry]] = {}
        for entry in entries:
            for tag in entry.tags:
                tags.setdefault(tag, []).append(entry)
        return cls(tags)

    def __getitem__(self, key: str) -> EntryCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def by_slug(self) -> dict[str, list[str]]:
        """Group tag spellings by the slug their tag page would use."""
        groups: dict[str, list[str]] = {}
        for tag in self._mapping:
            groups.setdefault(tag_slug(tag), []).append(tag)
        return groups

    def most_used(self) -> list[tuple[str, int]]:
        return sorted(
            ((tag, len(entries)) for tag, entries in self._mapping.items()),
            key=lambda item: (-item[1], item[0].lower()),
        )

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagCollection({len(self._mapping)} tags)"
