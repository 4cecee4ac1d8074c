"""Body inspection for Quire.

Parses an entry body with mistune, without keeping the HTML, to collect the
facts the checks and reports need: a word count for reading-time estimates
and the languages named by fenced code blocks.

Liquid ``{% highlight lang %}`` blocks are handled separately because
mistune sees them as plain paragraphs.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

import mistune

WORDS_PER_MINUTE = 200

LIQUID_HIGHLIGHT_RE = re.compile(
    r"{%-?\s*highlight\s+([^\s%]+)[^%]*-?%}(.*?){%-?\s*endhighlight\s*-?%}", re.DOTALL
)
LIQUID_TAG_RE = re.compile(r"{%.*?%}|{{.*?}}", re.DOTALL)
WORD_RE = re.compile(r"[\w'’-]+", re.UNICODE)


@dataclass
class BodyStats:
    """Facts gathered from an entry body.

    Attributes:
        word_count: Prose words, code excluded.
        code_languages: Languages named by code blocks, in order of first use.
        code_blocks: Number of code blocks of any kind.
    """

    word_count: int = 0
    code_languages: list[str] = field(default_factory=list)
    code_blocks: int = 0

    def reading_time(self, words_per_minute: int = WORDS_PER_MINUTE) -> int:
        """Minutes to read, rounded up; zero only for an empty body."""
        if self.word_count <= 0:
            return 0
        return max(1, math.ceil(self.word_count / max(1, words_per_minute)))


class _InspectingRenderer(mistune.HTMLRenderer):
    """Renderer that records prose words and code block languages."""

    def __init__(self):
        super().__init__(escape=False)
        self.words = 0
        self.languages: list[str] = []
        self.code_blocks = 0

    def text(self, text: str) -> str:
        self.words += len(WORD_RE.findall(text))
        return super().text(text)

    def block_code(self, code: str, info: str | None = None) -> str:
        self.code_blocks += 1
        if info:
            lang = info.strip().split(None, 1)[0] if info.strip() else ""
            if lang and lang not in self.languages:
                self.languages.append(lang)
        return ""

    def block_html(self, html: str) -> str:
        return ""


def inspect_body(body: str) -> BodyStats:
    """Collect word count and code languages from a Markdown body.

    Args:
        body: Entry body without front-matter.

    Returns:
        BodyStats for the body.
    """
    languages: list[str] = []
    liquid_blocks = 0

    def _strip_highlight(match: re.Match) -> str:
        nonlocal liquid_blocks
        liquid_blocks += 1
        lang = match.group(1)
        if lang not in languages:
            languages.append(lang)
        return "\n"

    source = LIQUID_HIGHLIGHT_RE.sub(_strip_highlight, body)
    source = LIQUID_TAG_RE.sub("", source)

    renderer = _InspectingRenderer()
    markdown = mistune.create_markdown(
        renderer=renderer, plugins=["strikethrough", "footnotes", "table", "url"]
    )
    markdown(source)

    for lang in renderer.languages:
        if lang not in languages:
            languages.append(lang)
    return BodyStats(
        word_count=renderer.words,
        code_languages=languages,
        code_blocks=renderer.code_blocks + liquid_blocks,
    )
