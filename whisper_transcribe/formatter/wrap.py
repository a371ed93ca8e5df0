"""
whisper_transcribe.formatter.wrap - Width-bounded text wrapping.

Breaks text at whitespace so no output line exceeds the width. A word
longer than its line budget is hard-split into budget-sized chunks; any
other word is never broken. Three flavors share one line-filling routine:
plain paragraphs, a first-line-only prefix (bold timestamp tags) and
blockquotes (every line prefixed).
"""

from __future__ import annotations

DEFAULT_WIDTH = 80
BLOCKQUOTE_MARKER = "> "


def _hard_split(word: str, first_budget: int, budget: int) -> list[str]:
    chunks = [word[:first_budget]]
    rest = word[first_budget:]
    while rest:
        chunks.append(rest[:budget])
        rest = rest[budget:]
    return chunks


def _fill(words: list[str], first_budget: int, budget: int, width: int) -> list[str]:
    """Greedy line filling.

    The first line may have a smaller budget than the rest. When a word does
    not fit the first line but does fit a full line, the first line is left
    empty so the word is not broken.
    """
    lines: list[str] = []
    current = ""
    line_budget = first_budget

    for word in words:
        if current and len(current) + 1 + len(word) <= line_budget:
            current = f"{current} {word}"
            continue

        if current:
            lines.append(current)
            current = ""
            line_budget = budget

        if len(word) <= line_budget:
            current = word
        elif len(word) <= width and not lines and line_budget < budget:
            lines.append("")
            line_budget = budget
            current = word
        else:
            chunks = _hard_split(word, line_budget, budget)
            lines.extend(chunks[:-1])
            current = chunks[-1]
            line_budget = budget

    if current or not lines:
        lines.append(current)
    return lines


def wrap(text: str, width: int = DEFAULT_WIDTH) -> list[str]:
    """Wrap a paragraph into lines of at most width characters.

    Text that already fits is returned unchanged, spacing included.
    """
    if width < 1:
        raise ValueError("width must be at least 1")
    if len(text) <= width:
        return [text]
    return _fill(text.split(), width, width, width)


def wrap_with_prefix(prefix: str, text: str, width: int = DEFAULT_WIDTH) -> list[str]:
    """Wrap text with a non-wrapping prefix on the first line only.

    The prefix's width is taken from the first line's budget. A prefix
    that leaves no room stands alone on the first line. The prefix itself
    is never split, so a prefix wider than width yields a first line
    longer than width.
    """
    if width < 1:
        raise ValueError("width must be at least 1")
    if len(prefix) + len(text) <= width:
        return [prefix + text]

    first_budget = width - len(prefix)
    words = text.split()
    if first_budget < 1:
        return [prefix.rstrip()] + (_fill(words, width, width, width) if words else [])

    lines = _fill(words, first_budget, width, width)
    if lines[0]:
        lines[0] = prefix + lines[0]
    else:
        lines[0] = prefix.rstrip()
    return lines


def wrap_blockquote(
    text: str,
    width: int = DEFAULT_WIDTH,
    marker: str = BLOCKQUOTE_MARKER,
) -> list[str]:
    """Wrap text as a blockquote, prefixing every line with marker."""
    budget = max(width - len(marker), 1)
    if len(text) <= budget:
        return [marker + text]
    return [marker + line for line in _fill(text.split(), budget, budget, budget)]
