"""Token estimation and budget-aware truncation helpers."""

from __future__ import annotations

import math
import re

CHARS_PER_TOKEN = 4
ELLIPSIS = "..."
SENTENCE_RATIO = 0.8

_SENTENCE_END = re.compile(r"[.!?](?=\s|$)")


def estimate_tokens(text: str) -> int:
    """Approximate token count as one token per four characters, rounded up."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def char_budget(max_tokens: int) -> int:
    """Largest character count whose estimate stays within ``max_tokens``."""
    return max(0, max_tokens) * CHARS_PER_TOKEN


def truncate_to_tokens(text: str, max_tokens: int, *, suffix: str = ELLIPSIS) -> str:
    """Clip ``text`` so its estimated token count never exceeds ``max_tokens``.

    The cut prefers the last sentence boundary when it keeps at least 80% of the
    available space, then the last word boundary, then a hard cut. ``suffix`` is
    appended inside the budget whenever text was removed.
    """
    if max_tokens <= 0 or not text:
        return ""
    limit = char_budget(max_tokens)
    if len(text) <= limit:
        return text
    space = limit - len(suffix)
    if space <= 0:
        return text[:limit]
    head = text[:space]
    cut = _cut_at_boundary(head, space)
    return cut + suffix


def _cut_at_boundary(head: str, space: int) -> str:
    sentence_end = -1
    for match in _SENTENCE_END.finditer(head):
        sentence_end = match.end()
    if sentence_end >= SENTENCE_RATIO * space:
        return head[:sentence_end]
    word_end = max(head.rfind(" "), head.rfind("\n"))
    if word_end > 0:
        trimmed = head[:word_end].rstrip()
        if trimmed:
            return trimmed
    return head


__all__ = [
    "CHARS_PER_TOKEN",
    "ELLIPSIS",
    "char_budget",
    "estimate_tokens",
    "truncate_to_tokens",
]
