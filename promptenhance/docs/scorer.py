"""Relevance scoring and budget-constrained trimming of documentation text."""

from __future__ import annotations

import re
from typing import List, Sequence

from ..models import ScoredSection
from ..analysis.rules import RetrieverRules
from ..tokens import CHARS_PER_TOKEN, char_budget, estimate_tokens, truncate_to_tokens

_SEPARATOR = "\n\n"


def extract_keywords(
    prompt: str,
    stop_words: Sequence[str] | None = None,
    limit: int | None = None,
) -> List[str]:
    """Lowercase, punctuation-free, de-duplicated prompt words longer than two chars."""
    stops = set(stop_words if stop_words is not None else RetrieverRules().stop_words)
    words = re.sub(r"[^\w\s]", " ", (prompt or "").lower()).split()
    keywords: List[str] = []
    for word in words:
        if len(word) <= 2 or word in stops or word in keywords:
            continue
        keywords.append(word)
    if limit is not None:
        return keywords[:limit]
    return keywords


class RelevanceScorer:
    """Ranks sections of a document against a prompt and fills a token budget."""

    def __init__(self, rules: RetrieverRules | None = None) -> None:
        self.rules = rules or RetrieverRules()
        self._splitter = re.compile(
            "(?=" + "|".join(self.rules.section_markers) + ")"
        )

    def split_sections(self, content: str) -> List[str]:
        parts = self._splitter.split(content)
        return [part.strip() for part in parts if part.strip()]

    def score_section(
        self, section: str, keywords: Sequence[str], library: str | None = None
    ) -> int:
        rules = self.rules
        lowered = section.lower()
        score = rules.keyword_weight * sum(lowered.count(keyword) for keyword in keywords)
        if any(marker in lowered for marker in rules.example_markers):
            score += rules.example_bonus
        if any(marker in lowered for marker in rules.api_markers):
            score += rules.api_bonus
        if any(marker in lowered for marker in rules.setup_markers):
            score += rules.setup_bonus
        if any(marker in lowered for marker in rules.trouble_markers):
            score += rules.trouble_bonus
        if library:
            library_lower = library.lower()
            for fragment, marker in rules.library_boosts:
                if fragment in library_lower and marker in lowered:
                    score += rules.library_bonus
        return score

    def rank(
        self, content: str, prompt: str, library: str | None = None
    ) -> List[ScoredSection]:
        keywords = extract_keywords(prompt, self.rules.stop_words)
        sections = [
            ScoredSection(
                content=section,
                score=self.score_section(section, keywords, library),
                token_count=estimate_tokens(section),
                position=index,
            )
            for index, section in enumerate(self.split_sections(content))
        ]
        # Stable: equal scores keep document order.
        return sorted(sections, key=lambda section: -section.score)

    def score_and_trim(
        self,
        content: str,
        max_tokens: int,
        prompt: str,
        library: str | None = None,
    ) -> str:
        """Return the most relevant part of ``content`` within ``max_tokens``.

        Content already within budget is returned unchanged. Otherwise whole
        sections are taken greedily by descending score; when the next section
        does not fit and at least ``min_partial_tokens`` remain, a clipped prefix
        of it is appended and selection stops.
        """
        if max_tokens <= 0 or not content:
            return ""
        if estimate_tokens(content) <= max_tokens:
            return content

        limit = char_budget(max_tokens)
        selected: List[str] = []
        used = 0
        for section in self.rank(content, prompt, library):
            joiner = len(_SEPARATOR) if selected else 0
            needed = joiner + len(section.content)
            if used + needed <= limit:
                selected.append(section.content)
                used += needed
                continue
            remaining_chars = limit - used - joiner
            remaining_tokens = remaining_chars // CHARS_PER_TOKEN
            if remaining_tokens >= self.rules.min_partial_tokens:
                partial = truncate_to_tokens(section.content, remaining_tokens)
                if partial:
                    selected.append(partial)
            break
        return _SEPARATOR.join(selected)


__all__ = ["RelevanceScorer", "extract_keywords"]
