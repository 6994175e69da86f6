"""Library selection against the external documentation catalog."""

from __future__ import annotations

from typing import Dict, List, Sequence

from ..analysis.complexity import token_budget_for
from ..analysis.rules import RetrieverRules, SelectorRules
from ..logging import get_logger, preview
from ..models import LibraryCandidate, PromptComplexity
from .client import DocumentationService
from .scorer import extract_keywords

logger = get_logger("docs.selector")


class LibrarySelector:
    """Resolves detected frameworks to catalog libraries and ranks them."""

    def __init__(
        self,
        service: DocumentationService,
        rules: SelectorRules | None = None,
        *,
        stop_words: Sequence[str] | None = None,
    ) -> None:
        self.service = service
        self.rules = rules or SelectorRules()
        if stop_words is None:
            stop_words = RetrieverRules().stop_words
        self.stop_words = tuple(stop_words)

    def select(
        self,
        prompt: str,
        frameworks: Sequence[str],
        complexity: PromptComplexity,
    ) -> List[str]:
        """Return up to 1/2/3 library ids for simple/medium/complex prompts."""
        try:
            ranked = self.rank(prompt, frameworks)
        except Exception as exc:
            logger.warning("Library selection failed for '%s': %s", preview(prompt), exc)
            return []
        limit = self.rules.limits.get(
            complexity.level, token_budget_for(complexity.level).libraries
        )
        selected = [candidate.id for candidate in ranked[:limit]]
        logger.debug(
            "Selected libraries %s from %s",
            selected,
            [(candidate.name, candidate.score) for candidate in ranked],
        )
        return selected

    def rank(self, prompt: str, frameworks: Sequence[str]) -> List[LibraryCandidate]:
        """Score resolved candidates; only positive scores survive, best first."""
        candidates = self._resolve_all(frameworks)
        if not candidates:
            candidates = self._resolve_common()
        prompt_lower = (prompt or "").lower()
        keywords = extract_keywords(prompt, self.stop_words, limit=self.rules.max_keywords)
        for candidate in candidates:
            candidate.score = self._score(candidate, frameworks, keywords, prompt_lower)
        scored = [candidate for candidate in candidates if candidate.score > 0]
        # Stable sort: ties keep framework order.
        return sorted(scored, key=lambda candidate: -candidate.score)

    def _resolve_all(self, frameworks: Sequence[str]) -> List[LibraryCandidate]:
        resolved: Dict[str, LibraryCandidate] = {}
        for framework in frameworks:
            candidate = self._resolve_first(framework)
            if candidate is not None and candidate.id not in resolved:
                resolved[candidate.id] = candidate
        return list(resolved.values())

    def _resolve_common(self) -> List[LibraryCandidate]:
        for framework in self.rules.common_frameworks:
            candidate = self._resolve_first(framework)
            if candidate is not None:
                return [candidate]
        return []

    def _resolve_first(self, framework: str) -> LibraryCandidate | None:
        try:
            results = self.service.resolve_library_id(framework)
        except Exception as exc:
            logger.warning("Failed to resolve library for %s: %s", framework, exc)
            return None
        if not results:
            return None
        best = results[0]
        return LibraryCandidate(
            id=best.id,
            name=best.name,
            topics=list(self.rules.topics.get(framework.lower(), ())),
            description=best.description,
            trust_score=best.trust_score,
            code_snippets=best.code_snippets,
        )

    def _score(
        self,
        candidate: LibraryCandidate,
        frameworks: Sequence[str],
        keywords: Sequence[str],
        prompt_lower: str,
    ) -> int:
        rules = self.rules
        name = candidate.name.lower()
        compact = name.replace(".", "").replace(" ", "").replace("-", "")
        score = 0
        if any(fw.lower() in name or fw.lower() in compact for fw in frameworks):
            score += rules.framework_match_bonus
        for keyword in keywords:
            if any(keyword in topic for topic in candidate.topics):
                score += rules.topic_bonus
                if keyword in prompt_lower:
                    score += rules.literal_bonus
        for trigger, fragments in rules.intents:
            if trigger in prompt_lower and any(fragment in name for fragment in fragments):
                score += rules.intent_bonus
        return score


__all__ = ["LibrarySelector"]
