"""Framework detection from prompt text and project metadata."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Dict, Iterable, List, Optional

from ..logging import get_logger, preview
from ..models import FrameworkDetectionResult, ProjectContext
from .rules import DetectorRules

logger = get_logger("analysis.frameworks")


@dataclass
class FrameworkMatch:
    """Single framework guess and where it came from."""

    name: str
    confidence: float
    source: str


class FrameworkDetector:
    """Infers the frameworks a prompt is about. Never raises."""

    def __init__(self, rules: DetectorRules | None = None) -> None:
        self.rules = rules or DetectorRules()
        self._known = set(self.rules.known_frameworks)
        self._vocabulary = self._build_vocabulary()
        self._captures = [
            (re.compile(pattern, re.IGNORECASE), kind, weight)
            for pattern, kind, weight in self.rules.capture_patterns
        ]

    def detect(
        self,
        prompt: str,
        project_context: ProjectContext | None = None,
        explicit_framework: str | None = None,
    ) -> FrameworkDetectionResult:
        if explicit_framework and explicit_framework.strip():
            name = self.normalise(explicit_framework)
            return FrameworkDetectionResult(
                detected_frameworks=[name],
                confidence=1.0,
                suggestions=self._suggest([name]),
                method="explicit",
            )
        try:
            return self._detect(prompt or "", project_context)
        except Exception as exc:
            logger.warning("Framework detection failed for '%s': %s", preview(prompt or ""), exc)
            return self.fallback()

    def fallback(self) -> FrameworkDetectionResult:
        return FrameworkDetectionResult(
            detected_frameworks=[self.rules.fallback_framework],
            confidence=self.rules.fallback_confidence,
            suggestions=list(self.rules.fallback_suggestions),
            method="fallback",
        )

    def normalise(self, name: str) -> str:
        lowered = name.strip().lower()
        return self.rules.aliases.get(lowered, lowered)

    def _detect(
        self, prompt: str, project_context: ProjectContext | None
    ) -> FrameworkDetectionResult:
        lowered = prompt.lower()
        matches: List[FrameworkMatch] = []
        matches.extend(self._direct_mentions(lowered))
        matches.extend(self._task_inference(lowered))
        matches.extend(self._stack_inference(lowered))
        matches.extend(self._context_inference(lowered))
        matches.extend(self._captured_names(prompt))
        if project_context is not None:
            matches.extend(self._project_matches(project_context))

        merged = self._merge(matches)
        if not merged:
            logger.debug("No frameworks detected for '%s'", preview(prompt))
            return self.fallback()

        names = [match.name for match in merged]
        confidence = sum(match.confidence for match in merged) / len(merged)
        method = "project" if any(m.source == "project" for m in matches) else "pattern"
        logger.debug("Detected frameworks %s via %s", names, method)
        return FrameworkDetectionResult(
            detected_frameworks=names,
            confidence=round(confidence, 4),
            suggestions=self._suggest(names),
            method=method,
        )

    def _direct_mentions(self, lowered: str) -> Iterable[FrameworkMatch]:
        for term, canonical in self._vocabulary.items():
            if _contains_term(lowered, term):
                yield FrameworkMatch(canonical, self.rules.direct_confidence, "direct")

    def _task_inference(self, lowered: str) -> Iterable[FrameworkMatch]:
        for triggers, frameworks in self.rules.task_inference:
            if any(_contains_term(lowered, trigger) for trigger in triggers):
                for name, confidence in frameworks:
                    yield FrameworkMatch(name, confidence, "task")

    def _stack_inference(self, lowered: str) -> Iterable[FrameworkMatch]:
        for stack, frameworks in self.rules.stack_indicators.items():
            if _contains_term(lowered, stack):
                for name in frameworks:
                    yield FrameworkMatch(name, self.rules.stack_confidence, "stack")

    def _context_inference(self, lowered: str) -> Iterable[FrameworkMatch]:
        for triggers, name, confidence in self.rules.context_inference:
            if any(_contains_term(lowered, trigger) for trigger in triggers):
                yield FrameworkMatch(name, confidence, "context")

    def _captured_names(self, prompt: str) -> Iterable[FrameworkMatch]:
        for pattern, kind, weight in self._captures:
            for match in pattern.finditer(prompt):
                name = self.normalise(match.group(1))
                if name not in self._known:
                    continue
                base = self.rules.capture_kind_weights.get(kind, 0.5)
                yield FrameworkMatch(name, min(1.0, base * weight), "pattern")

    def _project_matches(self, project_context: ProjectContext) -> Iterable[FrameworkMatch]:
        for dependency in project_context.dependencies:
            name = self._dependency_name(dependency)
            if name in self._known:
                yield FrameworkMatch(name, self.rules.project_confidence, "project")
        for suggested in project_context.suggested_frameworks:
            name = self.normalise(suggested)
            if name:
                yield FrameworkMatch(name, self.rules.suggested_confidence, "project")
        for fact in project_context.repo_facts:
            lowered = fact.lower()
            for term, canonical in self._vocabulary.items():
                if _contains_term(lowered, term):
                    yield FrameworkMatch(canonical, self.rules.project_confidence, "project")

    def _dependency_name(self, dependency: str) -> str:
        # "react@18.2.0", "@types/react", "vue": "^3"
        name = dependency.strip().lower()
        if name.startswith("@") and "/" in name:
            name = name.split("/", 1)[1]
        name = re.split(r"[@\s:=<>^~]", name, maxsplit=1)[0]
        return self.normalise(name)

    @staticmethod
    def _merge(matches: Iterable[FrameworkMatch]) -> List[FrameworkMatch]:
        merged: Dict[str, FrameworkMatch] = {}
        for match in matches:
            existing = merged.get(match.name)
            if existing is None:
                merged[match.name] = FrameworkMatch(match.name, match.confidence, match.source)
            elif match.confidence > existing.confidence:
                existing.confidence = match.confidence
                existing.source = match.source
        # sorted() is stable, so ties keep first-seen order.
        return sorted(merged.values(), key=lambda item: -item.confidence)

    def _suggest(self, names: List[str]) -> List[str]:
        suggestions: List[str] = []
        for name in names:
            companion: Optional[str] = self.rules.companions.get(name)
            if companion and companion not in names and companion not in suggestions:
                suggestions.append(companion)
        return suggestions

    def _build_vocabulary(self) -> Dict[str, str]:
        vocabulary = {name: name for name in self.rules.known_frameworks}
        for alias, canonical in self.rules.aliases.items():
            vocabulary.setdefault(alias, canonical)
        return vocabulary


def _contains_term(text: str, term: str) -> bool:
    return re.search(rf"(?<![\w.-]){re.escape(term)}(?![\w-])", text) is not None


__all__ = ["FrameworkDetector", "FrameworkMatch"]
