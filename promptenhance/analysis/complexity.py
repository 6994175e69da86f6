"""Prompt complexity classification."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import List, Literal, Protocol, Sequence

from pydantic import BaseModel, Field

from ..llm.parsing import extract_json
from ..llm.runner import LLMRunner
from ..logging import get_logger, preview
from ..models import ComplexityAssessment, ProjectContext, PromptComplexity
from .rules import ClassifierRules

logger = get_logger("analysis.complexity")

HEURISTIC_CONFIDENCE = 0.6
FAILED_MODEL_CONFIDENCE = 0.5


@dataclass(frozen=True)
class TokenBudget:
    """Per-level token allowances used by every downstream stage."""

    response: int
    estimated: int
    documentation: int
    code: int
    libraries: int


LEVEL_BUDGETS = {
    "simple": TokenBudget(response=400, estimated=400, documentation=200, code=200, libraries=1),
    "medium": TokenBudget(response=1200, estimated=1200, documentation=500, code=400, libraries=2),
    "complex": TokenBudget(response=3200, estimated=2000, documentation=800, code=600, libraries=3),
}

RESPONSE_STRATEGIES = {
    "simple": "minimal",
    "medium": "standard",
    "complex": "comprehensive",
}


def token_budget_for(level: str) -> TokenBudget:
    """Return the budget table for ``level``; unknown levels get the medium budget."""
    return LEVEL_BUDGETS.get(level, LEVEL_BUDGETS["medium"])


class ComplexityClassifier(Protocol):
    """Strategy interface shared by the heuristic and model-assisted classifiers."""

    def classify(self, prompt: str) -> PromptComplexity:
        ...

    def assess(
        self, prompt: str, project_context: ProjectContext | None = None
    ) -> ComplexityAssessment:
        ...


class DeterministicClassifier:
    """Rule-based classifier; pure and deterministic."""

    def __init__(self, rules: ClassifierRules | None = None) -> None:
        self.rules = rules or ClassifierRules()
        self._simple = [re.compile(p, re.IGNORECASE) for p in self.rules.simple_patterns]
        self._complex = [re.compile(p, re.IGNORECASE) for p in self.rules.complex_patterns]

    def classify(self, prompt: str) -> PromptComplexity:
        rules = self.rules
        text = prompt or ""
        lowered = text.lower()
        score = 0.0
        indicators: List[str] = []

        length = len(text)
        if length < rules.very_short_length:
            score += rules.very_short_bonus
            indicators.append("very-short")
        elif length < rules.short_length:
            score += rules.short_bonus
            indicators.append("short")
        elif length > rules.long_length:
            score -= rules.long_penalty
            indicators.append("long")

        stripped = text.strip()
        if any(pattern.search(stripped) for pattern in self._simple):
            score += rules.simple_bonus
            indicators.append("simple-question")

        complex_hits = sum(1 for pattern in self._complex if pattern.search(text))
        if complex_hits:
            score -= complex_hits * rules.complex_penalty
            indicators.append("development-task")

        framework_hits = [kw for kw in rules.framework_keywords if kw in lowered]
        if framework_hits:
            score -= len(framework_hits) * rules.framework_penalty
            indicators.append("framework-specific")

        return PromptComplexity(
            level=self._level_for(score),
            score=score,
            indicators=tuple(indicators),
        )

    def assess(
        self,
        prompt: str,
        project_context: ProjectContext | None = None,
        *,
        confidence: float = HEURISTIC_CONFIDENCE,
    ) -> ComplexityAssessment:
        complexity = self.classify(prompt)
        return ComplexityAssessment(
            complexity=complexity,
            user_expertise_level=self.infer_expertise(project_context),
            response_strategy=RESPONSE_STRATEGIES[complexity.level],
            estimated_tokens=token_budget_for(complexity.level).estimated,
            confidence=confidence,
            source="heuristic",
        )

    def infer_expertise(self, project_context: ProjectContext | None) -> str:
        """Guess the user's expertise from the sophistication of their project."""
        if project_context is None:
            return "intermediate"
        rules = self.rules
        facts = [fact.lower() for fact in project_context.repo_facts]
        score = 0
        if _any_contains(project_context.code_snippets, rules.advanced_snippet_markers):
            score += 2
        if _any_contains(facts, rules.testing_fact_markers):
            score += 1
        if _any_contains(facts, rules.tooling_fact_markers):
            score += 1
        if _any_contains(facts, rules.delivery_fact_markers):
            score += 1
        if score >= 3:
            return "advanced"
        if score >= 1:
            return "intermediate"
        return "beginner"

    def _level_for(self, score: float) -> str:
        if score >= self.rules.simple_threshold:
            return "simple"
        if score >= self.rules.medium_threshold:
            return "medium"
        return "complex"


class _ModelAssessment(BaseModel):
    level: Literal["simple", "medium", "complex"]
    score: float = Field(ge=1, le=10)
    indicators: List[str] = Field(default_factory=list)
    userExpertiseLevel: Literal["beginner", "intermediate", "advanced"]
    responseStrategy: Literal["minimal", "standard", "comprehensive"]
    estimatedTokens: int = Field(ge=0)
    confidence: float = Field(ge=0, le=1)


class ModelAssistedClassifier:
    """Asks a language model for expertise and strategy, falling back to heuristics.

    The deterministic classification stays authoritative for the level and the
    budgets derived from it. The model contributes the expertise estimate,
    response strategy, token estimate and confidence. Any failure, including a
    response that does not validate, yields the heuristic assessment with a
    reduced confidence.
    """

    SYSTEM_PROMPT = (
        "You analyse software development prompts. Respond with a single JSON object "
        "with the keys: level (simple|medium|complex), score (1-10), indicators (list of "
        "strings), userExpertiseLevel (beginner|intermediate|advanced), responseStrategy "
        "(minimal|standard|comprehensive), estimatedTokens (non-negative integer) and "
        "confidence (0-1). Do not add commentary."
    )

    def __init__(
        self,
        fallback: DeterministicClassifier | None = None,
        runner: LLMRunner | None = None,
    ) -> None:
        self.fallback = fallback or DeterministicClassifier()
        self.runner = runner

    def classify(self, prompt: str) -> PromptComplexity:
        return self.fallback.classify(prompt)

    def assess(
        self, prompt: str, project_context: ProjectContext | None = None
    ) -> ComplexityAssessment:
        if self.runner is None or not self.runner.available:
            return self.fallback.assess(
                prompt, project_context, confidence=HEURISTIC_CONFIDENCE
            )
        heuristic = self.fallback.classify(prompt)
        try:
            response = self.runner.run(
                self._build_request(prompt, project_context),
                system=self.SYSTEM_PROMPT,
                json_mode=True,
            )
            parsed = _ModelAssessment.model_validate(extract_json(response))
        except Exception as exc:
            logger.warning(
                "Model-assisted classification failed for '%s': %s", preview(prompt), exc
            )
            return self.fallback.assess(
                prompt, project_context, confidence=FAILED_MODEL_CONFIDENCE
            )

        indicators = list(heuristic.indicators)
        indicators.append(f"model-level:{parsed.level}")
        logger.debug(
            "Model assessment: level=%s expertise=%s strategy=%s",
            parsed.level,
            parsed.userExpertiseLevel,
            parsed.responseStrategy,
        )
        return ComplexityAssessment(
            complexity=PromptComplexity(
                level=heuristic.level,
                score=heuristic.score,
                indicators=tuple(indicators),
            ),
            user_expertise_level=parsed.userExpertiseLevel,
            response_strategy=parsed.responseStrategy,
            estimated_tokens=parsed.estimatedTokens,
            confidence=parsed.confidence,
            source="model",
        )

    @staticmethod
    def _build_request(prompt: str, project_context: ProjectContext | None) -> str:
        lines = [f"Prompt: {prompt}"]
        if project_context is not None:
            if project_context.repo_facts:
                lines.append("Project facts:")
                lines.extend(f"- {fact}" for fact in project_context.repo_facts[:10])
            if project_context.code_snippets:
                lines.append(
                    f"Code snippets supplied: {len(project_context.code_snippets)}"
                )
        return "\n".join(lines)


def _any_contains(values: Sequence[str], markers: Sequence[str]) -> bool:
    return any(marker in value for value in values for marker in markers)


__all__ = [
    "ComplexityClassifier",
    "DeterministicClassifier",
    "LEVEL_BUDGETS",
    "ModelAssistedClassifier",
    "RESPONSE_STRATEGIES",
    "TokenBudget",
    "token_budget_for",
]
