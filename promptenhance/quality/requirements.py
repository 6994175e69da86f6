"""Quality requirement extraction, merging and formatting."""

from __future__ import annotations

from functools import reduce
from typing import Dict, Iterable, List, Sequence

from ..analysis.rules import QualityRules
from ..logging import get_logger, preview
from ..models import PRIORITIES, ProjectContext, QualityRequirement

logger = get_logger("quality.requirements")

PRIORITY_GLYPHS = {
    "low": "🟢",
    "medium": "🟡",
    "high": "🟠",
    "critical": "🔴",
}
UNKNOWN_GLYPH = "⚪"
HEADING = "## Quality Requirements"


class QualityRequirementsExtractor:
    """Derives non-functional requirements from prompt, framework and project."""

    def __init__(self, rules: QualityRules | None = None) -> None:
        self.rules = rules or QualityRules()

    def extract(
        self,
        prompt: str,
        framework: str | None = None,
        project_context: ProjectContext | None = None,
    ) -> List[QualityRequirement]:
        """Return merged requirements; an empty list if anything goes wrong."""
        try:
            lowered = (prompt or "").lower()
            found: List[QualityRequirement] = []
            found.extend(self._from_prompt(lowered))
            if framework:
                found.extend(self._from_framework(framework.lower(), lowered))
            if project_context is not None:
                found.extend(self._from_project(project_context))
            return deduplicate(found)
        except Exception as exc:
            logger.warning(
                "Quality requirement extraction failed for '%s': %s",
                preview(prompt or ""),
                exc,
            )
            return []

    def _from_prompt(self, lowered: str) -> Iterable[QualityRequirement]:
        for triggers, kind, priority, description in self.rules.prompt_rules:
            if any(trigger in lowered for trigger in triggers):
                yield QualityRequirement(kind, priority, description)

    def _from_framework(self, framework: str, lowered: str) -> Iterable[QualityRequirement]:
        for fragment, triggers, kind, priority, description in self.rules.framework_rules:
            if fragment not in framework:
                continue
            if triggers and not any(trigger in lowered for trigger in triggers):
                continue
            yield QualityRequirement(kind, priority, description)

    def _from_project(self, project_context: ProjectContext) -> Iterable[QualityRequirement]:
        sources = {
            "facts": " ".join(project_context.repo_facts).lower(),
            "snippets": " ".join(project_context.code_snippets).lower(),
        }
        for source, triggers, kind, priority, description in self.rules.project_rules:
            text = sources.get(source, "")
            if text and any(trigger in text for trigger in triggers):
                yield QualityRequirement(kind, priority, description)


def priority_rank(priority: str) -> int:
    try:
        return PRIORITIES.index(priority)
    except ValueError:
        return -1


def merge_requirements(
    first: QualityRequirement, second: QualityRequirement
) -> QualityRequirement:
    """Combine two requirements of the same type."""
    priority = first.priority
    if priority_rank(second.priority) > priority_rank(first.priority):
        priority = second.priority
    if second.description and second.description not in first.description.split("; "):
        description = (
            f"{first.description}; {second.description}"
            if first.description
            else second.description
        )
    else:
        description = first.description
    return QualityRequirement(type=first.type, priority=priority, description=description)


def deduplicate(requirements: Sequence[QualityRequirement]) -> List[QualityRequirement]:
    """Merge requirements sharing a type, keeping first-seen order."""

    def _fold(
        acc: Dict[str, QualityRequirement], item: QualityRequirement
    ) -> Dict[str, QualityRequirement]:
        key = item.type.lower()
        existing = acc.get(key)
        merged = item if existing is None else merge_requirements(existing, item)
        return {**acc, key: merged}

    return list(reduce(_fold, requirements, {}).values())


def priority_glyph(priority: str) -> str:
    return PRIORITY_GLYPHS.get(priority, UNKNOWN_GLYPH)


def format_requirements(requirements: Sequence[QualityRequirement]) -> str:
    """Render requirements as a numbered markdown block; empty input renders nothing."""
    if not requirements:
        return ""
    lines = [HEADING, ""]
    for index, requirement in enumerate(requirements, start=1):
        glyph = priority_glyph(requirement.priority)
        lines.append(
            f"{index}. **{requirement.type}** {glyph} ({requirement.priority} priority)"
        )
        lines.append(f"   - {requirement.description}")
    return "\n".join(lines)


__all__ = [
    "HEADING",
    "PRIORITY_GLYPHS",
    "QualityRequirementsExtractor",
    "deduplicate",
    "format_requirements",
    "merge_requirements",
    "priority_glyph",
    "priority_rank",
]
