"""Decomposes large prompts into task records for an external todo store."""

from __future__ import annotations

import re
from typing import List, Literal, Sequence

from pydantic import BaseModel, Field

from ..analysis.rules import BreakdownRules
from ..llm.parsing import extract_json
from ..llm.runner import LLMRunner
from ..logging import get_logger, preview
from ..models import TaskRecord

logger = get_logger("tasks.breakdown")

_CATEGORY_KEYWORDS = (
    ("testing", ("test", "spec", "coverage")),
    ("deployment", ("deploy", "docker", "release", "ci")),
    ("setup", ("setup", "set up", "install", "config", "scaffold")),
    ("backend", ("api", "endpoint", "database", "server", "auth")),
    ("ui", ("ui", "style", "css", "layout", "design", "page", "component")),
)


class _TaskPayload(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    priority: Literal["low", "medium", "high", "critical"] = "medium"
    category: str = "feature"


class _PlanPayload(BaseModel):
    tasks: List[_TaskPayload] = Field(min_length=1)


class TaskBreakdownPlanner:
    """Decides whether a prompt warrants decomposition and produces the tasks."""

    SYSTEM_PROMPT = (
        "You break software requests into implementation tasks. Respond with JSON of the "
        'form {"tasks": [{"title": str, "description": str, "priority": '
        '"low|medium|high|critical", "category": str}]}.'
    )

    def __init__(
        self,
        rules: BreakdownRules | None = None,
        runner: LLMRunner | None = None,
    ) -> None:
        self.rules = rules or BreakdownRules()
        self.runner = runner

    def should_breakdown(self, prompt: str, include_breakdown: bool | None = None) -> bool:
        if include_breakdown is not None:
            return include_breakdown
        text = prompt or ""
        lowered = text.lower()
        has_complex = any(keyword in lowered for keyword in self.rules.complex_keywords)
        has_simple = any(keyword in lowered for keyword in self.rules.simple_keywords)
        is_long = len(text) > self.rules.long_prompt_length
        has_parts = len(_sentences(text)) > 2
        has_bullets = bool(self._bullet_lines(text))

        if has_complex and (is_long or has_parts or has_bullets):
            return True
        if has_simple and not is_long:
            return False
        return is_long and (has_complex or has_parts)

    def plan(self, prompt: str, frameworks: Sequence[str] = ()) -> List[TaskRecord]:
        """Return task records, preferring the model when one is configured."""
        if self.runner is not None and self.runner.available:
            try:
                return self._plan_with_model(prompt, frameworks)
            except Exception as exc:
                logger.warning("Model task breakdown failed for '%s': %s", preview(prompt), exc)
        return self._plan_heuristically(prompt, frameworks)

    def _plan_with_model(self, prompt: str, frameworks: Sequence[str]) -> List[TaskRecord]:
        request = f"Request: {prompt}"
        if frameworks:
            request += f"\nFrameworks: {', '.join(frameworks)}"
        reply = self.runner.run(request, system=self.SYSTEM_PROMPT, json_mode=True)  # type: ignore[union-attr]
        payload = extract_json(reply)
        if isinstance(payload, list):
            payload = {"tasks": payload}
        plan = _PlanPayload.model_validate(payload)
        return [
            TaskRecord(
                title=task.title.strip(),
                description=task.description.strip(),
                priority=task.priority,
                category=task.category.strip() or "feature",
            )
            for task in plan.tasks[: self.rules.max_tasks]
        ]

    def _plan_heuristically(self, prompt: str, frameworks: Sequence[str]) -> List[TaskRecord]:
        parts = self._bullet_lines(prompt) or _sentences(prompt)
        if len(parts) < 2:
            return self._phase_template(prompt, frameworks)
        records = []
        for index, part in enumerate(parts[: self.rules.max_tasks]):
            records.append(
                TaskRecord(
                    title=_title(part),
                    description=part,
                    priority="high" if index == 0 else "medium",
                    category=_category(part),
                )
            )
        return records

    def _phase_template(self, prompt: str, frameworks: Sequence[str]) -> List[TaskRecord]:
        stack = ", ".join(frameworks) if frameworks else "the chosen stack"
        goal = preview(prompt, 80) or "the requested feature"
        return [
            TaskRecord(
                title="Set up project structure",
                description=f"Scaffold the project and tooling for {stack}.",
                priority="high",
                category="setup",
            ),
            TaskRecord(
                title="Implement core functionality",
                description=f"Build the main behaviour for: {goal}",
                priority="high",
                category="feature",
            ),
            TaskRecord(
                title="Integrate components",
                description="Wire the pieces together and handle error states.",
                priority="medium",
                category="feature",
            ),
            TaskRecord(
                title="Add tests",
                description="Cover the main flows with unit and integration tests.",
                priority="medium",
                category="testing",
            ),
        ]

    def _bullet_lines(self, text: str) -> List[str]:
        items = []
        for line in (text or "").splitlines():
            stripped = line.strip()
            for marker in self.rules.bullet_markers:
                if stripped.startswith(marker + " "):
                    item = stripped[len(marker) :].strip()
                    if item:
                        items.append(item)
                    break
        return items


def _sentences(text: str) -> List[str]:
    return [part.strip() for part in re.split(r"[.!?](?:\s+|$)", text or "") if part.strip()]


def _title(part: str) -> str:
    words = part.split()
    title = " ".join(words[:8])
    if len(words) > 8:
        title += "..."
    return title[:1].upper() + title[1:]


def _category(part: str) -> str:
    lowered = part.lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(re.search(rf"\b{re.escape(keyword)}", lowered) for keyword in keywords):
            return category
    return "feature"


__all__ = ["TaskBreakdownPlanner"]
