"""Assembles enhanced prompts from classified, retrieved and derived context."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from ..analysis.complexity import token_budget_for
from ..docs.scorer import RelevanceScorer
from ..llm.parsing import strip_code_fence
from ..llm.runner import LLMRunner
from ..logging import get_logger, preview
from ..models import EnhancementContext, FrameworkDetectionResult, PromptComplexity
from ..quality.requirements import format_requirements
from ..tokens import CHARS_PER_TOKEN, char_budget, estimate_tokens, truncate_to_tokens
from .constants import (
    BEST_PRACTICES_HEADING,
    BLOCK_SEPARATOR,
    CLOSING_INSTRUCTION,
    CODE_PATTERNS_HEADING,
    FRAMEWORKS_HEADING,
    FRAMEWORK_DOCS_HEADING,
    INSTRUCTIONS_HEADING,
    MARKUP_FRAMEWORKS,
    PROJECT_DOCS_HEADING,
    REPOSITORY_HEADING,
    SIMPLE_DOC_EXCERPT_TOKENS,
)

logger = get_logger("prompting.assembler")

MIN_CLIPPED_BLOCK_TOKENS = 100


class PromptAssembler:
    """Deterministic assembler; identical inputs give byte-identical output.

    Everything appended after the original prompt is bounded by the response
    ceiling of the complexity level (optionally lowered by ``max_tokens``).
    Blocks are added in a fixed order while they fit; the first block that
    does not fit is clipped when enough room remains and later blocks are
    dropped. Room for the closing instruction is reserved up front.
    """

    def __init__(self, scorer: RelevanceScorer | None = None) -> None:
        self.scorer = scorer or RelevanceScorer()

    def assemble(
        self,
        original_prompt: str,
        context: EnhancementContext,
        complexity: PromptComplexity,
        *,
        max_tokens: int | None = None,
    ) -> str:
        prompt = original_prompt or ""
        ceiling = self.ceiling_for(complexity, max_tokens)
        if complexity.level == "simple":
            blocks = self._simple_blocks(prompt, context)
            closing = None
        else:
            blocks = self._detailed_blocks(prompt, context, complexity)
            closing = f"{INSTRUCTIONS_HEADING}\n{CLOSING_INSTRUCTION}"
        appended = self._fit_blocks(blocks, closing, ceiling)
        logger.debug(
            "Assembled %s prompt for '%s': %d blocks, %d appended tokens (ceiling %d)",
            complexity.level,
            preview(prompt),
            len(blocks),
            estimate_tokens(appended),
            ceiling,
        )
        return prompt + appended

    @staticmethod
    def ceiling_for(complexity: PromptComplexity, max_tokens: int | None = None) -> int:
        ceiling = token_budget_for(complexity.level).response
        if max_tokens is not None:
            ceiling = min(ceiling, max(0, max_tokens))
        return ceiling

    # ------------------------------------------------------------------
    # Block builders

    def _simple_blocks(self, prompt: str, context: EnhancementContext) -> List[str]:
        blocks: List[str] = []
        frameworks = context.frameworks
        if frameworks is None or not frameworks.detected_frameworks:
            return blocks
        if frameworks.method != "fallback":
            name = frameworks.detected_frameworks[0]
            if name.lower() not in prompt.lower():
                blocks.append(f"Framework: {name}")
        detected = {name.lower() for name in frameworks.detected_frameworks}
        if detected & MARKUP_FRAMEWORKS and context.documentation is not None:
            excerpt = self.scorer.score_and_trim(
                context.documentation.combined(),
                SIMPLE_DOC_EXCERPT_TOKENS,
                prompt,
                library=" ".join(context.documentation.libraries),
            )
            if excerpt.strip():
                blocks.append(excerpt)
        return blocks

    def _detailed_blocks(
        self,
        prompt: str,
        context: EnhancementContext,
        complexity: PromptComplexity,
    ) -> List[str]:
        budget = token_budget_for(complexity.level)
        blocks: List[Optional[str]] = [
            self._frameworks_block(context.frameworks),
            format_requirements(context.quality_requirements) or None,
            self._best_practices_block(prompt, context, budget.documentation),
            _joined_block(FRAMEWORK_DOCS_HEADING, context.framework_docs),
            _joined_block(PROJECT_DOCS_HEADING, context.project_docs),
            self._repository_block(context.repo_facts),
            self._code_block(prompt, context.code_snippets, budget.code),
        ]
        return [block for block in blocks if block]

    @staticmethod
    def _frameworks_block(frameworks: FrameworkDetectionResult | None) -> Optional[str]:
        if frameworks is None or not frameworks.detected_frameworks:
            return None
        lines = [
            FRAMEWORKS_HEADING,
            f"- Frameworks: {', '.join(frameworks.detected_frameworks)}",
            f"- Detection Method: {frameworks.method}",
            f"- Confidence: {frameworks.confidence * 100:.1f}%",
        ]
        if frameworks.suggestions:
            lines.append(f"- Suggestions: {', '.join(frameworks.suggestions)}")
        return "\n".join(lines)

    def _best_practices_block(
        self, prompt: str, context: EnhancementContext, max_tokens: int
    ) -> Optional[str]:
        documentation = context.documentation
        if documentation is None:
            return None
        trimmed = self.scorer.score_and_trim(
            documentation.combined(),
            max_tokens,
            prompt,
            library=" ".join(documentation.libraries),
        )
        if not trimmed.strip():
            return None
        return f"{BEST_PRACTICES_HEADING}\n{trimmed}"

    @staticmethod
    def _repository_block(facts: Sequence[str]) -> Optional[str]:
        cleaned = [fact.strip() for fact in facts if fact and fact.strip()]
        if not cleaned:
            return None
        return "\n".join([REPOSITORY_HEADING] + [f"- {fact}" for fact in cleaned])

    def _code_block(
        self, prompt: str, snippets: Sequence[str], max_tokens: int
    ) -> Optional[str]:
        cleaned = [snippet.strip() for snippet in snippets if snippet and snippet.strip()]
        if not cleaned:
            return None
        trimmed = self.scorer.score_and_trim("\n\n".join(cleaned), max_tokens, prompt)
        if not trimmed.strip():
            return None
        return f"{CODE_PATTERNS_HEADING}\n```\n{trimmed}\n```"

    # ------------------------------------------------------------------
    # Budget fitting

    @staticmethod
    def _fit_blocks(blocks: Sequence[str], closing: Optional[str], ceiling: int) -> str:
        if not blocks or ceiling <= 0:
            return ""
        limit = char_budget(ceiling)
        closing_text = BLOCK_SEPARATOR + closing if closing else ""
        if len(closing_text) > limit:
            closing_text = ""
        available = limit - len(closing_text)

        pieces: List[str] = []
        used = 0
        for block in blocks:
            piece = BLOCK_SEPARATOR + block
            if used + len(piece) <= available:
                pieces.append(piece)
                used += len(piece)
                continue
            room = (available - used - len(BLOCK_SEPARATOR)) // CHARS_PER_TOKEN
            if room >= MIN_CLIPPED_BLOCK_TOKENS:
                clipped = truncate_to_tokens(block, room)
                if clipped:
                    pieces.append(BLOCK_SEPARATOR + clipped)
            break
        if not pieces:
            return ""
        return "".join(pieces) + closing_text


class ModelEnhancedAssembler:
    """Optional assembly path that asks a language model to polish the prompt.

    Falls back to the deterministic output when no model is configured, the
    call fails, or the answer drops the original request.
    """

    SYSTEM_PROMPT = (
        "You improve prompts for code generation assistants. Return only the enhanced "
        "prompt text. Never remove or reword the original request."
    )
    TEMPLATE_NAME = "model_enhance.j2"

    def __init__(
        self,
        base: PromptAssembler | None = None,
        runner: LLMRunner | None = None,
        *,
        templates_dir: Path | None = None,
    ) -> None:
        self.base = base or PromptAssembler()
        self.runner = runner
        self._env = self._create_env(templates_dir)

    def assemble(
        self,
        original_prompt: str,
        context: EnhancementContext,
        complexity: PromptComplexity,
        *,
        max_tokens: int | None = None,
        strategy: str = "standard",
        style: str | None = None,
    ) -> str:
        prompt = original_prompt or ""
        draft = self.base.assemble(prompt, context, complexity, max_tokens=max_tokens)
        if self.runner is None or not self.runner.available or not prompt.strip():
            return draft
        ceiling = self.base.ceiling_for(complexity, max_tokens)
        try:
            request = self.render_request(
                prompt, draft, context, complexity, strategy, style, ceiling
            )
            response = strip_code_fence(self.runner.run(request, system=self.SYSTEM_PROMPT))
        except Exception as exc:
            logger.warning("Model-enhanced assembly failed for '%s': %s", preview(prompt), exc)
            return draft
        clipped = truncate_to_tokens(response or "", estimate_tokens(prompt) + ceiling)
        if not clipped or prompt.strip() not in clipped:
            logger.warning("Model-enhanced assembly dropped the original request; using draft")
            return draft
        return clipped

    def render_request(
        self,
        prompt: str,
        draft: str,
        context: EnhancementContext,
        complexity: PromptComplexity,
        strategy: str,
        style: str | None,
        ceiling: int,
    ) -> str:
        template = self._env.get_template(self.TEMPLATE_NAME)
        frameworks = context.frameworks.detected_frameworks if context.frameworks else []
        return template.render(
            prompt=prompt,
            draft=draft[len(prompt) :].strip() or "(none)",
            complexity=complexity,
            strategy=strategy,
            style=style,
            ceiling=ceiling,
            frameworks=frameworks,
        )

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


def _joined_block(heading: str, values: Sequence[str]) -> Optional[str]:
    cleaned = [value.strip() for value in values if value and value.strip()]
    if not cleaned:
        return None
    return heading + "\n" + "\n\n".join(cleaned)


__all__ = ["MIN_CLIPPED_BLOCK_TOKENS", "ModelEnhancedAssembler", "PromptAssembler"]
