"""Tests for enhanced prompt assembly."""

from __future__ import annotations

from promptenhance.models import (
    DocumentationBundle,
    EnhancementContext,
    FrameworkDetectionResult,
    PromptComplexity,
    QualityRequirement,
)
from promptenhance.prompting.assembler import ModelEnhancedAssembler, PromptAssembler
from promptenhance.prompting.constants import (
    BEST_PRACTICES_HEADING,
    CLOSING_INSTRUCTION,
    CODE_PATTERNS_HEADING,
    FRAMEWORKS_HEADING,
    FRAMEWORK_DOCS_HEADING,
    INSTRUCTIONS_HEADING,
    PROJECT_DOCS_HEADING,
    REPOSITORY_HEADING,
)
from promptenhance.tokens import estimate_tokens
from tests._fixtures.fakes import HTML_DOCS, NEXT_DOCS, failing_runner, scripted_runner

SIMPLE = PromptComplexity(level="simple", score=5)
MEDIUM = PromptComplexity(level="medium", score=0)
COMPLEX = PromptComplexity(level="complex", score=-1)


def _full_context(**overrides) -> EnhancementContext:
    values = dict(
        repo_facts=["uses TypeScript", "uses Jest"],
        code_snippets=["export const total = (items) => items.length;"],
        documentation=DocumentationBundle(
            per_library_content={"/vercel/next.js": NEXT_DOCS},
            succeeded_library_ids=["/vercel/next.js"],
            libraries=["/vercel/next.js"],
        ),
        quality_requirements=[
            QualityRequirement("type-safety", "high", "Strict TypeScript types"),
        ],
        frameworks=FrameworkDetectionResult(
            detected_frameworks=["typescript", "nextjs"],
            confidence=0.8,
            suggestions=["react"],
            method="project",
        ),
        framework_docs=["Prefer server components by default."],
        project_docs=["The REST API lives under /api."],
    )
    values.update(overrides)
    return EnhancementContext(**values)


def test_simple_prompt_skips_repository_and_quality_sections() -> None:
    prompt = "What is 2+2?"
    fallback = FrameworkDetectionResult(["javascript"], 0.3, method="fallback")

    output = PromptAssembler().assemble(prompt, _full_context(frameworks=fallback), SIMPLE)

    assert output == prompt
    assert "Repository Context" not in output
    assert "Quality Requirements" not in output


def test_simple_prompt_gets_framework_hint() -> None:
    context = _full_context(
        frameworks=FrameworkDetectionResult(["react"], 0.9, method="pattern")
    )
    assembler = PromptAssembler()

    assert assembler.assemble("Write a hook", context, SIMPLE) == (
        "Write a hook\n\nFramework: react"
    )
    assert assembler.assemble("Write a React hook", context, SIMPLE) == "Write a React hook"


def test_simple_markup_prompt_gets_documentation_excerpt() -> None:
    context = _full_context(
        frameworks=FrameworkDetectionResult(["html"], 0.9, method="pattern"),
        documentation=DocumentationBundle(
            per_library_content={"/mdn/html": HTML_DOCS},
            succeeded_library_ids=["/mdn/html"],
            libraries=["/mdn/html"],
        ),
    )

    output = PromptAssembler().assemble("Make a form", context, SIMPLE)

    assert output.startswith("Make a form\n\nFramework: html\n\n")
    assert "Semantic elements" in output
    assert estimate_tokens(output[len("Make a form") :]) <= 400


def test_complex_prompt_contains_ordered_sections() -> None:
    prompt = "Build a complete full-stack e-commerce platform"

    output = PromptAssembler().assemble(prompt, _full_context(), COMPLEX)

    headings = [
        FRAMEWORKS_HEADING,
        "## Quality Requirements",
        BEST_PRACTICES_HEADING,
        FRAMEWORK_DOCS_HEADING,
        PROJECT_DOCS_HEADING,
        REPOSITORY_HEADING,
        CODE_PATTERNS_HEADING,
        INSTRUCTIONS_HEADING,
    ]
    positions = [output.index(heading) for heading in headings]
    assert positions == sorted(positions)
    assert output.startswith(prompt + "\n\n")
    assert "- Confidence: 80.0%" in output
    assert "- uses Jest" in output
    assert output.endswith(CLOSING_INSTRUCTION)


def test_empty_sources_are_omitted() -> None:
    context = _full_context(repo_facts=[], code_snippets=[], project_docs=[])

    output = PromptAssembler().assemble("Add an api route", context, MEDIUM)

    assert REPOSITORY_HEADING not in output
    assert CODE_PATTERNS_HEADING not in output
    assert PROJECT_DOCS_HEADING not in output


def test_appended_text_never_exceeds_level_ceiling() -> None:
    prompt = "Refactor the checkout flow"
    facts = [f"fact number {index} about the checkout service" for index in range(2000)]
    assembler = PromptAssembler()

    for complexity, ceiling in ((MEDIUM, 1200), (COMPLEX, 3200)):
        output = assembler.assemble(prompt, _full_context(repo_facts=facts), complexity)
        assert estimate_tokens(output[len(prompt) :]) <= ceiling
        assert output.endswith(CLOSING_INSTRUCTION)
        assert CODE_PATTERNS_HEADING not in output


def test_max_tokens_lowers_the_ceiling() -> None:
    prompt = "Refactor the checkout flow"

    output = PromptAssembler().assemble(prompt, _full_context(), COMPLEX, max_tokens=150)

    assert estimate_tokens(output[len(prompt) :]) <= 150


def test_assembly_is_idempotent() -> None:
    assembler = PromptAssembler()
    context = _full_context()

    first = assembler.assemble("Build a dashboard", context, COMPLEX)
    second = assembler.assemble("Build a dashboard", context, COMPLEX)

    assert first == second


def test_empty_prompt_without_context_stays_empty() -> None:
    context = EnhancementContext()

    assert PromptAssembler().assemble("", context, SIMPLE) == ""


def test_model_assembler_without_runner_returns_draft() -> None:
    context = _full_context()
    draft = PromptAssembler().assemble("Build a dashboard", context, COMPLEX)

    assert ModelEnhancedAssembler().assemble("Build a dashboard", context, COMPLEX) == draft


def test_model_assembler_uses_reply_containing_original_prompt() -> None:
    calls = []
    reply = "Build a dashboard\n\nUse Next.js server components and typed API routes."
    assembler = ModelEnhancedAssembler(runner=scripted_runner([reply], calls))

    output = assembler.assemble(
        "Build a dashboard", _full_context(), COMPLEX, strategy="comprehensive", style="concise"
    )

    assert output == reply
    assert "Response strategy: comprehensive" in calls[0].prompt
    assert "Preferred style: concise" in calls[0].prompt
    assert "Frameworks: typescript, nextjs" in calls[0].prompt


def test_model_assembler_rejects_reply_that_drops_prompt() -> None:
    context = _full_context()
    draft = PromptAssembler().assemble("Build a dashboard", context, COMPLEX)
    assembler = ModelEnhancedAssembler(runner=scripted_runner(["Something else entirely"]))

    assert assembler.assemble("Build a dashboard", context, COMPLEX) == draft


def test_model_assembler_falls_back_on_errors() -> None:
    context = _full_context()
    draft = PromptAssembler().assemble("Build a dashboard", context, COMPLEX)
    assembler = ModelEnhancedAssembler(runner=failing_runner())

    assert assembler.assemble("Build a dashboard", context, COMPLEX) == draft


def test_model_assembler_rejects_reply_whose_prompt_is_clipped_away() -> None:
    context = _full_context()
    draft = PromptAssembler().assemble("Build a dashboard", context, COMPLEX, max_tokens=200)
    reply = "Background notes. " * 400 + "\n\nBuild a dashboard"
    assembler = ModelEnhancedAssembler(runner=scripted_runner([reply]))

    output = assembler.assemble("Build a dashboard", context, COMPLEX, max_tokens=200)

    assert output == draft
