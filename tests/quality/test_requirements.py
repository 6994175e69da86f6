"""Tests for quality requirement extraction and formatting."""

from __future__ import annotations

from promptenhance.analysis.rules import QualityRules
from promptenhance.models import ProjectContext, QualityRequirement
from promptenhance.quality.requirements import (
    QualityRequirementsExtractor,
    deduplicate,
    format_requirements,
    merge_requirements,
    priority_glyph,
)

ECOMMERCE = (
    "Build a complete full-stack e-commerce platform with authentication, "
    "product search, and checkout"
)


def test_project_facts_yield_type_safety_and_testing() -> None:
    project = ProjectContext(repo_facts=["uses TypeScript", "uses Jest"])

    requirements = QualityRequirementsExtractor().extract(ECOMMERCE, "typescript", project)

    assert [requirement.type for requirement in requirements] == ["type-safety", "testing"]
    type_safety = requirements[0]
    assert type_safety.priority == "high"
    assert "Strict TypeScript types" in type_safety.description
    assert "Project uses TypeScript" in type_safety.description


def test_prompt_keywords_trigger_requirements() -> None:
    requirements = QualityRequirementsExtractor().extract(
        "Make a responsive, accessible dashboard for production"
    )

    assert {requirement.type for requirement in requirements} == {
        "production",
        "responsive",
        "accessibility",
    }


def test_framework_rules_need_matching_prompt_words() -> None:
    extractor = QualityRequirementsExtractor()

    with_hook = extractor.extract("Write a hook for the counter", "react")
    without = extractor.extract("Explain the virtual DOM", "react")

    assert [requirement.type for requirement in with_hook] == ["react-patterns"]
    assert without == []


def test_merge_keeps_higher_priority_and_joins_descriptions() -> None:
    merged = merge_requirements(
        QualityRequirement("performance", "medium", "Lazy load routes"),
        QualityRequirement("Performance", "high", "Keep bundles small"),
    )

    assert merged == QualityRequirement(
        "performance", "high", "Lazy load routes; Keep bundles small"
    )


def test_deduplicate_merges_by_type_in_first_seen_order() -> None:
    requirements = [
        QualityRequirement("testing", "medium", "Add tests"),
        QualityRequirement("security", "high", "Validate input"),
        QualityRequirement("Testing", "low", "Add tests"),
    ]

    merged = deduplicate(requirements)

    assert merged == [
        QualityRequirement("testing", "medium", "Add tests"),
        QualityRequirement("security", "high", "Validate input"),
    ]


def test_format_requirements_renders_numbered_block() -> None:
    text = format_requirements(
        [
            QualityRequirement("testing", "medium", "Add tests"),
            QualityRequirement("security", "critical", "Validate input"),
        ]
    )

    assert text == (
        "## Quality Requirements\n\n"
        "1. **testing** 🟡 (medium priority)\n"
        "   - Add tests\n"
        "2. **security** 🔴 (critical priority)\n"
        "   - Validate input"
    )
    assert format_requirements([]) == ""


def test_unknown_priority_gets_neutral_glyph() -> None:
    assert priority_glyph("urgent") == "⚪"


def test_extraction_fails_soft() -> None:
    broken = QualityRules(prompt_rules=((None, "oops", "low", "never"),))  # type: ignore[arg-type]

    assert QualityRequirementsExtractor(broken).extract("anything") == []
