"""Tests for the end-to-end prompt enhancement pipeline."""

from __future__ import annotations

import asyncio
from pathlib import Path

from promptenhance.config import load_config
from promptenhance.models import EnhanceOptions, ProjectContext, RequestContext
from promptenhance.pipeline import PromptEnhancer, coerce_context, coerce_options, enhance
from promptenhance.prompting.constants import (
    FRAMEWORKS_HEADING,
    INSTRUCTIONS_HEADING,
    REPOSITORY_HEADING,
)
from promptenhance.stores import EnhancementCache
from tests._fixtures.fakes import NEXT_DOCS, TYPESCRIPT_DOCS, FakeDocumentationService

ECOMMERCE = (
    "Build a complete full-stack e-commerce platform with authentication, "
    "product search, and checkout"
)
PROJECT = ProjectContext(repo_facts=["uses TypeScript", "uses Jest"])


def test_complex_prompt_gets_full_context(docs_service) -> None:
    enhancer = PromptEnhancer(docs_service)

    result = enhancer.enhance(
        ECOMMERCE,
        RequestContext(project_context=PROJECT),
        EnhanceOptions(include_metadata=True),
    )

    assert result.success is True
    assert result.error is None
    assert result.enhanced_prompt.startswith(ECOMMERCE)
    assert FRAMEWORKS_HEADING in result.enhanced_prompt
    assert "## Quality Requirements" in result.enhanced_prompt
    assert REPOSITORY_HEADING in result.enhanced_prompt
    assert result.enhanced_prompt.rstrip().endswith(
        "fits well with the existing codebase."
    )
    assert INSTRUCTIONS_HEADING in result.enhanced_prompt

    assert result.context_used["repo_facts"] == ["uses TypeScript", "uses Jest"]
    assert sorted(result.context_used["context7_docs"]) == sorted([NEXT_DOCS, TYPESCRIPT_DOCS])

    metadata = result.context_used["metadata"]
    assert metadata["cache_hit"] is False
    assert metadata["complexity"]["level"] == "complex"
    assert metadata["complexity"]["response_strategy"] == "comprehensive"
    assert metadata["frameworks"]["detected_frameworks"] == ["typescript", "nextjs"]
    assert metadata["frameworks"]["method"] == "project"
    assert sorted(metadata["frameworks"]["library_ids"]) == [
        "/microsoft/typescript",
        "/vercel/next.js",
    ]
    assert sorted(metadata["libraries_resolved"]) == ["/microsoft/typescript", "/vercel/next.js"]
    assert [item["type"] for item in metadata["quality_requirements"]] == [
        "type-safety",
        "testing",
    ]
    assert metadata["response_time_ms"] >= 0


def test_simple_question_is_left_untouched(docs_service) -> None:
    result = PromptEnhancer(docs_service).enhance("What is 2+2?")

    assert result.success is True
    assert result.enhanced_prompt == "What is 2+2?"
    assert "metadata" not in result.context_used


def test_metadata_is_opt_in(docs_service) -> None:
    result = PromptEnhancer(docs_service).enhance(ECOMMERCE)

    assert set(result.context_used) == {
        "repo_facts",
        "code_snippets",
        "framework_docs",
        "project_docs",
        "context7_docs",
    }


def test_stage_failure_returns_original_prompt(docs_service) -> None:
    class ExplodingClassifier:
        def classify(self, prompt):
            raise RuntimeError("classifier crashed")

        def assess(self, prompt, project_context=None):
            raise RuntimeError("classifier crashed")

    enhancer = PromptEnhancer(docs_service, classifier=ExplodingClassifier())

    result = enhancer.enhance(ECOMMERCE)

    assert result.success is False
    assert result.enhanced_prompt == ECOMMERCE
    assert result.error == "classifier crashed"
    assert result.context_used == {}


def test_documentation_outage_still_succeeds() -> None:
    result = PromptEnhancer(FakeDocumentationService()).enhance(
        ECOMMERCE, options={"includeMetadata": True}
    )

    assert result.success is True
    assert result.enhanced_prompt.startswith(ECOMMERCE)
    assert result.context_used["metadata"]["libraries_resolved"] == []
    assert "General Programming Best Practices" in result.context_used["context7_docs"][0]


def test_enhance_from_running_event_loop(docs_service) -> None:
    enhancer = PromptEnhancer(docs_service)

    async def caller():
        return enhancer.enhance(ECOMMERCE, RequestContext(project_context=PROJECT))

    result = asyncio.run(caller())

    assert result.success is True
    assert result.error is None
    assert sorted(result.context_used["context7_docs"]) == sorted([NEXT_DOCS, TYPESCRIPT_DOCS])


def test_cached_results_skip_retrieval(docs_service, tmp_path: Path) -> None:
    cache_path = tmp_path / "cache.json"
    enhancer = PromptEnhancer(docs_service, cache=EnhancementCache(cache_path))
    options = EnhanceOptions(include_metadata=True, use_cache=True)

    first = enhancer.enhance(ECOMMERCE, RequestContext(project_context=PROJECT), options)
    calls_after_first = len(docs_service.doc_calls)
    second = enhancer.enhance(ECOMMERCE, RequestContext(project_context=PROJECT), options)

    assert first.context_used["metadata"]["cache_hit"] is False
    assert second.context_used["metadata"]["cache_hit"] is True
    assert second.enhanced_prompt == first.enhanced_prompt
    assert len(docs_service.doc_calls) == calls_after_first
    assert cache_path.exists()


def test_cache_is_ignored_unless_requested(docs_service, tmp_path: Path) -> None:
    cache = EnhancementCache(tmp_path / "cache.json")
    enhancer = PromptEnhancer(docs_service, cache=cache)

    enhancer.enhance(ECOMMERCE)

    assert len(cache) == 0


def test_mapping_context_accepts_camel_case(docs_service) -> None:
    result = PromptEnhancer(docs_service).enhance(
        "Write a hook for the counter",
        {"framework": "react", "projectContext": {"repoFacts": ["uses Jest"]}},
        {"includeMetadata": True},
    )

    assert result.success is True
    assert result.context_used["repo_facts"] == ["uses Jest"]
    frameworks = result.context_used["metadata"]["frameworks"]
    assert frameworks["detected_frameworks"] == ["react"]
    assert frameworks["method"] == "explicit"


def test_coerce_helpers_accept_snake_case() -> None:
    context = coerce_context(
        {
            "style": "concise",
            "project_context": {"code_snippets": ["const a = 1;"], "dependencies": ["vue"]},
        }
    )
    options = coerce_options({"max_tokens": "300", "use_cache": True})

    assert context.style == "concise"
    assert context.framework is None
    assert context.project_context is not None
    assert context.project_context.code_snippets == ["const a = 1;"]
    assert context.project_context.dependencies == ["vue"]
    assert options == EnhanceOptions(max_tokens=300, include_metadata=False, use_cache=True)


def test_module_level_enhance_uses_given_service(docs_service) -> None:
    result = enhance("What is 2+2?", service=docs_service)

    assert result.enhanced_prompt == "What is 2+2?"


def test_breakdown_only_for_large_prompts(docs_service) -> None:
    enhancer = PromptEnhancer(docs_service)

    assert enhancer.breakdown("Fix the typo in the header") == []

    tasks = enhancer.breakdown("Build a dashboard", {"framework": "react"}, True)

    assert [task.title for task in tasks][0] == "Set up project structure"
    assert tasks[0].description == "Scaffold the project and tooling for react."


def test_from_config_wires_cache_and_rules(tmp_path: Path, docs_service) -> None:
    (tmp_path / ".promptenhance.yml").write_text(
        "cache:\n  enabled: true\nrules:\n  known_frameworks: [react]\n",
        encoding="utf-8",
    )

    enhancer = PromptEnhancer.from_config(load_config(tmp_path), service=docs_service)

    assert enhancer.cache is not None
    assert enhancer.runner is None
    assert enhancer.service is docs_service
    assert enhancer.detector.rules.known_frameworks == ("react",)
