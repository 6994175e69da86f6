"""Tests for concurrent documentation retrieval."""

from __future__ import annotations

import asyncio
import time

from promptenhance.docs.retriever import DocumentationRetriever
from tests._fixtures.fakes import FakeDocumentationService


class _DelayedService(FakeDocumentationService):
    def __init__(self, delays, **kwargs) -> None:
        super().__init__(**kwargs)
        self.delays = delays

    def get_documentation(self, library_id: str, topic: str, max_tokens: int) -> str:
        time.sleep(self.delays.get(library_id, 0))
        return super().get_documentation(library_id, topic, max_tokens)


def test_one_failure_does_not_affect_other_libraries() -> None:
    service = FakeDocumentationService(
        docs={"/vercel/next.js": "## Routing\nUse the app router.", "/broken": RuntimeError("boom")}
    )
    retriever = DocumentationRetriever(service)

    bundle = retriever.fetch_docs(["/vercel/next.js", "/broken"], "Add routing", 1000)

    assert bundle.succeeded_library_ids == ["/vercel/next.js"]
    assert list(bundle.per_library_content) == ["/vercel/next.js"]
    assert not bundle.is_fallback
    assert bundle.combined().startswith("## Routing")


def test_total_failure_returns_tagged_fallback() -> None:
    service = FakeDocumentationService(docs={"/a": RuntimeError("down"), "/b": ""})
    retriever = DocumentationRetriever(service)

    bundle = retriever.fetch_docs(["/a", "/b"], "Build an html page", 1000)

    assert bundle.libraries == ["fallback"]
    assert bundle.succeeded_library_ids == []
    assert "HTML Best Practices" in bundle.combined()


def test_no_libraries_means_fallback() -> None:
    retriever = DocumentationRetriever(FakeDocumentationService())

    bundle = retriever.fetch_docs([], "Explain closures", 500)

    assert bundle.is_fallback
    assert "General Programming Best Practices" in bundle.combined()


def test_results_follow_requested_order_not_completion_order() -> None:
    service = _DelayedService(
        {"/slow": 0.2},
        docs={"/slow": "slow docs", "/fast": "fast docs"},
    )
    retriever = DocumentationRetriever(service)

    bundle = retriever.fetch_docs(["/slow", "/fast"], "anything", 1000)

    assert bundle.succeeded_library_ids == ["/slow", "/fast"]
    assert list(bundle.per_library_content) == ["/slow", "/fast"]


def test_timed_out_library_is_excluded() -> None:
    service = _DelayedService(
        {"/slow": 2.0},
        docs={"/slow": "slow docs", "/fast": "fast docs"},
    )
    retriever = DocumentationRetriever(service, timeout=0.2)

    started = time.monotonic()
    bundle = retriever.fetch_docs(["/slow", "/fast"], "anything", 1000)
    elapsed = time.monotonic() - started

    assert bundle.succeeded_library_ids == ["/fast"]
    assert elapsed < 1.0


def test_fetch_inside_running_event_loop() -> None:
    service = FakeDocumentationService(docs={"/a": "a docs", "/b": "b docs"})
    retriever = DocumentationRetriever(service, timeout=1.0)

    async def caller():
        return retriever.fetch_docs(["/a", "/b"], "anything", 1000)

    bundle = asyncio.run(caller())

    assert bundle.succeeded_library_ids == ["/a", "/b"]


def test_async_fetch_respects_timeout() -> None:
    service = _DelayedService(
        {"/slow": 2.0},
        docs={"/slow": "slow docs", "/fast": "fast docs"},
    )
    retriever = DocumentationRetriever(service, timeout=0.2)

    started = time.monotonic()
    bundle = asyncio.run(retriever.fetch_docs_async(["/slow", "/fast"], "anything", 1000))
    elapsed = time.monotonic() - started

    assert bundle.succeeded_library_ids == ["/fast"]
    assert elapsed < 1.0


def test_internal_error_falls_back(monkeypatch) -> None:
    retriever = DocumentationRetriever(FakeDocumentationService(docs={"/a": "a docs"}))

    def explode(*_args):
        raise RuntimeError("pool unavailable")

    monkeypatch.setattr(retriever, "_fetch_blocking", explode)

    bundle = retriever.fetch_docs(["/a"], "Build an html page", 1000)

    assert bundle.is_fallback
    assert "HTML Best Practices" in bundle.combined()


def test_budget_is_shared_and_topic_extracted() -> None:
    service = FakeDocumentationService(docs={"/a": "a", "/b": "b"})
    retriever = DocumentationRetriever(service)

    retriever.fetch_docs(["/a", "/b"], "Add login to my app", 1000)

    assert sorted(service.doc_calls) == [
        ("/a", "authentication", 500),
        ("/b", "authentication", 500),
    ]


def test_topic_defaults_to_best_practices() -> None:
    retriever = DocumentationRetriever(FakeDocumentationService())

    assert retriever.extract_topic("hello there") == "best practices"
    assert retriever.extract_topic("Write a component") == "components"
