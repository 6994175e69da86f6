"""Concurrent documentation retrieval with fallback content."""

from __future__ import annotations

import asyncio
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Dict, List, Sequence

from ..analysis.rules import RetrieverRules
from ..failsafe import FALLBACK_TAG, build_fallback_documentation
from ..logging import get_logger, preview
from ..models import DocumentationBundle
from .client import DocumentationService

logger = get_logger("docs.retriever")


class DocumentationRetriever:
    """Fetches documentation for several libraries at once.

    Every call runs the per-library fetches on its own thread pool and stops
    waiting once ``timeout`` elapses. The pool is shut down without joining the
    threads that are still busy. A failing or timed-out library is
    left out of the bundle without affecting the others, and the bundle is
    ordered by the requested library ids rather than completion order.
    """

    def __init__(
        self,
        service: DocumentationService,
        rules: RetrieverRules | None = None,
        *,
        timeout: float | None = None,
    ) -> None:
        self.service = service
        self.rules = rules or RetrieverRules()
        self.timeout = timeout

    def extract_topic(self, prompt: str) -> str:
        lowered = (prompt or "").lower()
        for keyword, topic in self.rules.topic_map:
            if keyword in lowered:
                return topic
        return self.rules.default_topic

    def fetch_docs(
        self, library_ids: Sequence[str], prompt: str, max_tokens: int
    ) -> DocumentationBundle:
        """Blocking fetch; safe to call with or without a running event loop."""
        try:
            return self._fetch_blocking(library_ids, prompt, max_tokens)
        except Exception as exc:
            logger.warning("Documentation retrieval failed: %s", exc)
            return self.fallback(prompt)

    async def fetch_docs_async(
        self, library_ids: Sequence[str], prompt: str, max_tokens: int
    ) -> DocumentationBundle:
        """Awaitable variant for callers that already run an event loop."""
        ids = list(dict.fromkeys(library_ids))
        if not ids:
            return self.fallback(prompt)
        topic = self.extract_topic(prompt)
        share = max(1, max_tokens // len(ids))
        loop = asyncio.get_running_loop()
        executor = ThreadPoolExecutor(max_workers=len(ids), thread_name_prefix="docs")
        try:
            results = await asyncio.gather(
                *(
                    self._await_one(loop, executor, library_id, topic, share)
                    for library_id in ids
                ),
                return_exceptions=True,
            )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return self._bundle(ids, list(results), prompt, topic, share)

    def fallback(self, prompt: str) -> DocumentationBundle:
        documents = build_fallback_documentation(prompt, self.rules)
        return DocumentationBundle(
            per_library_content={FALLBACK_TAG: "\n\n".join(documents.values())},
            succeeded_library_ids=[],
            libraries=[FALLBACK_TAG],
        )

    def _fetch_blocking(
        self, library_ids: Sequence[str], prompt: str, max_tokens: int
    ) -> DocumentationBundle:
        ids = list(dict.fromkeys(library_ids))
        if not ids:
            return self.fallback(prompt)
        topic = self.extract_topic(prompt)
        share = max(1, max_tokens // len(ids))
        executor = ThreadPoolExecutor(max_workers=len(ids), thread_name_prefix="docs")
        try:
            pending: List[Future] = [
                executor.submit(self.service.get_documentation, library_id, topic, share)
                for library_id in ids
            ]
            wait(pending, timeout=self.timeout)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        results: List[object] = []
        for future in pending:
            if future.cancelled() or not future.done():
                results.append(TimeoutError(f"no response within {self.timeout}s"))
            elif future.exception() is not None:
                results.append(future.exception())
            else:
                results.append(future.result())
        return self._bundle(ids, results, prompt, topic, share)

    def _bundle(
        self,
        ids: List[str],
        results: List[object],
        prompt: str,
        topic: str,
        share: int,
    ) -> DocumentationBundle:
        content: Dict[str, str] = {}
        succeeded: List[str] = []
        for library_id, result in zip(ids, results):
            if isinstance(result, BaseException):
                reason = str(result) or type(result).__name__
                logger.warning("Documentation fetch failed for %s: %s", library_id, reason)
                continue
            if not isinstance(result, str) or not result.strip():
                logger.warning("Documentation for %s was empty", library_id)
                continue
            content[library_id] = result
            succeeded.append(library_id)

        if not succeeded:
            logger.warning("No documentation retrieved for '%s'; using fallback", preview(prompt))
            return self.fallback(prompt)
        logger.debug("Retrieved documentation for %s (topic=%s, share=%d)", succeeded, topic, share)
        return DocumentationBundle(
            per_library_content=content,
            succeeded_library_ids=succeeded,
            libraries=list(succeeded),
        )

    async def _await_one(
        self,
        loop: asyncio.AbstractEventLoop,
        executor: ThreadPoolExecutor,
        library_id: str,
        topic: str,
        max_tokens: int,
    ) -> str:
        call = loop.run_in_executor(
            executor, self.service.get_documentation, library_id, topic, max_tokens
        )
        if self.timeout is None:
            return await call
        return await asyncio.wait_for(call, timeout=self.timeout)


__all__ = ["DocumentationRetriever"]
