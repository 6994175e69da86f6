"""In-memory collaborators shared by the test suite."""

from __future__ import annotations

import threading
from typing import Iterable, List, Mapping, Union

from promptenhance.llm.runner import LLMRequest, LLMRunner
from promptenhance.models import LibraryCandidate

DocResponse = Union[str, Exception]


class FakeDocumentationService:
    """Documentation catalog answering from dictionaries and recording every call."""

    def __init__(
        self,
        catalog: Mapping[str, Iterable[LibraryCandidate]] | None = None,
        docs: Mapping[str, DocResponse] | None = None,
    ) -> None:
        self.catalog = {name.lower(): list(items) for name, items in (catalog or {}).items()}
        self.docs = dict(docs or {})
        self.resolve_calls: List[str] = []
        self.doc_calls: List[tuple[str, str, int]] = []
        self._lock = threading.Lock()

    def resolve_library_id(self, name: str) -> List[LibraryCandidate]:
        self.resolve_calls.append(name)
        return [
            LibraryCandidate(
                id=item.id,
                name=item.name,
                description=item.description,
                trust_score=item.trust_score,
                code_snippets=item.code_snippets,
            )
            for item in self.catalog.get(name.lower(), [])
        ]

    def get_documentation(self, library_id: str, topic: str, max_tokens: int) -> str:
        with self._lock:
            self.doc_calls.append((library_id, topic, max_tokens))
        response = self.docs.get(library_id)
        if response is None:
            raise RuntimeError(f"unknown library {library_id}")
        if isinstance(response, Exception):
            raise response
        return response


def library(library_id: str, name: str, trust: float = 9.0) -> LibraryCandidate:
    return LibraryCandidate(id=library_id, name=name, trust_score=trust)


def default_service() -> FakeDocumentationService:
    """Catalog covering the frameworks most tests detect."""
    return FakeDocumentationService(
        catalog={
            "react": [library("/facebook/react", "React")],
            "nextjs": [library("/vercel/next.js", "Next.js")],
            "typescript": [library("/microsoft/typescript", "TypeScript")],
            "html": [library("/mdn/html", "HTML")],
            "css": [library("/mdn/css", "CSS")],
            "javascript": [library("/mdn/javascript", "JavaScript")],
        },
        docs={
            "/facebook/react": REACT_DOCS,
            "/vercel/next.js": NEXT_DOCS,
            "/microsoft/typescript": TYPESCRIPT_DOCS,
            "/mdn/html": HTML_DOCS,
            "/mdn/css": "## Selectors\nUse class selectors for reusable styling.",
            "/mdn/javascript": "## Functions\nPrefer small pure functions.",
        },
    )


def scripted_runner(
    responses: Iterable[Union[str, Exception]],
    calls: List[LLMRequest] | None = None,
) -> LLMRunner:
    """LLMRunner whose transport replays ``responses`` in order."""
    queue = list(responses)

    def _run(request: LLMRequest) -> str:
        if calls is not None:
            calls.append(request)
        if not queue:
            raise RuntimeError("no scripted response left")
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    return LLMRunner(model="test-model", base_url=None, api_key=None, runner=_run)


def failing_runner(message: str = "model offline") -> LLMRunner:
    def _run(request: LLMRequest) -> str:
        raise RuntimeError(message)

    return LLMRunner(model="test-model", base_url=None, api_key=None, runner=_run)


REACT_DOCS = """## Components
Components are reusable pieces of UI. Define a component as a function that returns JSX.

## Hooks
Use the useState hook to add state to a component. Example:
```jsx
const [count, setCount] = useState(0);
```

## Context
Context lets a parent pass data deep into the tree without props."""

NEXT_DOCS = """## API Routes
API routes let you build an api endpoint inside a Next.js app.

## Data Fetching
Fetch data on the server with async components.

## Authentication
Protect routes with middleware that checks the session."""

TYPESCRIPT_DOCS = """## Types
Prefer interfaces for object shapes and strict mode for new projects.

## Generics
Generics keep functions reusable while preserving types."""

HTML_DOCS = """## Semantic elements
Use header, main and footer elements to describe page structure.

## Forms
Label every input element so the form is accessible."""


__all__ = [
    "FakeDocumentationService",
    "default_service",
    "failing_runner",
    "library",
    "scripted_runner",
]
