from __future__ import annotations

import pytest

from tests._fixtures.fakes import FakeDocumentationService, default_service


@pytest.fixture
def docs_service() -> FakeDocumentationService:
    """Provide a fake documentation catalog with a handful of common libraries."""
    return default_service()


@pytest.fixture(autouse=True)
def _isolate_model_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "PROMPTENHANCE_LLM_MODEL",
        "PROMPTENHANCE_LLM_BASE_URL",
        "PROMPTENHANCE_LLM_API_KEY",
        "OPENAI_MODEL",
        "OPENAI_BASE_URL",
        "OPENAI_API_KEY",
        "PROMPTENHANCE_DOCS_BASE_URL",
        "PROMPTENHANCE_DOCS_API_KEY",
        "CONTEXT7_BASE_URL",
        "CONTEXT7_API_KEY",
    ):
        monkeypatch.delenv(key, raising=False)
