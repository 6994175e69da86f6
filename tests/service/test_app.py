"""Tests for the FastAPI service mode."""

from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from promptenhance.pipeline import PromptEnhancer
from promptenhance.service import create_app

ECOMMERCE = (
    "Build a complete full-stack e-commerce platform with authentication, "
    "product search, and checkout"
)


@pytest.fixture
def client(docs_service) -> TestClient:
    enhancer = PromptEnhancer(docs_service)
    app = create_app(lambda: enhancer)
    return TestClient(app)


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_enhance_endpoint(client: TestClient) -> None:
    response = client.post(
        "/enhance",
        json={
            "prompt": ECOMMERCE,
            "context": {"project_context": {"repo_facts": ["uses TypeScript", "uses Jest"]}},
            "options": {"include_metadata": True},
        },
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["error"] is None
    assert data["enhanced_prompt"].startswith(ECOMMERCE)
    assert data["context_used"]["repo_facts"] == ["uses TypeScript", "uses Jest"]
    assert data["context_used"]["metadata"]["complexity"]["level"] == "complex"


def test_enhance_endpoint_without_context(client: TestClient) -> None:
    response = client.post("/enhance", json={"prompt": "What is 2+2?"})

    assert response.status_code == 200
    assert response.json()["enhanced_prompt"] == "What is 2+2?"


def test_enhance_endpoint_rejects_negative_budget(client: TestClient) -> None:
    response = client.post(
        "/enhance", json={"prompt": "hi", "options": {"max_tokens": -5}}
    )

    assert response.status_code == 422


def test_classify_endpoint(client: TestClient) -> None:
    response = client.post("/classify", json={"prompt": "What is 2+2?"})

    assert response.status_code == 200
    data = response.json()
    assert data["level"] == "simple"
    assert data["response_strategy"] == "minimal"
    assert data["estimated_tokens"] == 400
    assert data["source"] == "heuristic"
    assert "very-short" in data["indicators"]


def test_breakdown_endpoint(client: TestClient) -> None:
    response = client.post(
        "/breakdown",
        json={
            "prompt": "Build a todo app:\n- Set up the database schema\n- Write tests",
        },
    )

    assert response.status_code == 200
    tasks = response.json()["tasks"]
    assert [task["title"] for task in tasks] == ["Set up the database schema", "Write tests"]
    assert tasks[0]["priority"] == "high"


def test_breakdown_endpoint_skips_small_prompts(client: TestClient) -> None:
    response = client.post("/breakdown", json={"prompt": "Fix the typo"})

    assert response.status_code == 200
    assert response.json() == {"tasks": []}
