"""FastAPI application entrypoint for promptenhance service mode."""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import Any, Callable, Dict, List, Optional, TypeVar

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from ..models import EnhanceOptions, ProjectContext, RequestContext
from ..pipeline import PromptEnhancer

T = TypeVar("T")


class ProjectContextModel(BaseModel):
    repo_facts: List[str] = Field(default_factory=list)
    code_snippets: List[str] = Field(default_factory=list)
    framework_docs: List[str] = Field(default_factory=list)
    project_docs: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)
    suggested_frameworks: List[str] = Field(default_factory=list)

    def to_project_context(self) -> ProjectContext:
        return ProjectContext(**self.model_dump())


class ContextModel(BaseModel):
    framework: Optional[str] = None
    style: Optional[str] = None
    project_context: Optional[ProjectContextModel] = None

    def to_request_context(self) -> RequestContext:
        project = self.project_context.to_project_context() if self.project_context else None
        return RequestContext(framework=self.framework, style=self.style, project_context=project)


class OptionsModel(BaseModel):
    max_tokens: Optional[int] = Field(default=None, ge=0)
    include_metadata: bool = False
    use_cache: bool = False


class EnhanceRequest(BaseModel):
    prompt: str
    context: Optional[ContextModel] = None
    options: Optional[OptionsModel] = None


class EnhanceResponse(BaseModel):
    enhanced_prompt: str
    context_used: Dict[str, Any]
    success: bool
    error: Optional[str] = None


class ClassifyRequest(BaseModel):
    prompt: str
    project_context: Optional[ProjectContextModel] = None


class ClassifyResponse(BaseModel):
    level: str
    score: float
    indicators: List[str]
    user_expertise_level: str
    response_strategy: str
    estimated_tokens: int
    confidence: float
    source: str


class BreakdownRequest(BaseModel):
    prompt: str
    context: Optional[ContextModel] = None
    include_breakdown: Optional[bool] = None


class TaskModel(BaseModel):
    title: str
    description: str
    priority: str
    category: str


class BreakdownResponse(BaseModel):
    tasks: List[TaskModel]


class HealthResponse(BaseModel):
    status: str


def _default_enhancer() -> PromptEnhancer:
    return PromptEnhancer()


async def _offload(func: Callable[[], T]) -> T:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, func)


def create_app(
    enhancer_factory: Callable[[], PromptEnhancer] = _default_enhancer,
) -> FastAPI:
    """Create the FastAPI application exposing prompt enhancement."""

    app = FastAPI(title="PromptEnhance Service", version="1.0.0")

    async def get_enhancer() -> PromptEnhancer:
        return enhancer_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/enhance", response_model=EnhanceResponse)
    async def enhance_prompt(
        payload: EnhanceRequest,
        enhancer: PromptEnhancer = Depends(get_enhancer),
    ) -> EnhanceResponse:
        context = payload.context.to_request_context() if payload.context else None
        options = EnhanceOptions(**payload.options.model_dump()) if payload.options else None
        result = await _offload(lambda: enhancer.enhance(payload.prompt, context, options))
        return EnhanceResponse(**result.to_dict())

    @app.post("/classify", response_model=ClassifyResponse)
    async def classify_prompt(
        payload: ClassifyRequest,
        enhancer: PromptEnhancer = Depends(get_enhancer),
    ) -> ClassifyResponse:
        project = (
            payload.project_context.to_project_context() if payload.project_context else None
        )
        assessment = await _offload(lambda: enhancer.assess(payload.prompt, project))
        complexity = assessment.complexity
        return ClassifyResponse(
            level=complexity.level,
            score=complexity.score,
            indicators=list(complexity.indicators),
            user_expertise_level=assessment.user_expertise_level,
            response_strategy=assessment.response_strategy,
            estimated_tokens=assessment.estimated_tokens,
            confidence=assessment.confidence,
            source=assessment.source,
        )

    @app.post("/breakdown", response_model=BreakdownResponse)
    async def breakdown_prompt(
        payload: BreakdownRequest,
        enhancer: PromptEnhancer = Depends(get_enhancer),
    ) -> BreakdownResponse:
        context = payload.context.to_request_context() if payload.context else None
        tasks = await _offload(
            lambda: enhancer.breakdown(payload.prompt, context, payload.include_breakdown)
        )
        return BreakdownResponse(tasks=[TaskModel(**asdict(task)) for task in tasks])

    @app.exception_handler(RuntimeError)
    async def runtime_error_handler(
        _: Any, exc: RuntimeError
    ) -> JSONResponse:  # pragma: no cover - simple mapping
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "0.0.0.0",
    port: int = 8000,
    enhancer_factory: Callable[[], PromptEnhancer] = _default_enhancer,
) -> None:  # pragma: no cover - integration path
    app = create_app(enhancer_factory)
    uvicorn.run(app, host=host, port=port)


__all__ = ["create_app", "run_service"]
