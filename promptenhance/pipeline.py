"""End-to-end prompt enhancement pipeline."""

from __future__ import annotations

from dataclasses import asdict
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from .analysis.complexity import (
    ComplexityClassifier,
    DeterministicClassifier,
    ModelAssistedClassifier,
)
from .analysis.frameworks import FrameworkDetector
from .analysis.rules import DEFAULT_RULES, RuleSet
from .config import EnhancerConfig
from .docs.client import Context7Client, DocumentationService
from .docs.retriever import DocumentationRetriever
from .docs.scorer import RelevanceScorer
from .docs.selector import LibrarySelector
from .llm.runner import LLMRunner
from .logging import get_logger, preview
from .models import (
    ComplexityAssessment,
    DocumentationBundle,
    EnhanceOptions,
    EnhanceResult,
    EnhancementContext,
    FrameworkDetectionResult,
    ProjectContext,
    QualityRequirement,
    RequestContext,
    TaskRecord,
)
from .prompting.assembler import ModelEnhancedAssembler, PromptAssembler
from .prompting.constants import DEFAULT_MAX_TOKENS
from .quality.requirements import QualityRequirementsExtractor
from .stores.enhancement_cache import EnhancementCache, request_fingerprint
from .tasks.breakdown import TaskBreakdownPlanner

logger = get_logger("pipeline")

ContextInput = Union[RequestContext, Mapping[str, Any], None]
OptionsInput = Union[EnhanceOptions, Mapping[str, Any], None]

DEFAULT_CACHE_PATH = ".promptenhance/cache.json"


class PromptEnhancer:
    """Wires the classifier, detector, retrieval, quality and assembly stages."""

    def __init__(
        self,
        service: DocumentationService | None = None,
        *,
        rules: RuleSet | None = None,
        runner: LLMRunner | None = None,
        cache: EnhancementCache | None = None,
        classifier: ComplexityClassifier | None = None,
        use_model_assembly: bool = False,
        docs_timeout: float | None = None,
        docs_max_tokens: int | None = None,
        default_max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        self.rules = rules or DEFAULT_RULES
        self.service = service if service is not None else Context7Client()
        self.runner = runner
        self.cache = cache
        self.classifier = classifier or DeterministicClassifier(self.rules.classifier)
        self.detector = FrameworkDetector(self.rules.detector)
        self.selector = LibrarySelector(
            self.service, self.rules.selector, stop_words=self.rules.retriever.stop_words
        )
        self.retriever = DocumentationRetriever(
            self.service, self.rules.retriever, timeout=docs_timeout
        )
        self.quality = QualityRequirementsExtractor(self.rules.quality)
        self.assembler = PromptAssembler(RelevanceScorer(self.rules.retriever))
        self.model_assembler: Optional[ModelEnhancedAssembler] = None
        if use_model_assembly:
            self.model_assembler = ModelEnhancedAssembler(self.assembler, runner)
        self.planner = TaskBreakdownPlanner(self.rules.breakdown, runner)
        self.docs_max_tokens = docs_max_tokens
        self.default_max_tokens = default_max_tokens
        self._signature = self.rules.signature()

    @classmethod
    def from_config(
        cls,
        config: EnhancerConfig,
        *,
        service: DocumentationService | None = None,
    ) -> "PromptEnhancer":
        rules = DEFAULT_RULES.with_overrides(config.rules)
        wants_model = config.classifier.use_model or config.assembly.use_model
        runner = LLMRunner.from_config(config.llm) if (config.llm or wants_model) else None
        classifier: ComplexityClassifier | None = None
        if config.classifier.use_model:
            classifier = ModelAssistedClassifier(DeterministicClassifier(rules.classifier), runner)
        if service is None:
            service = Context7Client(
                config.docs.base_url,
                api_key=config.docs.api_key,
                timeout=config.docs.timeout or 30.0,
                retries=config.docs.retries or 3,
            )
        cache = None
        if config.cache.enabled:
            cache = EnhancementCache(config.cache.path or config.root / DEFAULT_CACHE_PATH)
        return cls(
            service,
            rules=rules,
            runner=runner,
            cache=cache,
            classifier=classifier,
            use_model_assembly=config.assembly.use_model,
            docs_timeout=config.docs.timeout,
            docs_max_tokens=config.docs.max_tokens,
            default_max_tokens=config.assembly.max_tokens or DEFAULT_MAX_TOKENS,
        )

    # ------------------------------------------------------------------
    # Public API

    def enhance(
        self,
        prompt: str,
        context: ContextInput = None,
        options: OptionsInput = None,
    ) -> EnhanceResult:
        """Return the enhanced prompt; never raises for upstream failures."""
        started = time.perf_counter()
        prompt = prompt or ""
        try:
            request = coerce_context(context)
            opts = coerce_options(options)
            fingerprint = None
            if opts.use_cache and self.cache is not None:
                fingerprint = request_fingerprint(
                    prompt,
                    _context_payload(request),
                    {"max_tokens": opts.max_tokens, "include_metadata": opts.include_metadata},
                )
                cached = self.cache.get(fingerprint, signature=self._signature)
                if cached is not None:
                    logger.debug("Cache hit for '%s'", preview(prompt))
                    if opts.include_metadata:
                        metadata = dict(cached.context_used.get("metadata") or {})
                        metadata["cache_hit"] = True
                        metadata["response_time_ms"] = _elapsed_ms(started)
                        cached.context_used["metadata"] = metadata
                    return cached

            result = self._run(prompt, request, opts, started)
            if fingerprint is not None and self.cache is not None:
                self.cache.store(fingerprint, signature=self._signature, result=result)
                self.cache.persist()
            return result
        except Exception as exc:
            logger.error("Prompt enhancement failed for '%s': %s", preview(prompt), exc)
            return EnhanceResult(enhanced_prompt=prompt, success=False, error=str(exc))

    def assess(
        self, prompt: str, project_context: ProjectContext | None = None
    ) -> ComplexityAssessment:
        return self.classifier.assess(prompt, project_context)

    def breakdown(
        self,
        prompt: str,
        context: ContextInput = None,
        include_breakdown: bool | None = None,
    ) -> List[TaskRecord]:
        """Return task records when the prompt warrants decomposition, else nothing."""
        if not self.planner.should_breakdown(prompt, include_breakdown):
            return []
        request = coerce_context(context)
        detection = self.detector.detect(
            prompt, request.project_context, explicit_framework=request.framework
        )
        frameworks = [] if detection.method == "fallback" else detection.detected_frameworks
        return self.planner.plan(prompt, frameworks)

    # ------------------------------------------------------------------
    # Stages

    def _run(
        self,
        prompt: str,
        request: RequestContext,
        opts: EnhanceOptions,
        started: float,
    ) -> EnhanceResult:
        project = request.project_context or ProjectContext()

        assessment = self.classifier.assess(prompt, request.project_context)
        complexity = assessment.complexity
        logger.debug(
            "Classified '%s' as %s (score=%s)", preview(prompt), complexity.level, complexity.score
        )

        detection = self.detector.detect(
            prompt, request.project_context, explicit_framework=request.framework
        )
        logger.debug("Detected frameworks %s via %s", detection.detected_frameworks, detection.method)

        library_ids = self.selector.select(prompt, detection.detected_frameworks, complexity)
        detection.library_ids = list(library_ids)

        max_tokens = opts.max_tokens or self.default_max_tokens
        docs_tokens = PromptAssembler.ceiling_for(complexity, max_tokens)
        if self.docs_max_tokens is not None:
            docs_tokens = min(docs_tokens, self.docs_max_tokens)
        documentation = self.retriever.fetch_docs(library_ids, prompt, docs_tokens)
        logger.debug(
            "Documentation libraries: %s (fallback=%s)",
            documentation.libraries,
            documentation.is_fallback,
        )

        framework = detection.detected_frameworks[0] if detection.detected_frameworks else None
        requirements = self.quality.extract(prompt, framework, request.project_context)

        context = EnhancementContext(
            repo_facts=list(project.repo_facts),
            code_snippets=list(project.code_snippets),
            documentation=documentation,
            quality_requirements=requirements,
            frameworks=detection,
            framework_docs=list(project.framework_docs),
            project_docs=list(project.project_docs),
        )
        if self.model_assembler is not None:
            enhanced = self.model_assembler.assemble(
                prompt,
                context,
                complexity,
                max_tokens=max_tokens,
                strategy=assessment.response_strategy,
                style=request.style,
            )
        else:
            enhanced = self.assembler.assemble(prompt, context, complexity, max_tokens=max_tokens)
        logger.debug("Enhanced prompt length: %d characters", len(enhanced))

        context_used: Dict[str, Any] = {
            "repo_facts": list(project.repo_facts),
            "code_snippets": list(project.code_snippets),
            "framework_docs": list(project.framework_docs),
            "project_docs": list(project.project_docs),
            "context7_docs": _documentation_texts(documentation),
        }
        if opts.include_metadata:
            context_used["metadata"] = _metadata(
                assessment, detection, documentation, requirements, started
            )
        return EnhanceResult(enhanced_prompt=enhanced, context_used=context_used)


def enhance(
    prompt: str,
    context: ContextInput = None,
    options: OptionsInput = None,
    *,
    service: DocumentationService | None = None,
) -> EnhanceResult:
    """Enhance a prompt with a default pipeline."""
    return PromptEnhancer(service).enhance(prompt, context, options)


def coerce_context(context: ContextInput) -> RequestContext:
    """Accept a :class:`RequestContext` or a plain mapping with camel- or snake-case keys."""
    if context is None:
        return RequestContext()
    if isinstance(context, RequestContext):
        return context
    project_data = _pick(context, "project_context", "projectContext")
    project = None
    if isinstance(project_data, ProjectContext):
        project = project_data
    elif isinstance(project_data, Mapping):
        project = ProjectContext(
            repo_facts=_str_list(_pick(project_data, "repo_facts", "repoFacts")),
            code_snippets=_str_list(_pick(project_data, "code_snippets", "codeSnippets")),
            framework_docs=_str_list(_pick(project_data, "framework_docs", "frameworkDocs")),
            project_docs=_str_list(_pick(project_data, "project_docs", "projectDocs")),
            dependencies=_str_list(project_data.get("dependencies")),
            suggested_frameworks=_str_list(
                _pick(project_data, "suggested_frameworks", "suggestedFrameworks")
            ),
        )
    framework = context.get("framework")
    style = context.get("style")
    return RequestContext(
        framework=str(framework) if framework else None,
        style=str(style) if style else None,
        project_context=project,
    )


def coerce_options(options: OptionsInput) -> EnhanceOptions:
    if options is None:
        return EnhanceOptions()
    if isinstance(options, EnhanceOptions):
        return options
    max_tokens = _pick(options, "max_tokens", "maxTokens")
    return EnhanceOptions(
        max_tokens=int(max_tokens) if max_tokens is not None else None,
        include_metadata=bool(_pick(options, "include_metadata", "includeMetadata")),
        use_cache=bool(_pick(options, "use_cache", "useCache")),
    )


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


def _str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(item) for item in value if item is not None]


def _context_payload(request: RequestContext) -> Dict[str, Any]:
    return {
        "framework": request.framework,
        "style": request.style,
        "project_context": asdict(request.project_context) if request.project_context else None,
    }


def _documentation_texts(documentation: DocumentationBundle) -> List[str]:
    return [text for text in documentation.per_library_content.values() if text.strip()]


def _metadata(
    assessment: ComplexityAssessment,
    detection: FrameworkDetectionResult,
    documentation: DocumentationBundle,
    requirements: Sequence[QualityRequirement],
    started: float,
) -> Dict[str, Any]:
    complexity = assessment.complexity
    return {
        "cache_hit": False,
        "response_time_ms": _elapsed_ms(started),
        "libraries_resolved": list(documentation.succeeded_library_ids),
        "complexity": {
            "level": complexity.level,
            "score": complexity.score,
            "indicators": list(complexity.indicators),
            "user_expertise_level": assessment.user_expertise_level,
            "response_strategy": assessment.response_strategy,
            "confidence": assessment.confidence,
            "source": assessment.source,
        },
        "frameworks": asdict(detection),
        "quality_requirements": [asdict(requirement) for requirement in requirements],
    }


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


__all__ = ["PromptEnhancer", "coerce_context", "coerce_options", "enhance"]
