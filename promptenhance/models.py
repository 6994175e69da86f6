"""Core data models shared across promptenhance components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

LEVELS: Tuple[str, ...] = ("simple", "medium", "complex")
PRIORITIES: Tuple[str, ...] = ("low", "medium", "high", "critical")
DETECTION_METHODS: Tuple[str, ...] = ("explicit", "pattern", "project", "fallback")


@dataclass(frozen=True)
class PromptComplexity:
    """Complexity classification derived once per request."""

    level: str
    score: float
    indicators: Tuple[str, ...] = ()


@dataclass
class ComplexityAssessment:
    """Classification enriched with expertise and response strategy estimates."""

    complexity: PromptComplexity
    user_expertise_level: str
    response_strategy: str
    estimated_tokens: int
    confidence: float
    source: str = "heuristic"


@dataclass
class FrameworkDetectionResult:
    """Frameworks inferred for a prompt and how they were found."""

    detected_frameworks: List[str]
    confidence: float
    suggestions: List[str] = field(default_factory=list)
    library_ids: List[str] = field(default_factory=list)
    method: str = "pattern"


@dataclass
class LibraryCandidate:
    """Documentation source resolved from the external catalog."""

    id: str
    name: str
    score: int = 0
    topics: List[str] = field(default_factory=list)
    description: str = ""
    trust_score: float = 0.0
    code_snippets: int = 0


@dataclass
class DocumentationBundle:
    """Documentation retrieved for the selected libraries."""

    per_library_content: Dict[str, str] = field(default_factory=dict)
    succeeded_library_ids: List[str] = field(default_factory=list)
    libraries: List[str] = field(default_factory=list)

    @property
    def is_fallback(self) -> bool:
        return self.libraries == ["fallback"]

    def combined(self) -> str:
        """Join per-library content in library order."""
        parts = [content.strip() for content in self.per_library_content.values()]
        return "\n\n".join(part for part in parts if part)


@dataclass(frozen=True)
class ScoredSection:
    """Chunk of documentation or code ranked during truncation."""

    content: str
    score: int
    token_count: int
    position: int = 0


@dataclass(frozen=True)
class QualityRequirement:
    """Non-functional concern communicated to the downstream generator."""

    type: str
    priority: str
    description: str


@dataclass
class ProjectContext:
    """Facts about the caller's project supplied by a repository analyser."""

    repo_facts: List[str] = field(default_factory=list)
    code_snippets: List[str] = field(default_factory=list)
    framework_docs: List[str] = field(default_factory=list)
    project_docs: List[str] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    suggested_frameworks: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(
            (
                self.repo_facts,
                self.code_snippets,
                self.framework_docs,
                self.project_docs,
                self.dependencies,
                self.suggested_frameworks,
            )
        )


@dataclass(frozen=True)
class EnhancementContext:
    """Aggregate context consumed by the prompt assembler."""

    repo_facts: List[str] = field(default_factory=list)
    code_snippets: List[str] = field(default_factory=list)
    documentation: Optional[DocumentationBundle] = None
    quality_requirements: List[QualityRequirement] = field(default_factory=list)
    frameworks: Optional[FrameworkDetectionResult] = None
    framework_docs: List[str] = field(default_factory=list)
    project_docs: List[str] = field(default_factory=list)


@dataclass
class RequestContext:
    """Caller-supplied hints accompanying a prompt."""

    framework: Optional[str] = None
    style: Optional[str] = None
    project_context: Optional[ProjectContext] = None


@dataclass
class EnhanceOptions:
    """Per-request switches for the enhancement pipeline."""

    max_tokens: Optional[int] = None
    include_metadata: bool = False
    use_cache: bool = False


@dataclass
class TaskRecord:
    """Unit of work emitted for an external todo store."""

    title: str
    description: str
    priority: str = "medium"
    category: str = "feature"


@dataclass
class EnhanceResult:
    """Outcome of a single enhancement request."""

    enhanced_prompt: str
    context_used: Dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "ComplexityAssessment",
    "DETECTION_METHODS",
    "DocumentationBundle",
    "EnhanceOptions",
    "EnhanceResult",
    "EnhancementContext",
    "FrameworkDetectionResult",
    "LEVELS",
    "LibraryCandidate",
    "PRIORITIES",
    "ProjectContext",
    "PromptComplexity",
    "QualityRequirement",
    "RequestContext",
    "ScoredSection",
    "TaskRecord",
]
