"""Versioned keyword tables injected into the enhancement components.

Every heuristic in the pipeline reads its keywords and weights from one of the
frozen tables below so they can be tuned or replaced without touching logic.
``rules_signature`` fingerprints a set of tables for cache invalidation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
import hashlib
import json
from typing import Any, Dict, Mapping, Tuple

RULES_VERSION = "1"


@dataclass(frozen=True)
class ClassifierRules:
    """Weights and patterns for the deterministic complexity classifier."""

    very_short_length: int = 20
    short_length: int = 50
    long_length: int = 200
    very_short_bonus: float = 3
    short_bonus: float = 2
    long_penalty: float = 1
    simple_patterns: Tuple[str, ...] = (
        r"^(yes|no|ok|sure|maybe)\s*$",
        r"^(yes|no)\s+or\s+(yes|no)",
        r"^(what|how|when|where|why)\s+\w+\?$",
        r"^(is|are|was|were|do|does|did|can|could|will|would)\s+\w+",
        r"^what\s+is\s+\d+\s*[\+\-\*\/]\s*\d+\s*\??$",
        r"^\d+\s*[\+\-\*\/]\s*\d+\??$",
        r"^how\s+(do\s+i|to)\s+(create|make)\s+a\s+(\w+)\??$",
    )
    simple_bonus: float = 2
    complex_patterns: Tuple[str, ...] = (
        r"create|build|implement|develop",
        r"component|function|class|service",
        r"api|endpoint|database|schema",
        r"test|testing|debug|fix",
        r"deploy|production|staging",
    )
    complex_penalty: float = 1
    framework_keywords: Tuple[str, ...] = (
        "react",
        "vue",
        "angular",
        "typescript",
        "javascript",
        "node",
        "express",
        "next",
        "nuxt",
        "svelte",
    )
    framework_penalty: float = 0.5
    simple_threshold: float = 2
    medium_threshold: float = 0
    # Expertise inference over project facts and snippets.
    advanced_snippet_markers: Tuple[str, ...] = (
        "async/await",
        "Promise",
        "TypeScript",
        "generics",
        "decorators",
    )
    testing_fact_markers: Tuple[str, ...] = ("test", "jest", "vitest")
    tooling_fact_markers: Tuple[str, ...] = ("webpack", "vite", "eslint", "prettier")
    delivery_fact_markers: Tuple[str, ...] = ("docker", "ci/cd", "github actions", "deploy")


@dataclass(frozen=True)
class DetectorRules:
    """Framework vocabulary and confidence weights for detection."""

    known_frameworks: Tuple[str, ...] = (
        "react",
        "vue",
        "angular",
        "svelte",
        "nextjs",
        "nuxt",
        "sveltekit",
        "typescript",
        "javascript",
        "html",
        "css",
        "tailwind",
        "bootstrap",
        "express",
        "fastify",
        "koa",
        "node",
        "python",
        "django",
        "flask",
        "mongodb",
        "postgresql",
        "mysql",
        "redis",
        "elasticsearch",
    )
    aliases: Mapping[str, str] = field(
        default_factory=lambda: {
            "next.js": "nextjs",
            "next js": "nextjs",
            "react.js": "react",
            "reactjs": "react",
            "vue.js": "vue",
            "vuejs": "vue",
            "node.js": "node",
            "nodejs": "node",
            "tailwindcss": "tailwind",
            "postgres": "postgresql",
            "mongo": "mongodb",
            "ts": "typescript",
        }
    )
    direct_confidence: float = 0.9
    task_inference: Tuple[Tuple[Tuple[str, ...], Tuple[Tuple[str, float], ...]], ...] = (
        (
            ("component", "ui element", "interface", "user interface"),
            (("react", 0.8), ("vue", 0.7)),
        ),
        (
            ("api", "server", "backend", "endpoint", "route"),
            (("express", 0.8), ("fastify", 0.6)),
        ),
        (
            ("database", "data storage", "query", "sql"),
            (("mongodb", 0.7), ("postgresql", 0.7)),
        ),
        (
            ("styling", "css", "design", "theme", "layout"),
            (("tailwind", 0.8), ("css", 0.6)),
        ),
        (("full-stack", "fullstack", "full stack"), (("nextjs", 0.7),)),
    )
    stack_indicators: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: {
            "web": ("html", "css", "javascript"),
            "frontend": ("react", "vue", "angular", "svelte"),
            "backend": ("node", "express", "python", "django"),
            "database": ("mongodb", "postgresql", "mysql", "redis"),
        }
    )
    stack_confidence: float = 0.6
    context_inference: Tuple[Tuple[Tuple[str, ...], str, float], ...] = (
        (("admin", "dashboard"), "react", 0.7),
        (("mobile", "app"), "react", 0.6),
        (("server", "api"), "node", 0.7),
    )
    # (regex, kind, weight); the captured group must name a known framework.
    capture_patterns: Tuple[Tuple[str, str, float], ...] = (
        (r"create\s+a\s+(\w+)\s+component", "component", 1.0),
        (r"using\s+(\w+)\s+framework", "framework", 1.0),
        (r"with\s+(\w+)\s+library", "library", 1.0),
        (r"build\s+(\w+)\s+app", "app", 0.9),
        (r"(\w+)\s+component", "component", 0.8),
        (r"(\w+)\s+framework", "framework", 0.8),
        (r"(\w+)\s+library", "library", 0.8),
        (r"using\s+(\w+)", "library", 0.9),
    )
    capture_kind_weights: Mapping[str, float] = field(
        default_factory=lambda: {
            "component": 0.9,
            "framework": 0.8,
            "library": 0.7,
            "app": 0.6,
        }
    )
    project_confidence: float = 0.9
    suggested_confidence: float = 0.8
    companions: Mapping[str, str] = field(
        default_factory=lambda: {
            "react": "typescript",
            "vue": "typescript",
            "angular": "rxjs",
            "nextjs": "react",
            "nuxt": "vue",
            "html": "css",
            "css": "tailwind",
            "express": "node",
            "django": "python",
            "flask": "python",
        }
    )
    fallback_framework: str = "javascript"
    fallback_confidence: float = 0.3
    fallback_suggestions: Tuple[str, ...] = ("react", "vue", "angular")


@dataclass(frozen=True)
class SelectorRules:
    """Library scoring weights and per-framework topic tables."""

    framework_match_bonus: int = 10
    topic_bonus: int = 3
    literal_bonus: int = 5
    intent_bonus: int = 8
    # (prompt keyword, name fragments)
    intents: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
        ("component", ("react",)),
        ("api", ("next",)),
        ("style", ("css", "html")),
        ("type", ("typescript",)),
    )
    topics: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: {
            "html": ("elements", "attributes", "semantic", "accessibility"),
            "css": ("styling", "layout", "flexbox", "grid", "animations"),
            "javascript": ("functions", "objects", "arrays", "async", "dom"),
            "react": ("components", "hooks", "state", "props", "jsx"),
            "nextjs": ("routing", "api", "ssr", "ssg", "middleware"),
            "typescript": ("types", "interfaces", "generics", "enums"),
            "vue": ("components", "directives", "composition", "reactivity"),
            "angular": ("components", "services", "dependency", "injection"),
            "express": ("middleware", "routing", "api", "sessions"),
            "nodejs": ("modules", "fs", "http", "streams", "events"),
            "node": ("modules", "fs", "http", "streams", "events"),
        }
    )
    common_frameworks: Tuple[str, ...] = ("react", "html", "css", "javascript")
    max_keywords: int = 10
    limits: Mapping[str, int] = field(
        default_factory=lambda: {"simple": 1, "medium": 2, "complex": 3}
    )


@dataclass(frozen=True)
class RetrieverRules:
    """Topic extraction, section scoring and fallback triggers for documentation."""

    topic_map: Tuple[Tuple[str, str], ...] = (
        ("component", "components"),
        ("routing", "routing"),
        ("route", "routing"),
        ("auth", "authentication"),
        ("login", "authentication"),
        ("api", "api"),
        ("endpoint", "api"),
        ("styling", "styling"),
        ("css", "styling"),
        ("form", "forms"),
        ("test", "testing"),
        ("error", "error handling"),
        ("exception", "error handling"),
        ("performance", "performance"),
        ("optimization", "performance"),
        ("security", "security"),
        ("deployment", "deployment"),
        ("docker", "deployment"),
        ("database", "database"),
        ("migration", "database"),
        ("hook", "hooks"),
        ("lifecycle", "lifecycle"),
        ("state", "state management"),
        ("redux", "state management"),
    )
    default_topic: str = "best practices"
    stop_words: Tuple[str, ...] = (
        "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with",
        "by", "from", "up", "about", "into", "through", "during", "before",
        "after", "above", "below", "between", "among", "is", "are", "was",
        "were", "be", "been", "being", "have", "has", "had", "do", "does",
        "did", "will", "would", "could", "should", "may", "might", "must",
        "can", "this", "that", "these", "those", "i", "you", "he", "she",
        "it", "we", "they", "me", "him", "her", "us", "them", "how", "what",
        "when", "where", "why", "which", "who", "not", "all", "any",
    )
    section_markers: Tuple[str, ...] = (
        r"\n## ",
        r"\n### ",
        r"\n#### ",
        r"\n- ",
        r"\n\* ",
        r"\n\d+\. ",
    )
    keyword_weight: int = 2
    example_markers: Tuple[str, ...] = ("```", "example", "usage")
    example_bonus: int = 5
    api_markers: Tuple[str, ...] = ("function", "method", "api")
    api_bonus: int = 3
    setup_markers: Tuple[str, ...] = ("config", "setup", "install")
    setup_bonus: int = 2
    trouble_markers: Tuple[str, ...] = ("error", "issue", "problem")
    trouble_bonus: int = 2
    # (library id fragment, content marker)
    library_boosts: Tuple[Tuple[str, str], ...] = (
        ("react", "component"),
        ("next", "api"),
        ("html", "element"),
        ("css", "property"),
    )
    library_bonus: int = 4
    min_partial_tokens: int = 100
    fallback_triggers: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: {
            "markup": ("html", "page", "web"),
            "styling": ("css", "style", "design"),
            "scripting": ("javascript", "typescript", "js"),
        }
    )


@dataclass(frozen=True)
class QualityRules:
    """Substring triggers for quality requirements."""

    # (triggers, type, priority, description)
    prompt_rules: Tuple[Tuple[Tuple[str, ...], str, str, str], ...] = (
        (
            ("production", "enterprise"),
            "production",
            "high",
            "Production-ready code with error handling, logging and monitoring",
        ),
        (
            ("responsive", "mobile"),
            "responsive",
            "medium",
            "Responsive layout that works across mobile, tablet and desktop",
        ),
        (
            ("accessible", "a11y"),
            "accessibility",
            "high",
            "WCAG-compliant markup with ARIA attributes and keyboard navigation",
        ),
        (
            ("performance", "optimize"),
            "performance",
            "high",
            "Optimised rendering, lazy loading and minimal bundle size",
        ),
        (
            ("test", "testing"),
            "testing",
            "medium",
            "Unit and integration tests covering the main behaviour",
        ),
        (
            ("secure", "security"),
            "security",
            "high",
            "Input validation, output encoding and secure defaults",
        ),
    )
    # (framework fragment, prompt triggers or empty for always, type, priority, description)
    framework_rules: Tuple[Tuple[str, Tuple[str, ...], str, str, str], ...] = (
        (
            "react",
            ("component", "hook"),
            "react-patterns",
            "medium",
            "Functional components with hooks and clear prop interfaces",
        ),
        (
            "react",
            ("state", "context"),
            "state-management",
            "medium",
            "Predictable state management with context or a dedicated store",
        ),
        (
            "typescript",
            (),
            "type-safety",
            "high",
            "Strict TypeScript types for props, state and function signatures",
        ),
        (
            "next",
            ("api", "route"),
            "nextjs-patterns",
            "medium",
            "Next.js routing conventions and typed API route handlers",
        ),
        (
            "vue",
            ("component", "composition"),
            "vue-patterns",
            "medium",
            "Single-file components using the Composition API",
        ),
        (
            "angular",
            (),
            "angular-patterns",
            "medium",
            "Angular modules, services and dependency injection",
        ),
    )
    # (source, triggers, type, priority, description); source is "facts" or "snippets"
    project_rules: Tuple[Tuple[str, Tuple[str, ...], str, str, str], ...] = (
        (
            "facts",
            ("typescript",),
            "type-safety",
            "high",
            "Project uses TypeScript; keep types strict and explicit",
        ),
        (
            "facts",
            ("test", "jest", "vitest"),
            "testing",
            "medium",
            "Project has a test runner; add tests alongside new code",
        ),
        (
            "facts",
            ("eslint", "prettier"),
            "code-quality",
            "medium",
            "Follow the project's lint and formatting rules",
        ),
        (
            "facts",
            ("webpack", "vite", "build"),
            "performance",
            "medium",
            "Respect the project's bundler and build constraints",
        ),
        (
            "snippets",
            ("aria-", "role=", "alt="),
            "accessibility",
            "high",
            "Existing code uses accessibility attributes; keep them consistent",
        ),
        (
            "snippets",
            ("@media", "responsive", "mobile"),
            "responsive",
            "medium",
            "Existing code uses responsive media queries",
        ),
        (
            "snippets",
            ("sanitize", "validate", "csrf"),
            "security",
            "high",
            "Existing code sanitises and validates input; do the same",
        ),
    )


@dataclass(frozen=True)
class BreakdownRules:
    """Keyword triggers for task decomposition."""

    complex_keywords: Tuple[str, ...] = (
        "build",
        "create",
        "develop",
        "implement",
        "design",
        "setup",
        "application",
        "app",
        "platform",
        "system",
        "website",
        "dashboard",
        "full-stack",
        "end-to-end",
        "complete",
        "entire",
        "whole",
    )
    simple_keywords: Tuple[str, ...] = (
        "fix",
        "debug",
        "update",
        "change",
        "modify",
        "add",
        "remove",
        "component",
        "function",
        "method",
        "class",
        "variable",
    )
    long_prompt_length: int = 100
    bullet_markers: Tuple[str, ...] = ("-", "*", "•")
    max_tasks: int = 8


@dataclass(frozen=True)
class RuleSet:
    """All rule tables used by one pipeline instance."""

    classifier: ClassifierRules = field(default_factory=ClassifierRules)
    detector: DetectorRules = field(default_factory=DetectorRules)
    selector: SelectorRules = field(default_factory=SelectorRules)
    retriever: RetrieverRules = field(default_factory=RetrieverRules)
    quality: QualityRules = field(default_factory=QualityRules)
    breakdown: BreakdownRules = field(default_factory=BreakdownRules)
    version: str = RULES_VERSION

    def signature(self) -> str:
        return rules_signature(self)

    def with_overrides(self, overrides: Mapping[str, Any]) -> "RuleSet":
        """Return a copy with keyword lists replaced from configuration."""
        if not overrides:
            return self
        classifier = self.classifier
        detector = self.detector
        retriever = self.retriever
        if "framework_keywords" in overrides:
            classifier = replace(
                classifier, framework_keywords=tuple(overrides["framework_keywords"])
            )
        if "known_frameworks" in overrides:
            detector = replace(
                detector, known_frameworks=tuple(overrides["known_frameworks"])
            )
        if "stop_words" in overrides:
            retriever = replace(retriever, stop_words=tuple(overrides["stop_words"]))
        return replace(
            self, classifier=classifier, detector=detector, retriever=retriever
        )


def rules_signature(rules: RuleSet) -> str:
    """Stable SHA-256 fingerprint of a rule set."""
    payload: Dict[str, Any] = asdict(rules)
    encoded = json.dumps(payload, sort_keys=True, default=_json_default)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def _json_default(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    return str(value)


DEFAULT_RULES = RuleSet()


__all__ = [
    "BreakdownRules",
    "ClassifierRules",
    "DEFAULT_RULES",
    "DetectorRules",
    "QualityRules",
    "RULES_VERSION",
    "RetrieverRules",
    "RuleSet",
    "SelectorRules",
    "rules_signature",
]
