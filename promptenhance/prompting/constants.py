"""Shared constants for enhanced prompt assembly."""

from __future__ import annotations

FRAMEWORKS_HEADING = "## Detected Frameworks/Libraries:"
BEST_PRACTICES_HEADING = "## Framework Best Practices:"
FRAMEWORK_DOCS_HEADING = "## Framework-Specific Best Practices:"
PROJECT_DOCS_HEADING = "## Project Documentation:"
REPOSITORY_HEADING = "## Repository Context:"
CODE_PATTERNS_HEADING = "## Existing Code Patterns:"
INSTRUCTIONS_HEADING = "## Instructions:"

CLOSING_INSTRUCTION = (
    "Make your response consistent with the project's existing patterns, best practices, "
    "and coding standards. Use the provided context to ensure your solution fits well "
    "with the existing codebase."
)


BLOCK_SEPARATOR = "\n\n"
SIMPLE_DOC_EXCERPT_TOKENS = 100
MARKUP_FRAMEWORKS: frozenset[str] = frozenset({"html"})
DEFAULT_MAX_TOKENS = 4000


__all__ = [
    "BEST_PRACTICES_HEADING",
    "BLOCK_SEPARATOR",
    "CLOSING_INSTRUCTION",
    "CODE_PATTERNS_HEADING",
    "DEFAULT_MAX_TOKENS",
    "FRAMEWORKS_HEADING",
    "FRAMEWORK_DOCS_HEADING",
    "INSTRUCTIONS_HEADING",
    "MARKUP_FRAMEWORKS",
    "PROJECT_DOCS_HEADING",
    "REPOSITORY_HEADING",
    "SIMPLE_DOC_EXCERPT_TOKENS",
]
