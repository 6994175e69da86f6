"""Documentation catalog access, retrieval and relevance scoring."""

from .client import (
    Context7Client,
    DocumentationService,
    DocumentationServiceError,
    parse_library_listing,
)
from .retriever import DocumentationRetriever
from .scorer import RelevanceScorer, extract_keywords
from .selector import LibrarySelector

__all__ = [
    "Context7Client",
    "DocumentationRetriever",
    "DocumentationService",
    "DocumentationServiceError",
    "LibrarySelector",
    "RelevanceScorer",
    "extract_keywords",
    "parse_library_listing",
]
