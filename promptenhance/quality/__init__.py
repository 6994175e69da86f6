"""Quality requirement extraction."""

from .requirements import (
    QualityRequirementsExtractor,
    deduplicate,
    format_requirements,
    priority_glyph,
)

__all__ = [
    "QualityRequirementsExtractor",
    "deduplicate",
    "format_requirements",
    "priority_glyph",
]
