"""Context-aware prompt enhancement."""

from .models import EnhanceOptions, EnhanceResult, ProjectContext, RequestContext
from .pipeline import PromptEnhancer, enhance

__all__ = [
    "EnhanceOptions",
    "EnhanceResult",
    "ProjectContext",
    "PromptEnhancer",
    "RequestContext",
    "enhance",
]
