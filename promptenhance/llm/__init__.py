"""Language model adapters."""

from .parsing import extract_json, strip_code_fence
from .runner import LLMRequest, LLMRunner

__all__ = ["LLMRequest", "LLMRunner", "extract_json", "strip_code_fence"]
