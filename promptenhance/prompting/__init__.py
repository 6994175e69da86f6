"""Enhanced prompt assembly."""

from .assembler import ModelEnhancedAssembler, PromptAssembler

__all__ = ["ModelEnhancedAssembler", "PromptAssembler"]
