"""Prompt analysis: complexity classification and framework detection."""

from .complexity import (
    ComplexityClassifier,
    DeterministicClassifier,
    LEVEL_BUDGETS,
    ModelAssistedClassifier,
    TokenBudget,
    token_budget_for,
)
from .frameworks import FrameworkDetector
from .rules import DEFAULT_RULES, RuleSet

__all__ = [
    "ComplexityClassifier",
    "DEFAULT_RULES",
    "DeterministicClassifier",
    "FrameworkDetector",
    "LEVEL_BUDGETS",
    "ModelAssistedClassifier",
    "RuleSet",
    "TokenBudget",
    "token_budget_for",
]
