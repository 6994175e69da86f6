"""Task decomposition for large prompts."""

from .breakdown import TaskBreakdownPlanner

__all__ = ["TaskBreakdownPlanner"]
