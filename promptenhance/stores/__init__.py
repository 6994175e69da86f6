"""Persistent stores."""

from .enhancement_cache import EnhancementCache, request_fingerprint

__all__ = ["EnhancementCache", "request_fingerprint"]
