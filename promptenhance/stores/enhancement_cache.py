"""Persistent cache for enhancement results."""

from __future__ import annotations

from datetime import UTC, datetime
import hashlib
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..models import EnhanceResult

_CACHE_VERSION = 1


def request_fingerprint(
    prompt: str, context: Mapping[str, Any], options: Mapping[str, Any]
) -> str:
    """SHA-256 over the prompt, the request context and the request options."""
    payload = {"prompt": prompt, "context": dict(context), "options": dict(options)}
    encoded = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


class EnhancementCache:
    """Stores enhancement results keyed by request fingerprint and rules signature."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, fingerprint: str, *, signature: str) -> Optional[EnhanceResult]:
        entry = self._entries.get(fingerprint)
        if not entry:
            return None
        if entry.get("signature") != signature:
            return None
        return _result_from_dict(entry.get("result"))

    def store(self, fingerprint: str, *, signature: str, result: EnhanceResult) -> None:
        if not result.success:
            return
        self._entries[fingerprint] = {
            "signature": signature,
            "result": {
                "enhanced_prompt": result.enhanced_prompt,
                "context_used": result.context_used,
            },
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {
            "version": _CACHE_VERSION,
            "entries": self._entries,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(payload, indent=2, sort_keys=True, default=str), encoding="utf-8"
        )
        self._dirty = False

    def clear(self) -> None:
        self._entries.clear()
        self._dirty = True

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        self._entries = {
            key: raw
            for key, raw in entries.items()
            if isinstance(key, str)
            and isinstance(raw, dict)
            and "signature" in raw
            and isinstance(raw.get("result"), dict)
        }
        self._dirty = False


def _result_from_dict(payload: object) -> Optional[EnhanceResult]:
    if not isinstance(payload, dict):
        return None
    prompt = payload.get("enhanced_prompt")
    context_used = payload.get("context_used", {})
    if not isinstance(prompt, str):
        return None
    if not isinstance(context_used, dict):
        context_used = {}
    return EnhanceResult(enhanced_prompt=prompt, context_used=dict(context_used))


__all__ = ["EnhancementCache", "request_fingerprint"]
