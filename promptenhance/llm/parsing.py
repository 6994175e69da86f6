"""Helpers for pulling structured payloads out of model responses."""

from __future__ import annotations

import json
import re
from typing import Any

_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


def strip_code_fence(text: str) -> str:
    """Remove a surrounding markdown code fence, if present."""
    stripped = text.strip()
    match = _FENCE.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def extract_json(text: str) -> Any:
    """Decode the JSON value embedded in ``text``.

    Accepts bare JSON, fenced JSON, or JSON surrounded by prose. Raises
    ``ValueError`` when nothing decodable is found.
    """
    if not text or not text.strip():
        raise ValueError("Model response was empty")
    candidate = strip_code_fence(text)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass
    for opener, closer in (("{", "}"), ("[", "]")):
        start = candidate.find(opener)
        end = candidate.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(candidate[start : end + 1])
            except json.JSONDecodeError:
                continue
    raise ValueError("Model response did not contain valid JSON")


__all__ = ["extract_json", "strip_code_fence"]
