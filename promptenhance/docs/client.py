"""Client for the external documentation catalog (Context7 over JSON-RPC)."""

from __future__ import annotations

import itertools
import json
import os
import time
from typing import Any, Callable, Dict, List, Optional, Protocol
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..logging import get_logger
from ..models import LibraryCandidate

logger = get_logger("docs.client")

_LIBRARY_SEPARATOR = "----------"
_FIELD_PREFIXES = {
    "- Title:": "name",
    "- Context7-compatible library ID:": "id",
    "- Description:": "description",
    "- Code Snippets:": "code_snippets",
    "- Trust Score:": "trust_score",
}
DEFAULT_TRUST_SCORE = 7.0


class DocumentationServiceError(RuntimeError):
    """Raised when the documentation service cannot satisfy a request."""


class DocumentationService(Protocol):
    """Narrow interface the pipeline needs from a documentation catalog."""

    def resolve_library_id(self, name: str) -> List[LibraryCandidate]:
        ...

    def get_documentation(self, library_id: str, topic: str, max_tokens: int) -> str:
        ...


class Context7Client:
    """Blocking JSON-RPC client for the Context7 MCP endpoint."""

    DEFAULT_BASE_URL = "https://mcp.context7.com/mcp"
    ENV_BASE_URL_KEYS = ("PROMPTENHANCE_DOCS_BASE_URL", "CONTEXT7_BASE_URL")
    ENV_API_KEY_KEYS = ("PROMPTENHANCE_DOCS_API_KEY", "CONTEXT7_API_KEY")
    USER_AGENT = "promptenhance-context7/1.0"

    def __init__(
        self,
        base_url: str | None = None,
        *,
        api_key: str | None = None,
        timeout: float = 30.0,
        retries: int = 3,
        backoff: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        resolved = base_url or _first_env_value(self.ENV_BASE_URL_KEYS)
        self.base_url = (resolved or self.DEFAULT_BASE_URL).rstrip("/")
        self.api_key = api_key or _first_env_value(self.ENV_API_KEY_KEYS)
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff = backoff
        self._sleep = sleep
        self._ids = itertools.count(1)

    def resolve_library_id(self, name: str) -> List[LibraryCandidate]:
        """Return catalog candidates for ``name``, highest trust first."""
        payload = self._call_tool("resolve-library-id", {"libraryName": name})
        text = self._first_text(payload)
        if not text:
            return []
        return parse_library_listing(text)

    def get_documentation(self, library_id: str, topic: str, max_tokens: int) -> str:
        """Return documentation text for ``library_id`` focused on ``topic``."""
        arguments: Dict[str, Any] = {
            "context7CompatibleLibraryID": library_id,
            "tokens": max_tokens,
        }
        if topic:
            arguments["topic"] = topic
        payload = self._call_tool("get-library-docs", arguments)
        text = self._first_text(payload)
        if not text:
            raise DocumentationServiceError(f"No documentation returned for {library_id}")
        return text

    # ------------------------------------------------------------------
    # Transport

    def _call_tool(self, tool: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        request_body = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": "tools/call",
            "params": {"name": tool, "arguments": arguments},
        }
        last_error: Optional[Exception] = None
        for attempt in range(1, self.retries + 1):
            try:
                return self._post(request_body)
            except DocumentationServiceError as exc:
                last_error = exc
                if attempt < self.retries:
                    delay = self.backoff * (2 ** (attempt - 1))
                    logger.warning(
                        "Documentation request %s failed (attempt %d/%d), retrying in %.1fs: %s",
                        tool,
                        attempt,
                        self.retries,
                        delay,
                        exc,
                    )
                    self._sleep(delay)
        raise DocumentationServiceError(
            f"Documentation request {tool} failed after {self.retries} attempts: {last_error}"
        )

    def _post(self, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json, text/event-stream",
            "User-Agent": self.USER_AGENT,
        }
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        http_request = Request(
            self.base_url,
            data=json.dumps(body).encode("utf-8"),
            headers=headers,
            method="POST",
        )
        try:
            with urlopen(http_request, timeout=self.timeout) as response:  # type: ignore[arg-type]
                content_type = response.headers.get("Content-Type", "") if response.headers else ""
                raw = response.read().decode("utf-8", errors="replace")
        except HTTPError as exc:
            raise DocumentationServiceError(
                f"Documentation service returned status {exc.code}: {exc.reason}"
            ) from exc
        except (URLError, TimeoutError, OSError) as exc:
            raise DocumentationServiceError(f"Documentation service unreachable: {exc}") from exc

        payload = _decode_body(raw, content_type)
        error = payload.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise DocumentationServiceError(f"Documentation service error: {message}")
        return payload

    @staticmethod
    def _first_text(payload: Dict[str, Any]) -> str:
        result = payload.get("result")
        if not isinstance(result, dict):
            return ""
        content = result.get("content")
        if not isinstance(content, list):
            return ""
        for item in content:
            if isinstance(item, dict) and item.get("type", "text") == "text":
                text = item.get("text")
                if isinstance(text, str) and text.strip():
                    return text
        return ""


def parse_library_listing(text: str) -> List[LibraryCandidate]:
    """Parse the plain-text library listing returned by ``resolve-library-id``."""
    candidates: List[LibraryCandidate] = []
    for block in text.split(_LIBRARY_SEPARATOR):
        fields: Dict[str, str] = {}
        for line in block.splitlines():
            stripped = line.strip()
            for prefix, key in _FIELD_PREFIXES.items():
                if stripped.startswith(prefix):
                    fields[key] = stripped[len(prefix) :].strip()
                    break
        if not fields.get("id") or not fields.get("name"):
            continue
        candidates.append(
            LibraryCandidate(
                id=fields["id"],
                name=fields["name"],
                description=fields.get("description", ""),
                code_snippets=_to_int(fields.get("code_snippets")),
                trust_score=_to_float(fields.get("trust_score"), DEFAULT_TRUST_SCORE),
            )
        )
    # Stable sort keeps catalog order among equal trust scores.
    candidates.sort(key=lambda candidate: -candidate.trust_score)
    return candidates


def _decode_body(raw: str, content_type: str) -> Dict[str, Any]:
    if "text/event-stream" in content_type or raw.lstrip().startswith(("data:", "event:")):
        data_lines = [line for line in raw.splitlines() if line.startswith("data:")]
        if not data_lines:
            raise DocumentationServiceError("Event stream response carried no data")
        raw = data_lines[-1][len("data:") :].strip()
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DocumentationServiceError("Documentation service returned invalid JSON") from exc
    if not isinstance(payload, dict):
        raise DocumentationServiceError("Documentation service returned an unexpected payload")
    return payload


def _to_int(value: Optional[str]) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def _to_float(value: Optional[str], default: float) -> float:
    try:
        return float(value) if value else default
    except ValueError:
        return default


def _first_env_value(keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = os.getenv(key)
        if value:
            return value
    return None


__all__ = [
    "Context7Client",
    "DocumentationService",
    "DocumentationServiceError",
    "parse_library_listing",
]
