"""Adapter around an OpenAI-compatible chat completions endpoint."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from ..config import LLMConfig

logger = get_logger("llm.runner")

_AUTO_BASE_URL = object()
_AUTO_API_KEY = object()


@dataclass
class LLMRequest:
    """Represents a single chat-style inference request."""

    prompt: str
    system: Optional[str]
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]
    json_mode: bool = False


class LLMRunner:
    """Executes prompts against the configured language model endpoint."""

    DEFAULT_MODEL = "gpt-4o-mini"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    ENV_MODEL_KEYS = ("PROMPTENHANCE_LLM_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("PROMPTENHANCE_LLM_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("PROMPTENHANCE_LLM_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        model: str | None = None,
        *,
        base_url: str | None | object = _AUTO_BASE_URL,
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = None,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 30.0,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        self.model = self._resolve_model(model)
        self.api_key = self._resolve_api_key(api_key)
        self.base_url = self._resolve_base_url(base_url)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.request_timeout = request_timeout
        self._runner = runner

    @classmethod
    def from_config(cls, config: "LLMConfig | None") -> "LLMRunner":
        """Build a runner from the ``llm:`` section of .promptenhance.yml."""
        if config is None:
            return cls()
        return cls(
            model=config.model,
            base_url=config.base_url if config.base_url else _AUTO_BASE_URL,
            temperature=config.temperature if config.temperature is not None else 0.2,
            max_tokens=config.max_tokens,
            api_key=config.api_key if config.api_key else _AUTO_API_KEY,
            request_timeout=config.request_timeout or 30.0,
        )

    @property
    def available(self) -> bool:
        """Whether a request can be attempted at all."""
        return self._runner is not None or bool(self.base_url)

    def run(
        self, prompt: str, *, system: str | None = None, json_mode: bool = False
    ) -> str:
        """Send the prompt to the configured model and return the response text.

        ``json_mode`` asks an OpenAI-compatible endpoint for a JSON object reply.
        """
        if not self.available:
            raise RuntimeError("No language model endpoint is configured.")
        request = LLMRequest(
            prompt=prompt,
            system=system,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
            json_mode=json_mode,
        )
        runner = self._runner or self._http_runner
        return runner(request)

    @staticmethod
    def _normalize_base_url(url: str) -> str:
        return url.rstrip("/")

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        if not request.base_url:
            raise RuntimeError("HTTP runner requires a base_url to be configured.")
        reply = _post_json(
            f"{request.base_url}/chat/completions",
            _chat_payload(request),
            api_key=request.api_key,
            timeout=request.request_timeout or 30.0,
        )
        usage = reply.get("usage")
        if isinstance(usage, dict):
            logger.debug(
                "Model %s used %s prompt / %s completion tokens",
                request.model,
                usage.get("prompt_tokens"),
                usage.get("completion_tokens"),
            )
        text = _reply_text(reply)
        if not text.strip():
            raise RuntimeError("LLM HTTP runner returned an empty response")
        return text.strip()

    def _resolve_model(self, model: str | None) -> str:
        if model:
            return model
        return self._first_env_value(self.ENV_MODEL_KEYS) or self.DEFAULT_MODEL

    def _resolve_base_url(self, base_url: str | None | object) -> str | None:
        if base_url is None:
            return None
        if base_url is not _AUTO_BASE_URL:
            return self._normalize_base_url(str(base_url))
        env_value = self._first_env_value(self.ENV_BASE_URL_KEYS)
        if env_value:
            return self._normalize_base_url(env_value)
        # The hosted endpoint is only usable with credentials.
        if self.api_key:
            return self.DEFAULT_BASE_URL
        return None

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO_API_KEY:
            return self._first_env_value(self.ENV_API_KEY_KEYS)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


def _chat_payload(request: LLMRequest) -> Dict[str, Any]:
    messages = [{"role": "user", "content": request.prompt}]
    if request.system:
        messages.insert(0, {"role": "system", "content": request.system})
    payload: Dict[str, Any] = {"model": request.model, "messages": messages}
    optional = {"temperature": request.temperature, "max_tokens": request.max_tokens}
    payload.update({key: value for key, value in optional.items() if value is not None})
    if request.json_mode:
        payload["response_format"] = {"type": "json_object"}
    return payload


def _post_json(
    endpoint: str, payload: Dict[str, Any], *, api_key: str | None, timeout: float
) -> Dict[str, Any]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    http_request = Request(
        endpoint, data=json.dumps(payload).encode("utf-8"), headers=headers, method="POST"
    )
    try:
        with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
            raw = response.read()
    except HTTPError as exc:  # pragma: no cover - depends on runtime
        body = exc.read().decode("utf-8", errors="ignore") if exc.fp is not None else ""
        raise RuntimeError(
            f"LLM HTTP runner failed with status {exc.code}: {body.strip() or exc.reason}"
        ) from exc
    except URLError as exc:  # pragma: no cover - depends on runtime
        raise RuntimeError(f"LLM HTTP runner failed: {exc.reason}") from exc
    try:
        decoded = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise RuntimeError("LLM HTTP runner returned invalid JSON") from exc
    if not isinstance(decoded, dict):
        raise RuntimeError("LLM HTTP runner returned an unexpected payload")
    return decoded


def _reply_text(reply: Dict[str, Any]) -> str:
    """First choice text from a chat or legacy completions reply."""
    choices = reply.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    choice = choices[0]
    message = choice.get("message")
    if isinstance(message, dict) and isinstance(message.get("content"), str):
        return message["content"]
    text = choice.get("text")
    return text if isinstance(text, str) else ""


__all__ = ["LLMRequest", "LLMRunner"]
