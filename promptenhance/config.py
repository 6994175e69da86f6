"""Configuration loading for promptenhance (.promptenhance.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".promptenhance.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """LLM runtime settings from .promptenhance.yml."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None


@dataclass
class DocsConfig:
    """Documentation service endpoint and retrieval limits."""

    base_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: Optional[float] = None
    retries: Optional[int] = None
    max_tokens: Optional[int] = None


@dataclass
class ClassifierConfig:
    use_model: bool = False


@dataclass
class AssemblyConfig:
    use_model: bool = False
    max_tokens: Optional[int] = None


@dataclass
class CacheConfig:
    enabled: bool = False
    path: Optional[Path] = None


@dataclass
class EnhancerConfig:
    """Represents the high-level settings defined in .promptenhance.yml."""

    root: Path
    llm: Optional[LLMConfig] = None
    docs: DocsConfig = field(default_factory=DocsConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    assembly: AssemblyConfig = field(default_factory=AssemblyConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    rules: Dict[str, List[str]] = field(default_factory=dict)


RULE_OVERRIDE_KEYS = ("framework_keywords", "known_frameworks", "stop_words")


def load_config(config_path: Path) -> EnhancerConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return EnhancerConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    llm_data = _as_dict(data.get("llm"))
    llm = None
    if llm_data:
        llm = LLMConfig(
            model=_as_str(llm_data.get("model")),
            temperature=_as_float(llm_data.get("temperature")),
            max_tokens=_as_int(llm_data.get("max_tokens")),
            base_url=_as_str(llm_data.get("base_url")),
            api_key=_as_str(llm_data.get("api_key")),
            request_timeout=_as_float(llm_data.get("request_timeout")),
        )
        if not any(
            (
                llm.model,
                llm.temperature,
                llm.max_tokens,
                llm.base_url,
                llm.api_key,
                llm.request_timeout,
            )
        ):
            llm = None

    docs_data = _as_dict(data.get("docs"))
    docs = DocsConfig(
        base_url=_as_str(docs_data.get("base_url")),
        api_key=_as_str(docs_data.get("api_key")),
        timeout=_as_float(docs_data.get("timeout")),
        retries=_as_int(docs_data.get("retries")),
        max_tokens=_as_int(docs_data.get("max_tokens")),
    )

    classifier_data = _as_dict(data.get("classifier"))
    classifier = ClassifierConfig(
        use_model=_as_bool(classifier_data.get("use_model")) or False
    )

    assembly_data = _as_dict(data.get("assembly"))
    assembly = AssemblyConfig(
        use_model=_as_bool(assembly_data.get("use_model")) or False,
        max_tokens=_as_int(assembly_data.get("max_tokens")),
    )

    cache_data = _as_dict(data.get("cache"))
    cache_path = _as_str(cache_data.get("path"))
    cache = CacheConfig(
        enabled=_as_bool(cache_data.get("enabled")) or False,
        path=root / cache_path if cache_path else None,
    )

    rules_data = _as_dict(data.get("rules"))
    rules = {
        key: _as_str_list(rules_data[key])
        for key in RULE_OVERRIDE_KEYS
        if key in rules_data
    }
    unknown = sorted(set(rules_data) - set(RULE_OVERRIDE_KEYS))
    if unknown:
        raise ConfigError(f"Unknown rules override(s): {', '.join(unknown)}")

    return EnhancerConfig(
        root=root,
        llm=llm,
        docs=docs,
        classifier=classifier,
        assembly=assembly,
        cache=cache,
        rules=rules,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "AssemblyConfig",
    "CONFIG_FILENAME",
    "CacheConfig",
    "ClassifierConfig",
    "ConfigError",
    "DocsConfig",
    "EnhancerConfig",
    "LLMConfig",
    "load_config",
]
