"""Compaction configuration: user-facing, normalized, and loaded from the environment."""

from __future__ import annotations

import logging
import math
import os
from collections.abc import Mapping
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field

from ..memory.compaction import DEFAULT_COMPACTION_TRIGGER_RATIO, DEFAULT_SUMMARY_MAX_TOKENS
from ..memory.pruning import DEFAULT_CONTEXT_WINDOW_TOKENS, resolve_pruning_settings
from ..memory.types import PruningSettings

logger = logging.getLogger(__name__)

ENV_PREFIX = "CONTEXT_COMPACTOR_"

DEFAULT_PROVIDER = "anthropic"
DEFAULT_MODEL = "claude-3-5-haiku-latest"


class CompactionConfig(BaseModel):
    """User-facing compaction configuration. Every field is optional."""

    provider: str | None = None
    model: str | None = None
    context_window_tokens: int | None = None
    trigger_ratio: float | None = None
    summary_max_tokens: int | None = None
    custom_instructions: str | None = None
    pruning: PruningSettings | dict[str, Any] | None = None
    parallel_stages: bool | None = None
    enabled: bool | None = None


class NormalizedCompactionConfig(BaseModel):
    """Internal - all fields resolved to concrete values."""

    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_MODEL
    context_window_tokens: int = DEFAULT_CONTEXT_WINDOW_TOKENS
    trigger_ratio: float = DEFAULT_COMPACTION_TRIGGER_RATIO
    summary_max_tokens: int = DEFAULT_SUMMARY_MAX_TOKENS
    custom_instructions: str | None = None
    pruning: PruningSettings = Field(default_factory=PruningSettings)
    parallel_stages: bool = False
    enabled: bool = True


def _positive_int(value: Any, fallback: int) -> int:
    if (
        not isinstance(value, (int, float))
        or isinstance(value, bool)
        or not math.isfinite(value)
        or value < 1
    ):
        return fallback
    return math.floor(value)


def _ratio(value: Any, fallback: float) -> float:
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
        return fallback
    return float(min(1.0, max(0.0, value)))


def normalize_compaction_config(
    config: CompactionConfig | Mapping[str, Any] | None = None,
) -> NormalizedCompactionConfig:
    """Resolve a (possibly partial) configuration to concrete values. Never raises."""
    if isinstance(config, BaseModel):
        values: Mapping[str, Any] = config.model_dump()
    elif isinstance(config, Mapping):
        values = config
    else:
        values = {}

    provider = values.get("provider")
    model = values.get("model")
    instructions = values.get("custom_instructions")
    parallel = values.get("parallel_stages")
    enabled = values.get("enabled")

    return NormalizedCompactionConfig(
        provider=provider if isinstance(provider, str) and provider else DEFAULT_PROVIDER,
        model=model if isinstance(model, str) and model else DEFAULT_MODEL,
        context_window_tokens=_positive_int(
            values.get("context_window_tokens"), DEFAULT_CONTEXT_WINDOW_TOKENS
        ),
        trigger_ratio=_ratio(values.get("trigger_ratio"), DEFAULT_COMPACTION_TRIGGER_RATIO),
        summary_max_tokens=_positive_int(
            values.get("summary_max_tokens"), DEFAULT_SUMMARY_MAX_TOKENS
        ),
        custom_instructions=(
            instructions if isinstance(instructions, str) and instructions else None
        ),
        pruning=resolve_pruning_settings(values.get("pruning")),
        parallel_stages=parallel if isinstance(parallel, bool) else False,
        enabled=enabled if isinstance(enabled, bool) else True,
    )


# -- Environment --------------------------------------------------------------


def _env(name: str) -> str | None:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_number(name: str, cast: type) -> Any:
    raw = _env(name)
    if raw is None:
        return None
    try:
        return cast(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s%s=%r", ENV_PREFIX, name, raw)
        return None


def _env_bool(name: str) -> bool | None:
    raw = _env(name)
    if raw is None:
        return None
    return raw.lower() in ("1", "true", "yes", "on")


def load_config_from_env(dotenv_path: str | None = None) -> NormalizedCompactionConfig:
    """Build a normalized configuration from CONTEXT_COMPACTOR_* environment variables.

    A ``.env`` file is loaded first (without overriding variables already set):
    ``dotenv_path`` when given, otherwise the nearest one found from the
    current working directory upwards.
    Unparsable values are ignored in favour of the defaults.
    """
    load_dotenv(dotenv_path or find_dotenv(usecwd=True))

    pruning: dict[str, Any] = {}
    share = _env_number("MAX_HISTORY_SHARE", float)
    if share is not None:
        pruning["max_history_share"] = share
    keep_last = _env_number("KEEP_LAST_ASSISTANTS", int)
    if keep_last is not None:
        pruning["keep_last_assistants"] = keep_last

    return normalize_compaction_config(
        {
            "provider": _env("PROVIDER"),
            "model": _env("MODEL"),
            "context_window_tokens": _env_number("CONTEXT_WINDOW_TOKENS", int),
            "trigger_ratio": _env_number("TRIGGER_RATIO", float),
            "summary_max_tokens": _env_number("SUMMARY_MAX_TOKENS", int),
            "custom_instructions": _env("CUSTOM_INSTRUCTIONS"),
            "pruning": pruning,
            "parallel_stages": _env_bool("PARALLEL_STAGES"),
            "enabled": _env_bool("ENABLED"),
        }
    )
