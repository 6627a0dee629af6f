"""ContextCompactor binds a configuration and a summarization provider together."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from .features.events import CompactionListener
from .llm.providers.base import LLMProvider, get_provider
from .memory.compaction import compact_history_if_needed, should_trigger_compaction
from .memory.pruning import prune_context_messages
from .memory.types import CompactionResult, PruneResult
from .types.types import Message
from .utils.config import (
    CompactionConfig,
    NormalizedCompactionConfig,
    load_config_from_env,
    normalize_compaction_config,
)

logger = logging.getLogger(__name__)


def _configure_file_logging(log_file: str) -> None:
    """Redirect all logs to a file instead of stdout/stderr."""
    handler = logging.FileHandler(log_file, mode="a")
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s"))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.INFO)


class ContextCompactor:
    """Prune and compact transcripts with one fixed configuration.

    Usage::

        from context_compactor import ContextCompactor, Message

        compactor = ContextCompactor(
            config={"provider": "anthropic", "context_window_tokens": 200_000},
        )

        if compactor.should_compact(messages):
            result = await compactor.compact(messages)
            if result.compacted:
                messages = [result.summary_message, *result.prune_result.messages]

    The provider is created on first use, so pruning alone never needs an API key.
    """

    def __init__(
        self,
        config: CompactionConfig | NormalizedCompactionConfig | Mapping[str, Any] | None = None,
        provider: LLMProvider | None = None,
        on_compaction: CompactionListener | None = None,
        log_file: str | None = None,
        **provider_kwargs,
    ):
        """
        Args:
            config: Compaction configuration; missing or invalid fields use defaults
            provider: Optional pre-built summarization provider
            on_compaction: Optional callback receiving a CompactionEvent after each compaction
            log_file: Optional path; when set, all logs go to this file
            **provider_kwargs: Passed to get_provider when the provider is created lazily
        """
        if log_file:
            _configure_file_logging(log_file)

        self.config = normalize_compaction_config(config)
        self.on_compaction = on_compaction
        self._provider = provider
        self._provider_kwargs = provider_kwargs

    @classmethod
    def from_env(cls, dotenv_path: str | None = None, **kwargs) -> ContextCompactor:
        """Create a compactor configured from CONTEXT_COMPACTOR_* environment variables."""
        return cls(config=load_config_from_env(dotenv_path), **kwargs)

    @property
    def provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = get_provider(self.config.provider, **self._provider_kwargs)
        return self._provider

    def should_compact(self, messages: Sequence[Message]) -> bool:
        """Check whether the transcript has crossed the trigger ratio."""
        if not self.config.enabled:
            return False
        return should_trigger_compaction(
            messages, self.config.context_window_tokens, self.config.trigger_ratio
        )

    def prune(self, messages: Sequence[Message]) -> PruneResult:
        """Prune without summarizing."""
        return prune_context_messages(
            messages, self.config.context_window_tokens, self.config.pruning
        )

    async def compact(
        self,
        messages: Sequence[Message],
        previous_summary: str | None = None,
    ) -> CompactionResult:
        """Prune, and summarize the dropped messages when the trigger fires.

        When compaction is disabled only pruning runs.
        """
        if not self.config.enabled:
            return CompactionResult(compacted=False, prune_result=self.prune(messages))

        return await compact_history_if_needed(
            self.provider,
            self.config.model,
            messages,
            self.config.context_window_tokens,
            pruning_settings=self.config.pruning,
            trigger_ratio=self.config.trigger_ratio,
            max_tokens=self.config.summary_max_tokens,
            custom_instructions=self.config.custom_instructions,
            previous_summary=previous_summary,
            parallel=self.config.parallel_stages,
            on_compaction=self.on_compaction,
        )
