"""Memory module - context pruning and compaction for long-running conversations."""

from .chunking import normalize_parts, split_by_max_tokens, split_by_token_share
from .compaction import (
    BASE_CHUNK_RATIO,
    DEFAULT_COMPACTION_TRIGGER_RATIO,
    DEFAULT_SUMMARY_FALLBACK,
    DEFAULT_SUMMARY_MAX_TOKENS,
    MIN_CHUNK_RATIO,
    SAFETY_MARGIN,
    SUMMARY_PREFIX,
    build_compaction_summary,
    build_summary_message,
    compact_history_if_needed,
    compute_adaptive_chunk_ratio,
    is_summary_message,
    should_trigger_compaction,
    summarize_chunks,
    summarize_in_stages,
    summarize_with_fallback,
)
from .pruning import (
    DEFAULT_CONTEXT_WINDOW_TOKENS,
    DEFAULT_PRUNING_SETTINGS,
    prune_context_messages,
    resolve_pruning_settings,
)
from .summarizer import (
    DEFAULT_SUMMARY_INSTRUCTIONS,
    SummarizationError,
    build_summary_prompt,
    format_messages_for_summary,
)
from .tokens import (
    CHARS_PER_TOKEN_ESTIMATE,
    estimate_message_chars,
    estimate_message_tokens,
    estimate_messages_chars,
    estimate_messages_tokens,
    estimate_tokens,
)
from .types import (
    DEFAULT_HISTORY_SHARE,
    CompactionResult,
    PruneResult,
    PruningSettings,
    SoftTrimSettings,
)

__all__ = [
    "BASE_CHUNK_RATIO",
    "CHARS_PER_TOKEN_ESTIMATE",
    "CompactionResult",
    "DEFAULT_COMPACTION_TRIGGER_RATIO",
    "DEFAULT_CONTEXT_WINDOW_TOKENS",
    "DEFAULT_HISTORY_SHARE",
    "DEFAULT_PRUNING_SETTINGS",
    "DEFAULT_SUMMARY_FALLBACK",
    "DEFAULT_SUMMARY_INSTRUCTIONS",
    "DEFAULT_SUMMARY_MAX_TOKENS",
    "MIN_CHUNK_RATIO",
    "PruneResult",
    "PruningSettings",
    "SAFETY_MARGIN",
    "SUMMARY_PREFIX",
    "SoftTrimSettings",
    "SummarizationError",
    "build_compaction_summary",
    "build_summary_message",
    "build_summary_prompt",
    "compact_history_if_needed",
    "compute_adaptive_chunk_ratio",
    "estimate_message_chars",
    "estimate_message_tokens",
    "estimate_messages_chars",
    "estimate_messages_tokens",
    "estimate_tokens",
    "format_messages_for_summary",
    "is_summary_message",
    "normalize_parts",
    "prune_context_messages",
    "resolve_pruning_settings",
    "should_trigger_compaction",
    "split_by_max_tokens",
    "split_by_token_share",
    "summarize_chunks",
    "summarize_in_stages",
    "summarize_with_fallback",
]
