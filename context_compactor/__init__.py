__version__ = "0.1.0"

from .compactor import ContextCompactor
from .features.events import CompactionEvent, CompactionListener
from .llm.providers import LLMProvider, LLMResponse, get_provider, register_provider
from .memory import (
    CHARS_PER_TOKEN_ESTIMATE,
    DEFAULT_COMPACTION_TRIGGER_RATIO,
    DEFAULT_CONTEXT_WINDOW_TOKENS,
    DEFAULT_SUMMARY_MAX_TOKENS,
    CompactionResult,
    PruneResult,
    PruningSettings,
    SoftTrimSettings,
    SummarizationError,
    build_compaction_summary,
    build_summary_message,
    compact_history_if_needed,
    compute_adaptive_chunk_ratio,
    estimate_message_tokens,
    estimate_messages_tokens,
    estimate_tokens,
    is_summary_message,
    prune_context_messages,
    resolve_pruning_settings,
    should_trigger_compaction,
    split_by_max_tokens,
    split_by_token_share,
    summarize_in_stages,
    summarize_with_fallback,
)
from .types import ContentBlock, Message, TextBlock, ToolResultBlock, ToolUseBlock
from .utils.config import (
    CompactionConfig,
    NormalizedCompactionConfig,
    load_config_from_env,
    normalize_compaction_config,
)

__all__ = [
    # Types
    "ContentBlock",
    "Message",
    "TextBlock",
    "ToolResultBlock",
    "ToolUseBlock",
    "CompactionResult",
    "PruneResult",
    "PruningSettings",
    "SoftTrimSettings",
    # Estimation
    "CHARS_PER_TOKEN_ESTIMATE",
    "estimate_message_tokens",
    "estimate_messages_tokens",
    "estimate_tokens",
    # Pruning
    "prune_context_messages",
    "resolve_pruning_settings",
    # Chunking
    "split_by_max_tokens",
    "split_by_token_share",
    # Compaction
    "DEFAULT_COMPACTION_TRIGGER_RATIO",
    "DEFAULT_CONTEXT_WINDOW_TOKENS",
    "DEFAULT_SUMMARY_MAX_TOKENS",
    "SummarizationError",
    "build_compaction_summary",
    "build_summary_message",
    "compact_history_if_needed",
    "compute_adaptive_chunk_ratio",
    "is_summary_message",
    "should_trigger_compaction",
    "summarize_in_stages",
    "summarize_with_fallback",
    # Providers
    "LLMProvider",
    "LLMResponse",
    "get_provider",
    "register_provider",
    # Config and events
    "CompactionConfig",
    "CompactionEvent",
    "CompactionListener",
    "ContextCompactor",
    "NormalizedCompactionConfig",
    "load_config_from_env",
    "normalize_compaction_config",
]
