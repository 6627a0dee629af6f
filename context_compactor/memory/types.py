"""Types for context pruning and compaction.

Two tiers of history:
- Tier 1: Rolling summary of dropped messages (compacted via LLM)
- Tier 2: Recent messages kept verbatim (possibly with trimmed tool results)
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ..types.types import Message

DEFAULT_HISTORY_SHARE = 0.5


class SoftTrimSettings(BaseModel):
    """Limits for shortening oversized tool results."""

    max_chars: int = 4_000
    head_chars: int = 1_500
    tail_chars: int = 1_500


class PruningSettings(BaseModel):
    """How much verbatim history to keep.

    Use ``resolve_pruning_settings`` to coerce arbitrary input into valid values.
    """

    max_history_share: float = DEFAULT_HISTORY_SHARE
    keep_last_assistants: int = 3
    soft_trim: SoftTrimSettings = Field(default_factory=SoftTrimSettings)


class PruneResult(BaseModel):
    """Result from prune_context_messages.

    Char statistics are measured before soft-trimming, since those sizes drive
    the drop decision. ``kept_chars_after_trim`` reports what is actually sent
    downstream.
    """

    messages: list[Message] = Field(default_factory=list)
    dropped_messages: list[Message] = Field(default_factory=list)
    trimmed_tool_results: int = 0
    total_chars: int = 0
    kept_chars: int = 0
    dropped_chars: int = 0
    budget_chars: int = 0
    kept_chars_after_trim: int = 0


class CompactionResult(BaseModel):
    """Result from compact_history_if_needed.

    ``summary`` and ``summary_message`` are only set when compaction ran.
    """

    compacted: bool
    prune_result: PruneResult
    summary: str | None = None
    summary_message: Message | None = None
