"""Budget-based pruning of conversation history.

Keeps the newest messages verbatim within a share of the context window,
always keeps the last few assistant turns, and drops everything older as a
contiguous prefix. Oversized tool results in kept messages are soft-trimmed.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from typing import Any

from ..types.types import ContentBlock, Message, ToolResultBlock
from .tokens import CHARS_PER_TOKEN_ESTIMATE, estimate_message_chars
from .types import PruneResult, PruningSettings, SoftTrimSettings

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_WINDOW_TOKENS = 200_000
DEFAULT_PRUNING_SETTINGS = PruningSettings()

TRIM_MARKER_TEMPLATE = "[Tool result trimmed: {omitted} chars omitted]"


# -- Settings -----------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _clamp_share(value: Any, fallback: float) -> float:
    if not _is_number(value):
        return fallback
    return float(min(1.0, max(0.0, value)))


def _non_negative_int(value: Any, fallback: int) -> int:
    if not _is_number(value):
        return fallback
    return max(0, math.floor(value))


def _as_mapping(raw: Any) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, (PruningSettings, SoftTrimSettings)):
        return raw.model_dump()
    if isinstance(raw, Mapping):
        return raw
    return {}


def resolve_pruning_settings(
    raw: PruningSettings | Mapping[str, Any] | None = None,
) -> PruningSettings:
    """Coerce arbitrary (possibly partial or malformed) input into valid settings.

    Never raises. Missing, non-numeric, boolean and non-finite fields fall back
    to the defaults; ``max_history_share`` is clamped to [0, 1] and every count
    is floored to a non-negative integer. Resolving twice yields the same value.
    """
    values = _as_mapping(raw)
    soft_trim = _as_mapping(values.get("soft_trim"))
    defaults = DEFAULT_PRUNING_SETTINGS

    settings = PruningSettings(
        max_history_share=_clamp_share(
            values.get("max_history_share"), defaults.max_history_share
        ),
        keep_last_assistants=_non_negative_int(
            values.get("keep_last_assistants"), defaults.keep_last_assistants
        ),
        soft_trim=SoftTrimSettings(
            max_chars=_non_negative_int(soft_trim.get("max_chars"), defaults.soft_trim.max_chars),
            head_chars=_non_negative_int(
                soft_trim.get("head_chars"), defaults.soft_trim.head_chars
            ),
            tail_chars=_non_negative_int(
                soft_trim.get("tail_chars"), defaults.soft_trim.tail_chars
            ),
        ),
    )

    trim = settings.soft_trim
    if trim.head_chars + trim.tail_chars >= trim.max_chars:
        logger.warning(
            "Soft-trim head_chars (%d) + tail_chars (%d) >= max_chars (%d); "
            "trimmed tool results may not shrink",
            trim.head_chars,
            trim.tail_chars,
            trim.max_chars,
        )
    return settings


# -- Soft trim ----------------------------------------------------------------


def _soft_trim_block(
    block: ContentBlock, settings: SoftTrimSettings
) -> tuple[ContentBlock, bool]:
    if not isinstance(block, ToolResultBlock):
        return block, False
    raw = block.content or ""
    raw_len = len(raw)
    if raw_len <= settings.max_chars:
        return block, False
    # Nothing would be removed
    if settings.head_chars + settings.tail_chars >= raw_len:
        return block, False

    head = raw[: settings.head_chars]
    tail = raw[raw_len - settings.tail_chars :]
    omitted = raw_len - settings.head_chars - settings.tail_chars
    marker = TRIM_MARKER_TEMPLATE.format(omitted=omitted)
    return block.model_copy(update={"content": f"{head}\n...\n{marker}\n...\n{tail}"}), True


def apply_soft_trim(
    messages: Sequence[Message], settings: SoftTrimSettings
) -> tuple[list[Message], int]:
    """Shorten oversized tool results.

    Untouched messages are returned as the same objects; messages with trimmed
    blocks are copies.

    Returns:
        Tuple of (messages, number of trimmed tool results)
    """
    trimmed_count = 0
    output: list[Message] = []

    for msg in messages:
        if isinstance(msg.content, str):
            output.append(msg)
            continue

        changed = False
        blocks: list[ContentBlock] = []
        for block in msg.content:
            new_block, trimmed = _soft_trim_block(block, settings)
            if trimmed:
                trimmed_count += 1
                changed = True
            blocks.append(new_block)

        output.append(msg.model_copy(update={"content": blocks}) if changed else msg)

    return output, trimmed_count


# -- Pruning ------------------------------------------------------------------


def find_protected_index(messages: Sequence[Message], keep_last_assistants: int) -> int:
    """Return the index where the always-kept suffix begins.

    The suffix starts at the ``keep_last_assistants``-th most recent assistant
    message (and so includes any user turns interleaved after it). With fewer
    assistant turns than requested, it starts at the earliest one. Returns
    ``len(messages)`` when nothing is protected.
    """
    if keep_last_assistants <= 0:
        return len(messages)

    remaining = keep_last_assistants
    earliest_assistant = len(messages)
    for i in range(len(messages) - 1, -1, -1):
        if messages[i].role != "assistant":
            continue
        earliest_assistant = i
        remaining -= 1
        if remaining == 0:
            return i
    return earliest_assistant


def _resolve_context_tokens(context_window_tokens: Any) -> int:
    if not _is_number(context_window_tokens) or context_window_tokens <= 0:
        return DEFAULT_CONTEXT_WINDOW_TOKENS
    return max(1, math.floor(context_window_tokens))


def prune_context_messages(
    messages: Sequence[Message],
    context_window_tokens: int,
    settings: PruningSettings | Mapping[str, Any] | None = None,
) -> PruneResult:
    """Decide which messages to keep verbatim under the history budget.

    1. budget_chars = context window * max_history_share * chars-per-token
    2. Everything from the protected index on is kept, even over budget
    3. Older messages are kept newest-first while they fit; the first one that
       does not fit ends the walk and it plus everything older is dropped
    4. Oversized tool results in kept messages are soft-trimmed

    The input sequence is never modified.
    """
    resolved = resolve_pruning_settings(settings)
    context_tokens = _resolve_context_tokens(context_window_tokens)
    budget_chars = max(
        0,
        math.floor(context_tokens * resolved.max_history_share * CHARS_PER_TOKEN_ESTIMATE),
    )

    if not messages:
        return PruneResult(budget_chars=budget_chars)

    sizes = [estimate_message_chars(msg) for msg in messages]
    total_chars = sum(sizes)
    count = len(messages)

    protected_index = find_protected_index(messages, resolved.keep_last_assistants)
    used = sum(sizes[protected_index:])
    start = protected_index

    for i in range(protected_index - 1, -1, -1):
        # Never prune down to nothing: the newest message is always kept
        if used + sizes[i] > budget_chars and start < count:
            break
        used += sizes[i]
        start = i

    kept = list(messages[start:])
    dropped = list(messages[:start])
    kept_chars = sum(sizes[start:])

    trimmed_messages, trimmed_count = apply_soft_trim(kept, resolved.soft_trim)
    kept_chars_after_trim = sum(estimate_message_chars(msg) for msg in trimmed_messages)

    if kept_chars > budget_chars:
        logger.debug(
            "Protected messages exceed history budget: kept %d chars, budget %d chars",
            kept_chars,
            budget_chars,
        )
    logger.debug(
        "Pruned %d of %d messages (%d trimmed tool results)",
        len(dropped),
        count,
        trimmed_count,
    )

    return PruneResult(
        messages=trimmed_messages,
        dropped_messages=dropped,
        trimmed_tool_results=trimmed_count,
        total_chars=total_chars,
        kept_chars=kept_chars,
        dropped_chars=total_chars - kept_chars,
        budget_chars=budget_chars,
        kept_chars_after_trim=kept_chars_after_trim,
    )
