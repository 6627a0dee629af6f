"""Core compaction logic.

Decides when a transcript should be compacted and turns the messages pruned
away into a single summary via an injected LLM provider. Summarization
failures degrade step by step down to a fixed placeholder; nothing here
raises to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Mapping, Sequence
from typing import Any

from ..features.events import CompactionEvent, CompactionListener, emit
from ..llm.providers.base import LLMProvider
from ..types.types import Message
from .chunking import DEFAULT_PARTS, normalize_parts, split_by_max_tokens, split_by_token_share
from .pruning import DEFAULT_CONTEXT_WINDOW_TOKENS, prune_context_messages
from .summarizer import MERGE_SUMMARIES_INSTRUCTIONS, generate_summary
from .tokens import estimate_message_tokens, estimate_messages_tokens, estimate_tokens
from .types import CompactionResult, PruningSettings

logger = logging.getLogger(__name__)

# -- Constants ----------------------------------------------------------------

BASE_CHUNK_RATIO = 0.4
MIN_CHUNK_RATIO = 0.15
SAFETY_MARGIN = 1.2
# Average message size (share of the window) above which chunks shrink
ADAPTIVE_RATIO_THRESHOLD = 0.1
# A single message above this share of the window is excluded on retry
OVERSIZED_MESSAGE_SHARE = 0.5

DEFAULT_COMPACTION_TRIGGER_RATIO = 0.75
DEFAULT_SUMMARY_MAX_TOKENS = 900
MIN_SUMMARY_MAX_TOKENS = 64
DEFAULT_MIN_MESSAGES_FOR_SPLIT = 4
DEFAULT_SUMMARY_FALLBACK = "No prior history."

SUMMARY_PREFIX = "[Conversation summary]\n"

# -- Helpers ------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _resolve_window(context_window_tokens: Any) -> int:
    if not _is_number(context_window_tokens) or context_window_tokens <= 0:
        return DEFAULT_CONTEXT_WINDOW_TOKENS
    return max(1, math.floor(context_window_tokens))


def build_summary_message(summary: str) -> Message:
    """Wrap a summary in an assistant message that can be placed before kept history."""
    return Message(role="assistant", content=SUMMARY_PREFIX + summary)


def is_summary_message(message: Message) -> bool:
    """Detect a message produced by build_summary_message."""
    return (
        message.role == "assistant"
        and isinstance(message.content, str)
        and message.content.startswith(SUMMARY_PREFIX)
    )


def _is_oversized_for_summary(message: Message, context_window: int) -> bool:
    tokens = estimate_message_tokens(message) * SAFETY_MARGIN
    return tokens > context_window * OVERSIZED_MESSAGE_SHARE


def _unavailable_summary(message_count: int) -> str:
    return (
        f"Context contained {message_count} messages. "
        f"Summary unavailable due to size limits."
    )


# -- Trigger policy and chunk sizing ------------------------------------------


def should_trigger_compaction(
    messages: Sequence[Message],
    context_window_tokens: int,
    trigger_ratio: float | None = None,
) -> bool:
    """Return True when the estimated transcript size exceeds the trigger threshold."""
    if _is_number(trigger_ratio):
        ratio = min(1.0, max(0.0, trigger_ratio))
    else:
        ratio = DEFAULT_COMPACTION_TRIGGER_RATIO
    total_tokens = estimate_messages_tokens(messages)
    return total_tokens > math.floor(_resolve_window(context_window_tokens) * ratio)


def compute_adaptive_chunk_ratio(messages: Sequence[Message], context_window: int) -> float:
    """Pick the share of the window each summarization chunk may use.

    Large average messages shrink the chunks so that summarization calls do
    not overflow the summarizer's own input limits.
    """
    if not messages or not _is_number(context_window) or context_window <= 0:
        return BASE_CHUNK_RATIO

    avg_tokens = estimate_messages_tokens(messages) / len(messages)
    avg_ratio = (avg_tokens * SAFETY_MARGIN) / context_window

    if avg_ratio > ADAPTIVE_RATIO_THRESHOLD:
        reduction = min(avg_ratio * 2, BASE_CHUNK_RATIO - MIN_CHUNK_RATIO)
        return max(MIN_CHUNK_RATIO, BASE_CHUNK_RATIO - reduction)
    return BASE_CHUNK_RATIO


# -- Summarization pipeline ---------------------------------------------------


async def summarize_chunks(
    messages: Sequence[Message],
    client: LLMProvider,
    model: str,
    max_tokens: int,
    max_chunk_tokens: int,
    custom_instructions: str | None = None,
    previous_summary: str | None = None,
) -> str:
    """Summarize chunk by chunk, refining one running summary.

    Each chunk sees the summary of everything before it, so calls are strictly
    sequential. Client errors propagate.
    """
    if not messages:
        return previous_summary or DEFAULT_SUMMARY_FALLBACK

    summary = previous_summary
    for chunk in split_by_max_tokens(messages, max_chunk_tokens):
        summary = await generate_summary(
            chunk,
            client,
            model,
            max_tokens,
            custom_instructions=custom_instructions,
            previous_summary=summary,
        )
    return summary or DEFAULT_SUMMARY_FALLBACK


async def summarize_with_fallback(
    messages: Sequence[Message],
    client: LLMProvider,
    model: str,
    max_tokens: int,
    max_chunk_tokens: int,
    context_window: int,
    custom_instructions: str | None = None,
    previous_summary: str | None = None,
) -> str:
    """Summarize messages, degrading instead of failing.

    1. Chunked summary of every message
    2. On failure, retry without messages too large to summarize on their own,
       noting each omitted message after the partial summary
    3. On failure again, a fixed text reporting the message count
    """
    if not messages:
        return previous_summary or DEFAULT_SUMMARY_FALLBACK

    try:
        return await summarize_chunks(
            messages,
            client,
            model,
            max_tokens,
            max_chunk_tokens,
            custom_instructions=custom_instructions,
            previous_summary=previous_summary,
        )
    except Exception as err:
        logger.warning(
            "Summarization of %d messages failed, retrying without oversized messages: %s",
            len(messages),
            err,
        )

    small_messages: list[Message] = []
    oversized_notes: list[str] = []
    for msg in messages:
        if _is_oversized_for_summary(msg, context_window):
            tokens = estimate_message_tokens(msg)
            thousands = math.floor(tokens / 1000 + 0.5)
            oversized_notes.append(f"[Large {msg.role} (~{thousands}K tokens) omitted]")
        else:
            small_messages.append(msg)

    if small_messages:
        try:
            partial = await summarize_chunks(
                small_messages,
                client,
                model,
                max_tokens,
                max_chunk_tokens,
                custom_instructions=custom_instructions,
                previous_summary=previous_summary,
            )
            notes = "\n\n" + "\n".join(oversized_notes) if oversized_notes else ""
            return partial + notes
        except Exception as err:
            logger.warning(
                "Partial summarization of %d messages failed: %s", len(small_messages), err
            )

    return _unavailable_summary(len(messages))


async def summarize_in_stages(
    messages: Sequence[Message],
    client: LLMProvider,
    model: str,
    max_tokens: int,
    max_chunk_tokens: int,
    context_window: int,
    custom_instructions: str | None = None,
    previous_summary: str | None = None,
    parts: int = DEFAULT_PARTS,
    min_messages_for_split: int = DEFAULT_MIN_MESSAGES_FOR_SPLIT,
    parallel: bool = False,
) -> str:
    """Split the messages, summarize each part independently, then merge.

    Short transcripts, or ones that already fit in a single chunk, are
    summarized in one pass. With ``parallel=True`` the parts are summarized
    concurrently; the merge always runs after all of them finish.
    """
    if not messages:
        return previous_summary or DEFAULT_SUMMARY_FALLBACK

    min_for_split = max(2, min_messages_for_split)
    normalized_parts = normalize_parts(parts, len(messages))
    total_tokens = estimate_messages_tokens(messages)

    single_pass_kwargs = {
        "custom_instructions": custom_instructions,
        "previous_summary": previous_summary,
    }

    if (
        normalized_parts <= 1
        or len(messages) < min_for_split
        or total_tokens <= max_chunk_tokens
    ):
        return await summarize_with_fallback(
            messages,
            client,
            model,
            max_tokens,
            max_chunk_tokens,
            context_window,
            **single_pass_kwargs,
        )

    splits = [chunk for chunk in split_by_token_share(messages, normalized_parts) if chunk]
    if len(splits) <= 1:
        return await summarize_with_fallback(
            messages,
            client,
            model,
            max_tokens,
            max_chunk_tokens,
            context_window,
            **single_pass_kwargs,
        )

    logger.debug("Summarizing %d messages in %d stages", len(messages), len(splits))

    # Siblings never see each other's output or the previous summary
    def summarize_part(chunk: list[Message]):
        return summarize_with_fallback(
            chunk,
            client,
            model,
            max_tokens,
            max_chunk_tokens,
            context_window,
            custom_instructions=custom_instructions,
        )

    # Coroutines are created only when awaited, so cancellation leaves none pending
    if parallel:
        partial_summaries = list(
            await asyncio.gather(*(summarize_part(chunk) for chunk in splits))
        )
    else:
        partial_summaries = []
        for chunk in splits:
            partial_summaries.append(await summarize_part(chunk))

    if len(partial_summaries) == 1:
        return partial_summaries[0]

    summary_messages = [Message(role="user", content=summary) for summary in partial_summaries]
    merge_instructions = (
        f"{MERGE_SUMMARIES_INSTRUCTIONS}\n\nAdditional focus:\n{custom_instructions}"
        if custom_instructions
        else MERGE_SUMMARIES_INSTRUCTIONS
    )

    return await summarize_with_fallback(
        summary_messages,
        client,
        model,
        max_tokens,
        max_chunk_tokens,
        context_window,
        custom_instructions=merge_instructions,
        previous_summary=previous_summary,
    )


# -- Entry points -------------------------------------------------------------


async def build_compaction_summary(
    client: LLMProvider,
    model: str,
    messages: Sequence[Message],
    context_window_tokens: int,
    max_tokens: int | None = None,
    custom_instructions: str | None = None,
    previous_summary: str | None = None,
    parallel: bool = False,
) -> str:
    """Summarize messages with chunk sizes adapted to the transcript."""
    if not messages:
        return previous_summary or DEFAULT_SUMMARY_FALLBACK

    context_window = _resolve_window(context_window_tokens)
    adaptive_ratio = compute_adaptive_chunk_ratio(messages, context_window)
    max_chunk_tokens = max(1, math.floor(context_window * adaptive_ratio))
    requested = max_tokens if _is_number(max_tokens) else DEFAULT_SUMMARY_MAX_TOKENS
    resolved_max_tokens = max(MIN_SUMMARY_MAX_TOKENS, math.floor(requested))

    return await summarize_in_stages(
        messages,
        client,
        model,
        resolved_max_tokens,
        max_chunk_tokens,
        context_window,
        custom_instructions=custom_instructions,
        previous_summary=previous_summary,
        parallel=parallel,
    )


async def compact_history_if_needed(
    client: LLMProvider,
    model: str,
    messages: Sequence[Message],
    context_window_tokens: int,
    pruning_settings: PruningSettings | Mapping[str, Any] | None = None,
    trigger_ratio: float | None = None,
    max_tokens: int | None = None,
    custom_instructions: str | None = None,
    previous_summary: str | None = None,
    parallel: bool = False,
    on_compaction: CompactionListener | None = None,
) -> CompactionResult:
    """Prune the transcript and summarize what was dropped, when warranted.

    1. Always prune, for the kept messages and statistics
    2. If the trigger did not fire, or nothing was dropped -> return as-is
    3. Otherwise summarize the dropped messages and wrap the summary in a message

    The caller applies the result: ``[summary_message] + prune_result.messages``.
    """
    prune_result = prune_context_messages(messages, context_window_tokens, pruning_settings)

    should_compact = should_trigger_compaction(messages, context_window_tokens, trigger_ratio)
    if not should_compact or not prune_result.dropped_messages:
        return CompactionResult(compacted=False, prune_result=prune_result)

    started = time.monotonic()
    summary = await build_compaction_summary(
        client,
        model,
        prune_result.dropped_messages,
        context_window_tokens,
        max_tokens=max_tokens,
        custom_instructions=custom_instructions,
        previous_summary=previous_summary,
        parallel=parallel,
    )
    duration_ms = (time.monotonic() - started) * 1000

    logger.info(
        "Compacted %d messages (%d chars) into a %d-token summary",
        len(prune_result.dropped_messages),
        prune_result.dropped_chars,
        estimate_tokens(summary),
    )

    await emit(
        on_compaction,
        CompactionEvent(
            kept_messages=len(prune_result.messages),
            dropped_messages=len(prune_result.dropped_messages),
            trimmed_tool_results=prune_result.trimmed_tool_results,
            total_chars=prune_result.total_chars,
            kept_chars=prune_result.kept_chars,
            dropped_chars=prune_result.dropped_chars,
            budget_chars=prune_result.budget_chars,
            summary_tokens=estimate_tokens(summary),
            duration_ms=duration_ms,
        ),
    )

    return CompactionResult(
        compacted=True,
        prune_result=prune_result,
        summary=summary,
        summary_message=build_summary_message(summary),
    )
