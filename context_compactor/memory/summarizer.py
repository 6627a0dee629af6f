"""Prompt construction and single summarization calls."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..features.tracing import summarization_span
from ..llm.providers.base import LLMProvider
from ..types.types import Message
from ..utils.serializer import safe_serialize
from .tokens import estimate_messages_tokens

logger = logging.getLogger(__name__)

# -- Constants ----------------------------------------------------------------

DEFAULT_SUMMARY_INSTRUCTIONS = (
    "Summarize the following conversation history. Preserve key decisions, TODOs, "
    "open questions, and constraints. Keep it concise but complete, and leave out "
    "irrelevant details."
)

SUMMARIZER_SYSTEM_PROMPT = (
    "You are a conversation summarizer. Produce concise, accurate summaries."
)

MERGE_SUMMARIES_INSTRUCTIONS = (
    "Merge these partial summaries into a single cohesive summary. Preserve decisions, "
    "TODOs, open questions, and any constraints."
)

PREVIOUS_SUMMARY_HEADER = "Existing summary:"
TRANSCRIPT_HEADER = "Conversation excerpt:"
OUTPUT_CUE = "Summary:"


class SummarizationError(RuntimeError):
    """Raised when the summarization client returns no usable text."""


# -- Formatting ---------------------------------------------------------------


def format_message_content(message: Message) -> str:
    """Flatten a message's content to text, with inline tags for tool blocks."""
    if isinstance(message.content, str):
        return message.content
    parts = []
    for block in message.content:
        if block.type == "text":
            if block.text:
                parts.append(block.text)
        elif block.type == "tool_use":
            name = block.name or "tool"
            parts.append(f"[tool_use {name}] {safe_serialize(block.input)}")
        elif block.type == "tool_result":
            parts.append(f"[tool_result] {block.content or ''}")
    return "\n".join(parts)


def format_messages_for_summary(messages: Sequence[Message]) -> str:
    """Render messages as one "<role>: <content>" line each."""
    return "\n".join(f"{msg.role}: {format_message_content(msg)}" for msg in messages)


def build_summary_prompt(
    messages: Sequence[Message],
    instructions: str | None = None,
    previous_summary: str | None = None,
) -> str:
    """Build the user prompt for one summarization call."""
    base = instructions or DEFAULT_SUMMARY_INSTRUCTIONS
    previous = f"{PREVIOUS_SUMMARY_HEADER}\n{previous_summary}\n\n" if previous_summary else ""
    transcript = format_messages_for_summary(messages)
    return f"{base}\n\n{previous}{TRANSCRIPT_HEADER}\n{transcript}\n\n{OUTPUT_CUE}"


# -- LLM call -----------------------------------------------------------------


async def generate_summary(
    messages: Sequence[Message],
    client: LLMProvider,
    model: str,
    max_tokens: int,
    custom_instructions: str | None = None,
    previous_summary: str | None = None,
) -> str:
    """Summarize one chunk of messages with a single client call.

    Raises:
        SummarizationError: If the client returned empty text
        Exception: Anything the client raises is propagated unchanged
    """
    prompt = build_summary_prompt(messages, custom_instructions, previous_summary)

    with summarization_span(
        "compaction.summarize",
        attributes={
            "compaction.model": model,
            "compaction.max_tokens": max_tokens,
            "compaction.messages": len(messages),
            "compaction.input_tokens_estimate": estimate_messages_tokens(messages),
            "compaction.has_previous_summary": previous_summary is not None,
        },
    ):
        logger.debug("Summarizing %d messages with %s", len(messages), model)
        response = await client.generate(
            messages=[{"role": "user", "content": prompt}],
            model=model,
            system=SUMMARIZER_SYSTEM_PROMPT,
            max_tokens=max_tokens,
        )
        text = (response.content or "").strip()
        if not text:
            raise SummarizationError(f"Summarization with {model} returned no text")
        return text
