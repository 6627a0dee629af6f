"""Token estimation utilities for context pruning and compaction.

Uses a simple heuristic: ~4 characters per token. Every budget derived from
these numbers is a soft limit.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from ..types.types import ContentBlock, Message
from ..utils.serializer import json_serialize

CHARS_PER_TOKEN_ESTIMATE = 4

# Framing overhead for a tool_use block (id, type, braces).
TOOL_USE_OVERHEAD_CHARS = 16
# Charged instead of the input size when a tool input cannot be serialized.
UNSERIALIZABLE_INPUT_CHARS = 128


def _estimate_block_chars(block: ContentBlock) -> int:
    if block.type == "text":
        return len(block.text or "")
    if block.type == "tool_use":
        base = len(block.name or "")
        if block.input is None:
            return base + TOOL_USE_OVERHEAD_CHARS
        try:
            return base + len(json_serialize(block.input)) + TOOL_USE_OVERHEAD_CHARS
        except TypeError:
            return base + UNSERIALIZABLE_INPUT_CHARS
    if block.type == "tool_result":
        return len(block.content or "")
    return 0


def estimate_message_chars(message: Message) -> int:
    """Estimate the character size of a single message."""
    if isinstance(message.content, str):
        return len(message.content)
    return sum(_estimate_block_chars(block) for block in message.content)


def estimate_messages_chars(messages: Sequence[Message]) -> int:
    """Estimate the total character size of a list of messages."""
    return sum(estimate_message_chars(msg) for msg in messages)


def estimate_message_tokens(message: Message) -> int:
    """Estimate token count for a single message. Every message costs at least 1 token."""
    chars = estimate_message_chars(message)
    return max(1, math.ceil(chars / CHARS_PER_TOKEN_ESTIMATE))


def estimate_messages_tokens(messages: Sequence[Message]) -> int:
    """Estimate total token count for a list of messages."""
    total = 0
    for msg in messages:
        total += estimate_message_tokens(msg)
    return total


def estimate_tokens(value: str | Message | Sequence[Message] | None) -> int:
    """Estimate token count for a string, a message, or a list of messages."""
    if value is None:
        return 0
    if isinstance(value, str):
        return math.ceil(len(value) / CHARS_PER_TOKEN_ESTIMATE)
    if isinstance(value, Message):
        return estimate_message_tokens(value)
    return estimate_messages_tokens(value)
