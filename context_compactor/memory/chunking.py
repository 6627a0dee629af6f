"""Chunking strategies that feed the summarizer within its input limits.

Both splitters are pure partitions: concatenating the chunks in order gives
back the input, and no chunk is empty.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any

from ..types.types import Message
from .tokens import estimate_message_tokens, estimate_messages_tokens

DEFAULT_PARTS = 2


def normalize_parts(parts: Any, message_count: int) -> int:
    """Clamp a requested part count to [1, message_count]."""
    if (
        not isinstance(parts, (int, float))
        or isinstance(parts, bool)
        or not math.isfinite(parts)
        or parts <= 1
    ):
        return 1
    return min(max(1, math.floor(parts)), max(1, message_count))


def split_by_token_share(
    messages: Sequence[Message], parts: int = DEFAULT_PARTS
) -> list[list[Message]]:
    """Split messages into at most ``parts`` chunks of roughly equal token size."""
    if not messages:
        return []
    normalized = normalize_parts(parts, len(messages))
    if normalized <= 1:
        return [list(messages)]

    target_tokens = estimate_messages_tokens(messages) / normalized
    chunks: list[list[Message]] = []
    current: list[Message] = []
    current_tokens = 0

    for message in messages:
        message_tokens = estimate_message_tokens(message)
        if (
            len(chunks) < normalized - 1
            and current
            and current_tokens + message_tokens > target_tokens
        ):
            chunks.append(current)
            current = []
            current_tokens = 0
        current.append(message)
        current_tokens += message_tokens

    if current:
        chunks.append(current)
    return chunks


def split_by_max_tokens(messages: Sequence[Message], max_tokens: int) -> list[list[Message]]:
    """Split messages into chunks of at most ``max_tokens`` each.

    A message larger than ``max_tokens`` on its own becomes a singleton chunk.
    """
    if not messages:
        return []

    chunks: list[list[Message]] = []
    current: list[Message] = []
    current_tokens = 0

    for message in messages:
        message_tokens = estimate_message_tokens(message)
        if current and current_tokens + message_tokens > max_tokens:
            chunks.append(current)
            current = []
            current_tokens = 0

        current.append(message)
        current_tokens += message_tokens

        if message_tokens > max_tokens:
            chunks.append(current)
            current = []
            current_tokens = 0

    if current:
        chunks.append(current)
    return chunks
