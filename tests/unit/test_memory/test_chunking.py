"""Unit tests for context_compactor.memory.chunking module."""

import math

import pytest

from context_compactor.memory.chunking import (
    normalize_parts,
    split_by_max_tokens,
    split_by_token_share,
)
from context_compactor.types import Message


def sized(tokens: int, role: str = "user") -> Message:
    """Message estimating to exactly `tokens` tokens (4 chars per token)."""
    return Message(role=role, content="x" * (tokens * 4))


def flatten(chunks):
    return [msg for chunk in chunks for msg in chunk]


class TestNormalizeParts:
    """Tests for normalize_parts function."""

    def test_values_at_or_below_one(self):
        assert normalize_parts(1, 10) == 1
        assert normalize_parts(0, 10) == 1
        assert normalize_parts(-4, 10) == 1

    def test_non_finite(self):
        assert normalize_parts(math.nan, 10) == 1
        assert normalize_parts(math.inf, 10) == 1

    def test_floors_and_caps_at_message_count(self):
        assert normalize_parts(3.7, 10) == 3
        assert normalize_parts(8, 3) == 3


class TestSplitByTokenShare:
    """Tests for split_by_token_share function."""

    def test_empty_input(self):
        assert split_by_token_share([], 3) == []

    def test_single_part_returns_everything(self):
        messages = [sized(10), sized(10)]
        assert split_by_token_share(messages, 1) == [messages]

    def test_even_split(self):
        messages = [sized(10) for _ in range(4)]
        chunks = split_by_token_share(messages, 2)
        assert [len(chunk) for chunk in chunks] == [2, 2]

    def test_last_chunk_absorbs_remainder(self):
        messages = [sized(1), sized(1), sized(100), sized(100), sized(100)]
        chunks = split_by_token_share(messages, 2)
        assert len(chunks) == 2
        assert flatten(chunks) == messages

    def test_large_first_message_gets_own_chunk(self):
        messages = [sized(100), sized(5), sized(5)]
        chunks = split_by_token_share(messages, 2)
        assert chunks == [[messages[0]], messages[1:]]

    @pytest.mark.parametrize("parts", [2, 3, 5, 50])
    def test_partition_is_exact(self, parts):
        messages = [sized((i * 7) % 13 + 1) for i in range(20)]
        chunks = split_by_token_share(messages, parts)
        assert len(chunks) <= parts
        assert all(chunk for chunk in chunks)
        assert flatten(chunks) == messages


class TestSplitByMaxTokens:
    """Tests for split_by_max_tokens function."""

    def test_empty_input(self):
        assert split_by_max_tokens([], 100) == []

    def test_groups_within_limit(self):
        messages = [sized(30), sized(30), sized(30), sized(30)]
        chunks = split_by_max_tokens(messages, 60)
        assert chunks == [messages[:2], messages[2:]]

    def test_oversized_message_is_singleton(self):
        small_a, big, small_b = sized(10), sized(500), sized(10)
        chunks = split_by_max_tokens([small_a, big, small_b], 100)
        assert chunks == [[small_a], [big], [small_b]]

    def test_consecutive_oversized_messages_stay_apart(self):
        big_a, big_b = sized(200), sized(300)
        assert split_by_max_tokens([big_a, big_b], 100) == [[big_a], [big_b]]

    @pytest.mark.parametrize("max_tokens", [0, 1, 15, 40, 1000])
    def test_partition_is_exact(self, max_tokens):
        messages = [sized((i * 11) % 17 + 1) for i in range(25)]
        chunks = split_by_max_tokens(messages, max_tokens)
        assert all(chunk for chunk in chunks)
        assert flatten(chunks) == messages
