"""Tests for memory usage math."""

import dataclasses

import pytest

from chatjournal.memory.chat_memory import ChatMemoryUsage


class TestChatMemoryUsage:
    def test_over_budget(self):
        usage = ChatMemoryUsage(current_tokens=1500, max_tokens=1000)
        assert usage.percentage_used() == 150.0
        assert usage.tokens_remaining() == 0

    def test_under_budget(self):
        usage = ChatMemoryUsage(current_tokens=250, max_tokens=1000)
        assert usage.percentage_used() == 25.0
        assert usage.tokens_remaining() == 750

    def test_zero_max_does_not_divide(self):
        usage = ChatMemoryUsage(0, 0)
        assert usage.percentage_used() == 0.0
        assert usage.tokens_remaining() == 0

    def test_is_immutable(self):
        usage = ChatMemoryUsage(1, 2)
        with pytest.raises(dataclasses.FrozenInstanceError):
            usage.current_tokens = 5
