"""Summarizer interface."""

from abc import ABC, abstractmethod
from typing import Any


class Summarizer(ABC):
    """Turns a list of messages into a natural-language summary."""

    @abstractmethod
    async def summarize(self, messages: list[dict[str, Any]]) -> str:
        """
        Summarize the messages.

        May perform network I/O. Raises on failure; callers decide whether to
        retry.
        """
