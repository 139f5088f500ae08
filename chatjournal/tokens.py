"""Token counting strategies for conversation messages."""

from abc import ABC, abstractmethod
from typing import Any

import tiktoken

CHARS_PER_TOKEN = 4  # Cross-model estimate (EN text/code/JSON)
DEFAULT_ENCODING = "o200k_base"


def message_text(message: dict[str, Any]) -> str:
    """Extract the plain text of a message.

    String content is returned as is, multipart content contributes its
    ``text`` blocks, and missing content is the empty string.
    """
    content = message.get("content")
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", "") or "")
        return "".join(parts)
    return str(content)


class TokenCounter(ABC):
    """Converts a list of messages into a token count."""

    @abstractmethod
    def count(self, messages: list[dict[str, Any]]) -> int:
        """Return the total token count for the given messages."""


class SimpleTokenCounter(TokenCounter):
    """Character-ratio heuristic: one token per ``characters_per_token`` chars."""

    def __init__(self, characters_per_token: int = CHARS_PER_TOKEN):
        if characters_per_token <= 0:
            raise ValueError("characters_per_token must be positive")
        self.characters_per_token = characters_per_token

    def count_message(self, message: dict[str, Any]) -> int:
        return len(message_text(message)) // self.characters_per_token

    def count(self, messages: list[dict[str, Any]]) -> int:
        return sum(self.count_message(m) for m in messages)


class TiktokenTokenCounter(TokenCounter):
    """Exact token counts using a tiktoken encoding."""

    def __init__(self, encoding: str = DEFAULT_ENCODING):
        self.encoding_name = encoding
        self._encoding = tiktoken.get_encoding(encoding)

    def count_message(self, message: dict[str, Any]) -> int:
        text = message_text(message)
        if not text:
            return 0
        return len(self._encoding.encode(text, disallowed_special=()))

    def count(self, messages: list[dict[str, Any]]) -> int:
        return sum(self.count_message(m) for m in messages)


def create_token_counter(
    strategy: str = "simple",
    characters_per_token: int = CHARS_PER_TOKEN,
    encoding: str = DEFAULT_ENCODING,
) -> TokenCounter:
    """Build the token counter named by ``strategy`` ("simple" or "tiktoken")."""
    if strategy == "simple":
        return SimpleTokenCounter(characters_per_token)
    if strategy == "tiktoken":
        return TiktokenTokenCounter(encoding)
    raise ValueError(f"Unknown token counting strategy: {strategy}")
