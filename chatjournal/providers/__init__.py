"""LLM provider abstraction used by the summarizer."""

from chatjournal.providers.base import LLMProvider, LLMResponse
from chatjournal.providers.litellm_provider import LiteLLMProvider

__all__ = ["LLMProvider", "LLMResponse", "LiteLLMProvider"]
