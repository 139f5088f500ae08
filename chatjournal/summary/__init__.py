"""Conversation summarizers."""

from chatjournal.summary.base import Summarizer
from chatjournal.summary.llm import LLMSummarizer

__all__ = ["LLMSummarizer", "Summarizer"]
