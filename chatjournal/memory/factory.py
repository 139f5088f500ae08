"""Builds checkpoints from messages."""

from typing import Any

from chatjournal.store.base import Checkpoint
from chatjournal.summary.base import Summarizer
from chatjournal.tokens import TokenCounter

SUMMARY_PREFIX = "Summary of previous conversation: "


def summary_message(summary: str) -> dict[str, Any]:
    """The system message that presents a checkpoint summary to the LLM."""
    return {"role": "system", "content": SUMMARY_PREFIX + summary}


class CheckpointFactory:
    """
    Summarizes messages into a checkpoint.

    The stored summary is prefix-free, but its token count covers the
    summary as it is presented later: ``SUMMARY_PREFIX + summary`` in a
    single system message.
    """

    def __init__(self, summarizer: Summarizer, token_counter: TokenCounter):
        if summarizer is None:
            raise ValueError("summarizer must not be None")
        if token_counter is None:
            raise ValueError("token_counter must not be None")
        self.summarizer = summarizer
        self.token_counter = token_counter

    async def create_checkpoint(
        self, messages: list[dict[str, Any]], checkpoint_index: int
    ) -> Checkpoint:
        if messages is None:
            raise ValueError("messages must not be None")
        summary = await self.summarizer.summarize(messages)
        tokens = self.token_counter.count([summary_message(summary)])
        return Checkpoint(checkpoint_index=checkpoint_index, summary=summary, tokens=tokens)
