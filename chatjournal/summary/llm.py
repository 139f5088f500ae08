"""Summarizer backed by an LLM provider."""

import json
from typing import Any

from loguru import logger

from chatjournal.errors import SummarizationError
from chatjournal.prompts.summary import SUMMARY_REQUEST, SUMMARY_SYSTEM_PROMPT
from chatjournal.providers.base import LLMProvider
from chatjournal.summary.base import Summarizer
from chatjournal.tokens import message_text


class LLMSummarizer(Summarizer):
    """Summarizes a conversation transcript with a single chat completion."""

    def __init__(
        self,
        provider: LLMProvider,
        model: str | None = None,
        temperature: float = 0.3,
        max_tokens: int | None = None,
    ):
        if provider is None:
            raise ValueError("provider must not be None")
        self.provider = provider
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def summarize(self, messages: list[dict[str, Any]]) -> str:
        logger.info(f"Summarizing {len(messages)} messages")

        request = [
            {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
            {"role": "user", "content": self._format_transcript(messages) + SUMMARY_REQUEST},
        ]
        model = self.model or self.provider.get_default_model()
        response = await self.provider.chat(
            messages=request,
            model=model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )

        if response.is_error:
            raise SummarizationError(response.content or "LLM call failed")
        if response.usage:
            logger.debug(
                f"Summary call to {model} used {response.usage.get('prompt_tokens', 0)} prompt + "
                f"{response.usage.get('completion_tokens', 0)} completion tokens"
            )
        summary = (response.content or "").strip()
        if not summary:
            raise SummarizationError("LLM returned an empty summary")
        return summary

    @staticmethod
    def _format_transcript(messages: list[dict[str, Any]]) -> str:
        """Render messages as a role-tagged transcript."""
        parts = ["=== CONVERSATION ===\n"]
        for msg in messages:
            role = msg.get("role", "")
            content = message_text(msg)

            if role == "assistant" and msg.get("tool_calls"):
                for tc in msg["tool_calls"]:
                    fn = tc.get("function", {})
                    args = fn.get("arguments", "")
                    if isinstance(args, dict):
                        args = json.dumps(args)
                    parts.append(f"[tool_call] {fn.get('name', '')}({args})\n")
                if content:
                    parts.append(f"[assistant] {content}\n")
            elif role == "tool":
                parts.append(f"[tool_response:{msg.get('name', '')}] {content}\n")
            else:
                parts.append(f"[{role}] {content}\n")

        parts.append("=== END ===\n")
        return "".join(parts)
