"""Tests for the LLM-backed summarizer."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from loguru import logger

from chatjournal.errors import SummarizationError
from chatjournal.prompts.summary import SUMMARY_REQUEST, SUMMARY_SYSTEM_PROMPT
from chatjournal.providers.base import LLMResponse
from chatjournal.providers.litellm_provider import LiteLLMProvider
from chatjournal.summary.llm import LLMSummarizer


def _provider(response):
    provider = AsyncMock()
    provider.chat = AsyncMock(return_value=response)
    provider.get_default_model = MagicMock(return_value="openai/default-model")
    return provider


class TestFormatTranscript:
    def test_basic_format(self):
        text = LLMSummarizer._format_transcript([
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Hi there"},
        ])
        assert text.startswith("=== CONVERSATION ===\n")
        assert "[user] Hello\n" in text
        assert "[assistant] Hi there\n" in text
        assert text.endswith("=== END ===\n")

    def test_previous_summary_is_kept_verbatim(self):
        text = LLMSummarizer._format_transcript([
            {"role": "system", "content": "Summary of previous conversation: S1"},
            {"role": "user", "content": "next"},
        ])
        assert "[system] Summary of previous conversation: S1\n" in text

    def test_tool_messages(self):
        text = LLMSummarizer._format_transcript([
            {
                "role": "assistant",
                "content": "",
                "tool_calls": [{"function": {"name": "search", "arguments": {"q": "x"}}}],
            },
            {"role": "tool", "name": "search", "content": "result"},
        ])
        assert '[tool_call] search({"q": "x"})' in text
        assert "[tool_response:search] result" in text


class TestSummarize:
    @pytest.mark.asyncio
    async def test_sends_prompt_and_returns_stripped_summary(self):
        provider = _provider(LLMResponse(content="  the summary \n"))
        summarizer = LLMSummarizer(provider, model="openai/gpt-4o-mini", max_tokens=512)

        result = await summarizer.summarize([{"role": "user", "content": "Hello"}])

        assert result == "the summary"
        kwargs = provider.chat.call_args.kwargs
        assert kwargs["model"] == "openai/gpt-4o-mini"
        assert kwargs["max_tokens"] == 512
        assert kwargs["temperature"] == 0.3
        request = kwargs["messages"]
        assert request[0] == {"role": "system", "content": SUMMARY_SYSTEM_PROMPT}
        assert request[1]["role"] == "user"
        assert "[user] Hello" in request[1]["content"]
        assert request[1]["content"].endswith(SUMMARY_REQUEST)

    @pytest.mark.asyncio
    async def test_falls_back_to_provider_default_model(self):
        provider = _provider(LLMResponse(content="summary"))

        await LLMSummarizer(provider).summarize([{"role": "user", "content": "Hello"}])

        provider.get_default_model.assert_called_once_with()
        assert provider.chat.call_args.kwargs["model"] == "openai/default-model"

    @pytest.mark.asyncio
    async def test_configured_model_wins_over_default(self):
        provider = _provider(LLMResponse(content="summary"))

        await LLMSummarizer(provider, model="openai/other").summarize([{"role": "user", "content": "x"}])

        provider.get_default_model.assert_not_called()
        assert provider.chat.call_args.kwargs["model"] == "openai/other"

    @pytest.mark.asyncio
    async def test_logs_token_usage(self):
        provider = _provider(LLMResponse(
            content="summary",
            usage={"prompt_tokens": 120, "completion_tokens": 30, "total_tokens": 150},
        ))
        records = []
        sink_id = logger.add(records.append, level="DEBUG", format="{message}")
        try:
            await LLMSummarizer(provider).summarize([{"role": "user", "content": "x"}])
        finally:
            logger.remove(sink_id)

        assert any(
            "openai/default-model used 120 prompt + 30 completion tokens" in str(r) for r in records
        )

    @pytest.mark.asyncio
    async def test_provider_error_raises(self):
        provider = _provider(LLMResponse(content="Error calling LLM: timeout", finish_reason="error"))
        with pytest.raises(SummarizationError, match="timeout"):
            await LLMSummarizer(provider).summarize([{"role": "user", "content": "x"}])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", None])
    async def test_empty_summary_raises(self, content):
        provider = _provider(LLMResponse(content=content))
        with pytest.raises(SummarizationError):
            await LLMSummarizer(provider).summarize([{"role": "user", "content": "x"}])

    def test_rejects_missing_provider(self):
        with pytest.raises(ValueError):
            LLMSummarizer(None)


class TestLiteLLMProvider:
    @pytest.mark.asyncio
    async def test_parses_completion(self):
        response = MagicMock()
        response.choices = [MagicMock()]
        response.choices[0].message.content = "done"
        response.choices[0].finish_reason = "stop"
        response.usage.prompt_tokens = 10
        response.usage.completion_tokens = 2
        response.usage.total_tokens = 12

        provider = LiteLLMProvider(default_model="openai/gpt-4o-mini")
        with patch(
            "chatjournal.providers.litellm_provider.acompletion",
            AsyncMock(return_value=response),
        ) as mock_call:
            result = await provider.chat([{"role": "user", "content": "hi"}])

        assert result.content == "done"
        assert result.usage["total_tokens"] == 12
        assert not result.is_error
        assert mock_call.call_args.kwargs["model"] == "openai/gpt-4o-mini"
        assert provider.get_default_model() == "openai/gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_errors_become_error_responses(self):
        provider = LiteLLMProvider(default_model="openai/gpt-4o-mini")
        with patch(
            "chatjournal.providers.litellm_provider.acompletion",
            AsyncMock(side_effect=RuntimeError("rate limited")),
        ):
            result = await provider.chat([{"role": "user", "content": "hi"}])

        assert result.is_error
        assert "rate limited" in result.content
