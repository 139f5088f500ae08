"""Tests for the chatjournal CLI."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from typer.testing import CliRunner

from chatjournal import __version__
from chatjournal.builder import build_memory
from chatjournal.cli import commands
from chatjournal.cli.commands import app
from chatjournal.config.loader import load_config
from chatjournal.providers.base import LLMResponse
from chatjournal.summary.base import Summarizer

runner = CliRunner()


class StaticSummarizer(Summarizer):
    async def summarize(self, messages):
        return "cli summary"


@pytest.fixture
def journal(tmp_path, monkeypatch):
    """Point the CLI at a throwaway sqlite journal."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("CHATJOURNAL_STORAGE__BACKEND", "sqlite")
    monkeypatch.setenv("CHATJOURNAL_STORAGE__PATH", str(tmp_path / "journal.db"))
    monkeypatch.setenv("CHATJOURNAL_JOURNAL__MIN_RETAINED_ENTRIES", "2")
    monkeypatch.setattr(
        commands, "build_memory",
        lambda config, provider=None: build_memory(config, summarizer=StaticSummarizer()),
    )
    return tmp_path


def _seed(messages, conversation_id="c1"):
    memory = build_memory(load_config(), summarizer=StaticSummarizer())

    async def run():
        await memory.add(conversation_id, messages)
        await memory.scheduler.drain()

    asyncio.run(run())


def _turns(n):
    messages = []
    for i in range(n):
        messages.append({"role": "user", "content": f"question {i}"})
        messages.append({"role": "assistant", "content": f"answer {i}"})
    return messages


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestHistory:
    def test_empty(self, journal):
        result = runner.invoke(app, ["history", "c1"])
        assert result.exit_code == 0
        assert "No messages" in result.output

    def test_lists_newest_first(self, journal):
        _seed(_turns(2) + [{"role": "system", "content": "hidden note"}])
        result = runner.invoke(app, ["history", "c1"])
        assert result.exit_code == 0
        assert "answer 1" in result.output
        assert "question 0" in result.output
        assert "hidden note" not in result.output
        assert result.output.index("answer 1") < result.output.index("question 0")
        assert "Page 1 of 1 (4 messages)" in result.output

    def test_pagination(self, journal):
        _seed(_turns(3))
        result = runner.invoke(app, ["history", "c1", "--page", "1", "--size", "2"])
        assert result.exit_code == 0
        assert "answer 1" in result.output
        assert "answer 2" not in result.output
        assert "Page 2 of 3" in result.output


class TestUsage:
    def test_shows_tokens(self, journal):
        _seed([{"role": "user", "content": "x" * 400}])
        result = runner.invoke(app, ["usage", "c1"])
        assert result.exit_code == 0
        assert "100" in result.output
        assert "8192" in result.output


class TestCompact:
    def test_nothing_to_compact(self, journal):
        _seed(_turns(1))
        result = runner.invoke(app, ["compact", "c1"])
        assert result.exit_code == 0
        assert "Nothing to compact" in result.output

    def test_compacts(self, journal):
        _seed(_turns(3))
        result = runner.invoke(app, ["compact", "c1"])
        assert result.exit_code == 0
        assert "Compacted c1" in result.output


class TestClear:
    def test_clear_with_yes(self, journal):
        _seed(_turns(1))
        result = runner.invoke(app, ["clear", "c1", "--yes"])
        assert result.exit_code == 0
        assert "Cleared c1" in result.output
        assert "No messages" in runner.invoke(app, ["history", "c1"]).output

    def test_clear_aborted(self, journal):
        _seed(_turns(1))
        result = runner.invoke(app, ["clear", "c1"], input="n\n")
        assert result.exit_code == 0
        assert "question 0" in runner.invoke(app, ["history", "c1"]).output


class TestChat:
    @pytest.fixture
    def provider(self, monkeypatch):
        provider = AsyncMock()
        provider.chat = AsyncMock(return_value=LLMResponse(content="Hello from the model"))
        monkeypatch.setattr(commands, "build_provider", lambda config: provider)
        return provider

    def test_single_message(self, journal, provider):
        result = runner.invoke(app, ["chat", "c1", "-m", "hi"])
        assert result.exit_code == 0
        assert "Hello from the model" in result.output

        sent = provider.chat.call_args.kwargs["messages"]
        assert sent == [{"role": "user", "content": "hi"}]
        history = runner.invoke(app, ["history", "c1"]).output
        assert "Hello from the model" in history

    def test_interactive_loop_remembers(self, journal, provider):
        result = runner.invoke(app, ["chat", "c1"], input="first\nsecond\nexit\n")
        assert result.exit_code == 0
        assert provider.chat.await_count == 2
        sent = provider.chat.call_args.kwargs["messages"]
        assert [m["content"] for m in sent] == ["first", "Hello from the model", "second"]

    def test_provider_error_is_not_journaled(self, journal, provider):
        provider.chat = AsyncMock(
            return_value=LLMResponse(content="Error calling LLM: down", finish_reason="error")
        )
        result = runner.invoke(app, ["chat", "c1", "-m", "hi"])
        assert result.exit_code == 0
        assert "down" in result.output
        history = runner.invoke(app, ["history", "c1"]).output
        assert "Error calling LLM" not in history
