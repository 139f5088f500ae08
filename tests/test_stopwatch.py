"""Tests for the elapsed-time logging helper."""

import re

import pytest
from loguru import logger

from chatjournal.utils.stopwatch import Stopwatch


@pytest.fixture
def captured():
    records = []
    sink_id = logger.add(lambda m: records.append(m.record), level="DEBUG", format="{message}")
    yield records
    logger.remove(sink_id)


class TestStopwatch:
    def test_rejects_unknown_unit(self):
        with pytest.raises(ValueError):
            Stopwatch(unit="fortnights")

    def test_elapsed_is_non_negative_and_formatted(self):
        sw = Stopwatch.start(unit="s", precision=3)
        assert sw.elapsed() >= 0
        assert re.fullmatch(r"\d+\.\d{3} s", sw.format_elapsed())

    def test_mark_restarts(self):
        sw = Stopwatch.start(unit="ns")
        started = sw._start_ns
        sw.mark()
        assert sw._start_ns >= started

    @pytest.mark.parametrize("method,level", [
        ("debug", "DEBUG"), ("info", "INFO"), ("warning", "WARNING"), ("error", "ERROR"),
    ])
    def test_logs_with_elapsed_suffix(self, captured, method, level):
        sw = Stopwatch.start()
        getattr(sw, method)("Saved checkpoint for c1")

        record = captured[-1]
        assert record["level"].name == level
        assert re.fullmatch(r"Saved checkpoint for c1 \(\d+\.\d{2} ms\)", record["message"])

    def test_log_points_at_caller(self, captured):
        Stopwatch.start().info("where")
        assert captured[-1]["function"] == "test_log_points_at_caller"
