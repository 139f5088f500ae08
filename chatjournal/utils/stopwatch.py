"""Elapsed-time logging helper."""

import time

from loguru import logger

_UNIT_DIVISORS = {
    "ns": 1,
    "µs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "min": 60_000_000_000,
}


class Stopwatch:
    """Logs a message with the time elapsed since the stopwatch started.

    Usage::

        sw = Stopwatch.start()
        do_work()
        sw.info(f"Did work for {conversation_id}")
        # -> "Did work for abc (12.34 ms)"
    """

    def __init__(self, unit: str = "ms", precision: int = 2):
        if unit not in _UNIT_DIVISORS:
            raise ValueError(f"Unknown unit: {unit}")
        self.unit = unit
        self.precision = precision
        self._start_ns = time.perf_counter_ns()

    @classmethod
    def start(cls, unit: str = "ms", precision: int = 2) -> "Stopwatch":
        return cls(unit=unit, precision=precision)

    def mark(self) -> None:
        """Restart timing from now."""
        self._start_ns = time.perf_counter_ns()

    def elapsed(self) -> float:
        """Elapsed time in the configured unit."""
        return (time.perf_counter_ns() - self._start_ns) / _UNIT_DIVISORS[self.unit]

    def format_elapsed(self) -> str:
        return f"{self.elapsed():.{self.precision}f} {self.unit}"

    def _log(self, level: str, message: str) -> None:
        logger.opt(depth=2).log(level, f"{message} ({self.format_elapsed()})")

    def debug(self, message: str) -> None:
        self._log("DEBUG", message)

    def info(self, message: str) -> None:
        self._log("INFO", message)

    def warning(self, message: str) -> None:
        self._log("WARNING", message)

    def error(self, message: str) -> None:
        self._log("ERROR", message)
