"""
Root logging setup (colorlog) and the per-category error tally printed when
the bot shuts down.
"""

import logging
import os
import sys
import threading
import time
from collections import deque
from typing import Any, TextIO

import colorlog

_DEBUG_VALUES = ("true", "1", "yes")
_RECENT_WINDOW_SECONDS = 3600
_MAX_KEPT_PER_CATEGORY = 1000


class ErrorAggregator:
    """Counts failures by category (network, parsing, persistence, ...).

    Only the most recent occurrences of each category are kept; the running
    total is tracked separately so trimming never lowers it.
    """

    def __init__(self, max_kept: int = _MAX_KEPT_PER_CATEGORY):
        self.max_kept = max_kept
        self._recent: dict[str, deque[dict[str, Any]]] = {}
        self._totals: dict[str, int] = {}
        self._lock = threading.Lock()

    def record_error(self, error_type: str, message: str, context: dict[str, Any] | None = None) -> None:
        entry = {"timestamp": time.time(), "message": message, "context": dict(context or {})}
        with self._lock:
            self._recent.setdefault(error_type, deque(maxlen=self.max_kept)).append(entry)
            self._totals[error_type] = self._totals.get(error_type, 0) + 1

    def get_error_summary(self) -> dict[str, Any]:
        cutoff = time.time() - _RECENT_WINDOW_SECONDS
        with self._lock:
            return {
                error_type: {
                    "total_count": self._totals[error_type],
                    "kept_count": len(entries),
                    "recent_count": sum(1 for e in entries if e["timestamp"] >= cutoff),
                    "last_occurrence": entries[-1] if entries else None,
                }
                for error_type, entries in self._recent.items()
            }

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("🧾 No errors recorded this session")
            return
        logging.warning("🚨 Error summary for this session")
        for error_type, stats in sorted(summary.items()):
            last = stats["last_occurrence"]
            logging.warning(
                f"  {error_type}: {stats['total_count']} total, "
                f"{stats['recent_count']} in the last hour"
                + (f" (last: {last['message']})" if last else "")
            )

    def clear(self) -> None:
        with self._lock:
            self._recent.clear()
            self._totals.clear()


error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: Exception | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log ``[CATEGORY] message | Exception: ... | Context: k=v`` and tally it.

    Args:
        error_type: Category such as 'network', 'parsing' or 'persistence'.
        message: Human readable description.
        exception: Exception being reported, if any.
        context: Extra key/value pairs (channel, sender, path...).
        level: Logging level, ERROR unless the caller knows better.
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {exception}")
    if context:
        parts.append("Context: " + " ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, " | ".join(parts))
    error_aggregator.record_error(error_type, message, context)


def debug_enabled() -> bool:
    return os.environ.get("DEBUG", "").lower() in _DEBUG_VALUES


class LoggerConfigurator:
    """Install a colorlog handler on the root logger.

    The level is DEBUG when the ``DEBUG`` environment variable is true-ish,
    INFO otherwise. aiohttp is kept at WARNING so request chatter stays out
    of normal output.
    """

    FORMAT = "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s"
    LOG_COLORS = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "magenta",
    }

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream or sys.stderr

    def build_formatter(self) -> colorlog.ColoredFormatter:
        return colorlog.ColoredFormatter(
            self.FORMAT,
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors=self.LOG_COLORS,
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )

    def configure(self) -> int:
        level = logging.DEBUG if debug_enabled() else logging.INFO
        formatter = self.build_formatter()
        handler = logging.StreamHandler(self.stream)
        handler.setFormatter(formatter)

        root = logging.getLogger()
        logging.basicConfig(level=level, handlers=[handler])
        root.setLevel(level)
        for h in root.handlers:
            h.setFormatter(formatter)
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        return level
