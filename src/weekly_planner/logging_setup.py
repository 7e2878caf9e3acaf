# src/weekly_planner/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

# Minimum level shown on the console per logger prefix (longest prefix wins).
# Per-push and per-write DEBUG chatter goes to the log file only.
CONSOLE_THRESHOLDS: dict[str, int] = {
    "weekly_planner": logging.NOTSET,
    "weekly_planner.storage": logging.WARNING,
    "weekly_planner.planner.sync": logging.INFO,
    "weekly_planner.planner.store": logging.INFO,
    "py.warnings": logging.ERROR,
}

# Anything not listed above (third-party libraries, asyncio).
_FOREIGN_THRESHOLD = logging.ERROR


class _ConsoleNoiseFilter(logging.Filter):
    """Drop console records below the threshold of their closest configured prefix."""

    def __init__(self, thresholds: Mapping[str, int] | None = None) -> None:
        super().__init__()
        table = CONSOLE_THRESHOLDS if thresholds is None else thresholds
        # Longest prefix first so "a.b.c" beats "a.b".
        self._rules = sorted(table.items(), key=lambda kv: len(kv[0]), reverse=True)

    def threshold_for(self, name: str) -> int:
        for prefix, level in self._rules:
            if name == prefix or name.startswith(prefix + "."):
                return level
        return _FOREIGN_THRESHOLD

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.threshold_for(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/planner",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    console_thresholds: Mapping[str, int] | None = None,
) -> Path:
    """
    Configure the root logger for an interactive session.

    The console (stderr) gets `console_level` records that pass the noise filter;
    planner.log in `log_dir` gets everything from `file_level` up. Existing root
    handlers are replaced, so calling this twice does not duplicate output.
    Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "planner.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter(console_thresholds))
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    return log_file
