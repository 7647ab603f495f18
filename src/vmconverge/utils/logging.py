"""Logging configuration for vmconverge.

This module provides console logging plus the per-cycle file handlers
used by the reconciliation loop. Verbosity can be controlled via CLI flags:
- No flag: INFO (the agent narrates every cycle)
- -v: DEBUG level
- -vv: DEBUG level + pyVmomi debug output

Each cycle writes two files, ``Output-<timestamp>.txt`` with every record
and ``Error-<timestamp>.txt`` with errors only. Older files are pruned so
that only the newest few per category remain.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

# Custom log format
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CYCLE_LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

OUTPUT_PREFIX = "Output"
ERROR_PREFIX = "Error"
ROOT_LOGGER = "vmconverge"

# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}


def get_log_level(verbosity: int) -> int:
    """Convert verbosity count to log level.

    Args:
        verbosity: Number of -v flags (0-2).

    Returns:
        Logging level constant.
    """
    levels = {
        0: logging.INFO,
        1: logging.DEBUG,
        2: logging.DEBUG,  # Same as 1, but enables pyVmomi debug
    }
    return levels.get(min(verbosity, 2), logging.INFO)


def configure_logging(
    verbosity: int = 0,
    log_level: str | None = None,
) -> None:
    """Configure console logging for vmconverge.

    Args:
        verbosity: Number of -v flags from CLI (0-2).
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR).
    """
    if log_level and not verbosity:
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        level = get_log_level(verbosity)

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter

    # Keep per-cycle file handlers, replace console handlers
    for handler in list(root_logger.handlers):
        if not isinstance(handler, logging.FileHandler):
            root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root_logger.addHandler(console_handler)

    pyvmomi_logger = logging.getLogger("pyVmomi")
    if verbosity >= 2:
        pyvmomi_logger.setLevel(logging.DEBUG)
        pyvmomi_logger.addHandler(console_handler)
    else:
        pyvmomi_logger.setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module.

    Creates child loggers under the 'vmconverge' namespace.

    Args:
        name: Name of the module (e.g., 'vsphere', 'reconciler').

    Returns:
        Configured logger instance.
    """
    prefix = f"{ROOT_LOGGER}."
    full_name = f"{prefix}{name}" if not name.startswith(prefix) else name

    if full_name not in _loggers:
        _loggers[full_name] = logging.getLogger(full_name)

    return _loggers[full_name]


@dataclass(frozen=True)
class CycleLogPaths:
    """The main and error log file for one cycle."""

    output: Path
    error: Path

    @classmethod
    def for_timestamp(cls, directory: Path, moment: datetime | None = None) -> CycleLogPaths:
        """Build the timestamp-qualified paths for a cycle.

        Args:
            directory: Log directory.
            moment: Cycle start time (now if not given).

        Returns:
            Paths for ``Output-<timestamp>.txt`` and ``Error-<timestamp>.txt``.
        """
        stamp = (moment or datetime.now()).strftime(LOG_TIMESTAMP_FORMAT)
        return cls(
            output=directory / f"{OUTPUT_PREFIX}-{stamp}.txt",
            error=directory / f"{ERROR_PREFIX}-{stamp}.txt",
        )


class CycleLogFiles:
    """Context manager attaching the per-cycle file handlers.

    The output file receives every record at INFO and above (DEBUG when
    ``debug`` is set); the error file receives ERROR and above.

    Args:
        paths: File paths for this cycle.
        debug: Also write DEBUG records to the output file.

    Example:
        >>> paths = CycleLogPaths.for_timestamp(Path("logs"))
        >>> with CycleLogFiles(paths):
        ...     get_logger("controller").info("Cycle started")
    """

    def __init__(self, paths: CycleLogPaths, debug: bool = False) -> None:
        self.paths = paths
        self.debug = debug
        self._handlers: list[logging.FileHandler] = []

    def _make_handler(self, path: Path, level: int) -> logging.FileHandler:
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(CYCLE_LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        return handler

    def __enter__(self) -> CycleLogFiles:
        self.paths.output.parent.mkdir(parents=True, exist_ok=True)
        root_logger = logging.getLogger(ROOT_LOGGER)
        root_logger.setLevel(logging.DEBUG)
        self._handlers = [
            self._make_handler(self.paths.output, logging.DEBUG if self.debug else logging.INFO),
            self._make_handler(self.paths.error, logging.ERROR),
        ]
        for handler in self._handlers:
            root_logger.addHandler(handler)
        return self

    def __exit__(self, *args: object) -> None:
        root_logger = logging.getLogger(ROOT_LOGGER)
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        self._handlers = []


def prune_logs(directory: Path, keep: int = 10) -> list[Path]:
    """Delete all but the newest ``keep`` log files per category.

    Files are ordered by modification time, newest first.

    Args:
        directory: Log directory.
        keep: Number of files kept per category.

    Returns:
        The deleted paths.
    """
    if not directory.is_dir():
        return []

    removed: list[Path] = []
    for prefix in (OUTPUT_PREFIX, ERROR_PREFIX):
        files = sorted(
            directory.glob(f"{prefix}-*.txt"),
            key=lambda p: (p.stat().st_mtime, p.name),
            reverse=True,
        )
        for path in files[keep:]:
            path.unlink(missing_ok=True)
            removed.append(path)

    return removed
