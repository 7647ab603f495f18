"""Utility modules for vmconverge.

This package contains shared utilities for logging, output formatting,
and retry logic.
"""

from vmconverge.utils.logging import configure_logging, get_logger, prune_logs
from vmconverge.utils.output import OutputFormatter, console
from vmconverge.utils.retry import retry_with_backoff

__all__ = [
    "OutputFormatter",
    "configure_logging",
    "console",
    "get_logger",
    "prune_logs",
    "retry_with_backoff",
]
