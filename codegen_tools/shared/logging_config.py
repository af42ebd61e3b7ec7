"""structlog configuration for the command line entry points."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def _stderr_logger(*args: Any) -> structlog.PrintLogger:
    # Resolved per logger so redirected streams are honoured
    return structlog.PrintLogger(sys.stderr)


def configure_logging(verbose: bool = False) -> None:
    """Route log events to stderr, keeping stdout free for generated output.

    Args:
        verbose: Emit the pipeline's debug events as well as info and above.
    """
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.DEBUG if verbose else logging.INFO
        ),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
