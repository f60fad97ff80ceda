"""Logging setup for Host Provisioner."""

import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog
from structlog.types import Processor

LOGGER_NAME = "host_provisioner"
OUTPUT_LOGGER_NAME = f"{LOGGER_NAME}.output"

_SHARED_PROCESSORS: List[Processor] = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
]


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def _attach_terminal_handlers(output: logging.Logger) -> None:
    """Plain messages: INFO to stdout, warnings and errors to stderr."""
    plain = logging.Formatter("%(message)s")

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setLevel(logging.DEBUG)
    stdout.addFilter(lambda record: record.levelno < logging.WARNING)
    stdout.setFormatter(plain)

    stderr = logging.StreamHandler(sys.stderr)
    stderr.setLevel(logging.WARNING)
    stderr.setFormatter(plain)

    output.addHandler(stdout)
    output.addHandler(stderr)


def get_output() -> logging.Logger:
    """Logger for the terminal text shown to the operator.

    After ``configure_logging`` the same text is also written to the log
    file, the way ``tee`` mirrors a script's output.
    """
    output = logging.getLogger(OUTPUT_LOGGER_NAME)
    if not output.handlers:
        output.setLevel(logging.INFO)
        output.propagate = False
        _attach_terminal_handlers(output)
    return output


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
) -> Optional[Path]:
    """Route structlog through stdlib logging to the console and a log file.

    The file handler records everything at DEBUG, including operator output
    from ``get_output``; the console follows ``level``, lowered by
    ``verbose`` or raised by ``quiet``.

    Args:
        level: Console log level name
        log_file: File that receives a copy of every record
        verbose: Log DEBUG to the console
        quiet: Only log warnings and errors to the console

    Returns:
        The log file actually in use, or None if file logging is off
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    _reset_handlers(logger)
    logger.propagate = False

    output = logging.getLogger(OUTPUT_LOGGER_NAME)
    _reset_handlers(output)
    output.setLevel(logging.INFO)
    output.propagate = False
    _attach_terminal_handlers(output)

    console_level = logging.getLevelName(level.upper())
    if verbose:
        console_level = logging.DEBUG
    elif quiet:
        console_level = logging.WARNING

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
            foreign_pre_chain=_SHARED_PROCESSORS,
        )
    )
    logger.addHandler(console)

    if log_file is None:
        return None

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError as e:
        output.warning(
            f"Warning: cannot write log file {log_file} ({e}), logging to console only"
        )
        return None

    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False),
            foreign_pre_chain=_SHARED_PROCESSORS,
        )
    )
    logger.addHandler(file_handler)
    output.addHandler(file_handler)
    return log_file
