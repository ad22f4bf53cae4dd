"""
bitcomp — Logging Setup

Library modules only create loggers (logging.getLogger(__name__)); the
CLI calls setup_logging() once to attach handlers to the 'bitcomp'
logger tree:

  - console: rich RichHandler, WARNING+ by default (INFO with -v,
    DEBUG with -vv)
  - file (optional): everything DEBUG+, one line per record
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    name: str = "bitcomp",
    console_level: int = logging.WARNING,
    log_file: Optional[Path] = None,
    rich_console: bool = True,
) -> logging.Logger:
    """
    Configure and return the package logger.

    Calling it again replaces the handlers it installed before, so the
    CLI can be driven repeatedly from tests.
    """
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    # ── File handler: captures everything (DEBUG+) ──
    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(log_file), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATEFMT))
        logger.addHandler(fh)

    # ── Console handler ──
    if rich_console:
        ch = RichHandler(
            level=console_level,
            console=Console(stderr=True),
            show_time=True,
            show_path=False,
            markup=False,
            rich_tracebacks=True,
        )
        ch.setLevel(console_level)
        logger.addHandler(ch)

    logger.debug("Logger initialized: %s", name)
    if log_file is not None:
        logger.debug("Log file: %s", log_file)
    return logger


def verbosity_level(verbose: int) -> int:
    """Map a -v count to a console level."""
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING
