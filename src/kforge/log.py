"""
Logging setup for KForge.

Verbosity is captured once in a LogConfig value and turned into a configured
logger that callers pass along explicitly.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


LOGGER_NAME = "kforge"


@dataclass(frozen=True)
class LogConfig:
    """Logger settings resolved from command-line flags."""
    level: int = logging.INFO
    show_time: bool = False
    show_path: bool = False

    @classmethod
    def from_verbosity(cls, verbose: bool) -> "LogConfig":
        if verbose:
            return cls(level=logging.DEBUG, show_time=True, show_path=True)
        return cls()


def build_logger(config: LogConfig, console: Optional[Console] = None) -> logging.Logger:
    """
    Return the kforge logger configured according to config.

    Any RichHandler left from an earlier call is replaced, so repeated calls
    in one process do not duplicate output.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(config.level)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console,
        level=config.level,
        show_time=config.show_time,
        show_path=config.show_path,
        rich_tracebacks=True,
    )
    logger.addHandler(handler)
    return logger
