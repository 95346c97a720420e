"""
Logging configuration and console output.

Diagnostics go through the ``toolrelay`` logger tree to stderr (and an
optional file). Answers and tool listings are user-facing output: they are
written to stdout as titled sections so they stay separable from the logs.
"""

import logging
import sys
from pathlib import Path
from typing import TextIO

from toolrelay.config.settings import Settings

LOGGER_NAME = "toolrelay"

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

RESULT_RULE_WIDTH = 60
SEPARATOR_WIDTH = 80

# ANSI codes
RESET = "\033[0m"
BOLD = "\033[1m"
DIM = "\033[2m"
UNDERLINE = "\033[4m"
LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
TITLE_COLOR = "\033[97m"
LABEL_COLOR = "\033[93m"


def _style(text: str, *codes: str, enabled: bool = True) -> str:
    if not enabled or not codes:
        return text
    return f"{''.join(codes)}{text}{RESET}"


def _use_color(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name, leaving the record itself untouched."""

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = LEVEL_COLORS.get(levelname)
        if color:
            record.levelname = _style(levelname, color)
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _console_handler(level: int) -> logging.Handler:
    # stderr keeps stdout clean for answers
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if _use_color(sys.stderr):
        handler.setFormatter(ColoredFormatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_file: Path, level: int) -> logging.Handler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(settings: Settings) -> None:
    """
    Configure the ``toolrelay`` logger from settings.

    Safe to call more than once; previous handlers are replaced.

    Args:
        settings: Application settings containing log configuration
    """
    level = getattr(logging, settings.log_level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_console_handler(level))
    if settings.log_file:
        logger.addHandler(_file_handler(Path(settings.log_file), level))

    logger.propagate = False

    logger.debug(f"Logging initialized - Level: {settings.log_level}")
    if settings.log_file:
        logger.info(f"Logging to file: {settings.log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the ``toolrelay`` tree.

    Args:
        name: Logger name (typically __name__)
    """
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def separator(stream: TextIO | None = None) -> None:
    """Write a dimmed horizontal rule."""
    if stream is None:
        stream = sys.stdout
    stream.write(_style("─" * SEPARATOR_WIDTH, DIM, enabled=_use_color(stream)) + "\n")


def section(title: str, stream: TextIO | None = None) -> None:
    """Write a blank line, an underlined title and a rule."""
    if stream is None:
        stream = sys.stdout
    color = _use_color(stream)
    stream.write("\n" + _style(title, TITLE_COLOR, BOLD, UNDERLINE, enabled=color) + "\n")
    separator(stream)


def result(label: str, content: str, stream: TextIO | None = None) -> None:
    """Write a labelled block of content closed by a rule."""
    if stream is None:
        stream = sys.stdout
    color = _use_color(stream)
    stream.write("\n" + _style(label, LABEL_COLOR, BOLD, enabled=color) + "\n")
    stream.write(f"{content}\n")
    stream.write(_style("=" * RESULT_RULE_WIDTH, DIM, enabled=color) + "\n")
