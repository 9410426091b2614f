"""Terminal colors and logging setup."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "ec2bundlr"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def colorize(text: str, color_code: int) -> str:
    return f"\033[{color_code}m{text}\033[0m"


def red(text: str) -> str:
    return colorize(text, 31)


def green(text: str) -> str:
    return colorize(text, 32)


def yellow(text: str) -> str:
    return colorize(text, 33)


class ColorFormatter(logging.Formatter):
    """Color each record by level: green for progress, yellow for warnings, red for errors."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return red(message)
        if record.levelno >= logging.WARNING:
            return yellow(message)
        return green(message)


def configure_logging(verbose: bool = False, log_file: str | None = None) -> logging.Logger:
    """Send package logs to stdout in color, and optionally to a plain log file."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(ColorFormatter("%(message)s"))
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    return logger
