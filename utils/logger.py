"""
utils/logger.py — Project-wide logging configuration
=====================================================
A single `get_logger(name)` factory so every scan component logs with the
same colour-coded console format.  The default level comes from
`config.LOG_LEVEL`; `set_level()` adjusts every registered logger at once
(the CLI uses it for `--verbose`).
"""

import logging
import sys

from config import LOG_LEVEL

_COLOURS = {
    logging.DEBUG:    "\033[36m",   # cyan
    logging.INFO:     "\033[32m",   # green
    logging.WARNING:  "\033[33m",   # yellow
    logging.ERROR:    "\033[31m",   # red
    logging.CRITICAL: "\033[35m",   # magenta
}
_RESET = "\033[0m"

_BASE_FMT = "%(asctime)s  %(levelname)s  %(name)-22s  %(message)s"
_DATE_FMT = "%H:%M:%S"


class _ColourFormatter(logging.Formatter):
    """Wrap the level tag in an ANSI colour without touching the record."""

    def format(self, record: logging.LogRecord) -> str:
        colour = _COLOURS.get(record.levelno, _RESET)
        original = record.levelname
        record.levelname = f"{colour}{original:<8}{_RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


# Registry so repeated calls never stack duplicate handlers
_loggers: dict[str, logging.Logger] = {}


def get_logger(name: str, level: int = LOG_LEVEL) -> logging.Logger:
    """
    Return (or create) a named logger.

    Parameters
    ----------
    name  : str   Component name shown in log lines, e.g. "rppg.batch".
    level : int   Minimum severity (default `config.LOG_LEVEL`).
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_ColourFormatter(fmt=_BASE_FMT, datefmt=_DATE_FMT))
    logger.addHandler(handler)

    _loggers[name] = logger
    return logger


def set_level(level: int) -> None:
    """Change the level of every logger created through `get_logger`."""
    for logger in _loggers.values():
        logger.setLevel(level)
