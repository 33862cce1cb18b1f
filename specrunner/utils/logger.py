"""Logging setup shared by all specrunner modules"""
import logging
import os
import sys
from colorama import init, Fore, Style

LOG_LEVEL_ENV = 'SPECRUNNER_LOG_LEVEL'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

_LEVEL_COLORS = {
    logging.DEBUG: Fore.CYAN,
    logging.INFO: Fore.GREEN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED + Style.BRIGHT,
}

_colorama_ready = False


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name"""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelno, Fore.RESET)
        original = record.levelname
        record.levelname = f"{color}{original}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def _resolve_level(level) -> int:
    value = os.environ.get(LOG_LEVEL_ENV) or level or 'INFO'
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logger(name: str, level=None) -> logging.Logger:
    """Return a logger with a single coloured stream handler"""
    global _colorama_ready
    if not _colorama_ready:
        # init colorama for ansi colors
        init()
        _colorama_ready = True

    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(ColoredFormatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False

    return logger


def set_level(level) -> None:
    """Apply a level to every specrunner logger created so far"""
    resolved = _resolve_level(level)
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith('specrunner') and isinstance(logger, logging.Logger):
            logger.setLevel(resolved)
