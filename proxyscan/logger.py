"""
Logging infrastructure for the proxy scanner.

Provides:
- Named levels matching the CLI (info/debug/quiet)
- Console and file handlers
- Colored output for terminals
- Compact symbol output for plain CLI use
"""

import logging
import sys
from pathlib import Path
from typing import Optional


LOGGER_NAME = 'proxyscan'

LEVELS = {
    'quiet': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
}


# =============================================================================
# ANSI Colors
# =============================================================================

class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"


# =============================================================================
# Custom Formatters
# =============================================================================

class ColoredFormatter(logging.Formatter):
    """Formatter with colored level names for terminals."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.DIM + Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def __init__(self, fmt: str = None, datefmt: str = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
            record.levelname = f"{color}{levelname:<7}{Colors.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers share the record
            record.levelname = levelname


class CompactFormatter(logging.Formatter):
    """Minimal formatter for clean CLI output."""

    SYMBOLS = {
        logging.DEBUG: '·',
        logging.INFO: '→',
        logging.WARNING: '⚠',
        logging.ERROR: '✗',
        logging.CRITICAL: '‼',
    }

    def format(self, record: logging.LogRecord) -> str:
        symbol = self.SYMBOLS.get(record.levelno, '?')
        return f"{symbol} {record.getMessage()}"


# =============================================================================
# Logger Setup
# =============================================================================

def parse_level(name: str) -> int:
    """Map a CLI level name to a logging level."""
    try:
        return LEVELS[name.lower()]
    except KeyError:
        raise ValueError(f"unknown log level {name!r} (expected one of: {', '.join(LEVELS)})")


def setup_logger(
    name: str = LOGGER_NAME,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    colored: bool = True,
    compact: bool = False,
    stream=None
) -> logging.Logger:
    """
    Set up and configure the scanner logger.

    Args:
        name: Logger name
        level: Logging level
        log_file: Optional file path for file logging
        colored: Use colored console output (only on a TTY)
        compact: Use compact format (minimal symbols)
        stream: Console stream (default: stdout)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    stream = stream or sys.stdout
    use_colors = colored and hasattr(stream, 'isatty') and stream.isatty()

    # Console handler
    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(level)

    if compact:
        console_handler.setFormatter(CompactFormatter())
    else:
        fmt = "%(asctime)s │ %(levelname)s │ %(threadName)s │ %(message)s"
        datefmt = "%H:%M:%S"
        console_handler.setFormatter(ColoredFormatter(fmt, datefmt, use_colors))

    logger.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)  # Always capture everything to file
        fmt = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
        file_handler.setFormatter(logging.Formatter(fmt))
        logger.addHandler(file_handler)
        logger.setLevel(logging.DEBUG)

    return logger


def get_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Get or create a logger with the given name."""
    return logging.getLogger(name)


def set_level(level: str):
    """Set console logging level by name (debug/info/quiet)."""
    log_level = parse_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    has_file = False
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            has_file = True
        else:
            handler.setLevel(log_level)
    # File handlers always get debug records
    logger.setLevel(logging.DEBUG if has_file else log_level)
