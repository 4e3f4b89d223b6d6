"""Console output and logging setup."""
from __future__ import annotations

import logging
import sys


_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


def init_logging(level_str: str = "warning") -> None:
    """Send diagnostics to stderr at the given level name."""
    logging.basicConfig(
        level=_LEVELS[level_str.lower()],
        format="[%(levelname)-8s] %(message)s",
        stream=sys.stderr,
    )


def safe_print(msg: str):
    """Print message safely, handling unicode encoding issues on Windows."""
    try:
        print(msg)
    except UnicodeEncodeError:
        encoding = sys.stdout.encoding or 'utf-8'
        print(msg.encode(encoding, errors='replace').decode(encoding, errors='replace'))
