"""
Loggers for the encoder and the exporter.

Usage::

    from frontline_otel.internal.logger import get_logger

    log = get_logger(__name__)
    log.warning("unexpected hex ID length: %d", length)

A malformed batch tends to repeat the same defect on every span, so each
logging call site (source file and line) gets a window of
``FRONTLINE_OTEL_LOGGING_RATE`` seconds, 60 by default. The first record of a
window is emitted, the others are counted and the count rides on the record
that opens the next window::

    WARNING unexpected hex ID length: 15 [3 skipped]

A rate of ``0`` turns the limit off. Loggers set to ``DEBUG`` are never
limited.
"""

import collections
import logging
import os
import time
from typing import DefaultDict
from typing import Tuple


CallSite = Tuple[str, int]


class CallSiteWindow:
    """Emission window of one logging call site."""

    __slots__ = ("opened_at", "skipped")

    def __init__(self, opened_at: float = float("-inf"), skipped: int = 0):
        self.opened_at = opened_at
        self.skipped = skipped

    def __repr__(self):
        return f"CallSiteWindow(opened_at={self.opened_at}, skipped={self.skipped})"

    def admit(self, record: logging.LogRecord, rate: float) -> bool:
        now = time.monotonic()
        if now - self.opened_at < rate:
            self.skipped += 1
            return False
        self.opened_at = now
        record.skipped = self.skipped
        self.skipped = 0
        return True


_windows: DefaultDict[CallSite, CallSiteWindow] = collections.defaultdict(CallSiteWindow)

_rate_limit = int(os.getenv("FRONTLINE_OTEL_LOGGING_RATE", default=60))


def rate_limit_filter(record: logging.LogRecord) -> bool:
    if not _rate_limit or logging.getLogger(record.name).getEffectiveLevel() == logging.DEBUG:
        return True
    return _windows[(record.pathname, record.lineno)].admit(record, _rate_limit)


def get_logger(name: str) -> logging.Logger:
    """Return the named logger with the call site rate limit attached."""
    logger = logging.getLogger(name)
    # a filter that is already attached is not added twice
    logger.addFilter(rate_limit_filter)
    return logger


class FrontlineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = f"{record.levelname} {super().format(record)}"
        skipped = getattr(record, "skipped", 0)
        if skipped:
            message += f" [{skipped} skipped]"
        return message


_handler = logging.StreamHandler()
_handler.setFormatter(FrontlineFormatter())
logging.getLogger("frontline_otel").addHandler(_handler)
