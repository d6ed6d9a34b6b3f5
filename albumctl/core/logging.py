"""Logging utilities for albumctl.

Log records can carry signed storage URLs and session tokens. Everything
emitted through the albumctl handler passes a redaction filter first.
"""

from __future__ import annotations

import asyncio
import logging
import re
import sys
import time
from typing import Any, Optional

# =============================================================================
# Constants
# =============================================================================

ROOT_LOGGER_NAME = "albumctl"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"
REDACTED = "***"

# Query parameters and header-ish pairs whose values never reach a log line
_SECRET_PATTERN = re.compile(
    r"(?P<key>signature|X-Amz-Signature|X-Amz-Credential|api_key|password|"
    r"refreshToken|accessToken|x-session-token)(?P<sep>[=:]\s*)(?P<value>[^&\s,;)]+)",
    re.IGNORECASE,
)


def redact(text: str) -> str:
    """Mask secret values in ``text``, keeping their keys."""
    return _SECRET_PATTERN.sub(lambda m: f"{m.group('key')}{m.group('sep')}{REDACTED}", text)


class RedactingFilter(logging.Filter):
    """Rewrite each record's rendered message with secrets masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


# =============================================================================
# Logger Setup
# =============================================================================


def setup_logging(
    level: int = logging.WARNING,
    *,
    quiet: bool = False,
    verbose: bool = False,
) -> logging.Logger:
    """Attach a redacting stderr handler to the albumctl logger.

    Safe to call once per CLI invocation; an existing handler is replaced.

    Args:
        level: Base logging level.
        quiet: If True, only show errors.
        verbose: If True, show debug messages.

    Returns:
        The albumctl root logger.
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, "_albumctl", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(RedactingFilter())
    handler._albumctl = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs full request URLs at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# =============================================================================
# Log Context
# =============================================================================


class LogContext:
    """Timed operation scope whose log lines all carry the same fields.

    Fields may be added while the operation runs, e.g. a media id that only
    exists once the server has answered.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[logging.Logger] = None,
        **context: Any,
    ):
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.context = context
        self.start_time: Optional[float] = None

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time if self.start_time else 0.0

    def _fields(self) -> str:
        return " ".join(f"{k}={v}" for k, v in self.context.items() if v is not None)

    def __enter__(self) -> LogContext:
        self.start_time = time.monotonic()
        self.debug("started")
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is None:
            self.info("finished in %.2fs", self.elapsed)
        elif issubclass(exc_type, asyncio.CancelledError):
            self.warning("interrupted after %.2fs", self.elapsed)
        else:
            self.log(logging.ERROR, "failed after %.2fs: %s", self.elapsed, exc_val)

    def update(self, **context: Any) -> None:
        self.context.update(context)

    def log(self, level: int, message: str, *args: Any) -> None:
        self.logger.log(level, "[%s] " + message + " {%s}", self.operation, *args, self._fields())

    def info(self, message: str, *args: Any) -> None:
        self.log(logging.INFO, message, *args)

    def warning(self, message: str, *args: Any) -> None:
        self.log(logging.WARNING, message, *args)

    def debug(self, message: str, *args: Any) -> None:
        self.log(logging.DEBUG, message, *args)
