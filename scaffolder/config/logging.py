"""Logging configuration for the scaffolder command line."""

import logging
import re
import sys

_TOKEN_PATTERNS = [
    re.compile(r"gh[pousr]_[A-Za-z0-9]{20,}"),
    re.compile(r"github_pat_[A-Za-z0-9_]{20,}"),
    re.compile(r"(Bearer|token)\s+[A-Za-z0-9_\-\.]+", re.IGNORECASE),
]


def sanitize_log_message(message: str) -> str:
    """Redact GitHub tokens and authorization values from a message."""
    for pattern in _TOKEN_PATTERNS:
        message = pattern.sub("[REDACTED]", message)
    return message


class SanitizingFilter(logging.Filter):
    """Filter that removes tokens from log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = sanitize_log_message(str(record.msg))
        if record.args:
            record.args = tuple(
                sanitize_log_message(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True


class TextFormatter(logging.Formatter):
    """Compact text formatter for terminal output."""

    def __init__(self):
        super().__init__(fmt="%(levelname)s %(name)s: %(message)s")


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for a command-line run.

    Args:
        verbose: Log debug details when True, only warnings otherwise
    """
    level = logging.DEBUG if verbose else logging.WARNING

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(TextFormatter())
    console_handler.addFilter(SanitizingFilter())
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
