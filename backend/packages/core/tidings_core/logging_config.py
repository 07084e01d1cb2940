"""
Logging configuration.

Application code obtains loggers with get_logger(__name__) and passes
structured context through the ``extra`` argument.
"""

import logging
import sys

_RESERVED_ATTRS = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}

_configured = False


class ContextFormatter(logging.Formatter):
    """Formatter appending ``extra`` fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = {
            key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS
        }
        if context:
            pairs = " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
            message = f"{message} [{pairs}]"
        return message


def init_logging(level: str = "INFO") -> None:
    """
    Configure the ``tidings`` logger hierarchy.

    Safe to call more than once; only the level changes on later calls.
    """
    global _configured

    root = logging.getLogger("tidings")
    root.setLevel(level.upper())

    if _configured:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ContextFormatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
    )
    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger inside the ``tidings`` hierarchy.

    Args:
        name: Usually ``__name__`` of the calling module.
    """
    if not name.startswith("tidings."):
        name = f"tidings.{name}"
    return logging.getLogger(name)
