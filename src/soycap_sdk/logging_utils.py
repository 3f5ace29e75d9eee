"""Logging helpers with per-operation correlation IDs.

Every compound merchant operation (register a conversion, distribute a
reward) runs under its own correlation ID so the backend calls and RPC calls
it makes can be grepped together.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Optional

correlation_id_var: ContextVar[Optional[str]] = ContextVar("soycap_correlation_id", default=None)

TEXT_FORMAT = "%(asctime)s [%(levelname)s] [%(correlation_id)s] %(name)s: %(message)s"
JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
    '"correlation_id": "%(correlation_id)s", "name": "%(name)s", '
    '"message": "%(message)s"}'
)


class CorrelationIdFilter(logging.Filter):
    """Stamp the active correlation ID onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        return True


def setup_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """Configure the ``soycap_sdk`` logger hierarchy.

    Library code never calls this; scripts and applications do.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_format: ``json`` or ``text``.
    """
    logger = logging.getLogger("soycap_sdk")
    logger.setLevel(getattr(logging, log_level.upper()))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(JSON_FORMAT if log_format == "json" else TEXT_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    logger.addHandler(handler)


def get_correlation_id() -> Optional[str]:
    return correlation_id_var.get()


def generate_correlation_id(prefix: str = "op") -> str:
    """Return a fresh ID such as ``conv-1a2b3c4d5e6f``."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class CorrelationIdContext:
    """Bind a correlation ID for the duration of a ``with`` block.

    Nested contexts keep the outer ID; the inner block only gets a new one
    when nothing is bound yet.
    """

    def __init__(self, prefix: str = "op", correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or get_correlation_id() or generate_correlation_id(prefix)
        self._token = None

    def __enter__(self) -> str:
        self._token = correlation_id_var.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        correlation_id_var.reset(self._token)
