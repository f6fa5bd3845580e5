"""Structured logging for the swap service, built on structlog.

Production gets one JSON object per line; development gets the colored
console renderer with 64-char identities shortened to ``abcd…wxyz`` so a
lifecycle trace fits on one screen. Lifecycle calls bind the swap address
into contextvars (see bind_swap), so every entry emitted while an operation
runs carries it, next to the request_id bound by the API middleware.

Usage:
    from confidential_swap.logging_config import setup_logging, get_logger
    setup_logging(log_level="INFO", json_logs=False)
    logger = get_logger(__name__)
    logger.info("swap.initialized", amount_in=1000)
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator

_KEY_FIELDS = ("address", "owner", "validator", "payer", "signer", "custodian")


def _shorten_keys(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    for field in _KEY_FIELDS:
        value = event_dict.get(field)
        if isinstance(value, str) and len(value) == 64:
            event_dict[field] = f"{value[:4]}…{value[-4:]}"
    return event_dict


def setup_logging(log_level: str = "DEBUG", json_logs: bool = False) -> None:
    """Configure structlog over the standard library root logger.

    Args:
        log_level: Standard Python log level string (DEBUG, INFO, WARNING, etc.)
        json_logs: JSON lines when True, colored console output otherwise.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        render_chain: list[structlog.types.Processor] = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        render_chain = [_shorten_keys, structlog.dev.ConsoleRenderer(colors=True)]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *render_chain,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.DEBUG))

    for noisy_logger in ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "httpx", "mcp"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)


@contextmanager
def bind_swap(address: str) -> Iterator[None]:
    """Bind ``address`` into the log context for the duration of an operation."""
    with structlog.contextvars.bound_contextvars(address=address):
        yield
