"""Structured logging configuration using structlog.

Provides JSON-structured logging in production and human-readable colored
output in development. Every call on a contract binds the contract address
and operation name as context variables, so all entries emitted while the
call runs (ledger transfers included) can be correlated.

The package logs under these stdlib logger names, each of which can be given
its own level on top of the root level:
    safe_remote_purchase.services.escrow_contract   one entry per committed call
    safe_remote_purchase.services.escrow_service    contract restores
    safe_remote_purchase.services.ledger            every balance movement (DEBUG)
    safe_remote_purchase.services.notification_bus  failed deliveries

Usage:
    from safe_remote_purchase.logging_config import setup_logging, get_logger
    setup_logging(log_level="INFO", json_logs=True, logger_levels={LEDGER_LOGGER: "DEBUG"})
    logger = get_logger(__name__)
    logger.info("escrow.created", address="0xabc...", value=5)
"""

from __future__ import annotations

import logging
import sys

import structlog

LEDGER_LOGGER = "safe_remote_purchase.services.ledger"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.DEBUG)


def setup_logging(
    log_level: str = "DEBUG",
    json_logs: bool = False,
    logger_levels: dict[str, str] | None = None,
) -> None:
    """Configure structlog and the stdlib root handler.

    Args:
        log_level: Root log level string (DEBUG, INFO, WARNING, etc.)
        json_logs: If True, output JSON (for production). If False, colored console.
        logger_levels: Per-logger overrides, e.g. ``{LEDGER_LOGGER: "DEBUG"}``
            to audit every transfer while the rest of the app logs at INFO.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_logs:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

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
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(_level(log_level))

    for name, level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(_level(level))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name; pass ``__name__`` so per-logger levels apply.

    Returns:
        A bound structlog logger with context variable support.
    """
    return structlog.get_logger(name)
