"""Tests for setup_logging and its per-logger level overrides."""

from __future__ import annotations

import logging

import pytest
import structlog

from safe_remote_purchase.logging_config import LEDGER_LOGGER, setup_logging


@pytest.fixture
def restore_logging():
    """Put the root handlers, touched levels and structlog config back."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    ledger_level = logging.getLogger(LEDGER_LOGGER).level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger(LEDGER_LOGGER).setLevel(ledger_level)
    structlog.reset_defaults()


def test_root_level_and_single_handler(restore_logging) -> None:
    setup_logging(log_level="warning", json_logs=True)

    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)


def test_ledger_can_log_below_root_level(restore_logging) -> None:
    setup_logging(log_level="INFO", logger_levels={LEDGER_LOGGER: "DEBUG"})

    assert logging.getLogger(LEDGER_LOGGER).isEnabledFor(logging.DEBUG)
    assert not logging.getLogger("safe_remote_purchase.services.escrow_contract").isEnabledFor(
        logging.DEBUG
    )


def test_unknown_level_name_falls_back_to_debug(restore_logging) -> None:
    setup_logging(log_level="chatty")
    assert logging.getLogger().level == logging.DEBUG
