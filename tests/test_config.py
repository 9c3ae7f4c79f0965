"""Tests for settings and logging setup."""

import logging
from datetime import date
from decimal import Decimal

import pytest

from bizledger.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, Settings, load_settings
from bizledger.logging_config import setup_logging


def test_load_settings_defaults():
    settings = load_settings({})

    assert settings == Settings()
    assert settings.page_size == DEFAULT_PAGE_SIZE
    assert settings.currency == "USD"


def test_load_settings_from_env():
    settings = load_settings(
        {
            "BIZLEDGER_DB_PATH": "/tmp/books.db",
            "BIZLEDGER_CURRENCY": " eur ",
            "BIZLEDGER_LOG_LEVEL": "debug",
            "BIZLEDGER_PAGE_SIZE": "25",
            "BIZLEDGER_LOW_STOCK": "3",
        }
    )

    assert settings.resolve_database_path() == "/tmp/books.db"
    assert settings.currency == "EUR"
    assert settings.log_level == "DEBUG"
    assert settings.page_size == 25
    assert settings.low_stock_threshold == 3


def test_page_size_is_capped():
    assert load_settings({"BIZLEDGER_PAGE_SIZE": "100000"}).page_size == MAX_PAGE_SIZE


@pytest.mark.parametrize(
    "env,message",
    [
        ({"BIZLEDGER_PAGE_SIZE": "ten"}, "must be an integer"),
        ({"BIZLEDGER_LOW_STOCK": "0"}, "must be at least 1"),
        ({"BIZLEDGER_CURRENCY": "dollars"}, "3-letter code"),
    ],
)
def test_load_settings_rejects_bad_values(env, message):
    with pytest.raises(ValueError, match=message):
        load_settings(env)


def test_setup_logging_sets_level():
    logger = setup_logging("info")

    assert logger.name == "bizledger"
    assert logger.level == logging.INFO


def test_setup_logging_does_not_stack_handlers():
    setup_logging("WARNING")
    setup_logging("WARNING")

    logger = logging.getLogger("bizledger")
    ours = [h for h in logger.handlers if getattr(h, "_bizledger_handler", False)]
    assert len(ours) == 1


def test_setup_logging_rejects_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level"):
        setup_logging("chatty")


def test_services_log_postings(caplog, journal_service, chart):
    """Test that journal postings are logged at INFO."""
    caplog.set_level(logging.INFO, logger="bizledger")

    journal_service.create_journal_entry(
        {
            "date": date(2024, 1, 1),
            "debit_account_id": chart["Cash"].id,
            "credit_account_id": chart["Owner's Equity"].id,
            "amount": Decimal("10.00"),
        }
    )

    assert any("Posted 1 journal lines" in record.getMessage() for record in caplog.records)
