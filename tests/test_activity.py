"""Tests for the activity logger and log level configuration."""

import logging

import pytest

from homebudget.activity import ActivityLogger, configure_logging


@pytest.fixture
def restore_level():
    package_logger = logging.getLogger("homebudget")
    level = package_logger.level
    yield
    package_logger.setLevel(level)


class TestConfigureLogging:

    def test_level_is_applied_to_package_loggers(self, restore_level):
        configure_logging("DEBUG")
        assert logging.getLogger("homebudget.activity").isEnabledFor(logging.DEBUG)

        configure_logging("WARNING")
        assert not logging.getLogger("homebudget.activity").isEnabledFor(logging.INFO)

    def test_info_events_are_emitted(self, restore_level, caplog):
        configure_logging("INFO")
        ActivityLogger("homebudget.activity.info").log_document_saved("u1")
        assert "document_saved" in caplog.text

    def test_info_events_dropped_below_threshold(self, restore_level, caplog):
        configure_logging("ERROR")
        ActivityLogger("homebudget.activity.quiet").log_document_saved("u1")
        assert "document_saved" not in caplog.text
