"""
Tests for logging configuration.
"""
import logging

import pytest

from app.config import Settings, get_settings
from app.utils.logger import configure_logging, get_logger


@pytest.fixture
def test_logger_name():
    name = "wildlife_park_logging_test"
    yield name
    configured = logging.getLogger(name)
    for handler in list(configured.handlers):
        configured.removeHandler(handler)
        handler.close()


class TestLogger:
    """Application logger and its handlers."""

    def test_named_loggers_are_children(self):
        assert get_logger().name == get_settings().APP_NAME
        assert get_logger("booking_service").name == f"{get_settings().APP_NAME}.booking_service"

    def test_console_only(self, tmp_path, test_logger_name):
        settings = Settings(LOG_TO_FILE=False, LOG_DIR=str(tmp_path / "logs"), LOG_LEVEL="warning")
        configured = configure_logging(settings, name=test_logger_name)
        assert configured.level == logging.WARNING
        assert len(configured.handlers) == 1
        assert not (tmp_path / "logs").exists()

    def test_reconfiguring_does_not_duplicate_handlers(self, tmp_path, test_logger_name):
        settings = Settings(LOG_DIR=str(tmp_path), APP_DEBUG=True)
        configure_logging(settings, name=test_logger_name)
        configured = configure_logging(settings, name=test_logger_name)
        assert configured.level == logging.DEBUG
        assert len(configured.handlers) == 4

    def test_access_log_keeps_only_guard_denials(self, tmp_path, test_logger_name):
        configured = configure_logging(Settings(LOG_DIR=str(tmp_path)), name=test_logger_name)
        configured.getChild("security").warning("Access denied (INSUFFICIENT_PERMISSIONS) for user=u1")
        configured.getChild("booking_service").warning("Booking rejected")
        configured.getChild("main").error("Unhandled exception")
        for handler in configured.handlers:
            handler.flush()

        access = (tmp_path / "access.log").read_text()
        assert "INSUFFICIENT_PERMISSIONS" in access
        assert "Booking rejected" not in access
        assert "Booking rejected" in (tmp_path / "app.log").read_text()
        errors = (tmp_path / "errors.log").read_text()
        assert "Unhandled exception" in errors
        assert "Access denied" not in errors
