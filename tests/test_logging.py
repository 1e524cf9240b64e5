"""Tests for structured logging module."""

import logging

import structlog
from structlog.testing import capture_logs

from signdesk.core.logging import (
    SERVICE_NAME,
    LoggerMixin,
    add_correlation_id,
    add_service_context,
    bind_account,
    bind_contextvars,
    clear_contextvars,
    clear_correlation_id,
    configure_logging,
    drop_color_message_key,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    unbind_contextvars,
)


class TestCorrelationId:
    """Tests for correlation ID management."""

    def setup_method(self) -> None:
        clear_correlation_id()

    def test_set_and_get_correlation_id(self) -> None:
        assert get_correlation_id() is None

        correlation_id = set_correlation_id("test-correlation-123")
        assert correlation_id == "test-correlation-123"
        assert get_correlation_id() == "test-correlation-123"

    def test_auto_generate_correlation_id(self) -> None:
        correlation_id = set_correlation_id()
        assert len(correlation_id) == 36  # UUID format

    def test_clear_correlation_id(self) -> None:
        set_correlation_id("test-id")
        clear_correlation_id()
        assert get_correlation_id() is None


class TestProcessors:
    """Event dict processors added to every entry."""

    def setup_method(self) -> None:
        clear_correlation_id()

    def test_correlation_id_added_when_set(self) -> None:
        set_correlation_id("corr-1")
        event = add_correlation_id(logging.getLogger(), "info", {"event": "x"})
        assert event["correlation_id"] == "corr-1"

    def test_correlation_id_absent_when_unset(self) -> None:
        event = add_correlation_id(logging.getLogger(), "info", {"event": "x"})
        assert "correlation_id" not in event

    def test_service_name_added(self) -> None:
        event = add_service_context(logging.getLogger(), "info", {"event": "x"})
        assert event["service"] == SERVICE_NAME == "signdesk"

    def test_color_message_dropped(self) -> None:
        event = drop_color_message_key(
            logging.getLogger(),
            "info",
            {"event": "x", "color_message": "\x1b[32mx\x1b[0m"},
        )
        assert "color_message" not in event


class TestStructuredLogging:
    """Tests for structured logging configuration."""

    def setup_method(self) -> None:
        clear_contextvars()

    def test_configure_logging_json_mode(self) -> None:
        configure_logging(json_logs=True, log_level="INFO")

        assert logging.getLogger().level == logging.INFO
        assert get_logger("test_json") is not None

    def test_configure_logging_console_mode(self) -> None:
        configure_logging(json_logs=False, log_level="debug")

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_single_root_handler(self) -> None:
        configure_logging(json_logs=False, log_level="INFO")
        configure_logging(json_logs=False, log_level="INFO")

        assert len(logging.getLogger().handlers) == 1


class TestContextVars:
    """Tests for context variable binding."""

    def setup_method(self) -> None:
        clear_contextvars()

    def teardown_method(self) -> None:
        clear_contextvars()

    def test_bind_and_unbind(self) -> None:
        bind_contextvars(user_id="123", request_id="abc")
        unbind_contextvars("user_id")

        assert structlog.contextvars.get_contextvars() == {"request_id": "abc"}

    def test_bind_account(self) -> None:
        bind_account("7f0c1c1e-0000-4000-8000-000000000001")

        assert structlog.contextvars.get_contextvars()["account_id"] == (
            "7f0c1c1e-0000-4000-8000-000000000001"
        )

    def test_clear_contextvars(self) -> None:
        bind_contextvars(user_id="123")
        clear_contextvars()

        assert structlog.contextvars.get_contextvars() == {}


class TestLoggerMixin:
    """Tests for LoggerMixin class."""

    def test_logger_mixin_emits_events(self) -> None:
        class LedgerProbe(LoggerMixin):
            def touch(self) -> str:
                self.logger.info("live_quota_consumed", live_used=1)
                return "done"

        with capture_logs() as logs:
            result = LedgerProbe().touch()

        assert result == "done"
        assert logs == [
            {"event": "live_quota_consumed", "live_used": 1, "log_level": "info"},
        ]
