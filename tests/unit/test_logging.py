"""Unit tests for logging configuration."""

from unittest.mock import MagicMock

from fortress.core.config import LogLevel


class TestLoggingSetup:
    """Test logging setup functions."""

    def test_get_logger_returns_structlog_logger(self):
        """Test get_logger returns a structured logger."""
        from fortress.core.logging import get_logger

        logger = get_logger("test_module")
        assert logger is not None

    def test_setup_logging_with_json_format(self):
        """Test setup_logging with JSON format."""
        from fortress.core.logging import setup_logging

        mock_settings = MagicMock()
        mock_settings.app.log_level = "INFO"
        mock_settings.observability.log_record_format = "json"

        setup_logging(mock_settings)

    def test_setup_logging_with_console_format(self):
        """Test setup_logging with console format."""
        from fortress.core.logging import setup_logging

        mock_settings = MagicMock()
        mock_settings.app.log_level = "DEBUG"
        mock_settings.observability.log_record_format = "console"

        setup_logging(mock_settings)

    def test_setup_logging_accepts_enum_level(self):
        """Test setup_logging with the LogLevel enum used by AppConfig."""
        from fortress.core.logging import setup_logging

        mock_settings = MagicMock()
        mock_settings.app.log_level = LogLevel.WARNING
        mock_settings.observability.log_record_format = "json"

        setup_logging(mock_settings)

    def test_structured_logging_after_setup(self):
        """Key/value events render once logging is configured."""
        from fortress.core.logging import get_logger, setup_logging

        mock_settings = MagicMock()
        mock_settings.app.log_level = "INFO"
        mock_settings.observability.log_record_format = "json"
        setup_logging(mock_settings)

        logger = get_logger("test_logging")
        logger.info("Audit entry appended", sequence=3)

    def test_logger_mixin_provides_logger_property(self):
        """Test LoggerMixin provides logger property."""
        from fortress.core.logging import LoggerMixin

        class Reporter(LoggerMixin):
            pass

        obj = Reporter()
        assert obj.logger is not None
