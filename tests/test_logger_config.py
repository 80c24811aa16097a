"""Tests for logging setup."""

import logging
from pathlib import Path

from slicehttp.logger_config import LOGGER_NAME, setup_logging


class TestSetupLogging:
    """Verify the package logger configuration."""

    def teardown_method(self) -> None:
        logger = logging.getLogger(LOGGER_NAME)
        for handler in list(logger.handlers):
            if getattr(handler, "_slicehttp_handler", False):
                logger.removeHandler(handler)
                handler.close()

    def test_returns_package_logger(self) -> None:
        """The configured logger is the 'slicehttp' logger."""
        logger = setup_logging(log_level=logging.DEBUG)
        assert logger is logging.getLogger("slicehttp")
        assert logger.level == logging.DEBUG

    def test_repeated_calls_do_not_stack_handlers(self) -> None:
        """Calling setup twice leaves a single installed handler."""
        setup_logging()
        logger = setup_logging()
        installed = [h for h in logger.handlers if getattr(h, "_slicehttp_handler", False)]
        assert len(installed) == 1

    def test_log_file(self, tmp_path: Path) -> None:
        """Records go to the given file with the standard format."""
        log_file = tmp_path / "client.log"
        setup_logging(str(log_file))
        logging.getLogger("slicehttp.http.response").info("parsed")
        for handler in logging.getLogger(LOGGER_NAME).handlers:
            handler.flush()
        assert " - slicehttp.http.response - INFO - parsed" in log_file.read_text()

    def test_library_logs_are_silent_by_default(self) -> None:
        """The package carries a NullHandler."""
        import slicehttp  # noqa: F401

        handlers = logging.getLogger(LOGGER_NAME).handlers
        assert any(isinstance(h, logging.NullHandler) for h in handlers)
