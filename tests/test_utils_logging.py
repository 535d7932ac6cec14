"""Tests for logging configuration."""

import logging

import pytest
from rich.logging import RichHandler

from bedforge.utils.logging import Timer, get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_logger():
    """Remove handlers installed by setup_logging."""
    yield
    logger = logging.getLogger("bedforge")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_rich_handler(self):
        """Console output uses a rich handler by default."""
        logger = setup_logging(verbosity=1)
        assert logger.name == "bedforge"
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)
        assert logger.handlers[0].level == logging.INFO

    def test_plain_handler(self):
        """Plain stream handler without rich."""
        logger = setup_logging(verbosity=0, use_rich=False)
        handler = logger.handlers[0]
        assert not isinstance(handler, RichHandler)
        assert handler.level == logging.WARNING

    def test_debug_verbosity(self):
        """Verbosity 2 and above log debug messages."""
        logger = setup_logging(verbosity=5)
        assert logger.level == logging.DEBUG

    def test_repeated_setup(self):
        """Repeated setup replaces handlers."""
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path):
        """File logging records debug messages."""
        log_file = tmp_path / "bedforge.log"
        setup_logging(verbosity=0, log_file=log_file)
        get_logger("bedforge.test").debug("debug detail")
        for handler in logging.getLogger("bedforge").handlers:
            handler.flush()
        assert "debug detail" in log_file.read_text()


class TestTimer:
    """Tests for Timer."""

    def test_elapsed(self, caplog):
        """Elapsed time is recorded and logged."""
        logger = get_logger("bedforge.test")
        with caplog.at_level(logging.INFO, logger="bedforge.test"):
            with Timer("Step", logger) as timer:
                pass
        assert timer.elapsed >= 0
        assert "Step completed in" in caplog.text
