"""Tests for logging module."""
import logging

import pytest

from firestarter import setup_logging
from firestarter.core.logging import LOGGER_NAMES, configure_loggers, get_logger


class TestGetLogger:
    """Test suite for get_logger."""

    def test_returns_named_logger(self):
        """Test logger has the requested name."""
        assert get_logger('firestarter.test').name == 'firestarter.test'

    def test_propagates(self):
        """Test loggers propagate to root."""
        logger = logging.getLogger('firestarter.test.propagate')
        logger.propagate = False

        assert get_logger('firestarter.test.propagate').propagate is True

    def test_captured_by_root_handlers(self, caplog):
        """Test records reach handlers on the root logger."""
        with caplog.at_level(logging.INFO, logger='firestarter.test.capture'):
            get_logger('firestarter.test.capture').info('hello')

        assert 'hello' in caplog.text


class TestConfigureLoggers:
    """Test suite for configure_loggers."""

    @pytest.fixture(autouse=True)
    def restore_levels(self):
        """Restore logger levels after each test."""
        saved = {name: logging.getLogger(name).level for name in LOGGER_NAMES}
        yield
        for name, level in saved.items():
            logging.getLogger(name).setLevel(level)

    def test_sets_every_level(self):
        """Test all firestarter loggers get the level."""
        configure_loggers(logging.DEBUG)

        for name in LOGGER_NAMES:
            assert logging.getLogger(name).level == logging.DEBUG

    def test_selected_names(self):
        """Test configuring a subset of loggers."""
        configure_loggers(logging.ERROR)
        configure_loggers(logging.DEBUG, names=['firestarter.auth'])

        assert logging.getLogger('firestarter.auth').level == logging.DEBUG
        assert logging.getLogger('firestarter.gateway').level == logging.ERROR

    def test_setup_logging(self):
        """Test the package-level helper."""
        setup_logging(logging.WARNING)

        assert logging.getLogger('firestarter.storage').level == logging.WARNING
