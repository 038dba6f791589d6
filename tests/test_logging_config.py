"""Tests for logging configuration."""

import logging

import pytest

from siteledger.logging_config import configure_logging


def test_configure_by_name():
    logger = configure_logging("debug")

    assert logger.name == "siteledger"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_reconfigure_replaces_handler():
    configure_logging("INFO")
    logger = configure_logging(logging.ERROR)

    assert logger.level == logging.ERROR
    assert len(logger.handlers) == 1


def test_unknown_level():
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("chatty")
