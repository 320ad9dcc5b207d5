"""Tests for logging configuration."""

import json
import logging
from unittest.mock import MagicMock, patch

from mixtape.logging import JsonFormatter, setup_logging


def test_json_formatter_fields():
    record = logging.LogRecord(
        "mixtape.updates.scheduler", logging.WARNING, __file__, 1, "check failed", None, None
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload == {
        "level": "WARNING",
        "msg": "check failed",
        "logger": "mixtape.updates.scheduler",
    }


def test_setup_logging_uses_json_in_prod():
    settings = MagicMock()
    settings.env = "prod"
    settings.log_level = "INFO"

    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        with patch("mixtape.logging.get_settings", return_value=settings):
            setup_logging()

        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)


def test_setup_logging_applies_configured_level():
    settings = MagicMock()
    settings.env = "dev"
    settings.log_level = "DEBUG"

    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        with patch("mixtape.logging.get_settings", return_value=settings):
            setup_logging()

        assert root.level == logging.DEBUG
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
