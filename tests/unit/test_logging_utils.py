"""Tests for utils/logging.py."""
from __future__ import annotations

import logging

import structlog

from launchwing.utils.logging import _redact_secrets, configure_logging, get_logger


def test_configure_logging_sets_root_level() -> None:
    configure_logging("DEBUG", json=False)
    assert logging.getLogger().level == logging.DEBUG
    configure_logging("WARNING", json=True)
    assert logging.getLogger().level == logging.WARNING


def test_configure_logging_installs_single_handler() -> None:
    configure_logging("INFO", json=True)
    configure_logging("INFO", json=True)
    assert len(logging.getLogger().handlers) == 1


def test_configure_logging_invalid_level_falls_back_to_info() -> None:
    configure_logging("NOTAREAL_LEVEL", json=False)
    assert logging.getLogger().level == logging.INFO


def test_redact_secrets_masks_credentials() -> None:
    event = {"event": "connect", "token": "ghp_secret", "api_key": "sk", "repo": "mvp-x"}
    redacted = _redact_secrets(None, "info", dict(event))
    assert redacted["token"] == "[REDACTED]"
    assert redacted["api_key"] == "[REDACTED]"
    assert redacted["repo"] == "mvp-x"


def test_redact_secrets_leaves_empty_values() -> None:
    redacted = _redact_secrets(None, "info", {"event": "x", "token": None})
    assert redacted["token"] is None


def test_get_logger_is_usable() -> None:
    logger = get_logger("launchwing.test")
    assert logger is not None
    assert isinstance(structlog.get_config(), dict)
