"""Tests for settings validation and logging setup."""

import logging

import pytest
from pydantic import ValidationError

import kogrammar
from kogrammar import configure_logging, logging_config
from kogrammar.config import HARD_MAX_BATCH_SIZE, Settings


class TestSettings:
    """Tests for Settings validation."""

    def test_defaults(self):
        s = Settings()
        assert s.context_window == 50
        assert s.batch_delay_seconds == 1.5
        assert s.max_batch_size == HARD_MAX_BATCH_SIZE

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("KOGRAMMAR_CONTEXT_WINDOW", "80")
        assert Settings().context_window == 80

    def test_batch_size_above_hard_cap_rejected(self):
        with pytest.raises(ValidationError):
            Settings(max_batch_size=HARD_MAX_BATCH_SIZE + 1)

    def test_negative_delay_rejected(self):
        with pytest.raises(ValidationError):
            Settings(batch_delay_seconds=-1)

    def test_negative_context_window_rejected(self):
        with pytest.raises(ValidationError):
            Settings(context_window=-5)


class TestConfigureLogging:
    def setup_method(self):
        self.httpx_logger = logging.getLogger("httpx")
        self.previous = self.httpx_logger.level

    def teardown_method(self):
        self.httpx_logger.setLevel(self.previous)

    def test_quiets_httpx_outside_debug(self):
        configure_logging(Settings(log_level="info", dev_mode=False))
        assert self.httpx_logger.level == logging.WARNING

    def test_debug_leaves_httpx_alone(self):
        self.httpx_logger.setLevel(logging.NOTSET)
        configure_logging(Settings(log_level="debug"))
        assert self.httpx_logger.level == logging.NOTSET

    def test_exported_from_package(self):
        assert kogrammar.configure_logging is logging_config.configure_logging
