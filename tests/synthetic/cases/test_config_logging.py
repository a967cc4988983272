"""
Configuration and Logging Tests.

Tests environment-driven config, the defaults indicator states snapshot
at construction, and the logger's clamp/state helpers.
"""

import logging
import os

import pytest

from streamta.config import get_config, setup_config
from streamta.indicators import SimpleMovingAverageState
from streamta.structures import RingBuffer
from streamta.utils import get_logger, resolve_length, setup_logger
from tests.synthetic.harness.bars import make_bar


class TestConfig:
    """Test Config loading."""

    def test_defaults(self, monkeypatch):
        for name in ("STREAMTA_LOG_LEVEL", "STREAMTA_LOG_DIR",
                     "STREAMTA_INCLUDE_OUTPUTS", "STREAMTA_WARN_ON_CLAMP"):
            monkeypatch.delenv(name, raising=False)
        config = setup_config(env_file="does-not-exist.env")
        assert config.log.level == "INFO"
        assert config.log.log_dir is None
        assert config.streaming.include_outputs is True
        assert config.streaming.warn_on_clamp is True
        assert "outputs=on" in config.summary_short()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("STREAMTA_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("STREAMTA_INCLUDE_OUTPUTS", "false")
        config = setup_config()
        assert config.log.level == "DEBUG"
        assert config.streaming.include_outputs is False

    def test_env_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv("STREAMTA_WARN_ON_CLAMP", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("STREAMTA_WARN_ON_CLAMP=no\n")
        try:
            config = setup_config(env_file=str(env_file))
            assert config.streaming.warn_on_clamp is False
        finally:
            # load_dotenv writes into os.environ
            os.environ.pop("STREAMTA_WARN_ON_CLAMP", None)

    def test_singleton(self):
        assert get_config() is get_config()


class TestIncludeOutputsDefault:
    """States snapshot include_outputs when constructed."""

    def test_disabled_by_config(self, monkeypatch):
        monkeypatch.setenv("STREAMTA_INCLUDE_OUTPUTS", "0")
        setup_config()
        state = SimpleMovingAverageState(length=2)
        assert state.update(make_bar(1.0)).outputs is None
        # explicit argument still wins
        assert state.update(make_bar(1.0), include_outputs=True).outputs is not None

    def test_snapshot_at_construction(self, monkeypatch):
        state = SimpleMovingAverageState(length=2)
        monkeypatch.setenv("STREAMTA_INCLUDE_OUTPUTS", "false")
        setup_config()
        assert state.update(make_bar(1.0)).outputs is not None


class TestClampLogging:
    """Length clamping is logged once, at construction."""

    def test_clamp_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="streamta"):
            buf = RingBuffer(-4)
        assert buf.size == 1
        assert "[CLAMP] RingBuffer | size=-4 -> 1" in caplog.text

    def test_no_warning_for_valid_length(self, caplog):
        with caplog.at_level(logging.WARNING, logger="streamta"):
            assert resolve_length(5, "Test") == 5
        assert caplog.text == ""

    def test_clamp_warning_can_be_disabled(self, monkeypatch, caplog):
        monkeypatch.setenv("STREAMTA_WARN_ON_CLAMP", "false")
        setup_config()
        with caplog.at_level(logging.WARNING, logger="streamta"):
            assert resolve_length(0, "Test") == 1
        assert "[CLAMP]" not in caplog.text

    def test_state_clamp_is_not_repeated_per_bar(self, caplog):
        with caplog.at_level(logging.WARNING, logger="streamta"):
            state = SimpleMovingAverageState(length=0)
            count_after_init = caplog.text.count("[CLAMP]")
            for _ in range(10):
                state.update(make_bar(1.0))
        assert count_after_init >= 1
        assert caplog.text.count("[CLAMP]") == count_after_init


class TestLogger:
    """Test IndicatorLogger helpers."""

    def test_reset_logged_at_debug(self, caplog):
        setup_logger(log_level="DEBUG")
        try:
            state = SimpleMovingAverageState(length=3)
            with caplog.at_level(logging.DEBUG, logger="streamta"):
                state.reset()
            assert "[STATE:RESET] | SimpleMovingAverageState" in caplog.text
        finally:
            setup_logger()

    def test_file_handler(self, tmp_path):
        logger = setup_logger(log_dir=str(tmp_path), log_level="INFO")
        try:
            logger.info("hello file")
            for handler in logger.main_logger.handlers:
                handler.flush()
            files = list(tmp_path.glob("streamta_*.log"))
            assert len(files) == 1
            content = files[0].read_text(encoding="utf-8")
            assert "hello file" in content
            assert "\033[" not in content
        finally:
            for handler in logger.main_logger.handlers:
                handler.close()
            setup_logger()

    def test_get_logger_is_shared(self):
        assert get_logger() is get_logger()

    @pytest.mark.parametrize("selector", [None, "close"])
    def test_rejected_selector_logged(self, caplog, selector):
        with caplog.at_level(logging.ERROR, logger="streamta"):
            with pytest.raises(ValueError):
                SimpleMovingAverageState.with_selector(selector, length=3)
        assert "[SELECTOR]" in caplog.text
