"""
Unit tests for configuration.
"""

from pathlib import Path

import pytest

from aiobserver.capture.suggestion_monitor import HeuristicSettings
from aiobserver.config import Config
from aiobserver.errors import ConfigError


class TestConfig:
    """Test Config."""

    def test_defaults(self, monkeypatch):
        for name in (
            "AI_OBSERVER_DATA_DIR",
            "AI_OBSERVER_STORAGE_LIMIT",
            "AI_OBSERVER_ENABLE_LOGGING",
            "AI_OBSERVER_CHAT_DIR",
            "AI_OBSERVER_LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)

        cfg = Config.from_env()

        assert cfg.data_dir == Path.home() / ".ai-observer"
        assert cfg.storage_limit == 10000
        assert cfg.enable_logging is True
        assert cfg.chat_sessions_dir is None
        assert cfg.storage_path == cfg.data_dir / "interactions.json"
        assert (cfg.rescan_interval_s, cfg.processed_key_cap) == (15.0, 5000)

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("AI_OBSERVER_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("AI_OBSERVER_STORAGE_LIMIT", "250")
        monkeypatch.setenv("AI_OBSERVER_ENABLE_LOGGING", "off")
        monkeypatch.setenv("AI_OBSERVER_CHAT_DIR", str(tmp_path / "chat"))
        monkeypatch.setenv("AI_OBSERVER_LOG_LEVEL", "debug")

        cfg = Config.from_env()

        assert cfg.data_dir == tmp_path
        assert cfg.storage_limit == 250
        assert cfg.enable_logging is False
        assert cfg.chat_sessions_dir == tmp_path / "chat"
        assert cfg.log_level == "DEBUG"

    def test_invalid_values(self, monkeypatch):
        monkeypatch.setenv("AI_OBSERVER_STORAGE_LIMIT", "lots")
        with pytest.raises(ConfigError):
            Config.from_env()

        monkeypatch.setenv("AI_OBSERVER_STORAGE_LIMIT", "10")
        monkeypatch.setenv("AI_OBSERVER_ENABLE_LOGGING", "maybe")
        with pytest.raises(ConfigError):
            Config.from_env()

    def test_heuristic_settings_from_config(self):
        cfg = Config(multiline_threshold=1, singleline_threshold=2, context_lines=3, pending_ttl_ms=4)
        settings = HeuristicSettings.from_config(cfg)
        assert (settings.multiline_threshold, settings.singleline_threshold) == (1, 2)
        assert (settings.context_lines, settings.pending_ttl_ms) == (3, 4)
