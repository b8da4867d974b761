"""Tests for operator configuration."""

import pytest

from config import OperatorConfig


class TestOperatorConfig:
    """Tests for OperatorConfig.from_env."""

    def test_defaults(self, monkeypatch):
        for name in ("WATCH_NAMESPACE", "METRICS_PORT", "LOG_LEVEL", "RECHECK_INTERVAL_SECONDS"):
            monkeypatch.delenv(name, raising=False)

        assert OperatorConfig.from_env() == OperatorConfig(
            watch_namespace="", metrics_port=8080, log_level="INFO", recheck_interval=30
        )

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("WATCH_NAMESPACE", "kafka")
        monkeypatch.setenv("METRICS_PORT", "9100")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("RECHECK_INTERVAL_SECONDS", "60")
        config = OperatorConfig.from_env()

        assert config.watch_namespace == "kafka"
        assert config.metrics_port == 9100
        assert config.log_level == "DEBUG"
        assert config.recheck_interval == 60

    def test_blank_values_use_defaults(self, monkeypatch):
        monkeypatch.setenv("METRICS_PORT", " ")
        monkeypatch.setenv("LOG_LEVEL", "")

        config = OperatorConfig.from_env()
        assert config.metrics_port == 8080
        assert config.log_level == "INFO"

    def test_invalid_integer(self, monkeypatch):
        monkeypatch.setenv("METRICS_PORT", "http")

        with pytest.raises(ValueError, match="METRICS_PORT must be an integer"):
            OperatorConfig.from_env()

    def test_interval_minimum(self, monkeypatch):
        monkeypatch.setenv("RECHECK_INTERVAL_SECONDS", "0")

        with pytest.raises(ValueError, match="RECHECK_INTERVAL_SECONDS must be >= 1"):
            OperatorConfig.from_env()
