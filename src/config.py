"""Operator configuration read from the environment."""

import os
from dataclasses import dataclass

from constants import RECHECK_INTERVAL


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class OperatorConfig:
    """Process-level settings.

    Environment variables:
        WATCH_NAMESPACE: Namespace to watch (default: cluster-wide)
        METRICS_PORT: Port of the metrics/health HTTP server (default: 8080)
        LOG_LEVEL: Root log level (default: INFO)
        RECHECK_INTERVAL_SECONDS: Periodic re-check interval (default: 30)
    """

    watch_namespace: str = ""
    metrics_port: int = 8080
    log_level: str = "INFO"
    recheck_interval: int = RECHECK_INTERVAL

    @classmethod
    def from_env(cls) -> "OperatorConfig":
        """Build the configuration from environment variables."""
        return cls(
            watch_namespace=os.environ.get("WATCH_NAMESPACE", "").strip(),
            metrics_port=_env_int("METRICS_PORT", 8080, minimum=0),
            log_level=os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO",
            recheck_interval=_env_int("RECHECK_INTERVAL_SECONDS", RECHECK_INTERVAL, minimum=1),
        )
