"""Tests for the metrics and health HTTP server."""

import threading
import urllib.error
import urllib.request

import pytest

from health import start_health_server
from metrics import OperatorMetrics


@pytest.fixture
def server_state():
    metrics = OperatorMetrics()
    metrics.init_metrics("1.2.3")
    ready = threading.Event()
    server = start_health_server(metrics.registry, ready, port=0, host="127.0.0.1")
    base_url = f"http://127.0.0.1:{server.server_address[1]}"
    yield base_url, ready
    server.shutdown()
    server.server_close()


def get(url):
    try:
        with urllib.request.urlopen(url, timeout=5) as response:
            return response.status, response.read().decode()
    except urllib.error.HTTPError as e:
        return e.code, e.read().decode()


class TestHealthServer:
    """Tests for start_health_server."""

    def test_metrics(self, server_state):
        base_url, _ = server_state
        status, body = get(f"{base_url}/metrics")

        assert status == 200
        assert "kafka_partition_remapper_operator_health 1.0" in body

    @pytest.mark.parametrize("path", ["/healthz", "/health"])
    def test_liveness(self, server_state, path):
        base_url, _ = server_state

        assert get(f"{base_url}{path}") == (200, "ok")

    @pytest.mark.parametrize("path", ["/readyz", "/ready"])
    def test_readiness(self, server_state, path):
        base_url, ready = server_state

        assert get(f"{base_url}{path}") == (503, "not ready")
        ready.set()
        assert get(f"{base_url}{path}") == (200, "ok")

    def test_unknown_path(self, server_state):
        base_url, _ = server_state

        assert get(f"{base_url}/nope")[0] == 404
