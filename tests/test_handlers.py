"""Tests for the kopf handler wiring."""

from unittest.mock import MagicMock, patch

import kopf
import pytest

import handlers
from config import OperatorConfig
from metrics import OperatorMetrics
from models import KubeError
from state import OperatorContext


def make_memo(client):
    memo = kopf.Memo()
    memo.context = OperatorContext(
        client=client, metrics=OperatorMetrics(), config=OperatorConfig()
    )
    return memo


def make_body(mapping=None, deleting=False):
    meta = {"name": "orders", "namespace": "kafka", "uid": "uid-1"}
    if deleting:
        meta["deletionTimestamp"] = "2024-01-01T00:00:00Z"
    return {
        "metadata": meta,
        "spec": {
            "kafka": {"bootstrapServers": ["kafka:9092"]},
            "mapping": mapping or {"virtualPartitions": 10, "physicalPartitions": 1},
        },
    }


class TestApplyHandler:
    """Tests for apply_remapper."""

    def test_success(self):
        client = MagicMock()
        client.read_deployment.return_value = None
        client.read_service.return_value = None

        handlers.apply_remapper(
            body=make_body(), namespace="kafka", name="orders", memo=make_memo(client)
        )

        client.patch_status.assert_called_once()

    @patch("handlers.kopf.warn")
    def test_validation_failure_is_temporary_with_long_delay(self, mock_warn):
        client = MagicMock()
        body = make_body(mapping={"virtualPartitions": 11, "physicalPartitions": 2})

        with pytest.raises(kopf.TemporaryError) as exc_info:
            handlers.apply_remapper(
                body=body, namespace="kafka", name="orders", memo=make_memo(client)
            )

        assert exc_info.value.delay == 300
        mock_warn.assert_called_once()
        assert mock_warn.call_args.kwargs["reason"] == "ApplyFailed"

    @patch("handlers.kopf.warn")
    def test_api_failure_retried_soon(self, mock_warn):
        client = MagicMock()
        client.apply_config_map.side_effect = KubeError("apply_config_map failed: 503")

        with pytest.raises(kopf.TemporaryError) as exc_info:
            handlers.apply_remapper(
                body=make_body(), namespace="kafka", name="orders", memo=make_memo(client)
            )

        assert exc_info.value.delay == 30


class TestCleanupHandler:
    """Tests for cleanup_remapper and the re-check timer."""

    def test_cleanup_makes_no_api_calls(self):
        client = MagicMock()

        handlers.cleanup_remapper(
            body=make_body(deleting=True),
            namespace="kafka",
            name="orders",
            memo=make_memo(client),
        )

        assert client.mock_calls == []

    def test_timer_skips_deleting_objects(self):
        client = MagicMock()
        body = make_body(deleting=True)

        handlers.recheck_remapper(
            body=body,
            meta=body["metadata"],
            namespace="kafka",
            name="orders",
            memo=make_memo(client),
        )

        assert client.mock_calls == []

    def test_timer_never_applies_children(self):
        client = MagicMock()
        client.read_deployment.return_value = {"status": {"readyReplicas": 1, "replicas": 1}}
        client.read_service.return_value = None
        body = make_body()
        body["metadata"].update(generation=5, resourceVersion="77")
        body["status"] = {"observedGeneration": 5, "deploymentName": "orders"}

        handlers.recheck_remapper(
            body=body, namespace="kafka", name="orders", memo=make_memo(client)
        )

        assert [call[0] for call in client.mock_calls] == [
            "read_deployment",
            "read_service",
            "patch_status",
        ]
        assert client.patch_status.call_args.kwargs["resource_version"] == "77"

    def test_timer_waits_for_new_generation(self):
        client = MagicMock()
        body = make_body()
        body["metadata"]["generation"] = 6
        body["status"] = {"observedGeneration": 5, "deploymentName": "orders"}

        handlers.recheck_remapper(
            body=body, namespace="kafka", name="orders", memo=make_memo(client)
        )

        assert client.mock_calls == []
