"""Tests for operator metrics."""

from prometheus_client import CollectorRegistry

from metrics import OperatorMetrics

KIND = "KafkaPartitionRemapper"


def managed(metrics, phase):
    return metrics.registry.get_sample_value(
        "kafka_partition_remapper_operator_managed_resources",
        {"kind": KIND, "phase": phase},
    )


class TestOperatorMetrics:
    """Tests for OperatorMetrics."""

    def test_own_registry(self):
        first = OperatorMetrics()
        second = OperatorMetrics()

        assert first.registry is not second.registry

    def test_explicit_registry(self):
        registry = CollectorRegistry()

        assert OperatorMetrics(registry).registry is registry

    def test_init_metrics(self):
        metrics = OperatorMetrics()
        metrics.init_metrics("1.2.3")

        registry = metrics.registry
        assert registry.get_sample_value("kafka_partition_remapper_operator_health") == 1
        assert (
            registry.get_sample_value(
                "kafka_partition_remapper_operator_info", {"version": "1.2.3"}
            )
            == 1
        )
        assert managed(metrics, "Running") == 0
        assert managed(metrics, "Failed") == 0

    def test_record_phase_moves_between_phases(self):
        metrics = OperatorMetrics()
        metrics.init_metrics("1.2.3")
        metrics.record_phase("kafka", "orders", "Pending", 0)
        metrics.record_phase("kafka", "orders", "Running", 2)
        metrics.record_phase("kafka", "orders", "Running", 2)

        assert managed(metrics, "Pending") == 0
        assert managed(metrics, "Running") == 1
        assert (
            metrics.registry.get_sample_value(
                "kafka_partition_remapper_operator_ready_replicas",
                {"namespace": "kafka", "name": "orders"},
            )
            == 2
        )

    def test_forget(self):
        metrics = OperatorMetrics()
        metrics.record_phase("kafka", "orders", "Running", 2)
        metrics.forget("kafka", "orders")

        assert managed(metrics, "Running") == 0
        assert (
            metrics.registry.get_sample_value(
                "kafka_partition_remapper_operator_ready_replicas",
                {"namespace": "kafka", "name": "orders"},
            )
            is None
        )

    def test_forget_unknown(self):
        metrics = OperatorMetrics()
        metrics.forget("kafka", "never-seen")
