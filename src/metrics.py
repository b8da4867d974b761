"""Prometheus metrics for the KafkaPartitionRemapper operator."""

import threading

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, Info

RESOURCE_KIND = "KafkaPartitionRemapper"


class OperatorMetrics:
    """Operator metrics bound to their own registry.

    Created once at startup and handed to the reconciler and the HTTP
    server; nothing is registered on the process-global default registry.
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.reconciliations = Counter(
            "kafka_partition_remapper_operator_reconciliations_total",
            "Total number of reconciliations",
            ["kind"],
            registry=self.registry,
        )
        self.reconciliation_errors = Counter(
            "kafka_partition_remapper_operator_reconciliation_errors_total",
            "Total number of reconciliation errors",
            ["kind", "error"],
            registry=self.registry,
        )
        self.reconcile_duration = Histogram(
            "kafka_partition_remapper_operator_reconcile_duration_seconds",
            "Duration of reconciliations in seconds",
            ["kind"],
            buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=self.registry,
        )
        self.reconcile_in_progress = Gauge(
            "kafka_partition_remapper_operator_reconcile_in_progress",
            "Number of reconciliations currently in progress",
            ["kind"],
            registry=self.registry,
        )
        self.managed_resources = Gauge(
            "kafka_partition_remapper_operator_managed_resources",
            "Number of managed remappers by phase",
            ["kind", "phase"],
            registry=self.registry,
        )
        self.ready_replicas = Gauge(
            "kafka_partition_remapper_operator_ready_replicas",
            "Number of ready replicas per remapper",
            ["namespace", "name"],
            registry=self.registry,
        )
        self.operator_health = Gauge(
            "kafka_partition_remapper_operator_health",
            "Operator health status (1 = healthy, 0 = unhealthy)",
            registry=self.registry,
        )
        self.operator_info = Info(
            "kafka_partition_remapper_operator",
            "Information about the KafkaPartitionRemapper operator",
            registry=self.registry,
        )

        # Phase last recorded per (namespace, name), backing managed_resources
        self._phases: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()

    def init_metrics(self, version: str) -> None:
        """Initialize labelled series so they are visible from startup."""
        self.operator_info.info({"version": version})
        self.operator_health.set(1)
        self.reconciliations.labels(kind=RESOURCE_KIND)
        self.reconcile_duration.labels(kind=RESOURCE_KIND)
        self.reconcile_in_progress.labels(kind=RESOURCE_KIND).set(0)
        for phase in ("Pending", "Running", "Degraded", "Suspended", "Failed"):
            self.managed_resources.labels(kind=RESOURCE_KIND, phase=phase).set(0)
        for error in ("ValidationError", "ConfigError", "KubeError", "SecretError", "Other"):
            self.reconciliation_errors.labels(kind=RESOURCE_KIND, error=error)

    def record_phase(self, namespace: str, name: str, phase: str, ready: int) -> None:
        """Track the latest phase and ready count of a remapper."""
        key = (namespace, name)
        with self._lock:
            previous = self._phases.get(key)
            if previous != phase:
                if previous is not None:
                    self.managed_resources.labels(kind=RESOURCE_KIND, phase=previous).dec()
                self.managed_resources.labels(kind=RESOURCE_KIND, phase=phase).inc()
                self._phases[key] = phase
        self.ready_replicas.labels(namespace=namespace, name=name).set(ready)

    def forget(self, namespace: str, name: str) -> None:
        """Drop per-object series for a deleted remapper."""
        with self._lock:
            previous = self._phases.pop((namespace, name), None)
            if previous is not None:
                self.managed_resources.labels(kind=RESOURCE_KIND, phase=previous).dec()
        try:
            self.ready_replicas.remove(namespace, name)
        except KeyError:
            # Never reported a ready count
            pass
