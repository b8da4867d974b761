"""Shared operator context handed to every reconcile invocation."""

from dataclasses import dataclass

from config import OperatorConfig
from kube_client import KubeClient, load_kube_config
from metrics import OperatorMetrics


@dataclass(frozen=True)
class OperatorContext:
    """Immutable bundle of what a reconcile needs.

    Built once at startup and stored in kopf's memo. Handlers receive the
    same instance; it has no mutable fields of its own, so reconciles of
    different objects can share it freely.
    """

    client: KubeClient
    metrics: OperatorMetrics
    config: OperatorConfig


def build_context(config: OperatorConfig) -> OperatorContext:
    """Load Kubernetes configuration and construct the operator context."""
    load_kube_config()
    return OperatorContext(
        client=KubeClient(),
        metrics=OperatorMetrics(),
        config=config,
    )
