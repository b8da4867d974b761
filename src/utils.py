"""Utility functions for the KafkaPartitionRemapper operator."""

import datetime
from typing import Any, Mapping

from constants import API_VERSION, APP_NAME, KIND, MANAGED_BY


def now_iso() -> str:
    """Return current UTC time in ISO format."""
    return datetime.datetime.now(datetime.UTC).replace(microsecond=0).isoformat()


def config_map_name(name: str) -> str:
    """Name of the ConfigMap holding a remapper's proxy configuration.

    Example: 'orders' -> 'orders-config'
    """
    return f"{name}-config"


def cluster_dns_name(name: str, namespace: str) -> str:
    """Cluster-internal DNS name of a Service."""
    return f"{name}.{namespace}.svc.cluster.local"


def build_labels(name: str) -> dict[str, str]:
    """Labels shared by every child resource of a remapper."""
    return {
        "app.kubernetes.io/name": APP_NAME,
        "app.kubernetes.io/instance": name,
        "app.kubernetes.io/managed-by": MANAGED_BY,
    }


def build_owner_reference(meta: Mapping[str, Any]) -> dict[str, Any]:
    """Controller owner reference pointing at the parent remapper.

    Children carrying this reference are garbage-collected by Kubernetes
    when the parent is deleted.
    """
    return {
        "apiVersion": API_VERSION,
        "kind": KIND,
        "name": meta.get("name", ""),
        "uid": meta.get("uid", ""),
        "controller": True,
        "blockOwnerDeletion": True,
    }


def child_metadata(
    name: str,
    meta: Mapping[str, Any],
    annotations: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Object metadata for a child resource of the given parent."""
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": meta.get("namespace", ""),
        "labels": build_labels(meta.get("name", "")),
        "ownerReferences": [build_owner_reference(meta)],
    }
    if annotations:
        metadata["annotations"] = dict(annotations)
    return metadata
