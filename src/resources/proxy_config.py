"""Proxy configuration rendering and configuration fingerprinting.

The proxy reads a single YAML file mounted from the remapper's ConfigMap.
Rendering is deterministic so that the same spec always produces the same
bytes, which in turn keeps the fingerprint stable.
"""

import hashlib
import json
from typing import Any, Mapping

import yaml

from models import ConfigError, with_defaults
from utils import cluster_dns_name

# Override fields emitted per topic, in output order
_TOPIC_OVERRIDE_FIELDS = (
    ("virtualPartitions", "virtual_partitions"),
    ("physicalPartitions", "physical_partitions"),
    ("offsetRange", "offset_range"),
)


def advertised_address(spec: Mapping[str, Any], name: str, namespace: str) -> str:
    """Address clients are told to reconnect to.

    Uses listen.advertisedAddress when set, otherwise the Service's
    cluster-internal DNS name on the listen port.
    """
    listen = with_defaults(spec)["listen"]
    if listen.get("advertisedAddress"):
        return listen["advertisedAddress"]
    return f"{cluster_dns_name(name, namespace)}:{listen['port']}"


def _topic_overrides(topics: list[Mapping[str, Any]]) -> dict[str, dict[str, int]]:
    overrides: dict[str, dict[str, int]] = {}
    for override in topics:
        entry: dict[str, int] = {}
        for spec_key, config_key in _TOPIC_OVERRIDE_FIELDS:
            if override.get(spec_key) is not None:
                entry[config_key] = override[spec_key]
        overrides[override["topic"]] = entry
    return overrides


def proxy_config_document(spec: Mapping[str, Any], advertised: str) -> dict[str, Any]:
    """Build the proxy configuration as a plain, insertion-ordered dict."""
    spec = with_defaults(spec)
    listen = spec["listen"]
    kafka = spec["kafka"]
    mapping = spec["mapping"]

    mapping_section: dict[str, Any] = {
        "virtual_partitions": mapping["virtualPartitions"],
        "physical_partitions": mapping["physicalPartitions"],
        "offset_range": mapping["offsetRange"],
    }
    if mapping.get("topics"):
        mapping_section["topics"] = _topic_overrides(mapping["topics"])

    return {
        "listen": {
            "address": f"0.0.0.0:{listen['port']}",
            "advertised_address": advertised,
            "max_connections": listen["maxConnections"],
        },
        "kafka": {
            "bootstrap_servers": list(kafka["bootstrapServers"]),
            "connection_timeout_ms": kafka["connectionTimeoutMs"],
            "request_timeout_ms": kafka["requestTimeoutMs"],
            "metadata_refresh_interval_secs": kafka["metadataRefreshIntervalSecs"],
            "security_protocol": kafka["securityProtocol"],
        },
        "mapping": mapping_section,
        "metrics": {
            "enabled": spec["metrics"]["enabled"],
            "address": f"0.0.0.0:{spec['metrics']['port']}",
        },
        "logging": {
            "level": spec["logging"]["level"],
            "json": spec["logging"]["json"],
        },
    }


def build_proxy_config(spec: Mapping[str, Any], advertised: str) -> str:
    """Render the proxy configuration file.

    Args:
        spec: Remapper spec
        advertised: Advertised address for client reconnections

    Returns:
        YAML text for the config.yaml key

    Raises:
        ConfigError: If the document cannot be serialized
    """
    document = proxy_config_document(spec, advertised)
    try:
        return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to serialize proxy config: {e}") from e


def config_hash(spec: Mapping[str, Any]) -> str:
    """Short fingerprint of the full spec.

    Stamped on the pod template so that any spec change rolls the pods.
    Keys are sorted so the digest does not depend on dict ordering.
    """
    try:
        canonical = json.dumps(
            with_defaults(spec), sort_keys=True, separators=(",", ":")
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Failed to serialize spec for hashing: {e}") from e
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]
