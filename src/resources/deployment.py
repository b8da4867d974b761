"""Deployment builder for proxy pods."""

from typing import Any, Mapping

from constants import (
    CONFIG_CHECKSUM_ANNOTATION,
    CONFIG_DIR,
    CONFIG_PATH,
    CONTAINER_NAME,
    DEFAULT_IMAGE,
    DEFAULT_PULL_POLICY,
    DEFAULT_TAG,
    KAFKA_TLS_DIR,
)
from models import with_defaults
from utils import build_labels, child_metadata, config_map_name


_TOLERATION_FIELDS = ("key", "operator", "value", "effect", "tolerationSeconds")


def desired_replicas(spec: Mapping[str, Any]) -> int:
    """Replica count for the Deployment.

    Suspending scales the Deployment to zero; the ConfigMap and Service
    are left in place.
    """
    spec = with_defaults(spec)
    return 0 if spec["suspend"] else spec["replicas"]


def proxy_image(pod_template: Mapping[str, Any]) -> str:
    """Container image reference, honouring pod template overrides."""
    image = pod_template.get("image") or DEFAULT_IMAGE
    tag = pod_template.get("imageTag") or DEFAULT_TAG
    return f"{image}:{tag}"


def _tcp_probe(initial_delay: int, period: int, timeout: int) -> dict[str, Any]:
    return {
        "tcpSocket": {"port": "kafka"},
        "initialDelaySeconds": initial_delay,
        "periodSeconds": period,
        "timeoutSeconds": timeout,
        "failureThreshold": 3,
    }


def _secret_env(env_name: str, secret_name: str, key: str) -> dict[str, Any]:
    return {
        "name": env_name,
        "valueFrom": {"secretKeyRef": {"name": secret_name, "key": key}},
    }


def _resources(requirements: Mapping[str, Any]) -> dict[str, dict[str, str]]:
    result: dict[str, dict[str, str]] = {}
    for section in ("limits", "requests"):
        if requirements.get(section):
            result[section] = dict(requirements[section])
    return result


def build_container(spec: Mapping[str, Any]) -> dict[str, Any]:
    """Build the single proxy container."""
    spec = with_defaults(spec)
    pod_template = spec.get("podTemplate") or {}
    kafka = spec["kafka"]

    container: dict[str, Any] = {
        "name": CONTAINER_NAME,
        "image": proxy_image(pod_template),
        "imagePullPolicy": pod_template.get("imagePullPolicy") or DEFAULT_PULL_POLICY,
        "args": ["--config", CONFIG_PATH],
        "ports": [
            {"name": "kafka", "containerPort": spec["listen"]["port"], "protocol": "TCP"},
            {"name": "metrics", "containerPort": spec["metrics"]["port"], "protocol": "TCP"},
        ],
        "livenessProbe": _tcp_probe(initial_delay=10, period=10, timeout=5),
        "readinessProbe": _tcp_probe(initial_delay=5, period=5, timeout=3),
    }

    resources = _resources(pod_template.get("resources") or {})
    if resources:
        container["resources"] = resources

    sasl = kafka.get("saslSecret")
    if sasl:
        container["env"] = [
            _secret_env("KAFKA_USERNAME", sasl["name"], sasl["usernameKey"]),
            _secret_env("KAFKA_PASSWORD", sasl["name"], sasl["passwordKey"]),
        ]

    volume_mounts = [{"name": "config", "mountPath": CONFIG_DIR, "readOnly": True}]
    if kafka.get("tlsSecret"):
        volume_mounts.append(
            {"name": "kafka-tls", "mountPath": KAFKA_TLS_DIR, "readOnly": True}
        )
    container["volumeMounts"] = volume_mounts

    return container


def build_pod_spec(spec: Mapping[str, Any], config_map: str) -> dict[str, Any]:
    """Build the pod spec, applying pod template overrides only when set."""
    spec = with_defaults(spec)
    pod_template = spec.get("podTemplate") or {}

    volumes: list[dict[str, Any]] = [
        {"name": "config", "configMap": {"name": config_map}},
    ]
    tls = spec["kafka"].get("tlsSecret")
    if tls:
        volumes.append({"name": "kafka-tls", "secret": {"secretName": tls["name"]}})

    pod_spec: dict[str, Any] = {
        "containers": [build_container(spec)],
        "volumes": volumes,
    }

    if pod_template.get("nodeSelector"):
        pod_spec["nodeSelector"] = dict(pod_template["nodeSelector"])

    if pod_template.get("tolerations"):
        pod_spec["tolerations"] = [
            {k: t[k] for k in _TOLERATION_FIELDS if t.get(k) is not None}
            for t in pod_template["tolerations"]
        ]

    if pod_template.get("serviceAccountName"):
        pod_spec["serviceAccountName"] = pod_template["serviceAccountName"]

    if pod_template.get("imagePullSecrets"):
        pod_spec["imagePullSecrets"] = [
            {"name": secret} for secret in pod_template["imagePullSecrets"]
        ]

    # Opaque pass-through
    if pod_template.get("affinity"):
        pod_spec["affinity"] = pod_template["affinity"]
    if pod_template.get("securityContext"):
        pod_spec["securityContext"] = pod_template["securityContext"]

    return pod_spec


def build_deployment(
    spec: Mapping[str, Any],
    meta: Mapping[str, Any],
    config_hash: str,
) -> dict[str, Any]:
    """Build the desired Deployment for a remapper.

    Args:
        spec: Remapper spec
        meta: Parent metadata (name, namespace, uid)
        config_hash: Fingerprint stamped on the pod template

    Returns:
        Deployment manifest ready for server-side apply
    """
    spec = with_defaults(spec)
    name = meta["name"]
    pod_template = spec.get("podTemplate") or {}
    labels = build_labels(name)

    pod_labels = {**(pod_template.get("labels") or {}), **labels}
    pod_annotations = {
        **(pod_template.get("annotations") or {}),
        CONFIG_CHECKSUM_ANNOTATION: config_hash,
    }

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": child_metadata(name, meta),
        "spec": {
            "replicas": desired_replicas(spec),
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": pod_labels, "annotations": pod_annotations},
                "spec": build_pod_spec(spec, config_map_name(name)),
            },
        },
    }
