"""Service builder and endpoint resolution for proxy access."""

from typing import Any, Mapping

from models import with_defaults
from utils import build_labels, child_metadata, cluster_dns_name


def build_service(spec: Mapping[str, Any], meta: Mapping[str, Any]) -> dict[str, Any]:
    """Build the desired Service exposing the proxy's kafka and metrics ports.

    Args:
        spec: Remapper spec
        meta: Parent metadata (name, namespace, uid)

    Returns:
        Service manifest ready for server-side apply
    """
    spec = with_defaults(spec)
    name = meta["name"]
    service = spec["service"]

    service_spec: dict[str, Any] = {
        "type": service["type"],
        "selector": build_labels(name),
        "ports": [
            {
                "name": "kafka",
                "port": spec["listen"]["port"],
                "targetPort": "kafka",
                "protocol": "TCP",
            },
            {
                "name": "metrics",
                "port": spec["metrics"]["port"],
                "targetPort": "metrics",
                "protocol": "TCP",
            },
        ],
    }
    if service.get("loadBalancerIP"):
        service_spec["loadBalancerIP"] = service["loadBalancerIP"]
    if service.get("externalTrafficPolicy"):
        service_spec["externalTrafficPolicy"] = service["externalTrafficPolicy"]

    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": child_metadata(name, meta, annotations=service.get("annotations")),
        "spec": service_spec,
    }


def resolve_endpoint(service: Mapping[str, Any], spec: Mapping[str, Any]) -> str:
    """Address clients should use to reach the proxy.

    LoadBalancer services report the first ingress IP, then hostname, once
    provisioned. Everything else, including a LoadBalancer still waiting for
    its ingress, resolves to the cluster-internal DNS name. Node IPs are
    never reported.

    Args:
        service: Service object as a dict (live or desired)
        spec: Remapper spec

    Returns:
        "host:port" string
    """
    port = with_defaults(spec)["listen"]["port"]
    metadata = service.get("metadata") or {}
    service_type = (service.get("spec") or {}).get("type") or "ClusterIP"

    if service_type == "LoadBalancer":
        load_balancer = (service.get("status") or {}).get("loadBalancer") or {}
        ingress = load_balancer.get("ingress") or []
        if ingress:
            first = ingress[0]
            if first.get("ip"):
                return f"{first['ip']}:{port}"
            if first.get("hostname"):
                return f"{first['hostname']}:{port}"

    name = metadata.get("name", "")
    namespace = metadata.get("namespace", "")
    return f"{cluster_dns_name(name, namespace)}:{port}"
