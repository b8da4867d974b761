"""CustomResourceDefinition manifest for KafkaPartitionRemapper."""

from typing import Any

from constants import GROUP, KIND, PLURAL, SECURITY_PROTOCOLS, SHORT_NAME, SINGULAR, VERSION


def _string(description: str = "", **extra: Any) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "string", **extra}
    if description:
        schema["description"] = description
    return schema


def _integer(description: str = "", **extra: Any) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "integer", **extra}
    if description:
        schema["description"] = description
    return schema


def _boolean(description: str = "", **extra: Any) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "boolean", **extra}
    if description:
        schema["description"] = description
    return schema


def _object(
    properties: dict[str, Any],
    required: list[str] | None = None,
    description: str = "",
) -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "properties": properties}
    if required:
        schema["required"] = required
    if description:
        schema["description"] = description
    return schema


def _string_map(description: str = "") -> dict[str, Any]:
    schema: dict[str, Any] = {"type": "object", "additionalProperties": {"type": "string"}}
    if description:
        schema["description"] = description
    return schema


def _opaque(description: str) -> dict[str, Any]:
    return {
        "type": "object",
        "x-kubernetes-preserve-unknown-fields": True,
        "description": description,
    }


def _secret_key_ref() -> dict[str, Any]:
    return _object({"name": _string(), "key": _string(default="ca.crt")}, required=["name"])


def _listen_schema() -> dict[str, Any]:
    client_security = _object(
        {
            "protocol": _string(
                "Client-facing security protocol", enum=list(SECURITY_PROTOCOLS)
            ),
            "tls": _object(
                {
                    "certificateSecret": _object(
                        {
                            "name": _string(),
                            "certKey": _string(default="tls.crt"),
                            "keyKey": _string(default="tls.key"),
                        },
                        required=["name"],
                    ),
                    "clientCaSecret": _secret_key_ref(),
                    "requireClientCert": _boolean(default=False),
                },
                required=["certificateSecret"],
            ),
            "sasl": _object(
                {
                    "enabledMechanisms": {
                        "type": "array",
                        "items": _string(enum=["PLAIN", "SCRAM-SHA-256", "SCRAM-SHA-512"]),
                        "default": ["PLAIN"],
                    },
                    "credentialsSecret": _object({"name": _string()}, required=["name"]),
                },
                required=["credentialsSecret"],
            ),
        },
        description="Security for client connections to the proxy",
    )
    return _object(
        {
            "port": _integer("Port clients connect to", default=9092),
            "advertisedAddress": _string("Address advertised to clients (host:port)"),
            "maxConnections": _integer(default=1000),
            "security": client_security,
        }
    )


def _kafka_schema() -> dict[str, Any]:
    return _object(
        {
            "bootstrapServers": {
                "type": "array",
                "items": _string(),
                "description": "Kafka bootstrap servers (host:port)",
            },
            "connectionTimeoutMs": _integer(default=10000),
            "requestTimeoutMs": _integer(default=30000),
            "metadataRefreshIntervalSecs": _integer(default=30),
            "securityProtocol": _string(enum=list(SECURITY_PROTOCOLS), default="PLAINTEXT"),
            "tlsSecret": _object(
                {
                    "name": _string(),
                    "caKey": _string(default="ca.crt"),
                    "certKey": _string(),
                    "keyKey": _string(),
                    "insecureSkipVerify": _boolean(default=False),
                },
                required=["name"],
            ),
            "saslSecret": _object(
                {
                    "name": _string(),
                    "mechanism": _string(enum=["PLAIN", "SCRAM-SHA-256", "SCRAM-SHA-512"]),
                    "usernameKey": _string(default="username"),
                    "passwordKey": _string(default="password"),
                },
                required=["name", "mechanism"],
            ),
        },
        required=["bootstrapServers"],
    )


def _mapping_schema() -> dict[str, Any]:
    topic_override = _object(
        {
            "topic": _string(),
            "virtualPartitions": _integer(),
            "physicalPartitions": _integer(),
            "offsetRange": _integer(),
        },
        required=["topic"],
    )
    return _object(
        {
            "virtualPartitions": _integer("Partitions exposed to clients"),
            "physicalPartitions": _integer("Partitions that exist on the brokers"),
            "offsetRange": _integer("Offsets reserved per virtual partition", default=1 << 40),
            "topics": {"type": "array", "items": topic_override},
        },
        required=["virtualPartitions", "physicalPartitions"],
    )


def _pod_template_schema() -> dict[str, Any]:
    return _object(
        {
            "annotations": _string_map(),
            "labels": _string_map(),
            "nodeSelector": _string_map(),
            "tolerations": {
                "type": "array",
                "items": {"type": "object", "x-kubernetes-preserve-unknown-fields": True},
            },
            "affinity": _opaque("Pod affinity, copied verbatim into the pod spec"),
            "resources": _object({"limits": _string_map(), "requests": _string_map()}),
            "image": _string(),
            "imageTag": _string(),
            "imagePullPolicy": _string(enum=["Always", "IfNotPresent", "Never"]),
            "imagePullSecrets": {"type": "array", "items": _string()},
            "serviceAccountName": _string(),
            "securityContext": _opaque("Pod security context, copied verbatim into the pod spec"),
        }
    )


def _spec_schema() -> dict[str, Any]:
    return _object(
        {
            "replicas": _integer("Number of proxy replicas", default=1),
            "listen": _listen_schema(),
            "kafka": _kafka_schema(),
            "mapping": _mapping_schema(),
            "metrics": _object(
                {"enabled": _boolean(default=True), "port": _integer(default=9090)}
            ),
            "logging": _object(
                {
                    "level": _string(
                        enum=["trace", "debug", "info", "warn", "error"], default="info"
                    ),
                    "json": _boolean(default=False),
                }
            ),
            "service": _object(
                {
                    "type": _string(
                        enum=["ClusterIP", "NodePort", "LoadBalancer"], default="ClusterIP"
                    ),
                    "annotations": _string_map(),
                    "loadBalancerIP": _string(),
                    "externalTrafficPolicy": _string(enum=["Cluster", "Local"]),
                }
            ),
            "podTemplate": _pod_template_schema(),
            "suspend": _boolean("Scale the proxy to zero replicas", default=False),
        },
        required=["kafka", "mapping"],
    )


def _status_schema() -> dict[str, Any]:
    condition = _object(
        {
            "type": _string(),
            "status": _string(enum=["True", "False", "Unknown"]),
            "lastTransitionTime": _string(),
            "reason": _string(),
            "message": _string(),
        },
        required=["type", "status"],
    )
    return _object(
        {
            "phase": _string(enum=["Pending", "Running", "Degraded", "Suspended", "Failed"]),
            "message": _string(),
            "serviceEndpoint": _string(),
            "metricsEndpoint": _string(),
            "readyReplicas": _integer(),
            "replicas": _integer(),
            "configMapName": _string(),
            "deploymentName": _string(),
            "serviceName": _string(),
            "compressionRatio": _integer(),
            "observedGeneration": _integer(),
            "lastUpdateTime": _string(),
            "conditions": {"type": "array", "items": condition},
        }
    )


def build_crd() -> dict[str, Any]:
    """Build the CustomResourceDefinition as a plain manifest dict."""
    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{PLURAL}.{GROUP}"},
        "spec": {
            "group": GROUP,
            "names": {
                "kind": KIND,
                "plural": PLURAL,
                "singular": SINGULAR,
                "shortNames": [SHORT_NAME],
            },
            "scope": "Namespaced",
            "versions": [
                {
                    "name": VERSION,
                    "served": True,
                    "storage": True,
                    "subresources": {"status": {}},
                    "additionalPrinterColumns": [
                        {"name": "Phase", "type": "string", "jsonPath": ".status.phase"},
                        {"name": "Ready", "type": "integer", "jsonPath": ".status.readyReplicas"},
                        {"name": "Replicas", "type": "integer", "jsonPath": ".spec.replicas"},
                        {
                            "name": "Endpoint",
                            "type": "string",
                            "jsonPath": ".status.serviceEndpoint",
                        },
                        {
                            "name": "Ratio",
                            "type": "integer",
                            "jsonPath": ".status.compressionRatio",
                        },
                        {
                            "name": "Age",
                            "type": "date",
                            "jsonPath": ".metadata.creationTimestamp",
                        },
                    ],
                    "schema": {
                        "openAPIV3Schema": _object(
                            {
                                "apiVersion": _string(),
                                "kind": _string(),
                                "metadata": {"type": "object"},
                                "spec": _spec_schema(),
                                "status": _status_schema(),
                            },
                            required=["spec"],
                            description=(
                                "Runs a Kafka proxy that exposes many virtual partitions "
                                "on top of fewer physical ones"
                            ),
                        )
                    },
                }
            ],
        },
    }


def crd_manifests() -> list[dict[str, Any]]:
    """All CRDs the operator installs."""
    return [build_crd()]
