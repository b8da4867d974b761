"""Domain models for the KafkaPartitionRemapper operator.

This module defines typed data structures for all operator concepts:
the CRD spec as it arrives from Kubernetes, the status the operator
publishes back, and the exceptions raised along the reconcile path.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, TypedDict, NotRequired


# =============================================================================
# Enums for constrained values
# =============================================================================


class Phase(Enum):
    """Remapper lifecycle phase."""

    PENDING = "Pending"
    RUNNING = "Running"
    DEGRADED = "Degraded"
    SUSPENDED = "Suspended"
    FAILED = "Failed"


class ConditionStatus(Enum):
    """Kubernetes condition status."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class SecurityProtocol(Enum):
    """Kafka broker security protocol."""

    PLAINTEXT = "PLAINTEXT"
    SSL = "SSL"
    SASL_PLAINTEXT = "SASL_PLAINTEXT"
    SASL_SSL = "SASL_SSL"


# =============================================================================
# TypedDicts for CRD spec (external data from Kubernetes)
# =============================================================================


class TlsCertificateSecretRef(TypedDict):
    """Server certificate secret for client-facing TLS."""

    name: str
    certKey: NotRequired[str]
    keyKey: NotRequired[str]


class SecretKeyRef(TypedDict):
    """Single key in a secret."""

    name: str
    key: NotRequired[str]


class ClientTlsSpec(TypedDict):
    """Client-facing TLS configuration."""

    certificateSecret: TlsCertificateSecretRef
    clientCaSecret: NotRequired[SecretKeyRef]
    requireClientCert: NotRequired[bool]


class ClientSaslSpec(TypedDict):
    """Client-facing SASL configuration."""

    enabledMechanisms: NotRequired[list[str]]
    credentialsSecret: dict[str, str]


class ClientSecuritySpec(TypedDict, total=False):
    """Client-facing security configuration."""

    protocol: str
    tls: ClientTlsSpec
    sasl: ClientSaslSpec


class ListenSpec(TypedDict, total=False):
    """TCP listener configuration for client connections."""

    port: int
    advertisedAddress: str
    maxConnections: int
    security: ClientSecuritySpec


class TlsSecretRef(TypedDict):
    """TLS material for broker connections."""

    name: str
    caKey: NotRequired[str]
    certKey: NotRequired[str]
    keyKey: NotRequired[str]
    insecureSkipVerify: NotRequired[bool]


class SaslSecretRef(TypedDict):
    """SASL credentials for broker connections."""

    name: str
    mechanism: str
    usernameKey: NotRequired[str]
    passwordKey: NotRequired[str]


class KafkaClusterSpec(TypedDict):
    """Kafka cluster connection configuration."""

    bootstrapServers: list[str]
    connectionTimeoutMs: NotRequired[int]
    requestTimeoutMs: NotRequired[int]
    metadataRefreshIntervalSecs: NotRequired[int]
    securityProtocol: NotRequired[str]
    tlsSecret: NotRequired[TlsSecretRef]
    saslSecret: NotRequired[SaslSecretRef]


class TopicMappingOverride(TypedDict):
    """Per-topic mapping override."""

    topic: str
    virtualPartitions: NotRequired[int]
    physicalPartitions: NotRequired[int]
    offsetRange: NotRequired[int]


class MappingSpec(TypedDict):
    """Partition remapping configuration."""

    virtualPartitions: int
    physicalPartitions: int
    offsetRange: NotRequired[int]
    topics: NotRequired[list[TopicMappingOverride]]


class MetricsSpec(TypedDict, total=False):
    """Proxy metrics endpoint configuration."""

    enabled: bool
    port: int


class LoggingSpec(TypedDict, total=False):
    """Proxy logging configuration."""

    level: str
    json: bool


class ServiceSpec(TypedDict, total=False):
    """Kubernetes Service configuration."""

    type: str
    annotations: dict[str, str]
    loadBalancerIP: str
    externalTrafficPolicy: str


class ResourceRequirementsSpec(TypedDict, total=False):
    """Container resource requirements."""

    limits: dict[str, str]
    requests: dict[str, str]


class PodTemplateSpec(TypedDict, total=False):
    """Pod template customizations.

    ``affinity`` and ``securityContext`` are opaque and copied verbatim
    into the pod spec.
    """

    annotations: dict[str, str]
    labels: dict[str, str]
    nodeSelector: dict[str, str]
    tolerations: list[dict[str, Any]]
    affinity: dict[str, Any]
    resources: ResourceRequirementsSpec
    image: str
    imageTag: str
    imagePullPolicy: str
    imagePullSecrets: list[str]
    serviceAccountName: str
    securityContext: dict[str, Any]


class RemapperSpec(TypedDict):
    """Full KafkaPartitionRemapper CRD spec."""

    replicas: int
    listen: ListenSpec
    kafka: KafkaClusterSpec
    mapping: MappingSpec
    metrics: MetricsSpec
    logging: LoggingSpec
    service: ServiceSpec
    podTemplate: NotRequired[PodTemplateSpec]
    suspend: bool


# Defaults applied to a spec before it is validated, rendered or hashed
_SPEC_DEFAULTS: dict[str, Any] = {
    "replicas": 1,
    "listen": {"port": 9092, "maxConnections": 1000},
    "kafka": {
        "bootstrapServers": [],
        "connectionTimeoutMs": 10_000,
        "requestTimeoutMs": 30_000,
        "metadataRefreshIntervalSecs": 30,
        "securityProtocol": "PLAINTEXT",
    },
    "mapping": {"virtualPartitions": 0, "physicalPartitions": 0, "offsetRange": 1 << 40},
    "metrics": {"enabled": True, "port": 9090},
    "logging": {"level": "info", "json": False},
    "service": {"type": "ClusterIP", "annotations": {}},
    "suspend": False,
}

_TLS_SECRET_DEFAULTS = {"caKey": "ca.crt", "insecureSkipVerify": False}
_SASL_SECRET_DEFAULTS = {"usernameKey": "username", "passwordKey": "password"}


def with_defaults(spec: Mapping[str, Any]) -> RemapperSpec:
    """Return a deep copy of *spec* with every defaulted field filled in.

    The input is never mutated. Optional sections without a default
    (``podTemplate``, secret references, ``advertisedAddress``) stay absent.
    """
    result: dict[str, Any] = copy.deepcopy(dict(spec))

    for key, default in _SPEC_DEFAULTS.items():
        if isinstance(default, dict):
            section = dict(result.get(key) or {})
            for sub_key, sub_default in default.items():
                section.setdefault(sub_key, copy.deepcopy(sub_default))
            result[key] = section
        else:
            result.setdefault(key, default)

    kafka = result["kafka"]
    if kafka.get("tlsSecret"):
        kafka["tlsSecret"] = {**_TLS_SECRET_DEFAULTS, **kafka["tlsSecret"]}
    if kafka.get("saslSecret"):
        kafka["saslSecret"] = {**_SASL_SECRET_DEFAULTS, **kafka["saslSecret"]}

    return result  # type: ignore[return-value]


# =============================================================================
# Dataclasses for status
# =============================================================================


@dataclass(frozen=True)
class Condition:
    """Kubernetes-style condition."""

    type: str
    status: ConditionStatus
    reason: str = ""
    message: str = ""
    last_transition_time: str = ""

    def to_dict(self) -> dict[str, str]:
        """Convert to dict for Kubernetes status."""
        return {
            "type": self.type,
            "status": self.status.value,
            "lastTransitionTime": self.last_transition_time,
            "reason": self.reason,
            "message": self.message,
        }


@dataclass
class RemapperStatus:
    """Status of a KafkaPartitionRemapper resource.

    Rebuilt from scratch on every reconcile pass and written with a single
    status patch; never read back and modified.
    """

    phase: Phase = Phase.PENDING
    message: str | None = None
    service_endpoint: str | None = None
    metrics_endpoint: str | None = None
    ready_replicas: int | None = None
    replicas: int | None = None
    config_map_name: str | None = None
    deployment_name: str | None = None
    service_name: str | None = None
    compression_ratio: int | None = None
    observed_generation: int | None = None
    last_update_time: str | None = None
    conditions: list[Condition] = field(default_factory=list)

    def _optional_fields(self) -> dict[str, object]:
        return {
            "message": self.message,
            "serviceEndpoint": self.service_endpoint,
            "metricsEndpoint": self.metrics_endpoint,
            "readyReplicas": self.ready_replicas,
            "replicas": self.replicas,
            "configMapName": self.config_map_name,
            "deploymentName": self.deployment_name,
            "serviceName": self.service_name,
            "compressionRatio": self.compression_ratio,
            "observedGeneration": self.observed_generation,
            "lastUpdateTime": self.last_update_time,
        }

    def to_dict(self) -> dict[str, object]:
        """Convert to dict for Kubernetes status."""
        result: dict[str, object] = {"phase": self.phase.value}
        for key, value in self._optional_fields().items():
            if value is not None:
                result[key] = value
        if self.conditions:
            result["conditions"] = [c.to_dict() for c in self.conditions]
        return result

    def to_patch(self) -> dict[str, object]:
        """Convert to a merge patch body that replaces the whole status.

        A merge patch keeps keys it does not mention, so unset fields are
        sent as null and cleared on the server.
        """
        result: dict[str, object] = {"phase": self.phase.value, **self._optional_fields()}
        result["conditions"] = [c.to_dict() for c in self.conditions] or None
        return result

    def condition(self, condition_type: str) -> Condition | None:
        """Return the condition of the given type, if present."""
        for cond in self.conditions:
            if cond.type == condition_type:
                return cond
        return None


# =============================================================================
# Exceptions
# =============================================================================


class OperatorError(Exception):
    """Base exception for operator errors."""

    pass


class ValidationError(OperatorError):
    """The remapper spec is inconsistent or incomplete."""

    pass


class ConfigError(OperatorError):
    """The proxy configuration could not be materialized."""

    pass


class KubeError(OperatorError):
    """Error communicating with the Kubernetes API."""

    pass


class ConflictError(KubeError):
    """A write was rejected because the object changed since it was read."""

    pass


class SecretError(OperatorError):
    """A referenced secret or secret key is missing or unreadable."""

    pass


class FinalizerError(OperatorError):
    """A failure inside the apply/cleanup lifecycle.

    Wraps the underlying error together with the state the reconciler
    was in when it failed.
    """

    def __init__(self, state: str, cause: BaseException) -> None:
        super().__init__(f"{state} failed: {cause}")
        self.state = state
        self.cause = cause
