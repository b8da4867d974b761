"""Status derivation for KafkaPartitionRemapper resources.

Status is rebuilt from the spec and the observed Deployment/Service on
every pass. Nothing in this module talks to the cluster.
"""

from typing import Any, Mapping

from models import (
    Condition,
    ConditionStatus,
    ConfigError,
    Phase,
    RemapperStatus,
    SecretError,
    ValidationError,
    with_defaults,
)
from resources.service import resolve_endpoint
from utils import cluster_dns_name, config_map_name, now_iso
from validation import compression_ratio

# Errors whose failure status is worth publishing on the resource
STATUS_REPORTED_ERRORS = (ValidationError, ConfigError, SecretError)


def observed_replicas(deployment: Mapping[str, Any] | None) -> tuple[int, int]:
    """Return (ready, total) replica counts from a Deployment's status."""
    if not deployment:
        return 0, 0
    status = deployment.get("status") or {}
    return status.get("readyReplicas") or 0, status.get("replicas") or 0


def derive_phase(spec: Mapping[str, Any], ready_replicas: int) -> Phase:
    """Pick the phase; suspend wins over every replica count."""
    spec = with_defaults(spec)
    if spec["suspend"]:
        return Phase.SUSPENDED
    if ready_replicas == spec["replicas"]:
        return Phase.RUNNING
    if ready_replicas > 0:
        return Phase.DEGRADED
    return Phase.PENDING


def compute_status(
    spec: Mapping[str, Any],
    meta: Mapping[str, Any],
    deployment: Mapping[str, Any] | None,
    service: Mapping[str, Any] | None,
    now: str | None = None,
) -> RemapperStatus:
    """Compute the full status of a remapper after a successful apply.

    Args:
        spec: Validated remapper spec
        meta: Parent metadata (name, namespace, generation)
        deployment: Observed Deployment as a dict, or None if unreadable
        service: Observed Service as a dict, or None if unreadable
        now: Timestamp to stamp on the status (defaults to current time)

    Returns:
        RemapperStatus with exactly three conditions
    """
    spec = with_defaults(spec)
    now = now or now_iso()
    name = meta["name"]
    namespace = meta.get("namespace", "")

    ready_replicas, replicas = observed_replicas(deployment)
    phase = derive_phase(spec, ready_replicas)
    ratio = compression_ratio(spec)
    desired = spec["replicas"]
    available = ready_replicas > 0

    conditions = [
        Condition(
            type="ConfigValid",
            status=ConditionStatus.TRUE,
            reason="ConfigurationValid",
            message="Configuration is valid",
            last_transition_time=now,
        ),
        Condition(
            type="DeploymentAvailable",
            status=ConditionStatus.TRUE if available else ConditionStatus.FALSE,
            reason="ReplicasAvailable" if available else "NoReplicasAvailable",
            message=f"{ready_replicas}/{desired} replicas ready",
            last_transition_time=now,
        ),
        Condition(
            type="Ready",
            status=ConditionStatus.TRUE if phase == Phase.RUNNING else ConditionStatus.FALSE,
            reason=phase.value,
            message=f"Proxy is {phase.value.lower()}",
            last_transition_time=now,
        ),
    ]

    service_endpoint = resolve_endpoint(service, spec) if service else None

    return RemapperStatus(
        phase=phase,
        message=(
            f"{ready_replicas}/{desired} replicas ready, "
            f"compression ratio {ratio}:1"
        ),
        service_endpoint=service_endpoint,
        metrics_endpoint=(
            f"http://{cluster_dns_name(name, namespace)}:{spec['metrics']['port']}/metrics"
        ),
        ready_replicas=ready_replicas,
        replicas=replicas,
        config_map_name=config_map_name(name),
        deployment_name=name,
        service_name=name,
        compression_ratio=ratio,
        observed_generation=meta.get("generation"),
        last_update_time=now,
        conditions=conditions,
    )


def compute_failed_status(
    spec: Mapping[str, Any],
    meta: Mapping[str, Any],
    error: Exception,
    now: str | None = None,
) -> RemapperStatus:
    """Compute the status for a pass that stopped before converging.

    Validation and configuration failures need user action and report
    phase Failed. A missing secret is a dependency that is not ready yet
    and reports phase Pending.
    """
    now = now or now_iso()
    message = str(error)[:200]

    if isinstance(error, SecretError):
        phase = Phase.PENDING
        config_valid = Condition(
            type="ConfigValid",
            status=ConditionStatus.TRUE,
            reason="ConfigurationValid",
            message="Configuration is valid",
            last_transition_time=now,
        )
        reason = "SecretNotReady"
    else:
        phase = Phase.FAILED
        reason = (
            "ValidationFailed" if isinstance(error, ValidationError) else "ConfigurationFailed"
        )
        config_valid = Condition(
            type="ConfigValid",
            status=ConditionStatus.FALSE,
            reason=reason,
            message=message,
            last_transition_time=now,
        )

    return RemapperStatus(
        phase=phase,
        message=message,
        observed_generation=meta.get("generation"),
        last_update_time=now,
        conditions=[
            config_valid,
            Condition(
                type="DeploymentAvailable",
                status=ConditionStatus.UNKNOWN,
                reason=reason,
                message="Child resources were not reconciled",
                last_transition_time=now,
            ),
            Condition(
                type="Ready",
                status=ConditionStatus.FALSE,
                reason=reason,
                message=message,
                last_transition_time=now,
            ),
        ],
    )
