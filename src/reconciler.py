"""Reconcile state machine and error policy for KafkaPartitionRemapper.

A pass is either Applying (the object is live) or CleaningUp (the object
carries a deletion timestamp and our finalizer is still pending). Applying
walks a fixed sequence of idempotent steps; any failure aborts the rest of
the pass and is retried from the top on the next invocation.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from constants import (
    CONFIGURATION_ERROR_DELAY,
    DEFAULT_ERROR_DELAY,
    RECHECK_INTERVAL,
    TRANSIENT_ERROR_DELAY,
)
from metrics import RESOURCE_KIND
from models import (
    ConfigError,
    ConflictError,
    FinalizerError,
    KubeError,
    RemapperStatus,
    ValidationError,
    with_defaults,
)
from resources.config_map import build_config_map
from resources.deployment import build_deployment
from resources.proxy_config import config_hash
from resources.secrets import verify_secret_references
from resources.service import build_service
from state import OperatorContext
from status import STATUS_REPORTED_ERRORS, compute_failed_status, compute_status
from validation import validate

logger = logging.getLogger(__name__)


class ReconcileState(Enum):
    """The two states of the finalizer lifecycle."""

    APPLYING = "Applying"
    CLEANING_UP = "CleaningUp"


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a successful pass.

    ``requeue_after`` is None when there is nothing to re-check.
    """

    state: ReconcileState
    status: RemapperStatus | None = None
    requeue_after: int | None = None


def next_state(meta: Mapping[str, Any]) -> ReconcileState:
    """Pick the state for an object from its metadata."""
    if meta.get("deletionTimestamp"):
        return ReconcileState.CLEANING_UP
    return ReconcileState.APPLYING


def requeue_delay(error: BaseException) -> int:
    """Seconds to wait before retrying after a failed pass.

    API failures are usually transient and retried soon. Validation and
    configuration failures need the user to change the spec, so retrying
    them quickly is pointless. Everything else gets a medium delay.
    """
    if isinstance(error, FinalizerError):
        error = error.cause
    if isinstance(error, KubeError):
        return TRANSIENT_ERROR_DELAY
    if isinstance(error, (ValidationError, ConfigError)):
        return CONFIGURATION_ERROR_DELAY
    return DEFAULT_ERROR_DELAY


def error_kind(error: BaseException) -> str:
    """Short label for an error, used in metrics."""
    if isinstance(error, FinalizerError):
        error = error.cause
    name = type(error).__name__
    if name in ("ValidationError", "ConfigError", "KubeError", "SecretError"):
        return name
    return "Other"


class RemapperReconciler:
    """Drives one KafkaPartitionRemapper toward its declared spec."""

    def __init__(self, context: OperatorContext) -> None:
        self.client = context.client
        self.metrics = context.metrics
        self.recheck_interval = context.config.recheck_interval or RECHECK_INTERVAL

    def reconcile(self, body: Mapping[str, Any]) -> ReconcileResult:
        """Run one pass for the object and record metrics.

        Raises:
            FinalizerError: Wrapping whatever stopped the pass
        """
        meta = body.get("metadata") or {}
        state = next_state(meta)
        start_time = time.monotonic()
        self.metrics.reconciliations.labels(kind=RESOURCE_KIND).inc()
        self.metrics.reconcile_in_progress.labels(kind=RESOURCE_KIND).inc()

        try:
            if state == ReconcileState.CLEANING_UP:
                return self.cleanup(body)
            return self.apply(body)
        except Exception as e:
            self.metrics.reconciliation_errors.labels(
                kind=RESOURCE_KIND, error=error_kind(e)
            ).inc()
            raise FinalizerError(state.value, e) from e
        finally:
            self.metrics.reconcile_duration.labels(kind=RESOURCE_KIND).observe(
                time.monotonic() - start_time
            )
            self.metrics.reconcile_in_progress.labels(kind=RESOURCE_KIND).dec()

    def apply(self, body: Mapping[str, Any]) -> ReconcileResult:
        """Validate, apply the child resources, then publish status.

        The status patch is always the last step, so a pass interrupted
        midway never reports state it did not reach.
        """
        meta = body["metadata"]
        name = meta["name"]
        namespace = meta.get("namespace", "")
        spec = with_defaults(body.get("spec") or {})

        logger.info("Applying %s %s/%s", RESOURCE_KIND, namespace, name)

        try:
            validate(spec)
            verify_secret_references(self.client, namespace, spec)
            config_map = build_config_map(spec, meta)
        except STATUS_REPORTED_ERRORS as e:
            self._report_failure(spec, meta, e)
            raise

        self.client.apply_config_map(config_map)
        logger.info("Reconciled ConfigMap %s/%s", namespace, config_map["metadata"]["name"])

        fingerprint = config_hash(spec)
        self.client.apply_deployment(build_deployment(spec, meta, fingerprint))
        logger.info("Reconciled Deployment %s/%s (config %s)", namespace, name, fingerprint)

        self.client.apply_service(build_service(spec, meta))
        logger.info("Reconciled Service %s/%s", namespace, name)

        deployment = self.client.read_deployment(name, namespace)
        service = self.client.read_service(name, namespace)

        status = compute_status(spec, meta, deployment, service)
        self.client.patch_status(name, namespace, status.to_patch())
        self.metrics.record_phase(
            namespace, name, status.phase.value, status.ready_replicas or 0
        )

        logger.info(
            "Updated status for %s/%s: phase=%s, ready=%s/%s",
            namespace,
            name,
            status.phase.value,
            status.ready_replicas,
            spec["replicas"],
        )
        return ReconcileResult(
            state=ReconcileState.APPLYING,
            status=status,
            requeue_after=self.recheck_interval,
        )

    def recheck(self, body: Mapping[str, Any]) -> ReconcileResult | None:
        """Refresh the status of an applied object without touching its children.

        Runs only when the published status comes from a successful pass
        over the current generation. The status patch is conditional on the
        resourceVersion that was read, so a newer pass always wins.

        Returns:
            None when the re-check was skipped or superseded

        Raises:
            FinalizerError: Wrapping an API failure
        """
        meta = body["metadata"]
        name = meta["name"]
        namespace = meta.get("namespace", "")
        current = body.get("status") or {}

        if next_state(meta) == ReconcileState.CLEANING_UP:
            return None
        if current.get("observedGeneration") != meta.get("generation") or not current.get(
            "deploymentName"
        ):
            logger.debug("Skipping re-check of %s/%s: generation not applied yet", namespace, name)
            return None

        spec = with_defaults(body.get("spec") or {})
        try:
            deployment = self.client.read_deployment(name, namespace)
            service = self.client.read_service(name, namespace)
            status = compute_status(spec, meta, deployment, service)
            self.client.patch_status(
                name,
                namespace,
                status.to_patch(),
                resource_version=meta.get("resourceVersion"),
            )
        except ConflictError:
            logger.info("Re-check of %s/%s superseded by a newer change", namespace, name)
            return None
        except Exception as e:
            self.metrics.reconciliation_errors.labels(
                kind=RESOURCE_KIND, error=error_kind(e)
            ).inc()
            raise FinalizerError(ReconcileState.APPLYING.value, e) from e

        self.metrics.record_phase(
            namespace, name, status.phase.value, status.ready_replicas or 0
        )
        return ReconcileResult(
            state=ReconcileState.APPLYING,
            status=status,
            requeue_after=self.recheck_interval,
        )

    def cleanup(self, body: Mapping[str, Any]) -> ReconcileResult:
        """Release the object for deletion.

        Child resources carry owner references and are garbage-collected
        by Kubernetes, so nothing is deleted here.
        """
        meta = body["metadata"]
        namespace = meta.get("namespace", "")
        name = meta["name"]

        logger.info("Cleaning up %s %s/%s", RESOURCE_KIND, namespace, name)
        self.metrics.forget(namespace, name)
        return ReconcileResult(state=ReconcileState.CLEANING_UP)

    def _report_failure(
        self,
        spec: Mapping[str, Any],
        meta: Mapping[str, Any],
        error: Exception,
    ) -> None:
        """Publish a failure status; the triggering error is still the one raised."""
        status = compute_failed_status(spec, meta, error)
        namespace = meta.get("namespace", "")
        name = meta["name"]
        logger.warning("Reconcile of %s/%s blocked: %s", namespace, name, error)
        try:
            self.client.patch_status(name, namespace, status.to_patch())
        except KubeError as patch_error:
            logger.error(
                "Failed to publish failure status for %s/%s: %s",
                namespace,
                name,
                patch_error,
            )
            return
        self.metrics.record_phase(namespace, name, status.phase.value, 0)
