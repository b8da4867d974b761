"""Kopf handlers for the KafkaPartitionRemapper CRD."""

import logging
import sys
import threading
from pathlib import Path
from typing import Any

# Add src directory to path for imports when run as script by Kopf
_src_dir = Path(__file__).parent
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import kopf

from config import OperatorConfig
from constants import FINALIZER, GROUP, KIND, PLURAL, VERSION
from health import start_health_server
from models import FinalizerError
from reconciler import RemapperReconciler, requeue_delay
from state import build_context

logger = logging.getLogger(__name__)

# Operator version
OPERATOR_VERSION = "0.1.0"

# Timer intervals are fixed when the handlers are registered
CONFIG = OperatorConfig.from_env()


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, memo: kopf.Memo, **_: Any) -> None:
    """Configure operator settings and build the shared context on startup."""
    # Reduce logging noise
    settings.posting.level = logging.WARNING
    # Configure persistence; keep kopf's bookkeeping out of our status
    settings.persistence.finalizer = FINALIZER
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=GROUP)
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(
        prefix=GROUP, key="last-handled-configuration"
    )

    logging.getLogger().setLevel(CONFIG.log_level)

    context = build_context(CONFIG)
    context.metrics.init_metrics(OPERATOR_VERSION)

    ready = threading.Event()
    try:
        memo.health_server = start_health_server(
            context.metrics.registry, ready, CONFIG.metrics_port
        )
    except OSError as e:
        logger.warning("Failed to start metrics server on port %d: %s", CONFIG.metrics_port, e)
        memo.health_server = None

    memo.context = context
    memo.ready = ready
    ready.set()

    logger.info("KafkaPartitionRemapper operator started (version %s)", OPERATOR_VERSION)


@kopf.on.cleanup()
def cleanup(memo: kopf.Memo, **_: Any) -> None:
    """Stop the metrics server on operator shutdown."""
    logger.info("KafkaPartitionRemapper operator shutting down")
    ready = memo.get("ready")
    if ready is not None:
        ready.clear()
    context = memo.get("context")
    if context is not None:
        context.metrics.operator_health.set(0)
    server = memo.get("health_server")
    if server is not None:
        server.shutdown()
        server.server_close()


def _reconcile(
    memo: kopf.Memo,
    body: kopf.Body,
    namespace: str,
    name: str,
    operation: str,
    recheck: bool = False,
) -> None:
    """Run one pass, turning failures into delayed retries."""
    reconciler = RemapperReconciler(memo.context)
    try:
        if recheck:
            reconciler.recheck(body)
        else:
            reconciler.reconcile(body)
    except FinalizerError as e:
        delay = requeue_delay(e)
        logger.error(
            f"Failed to {operation} {KIND} {namespace}/{name}: {e.cause} "
            f"(retrying in {delay}s)"
        )
        kopf.warn(body, reason=f"{operation.capitalize()}Failed", message=str(e.cause)[:200])
        raise kopf.TemporaryError(f"{operation.capitalize()} failed: {e.cause}", delay=delay)


@kopf.on.resume(GROUP, VERSION, PLURAL)
@kopf.on.create(GROUP, VERSION, PLURAL)
@kopf.on.update(GROUP, VERSION, PLURAL)
def apply_remapper(
    body: kopf.Body,
    namespace: str,
    name: str,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Handle KafkaPartitionRemapper creation, updates and operator restarts."""
    _reconcile(memo, body, namespace, name, "apply")


@kopf.on.delete(GROUP, VERSION, PLURAL)
def cleanup_remapper(
    body: kopf.Body,
    namespace: str,
    name: str,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Handle KafkaPartitionRemapper deletion; kopf drops the finalizer on return."""
    _reconcile(memo, body, namespace, name, "cleanup")


@kopf.timer(
    GROUP,
    VERSION,
    PLURAL,
    interval=CONFIG.recheck_interval,
    idle=CONFIG.recheck_interval,
)
def recheck_remapper(
    body: kopf.Body,
    namespace: str,
    name: str,
    memo: kopf.Memo,
    **_: Any,
) -> None:
    """Periodic status refresh while the Deployment converges; children are not re-applied."""
    logger.debug(f"Re-checking {KIND}: {namespace}/{name}")
    _reconcile(memo, body, namespace, name, "recheck", recheck=True)


def main() -> None:
    """Entry point for running the operator."""
    logging.basicConfig(
        level=CONFIG.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting KafkaPartitionRemapper operator...")

    if CONFIG.watch_namespace:
        kopf.run(standalone=True, namespaces=[CONFIG.watch_namespace])
    else:
        kopf.run(standalone=True, clusterwide=True)


if __name__ == "__main__":
    main()
