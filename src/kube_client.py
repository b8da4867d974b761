"""Kubernetes API wrapper with retry logic and server-side apply helpers."""

import json
import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

import urllib3
from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client import ApiException

from constants import FIELD_MANAGER, GROUP, PLURAL, VERSION
from models import ConflictError, KubeError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

APPLY_PATCH_CONTENT_TYPE = "application/apply-patch+yaml"


def is_retryable(error: Exception) -> bool:
    """Whether an API failure is worth retrying in-process.

    Throttling, server errors and transport failures are; client errors
    such as 403 or 422 are not.
    """
    if isinstance(error, ApiException):
        return error.status in (0, 429) or (error.status or 0) >= 500
    return isinstance(error, urllib3.exceptions.HTTPError)


def retry_on_error(
    max_retries: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator retrying transient API failures, then raising KubeError."""

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            current_delay = delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except (ApiException, urllib3.exceptions.HTTPError) as e:
                    if not is_retryable(e) or attempt == max_retries:
                        logger.error(
                            "Kubernetes API call %s failed after %d attempt(s): %s",
                            func.__name__,
                            attempt + 1,
                            e,
                        )
                        error_class = (
                            ConflictError
                            if isinstance(e, ApiException) and e.status == 409
                            else KubeError
                        )
                        raise error_class(f"{func.__name__} failed: {_describe(e)}") from e
                    logger.warning(
                        "Attempt %d/%d failed for %s: %s. Retrying in %.1fs...",
                        attempt + 1,
                        max_retries + 1,
                        func.__name__,
                        _describe(e),
                        current_delay,
                    )
                    time.sleep(current_delay)
                    current_delay *= backoff

            raise KubeError(f"Operation {func.__name__} failed unexpectedly")

        return wrapper

    return decorator


def _describe(error: Exception) -> str:
    if isinstance(error, ApiException):
        return f"{error.status} {error.reason}"
    return str(error)


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        k8s_config.load_incluster_config()
    except k8s_config.ConfigException:
        k8s_config.load_kube_config()


class KubeClient:
    """Thin wrapper around the Kubernetes API used by the reconciler.

    Returns plain dicts (camelCase keys, as on the wire) so that callers
    never deal with generated model classes.
    """

    def __init__(
        self,
        core_api: k8s_client.CoreV1Api | None = None,
        apps_api: k8s_client.AppsV1Api | None = None,
        custom_api: k8s_client.CustomObjectsApi | None = None,
        field_manager: str = FIELD_MANAGER,
    ) -> None:
        """Initialize the wrapper.

        Args:
            core_api: CoreV1Api client (created from the default config if None)
            apps_api: AppsV1Api client (created from the default config if None)
            custom_api: CustomObjectsApi client (created from the default config if None)
            field_manager: Field manager name used for server-side apply
        """
        self.core_api = core_api or k8s_client.CoreV1Api()
        self.apps_api = apps_api or k8s_client.AppsV1Api()
        self.custom_api = custom_api or k8s_client.CustomObjectsApi()
        self.field_manager = field_manager
        self._serializer = k8s_client.ApiClient()

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self._serializer.sanitize_for_serialization(obj)

    def _apply_kwargs(self) -> dict[str, Any]:
        return {
            "field_manager": self.field_manager,
            "force": True,
            "_content_type": APPLY_PATCH_CONTENT_TYPE,
        }

    # -------------------------------------------------------------------------
    # Server-side apply
    # -------------------------------------------------------------------------

    @retry_on_error()
    def apply_config_map(self, manifest: dict[str, Any]) -> None:
        """Create or update a ConfigMap via server-side apply."""
        meta = manifest["metadata"]
        self.core_api.patch_namespaced_config_map(
            meta["name"], meta["namespace"], json.dumps(manifest), **self._apply_kwargs()
        )

    @retry_on_error()
    def apply_deployment(self, manifest: dict[str, Any]) -> None:
        """Create or update a Deployment via server-side apply."""
        meta = manifest["metadata"]
        self.apps_api.patch_namespaced_deployment(
            meta["name"], meta["namespace"], json.dumps(manifest), **self._apply_kwargs()
        )

    @retry_on_error()
    def apply_service(self, manifest: dict[str, Any]) -> None:
        """Create or update a Service via server-side apply."""
        meta = manifest["metadata"]
        self.core_api.patch_namespaced_service(
            meta["name"], meta["namespace"], json.dumps(manifest), **self._apply_kwargs()
        )

    # -------------------------------------------------------------------------
    # Reads (None when the object does not exist)
    # -------------------------------------------------------------------------

    @retry_on_error()
    def read_deployment(self, name: str, namespace: str) -> dict[str, Any] | None:
        """Get a Deployment, including its status."""
        try:
            return self._to_dict(self.apps_api.read_namespaced_deployment(name, namespace))
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    @retry_on_error()
    def read_service(self, name: str, namespace: str) -> dict[str, Any] | None:
        """Get a Service, including its load balancer status."""
        try:
            return self._to_dict(self.core_api.read_namespaced_service(name, namespace))
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    @retry_on_error()
    def read_secret(self, name: str, namespace: str) -> dict[str, Any] | None:
        """Get a Secret."""
        try:
            return self._to_dict(self.core_api.read_namespaced_secret(name, namespace))
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    @retry_on_error()
    def patch_status(
        self,
        name: str,
        namespace: str,
        status: dict[str, Any],
        resource_version: str | None = None,
    ) -> None:
        """Merge-patch the status subresource of a remapper.

        With ``resource_version`` the patch only applies if the object is
        unchanged since it was read; otherwise ConflictError is raised.
        """
        body: dict[str, Any] = {"status": status}
        if resource_version:
            body["metadata"] = {"resourceVersion": resource_version}
        self.custom_api.patch_namespaced_custom_object_status(
            group=GROUP,
            version=VERSION,
            namespace=namespace,
            plural=PLURAL,
            name=name,
            body=body,
        )
