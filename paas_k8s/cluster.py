"""Cluster handle: connection, detected platform, resource access and waits."""

import logging
import threading
from typing import Any, Callable, Iterable, Optional

from kubernetes.client import V1Namespace, V1ObjectMeta, V1Secret
from kubernetes.client.exceptions import ApiException

from . import conditions
from .accessor import (
    CustomResourceClient,
    KubernetesResourceAccessor,
    ResourceAccessor,
    ResourceKind,
    manifest_kind,
)
from .config import get_settings
from .connection import ClusterConnection
from .crd import CRDWaiter
from .errors import ClusterError, ClusterInitError, ResourceError, ResourceNotFoundError
from .models import ClusterConfig, Platform
from .platforms import PlatformStrategy, detect_platform
from .poller import poll_until
from .progress import ProgressSink, report_progress

logger = logging.getLogger(__name__)

API_GROUP_NAME = "paas.io"
APP_RESOURCE_GROUP = f"application.{API_GROUP_NAME}"

MANAGED_BY_LABEL_KEY = "app.kubernetes.io/managed-by"
MANAGED_BY_LABEL_VALUE = "paas"


def object_name(obj: Any) -> str:
    if isinstance(obj, dict):
        return obj.get("metadata", {}).get("name", "")
    return obj.metadata.name


class Cluster:
    """
    Entry point for everything the platform does against the cluster.

    Holds the API connection and the detected platform, offers CRUD helpers
    over the resource accessor and blocking waits built on the poller.
    """

    def __init__(
        self,
        connection: ClusterConnection,
        platform: Platform,
        accessor: Optional[ResourceAccessor] = None,
        poll_interval: Optional[float] = None,
        default_timeout: Optional[float] = None,
    ):
        """
        Initialize cluster handle.

        Args:
            connection: Cluster connection
            platform: Detected platform
            accessor: Resource accessor, defaults to one over ``connection``
            poll_interval: Seconds between polls in waits
            default_timeout: Seconds a wait gives up after when the caller
                passes no timeout
        """
        self.connection = connection
        self.platform = platform
        self.accessor = accessor or KubernetesResourceAccessor(connection)
        self.poll_interval = poll_interval or get_settings().poll_interval_seconds
        if default_timeout is None:
            default_timeout = get_settings().default_timeout_seconds
        self.default_timeout = default_timeout

    @classmethod
    def connect(
        cls,
        cluster_config: ClusterConfig,
        strategies: Optional[Iterable[PlatformStrategy]] = None,
        poll_interval: Optional[float] = None,
        default_timeout: Optional[float] = None,
    ) -> "Cluster":
        """
        Connect to a cluster and detect its platform.

        Raises:
            ClusterInitError: If connecting or loading the platform fails
        """
        connection = ClusterConnection(cluster_config)
        accessor = KubernetesResourceAccessor(connection)
        try:
            platform = detect_platform(accessor, strategies)
        except Exception as e:
            connection.close()
            raise ClusterInitError(f"Failed to load cluster platform: {e}") from e
        return cls(
            connection,
            platform,
            accessor=accessor,
            poll_interval=poll_interval,
            default_timeout=default_timeout,
        )

    # =========================================================================
    # Custom resources
    # =========================================================================

    def app_client(self) -> CustomResourceClient:
        """Client for the application custom resources."""
        return CustomResourceClient(self.connection, APP_RESOURCE_GROUP, "v1", "apps")

    def app_chart_client(self) -> CustomResourceClient:
        """Client for the application chart custom resources."""
        return CustomResourceClient(self.connection, APP_RESOURCE_GROUP, "v1", "appcharts")

    # =========================================================================
    # Namespaces
    # =========================================================================

    def namespace_exists(self, name: str) -> bool:
        return self.accessor.get(ResourceKind.NAMESPACE, None, name) is not None

    def namespace_exists_and_owned(self, name: str) -> bool:
        """Check that a namespace exists and carries our managed-by label."""
        namespace = self.accessor.get(ResourceKind.NAMESPACE, None, name)
        if namespace is None:
            return False
        labels = namespace.metadata.labels or {}
        return labels.get(MANAGED_BY_LABEL_KEY) == MANAGED_BY_LABEL_VALUE

    def create_namespace(
        self,
        name: str,
        labels: Optional[dict[str, str]] = None,
        annotations: Optional[dict[str, str]] = None,
    ) -> Any:
        body = V1Namespace(
            metadata=V1ObjectMeta(name=name, labels=labels, annotations=annotations)
        )
        try:
            return self.accessor.create(ResourceKind.NAMESPACE, None, body)
        except ApiException as e:
            raise ResourceError("create namespace", name, e.reason) from e

    # =========================================================================
    # Secrets and config maps
    # =========================================================================

    def get_secret(self, namespace: str, name: str) -> Any:
        """
        Get a secret.

        Raises:
            ResourceNotFoundError: If the secret does not exist
        """
        secret = self.accessor.get(ResourceKind.SECRET, namespace, name)
        if secret is None:
            raise ResourceNotFoundError(ResourceKind.SECRET.value, name, namespace)
        return secret

    def create_secret(self, namespace: str, secret: V1Secret) -> Any:
        """Post a fully configured secret to the cluster."""
        try:
            return self.accessor.create(ResourceKind.SECRET, namespace, secret)
        except ApiException as e:
            raise ResourceError("create secret", object_name(secret), e.reason) from e

    def create_labeled_secret(
        self,
        namespace: str,
        name: str,
        data: dict[str, str],
        labels: dict[str, str],
    ) -> Any:
        """
        Create a secret from base64 encoded data and a label set.

        Args:
            namespace: Kubernetes namespace
            name: Secret name
            data: Key to base64 encoded value
            labels: Labels to put on the secret
        """
        secret = V1Secret(data=data, metadata=V1ObjectMeta(name=name, labels=labels))
        return self.create_secret(namespace, secret)

    def delete_secret(self, namespace: str, name: str) -> None:
        try:
            deleted = self.accessor.delete(ResourceKind.SECRET, namespace, name)
        except ApiException as e:
            raise ResourceError("delete secret", name, e.reason) from e
        if not deleted:
            raise ResourceError("delete secret", name, "not found")

    def get_config_map(self, namespace: str, name: str) -> Any:
        config_map = self.accessor.get(ResourceKind.CONFIGMAP, namespace, name)
        if config_map is None:
            raise ResourceNotFoundError(ResourceKind.CONFIGMAP.value, name, namespace)
        return config_map

    # =========================================================================
    # Pods, jobs, ingresses
    # =========================================================================

    def list_pods(self, namespace: str, selector: Optional[str] = None) -> list[Any]:
        return self.accessor.list(ResourceKind.POD, namespace, selector)

    def list_jobs(self, namespace: str, selector: Optional[str] = None) -> list[Any]:
        return self.accessor.list(ResourceKind.JOB, namespace, selector)

    def list_ingresses(self, namespace: str, selector: Optional[str] = None) -> list[Any]:
        return self.accessor.list(ResourceKind.INGRESS, namespace, selector)

    def create_job(self, namespace: str, job: Any) -> Any:
        try:
            return self.accessor.create(ResourceKind.JOB, namespace, job)
        except ApiException as e:
            raise ResourceError("create job", object_name(job), e.reason) from e

    def delete_job(self, namespace: str, name: str) -> bool:
        """Delete a job and, in the background, its pods; False if it was gone."""
        try:
            return self.accessor.delete(
                ResourceKind.JOB, namespace, name, propagation_policy="Background"
            )
        except ApiException as e:
            raise ResourceError("delete job", name, e.reason) from e

    # =========================================================================
    # Manifests
    # =========================================================================

    def apply_manifests(self, namespace: Optional[str], manifests: Iterable[dict[str, Any]]) -> None:
        """
        Create parsed manifests, leaving ones that already exist in place.

        Args:
            namespace: Namespace for namespaced kinds without one in metadata
            manifests: Parsed manifest dicts

        Raises:
            ResourceError: If a create fails for any reason but already-exists
        """
        for manifest in manifests:
            kind = manifest_kind(manifest)
            name = object_name(manifest)
            target_namespace = manifest.get("metadata", {}).get("namespace", namespace)
            try:
                self.accessor.create(kind, target_namespace, manifest)
            except ApiException as e:
                if e.status == 409:
                    logger.debug(f"{kind.value} {name} exists already")
                    continue
                raise ResourceError(f"create {kind.value}", name, e.reason) from e

    def delete_manifests(self, namespace: Optional[str], manifests: Iterable[dict[str, Any]]) -> None:
        """
        Delete the objects described by parsed manifests; missing ones are skipped.

        Raises:
            ResourceError: If a delete fails for any reason but not-found
        """
        for manifest in manifests:
            kind = manifest_kind(manifest)
            name = object_name(manifest)
            target_namespace = manifest.get("metadata", {}).get("namespace", namespace)
            try:
                self.accessor.delete(kind, target_namespace, name)
            except ApiException as e:
                raise ResourceError(f"delete {kind.value}", name, e.reason) from e

    def is_job_failed(self, namespace: str, name: str) -> bool:
        return conditions.job_failed(self.accessor, namespace, name)()

    def get_version(self) -> str:
        """Get the kube server version."""
        try:
            return self.connection.get_version()
        except ApiException as e:
            raise ClusterError(f"failed to get kube server version: {e.reason}") from e

    # =========================================================================
    # Waits
    # =========================================================================

    def _timeout(self, timeout: Optional[float]) -> float:
        return self.default_timeout if timeout is None else timeout

    def _wait(self, condition, timeout, cancel, progress=None, message=None):
        with report_progress(progress, message or condition.description):
            poll_until(condition, self.poll_interval, self._timeout(timeout), cancel=cancel)

    def wait_for_job_done(
        self,
        namespace: str,
        name: str,
        timeout: Optional[float] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """Wait until the job is Complete or Failed."""
        self._wait(conditions.job_done(self.accessor, namespace, name), timeout, cancel)

    def wait_for_job_completed(
        self,
        namespace: str,
        name: str,
        timeout: Optional[float] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> None:
        """Wait until the job is Complete."""
        self._wait(conditions.job_completed(self.accessor, namespace, name), timeout, cancel)

    def wait_for_deployment_available(
        self,
        namespace: str,
        name: str,
        timeout: Optional[float] = None,
        *,
        cancel: Optional[threading.Event] = None,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        self._wait(
            conditions.deployment_available(self.accessor, namespace, name),
            timeout,
            cancel,
            progress,
            f"Waiting for deployment {name} in {namespace} to be ready",
        )

    def wait_for_namespace_missing(
        self,
        name: str,
        timeout: Optional[float] = None,
        *,
        cancel: Optional[threading.Event] = None,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        """Wait until the namespace is gone."""
        self._wait(
            conditions.namespace_absent(self.accessor, name),
            timeout,
            cancel,
            progress,
            f"Waiting for namespace {name} to be deleted",
        )

    def wait_for_pod_by_selector_missing(
        self,
        namespace: str,
        selector: str,
        timeout: Optional[float] = None,
        *,
        cancel: Optional[threading.Event] = None,
        tolerate_list_errors: bool = False,
    ) -> None:
        """Wait until no pod matching the selector is left."""
        condition = conditions.pod_absent(
            self.accessor, namespace, selector, tolerate_list_errors=tolerate_list_errors
        )
        self._wait(condition, timeout, cancel)

    def wait_for_secret(
        self,
        namespace: str,
        name: str,
        timeout: Optional[float] = None,
        *,
        cancel: Optional[threading.Event] = None,
    ) -> Any:
        """Wait until something creates the secret, and return it."""
        condition = conditions.secret_present(self.accessor, namespace, name)
        self._wait(condition, timeout, cancel)
        return condition.result

    def wait_for_crd(
        self,
        name: str,
        timeout: Optional[float] = None,
        *,
        established_timeout: Optional[float] = None,
        cancel: Optional[threading.Event] = None,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        """Wait for a CRD to exist and then to be established."""
        waiter = CRDWaiter(self.accessor, name, self.poll_interval)
        with report_progress(progress, f"Waiting for CRD {name} to be ready to use"):
            waiter.wait(self._timeout(timeout), established_timeout, cancel=cancel)

    def close(self) -> None:
        self.connection.close()


class ClusterProvider:
    """
    Lazily builds one Cluster and hands out the same instance afterwards.

    Concurrent first callers block on a lock while one of them builds the
    handle. A failed build is not cached; the next call tries again.
    """

    def __init__(self, factory: Optional[Callable[[], Cluster]] = None):
        """
        Initialize provider.

        Args:
            factory: Builds the cluster, defaults to connecting with the
                configured settings
        """
        self._factory = factory or _connect_from_settings
        self._cluster: Optional[Cluster] = None
        self._lock = threading.Lock()

    def get(self) -> Cluster:
        cluster = self._cluster
        if cluster is not None:
            return cluster
        with self._lock:
            if self._cluster is None:
                self._cluster = self._factory()
            return self._cluster

    def reset(self) -> None:
        """Drop the cached cluster so the next get() connects and detects again."""
        with self._lock:
            self._cluster = None


def _connect_from_settings() -> Cluster:
    settings = get_settings()
    return Cluster.connect(
        settings.cluster_config(),
        poll_interval=settings.poll_interval_seconds,
        default_timeout=settings.default_timeout_seconds,
    )


_provider = ClusterProvider()


def get_cluster() -> Cluster:
    """Return the process wide cluster handle, connecting on first use."""
    return _provider.get()


def reset_cluster() -> None:
    """Forget the process wide cluster handle."""
    _provider.reset()
