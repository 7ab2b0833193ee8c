"""Generic read/create/delete access to cluster resources."""

from enum import Enum
from typing import Any, Optional, Protocol

from kubernetes.client.exceptions import ApiException

from .connection import ClusterConnection


class ResourceKind(str, Enum):
    """Resource kinds reachable through the accessor."""

    NAMESPACE = "namespace"
    NODE = "node"
    POD = "pod"
    JOB = "job"
    DEPLOYMENT = "deployment"
    SECRET = "secret"
    CONFIGMAP = "configmap"
    INGRESS = "ingress"
    CRD = "crd"
    SERVICEACCOUNT = "serviceaccount"
    CLUSTERROLE = "clusterrole"
    CLUSTERROLEBINDING = "clusterrolebinding"


# kind -> (ClusterConnection api attribute, client method suffix)
_API_METHODS: dict[ResourceKind, tuple[str, str]] = {
    ResourceKind.NAMESPACE: ("core_v1", "namespace"),
    ResourceKind.NODE: ("core_v1", "node"),
    ResourceKind.POD: ("core_v1", "pod"),
    ResourceKind.SECRET: ("core_v1", "secret"),
    ResourceKind.CONFIGMAP: ("core_v1", "config_map"),
    ResourceKind.JOB: ("batch_v1", "job"),
    ResourceKind.DEPLOYMENT: ("apps_v1", "deployment"),
    ResourceKind.INGRESS: ("networking_v1", "ingress"),
    ResourceKind.CRD: ("apiextensions_v1", "custom_resource_definition"),
    ResourceKind.SERVICEACCOUNT: ("core_v1", "service_account"),
    ResourceKind.CLUSTERROLE: ("rbac_v1", "cluster_role"),
    ResourceKind.CLUSTERROLEBINDING: ("rbac_v1", "cluster_role_binding"),
}

CLUSTER_SCOPED = frozenset(
    {
        ResourceKind.NAMESPACE,
        ResourceKind.NODE,
        ResourceKind.CRD,
        ResourceKind.CLUSTERROLE,
        ResourceKind.CLUSTERROLEBINDING,
    }
)

# Manifest "kind" field -> accessor kind
MANIFEST_KINDS: dict[str, ResourceKind] = {
    "Namespace": ResourceKind.NAMESPACE,
    "Pod": ResourceKind.POD,
    "Job": ResourceKind.JOB,
    "Deployment": ResourceKind.DEPLOYMENT,
    "Secret": ResourceKind.SECRET,
    "ConfigMap": ResourceKind.CONFIGMAP,
    "Ingress": ResourceKind.INGRESS,
    "CustomResourceDefinition": ResourceKind.CRD,
    "ServiceAccount": ResourceKind.SERVICEACCOUNT,
    "ClusterRole": ResourceKind.CLUSTERROLE,
    "ClusterRoleBinding": ResourceKind.CLUSTERROLEBINDING,
}


def manifest_kind(manifest: dict[str, Any]) -> ResourceKind:
    """Map a parsed manifest to its accessor kind."""
    kind = manifest.get("kind")
    try:
        return MANIFEST_KINDS[kind]
    except KeyError:
        raise ValueError(f"Unsupported manifest kind: {kind}") from None


def is_not_found(error: Exception) -> bool:
    """Return True if the error is the API's not-found signal."""
    return isinstance(error, ApiException) and error.status == 404


class ResourceAccessor(Protocol):
    """Read/create/delete operations addressed by (kind, namespace, name)."""

    def get(self, kind: ResourceKind, namespace: Optional[str], name: str) -> Optional[Any]:
        """Return the resource, or None if it does not exist."""

    def list(
        self,
        kind: ResourceKind,
        namespace: Optional[str] = None,
        selector: Optional[str] = None,
    ) -> list[Any]:
        """Return the resources matching the label selector."""

    def create(self, kind: ResourceKind, namespace: Optional[str], body: Any) -> Any:
        """Create the resource and return the stored object."""

    def delete(
        self,
        kind: ResourceKind,
        namespace: Optional[str],
        name: str,
        propagation_policy: Optional[str] = None,
    ) -> bool:
        """Delete the resource; False if it was already gone."""


class KubernetesResourceAccessor:
    """ResourceAccessor backed by the typed Kubernetes client APIs."""

    def __init__(self, cluster: ClusterConnection):
        """
        Initialize resource accessor.

        Args:
            cluster: Cluster connection
        """
        self.cluster = cluster

    def _method(self, kind: ResourceKind, verb: str, namespace: Optional[str]):
        kind = ResourceKind(kind)
        try:
            api_attr, suffix = _API_METHODS[kind]
        except KeyError:
            raise ValueError(f"Unsupported resource kind: {kind}") from None

        api = getattr(self.cluster, api_attr)
        if kind in CLUSTER_SCOPED:
            return getattr(api, f"{verb}_{suffix}"), False
        if verb == "list" and namespace is None:
            return getattr(api, f"list_{suffix}_for_all_namespaces"), False
        return getattr(api, f"{verb}_namespaced_{suffix}"), True

    def get(self, kind: ResourceKind, namespace: Optional[str], name: str) -> Optional[Any]:
        """
        Get a resource.

        Args:
            kind: Resource kind
            namespace: Kubernetes namespace, ignored for cluster scoped kinds
            name: Resource name

        Returns:
            The resource or None if not found

        Raises:
            ApiException: For any error other than not-found
        """
        read, namespaced = self._method(kind, "read", namespace)
        try:
            if namespaced:
                return read(name, namespace)
            return read(name)
        except ApiException as e:
            if is_not_found(e):
                return None
            raise

    def list(
        self,
        kind: ResourceKind,
        namespace: Optional[str] = None,
        selector: Optional[str] = None,
    ) -> list[Any]:
        """
        List resources.

        Args:
            kind: Resource kind
            namespace: Kubernetes namespace, None for all namespaces
            selector: Label selector string (e.g., "app=paas")

        Returns:
            List of matching resources
        """
        list_fn, namespaced = self._method(kind, "list", namespace)
        kwargs = {}
        if selector:
            kwargs["label_selector"] = selector
        if namespaced:
            kwargs["namespace"] = namespace
        return list_fn(**kwargs).items

    def create(self, kind: ResourceKind, namespace: Optional[str], body: Any) -> Any:
        """
        Create a resource.

        Args:
            kind: Resource kind
            namespace: Kubernetes namespace, ignored for cluster scoped kinds
            body: Resource object or dict

        Returns:
            The created resource

        Raises:
            ApiException: If creation fails
        """
        create, namespaced = self._method(kind, "create", namespace)
        if namespaced:
            return create(namespace=namespace, body=body)
        return create(body=body)

    def delete(
        self,
        kind: ResourceKind,
        namespace: Optional[str],
        name: str,
        propagation_policy: Optional[str] = None,
    ) -> bool:
        """
        Delete a resource.

        Args:
            kind: Resource kind
            namespace: Kubernetes namespace, ignored for cluster scoped kinds
            name: Resource name
            propagation_policy: "Foreground", "Background" or "Orphan"

        Returns:
            True if deleted, False if not found

        Raises:
            ApiException: If deletion fails
        """
        delete, namespaced = self._method(kind, "delete", namespace)
        kwargs = {}
        if propagation_policy:
            kwargs["propagation_policy"] = propagation_policy
        try:
            if namespaced:
                delete(name, namespace, **kwargs)
            else:
                delete(name, **kwargs)
            return True
        except ApiException as e:
            if is_not_found(e):
                return False
            raise


class CustomResourceClient:
    """Dynamic access to one custom resource type."""

    def __init__(self, cluster: ClusterConnection, group: str, version: str, plural: str):
        self.cluster = cluster
        self.group = group
        self.version = version
        self.plural = plural

    def get(self, namespace: str, name: str) -> Optional[dict[str, Any]]:
        """Get a custom object, or None if not found."""
        try:
            return self.cluster.custom_objects.get_namespaced_custom_object(
                self.group, self.version, namespace, self.plural, name
            )
        except ApiException as e:
            if is_not_found(e):
                return None
            raise

    def list(
        self, namespace: Optional[str] = None, selector: Optional[str] = None
    ) -> list[dict[str, Any]]:
        """List custom objects in a namespace, or cluster wide."""
        kwargs = {}
        if selector:
            kwargs["label_selector"] = selector
        if namespace is None:
            result = self.cluster.custom_objects.list_cluster_custom_object(
                self.group, self.version, self.plural, **kwargs
            )
        else:
            result = self.cluster.custom_objects.list_namespaced_custom_object(
                self.group, self.version, namespace, self.plural, **kwargs
            )
        return result.get("items", [])

    def create(self, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create a custom object."""
        return self.cluster.custom_objects.create_namespaced_custom_object(
            self.group, self.version, namespace, self.plural, body
        )

    def delete(self, namespace: str, name: str) -> bool:
        """Delete a custom object; False if it was already gone."""
        try:
            self.cluster.custom_objects.delete_namespaced_custom_object(
                self.group, self.version, namespace, self.plural, name
            )
            return True
        except ApiException as e:
            if is_not_found(e):
                return False
            raise

    def __repr__(self) -> str:
        return f"CustomResourceClient({self.plural}.{self.group}/{self.version})"
