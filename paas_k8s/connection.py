"""Kubernetes API client setup."""

import base64
import logging
import tempfile
from pathlib import Path
from typing import Optional

from kubernetes import client, config
from kubernetes.client import (
    ApiClient,
    ApiextensionsV1Api,
    AppsV1Api,
    BatchV1Api,
    CoreV1Api,
    CustomObjectsApi,
    NetworkingV1Api,
    RbacAuthorizationV1Api,
)

from .errors import ClusterInitError
from .models import ClusterConfig

logger = logging.getLogger(__name__)


class ClusterConnection:
    """Represents a connection to a single Kubernetes cluster."""

    def __init__(self, cluster_config: ClusterConfig):
        """
        Initialize cluster connection.

        Args:
            cluster_config: Cluster configuration

        Raises:
            ClusterInitError: If the kubeconfig cannot be loaded
        """
        self.config = cluster_config
        self._api_client: Optional[ApiClient] = None
        self._core_v1: Optional[CoreV1Api] = None
        self._apps_v1: Optional[AppsV1Api] = None
        self._batch_v1: Optional[BatchV1Api] = None
        self._networking_v1: Optional[NetworkingV1Api] = None
        self._apiextensions_v1: Optional[ApiextensionsV1Api] = None
        self._rbac_v1: Optional[RbacAuthorizationV1Api] = None
        self._custom_objects: Optional[CustomObjectsApi] = None
        self._temp_kubeconfig: Optional[Path] = None

        self._initialize_client()

    def _initialize_client(self):
        """Initialize Kubernetes API client."""
        # A private Configuration keeps the client's global default untouched.
        configuration = client.Configuration()
        try:
            if self.config.in_cluster:
                config.load_incluster_config(client_configuration=configuration)
            elif self.config.kubeconfig_data:
                kubeconfig_content = base64.b64decode(self.config.kubeconfig_data)
                with tempfile.NamedTemporaryFile(mode="wb", delete=False) as f:
                    f.write(kubeconfig_content)
                    self._temp_kubeconfig = Path(f.name)
                config.load_kube_config(
                    config_file=str(self._temp_kubeconfig),
                    context=self.config.context,
                    client_configuration=configuration,
                )
            else:
                # None falls back to $KUBECONFIG or ~/.kube/config
                config.load_kube_config(
                    config_file=self.config.kubeconfig_path,
                    context=self.config.context,
                    client_configuration=configuration,
                )

            self._api_client = ApiClient(configuration)
            self._core_v1 = CoreV1Api(self._api_client)
            self._apps_v1 = AppsV1Api(self._api_client)
            self._batch_v1 = BatchV1Api(self._api_client)
            self._networking_v1 = NetworkingV1Api(self._api_client)
            self._apiextensions_v1 = ApiextensionsV1Api(self._api_client)
            self._rbac_v1 = RbacAuthorizationV1Api(self._api_client)
            self._custom_objects = CustomObjectsApi(self._api_client)

        except Exception as e:
            self.close()
            raise ClusterInitError(f"Failed to initialize cluster connection: {e}") from e

        logger.info(f"Connected to cluster {self.config.name} at {configuration.host}")

    def _require(self, api):
        if api is None:
            raise RuntimeError("Cluster connection not initialized")
        return api

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance."""
        return self._require(self._core_v1)

    @property
    def apps_v1(self) -> AppsV1Api:
        """Get AppsV1Api instance."""
        return self._require(self._apps_v1)

    @property
    def batch_v1(self) -> BatchV1Api:
        """Get BatchV1Api instance."""
        return self._require(self._batch_v1)

    @property
    def networking_v1(self) -> NetworkingV1Api:
        """Get NetworkingV1Api instance."""
        return self._require(self._networking_v1)

    @property
    def apiextensions_v1(self) -> ApiextensionsV1Api:
        """Get ApiextensionsV1Api instance."""
        return self._require(self._apiextensions_v1)

    @property
    def rbac_v1(self) -> RbacAuthorizationV1Api:
        """Get RbacAuthorizationV1Api instance."""
        return self._require(self._rbac_v1)

    @property
    def custom_objects(self) -> CustomObjectsApi:
        """Get CustomObjectsApi instance."""
        return self._require(self._custom_objects)

    @property
    def api_client(self) -> ApiClient:
        """Get ApiClient instance."""
        return self._require(self._api_client)

    def get_version(self) -> str:
        """
        Get the Kubernetes server version.

        Returns:
            Server git version, e.g. "v1.29.2+k3s1"

        Raises:
            ApiException: If unable to get version
        """
        version_api = client.VersionApi(self.api_client)
        return version_api.get_code().git_version

    def close(self):
        """Close the cluster connection and clean up resources."""
        if self._api_client:
            self._api_client.close()
            self._api_client = None

        # Clean up temporary kubeconfig file
        if self._temp_kubeconfig and self._temp_kubeconfig.exists():
            self._temp_kubeconfig.unlink()
            self._temp_kubeconfig = None

        self._core_v1 = None
        self._apps_v1 = None
        self._batch_v1 = None
        self._networking_v1 = None
        self._apiextensions_v1 = None
        self._rbac_v1 = None
        self._custom_objects = None

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
