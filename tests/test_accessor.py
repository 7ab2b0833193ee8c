"""Tests for KubernetesResourceAccessor and CustomResourceClient."""

import pytest
from unittest.mock import Mock
from kubernetes import client
from kubernetes.client.exceptions import ApiException

from paas_k8s import CustomResourceClient, KubernetesResourceAccessor, ResourceKind
from paas_k8s.accessor import is_not_found, manifest_kind


class TestKubernetesResourceAccessor:
    """Test cases for KubernetesResourceAccessor."""

    def test_init(self, mock_cluster_connection):
        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        assert accessor.cluster == mock_cluster_connection

    def test_get_namespaced(self, mock_cluster_connection):
        """Namespaced kinds read through read_namespaced_<kind>."""
        job = client.V1Job(metadata=client.V1ObjectMeta(name="test-job"))
        mock_cluster_connection.batch_v1.read_namespaced_job.return_value = job

        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        result = accessor.get(ResourceKind.JOB, "default", "test-job")

        mock_cluster_connection.batch_v1.read_namespaced_job.assert_called_once_with(
            "test-job", "default"
        )
        assert result == job

    def test_get_accepts_kind_string(self, mock_cluster_connection):
        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        accessor.get("configmap", "default", "settings")

        mock_cluster_connection.core_v1.read_namespaced_config_map.assert_called_once_with(
            "settings", "default"
        )

    def test_get_cluster_scoped(self, mock_cluster_connection):
        """Cluster scoped kinds ignore the namespace."""
        accessor = KubernetesResourceAccessor(mock_cluster_connection)

        accessor.get(ResourceKind.NAMESPACE, "ignored", "linkerd")
        accessor.get(ResourceKind.CRD, None, "apps.application.paas.io")

        mock_cluster_connection.core_v1.read_namespace.assert_called_once_with("linkerd")
        mock_cluster_connection.apiextensions_v1.read_custom_resource_definition.assert_called_once_with(
            "apps.application.paas.io"
        )

    def test_get_not_found(self, mock_cluster_connection):
        mock_cluster_connection.core_v1.read_namespaced_secret.side_effect = ApiException(status=404)

        accessor = KubernetesResourceAccessor(mock_cluster_connection)

        assert accessor.get(ResourceKind.SECRET, "default", "missing") is None

    def test_get_other_errors_raise(self, mock_cluster_connection):
        mock_cluster_connection.core_v1.read_namespaced_secret.side_effect = ApiException(status=403)

        accessor = KubernetesResourceAccessor(mock_cluster_connection)

        with pytest.raises(ApiException):
            accessor.get(ResourceKind.SECRET, "default", "creds")

    def test_list_with_selector(self, mock_cluster_connection):
        pod = client.V1Pod(metadata=client.V1ObjectMeta(name="web-1"))
        mock_list = Mock()
        mock_list.items = [pod]
        mock_cluster_connection.core_v1.list_namespaced_pod.return_value = mock_list

        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        result = accessor.list(ResourceKind.POD, "default", "app=web")

        call_args = mock_cluster_connection.core_v1.list_namespaced_pod.call_args
        assert call_args.kwargs["namespace"] == "default"
        assert call_args.kwargs["label_selector"] == "app=web"
        assert result == [pod]

    def test_list_without_selector(self, mock_cluster_connection):
        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        accessor.list(ResourceKind.INGRESS, "default")

        mock_cluster_connection.networking_v1.list_namespaced_ingress.assert_called_once_with(
            namespace="default"
        )

    def test_list_all_namespaces(self, mock_cluster_connection):
        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        accessor.list(ResourceKind.JOB, None, "app=paas")

        mock_cluster_connection.batch_v1.list_job_for_all_namespaces.assert_called_once_with(
            label_selector="app=paas"
        )

    def test_list_nodes(self, mock_cluster_connection):
        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        accessor.list(ResourceKind.NODE)

        mock_cluster_connection.core_v1.list_node.assert_called_once_with()

    def test_create_namespaced(self, mock_cluster_connection):
        secret = client.V1Secret(metadata=client.V1ObjectMeta(name="creds"))
        mock_cluster_connection.core_v1.create_namespaced_secret.return_value = secret

        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        result = accessor.create(ResourceKind.SECRET, "default", secret)

        mock_cluster_connection.core_v1.create_namespaced_secret.assert_called_once_with(
            namespace="default", body=secret
        )
        assert result == secret

    def test_create_cluster_scoped(self, mock_cluster_connection):
        body = client.V1Namespace(metadata=client.V1ObjectMeta(name="linkerd"))

        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        accessor.create(ResourceKind.NAMESPACE, None, body)

        mock_cluster_connection.core_v1.create_namespace.assert_called_once_with(body=body)

    def test_delete_with_propagation(self, mock_cluster_connection):
        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        result = accessor.delete(
            ResourceKind.JOB, "default", "test-job", propagation_policy="Background"
        )

        mock_cluster_connection.batch_v1.delete_namespaced_job.assert_called_once_with(
            "test-job", "default", propagation_policy="Background"
        )
        assert result is True

    def test_delete_not_found(self, mock_cluster_connection):
        mock_cluster_connection.apps_v1.delete_namespaced_deployment.side_effect = ApiException(
            status=404
        )

        accessor = KubernetesResourceAccessor(mock_cluster_connection)

        assert accessor.delete(ResourceKind.DEPLOYMENT, "default", "web") is False

    def test_delete_error(self, mock_cluster_connection):
        mock_cluster_connection.core_v1.delete_namespace.side_effect = ApiException(status=409)

        accessor = KubernetesResourceAccessor(mock_cluster_connection)

        with pytest.raises(ApiException):
            accessor.delete(ResourceKind.NAMESPACE, None, "linkerd")

    def test_unknown_kind(self, mock_cluster_connection):
        accessor = KubernetesResourceAccessor(mock_cluster_connection)

        with pytest.raises(ValueError):
            accessor.get("statefulset", "default", "db")

    def test_rbac_kinds(self, mock_cluster_connection):
        """Cluster roles are cluster scoped, service accounts namespaced."""
        role = {"kind": "ClusterRole", "metadata": {"name": "linkerd-installer"}}

        accessor = KubernetesResourceAccessor(mock_cluster_connection)
        accessor.create(ResourceKind.CLUSTERROLE, "default", role)
        accessor.delete(ResourceKind.SERVICEACCOUNT, "default", "linkerd-installer")

        mock_cluster_connection.rbac_v1.create_cluster_role.assert_called_once_with(body=role)
        mock_cluster_connection.core_v1.delete_namespaced_service_account.assert_called_once_with(
            "linkerd-installer", "default"
        )

    def test_manifest_kind(self):
        assert manifest_kind({"kind": "ClusterRoleBinding"}) == ResourceKind.CLUSTERROLEBINDING
        assert manifest_kind({"kind": "Job"}) == ResourceKind.JOB

        with pytest.raises(ValueError):
            manifest_kind({"kind": "StatefulSet"})

    def test_is_not_found(self):
        assert is_not_found(ApiException(status=404)) is True
        assert is_not_found(ApiException(status=500)) is False
        assert is_not_found(ValueError()) is False


class TestCustomResourceClient:
    """Test cases for CustomResourceClient."""

    def test_get(self, mock_cluster_connection):
        app = {"metadata": {"name": "web"}}
        mock_cluster_connection.custom_objects.get_namespaced_custom_object.return_value = app

        apps = CustomResourceClient(mock_cluster_connection, "application.paas.io", "v1", "apps")
        result = apps.get("workspace", "web")

        mock_cluster_connection.custom_objects.get_namespaced_custom_object.assert_called_once_with(
            "application.paas.io", "v1", "workspace", "apps", "web"
        )
        assert result == app

    def test_get_not_found(self, mock_cluster_connection):
        mock_cluster_connection.custom_objects.get_namespaced_custom_object.side_effect = ApiException(
            status=404
        )

        apps = CustomResourceClient(mock_cluster_connection, "application.paas.io", "v1", "apps")

        assert apps.get("workspace", "web") is None

    def test_list(self, mock_cluster_connection):
        mock_cluster_connection.custom_objects.list_namespaced_custom_object.return_value = {
            "items": [{"metadata": {"name": "web"}}]
        }
        mock_cluster_connection.custom_objects.list_cluster_custom_object.return_value = {}

        charts = CustomResourceClient(mock_cluster_connection, "application.paas.io", "v1", "appcharts")

        assert len(charts.list("workspace", selector="tier=web")) == 1
        assert charts.list() == []
        call_args = mock_cluster_connection.custom_objects.list_namespaced_custom_object.call_args
        assert call_args.kwargs["label_selector"] == "tier=web"

    def test_delete(self, mock_cluster_connection):
        apps = CustomResourceClient(mock_cluster_connection, "application.paas.io", "v1", "apps")

        assert apps.delete("workspace", "web") is True

        mock_cluster_connection.custom_objects.delete_namespaced_custom_object.side_effect = ApiException(
            status=404
        )
        assert apps.delete("workspace", "web") is False
