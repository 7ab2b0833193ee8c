"""Pytest configuration and fixtures for the cluster driver tests."""

import pytest
from unittest.mock import MagicMock, Mock
from kubernetes import client

from paas_k8s import Cluster, KubernetesResourceAccessor, Platform


@pytest.fixture
def mock_cluster_connection():
    """Mock cluster connection for testing."""
    mock_conn = MagicMock()
    mock_conn.core_v1 = MagicMock(spec=client.CoreV1Api)
    mock_conn.apps_v1 = MagicMock(spec=client.AppsV1Api)
    mock_conn.batch_v1 = MagicMock(spec=client.BatchV1Api)
    mock_conn.networking_v1 = MagicMock(spec=client.NetworkingV1Api)
    mock_conn.apiextensions_v1 = MagicMock(spec=client.ApiextensionsV1Api)
    mock_conn.rbac_v1 = MagicMock(spec=client.RbacAuthorizationV1Api)
    mock_conn.custom_objects = MagicMock(spec=client.CustomObjectsApi)
    return mock_conn


@pytest.fixture
def mock_accessor():
    """Mock resource accessor; get() reports everything missing by default."""
    accessor = Mock(spec=KubernetesResourceAccessor)
    accessor.get.return_value = None
    accessor.list.return_value = []
    return accessor


@pytest.fixture
def generic_platform():
    return Platform(name="generic", description="Generic Kubernetes")


@pytest.fixture
def cluster(mock_cluster_connection, mock_accessor, generic_platform):
    """Cluster handle over mocks, polling every 10ms with a 5s default timeout."""
    return Cluster(
        mock_cluster_connection,
        generic_platform,
        accessor=mock_accessor,
        poll_interval=0.01,
        default_timeout=5,
    )


@pytest.fixture
def make_job():
    """Build a V1Job carrying the given (type, status) conditions."""

    def _make_job(*conditions, name="test-job"):
        return client.V1Job(
            metadata=client.V1ObjectMeta(name=name, namespace="default"),
            status=client.V1JobStatus(
                conditions=[
                    client.V1JobCondition(type=cond_type, status=cond_status)
                    for cond_type, cond_status in conditions
                ]
                or None
            ),
        )

    return _make_job


@pytest.fixture
def make_node():
    """Build a V1Node with labels, provider id and addresses."""

    def _make_node(name="node-1", labels=None, provider_id=None, addresses=None):
        return client.V1Node(
            metadata=client.V1ObjectMeta(name=name, labels=labels),
            spec=client.V1NodeSpec(provider_id=provider_id),
            status=client.V1NodeStatus(
                addresses=[
                    client.V1NodeAddress(address=address, type=address_type)
                    for address_type, address in (addresses or [])
                ]
            ),
        )

    return _make_node


@pytest.fixture
def make_crd():
    """Mock CustomResourceDefinition with the given (type, status) conditions."""

    def _make_crd(*conditions):
        crd = Mock()
        crd.status.conditions = [
            client.V1CustomResourceDefinitionCondition(type=cond_type, status=cond_status)
            for cond_type, cond_status in conditions
        ]
        return crd

    return _make_crd
