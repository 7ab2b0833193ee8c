"""Cluster platform detection.

Strategies are probed in order against live cluster state; the first one
that recognizes the cluster is loaded and becomes the cluster's platform.
Clusters nobody recognizes get the generic platform.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from kubernetes.client.exceptions import ApiException

from .accessor import ResourceAccessor, ResourceKind, is_not_found
from .models import Platform

logger = logging.getLogger(__name__)

INTERNAL_IP = "InternalIP"
EXTERNAL_IP = "ExternalIP"


def _nodes(accessor: ResourceAccessor) -> list[Any]:
    return accessor.list(ResourceKind.NODE)


def _node_labels(node: Any) -> dict[str, str]:
    return getattr(node.metadata, "labels", None) or {}


def _provider_id(node: Any) -> str:
    spec = getattr(node, "spec", None)
    return getattr(spec, "provider_id", None) or ""


def node_addresses(nodes: Iterable[Any], address_type: str) -> tuple[str, ...]:
    """Collect node addresses of one type, without duplicates, in node order."""
    addresses: list[str] = []
    for node in nodes:
        status = getattr(node, "status", None)
        for address in getattr(status, "addresses", None) or []:
            if address.type == address_type and address.address not in addresses:
                addresses.append(address.address)
    return tuple(addresses)


class PlatformStrategy(ABC):
    """Recognizes one platform flavor and loads its descriptor."""

    name: str = ""
    description: str = ""

    def describe(self) -> str:
        """Human readable description of the platform."""
        return self.description

    @abstractmethod
    def detect(self, accessor: ResourceAccessor) -> bool:
        """Return True if the cluster runs on this platform."""

    def load(self, accessor: ResourceAccessor) -> Platform:
        """Read platform specific details and build the descriptor."""
        return Platform(
            name=self.name,
            description=self.describe(),
            external_ips=self.external_ips(accessor),
        )

    def external_ips(self, accessor: ResourceAccessor) -> tuple[str, ...]:
        """Externally reachable addresses of the cluster."""
        return node_addresses(_nodes(accessor), INTERNAL_IP)

    def __str__(self) -> str:
        return self.name


class KindPlatform(PlatformStrategy):
    name = "kind"
    description = "Kind (Kubernetes in Docker)"

    def detect(self, accessor: ResourceAccessor) -> bool:
        return any(_provider_id(n).startswith("kind://") for n in _nodes(accessor))


class K3sPlatform(PlatformStrategy):
    name = "k3s"
    description = "K3s lightweight Kubernetes"

    def detect(self, accessor: ResourceAccessor) -> bool:
        for node in _nodes(accessor):
            if _node_labels(node).get("node.kubernetes.io/instance-type") == "k3s":
                return True
            if _provider_id(node).startswith("k3s://"):
                return True
        return False


class IBMPlatform(PlatformStrategy):
    name = "ibm"
    description = "IBM Cloud Kubernetes Service"

    def detect(self, accessor: ResourceAccessor) -> bool:
        return accessor.get(ResourceKind.NAMESPACE, None, "ibm-system") is not None

    def external_ips(self, accessor: ResourceAccessor) -> tuple[str, ...]:
        return node_addresses(_nodes(accessor), EXTERNAL_IP)


class MinikubePlatform(PlatformStrategy):
    name = "minikube"
    description = "Minikube"

    def detect(self, accessor: ResourceAccessor) -> bool:
        return any("minikube.k8s.io/name" in _node_labels(n) for n in _nodes(accessor))


class GenericPlatform(PlatformStrategy):
    name = "generic"
    description = "Generic Kubernetes"

    def detect(self, accessor: ResourceAccessor) -> bool:
        return True

    def external_ips(self, accessor: ResourceAccessor) -> tuple[str, ...]:
        return ()


SUPPORTED_PLATFORMS: tuple[PlatformStrategy, ...] = (
    KindPlatform(),
    K3sPlatform(),
    IBMPlatform(),
    MinikubePlatform(),
)


def detect_platform(
    accessor: ResourceAccessor,
    strategies: Optional[Iterable[PlatformStrategy]] = None,
) -> Platform:
    """
    Classify the cluster and load its platform descriptor.

    Probes stop at the first match; only the matching strategy is loaded.
    A probe that hits a missing resource counts as no match; any other
    probe error aborts detection.

    Args:
        accessor: Resource accessor
        strategies: Ordered strategies, defaults to SUPPORTED_PLATFORMS

    Returns:
        The loaded Platform, generic if nothing matched

    Raises:
        ApiException: If a probe fails for any reason but not-found
        Exception: Whatever the selected strategy's load raises
    """
    if strategies is None:
        strategies = SUPPORTED_PLATFORMS

    selected: PlatformStrategy = GenericPlatform()
    for strategy in strategies:
        try:
            matched = strategy.detect(accessor)
        except ApiException as e:
            if not is_not_found(e):
                raise
            logger.debug(f"Platform probe {strategy} found nothing: {e.reason}")
            continue
        if matched:
            selected = strategy
            break
    else:
        logger.info("No known platform detected, using generic")

    platform = selected.load(accessor)
    logger.info(f"Detected platform {platform.name}: {platform.description}")
    return platform
