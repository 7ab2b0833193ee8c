"""PaaS Kubernetes Driver - cluster handle, platform detection and convergence waits."""

from .accessor import (
    CustomResourceClient,
    KubernetesResourceAccessor,
    ResourceAccessor,
    ResourceKind,
)
from .cluster import Cluster, ClusterProvider, get_cluster, reset_cluster
from .conditions import Condition
from .config import Settings, configure_logging, get_settings
from .connection import ClusterConnection
from .crd import CRDWaiter, CRDWaitPhase
from .errors import (
    ClusterError,
    ClusterInitError,
    CRDWaitError,
    ResourceError,
    ResourceNotFoundError,
    WaitCancelledError,
    WaitTimeoutError,
)
from .linkerd import LinkerdDeployment
from .models import ClusterConfig, Platform, ResourceRef
from .platforms import (
    SUPPORTED_PLATFORMS,
    GenericPlatform,
    IBMPlatform,
    K3sPlatform,
    KindPlatform,
    MinikubePlatform,
    PlatformStrategy,
    detect_platform,
)
from .poller import PollSpec, poll_until
from .progress import LoggingProgressSink, ProgressSink, report_progress

__version__ = "0.1.0"

__all__ = [
    # Cluster handle
    "Cluster",
    "ClusterConnection",
    "ClusterProvider",
    "get_cluster",
    "reset_cluster",
    # Resource access
    "ResourceAccessor",
    "KubernetesResourceAccessor",
    "CustomResourceClient",
    "ResourceKind",
    # Polling
    "Condition",
    "PollSpec",
    "poll_until",
    "CRDWaiter",
    "CRDWaitPhase",
    # Platforms
    "PlatformStrategy",
    "KindPlatform",
    "K3sPlatform",
    "IBMPlatform",
    "MinikubePlatform",
    "GenericPlatform",
    "SUPPORTED_PLATFORMS",
    "detect_platform",
    # Progress
    "ProgressSink",
    "LoggingProgressSink",
    "report_progress",
    # Deployment steps
    "LinkerdDeployment",
    # Configuration
    "Settings",
    "get_settings",
    "configure_logging",
    # Models
    "ClusterConfig",
    "Platform",
    "ResourceRef",
    # Errors
    "ClusterError",
    "ClusterInitError",
    "CRDWaitError",
    "ResourceError",
    "ResourceNotFoundError",
    "WaitCancelledError",
    "WaitTimeoutError",
]
