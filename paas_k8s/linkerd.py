"""Linkerd service mesh installation step."""

import logging
from typing import Any, Optional

from .cluster import (
    MANAGED_BY_LABEL_KEY,
    MANAGED_BY_LABEL_VALUE,
    Cluster,
    object_name,
)
from .errors import ClusterError
from .progress import LoggingProgressSink, ProgressSink

logger = logging.getLogger(__name__)

LINKERD_DEPLOYMENT_ID = "linkerd"
LINKERD_VERSION = "2.10.2"


class LinkerdDeployment:
    """
    Installs and removes Linkerd by running installer jobs.

    The job and RBAC manifests are supplied already parsed. The install job
    runs in the linkerd namespace; the uninstall job runs in
    ``uninstall_namespace`` because it deletes the linkerd namespace itself.
    The roles the jobs run under are created before the install and removed
    once the namespace is gone. Without a timeout the cluster default applies.
    """

    def __init__(
        self,
        install_job: dict[str, Any],
        uninstall_job: dict[str, Any],
        timeout: Optional[float] = None,
        uninstall_namespace: str = "default",
        progress: Optional[ProgressSink] = None,
        roles: Optional[list[dict[str, Any]]] = None,
    ):
        self.install_job = install_job
        self.uninstall_job = uninstall_job
        self.roles = roles or []
        self.timeout = timeout
        self.uninstall_namespace = uninstall_namespace
        self.progress = progress or LoggingProgressSink(logger)

    @property
    def id(self) -> str:
        return LINKERD_DEPLOYMENT_ID

    def describe(self) -> str:
        return f"Linkerd version: {LINKERD_VERSION}"

    def deploy(self, cluster: Cluster, skip: bool = False) -> None:
        """
        Install Linkerd into a cluster that does not have it yet.

        Raises:
            ClusterError: If the namespace exists already or the install fails
        """
        if skip:
            logger.info("Skipping Linkerd deployment by user request")
            return
        if cluster.namespace_exists(LINKERD_DEPLOYMENT_ID):
            raise ClusterError(f"Namespace {LINKERD_DEPLOYMENT_ID} present already")

        logger.info("Deploying Linkerd...")
        self._apply(cluster)

    def upgrade(self, cluster: Cluster) -> None:
        """Re-run the installer on a cluster that has Linkerd."""
        if not cluster.namespace_exists(LINKERD_DEPLOYMENT_ID):
            raise ClusterError(f"Namespace {LINKERD_DEPLOYMENT_ID} not present")

        logger.info("Upgrading Linkerd...")
        self._apply(cluster)

    def delete(self, cluster: Cluster) -> None:
        """Remove Linkerd if we installed it."""
        logger.info("Removing Linkerd...")
        if not cluster.namespace_exists_and_owned(LINKERD_DEPLOYMENT_ID):
            logger.warning(
                "Skipping Linkerd because namespace either doesn't exist or is not owned by us"
            )
            return

        cluster.create_job(self.uninstall_namespace, self.uninstall_job)
        try:
            cluster.wait_for_namespace_missing(
                LINKERD_DEPLOYMENT_ID, self.timeout, progress=self.progress
            )
        except ClusterError as e:
            raise ClusterError(f"failed to delete namespace {LINKERD_DEPLOYMENT_ID}: {e}") from e

        cluster.delete_manifests(self.uninstall_namespace, self.roles)
        logger.info("Linkerd removed")

    def _apply(self, cluster: Cluster) -> None:
        if not cluster.namespace_exists(LINKERD_DEPLOYMENT_ID):
            cluster.create_namespace(
                LINKERD_DEPLOYMENT_ID,
                labels={MANAGED_BY_LABEL_KEY: MANAGED_BY_LABEL_VALUE},
                annotations={"linkerd.io/inject": "enabled"},
            )

        cluster.apply_manifests(self.uninstall_namespace, self.roles)

        job_name = object_name(self.install_job)
        # A previous run leaves its finished job behind
        cluster.delete_job(LINKERD_DEPLOYMENT_ID, job_name)
        cluster.create_job(LINKERD_DEPLOYMENT_ID, self.install_job)
        try:
            cluster.wait_for_job_done(LINKERD_DEPLOYMENT_ID, job_name, self.timeout)
        except ClusterError as e:
            raise ClusterError(f"failed waiting Linkerd install job to complete: {e}") from e

        if cluster.is_job_failed(LINKERD_DEPLOYMENT_ID, job_name):
            raise ClusterError(f"Linkerd install job {job_name} failed")

        logger.info("Linkerd deployed")
