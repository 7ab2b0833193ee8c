"""Data models for the cluster driver."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ClusterConfig(BaseModel):
    """Connection configuration handed to the Kubernetes client."""

    name: str = "default"
    kubeconfig_path: Optional[str] = None
    kubeconfig_data: Optional[str] = None  # Base64 encoded kubeconfig
    context: Optional[str] = None  # Specific context to use
    in_cluster: bool = False


class Platform(BaseModel):
    """Resolved cluster flavor."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    external_ips: tuple[str, ...] = Field(default_factory=tuple)

    def __str__(self) -> str:
        return self.name


class ResourceRef(BaseModel):
    """Reference to a resource by name, or to a set of resources by selector."""

    model_config = ConfigDict(frozen=True)

    kind: str
    name: Optional[str] = None
    namespace: Optional[str] = None
    selector: Optional[str] = None

    def __str__(self) -> str:
        target = self.name or f"[{self.selector or 'all'}]"
        if self.namespace:
            target = f"{self.namespace}/{target}"
        return f"{self.kind} {target}"
