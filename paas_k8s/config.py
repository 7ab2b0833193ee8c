"""Configuration management for the cluster driver."""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ClusterConfig


class Settings(BaseSettings):
    """Driver settings, read from the environment or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="PAAS_K8S_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Kubernetes Settings
    kubeconfig_path: Optional[str] = Field(
        default=None,
        description="Path to kubeconfig file, defaults to ~/.kube/config",
    )
    kubeconfig_data: Optional[str] = Field(
        default=None,
        description="Base64 encoded kubeconfig, takes precedence over the path",
    )
    context: Optional[str] = None
    in_cluster: bool = False

    # Polling Settings
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    default_timeout_seconds: float = Field(default=300.0, ge=0)

    log_level: str = "INFO"

    def cluster_config(self) -> ClusterConfig:
        """Build the connection configuration from these settings."""
        return ClusterConfig(
            kubeconfig_path=self.kubeconfig_path,
            kubeconfig_data=self.kubeconfig_data,
            context=self.context,
            in_cluster=self.in_cluster,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for processes embedding the driver."""
    logging.basicConfig(
        level=getattr(logging, (level or get_settings().log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
