"""
Deployment Models

Build method detection result and the reverse-proxy route.
"""

from dataclasses import dataclass
from enum import Enum

from hostdeploy.constants import (
    NGINX_PUBLIC_PORT,
    NGINX_SERVER_NAME,
    NGINX_SITES_AVAILABLE,
    NGINX_SITES_ENABLED,
)


class DeploymentMethod(Enum):
    """How the fetched release is built and started."""

    SINGLE_CONTAINER = "dockerfile"
    MULTI_SERVICE = "compose"
    UNSUPPORTED = "none"

    @property
    def is_supported(self) -> bool:
        """Check if the release can be deployed."""
        return self != DeploymentMethod.UNSUPPORTED


@dataclass(frozen=True)
class ProxyRoute:
    """Public port to application port mapping for one project."""

    project_name: str
    target_port: int
    public_port: int = NGINX_PUBLIC_PORT
    server_name: str = NGINX_SERVER_NAME

    @property
    def config_path(self) -> str:
        """Site file path, keyed by project name."""
        return f"{NGINX_SITES_AVAILABLE}/{self.project_name}"

    @property
    def enabled_path(self) -> str:
        """Symlink path in the active sites set."""
        return f"{NGINX_SITES_ENABLED}/{self.project_name}"

    @property
    def staging_path(self) -> str:
        """Upload location used before the atomic rename."""
        return f"{NGINX_SITES_AVAILABLE}/.{self.project_name}.staged"
