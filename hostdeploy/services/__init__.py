"""
hostdeploy Services Layer

One service per deployment stage, plus SSH and configuration.
"""

from .config_service import ConfigService
from .ssh_service import SSHService
from .request_validator import RequestValidator
from .provisioner import EnvironmentProvisioner
from .release_fetcher import ReleaseFetcher
from .deployment_engine import DeploymentEngine
from .proxy_configurer import ProxyConfigurer, render_proxy_config
from .deployment_validator import DeploymentValidator
from .pipeline import DeploymentPipeline

__all__ = [
    "ConfigService",
    "SSHService",
    "RequestValidator",
    "EnvironmentProvisioner",
    "ReleaseFetcher",
    "DeploymentEngine",
    "ProxyConfigurer",
    "render_proxy_config",
    "DeploymentValidator",
    "DeploymentPipeline",
]
