"""
hostdeploy Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .results import (
    ValidationResult,
    SSHResult,
    StepOutcome,
    ProvisionResult,
    FetchResult,
    DeployResult,
    ProxyResult,
    DeploymentOutcome,
)
from .deployment import (
    DeploymentMethod,
    ProxyRoute,
)
from .request import (
    DeploymentRequest,
    derive_project_name,
)
from .settings import DeploySettings
from .ssh import (
    SSHConfig,
    SSHConnection,
)

__all__ = [
    # Results
    "ValidationResult",
    "SSHResult",
    "StepOutcome",
    "ProvisionResult",
    "FetchResult",
    "DeployResult",
    "ProxyResult",
    "DeploymentOutcome",
    # Deployment
    "DeploymentMethod",
    "ProxyRoute",
    "DeploymentRequest",
    "derive_project_name",
    "DeploySettings",
    # SSH
    "SSHConfig",
    "SSHConnection",
]
