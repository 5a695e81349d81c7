"""
hostdeploy Exception Hierarchy

One exception per pipeline stage so callers can tell where a run stopped.
"""

from typing import Optional


class HostDeployError(Exception):
    """Base exception for all hostdeploy errors."""

    stage: Optional[str] = None

    def __init__(
        self,
        message: str,
        context: Optional[str] = None,
        stage: Optional[str] = None,
    ):
        self.message = message
        self.context = context
        if stage is not None:
            self.stage = stage
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigurationError(HostDeployError):
    """Raised when configuration is invalid or missing."""

    pass


class ValidationError(HostDeployError):
    """Raised when deployment parameters fail validation."""

    stage = "validate"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(
            f"{len(self.errors)} invalid deployment parameter(s)",
            context="; ".join(self.errors),
        )


class ConnectivityError(HostDeployError):
    """Raised when the remote host cannot be reached or authenticated."""

    stage = "connect"


class ProvisionError(HostDeployError):
    """Raised when a package or service setup step fails."""

    stage = "provision"

    def __init__(self, step: str, returncode: int, output: str = ""):
        self.step = step
        self.returncode = returncode
        self.output = output
        super().__init__(
            f"Provisioning step '{step}' failed (exit {returncode})",
            context=output or None,
        )


class FetchError(HostDeployError):
    """Raised when the release cannot be cloned or updated."""

    stage = "fetch"


class DeployError(HostDeployError):
    """Raised when building or running the application fails."""

    stage = "deploy"

    def __init__(
        self,
        message: str,
        context: Optional[str] = None,
        logs: str = "",
        stage: Optional[str] = None,
    ):
        self.logs = logs
        super().__init__(message, context=context or logs or None, stage=stage)


class HealthCheckError(DeployError):
    """Raised when the application does not answer on the remote loopback."""

    stage = "verify"


class ProxyConfigError(HostDeployError):
    """Raised when the reverse-proxy config cannot be generated or applied."""

    stage = "proxy"


class ReachabilityWarning(HostDeployError):
    """External reachability probe failed. Recorded, never raised by the pipeline."""

    stage = "verify"
