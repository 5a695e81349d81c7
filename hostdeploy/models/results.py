"""
Result Models

What each stage hands back to the pipeline and to the commands.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, Dict, Any, List

from hostdeploy.models.deployment import DeploymentMethod


@dataclass
class ValidationResult:
    """Every problem found in a deployment request."""

    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def extend(self, errors: List[str]) -> None:
        self.errors.extend(errors)


@dataclass
class SSHResult:
    """Exit status and captured streams of one remote command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    host: str = ""
    command: str = ""
    elapsed: float = 0.0

    @property
    def is_success(self) -> bool:
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @property
    def output(self) -> str:
        """stdout and stderr joined, surrounding blank lines removed."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part).strip()

    def __repr__(self) -> str:
        return f"SSHResult({self.host!r}, rc={self.returncode}, {self.elapsed:.2f}s)"


@dataclass
class StepOutcome:
    """Outcome of one provisioning step."""

    name: str
    changed: bool
    detail: str = ""


@dataclass
class ProvisionResult:
    """Result of environment provisioning."""

    steps: List[StepOutcome] = field(default_factory=list)
    docker_version: Optional[str] = None
    compose_version: Optional[str] = None

    @property
    def changed(self) -> bool:
        """Check if any step modified the host."""
        return any(step.changed for step in self.steps)

    def record(self, name: str, changed: bool, detail: str = "") -> StepOutcome:
        """Append a step outcome."""
        outcome = StepOutcome(name=name, changed=changed, detail=detail)
        self.steps.append(outcome)
        return outcome


@dataclass
class FetchResult:
    """Result of fetching the release on the remote host."""

    path: str
    revision: str
    updated: bool

    @property
    def operation(self) -> str:
        return "update" if self.updated else "clone"


@dataclass
class DeployResult:
    """Result of building and starting the application."""

    method: DeploymentMethod
    container_name: str
    image: Optional[str] = None
    status: str = ""


@dataclass
class ProxyResult:
    """Result of installing the reverse-proxy route."""

    config_path: str
    enabled_path: str
    syntax_check: str = ""
    reloaded: bool = False


@dataclass
class DeploymentOutcome:
    """Final summary of a deployment run."""

    success: bool
    container_status: str = ""
    proxy_status: str = ""
    external_reachable: bool = False
    error_detail: Optional[str] = None
    failed_stage: Optional[str] = None
    public_url: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return asdict(self)

