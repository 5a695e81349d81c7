"""
Deployment Request Model

The immutable description of one deployment, built once from user input.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Union
from urllib.parse import urlsplit

from hostdeploy.constants import DEFAULT_BRANCH, DEFAULT_SSH_KEY_PATH


def derive_project_name(repository_url: str) -> str:
    """
    Derive project name from a repository URL.

    Uses the last path segment with any trailing ".git" removed, the same
    way `basename URL .git` would.

    Args:
        repository_url: HTTP(S) clone URL

    Returns:
        Project name (empty string if the URL has no path)
    """
    path = urlsplit(repository_url).path.rstrip("/")
    name = path.rsplit("/", 1)[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return name


@dataclass(frozen=True)
class DeploymentRequest:
    """A single deployment of one repository to one remote host."""

    repository_url: str
    access_token: str = field(repr=False)
    remote_user: str
    remote_host: str
    application_port: Union[int, str]
    branch: str = DEFAULT_BRANCH
    ssh_key_path: str = DEFAULT_SSH_KEY_PATH

    @property
    def project_name(self) -> str:
        """Project name derived from the repository URL."""
        return derive_project_name(self.repository_url)

    @property
    def image_name(self) -> str:
        """Docker image repository name (image references must be lowercase)."""
        return self.project_name.lower()

    @property
    def port(self) -> int:
        """Application port as an integer. Only valid after validation."""
        return int(self.application_port)

    @property
    def key_path_expanded(self) -> Path:
        """Get expanded key path (resolves ~)."""
        return Path(self.ssh_key_path).expanduser()

    @property
    def target(self) -> str:
        """Get SSH target string (user@host)."""
        return f"{self.remote_user}@{self.remote_host}"

    def to_dict(self) -> dict:
        """Convert to dictionary for display. Never includes the token."""
        return {
            "repository_url": self.repository_url,
            "branch": self.branch,
            "remote_user": self.remote_user,
            "remote_host": self.remote_host,
            "ssh_key_path": self.ssh_key_path,
            "application_port": self.application_port,
            "project_name": self.project_name,
        }
