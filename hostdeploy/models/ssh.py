"""
SSH Models

How to reach the target host: key, user, host-key policy and the ssh argv.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from hostdeploy.constants import (
    DEFAULT_HOST_KEY_POLICY,
    DEFAULT_SSH_PORT,
    HOST_KEY_POLICIES,
    SSH_CONNECTION_TIMEOUT,
)


@dataclass
class SSHConfig:
    """Credentials and verification policy, independent of the host."""

    key_path: str
    user: str
    host_key_policy: str = DEFAULT_HOST_KEY_POLICY
    connect_timeout: int = SSH_CONNECTION_TIMEOUT

    def __post_init__(self):
        if self.host_key_policy not in HOST_KEY_POLICIES:
            raise ValueError(
                f"Unknown host key policy '{self.host_key_policy}' "
                f"(expected one of: {', '.join(HOST_KEY_POLICIES)})"
            )

    @property
    def key_path_expanded(self) -> Path:
        return Path(self.key_path).expanduser()

    def options(self) -> Dict[str, str]:
        """`-o` options for a non-interactive session."""
        return {
            # Never fall back to password or passphrase prompts
            "BatchMode": "yes",
            "IdentitiesOnly": "yes",
            "StrictHostKeyChecking": HOST_KEY_POLICIES[self.host_key_policy],
            "ConnectTimeout": str(self.connect_timeout),
            "LogLevel": "ERROR",
        }


@dataclass
class SSHConnection:
    """One host reached with an SSHConfig."""

    host: str
    config: SSHConfig
    port: int = DEFAULT_SSH_PORT

    @property
    def connection_string(self) -> str:
        return f"{self.config.user}@{self.host}"

    @property
    def ssh_command_prefix(self) -> List[str]:
        argv = ["ssh", "-i", str(self.config.key_path_expanded), "-p", str(self.port)]
        for name, value in self.config.options().items():
            argv += ["-o", f"{name}={value}"]
        argv.append(self.connection_string)
        return argv

    def build_command(self, remote_command: str) -> List[str]:
        return [*self.ssh_command_prefix, remote_command]

    def __repr__(self) -> str:
        return f"SSHConnection({self.connection_string}:{self.port}, policy={self.config.host_key_policy})"
