"""Remote environment provisioning service."""

import shlex
from typing import Optional

from hostdeploy.constants import (
    BASELINE_PACKAGES,
    COMPOSE_INSTALL_PATH,
    COMPOSE_RELEASE_URL,
    DOCKER_INSTALL_URL,
    MANAGED_SERVICES,
)
from hostdeploy.exceptions import ProvisionError
from hostdeploy.logger import DeployLogger
from hostdeploy.models.results import ProvisionResult, SSHResult
from hostdeploy.services.ssh_service import SSHService
from hostdeploy.utils import last_line


class EnvironmentProvisioner:
    """
    Makes sure Docker, docker-compose and Nginx are installed and running.

    Each step checks the host before acting, so running it against an
    already prepared host changes nothing. The first failing step stops
    provisioning; steps already applied are left in place.
    """

    def __init__(
        self,
        ssh: SSHService,
        logger: Optional[DeployLogger] = None,
        compose_command: str = "docker-compose",
    ):
        self.ssh = ssh
        self.logger = logger
        self.compose_command = compose_command

    def ensure_environment(self) -> ProvisionResult:
        """
        Run every provisioning step in order.

        Returns:
            ProvisionResult with one outcome per step

        Raises:
            ProvisionError: Naming the failed step and its exit status
        """
        result = ProvisionResult()

        self.refresh_package_index(result)
        self.install_baseline_packages(result)
        self.ensure_container_runtime(result)
        self.ensure_compose_helper(result)
        self.enable_services(result)

        return result

    def refresh_package_index(self, result: ProvisionResult) -> None:
        """Step 1: apt-get update."""
        self._step("refresh-index", "sudo apt-get update -qq")
        result.record("refresh-index", changed=False, detail="package index refreshed")
        self._success("Package index refreshed")

    def install_baseline_packages(self, result: ProvisionResult) -> None:
        """Step 2: curl, wget, git and nginx."""
        packages = " ".join(BASELINE_PACKAGES)
        check = self.ssh.run(f"dpkg -s {packages} > /dev/null 2>&1")
        if check.is_success:
            result.record("baseline-packages", changed=False, detail="already installed")
            self._success(f"Prerequisites already installed ({packages})")
            return

        self._step(
            "baseline-packages",
            f"sudo DEBIAN_FRONTEND=noninteractive apt-get install -y -qq {packages}",
        )
        result.record("baseline-packages", changed=True, detail=f"installed {packages}")
        self._success(f"Installed prerequisites ({packages})")

    def ensure_container_runtime(self, result: ProvisionResult) -> None:
        """Step 3: Docker engine, installed only when missing from PATH."""
        if self._binary_available("docker"):
            version = self._version("docker --version")
            result.docker_version = version
            result.record("container-runtime", changed=False, detail=version)
            self._success(f"Docker already installed: {version}")
            return

        self._step(
            "container-runtime",
            f"curl -fsSL {DOCKER_INSTALL_URL} | sudo sh && sudo usermod -aG docker \"$USER\"",
            display="install docker",
        )
        version = self._version("docker --version")
        result.docker_version = version
        result.record("container-runtime", changed=True, detail=version)
        self._success(f"Docker installed: {version}")

    def ensure_compose_helper(self, result: ProvisionResult) -> None:
        """Step 4: docker-compose binary, downloaded only when missing."""
        binary = self.compose_command.split()[0]
        if self._binary_available(binary):
            version = self._version(f"{self.compose_command} --version")
            result.compose_version = version
            result.record("compose-helper", changed=False, detail=version)
            self._success(f"Docker Compose already installed: {version}")
            return

        target = shlex.quote(COMPOSE_INSTALL_PATH)
        self._step(
            "compose-helper",
            f'sudo curl -fsSL "{COMPOSE_RELEASE_URL}" -o {target} && sudo chmod +x {target}',
            display="install docker-compose",
        )
        version = self._version(f"{COMPOSE_INSTALL_PATH} --version")
        result.compose_version = version
        result.record("compose-helper", changed=True, detail=version)
        self._success(f"Docker Compose installed: {version}")

    def enable_services(self, result: ProvisionResult) -> None:
        """Step 5: enable and start docker and nginx (no-ops when active)."""
        commands = []
        for service in MANAGED_SERVICES:
            commands.append(f"sudo systemctl enable {service}")
            commands.append(f"sudo systemctl start {service}")

        self._step("services", " && ".join(commands))
        result.record(
            "services", changed=False, detail=f"enabled {', '.join(MANAGED_SERVICES)}"
        )
        self._success(f"Services enabled and started ({', '.join(MANAGED_SERVICES)})")

    def _binary_available(self, binary: str) -> bool:
        return self.ssh.run(f"command -v {shlex.quote(binary)} > /dev/null 2>&1").is_success

    def _version(self, command: str) -> str:
        result = self.ssh.run(command)
        return last_line(result.stdout) if result.is_success else "unknown"

    def _step(self, name: str, command: str, display: Optional[str] = None) -> SSHResult:
        """Run a provisioning command and fail loudly if it does not succeed."""
        if self.logger:
            self.logger.log(f"Provisioning step: {name}", "INFO")

        result = self.ssh.run(command, display=display)
        if result.is_failure:
            raise ProvisionError(name, result.returncode, result.output)
        return result

    def _success(self, message: str) -> None:
        if self.logger:
            self.logger.success(message)
