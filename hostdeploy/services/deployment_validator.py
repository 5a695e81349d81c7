"""Post-deployment smoke checks."""

import time
from typing import Callable, Optional

import requests

from hostdeploy.constants import (
    DEFAULT_COMPOSE_COMMAND,
    DEFAULT_EXTERNAL_PROBE_DELAY,
    DEFAULT_PROBE_TIMEOUT,
)
from hostdeploy.exceptions import HealthCheckError, ReachabilityWarning
from hostdeploy.logger import DeployLogger
from hostdeploy.models.deployment import DeploymentMethod
from hostdeploy.models.request import DeploymentRequest
from hostdeploy.models.results import DeploymentOutcome
from hostdeploy.services.deployment_engine import status_command
from hostdeploy.services.ssh_service import SSHService


class DeploymentValidator:
    """
    Checks that the deployed application answers.

    The loopback probe on the remote host is fatal; the probe from this
    machine against the public address only produces a warning, since a
    firewall in between is outside this tool's control.
    """

    def __init__(
        self,
        ssh: SSHService,
        logger: Optional[DeployLogger] = None,
        probe_timeout: float = DEFAULT_PROBE_TIMEOUT,
        external_probe_delay: float = DEFAULT_EXTERNAL_PROBE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        http_get: Callable = requests.get,
        compose_command: str = DEFAULT_COMPOSE_COMMAND,
    ):
        self.ssh = ssh
        self.logger = logger
        self.probe_timeout = probe_timeout
        self.external_probe_delay = external_probe_delay
        self.sleep = sleep
        self.http_get = http_get
        self.compose_command = compose_command

    def validate(
        self,
        request: DeploymentRequest,
        method: DeploymentMethod = DeploymentMethod.SINGLE_CONTAINER,
        path: str = "",
    ) -> DeploymentOutcome:
        """
        Run all smoke checks.

        Args:
            request: Deployment request
            method: Build method of the release, selects the status query
            path: Release directory on the remote host

        Returns:
            DeploymentOutcome (success even when only the external probe fails)

        Raises:
            HealthCheckError: If the app does not answer through the local proxy
        """
        self.check_local()

        outcome = DeploymentOutcome(
            success=True,
            container_status=self.container_status(request.project_name, method, path),
            proxy_status=self.proxy_status(),
            public_url=f"http://{request.remote_host}",
        )

        warning = self.check_external(request.remote_host)
        if warning is None:
            outcome.external_reachable = True
            self._success(f"Application is accessible at {outcome.public_url}")
        else:
            outcome.warnings.append(warning.format_message())
            if self.logger:
                self.logger.warning(warning.message)
                self.logger.log(warning.context or "", "WARNING")

        return outcome

    def check_local(self) -> None:
        """Probe http://localhost on the remote host (through Nginx)."""
        timeout = int(self.probe_timeout)
        result = self.ssh.run(
            f"curl -f -s -o /dev/null --max-time {timeout} http://localhost"
        )
        if result.is_failure:
            raise HealthCheckError(
                "Application not responding locally on the remote host",
                context=f"curl exit {result.returncode}. {result.output}".strip(),
            )
        self._success("Application responds locally")

    def container_status(
        self,
        project_name: str,
        method: DeploymentMethod = DeploymentMethod.SINGLE_CONTAINER,
        path: str = "",
    ) -> str:
        result = self.ssh.run(status_command(project_name, method, path, self.compose_command))
        return result.stdout.strip()

    def proxy_status(self) -> str:
        result = self.ssh.run("systemctl is-active nginx")
        status = result.stdout.strip() or "unknown"
        if self.logger:
            self.logger.log(f"Nginx status: {status}", "INFO")
        return status

    def check_external(self, host: str) -> Optional[ReachabilityWarning]:
        """
        Probe the public address from this machine.

        Returns:
            None when reachable, otherwise the warning to report
        """
        url = f"http://{host}"
        if self.external_probe_delay > 0:
            self.sleep(self.external_probe_delay)

        try:
            response = self.http_get(url, timeout=self.probe_timeout)
        except requests.RequestException as e:
            return ReachabilityWarning(
                "External access test failed - may need firewall configuration",
                context=f"{url}: {e}",
            )

        if response.status_code >= 400:
            return ReachabilityWarning(
                "External access test failed - may need firewall configuration",
                context=f"{url}: HTTP {response.status_code}",
            )
        return None

    def _success(self, message: str) -> None:
        if self.logger:
            self.logger.success(message)
