"""Container build and run service."""

import shlex
import time
from typing import Callable, Optional

from hostdeploy.constants import (
    DEFAULT_COMPOSE_COMMAND,
    DEFAULT_GRACE_PERIOD,
    DEFAULT_LOG_TAIL_LINES,
    MULTI_SERVICE_DESCRIPTORS,
    SINGLE_CONTAINER_DESCRIPTORS,
)
from hostdeploy.exceptions import DeployError
from hostdeploy.logger import DeployLogger
from hostdeploy.models.deployment import DeploymentMethod
from hostdeploy.models.request import DeploymentRequest
from hostdeploy.models.results import DeployResult
from hostdeploy.services.ssh_service import SSHService
from hostdeploy.utils import last_line


def status_command(
    project_name: str,
    method: DeploymentMethod,
    path: str,
    compose_command: str = DEFAULT_COMPOSE_COMMAND,
) -> str:
    """
    Remote command listing what is running for a release.

    Compose stacks are asked for their running services, since compose
    picks its own container names.
    """
    if method == DeploymentMethod.MULTI_SERVICE:
        return (
            f"cd {shlex.quote(path)} && "
            f"sudo {compose_command} ps --services --filter status=running"
        )
    return (
        f"sudo docker ps --filter name={shlex.quote(project_name)} "
        "--format '{{.Names}}\t{{.Status}}\t{{.Ports}}'"
    )


class DeploymentEngine:
    """
    Detects how a release is built and (re)starts it under the project name.

    Teardown of the previous instance is best effort; build, run and the
    running check are not.
    """

    def __init__(
        self,
        ssh: SSHService,
        logger: Optional[DeployLogger] = None,
        compose_command: str = DEFAULT_COMPOSE_COMMAND,
        grace_period: float = DEFAULT_GRACE_PERIOD,
        log_tail_lines: int = DEFAULT_LOG_TAIL_LINES,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.ssh = ssh
        self.logger = logger
        self.compose_command = compose_command
        self.grace_period = grace_period
        self.log_tail_lines = log_tail_lines
        self.sleep = sleep

    def detect_method(self, path: str) -> DeploymentMethod:
        """
        Inspect the release tree for a build descriptor.

        A Dockerfile wins over a compose file.

        Args:
            path: Release directory on the remote host

        Returns:
            DeploymentMethod (UNSUPPORTED when neither descriptor exists)
        """
        tests = [
            (DeploymentMethod.SINGLE_CONTAINER, SINGLE_CONTAINER_DESCRIPTORS),
            (DeploymentMethod.MULTI_SERVICE, MULTI_SERVICE_DESCRIPTORS),
        ]

        branches = []
        for method, descriptors in tests:
            condition = " || ".join(f"[ -f {shlex.quote(name)} ]" for name in descriptors)
            branches.append(f"if {condition}; then echo {method.value}; exit 0; fi")

        script = (
            f"cd {shlex.quote(path)} || exit 1\n"
            + "\n".join(branches)
            + f"\necho {DeploymentMethod.UNSUPPORTED.value}\n"
        )

        result = self.ssh.run_script(script, display=f"detect build descriptor in {path}")
        if result.is_failure:
            raise DeployError(
                f"Release directory not found: {path}", context=result.output or None
            )

        value = last_line(result.stdout)
        try:
            method = DeploymentMethod(value)
        except ValueError:
            method = DeploymentMethod.UNSUPPORTED

        if self.logger:
            self.logger.log(f"Deployment type: {method.value}", "INFO")
        return method

    def require_method(self, path: str) -> DeploymentMethod:
        """
        Detect the build method and fail if it is unsupported.

        Raises:
            DeployError: If neither a Dockerfile nor a compose file exists
        """
        method = self.detect_method(path)
        if not method.is_supported:
            expected = ", ".join(SINGLE_CONTAINER_DESCRIPTORS + MULTI_SERVICE_DESCRIPTORS)
            raise DeployError(
                "No Dockerfile or docker-compose.yml found in repository!",
                context=f"Looked in {path} for: {expected}",
            )
        return method

    def deploy(
        self, request: DeploymentRequest, method: DeploymentMethod, path: str
    ) -> DeployResult:
        """
        Replace any running instance with a fresh build of the release.

        Args:
            request: Deployment request
            method: Build method from detect_method
            path: Release directory on the remote host

        Returns:
            DeployResult with the container status line

        Raises:
            DeployError: If build/start fails or nothing is running afterwards
        """
        if not method.is_supported:
            raise DeployError("Cannot deploy a release without a build descriptor")

        self.teardown(request, method, path)

        if method == DeploymentMethod.MULTI_SERVICE:
            image = None
            self._compose_up(path)
        else:
            image = f"{request.image_name}:latest"
            self._build_image(image, path)
            self._run_container(request, image)

        if self.grace_period > 0:
            if self.logger:
                self.logger.log(
                    f"Waiting {self.grace_period:g}s for the container to stabilize", "INFO"
                )
            self.sleep(self.grace_period)

        status = self.container_status(request, method, path)
        if not status:
            logs = self.collect_logs(request, method, path)
            raise DeployError(
                f"Container '{request.project_name}' failed to start",
                logs=logs,
            )

        return DeployResult(
            method=method,
            container_name=request.project_name,
            image=image,
            status=status,
        )

    def teardown(
        self, request: DeploymentRequest, method: DeploymentMethod, path: str
    ) -> None:
        """Stop and remove the previous instance. Never fails the run."""
        name = shlex.quote(request.project_name)
        commands = []
        if method == DeploymentMethod.MULTI_SERVICE:
            commands.append(
                f"cd {shlex.quote(path)} && sudo {self.compose_command} down --remove-orphans"
            )
        commands.append(f"sudo docker rm -f {name}")

        for command in commands:
            result = self.ssh.run(command)
            if result.is_failure and self.logger:
                if "No such container" in result.output:
                    self.logger.log("No previous container to remove", "INFO")
                else:
                    self.logger.log(
                        f"Teardown command exited {result.returncode}, continuing",
                        "WARNING",
                    )

    def container_status(
        self, request: DeploymentRequest, method: DeploymentMethod, path: str
    ) -> str:
        """
        Status lines of what is running for the release.

        Returns:
            Empty string when nothing is running
        """
        result = self.ssh.run(
            status_command(request.project_name, method, path, self.compose_command)
        )
        if result.is_failure:
            return ""
        return result.stdout.strip()

    def collect_logs(
        self, request: DeploymentRequest, method: DeploymentMethod, path: str
    ) -> str:
        """Tail of the instance's logs for diagnostics."""
        tail = int(self.log_tail_lines)
        if method == DeploymentMethod.MULTI_SERVICE:
            command = (
                f"cd {shlex.quote(path)} && sudo {self.compose_command} logs --tail {tail} 2>&1"
            )
        else:
            command = f"sudo docker logs --tail {tail} {shlex.quote(request.project_name)} 2>&1"
        return self.ssh.run(command).output

    def _compose_up(self, path: str) -> None:
        result = self.ssh.run(
            f"cd {shlex.quote(path)} && sudo {self.compose_command} up -d --build"
        )
        if result.is_failure:
            raise DeployError(
                f"{self.compose_command} up failed (exit {result.returncode})",
                logs=result.output,
            )

    def _build_image(self, image: str, path: str) -> None:
        result = self.ssh.run(f"sudo docker build -t {shlex.quote(image)} {shlex.quote(path)}")
        if result.is_failure:
            raise DeployError(
                f"Docker build failed for {image} (exit {result.returncode})",
                logs=result.output,
            )

    def _run_container(self, request: DeploymentRequest, image: str) -> None:
        port = request.port
        result = self.ssh.run(
            f"sudo docker run -d --name {shlex.quote(request.project_name)} "
            f"--restart unless-stopped -p {port}:{port} {shlex.quote(image)}"
        )
        if result.is_failure:
            raise DeployError(
                f"Failed to start container {request.project_name} (exit {result.returncode})",
                logs=result.output,
            )
