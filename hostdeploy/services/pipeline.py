"""Deployment pipeline: runs every stage in order against one host."""

import time
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

import requests

from hostdeploy.exceptions import HostDeployError
from hostdeploy.logger import DeployLogger
from hostdeploy.models.deployment import ProxyRoute
from hostdeploy.models.request import DeploymentRequest
from hostdeploy.models.results import (
    DeployResult,
    DeploymentOutcome,
    FetchResult,
    ProvisionResult,
    ProxyResult,
)
from hostdeploy.models.settings import DeploySettings
from hostdeploy.models.ssh import SSHConfig, SSHConnection
from hostdeploy.services.deployment_engine import DeploymentEngine
from hostdeploy.services.deployment_validator import DeploymentValidator
from hostdeploy.services.provisioner import EnvironmentProvisioner
from hostdeploy.services.proxy_configurer import ProxyConfigurer
from hostdeploy.services.release_fetcher import ReleaseFetcher
from hostdeploy.services.request_validator import RequestValidator
from hostdeploy.services.ssh_service import SSHService

STAGE_TITLES = {
    "validate": "Validating deployment parameters",
    "connect": "Testing SSH connection",
    "provision": "Preparing remote environment",
    "fetch": "Fetching repository on remote server",
    "deploy": "Deploying Docker application",
    "proxy": "Configuring Nginx reverse proxy",
    "verify": "Validating deployment",
}


class DeploymentPipeline:
    """
    Validate → connect → provision → fetch → deploy → proxy → verify.

    Stages run one after another and the first error stops the run. Errors
    are re-raised with the stage they happened in; nothing already applied
    on the host is undone.
    """

    def __init__(
        self,
        settings: Optional[DeploySettings] = None,
        logger: Optional[DeployLogger] = None,
        ssh_factory: Optional[Callable[[DeploymentRequest], SSHService]] = None,
        sleep: Callable[[float], None] = time.sleep,
        http_get: Callable = requests.get,
    ):
        self.settings = settings or DeploySettings()
        self.logger = logger
        self.ssh_factory = ssh_factory or self.build_ssh
        self.sleep = sleep
        self.http_get = http_get
        self.current_stage: Optional[str] = None

        self.provision_result: Optional[ProvisionResult] = None
        self.fetch_result: Optional[FetchResult] = None
        self.deploy_result: Optional[DeployResult] = None
        self.proxy_result: Optional[ProxyResult] = None

    def build_ssh(self, request: DeploymentRequest) -> SSHService:
        """Create the SSH service for the request's host."""
        config = SSHConfig(
            key_path=request.ssh_key_path,
            user=request.remote_user,
            host_key_policy=self.settings.host_key_policy,
            connect_timeout=self.settings.connect_timeout,
        )
        connection = SSHConnection(
            host=request.remote_host, config=config, port=self.settings.ssh_port
        )
        return SSHService(
            connection, logger=self.logger, command_timeout=self.settings.command_timeout
        )

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Mark a stage in the log and tag any error raised inside it."""
        self.current_stage = name
        if self.logger:
            self.logger.step(STAGE_TITLES[name])
        try:
            yield
        except HostDeployError as e:
            e.stage = name
            raise

    def check(self, request: DeploymentRequest) -> SSHService:
        """
        Validate the request and test connectivity only.

        Returns:
            The connected SSH service

        Raises:
            ValidationError: If parameters are malformed
            ConnectivityError: If the host cannot be reached
        """
        with self.stage("validate"):
            RequestValidator(allow_hostnames=self.settings.allow_hostnames).ensure_valid(
                request
            )
            if self.logger:
                self.logger.add_secret(request.access_token)
                for key, value in request.to_dict().items():
                    self.logger.log(f"{key}: {value}", "INFO")
                self.logger.success("Parameters validated")

        ssh = self.ssh_factory(request)

        with self.stage("connect"):
            ssh.ensure_reachable()
            if self.logger:
                self.logger.success(f"SSH connection verified ({request.target})")

        return ssh

    def run(self, request: DeploymentRequest) -> DeploymentOutcome:
        """
        Deploy the request end to end.

        Returns:
            DeploymentOutcome of the verify stage

        Raises:
            HostDeployError: Subclass matching the failed stage
        """
        ssh = self.check(request)
        settings = self.settings

        with self.stage("provision"):
            provisioner = EnvironmentProvisioner(
                ssh, self.logger, compose_command=settings.compose_command
            )
            self.provision_result = provisioner.ensure_environment()

        with self.stage("fetch"):
            fetcher = ReleaseFetcher(ssh, self.logger, base_dir=settings.remote_base_dir)
            self.fetch_result = fetcher.fetch_release(request)
            if self.logger:
                self.logger.success(
                    f"Repository ready at {self.fetch_result.path} "
                    f"({self.fetch_result.operation}, {self.fetch_result.revision[:12]})"
                )

        with self.stage("deploy"):
            engine = DeploymentEngine(
                ssh,
                self.logger,
                compose_command=settings.compose_command,
                grace_period=settings.grace_period,
                log_tail_lines=settings.log_tail_lines,
                sleep=self.sleep,
            )
            method = engine.require_method(self.fetch_result.path)
            if self.logger:
                self.logger.success(f"Found deployment type: {method.value}")
            self.deploy_result = self._with_progress(
                "Building and starting containers",
                lambda: engine.deploy(request, method, self.fetch_result.path),
            )
            if self.logger:
                self.logger.success("Container is running")
                self.logger.log_output(self.deploy_result.status)

        with self.stage("proxy"):
            route = ProxyRoute(project_name=request.project_name, target_port=request.port)
            self.proxy_result = ProxyConfigurer(ssh, self.logger).configure_proxy(route)
            if self.logger:
                self.logger.success("Nginx configured and reloaded")

        with self.stage("verify"):
            validator = DeploymentValidator(
                ssh,
                self.logger,
                probe_timeout=settings.probe_timeout,
                external_probe_delay=settings.external_probe_delay,
                sleep=self.sleep,
                http_get=self.http_get,
                compose_command=settings.compose_command,
            )
            outcome = validator.validate(
                request, self.deploy_result.method, self.fetch_result.path
            )

        return outcome

    def _with_progress(self, description: str, func: Callable):
        if self.logger:
            with self.logger.progress(description):
                return func()
        return func()
