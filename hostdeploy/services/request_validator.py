"""Deployment request validation service."""

import ipaddress
import os
import re
from typing import List

from hostdeploy.constants import PROJECT_NAME_PATTERN, REMOTE_USER_PATTERN
from hostdeploy.exceptions import ValidationError
from hostdeploy.models.request import DeploymentRequest, derive_project_name
from hostdeploy.models.results import ValidationResult

DOTTED_QUAD = re.compile(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$")
PORT_DIGITS = re.compile(r"^[0-9]{1,5}$")
PROJECT_NAME = re.compile(PROJECT_NAME_PATTERN)
REMOTE_USER = re.compile(REMOTE_USER_PATTERN)
HOSTNAME_LABEL = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")


class RequestValidator:
    """
    Checks that deployment parameters are well formed.

    Runs entirely locally; no connection is opened. Every check runs and all
    failures are reported together.
    """

    def __init__(self, allow_hostnames: bool = False):
        self.allow_hostnames = allow_hostnames

    def validate(self, request: DeploymentRequest) -> ValidationResult:
        """
        Validate a deployment request.

        Returns:
            ValidationResult (is_valid False with one error per failed check)
        """
        result = ValidationResult()

        for errors in (
            self._validate_url(request.repository_url),
            self._validate_token(request.access_token),
            self._validate_branch(request.branch),
            self._validate_user(request.remote_user),
            self._validate_host(request.remote_host),
            self._validate_key_path(request),
            self._validate_port(request.application_port),
        ):
            result.extend(errors)

        return result

    def ensure_valid(self, request: DeploymentRequest) -> None:
        """
        Validate and raise on failure.

        Raises:
            ValidationError: Carrying every failed check
        """
        result = self.validate(request)
        if not result.is_valid:
            raise ValidationError(result.errors)

    def _validate_url(self, url: str) -> List[str]:
        """Validate repository URL."""
        if not url or not re.match(r"^https?://", url):
            return [f"Invalid URL format: {url!r} (must start with http:// or https://)"]

        project_name = derive_project_name(url)
        if not project_name:
            return [f"Cannot derive a project name from URL: {url!r}"]
        # Project name doubles as container name and nginx site file name
        if not PROJECT_NAME.match(project_name):
            return [f"Unsupported project name {project_name!r} derived from URL"]
        return []

    def _validate_token(self, token: str) -> List[str]:
        """Validate access token presence."""
        if not token or not token.strip():
            return ["Personal access token cannot be empty"]
        return []

    def _validate_branch(self, branch: str) -> List[str]:
        """Validate branch name."""
        if not branch or re.search(r"\s", branch):
            return [f"Invalid branch name: {branch!r}"]
        return []

    def _validate_user(self, user: str) -> List[str]:
        """Validate remote username."""
        if not user or not user.strip():
            return ["Remote server username cannot be empty"]
        # Anything else could be read by ssh as an option
        if not REMOTE_USER.match(user):
            return [f"Invalid remote server username: {user!r}"]
        return []

    def _validate_host(self, host: str) -> List[str]:
        """Validate remote host (IPv4, or hostname when allowed)."""
        host = host or ""

        if DOTTED_QUAD.match(host):
            try:
                ipaddress.IPv4Address(host)
                return []
            except ValueError:
                return [f"Invalid IP address: {host!r}"]

        if self.allow_hostnames and self._is_hostname(host):
            return []

        return [f"Invalid IP address: {host!r}"]

    @staticmethod
    def _is_hostname(host: str) -> bool:
        if not host or len(host) > 253:
            return False
        labels = host.rstrip(".").split(".")
        if labels[-1].isdigit():
            return False
        return all(HOSTNAME_LABEL.match(label) for label in labels)

    def _validate_key_path(self, request: DeploymentRequest) -> List[str]:
        """Validate SSH private key file."""
        if not request.ssh_key_path:
            return ["SSH key path cannot be empty"]

        key_path = request.key_path_expanded
        if not key_path.is_file():
            return [f"File not found: {key_path}"]
        if not os.access(key_path, os.R_OK):
            return [f"SSH key is not readable: {key_path}"]
        return []

    def _validate_port(self, port) -> List[str]:
        """Validate application port."""
        text = str(port).strip() if port is not None else ""
        if isinstance(port, bool) or not PORT_DIGITS.match(text):
            return [f"Invalid port number: {port!r}"]
        if not 1 <= int(text) <= 65535:
            return [f"Invalid port number: {port!r} (must be 1-65535)"]
        return []
