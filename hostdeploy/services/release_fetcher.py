"""Release fetching service (clone or update on the remote host)."""

import shlex
from typing import Optional, Tuple

from hostdeploy.constants import DEFAULT_REMOTE_BASE_DIR
from hostdeploy.exceptions import FetchError
from hostdeploy.logger import DeployLogger
from hostdeploy.models.request import DeploymentRequest
from hostdeploy.models.results import FetchResult
from hostdeploy.services.ssh_service import SSHService
from hostdeploy.utils import authenticated_url, redact, strip_credentials

RELEASE_MARKER = "HOSTDEPLOY_RELEASE"


def remote_project_dir(base_dir: str, project_name: str) -> str:
    """
    Shell expression for the project directory on the remote host.

    A leading ~ is left unquoted so the remote shell expands it.
    """
    if base_dir == "~":
        return f"~/{shlex.quote(project_name)}"
    if base_dir.startswith("~/"):
        return f"~/{shlex.quote(base_dir[2:].rstrip('/') + '/' + project_name)}"
    return shlex.quote(f"{base_dir.rstrip('/')}/{project_name}")


class ReleaseFetcher:
    """
    Gets the requested branch of the repository onto the remote host.

    An existing project directory is updated in place; a missing one is
    cloned. The access token is only ever part of the script sent over
    stdin and is scrubbed from anything that comes back.
    """

    def __init__(
        self,
        ssh: SSHService,
        logger: Optional[DeployLogger] = None,
        base_dir: str = DEFAULT_REMOTE_BASE_DIR,
    ):
        self.ssh = ssh
        self.logger = logger
        self.base_dir = base_dir

    def project_dir(self, request: DeploymentRequest) -> str:
        return remote_project_dir(self.base_dir, request.project_name)

    def exists(self, request: DeploymentRequest) -> bool:
        """Check whether the project directory is already a git checkout."""
        project_dir = self.project_dir(request)
        result = self.ssh.run(f"test -d {project_dir}/.git")
        return result.is_success

    def fetch_release(self, request: DeploymentRequest) -> FetchResult:
        """
        Clone or update the repository at the requested branch.

        Returns:
            FetchResult with the remote path and checked-out revision

        Raises:
            FetchError: On authentication or network failure (token-free message)
        """
        updated = self.exists(request)
        if updated:
            script = self._update_script(request)
            action = "update"
        else:
            script = self._clone_script(request)
            action = "clone"

        if self.logger:
            self.logger.log(
                f"{action.capitalize()} {strip_credentials(request.repository_url)} "
                f"(branch {request.branch})",
                "INFO",
            )

        result = self.ssh.run_script(
            script, display=f"git {action} {request.project_name}@{request.branch}"
        )
        stdout = redact(result.stdout, [request.access_token])
        stderr = redact(result.stderr, [request.access_token])

        output = f"{stdout}\n{stderr}".strip()
        if result.is_failure:
            raise FetchError(
                f"Failed to {action} repository {strip_credentials(request.repository_url)} "
                f"(branch {request.branch}, exit {result.returncode})",
                context=output or None,
            )

        # Later stages quote the path, so it has to be absolute
        path, revision = self._parse_marker(stdout)
        if not path:
            raise FetchError(
                f"Could not determine the release directory after {action}",
                context=output or None,
            )
        return FetchResult(path=path, revision=revision, updated=updated)

    def _clone_script(self, request: DeploymentRequest) -> str:
        auth_url = shlex.quote(authenticated_url(request.repository_url, request.access_token))
        clean_url = shlex.quote(strip_credentials(request.repository_url))
        branch = shlex.quote(request.branch)
        project_dir = self.project_dir(request)
        return f"""set -e
export GIT_TERMINAL_PROMPT=0
echo "[INFO] Cloning repository..."
git clone --branch {branch} {auth_url} {project_dir}
cd {project_dir}
git remote set-url origin {clean_url}
echo "{RELEASE_MARKER} $(pwd) $(git rev-parse HEAD)"
"""

    def _update_script(self, request: DeploymentRequest) -> str:
        auth_url = shlex.quote(authenticated_url(request.repository_url, request.access_token))
        clean_url = shlex.quote(strip_credentials(request.repository_url))
        branch = shlex.quote(request.branch)
        project_dir = self.project_dir(request)
        return f"""set -e
export GIT_TERMINAL_PROMPT=0
echo "[INFO] Directory exists. Pulling latest changes..."
cd {project_dir}
git remote set-url origin {clean_url}
git fetch {auth_url} {branch}
git checkout -f -B {branch} FETCH_HEAD
git reset --hard FETCH_HEAD
echo "{RELEASE_MARKER} $(pwd) $(git rev-parse HEAD)"
"""

    @staticmethod
    def _parse_marker(stdout: str) -> Tuple[str, str]:
        for line in reversed(stdout.splitlines()):
            if line.startswith(RELEASE_MARKER):
                parts = line.split()
                if len(parts) >= 3:
                    return " ".join(parts[1:-1]), parts[-1]
        return "", ""
