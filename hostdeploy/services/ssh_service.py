"""SSH service for executing commands on the remote host."""

import shlex
import subprocess
import time
from typing import Optional

from hostdeploy.constants import SSH_COMMAND_TIMEOUT, SSH_CONNECTIVITY_EXIT_CODE
from hostdeploy.exceptions import ConnectivityError
from hostdeploy.logger import DeployLogger
from hostdeploy.models.results import SSHResult
from hostdeploy.models.ssh import SSHConnection


class SSHService:
    """
    Runs commands and scripts on one remote host.

    Every call spawns its own ssh process; nothing is kept open between
    calls. Exit status 255 is ssh's own failure code and is raised as
    ConnectivityError, any other status is returned to the caller.
    """

    def __init__(
        self,
        connection: SSHConnection,
        logger: Optional[DeployLogger] = None,
        command_timeout: int = SSH_COMMAND_TIMEOUT,
    ):
        """
        Initialize SSH service.

        Args:
            connection: Target host and SSH configuration
            logger: Run logger (commands and outputs are written to it)
            command_timeout: Default timeout for a remote command in seconds
        """
        self.connection = connection
        self.logger = logger
        self.command_timeout = command_timeout

    @property
    def host(self) -> str:
        return self.connection.host

    def run(
        self,
        command: str,
        timeout: Optional[int] = None,
        input: Optional[str] = None,
        display: Optional[str] = None,
    ) -> SSHResult:
        """
        Execute command on remote host via SSH.

        Args:
            command: Command to execute
            timeout: Command timeout in seconds (defaults to command_timeout)
            input: Text sent to the remote command's stdin
            display: What to log instead of the command itself

        Returns:
            SSHResult with execution details

        Raises:
            ConnectivityError: If ssh cannot connect, authenticate or times out
        """
        timeout = timeout or self.command_timeout
        ssh_cmd = self.connection.build_command(command)

        if self.logger:
            self.logger.log_command(display or command)

        start_time = time.time()

        try:
            result = subprocess.run(
                ssh_cmd,
                capture_output=True,
                text=True,
                input=input,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise ConnectivityError(
                f"SSH command timed out after {timeout}s",
                context=f"Host: {self.host}, Command: {display or command}",
            )
        except OSError as e:
            raise ConnectivityError(
                f"Could not start ssh: {e}",
                context=f"Host: {self.host}",
            )

        duration = time.time() - start_time

        ssh_result = SSHResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            host=self.host,
            command=display or command,
            elapsed=duration,
        )

        if self.logger:
            self.logger.log_output(ssh_result.stdout, "stdout")
            self.logger.log_output(ssh_result.stderr, "stderr")
            self.logger.log(
                f"Exit status {ssh_result.returncode} ({duration:.2f}s)", "DEBUG"
            )

        if ssh_result.returncode == SSH_CONNECTIVITY_EXIT_CODE:
            raise ConnectivityError(
                f"Cannot connect to {self.connection.connection_string}",
                context=ssh_result.stderr.strip() or None,
            )

        return ssh_result

    def run_script(
        self,
        script: str,
        timeout: Optional[int] = None,
        display: Optional[str] = None,
    ) -> SSHResult:
        """
        Execute a multi-line script as one remote invocation.

        The script travels on stdin to `bash -s`, so it never shows up in
        the remote process list and is not limited by argv length.

        Args:
            script: Bash script body
            timeout: Timeout in seconds
            display: Short description to log instead of the script body

        Returns:
            SSHResult with execution details
        """
        if self.logger and not display:
            self.logger.log(f"Script:\n{script}", "DEBUG")
        return self.run(
            "bash -s",
            timeout=timeout,
            input=script,
            display=f"bash -s <<< {display}" if display else None,
        )

    def put_file(self, remote_path: str, content: str, sudo: bool = True) -> SSHResult:
        """
        Write content to a file on the remote host.

        Args:
            remote_path: Destination path
            content: File content
            sudo: Write as root

        Returns:
            SSHResult of the tee command
        """
        tee = f"tee {shlex.quote(remote_path)} > /dev/null"
        command = f"sudo {tee}" if sudo else tee
        return self.run(command, input=content)

    def probe(self) -> bool:
        """
        Check that the host accepts our key.

        Returns:
            True if an echo round-trips, False on any connectivity failure
        """
        try:
            result = self.run(
                "echo 'SSH connection successful'",
                timeout=self.connection.config.connect_timeout + 5,
            )
        except ConnectivityError as e:
            if self.logger:
                self.logger.log(f"Connectivity probe failed: {e}", "WARNING")
            return False
        return result.is_success

    def ensure_reachable(self) -> None:
        """
        Raise unless the host is reachable.

        Raises:
            ConnectivityError: If the probe fails
        """
        if not self.probe():
            raise ConnectivityError(
                f"Cannot connect to remote server {self.connection.connection_string}",
                context=(
                    f"Key: {self.connection.config.key_path}, "
                    f"timeout: {self.connection.config.connect_timeout}s, "
                    f"host key policy: {self.connection.config.host_key_policy}"
                ),
            )
