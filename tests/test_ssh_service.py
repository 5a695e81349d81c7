"""Tests for the SSH service and connection models."""

import subprocess
from unittest.mock import patch

import pytest

from hostdeploy.exceptions import ConnectivityError
from hostdeploy.models.ssh import SSHConfig, SSHConnection
from hostdeploy.services.ssh_service import SSHService


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(
        args=["ssh"], returncode=returncode, stdout=stdout, stderr=stderr
    )


@pytest.fixture
def connection(key_file):
    config = SSHConfig(key_path=str(key_file), user="ubuntu")
    return SSHConnection(host="203.0.113.10", config=config)


class TestSSHConnection:
    """Test ssh command line construction."""

    def test_default_policy_is_strict(self, connection):
        assert connection.config.host_key_policy == "strict"
        assert "StrictHostKeyChecking=yes" in connection.ssh_command_prefix

    @pytest.mark.parametrize(
        "policy,value", [("strict", "yes"), ("accept-new", "accept-new"), ("off", "no")]
    )
    def test_host_key_policy_option(self, key_file, policy, value):
        config = SSHConfig(key_path=str(key_file), user="ubuntu", host_key_policy=policy)
        prefix = SSHConnection(host="10.0.0.1", config=config).ssh_command_prefix
        assert f"StrictHostKeyChecking={value}" in prefix

    def test_unknown_policy_rejected(self, key_file):
        with pytest.raises(ValueError):
            SSHConfig(key_path=str(key_file), user="ubuntu", host_key_policy="yolo")

    def test_non_interactive_options(self, connection):
        prefix = connection.ssh_command_prefix
        assert "BatchMode=yes" in prefix
        assert "ConnectTimeout=10" in prefix
        assert prefix[-1] == "ubuntu@203.0.113.10"

    def test_port_option(self, key_file):
        config = SSHConfig(key_path=str(key_file), user="ubuntu")
        prefix = SSHConnection(host="10.0.0.1", config=config, port=2222).ssh_command_prefix
        assert prefix[prefix.index("-p") + 1] == "2222"

    def test_build_command_appends_remote_command(self, connection):
        assert connection.build_command("uptime")[-1] == "uptime"


class TestSSHService:
    """Test SSHService command execution."""

    def test_run_success(self, connection):
        with patch("subprocess.run", return_value=completed(0, "ok\n")) as run:
            result = SSHService(connection).run("echo ok")

        assert result.is_success
        assert result.stdout == "ok\n"
        assert run.call_args.args[0][-1] == "echo ok"
        assert run.call_args.kwargs["timeout"] == 1800

    def test_nonzero_exit_is_returned(self, connection):
        with patch("subprocess.run", return_value=completed(1, "", "boom")):
            result = SSHService(connection).run("false")

        assert result.is_failure
        assert result.output == "boom"

    def test_exit_255_is_connectivity_error(self, connection):
        with patch(
            "subprocess.run",
            return_value=completed(255, "", "Permission denied (publickey)."),
        ):
            with pytest.raises(ConnectivityError) as exc_info:
                SSHService(connection).run("uptime")

        assert exc_info.value.stage == "connect"
        assert "Permission denied" in str(exc_info.value)

    def test_timeout_is_connectivity_error(self, connection):
        with patch(
            "subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="ssh", timeout=5)
        ):
            with pytest.raises(ConnectivityError):
                SSHService(connection).run("sleep 100", timeout=5)

    def test_missing_ssh_binary(self, connection):
        with patch("subprocess.run", side_effect=FileNotFoundError("ssh")):
            with pytest.raises(ConnectivityError):
                SSHService(connection).run("uptime")

    def test_run_script_uses_stdin(self, connection):
        with patch("subprocess.run", return_value=completed(0)) as run:
            SSHService(connection).run_script("set -e\necho hi\n")

        assert run.call_args.args[0][-1] == "bash -s"
        assert run.call_args.kwargs["input"] == "set -e\necho hi\n"

    def test_put_file_uses_sudo_tee(self, connection):
        with patch("subprocess.run", return_value=completed(0)) as run:
            SSHService(connection).put_file("/etc/nginx/sites-available/app", "server {}")

        assert run.call_args.args[0][-1] == "sudo tee /etc/nginx/sites-available/app > /dev/null"
        assert run.call_args.kwargs["input"] == "server {}"

    def test_probe(self, connection):
        with patch("subprocess.run", return_value=completed(0, "SSH connection successful")):
            assert SSHService(connection).probe() is True
        with patch("subprocess.run", return_value=completed(255)):
            assert SSHService(connection).probe() is False

    def test_ensure_reachable_raises(self, connection):
        with patch("subprocess.run", return_value=completed(255)):
            with pytest.raises(ConnectivityError) as exc_info:
                SSHService(connection).ensure_reachable()
        assert "ubuntu@203.0.113.10" in exc_info.value.message

    def test_commands_are_logged(self, connection, logger):
        with patch("subprocess.run", return_value=completed(0, "hello")):
            SSHService(connection, logger=logger).run("echo hello")

        log = logger.log_path.read_text()
        assert "Executing: echo hello" in log
        assert "[stdout] hello" in log
