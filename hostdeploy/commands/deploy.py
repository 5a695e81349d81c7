"""Deploy command - full remote deployment"""

import click

from hostdeploy.base import RequestCommand
from hostdeploy.constants import HOST_KEY_POLICIES, SUCCESS_DEPLOYED
from hostdeploy.services.pipeline import DeploymentPipeline
from hostdeploy.ui_components import show_outcome


class DeployCommand(RequestCommand):
    """Provision the host, fetch the release, run it and put Nginx in front."""

    def execute(self) -> None:
        """Execute deploy command."""
        settings = self.load_settings()
        request = self.build_request()

        self.show_header(
            title="Deploy",
            project=request.project_name or None,
            details={
                "Repository": request.repository_url,
                "Branch": request.branch,
                "Server": request.target,
                "Application Port": request.application_port,
            },
        )

        logger = self.init_logger(
            request.project_name,
            "deploy",
            logs_dir=settings.logs_dir,
            secrets=[request.access_token],
        )
        if not self.json_output:
            self.print_dim(f"Log file: {logger.log_path}")

        pipeline = DeploymentPipeline(settings=settings, logger=logger)
        outcome = pipeline.run(request)

        if self.json_output:
            self.output_json(outcome.to_dict(), exit_code=outcome.exit_code)
            return

        show_outcome(outcome, console=self.console)
        self.console.print()
        if outcome.has_warnings:
            self.print_warning(
                "Deployed with warnings - check firewall/security group for port 80"
            )
        self.print_success(SUCCESS_DEPLOYED)
        self.print_success(f"Access your application at: {outcome.public_url}")
        self.print_log_location()


def request_options(func):
    """Options shared by commands that build a deployment request."""
    options = [
        click.option("--repo", "repository_url", help="Git repository URL (http/https)"),
        click.option(
            "--token",
            "access_token",
            envvar="HOSTDEPLOY_ACCESS_TOKEN",
            help="Personal access token (prefer the HOSTDEPLOY_ACCESS_TOKEN env var)",
        ),
        click.option("--branch", "-b", help="Branch to deploy [default: main]"),
        click.option("--user", "-u", "remote_user", help="Remote server username"),
        click.option("--host", "-H", "remote_host", help="Remote server IPv4 address"),
        click.option("--key", "-i", "ssh_key_path", help="SSH private key path"),
        click.option(
            "--port", "-p", "application_port", help="Application (container internal) port"
        ),
        click.option(
            "--config", "-c", "config_path", help="Config file [default: ./hostdeploy.yml]"
        ),
        click.option(
            "--host-key-policy",
            type=click.Choice(list(HOST_KEY_POLICIES)),
            help="SSH host key verification [default: strict]",
        ),
        click.option(
            "--connect-timeout", type=int, help="SSH connect timeout in seconds [default: 10]"
        ),
        click.option(
            "--no-input", is_flag=True, help="Never prompt; fail on missing parameters"
        ),
        click.option("--verbose", "-v", is_flag=True, help="Show all command output"),
        click.option("--json", "json_output", is_flag=True, help="Output in JSON format"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.command(name="deploy")
@request_options
@click.option(
    "--grace-period",
    type=float,
    help="Seconds to wait before checking the container [default: 5]",
)
def deploy(
    repository_url,
    access_token,
    branch,
    remote_user,
    remote_host,
    ssh_key_path,
    application_port,
    config_path,
    host_key_policy,
    connect_timeout,
    no_input,
    verbose,
    json_output,
    grace_period,
):
    """
    Deploy a Dockerized repository to a remote host behind Nginx

    This command will:
    1. Validate parameters and test SSH access
    2. Install Docker, docker-compose and Nginx if missing
    3. Clone or update the repository on the host
    4. Build and (re)start the container(s)
    5. Point Nginx port 80 at the application port
    6. Check the application answers locally and externally

    Examples:
        hostdeploy deploy --repo https://github.com/acme/api.git -u ubuntu -H 203.0.113.10 -p 3000
        hostdeploy deploy -c hostdeploy.yml --host-key-policy accept-new
        hostdeploy deploy --json --no-input
    """
    cmd = DeployCommand(
        options={
            "repository_url": repository_url,
            "access_token": access_token,
            "branch": branch,
            "remote_user": remote_user,
            "remote_host": remote_host,
            "ssh_key_path": ssh_key_path,
            "application_port": application_port,
        },
        config_path=config_path,
        setting_overrides={
            "host_key_policy": host_key_policy,
            "connect_timeout": connect_timeout,
            "grace_period": grace_period,
        },
        interactive=not no_input,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()
