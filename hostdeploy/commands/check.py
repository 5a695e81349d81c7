"""Check command - parameter validation and SSH connectivity only"""

import click
from rich.table import Table

from hostdeploy.base import RequestCommand
from hostdeploy.commands.deploy import request_options
from hostdeploy.services.pipeline import DeploymentPipeline


class CheckCommand(RequestCommand):
    """Validate parameters and test SSH access without changing the host."""

    def execute(self) -> None:
        """Execute check command."""
        settings = self.load_settings()
        request = self.build_request()

        self.show_header(
            title="Connectivity Check",
            subtitle="Validating parameters and SSH access (no remote changes)",
            project=request.project_name or None,
        )

        logger = self.init_logger(
            request.project_name,
            "check",
            logs_dir=settings.logs_dir,
            secrets=[request.access_token],
        )

        pipeline = DeploymentPipeline(settings=settings, logger=logger)
        pipeline.check(request)

        if self.json_output:
            self.output_json(
                {
                    "success": True,
                    "project_name": request.project_name,
                    "target": request.target,
                    "host_key_policy": settings.host_key_policy,
                }
            )
            return

        table = Table(title="Check Report", title_justify="left", padding=(0, 1))
        table.add_column("Check", style="cyan", no_wrap=True)
        table.add_column("Status")
        table.add_column("Details", style="dim")
        table.add_row("✅ Parameters", "[green]Valid[/green]", request.project_name)
        table.add_row(
            "✅ SSH",
            "[green]Reachable[/green]",
            f"{request.target} ({settings.host_key_policy})",
        )

        self.console.print()
        self.console.print(table)
        self.print_log_location()


@click.command(name="check")
@request_options
def check(
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
):
    """
    Validate parameters and test SSH connectivity

    Checks:
    - Repository URL, host, port, branch and token format
    - SSH key file exists and is readable
    - Remote host accepts the key
    """
    cmd = CheckCommand(
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
        },
        interactive=not no_input,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()
