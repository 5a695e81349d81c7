"""Render-proxy command - print the Nginx site file a deploy would install"""

import click

from hostdeploy.models.deployment import ProxyRoute
from hostdeploy.services.proxy_configurer import render_proxy_config


@click.command(name="render-proxy")
@click.option("--project", "-n", required=True, help="Project name (site file name)")
@click.option(
    "--port",
    "-p",
    required=True,
    type=click.IntRange(1, 65535),
    help="Application port to proxy to",
)
def render_proxy(project, port):
    """
    Print the Nginx reverse-proxy config for a project

    Examples:
        hostdeploy render-proxy -n my-app -p 3000
    """
    route = ProxyRoute(project_name=project, target_port=port)
    click.echo(f"# {route.config_path}")
    click.echo(render_proxy_config(route), nl=False)
