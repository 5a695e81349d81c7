#!/usr/bin/env python3
"""hostdeploy CLI - Main entry point"""

import functools
import os
import sys
import traceback

import rich_click as click
from click.exceptions import Abort, ClickException, UsageError
from rich.console import Console
from rich.panel import Panel

from hostdeploy import __version__
from hostdeploy.commands import check, deploy, render_proxy

# Help output styling
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.MAX_WIDTH = 100
click.rich_click.STYLE_COMMAND = "bold color(214)"
click.rich_click.STYLE_OPTION = "bold cyan"
click.rich_click.STYLE_SWITCH = "bold green"
click.rich_click.STYLE_USAGE = "bold color(214)"
click.rich_click.STYLE_OPTION_DEFAULT = "dim"
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "color(214)"
click.rich_click.STYLE_COMMANDS_PANEL_BORDER = "color(214)"

console = Console(stderr=True)

DEBUG_ENV = "HOSTDEPLOY_DEBUG"


def handle_cli_errors(func):
    """Turn errors that escape a command into a message and an exit status."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (Abort, KeyboardInterrupt):
            console.print("\n[yellow]⚠ Cancelled[/yellow]")
            sys.exit(130)
        except UsageError as e:
            console.print(f"[bold red]✗[/bold red] {e.format_message()}")
            command = e.ctx.command_path if e.ctx else "hostdeploy"
            console.print(f"[dim]See[/dim] [cyan]{command} --help[/cyan]")
            sys.exit(e.exit_code)
        except ClickException as e:
            e.show()
            sys.exit(e.exit_code)
        except Exception as e:
            console.print(f"[bold red]✗ {type(e).__name__}:[/bold red] {e}")
            if os.environ.get(DEBUG_ENV):
                traceback.print_exc()
            else:
                console.print(f"[dim]Set {DEBUG_ENV}=1 for a traceback[/dim]")
            sys.exit(1)

    return wrapper


@click.group(cls=click.RichGroup, invoke_without_command=True)
@click.version_option(version=__version__, prog_name="hostdeploy")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """
    hostdeploy - Deploy a Dockerized repository to one server behind Nginx.

    \b
    Typical use:
      hostdeploy check  -u ubuntu -H 203.0.113.10 ...   # validate + SSH test
      hostdeploy deploy -u ubuntu -H 203.0.113.10 ...   # full deployment
      hostdeploy render-proxy -n my-app -p 3000         # show Nginx site file

    \b
    Configuration sources (highest first):
      command-line options
      HOSTDEPLOY_<SETTING> environment variables, e.g. HOSTDEPLOY_HOST_KEY_POLICY
      ./hostdeploy.yml (deployment defaults + settings)
    The access token comes from --token, HOSTDEPLOY_ACCESS_TOKEN, .env or a prompt.
    """
    if ctx.invoked_subcommand is None:
        console.print(
            Panel.fit(
                f"[bold]hostdeploy[/bold] {__version__}\n"
                "[dim]Docker + Nginx deployments to a single host[/dim]",
                border_style="color(214)",
            )
        )
        click.echo(ctx.get_help())


cli.add_command(deploy.deploy)
cli.add_command(check.check)
cli.add_command(render_proxy.render_proxy)


@handle_cli_errors
def main():
    cli(standalone_mode=False)


if __name__ == "__main__":
    main()
