"""
hostdeploy - console presentation

Command header and the end-of-run summary table.
"""

from typing import Any, Mapping, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from hostdeploy.models.results import DeploymentOutcome

ACCENT = "color(214)"
OK = "green"
WARN = "yellow"
FAIL = "red"


def _badge(ok: bool, yes: str, no: str, no_style: str = FAIL) -> str:
    return f"[{OK}]{yes}[/{OK}]" if ok else f"[{no_style}]{no}[/{no_style}]"


def show_header(
    title: str,
    subtitle: Optional[str] = None,
    project: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
    console: Optional[Console] = None,
) -> None:
    """
    Print the `hostdeploy › ...` header block.

    Example:
        hostdeploy › Deploy
        hostdeploy › Project: shop-api
        hostdeploy › Server: ubuntu@203.0.113.10
    """
    console = console or Console()
    prefix = f" [bold {ACCENT}]hostdeploy[/bold {ACCENT}] [dim]›[/dim]"

    lines = [f"[bold white]{escape(title)}[/bold white]"]
    if subtitle:
        lines.append(f"[dim]{escape(subtitle)}[/dim]")
    rows = dict(details or {})
    if project:
        rows = {"Project": project, **rows}
    lines += [f"{escape(str(k))}: [cyan]{escape(str(v))}[/cyan]" for k, v in rows.items()]

    for line in lines:
        console.print(f"{prefix} {line}")
    console.print()


def show_outcome(outcome: DeploymentOutcome, console: Optional[Console] = None) -> None:
    """Print the deployment summary table."""
    console = console or Console()

    table = Table(title="Deployment Summary", title_justify="left", padding=(0, 1))
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Status")

    table.add_row("Deployment", _badge(outcome.success, "deployed", "failed"))
    table.add_row("Container", escape(outcome.container_status or "-"))
    table.add_row("Nginx", escape(outcome.proxy_status or "-"))
    table.add_row(
        "External access",
        _badge(outcome.external_reachable, "reachable", "not reachable", WARN),
    )
    if outcome.public_url:
        table.add_row("URL", escape(outcome.public_url))

    console.print()
    console.print(table)
