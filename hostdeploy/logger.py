"""
Run logger for hostdeploy

Every run gets its own append-only log file; the console shows a compact
step view unless verbose mode streams everything. Registered secrets are
masked before anything reaches the file or the terminal.
"""

import re
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, TextIO

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.padding import Padding
from rich.spinner import Spinner
from rich.text import Text

from hostdeploy.constants import (
    DEFAULT_LOGS_DIR,
    LOG_DATE_FORMAT,
    LOG_DATETIME_FORMAT,
    LOG_TIME_FORMAT,
    PROJECT_NAME_PATTERN,
)
from hostdeploy.utils import redact, strip_ansi

console = Console()

RULE = "=" * 80
ERROR_RULE = "!" * 80

# Console style per level in verbose mode
LEVEL_STYLES = {
    "ERROR": "red",
    "WARNING": "yellow",
    "DEBUG": "dim",
}


class DeployLogger:
    """
    Log file + console reporter for one command run.

    File: <logs_dir>/<project>/<YYYY-MM-DD>/<HH-MM-SS>_<operation>.log
    """

    def __init__(
        self,
        project_name: str,
        operation: str,
        verbose: bool = False,
        logs_dir: str = DEFAULT_LOGS_DIR,
        secrets: Optional[Iterable[str]] = None,
        console_: Optional[Console] = None,
    ):
        """
        Args:
            project_name: Project the run is for (used in the log path)
            operation: Command name, e.g. 'deploy' or 'check'
            verbose: Stream every log line and command output to the console
            logs_dir: Root directory for log files
            secrets: Values that must never appear in the log or console
            console_: Console to print to (defaults to the module console)
        """
        # The name comes from an unvalidated URL and becomes a directory
        if not project_name or not re.match(PROJECT_NAME_PATTERN, project_name):
            project_name = "unknown"
        self.project_name = project_name
        self.operation = operation
        self.verbose = verbose
        self.console = console_ or console
        self.current_step = ""
        self.has_errors = False
        self._secrets: List[str] = [s for s in (secrets or []) if s]

        started = datetime.now()
        run_dir = Path(logs_dir) / self.project_name / started.strftime(LOG_DATE_FORMAT)
        run_dir.mkdir(parents=True, exist_ok=True)
        self.log_path: Path = run_dir / f"{started.strftime(LOG_TIME_FORMAT)}_{operation}.log"

        # Line buffered so the file can be tailed during a run
        self.log_file: Optional[TextIO] = open(self.log_path, "a", buffering=1)
        self._banner(
            "hostdeploy run log",
            {
                "Project": self.project_name,
                "Operation": operation,
                "Started": started.isoformat(),
            },
        )

    # Secrets

    def add_secret(self, secret: str) -> None:
        """Register another value to mask."""
        if secret and secret not in self._secrets:
            self._secrets.append(secret)

    def redact(self, text: str) -> str:
        return redact(text, self._secrets)

    # Low-level output

    def _write(self, text: str) -> None:
        if self.log_file is None:
            return
        self.log_file.write(self.redact(text))
        self.log_file.flush()

    def _show(self, template: str, text: str = "") -> None:
        """Print a markup template with redacted, escaped text substituted for {}."""
        self.console.print(template.format(escape(self.redact(text))))

    def _banner(self, title: str, fields: dict) -> None:
        lines = [RULE, title, RULE]
        lines += [f"{key}: {value}" for key, value in fields.items()]
        lines.append(RULE)
        self._write("\n" + "\n".join(lines) + "\n\n")

    # Public API

    def log(self, message: str, level: str = "INFO") -> None:
        """Append a timestamped line; echo it when verbose."""
        stamp = datetime.now().strftime(LOG_DATETIME_FORMAT)
        self._write(f"[{stamp}] [{level}] {message}\n")

        if self.verbose:
            style = LEVEL_STYLES.get(level)
            self._show(f"[{style}]{{}}[/{style}]" if style else "{}", message)

    def log_command(self, command: str) -> None:
        self.log(f"Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "stdout") -> None:
        """Record remote command output line by line (ANSI codes stripped)."""
        if not output:
            return

        for line in strip_ansi(output).splitlines():
            self._write(f"  [{stream}] {line}\n")

        if self.verbose:
            self._show("{}", output)

    def log_error(self, error: str, context: Optional[str] = None) -> None:
        """Write an error block to the file and always show it on the console."""
        self.has_errors = True

        stamp = datetime.now().strftime(LOG_DATETIME_FORMAT)
        block = [ERROR_RULE, f"ERROR [{stamp}]", error]
        if context:
            block.append(f"Context: {context}")
        block.append(ERROR_RULE)
        self._write("\n" + "\n".join(block) + "\n\n")

        if not self.verbose:
            self.console.print()
        self._show("[bold red]✗ {}[/bold red]", error)
        if context:
            self._show("  [color(208)]{}[/color(208)]", context)

    def step(self, step_name: str) -> None:
        """Start a pipeline stage."""
        if self.current_step and not self.verbose:
            self.console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}")

        if not self.verbose:
            self._show("[color(214)]▶[/color(214)] [white]{}[/white]", step_name)

    def success(self, message: str) -> None:
        self.log(message)
        if not self.verbose:
            self._show("  [dim]✓ {}[/dim]", message)

    def warning(self, message: str) -> None:
        self.log(message, "WARNING")
        if not self.verbose:
            self._show("  [yellow]⚠[/yellow] [dim]{}[/dim]", message)

    @contextmanager
    def progress(self, description: str) -> Iterator[None]:
        """
        Show a spinner while a long remote operation runs.

        In verbose mode output streams to the console instead, so no
        spinner is drawn.
        """
        self.log(f"{description}...")

        if self.verbose:
            yield
            return

        shown = self.redact(description)
        label = escape(shown)
        spinner = Spinner("dots", text=f"[cyan]{label}...[/cyan]")
        with Live(
            Padding(spinner, (0, 0, 0, 2)), console=self.console, refresh_per_second=10
        ) as live:
            try:
                yield
            except BaseException:
                live.update(Text.assemble(("  ✗ ", "red"), (shown, "dim")))
                raise
            live.update(Text.assemble(("  ✓ ", "dim"), (shown, "dim")))

    def close(self) -> None:
        """Write the footer and close the file. Safe to call twice."""
        if self.log_file is None:
            return
        self._banner(
            "hostdeploy run finished",
            {
                "Completed": datetime.now().isoformat(),
                "Status": "FAILED" if self.has_errors else "SUCCESS",
            },
        )
        self.log_file.close()
        self.log_file = None
