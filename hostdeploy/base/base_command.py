"""
Command base class

Shared plumbing for hostdeploy commands: run logger, header, console
messages, JSON documents and the mapping from errors to exit statuses.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape

from hostdeploy.exceptions import HostDeployError
from hostdeploy.logger import DeployLogger
from hostdeploy.ui_components import show_header

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CANCELLED = 130


class BaseCommand(ABC):
    """
    Subclasses implement `execute()`; callers use `run()`.

    `run()` turns a HostDeployError into exit status 1 with the failed
    stage reported, Ctrl-C into 130, and always closes the run log.
    """

    def __init__(
        self,
        verbose: bool = False,
        json_output: bool = False,
        console: Optional[Console] = None,
    ):
        self.verbose = verbose
        self.json_output = json_output
        self.console = console or Console()
        self.logger: Optional[DeployLogger] = None

    def init_logger(
        self,
        project_name: str,
        command_name: str,
        logs_dir: str,
        secrets: Optional[List[str]] = None,
    ) -> DeployLogger:
        """
        Open the run log.

        In JSON mode the logger gets a silent console so stdout carries only
        the final document.
        """
        self.logger = DeployLogger(
            project_name,
            command_name,
            verbose=self.verbose,
            logs_dir=logs_dir,
            secrets=secrets,
            console_=Console(quiet=True) if self.json_output else self.console,
        )
        return self.logger

    def output_json(self, data: Dict[str, Any], exit_code: int = EXIT_OK) -> None:
        """Print a JSON document (secrets masked); exit if exit_code is non-zero."""
        document = json.dumps(data, indent=2, default=str)
        if self.logger:
            document = self.logger.redact(document)
        print(document)
        if exit_code != EXIT_OK:
            raise SystemExit(exit_code)

    def show_header(self, title: str, **kwargs) -> None:
        """Branded header; suppressed in verbose and JSON modes."""
        if self.verbose or self.json_output:
            return
        show_header(title=title, console=self.console, **kwargs)

    def _say(self, template: str, message: str) -> None:
        if self.json_output:
            return
        if self.logger:
            message = self.logger.redact(message)
        self.console.print(template.format(escape(message)))

    def print_success(self, message: str) -> None:
        self._say("[green]✓ {}[/green]", message)

    def print_error(self, message: str) -> None:
        self._say("[red]✗ {}[/red]", message)

    def print_warning(self, message: str) -> None:
        self._say("[yellow]⚠ {}[/yellow]", message)

    def print_dim(self, message: str) -> None:
        self._say("[dim]{}[/dim]", message)

    def print_log_location(self) -> None:
        if self.logger:
            self._say("\n[dim]Log:[/dim] {}\n", str(self.logger.log_path))

    def handle_error(self, error: HostDeployError) -> None:
        """Report which stage failed, what happened and the captured output."""
        summary = f"[{error.stage or 'unknown'}] {type(error).__name__}: {error.message}"
        if self.logger:
            self.logger.log_error(summary, context=error.context)
            return
        self.print_error(summary)
        if error.context:
            self.print_dim(f"Context: {error.context}")

    @abstractmethod
    def execute(self, **kwargs) -> None:
        """Command body."""

    def run(self, **kwargs) -> None:
        try:
            self.execute(**kwargs)
        except KeyboardInterrupt:
            if self.logger:
                self.logger.log("Cancelled by user", "WARNING")
            self.print_warning("Cancelled")
            self.print_log_location()
            raise SystemExit(EXIT_CANCELLED)
        except SystemExit:
            raise
        except HostDeployError as e:
            self.handle_error(e)
            if self.json_output:
                self.output_json(
                    {
                        "success": False,
                        "failed_stage": e.stage,
                        "error_detail": e.format_message(),
                    },
                    exit_code=EXIT_FAILED,
                )
            self.print_log_location()
            raise SystemExit(EXIT_FAILED)
        except Exception as e:
            if self.logger:
                self.logger.log_error(f"{type(e).__name__}: {e}")
            else:
                self.print_error(f"{type(e).__name__}: {e}")
            self.print_log_location()
            raise SystemExit(EXIT_FAILED)
        finally:
            if self.logger:
                self.logger.close()
