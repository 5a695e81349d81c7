"""
Request Command Base Class

Base class for commands that act on a deployment request.
Resolves configuration and builds the request from options, config file
and prompts.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from rich.prompt import Prompt

from hostdeploy.constants import DEFAULT_BRANCH, DEFAULT_SSH_KEY_PATH
from hostdeploy.models.request import DeploymentRequest
from hostdeploy.models.settings import DeploySettings
from hostdeploy.services.config_service import ConfigService
from .base_command import BaseCommand

PROMPTS = {
    "repository_url": ("[?] Git Repository URL", None),
    "branch": ("[?] Branch name", DEFAULT_BRANCH),
    "remote_user": ("[?] Remote server username", None),
    "remote_host": ("[?] Remote server IP", None),
    "ssh_key_path": ("[?] SSH key path", DEFAULT_SSH_KEY_PATH),
    "application_port": ("[?] Application port (container internal port)", None),
}


class RequestCommand(BaseCommand):
    """
    Base class for request-driven commands.

    Provides:
    - Config file / environment resolution
    - Interactive prompting for missing parameters
    - DeploymentRequest construction
    """

    def __init__(
        self,
        options: Dict[str, Any],
        config_path: Optional[str] = None,
        setting_overrides: Optional[Dict[str, Any]] = None,
        interactive: bool = True,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(verbose=verbose, json_output=json_output)
        self.options = options
        self.interactive = interactive and not json_output
        self.config_service = ConfigService(Path(config_path) if config_path else None)
        self.setting_overrides = setting_overrides or {}
        self.settings: Optional[DeploySettings] = None

    def load_settings(self) -> DeploySettings:
        """Resolve settings once."""
        if self.settings is None:
            self.settings = self.config_service.load_settings(self.setting_overrides)
        return self.settings

    def build_request(self) -> DeploymentRequest:
        """
        Build the request from options, config defaults and prompts.

        Values are not validated here; the pipeline's validate stage does
        that and reports every problem at once.
        """
        defaults = self.config_service.deployment_defaults()
        values: Dict[str, Any] = {}

        for key, (question, fallback) in PROMPTS.items():
            value = self.options.get(key)
            if value in (None, ""):
                value = defaults.get(key)
            if value in (None, "") and self.interactive:
                value = Prompt.ask(question, default=fallback, console=self.console)
            if value in (None, ""):
                value = fallback
            values[key] = "" if value is None else value

        token = self.options.get("access_token") or self.config_service.access_token()
        if not token and self.interactive:
            token = Prompt.ask(
                "[?] Personal Access Token (PAT)", password=True, console=self.console
            )

        return DeploymentRequest(
            repository_url=str(values["repository_url"]).strip(),
            access_token=(token or "").strip(),
            remote_user=str(values["remote_user"]).strip(),
            remote_host=str(values["remote_host"]).strip(),
            application_port=values["application_port"],
            branch=str(values["branch"]).strip() or DEFAULT_BRANCH,
            ssh_key_path=str(values["ssh_key_path"]).strip(),
        )
