"""
Configuration Management Service

Loads deployment defaults and settings from hostdeploy.yml, .env and the
environment.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import dotenv_values

from hostdeploy.constants import DEFAULT_CONFIG_FILE, ENV_ACCESS_TOKEN, ENV_PREFIX
from hostdeploy.exceptions import ConfigurationError
from hostdeploy.models.settings import DeploySettings

# Keys allowed in the `deployment` section (everything but the token)
DEPLOYMENT_KEYS = [
    "repository_url",
    "branch",
    "remote_user",
    "remote_host",
    "ssh_key_path",
    "application_port",
]
FORBIDDEN_KEYS = ["access_token", "token", "pat"]


class ConfigService:
    """
    Resolves configuration for one run.

    Precedence (highest first): command-line values, HOSTDEPLOY_* environment
    variables, .env file, hostdeploy.yml, built-in defaults.
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        working_dir: Optional[Path] = None,
        environ: Optional[Dict[str, str]] = None,
    ):
        self.working_dir = Path(working_dir or Path.cwd())
        self.explicit_path = Path(config_path).expanduser() if config_path else None
        self.environ = dict(os.environ if environ is None else environ)
        self._raw: Optional[Dict[str, Any]] = None

    @property
    def config_path(self) -> Optional[Path]:
        """Config file in use, if any."""
        if self.explicit_path:
            return self.explicit_path
        candidate = self.working_dir / DEFAULT_CONFIG_FILE
        return candidate if candidate.exists() else None

    def load_raw(self) -> Dict[str, Any]:
        """
        Load and cache the YAML config file.

        Raises:
            ConfigurationError: If an explicit file is missing or the YAML is invalid
        """
        if self._raw is not None:
            return self._raw

        path = self.config_path
        if path is None:
            self._raw = {}
            return self._raw

        if not path.exists():
            raise ConfigurationError(
                f"Config file not found: {path}",
                context=f"Create it or drop --config (default: {DEFAULT_CONFIG_FILE})",
            )

        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}", context=str(e))

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file must contain a mapping: {path}")

        self._check_no_secrets(data, path)
        self._raw = data
        return self._raw

    def _check_no_secrets(self, data: Dict[str, Any], path: Path) -> None:
        deployment = data.get("deployment") or {}
        leaked = [key for key in FORBIDDEN_KEYS if key in deployment or key in data]
        if leaked:
            raise ConfigurationError(
                f"Access tokens must not be stored in {path.name}",
                context=f"Remove '{leaked[0]}' and set {ENV_ACCESS_TOKEN} instead",
            )

    def deployment_defaults(self) -> Dict[str, Any]:
        """
        Request field defaults from the `deployment` section.

        Raises:
            ConfigurationError: On unknown keys
        """
        section = self.load_raw().get("deployment") or {}
        unknown = sorted(set(section) - set(DEPLOYMENT_KEYS))
        if unknown:
            raise ConfigurationError(
                f"Unknown deployment key(s): {', '.join(unknown)}",
                context=f"Allowed: {', '.join(DEPLOYMENT_KEYS)}",
            )
        return dict(section)

    def load_settings(self, overrides: Optional[Dict[str, Any]] = None) -> DeploySettings:
        """
        Build settings from file, environment and overrides.

        Args:
            overrides: Command-line values (None values are ignored)

        Raises:
            ConfigurationError: On unknown keys or bad values
        """
        data: Dict[str, Any] = dict(self.load_raw().get("settings") or {})

        for name in DeploySettings.field_names():
            env_key = f"{ENV_PREFIX}{name.upper()}"
            if env_key in self.environ:
                data[name] = self.environ[env_key]

        try:
            settings = DeploySettings.from_dict(data)
            return settings.merged(overrides or {})
        except ValueError as e:
            raise ConfigurationError("Invalid settings", context=str(e))

    def access_token(self) -> Optional[str]:
        """Token from the environment or a .env file in the working directory."""
        token = self.environ.get(ENV_ACCESS_TOKEN)
        if token:
            return token

        env_file = self.working_dir / ".env"
        if env_file.exists():
            return dotenv_values(env_file).get(ENV_ACCESS_TOKEN) or None
        return None
