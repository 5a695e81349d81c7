"""
Settings Model

Tunables that are not part of the deployment request itself.
"""

from dataclasses import dataclass, fields
from typing import Any, Dict

from hostdeploy.constants import (
    DEFAULT_COMPOSE_COMMAND,
    DEFAULT_EXTERNAL_PROBE_DELAY,
    DEFAULT_GRACE_PERIOD,
    DEFAULT_HOST_KEY_POLICY,
    DEFAULT_LOG_TAIL_LINES,
    DEFAULT_LOGS_DIR,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_REMOTE_BASE_DIR,
    DEFAULT_SSH_PORT,
    SSH_COMMAND_TIMEOUT,
    SSH_CONNECTION_TIMEOUT,
)


@dataclass
class DeploySettings:
    """Runtime settings for one deployment run."""

    connect_timeout: int = SSH_CONNECTION_TIMEOUT
    command_timeout: int = SSH_COMMAND_TIMEOUT
    host_key_policy: str = DEFAULT_HOST_KEY_POLICY
    ssh_port: int = DEFAULT_SSH_PORT
    grace_period: float = DEFAULT_GRACE_PERIOD
    external_probe_delay: float = DEFAULT_EXTERNAL_PROBE_DELAY
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    log_tail_lines: int = DEFAULT_LOG_TAIL_LINES
    logs_dir: str = DEFAULT_LOGS_DIR
    remote_base_dir: str = DEFAULT_REMOTE_BASE_DIR
    compose_command: str = DEFAULT_COMPOSE_COMMAND
    allow_hostnames: bool = False

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeploySettings":
        """
        Build settings from a mapping, coercing values to the field types.

        Unknown keys raise ValueError so typos in config files are caught.
        """
        known = {f.name: f for f in fields(cls)}
        unknown = sorted(set(data) - set(known))
        if unknown:
            raise ValueError(f"Unknown setting(s): {', '.join(unknown)}")

        values = {}
        for name, value in data.items():
            default = known[name].default
            values[name] = _coerce(value, type(default))
        return cls(**values)

    def merged(self, overrides: Dict[str, Any]) -> "DeploySettings":
        """Return a copy with non-None overrides applied."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data.update({k: v for k, v in overrides.items() if v is not None})
        return DeploySettings.from_dict(data)


def _coerce(value: Any, target: type) -> Any:
    if isinstance(value, target):
        return value
    if target is bool:
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    try:
        return target(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid value {value!r}: expected {target.__name__}") from e
