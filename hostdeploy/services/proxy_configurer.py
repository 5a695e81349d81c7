"""Nginx reverse-proxy configuration service."""

import shlex
from pathlib import Path
from typing import Optional

from jinja2 import Template

from hostdeploy.constants import (
    NGINX_DEFAULT_SITE,
    NGINX_SITES_ENABLED,
    NGINX_SYNTAX_EXIT_CODE,
    NGINX_TEMPLATE,
)
from hostdeploy.exceptions import ProxyConfigError
from hostdeploy.logger import DeployLogger
from hostdeploy.models.deployment import ProxyRoute
from hostdeploy.models.results import ProxyResult
from hostdeploy.services.ssh_service import SSHService

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def render_proxy_config(route: ProxyRoute) -> str:
    """
    Render the Nginx site file for a route.

    Args:
        route: Route to render

    Returns:
        Nginx server block
    """
    template_content = (TEMPLATES_DIR / NGINX_TEMPLATE).read_text()
    return Template(template_content, keep_trailing_newline=True).render(
        project_name=route.project_name,
        public_port=route.public_port,
        server_name=route.server_name,
        target_port=route.target_port,
    )


class ProxyConfigurer:
    """
    Installs one Nginx site per project and reloads Nginx.

    The site file is replaced (never merged) on every run. A config that
    fails `nginx -t` is rolled back on the host before anything reloads, so
    the previously active configuration keeps serving.
    """

    def __init__(self, ssh: SSHService, logger: Optional[DeployLogger] = None):
        self.ssh = ssh
        self.logger = logger

    def configure_proxy(self, route: ProxyRoute) -> ProxyResult:
        """
        Render, install, syntax-check and apply a route.

        Args:
            route: Route to install

        Returns:
            ProxyResult with installed paths

        Raises:
            ProxyConfigError: On upload, syntax-check or reload failure
        """
        content = render_proxy_config(route)

        upload = self.ssh.put_file(route.staging_path, content)
        if upload.is_failure:
            raise ProxyConfigError(
                f"Failed to upload proxy config for {route.project_name}",
                context=upload.output or None,
            )

        activation = self.ssh.run_script(
            self.activation_script(route),
            display=f"activate nginx site {route.project_name}",
        )
        if activation.returncode == NGINX_SYNTAX_EXIT_CODE:
            raise ProxyConfigError(
                "Nginx rejected the generated configuration; previous configuration restored",
                context=activation.output or None,
            )
        if activation.is_failure:
            raise ProxyConfigError(
                f"Failed to activate proxy config (exit {activation.returncode})",
                context=activation.output or None,
            )

        if self.logger:
            self.logger.success(f"Nginx config written to {route.config_path}")

        reload = self.ssh.run("sudo systemctl reload nginx")
        if reload.is_failure:
            raise ProxyConfigError(
                f"Nginx reload failed (exit {reload.returncode})",
                context=reload.output or None,
            )

        return ProxyResult(
            config_path=route.config_path,
            enabled_path=route.enabled_path,
            syntax_check=activation.output,
            reloaded=True,
        )

    @staticmethod
    def activation_script(route: ProxyRoute) -> str:
        """
        Script that swaps the staged file in and validates it.

        Backs up the current site file, its link and the default site, moves
        the staged file over the site file, links it, drops the default site
        and runs `nginx -t`. On failure every backup is put back and the
        script exits with NGINX_SYNTAX_EXIT_CODE.
        """
        available = shlex.quote(route.config_path)
        enabled = shlex.quote(route.enabled_path)
        staged = shlex.quote(route.staging_path)
        default = shlex.quote(f"{NGINX_SITES_ENABLED}/{NGINX_DEFAULT_SITE}")

        return f"""set -e
BACKUP=$(mktemp -d)
trap 'sudo rm -rf "$BACKUP"' EXIT

if [ -e {available} ]; then sudo cp -a {available} "$BACKUP/available"; fi
if [ -e {enabled} ] || [ -L {enabled} ]; then sudo cp -a {enabled} "$BACKUP/enabled"; fi
if [ -e {default} ] || [ -L {default} ]; then sudo cp -a {default} "$BACKUP/default"; fi

sudo mv -f {staged} {available}
sudo ln -sfn {available} {enabled}
sudo rm -f {default}

if ! sudo nginx -t 2>&1; then
    echo "[ERROR] nginx -t failed, restoring previous configuration"
    if [ -e "$BACKUP/available" ]; then sudo rm -f {available}; sudo cp -a "$BACKUP/available" {available}; else sudo rm -f {available}; fi
    if [ -e "$BACKUP/enabled" ] || [ -L "$BACKUP/enabled" ]; then sudo rm -f {enabled}; sudo cp -a "$BACKUP/enabled" {enabled}; else sudo rm -f {enabled}; fi
    if [ -e "$BACKUP/default" ] || [ -L "$BACKUP/default" ]; then sudo cp -a "$BACKUP/default" {default}; fi
    exit {NGINX_SYNTAX_EXIT_CODE}
fi

echo "[SUCCESS] Nginx configuration test passed"
"""
