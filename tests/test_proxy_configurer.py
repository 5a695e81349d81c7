"""Tests for the Nginx reverse-proxy configuration."""

import os
import shutil
import subprocess

import pytest

from hostdeploy.constants import NGINX_SYNTAX_EXIT_CODE
from hostdeploy.exceptions import ProxyConfigError
from hostdeploy.models import deployment as deployment_models
from hostdeploy.models.deployment import ProxyRoute
from hostdeploy.services import proxy_configurer
from hostdeploy.services.proxy_configurer import ProxyConfigurer, render_proxy_config

ROUTE = ProxyRoute(project_name="shop-api", target_port=3000)


class TestRenderProxyConfig:
    """Test the rendered server block."""

    def test_listen_and_proxy_pass(self):
        config = render_proxy_config(ROUTE)
        assert "listen 80;" in config
        assert "server_name _;" in config
        assert "proxy_pass http://localhost:3000;" in config

    def test_forwarding_headers(self):
        config = render_proxy_config(ROUTE)
        assert "proxy_set_header Upgrade $http_upgrade;" in config
        assert "proxy_set_header Connection 'upgrade';" in config
        assert "proxy_set_header Host $host;" in config
        assert "proxy_cache_bypass $http_upgrade;" in config

    def test_rendering_is_deterministic(self):
        assert render_proxy_config(ROUTE) == render_proxy_config(ROUTE)

    def test_paths_keyed_by_project(self):
        assert ROUTE.config_path == "/etc/nginx/sites-available/shop-api"
        assert ROUTE.enabled_path == "/etc/nginx/sites-enabled/shop-api"


class TestProxyConfigurer:
    """Test ProxyConfigurer.configure_proxy."""

    def test_installs_and_reloads(self, fake_ssh):
        result = ProxyConfigurer(fake_ssh).configure_proxy(ROUTE)

        assert fake_ssh.files[ROUTE.staging_path] == render_proxy_config(ROUTE)
        assert result.config_path == ROUTE.config_path
        assert result.reloaded is True
        assert fake_ssh.commands[-1] == "sudo systemctl reload nginx"

    def test_activation_script(self, fake_ssh):
        ProxyConfigurer(fake_ssh).configure_proxy(ROUTE)
        script = fake_ssh.scripts[0]

        assert f"sudo mv -f {ROUTE.staging_path} {ROUTE.config_path}" in script
        assert f"sudo ln -sfn {ROUTE.config_path} {ROUTE.enabled_path}" in script
        assert "sudo rm -f /etc/nginx/sites-enabled/default" in script
        assert "sudo nginx -t" in script
        assert script.index("sudo mv -f") < script.index("sudo nginx -t")

    def test_syntax_failure_does_not_reload(self, fake_ssh):
        fake_ssh.on(
            "nginx -t",
            returncode=3,
            stdout="nginx: [emerg] unknown directive\n[ERROR] nginx -t failed",
        )

        with pytest.raises(ProxyConfigError) as exc_info:
            ProxyConfigurer(fake_ssh).configure_proxy(ROUTE)

        assert exc_info.value.stage == "proxy"
        assert "previous configuration restored" in exc_info.value.message
        assert "sudo systemctl reload nginx" not in fake_ssh.commands

    def test_other_activation_failure(self, fake_ssh):
        fake_ssh.on("nginx -t", returncode=1, stderr="mv: cannot stat")
        with pytest.raises(ProxyConfigError):
            ProxyConfigurer(fake_ssh).configure_proxy(ROUTE)
        assert "sudo systemctl reload nginx" not in fake_ssh.commands

    def test_reload_failure(self, fake_ssh):
        fake_ssh.on("systemctl reload nginx", returncode=1)
        with pytest.raises(ProxyConfigError) as exc_info:
            ProxyConfigurer(fake_ssh).configure_proxy(ROUTE)
        assert "reload failed" in exc_info.value.message

    def test_upload_failure(self, fake_ssh):
        fake_ssh.on(f"put {ROUTE.staging_path}", returncode=1, stderr="Permission denied")
        with pytest.raises(ProxyConfigError):
            ProxyConfigurer(fake_ssh).configure_proxy(ROUTE)
        assert fake_ssh.scripts == []

    def test_rerun_replaces_single_site_file(self, fake_ssh):
        configurer = ProxyConfigurer(fake_ssh)
        configurer.configure_proxy(ROUTE)
        configurer.configure_proxy(ProxyRoute(project_name="shop-api", target_port=4000))

        assert list(fake_ssh.files) == [ROUTE.staging_path]
        assert "proxy_pass http://localhost:4000;" in fake_ssh.files[ROUTE.staging_path]
        assert all(ROUTE.config_path in script for script in fake_ssh.scripts)


@pytest.mark.skipif(shutil.which("bash") is None, reason="needs bash")
class TestActivationScriptOnDisk:
    """Run the activation script against temporary Nginx directories."""

    @pytest.fixture
    def sites(self, tmp_path, monkeypatch):
        available = tmp_path / "sites-available"
        enabled = tmp_path / "sites-enabled"
        available.mkdir()
        enabled.mkdir()
        monkeypatch.setattr(deployment_models, "NGINX_SITES_AVAILABLE", str(available))
        monkeypatch.setattr(deployment_models, "NGINX_SITES_ENABLED", str(enabled))
        monkeypatch.setattr(proxy_configurer, "NGINX_SITES_ENABLED", str(enabled))

        # Previously active site plus the distribution default
        (available / "shop-api").write_text("# previous config\n")
        (enabled / "shop-api").symlink_to(available / "shop-api")
        (available / "default").write_text("# default site\n")
        (enabled / "default").symlink_to(available / "default")
        return available, enabled

    def run_script(self, tmp_path, nginx_exit):
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        shims = {
            "sudo": '#!/bin/sh\nexec "$@"\n',
            "nginx": f'#!/bin/sh\necho "nginx: test run"\nexit {nginx_exit}\n',
        }
        for name, body in shims.items():
            shim = bin_dir / name
            shim.write_text(body)
            shim.chmod(0o755)

        route = ProxyRoute(project_name="shop-api", target_port=4000)
        with open(route.staging_path, "w") as f:
            f.write(render_proxy_config(route))

        env = dict(os.environ, PATH=f"{bin_dir}{os.pathsep}{os.environ['PATH']}")
        return subprocess.run(
            ["bash", "-s"],
            input=ProxyConfigurer.activation_script(route),
            capture_output=True,
            text=True,
            env=env,
        )

    def test_syntax_failure_restores_previous_config(self, tmp_path, sites):
        available, enabled = sites

        completed = self.run_script(tmp_path, nginx_exit=1)

        assert completed.returncode == NGINX_SYNTAX_EXIT_CODE
        assert "restoring previous configuration" in completed.stdout
        assert (available / "shop-api").read_text() == "# previous config\n"
        assert os.readlink(enabled / "shop-api") == str(available / "shop-api")
        assert os.readlink(enabled / "default") == str(available / "default")
        assert not (available / ".shop-api.staged").exists()

    def test_passing_config_is_swapped_in(self, tmp_path, sites):
        available, enabled = sites

        completed = self.run_script(tmp_path, nginx_exit=0)

        assert completed.returncode == 0
        assert "proxy_pass http://localhost:4000;" in (available / "shop-api").read_text()
        assert os.readlink(enabled / "shop-api") == str(available / "shop-api")
        assert not os.path.lexists(enabled / "default")
        assert not (available / ".shop-api.staged").exists()
