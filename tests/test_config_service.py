"""Tests for configuration loading."""

import pytest

from hostdeploy.exceptions import ConfigurationError
from hostdeploy.models.settings import DeploySettings
from hostdeploy.services.config_service import ConfigService


def write_config(directory, text):
    path = directory / "hostdeploy.yml"
    path.write_text(text)
    return path


class TestDeploySettings:
    """Test settings defaults and coercion."""

    def test_defaults(self):
        settings = DeploySettings()
        assert settings.host_key_policy == "strict"
        assert settings.connect_timeout == 10
        assert settings.grace_period == 5.0
        assert settings.compose_command == "docker-compose"

    def test_from_dict_coerces_strings(self):
        settings = DeploySettings.from_dict(
            {"connect_timeout": "30", "grace_period": "2", "allow_hostnames": "yes"}
        )
        assert settings.connect_timeout == 30
        assert settings.grace_period == 2.0
        assert settings.allow_hostnames is True

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            DeploySettings.from_dict({"conect_timeout": 5})

    def test_merged_ignores_none(self):
        settings = DeploySettings().merged({"ssh_port": 2222, "grace_period": None})
        assert settings.ssh_port == 2222
        assert settings.grace_period == 5.0


class TestConfigService:
    """Test ConfigService resolution."""

    def test_no_config_file(self, tmp_path):
        service = ConfigService(working_dir=tmp_path, environ={})
        assert service.config_path is None
        assert service.deployment_defaults() == {}
        assert service.load_settings() == DeploySettings()

    def test_reads_file(self, tmp_path):
        write_config(
            tmp_path,
            "deployment:\n"
            "  repository_url: https://github.com/acme/app.git\n"
            "  application_port: 8080\n"
            "settings:\n"
            "  host_key_policy: accept-new\n"
            "  grace_period: 1\n",
        )
        service = ConfigService(working_dir=tmp_path, environ={})

        assert service.deployment_defaults() == {
            "repository_url": "https://github.com/acme/app.git",
            "application_port": 8080,
        }
        settings = service.load_settings()
        assert settings.host_key_policy == "accept-new"
        assert settings.grace_period == 1.0

    def test_precedence(self, tmp_path):
        write_config(tmp_path, "settings:\n  connect_timeout: 20\n  ssh_port: 2200\n")
        service = ConfigService(
            working_dir=tmp_path,
            environ={"HOSTDEPLOY_CONNECT_TIMEOUT": "30", "HOSTDEPLOY_SSH_PORT": "2201"},
        )

        settings = service.load_settings({"connect_timeout": 40, "ssh_port": None})

        assert settings.connect_timeout == 40
        assert settings.ssh_port == 2201

    def test_token_in_file_rejected(self, tmp_path):
        write_config(tmp_path, "deployment:\n  access_token: ghp_leak\n")
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigService(working_dir=tmp_path, environ={}).deployment_defaults()
        assert "ghp_leak" not in str(exc_info.value)

    def test_unknown_deployment_key(self, tmp_path):
        write_config(tmp_path, "deployment:\n  hostname: 1.2.3.4\n")
        with pytest.raises(ConfigurationError):
            ConfigService(working_dir=tmp_path, environ={}).deployment_defaults()

    def test_invalid_setting_value(self, tmp_path):
        service = ConfigService(
            working_dir=tmp_path, environ={"HOSTDEPLOY_CONNECT_TIMEOUT": "soon"}
        )
        with pytest.raises(ConfigurationError):
            service.load_settings()

    def test_invalid_yaml(self, tmp_path):
        write_config(tmp_path, "deployment: [unclosed\n")
        with pytest.raises(ConfigurationError):
            ConfigService(working_dir=tmp_path, environ={}).load_raw()

    def test_explicit_missing_file(self, tmp_path):
        service = ConfigService(config_path=tmp_path / "other.yml", working_dir=tmp_path)
        with pytest.raises(ConfigurationError):
            service.load_raw()

    def test_token_from_environment(self, tmp_path):
        service = ConfigService(
            working_dir=tmp_path, environ={"HOSTDEPLOY_ACCESS_TOKEN": "from-env"}
        )
        assert service.access_token() == "from-env"

    def test_token_from_dotenv(self, tmp_path):
        (tmp_path / ".env").write_text("HOSTDEPLOY_ACCESS_TOKEN=from-dotenv\n")
        service = ConfigService(working_dir=tmp_path, environ={})
        assert service.access_token() == "from-dotenv"

    def test_no_token(self, tmp_path):
        assert ConfigService(working_dir=tmp_path, environ={}).access_token() is None
