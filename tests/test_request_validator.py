"""Tests for deployment request validation."""

import pytest

from hostdeploy.exceptions import ValidationError
from hostdeploy.models.request import derive_project_name
from hostdeploy.services.request_validator import RequestValidator


class TestProjectName:
    """Test project name derivation from repository URLs."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://github.com/acme/shop-api.git", "shop-api"),
            ("https://github.com/acme/shop-api", "shop-api"),
            ("https://github.com/acme/shop-api/", "shop-api"),
            ("http://git.internal/team/Billing.git", "Billing"),
            ("https://github.com", ""),
        ],
    )
    def test_derive_project_name(self, url, expected):
        assert derive_project_name(url) == expected

    def test_image_name_is_lowercase(self, make_request):
        request = make_request(repository_url="https://github.com/acme/ShopAPI.git")
        assert request.project_name == "ShopAPI"
        assert request.image_name == "shopapi"

    def test_token_not_in_repr_or_dict(self, make_request, token):
        request = make_request()
        assert token not in repr(request)
        assert "access_token" not in request.to_dict()


class TestRequestValidator:
    """Test RequestValidator checks."""

    def test_valid_request(self, make_request):
        result = RequestValidator().validate(make_request())
        assert result.is_valid
        assert result.errors == []

    def test_port_as_digit_string_is_valid(self, make_request):
        result = RequestValidator().validate(make_request(application_port="8080"))
        assert result.is_valid

    @pytest.mark.parametrize("url", ["git@github.com:acme/app.git", "ftp://host/app.git", ""])
    def test_invalid_url(self, make_request, url):
        result = RequestValidator().validate(make_request(repository_url=url))
        assert not result.is_valid
        assert any(e.startswith("Invalid URL format") for e in result.errors)

    def test_url_without_project_name(self, make_request):
        result = RequestValidator().validate(make_request(repository_url="https://github.com/"))
        assert not result.is_valid

    @pytest.mark.parametrize("host", ["256.1.1.1", "10.0.0", "example.com", "", "1.2.3.4.5"])
    def test_invalid_host(self, make_request, host):
        result = RequestValidator().validate(make_request(remote_host=host))
        assert result.errors == [f"Invalid IP address: {host!r}"]

    def test_hostname_allowed_when_enabled(self, make_request):
        result = RequestValidator(allow_hostnames=True).validate(
            make_request(remote_host="deploy.example.com")
        )
        assert result.is_valid

    def test_bad_octet_rejected_even_with_hostnames(self, make_request):
        result = RequestValidator(allow_hostnames=True).validate(
            make_request(remote_host="300.1.1.1")
        )
        assert not result.is_valid

    @pytest.mark.parametrize(
        "port", [0, 65536, "abc", "", "-1", "80.5", True, "²", "３０００", "1234567"]
    )
    def test_invalid_port(self, make_request, port):
        result = RequestValidator().validate(make_request(application_port=port))
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Invalid port number")

    @pytest.mark.parametrize("port", [1, 65535])
    def test_port_bounds(self, make_request, port):
        assert RequestValidator().validate(make_request(application_port=port)).is_valid

    def test_missing_key_file(self, make_request, tmp_path):
        missing = tmp_path / "nope"
        result = RequestValidator().validate(make_request(ssh_key_path=str(missing)))
        assert result.errors == [f"File not found: {missing}"]

    def test_key_path_that_is_a_directory(self, make_request, tmp_path):
        result = RequestValidator().validate(make_request(ssh_key_path=str(tmp_path)))
        assert not result.is_valid

    def test_empty_token(self, make_request):
        result = RequestValidator().validate(make_request(access_token="  "))
        assert result.errors == ["Personal access token cannot be empty"]

    def test_branch_with_whitespace(self, make_request):
        result = RequestValidator().validate(make_request(branch="feature x"))
        assert not result.is_valid

    def test_empty_user(self, make_request):
        result = RequestValidator().validate(make_request(remote_user=""))
        assert not result.is_valid

    @pytest.mark.parametrize(
        "user", ["-oProxyCommand=touch /tmp/x", "-lroot", "root@evil", "ubuntu admin", "9user"]
    )
    def test_invalid_user(self, make_request, user):
        result = RequestValidator().validate(make_request(remote_user=user))
        assert result.errors == [f"Invalid remote server username: {user!r}"]

    @pytest.mark.parametrize("user", ["ubuntu", "ec2-user", "_deploy", "svc.app", "MACHINE$"])
    def test_valid_user(self, make_request, user):
        assert RequestValidator().validate(make_request(remote_user=user)).is_valid

    def test_all_errors_reported(self, make_request):
        request = make_request(
            repository_url="not-a-url",
            remote_host="999.0.0.1",
            application_port=70000,
            access_token="",
        )
        result = RequestValidator().validate(request)
        assert len(result.errors) == 4

    def test_ensure_valid_raises(self, make_request):
        with pytest.raises(ValidationError) as exc_info:
            RequestValidator().ensure_valid(make_request(application_port=0))
        assert exc_info.value.stage == "validate"
        assert len(exc_info.value.errors) == 1

    def test_errors_never_contain_token(self, make_request, token):
        request = make_request(repository_url="bad", application_port="x")
        with pytest.raises(ValidationError) as exc_info:
            RequestValidator().ensure_valid(request)
        assert token not in str(exc_info.value)
