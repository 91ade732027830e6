"""Tests for repository settings validation and the GitHub client."""

import io
import json
import urllib.error
from unittest import mock

import pytest

from github_build.errors import APIError, ConfigError, RepositorySettingsError
from github_build.github.api_client import GitHubClient
from github_build.github.settings import (
    apply_repository_settings,
    compare_checks,
    protection_payload,
    required_contexts,
    security_payload,
    token_from_env,
)

CHECKS = ["Prepare Variables", "Licenses Check", "Go Unit Tests", "Publish Statuses"]


class TestApplyRepositorySettings:
    def test_mismatch_fails_before_any_change(self, fake_client) -> None:
        client = fake_client(protection={"required_status_checks": {"contexts": CHECKS[:3] + ["Old Job"]}})
        with pytest.raises(RepositorySettingsError) as exc:
            apply_repository_settings(client, "org", "app", CHECKS)
        assert exc.value.missing == ["Publish Statuses"]
        assert exc.value.extra == ["Old Job"]
        assert "missing check: Publish Statuses" in str(exc.value)
        assert client.mutations() == []

    def test_matching_checks(self, fake_client) -> None:
        client = fake_client(protection={"required_status_checks": {"contexts": list(reversed(CHECKS))}})
        apply_repository_settings(client, "org", "app", CHECKS)
        assert client.mutations() == [
            "update_branch_protection",
            "enable_vulnerability_alerts",
            "enable_automated_security_fixes",
            "update_repository",
        ]
        assert client.calls[1] == ("get_branch_protection", "main")
        assert client.calls[2][2]["required_status_checks"]["contexts"] == CHECKS

    def test_unprotected_branch_is_first_time_setup(self, fake_client) -> None:
        client = fake_client(protection=None, repository={"private": True})
        apply_repository_settings(client, "org", "app", CHECKS)
        assert client.calls[1] == ("get_branch_protection", "master")
        assert client.calls[-1][1] == security_payload(True)
        assert len(client.mutations()) == 4

    def test_checks_objects(self) -> None:
        protection = {"required_status_checks": {"checks": [{"context": "A", "app_id": 1}, {"context": "B"}]}}
        assert required_contexts(protection) == ["A", "B"]
        assert required_contexts({}) == []


class TestPayloads:
    def test_compare(self) -> None:
        assert compare_checks(["A", "B"], ["B", "C"]) == (["A"], ["C"])

    def test_protection(self) -> None:
        payload = protection_payload(["A"])
        assert payload["required_status_checks"] == {"strict": False, "contexts": ["A"]}
        assert payload["required_pull_request_reviews"]["required_approving_review_count"] == 1

    def test_security(self) -> None:
        assert security_payload(False)["security_and_analysis"]["secret_scanning"] == {"status": "enabled"}
        assert security_payload(True)["security_and_analysis"]["advanced_security"] == {"status": "disabled"}


class TestToken:
    def test_required(self) -> None:
        with pytest.raises(ConfigError, match="GITHUB_TOKEN environment variable is required"):
            token_from_env({})
        with pytest.raises(ConfigError):
            token_from_env({"GITHUB_TOKEN": "  "})

    def test_stripped(self) -> None:
        assert token_from_env({"GITHUB_TOKEN": " abc\n"}) == "abc"


def _response(status: int, body: dict):
    response = mock.MagicMock()
    response.__enter__.return_value.status = status
    response.__enter__.return_value.read.return_value = json.dumps(body).encode()
    return response


def _http_error(code: int, body: str = ""):
    return urllib.error.HTTPError("https://api.github.com/x", code, "Error", {}, io.BytesIO(body.encode()))


class TestGitHubClient:
    def test_request_headers_and_body(self) -> None:
        client = GitHubClient("secret", base_url="https://github.example.com/api/v3/")
        with mock.patch("urllib.request.urlopen", return_value=_response(200, {})) as urlopen:
            client.update_branch_protection("org", "app", "release/1", {"a": 1})
        req = urlopen.call_args[0][0]
        assert req.full_url == "https://github.example.com/api/v3/repos/org/app/branches/release%2F1/protection"
        assert req.get_method() == "PUT"
        assert req.get_header("Authorization") == "token secret"
        assert json.loads(req.data) == {"a": 1}

    def test_get_repository(self) -> None:
        client = GitHubClient("t")
        with mock.patch("urllib.request.urlopen", return_value=_response(200, {"default_branch": "main"})):
            assert client.get_repository("org", "app") == {"default_branch": "main"}

    def test_missing_protection_is_none(self) -> None:
        client = GitHubClient("t")
        with mock.patch("urllib.request.urlopen", side_effect=_http_error(404, '{"message": "Branch not protected"}')):
            assert client.get_branch_protection("org", "app", "main") is None

    def test_errors_raise(self) -> None:
        client = GitHubClient("t")
        with mock.patch("urllib.request.urlopen", side_effect=_http_error(403, "forbidden")):
            with pytest.raises(APIError) as exc:
                client.enable_vulnerability_alerts("org", "app")
        assert exc.value.status == 403
        assert exc.value.body == "forbidden"
