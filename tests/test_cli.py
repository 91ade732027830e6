"""Tests for the command line entry point and its exit codes."""

from unittest import mock

import pytest
from click.testing import CliRunner

from github_build import cli as cli_module
from github_build.cli import cli, main
from github_build.errors import RepositorySettingsError

LOCAL_ONLY = ["--skip_repository_settings", "--skip_gitignore", "--organization", "org", "--application_name", "app"]


@pytest.fixture
def go_repo(repo, write, monkeypatch):
    write("main.go", "package main\n")
    write("go.mod", "module example.com/app\n")
    monkeypatch.chdir(repo)
    return repo


@pytest.fixture
def captured(monkeypatch):
    """Replace run_build and collect the Options it is called with."""
    calls = []
    monkeypatch.setattr(cli_module, "run_build", lambda options, console=None: calls.append(options))
    return calls


class TestOptions:
    def test_parsing(self, go_repo, captured) -> None:
        result = CliRunner().invoke(cli, [
            *LOCAL_ONLY,
            "--excluded_folders", "third_party, tools,",
            "--ignored_linters", "rubocop,eslint",
            "--no_strict_version_check",
            "--options-redis", "ci/redis.yaml",
            "--skip_slack",
        ])
        assert result.exit_code == 0, result.output
        options = captured[0]
        assert options.excluded_folders == ["third_party", "tools"]
        assert options.ignored_linters == {"rubocop", "eslint"}
        assert options.strict_version_check is False
        assert options.options_config_file_redis == "ci/redis.yaml"
        assert options.skip_slack
        assert options.build_file == ".github/workflows/build.yml"

    def test_identity_is_derived(self, go_repo, captured, monkeypatch) -> None:
        monkeypatch.setattr("github_build.config.remote_slug", lambda cwd: ("acme", "billing-api"))
        CliRunner().invoke(cli, ["--skip_repository_settings"])
        assert captured[0].organization == "acme"
        assert captured[0].application_name == go_repo.resolve().name.split("-")[-1]


class TestExitCodes:
    def test_success(self, go_repo) -> None:
        result = CliRunner().invoke(cli, LOCAL_ONLY)
        assert result.exit_code == 0, result.output
        assert (go_repo / ".github/workflows/build.yml").is_file()
        assert (go_repo / ".github/dependabot.yml").is_file()
        assert "Generating build file..." in result.output

    def test_configuration_error(self, go_repo) -> None:
        result = CliRunner().invoke(cli, [*LOCAL_ONLY, "--linters_config_file", "missing.yaml"])
        assert result.exit_code == 1
        assert "Error: Missing required linters config file: missing.yaml" in result.output
        assert not (go_repo / ".github").exists()

    def test_missing_token(self, go_repo, monkeypatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        result = CliRunner().invoke(cli, ["--skip_gitignore", "--organization", "org"])
        assert result.exit_code == 1
        assert "GITHUB_TOKEN environment variable is required" in result.output

    def test_settings_mismatch(self, go_repo, monkeypatch) -> None:
        error = RepositorySettingsError("org/app: checks differ", missing=["Go Unit Tests"])
        monkeypatch.setattr(cli_module, "run_build", mock.Mock(side_effect=error))
        result = CliRunner().invoke(cli, LOCAL_ONLY)
        assert result.exit_code == 2
        assert "missing check: Go Unit Tests" in result.output

    def test_interrupted(self, go_repo, monkeypatch) -> None:
        monkeypatch.setattr(cli_module, "run_build", mock.Mock(side_effect=KeyboardInterrupt))
        assert CliRunner().invoke(cli, LOCAL_ONLY).exit_code == 130


class TestMain:
    def test_reuses_recorded_arguments(self, go_repo, write) -> None:
        header = "# github-build --skip_repository_settings --skip_gitignore --skip_slack --organization org\n"
        write(".github/workflows/build.yml", header + "name: Build\n")

        with pytest.raises(SystemExit) as exc:
            main([])

        assert exc.value.code == 0
        text = (go_repo / ".github/workflows/build.yml").read_text()
        assert text.startswith(header)
        assert "slack:" not in text

    def test_explicit_arguments_are_recorded(self, go_repo) -> None:
        with pytest.raises(SystemExit):
            main([*LOCAL_ONLY, "--skip_dependabot"])
        first_line = (go_repo / ".github/workflows/build.yml").read_text().splitlines()[0]
        assert first_line == "# github-build " + " ".join([*LOCAL_ONLY, "--skip_dependabot"])
        assert not (go_repo / ".github/dependabot.yml").exists()
