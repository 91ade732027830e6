"""Tests for options, defaults and the argument round trip."""

from pathlib import Path

from github_build import config
from github_build.config import (
    BUNDLED_CONFIG_DIR,
    Defaults,
    Options,
    args_comment,
    args_from_file,
    default_application_name,
    resolve_config_path,
)


class TestArgsRoundTrip:
    def test_header_is_parsed_back(self, write) -> None:
        args = ["--application_name", "my app", "--excluded_folders", "a,b", "--skip_slack"]
        path = write("build.yml", args_comment(args) + "name: Build\n")
        assert args_from_file(path) == args

    def test_no_header(self, repo, write) -> None:
        assert args_from_file(write("build.yml", "name: Build\n")) == []
        assert args_from_file(repo / "missing.yml") == []
        assert args_from_file(write("empty.yml", "")) == []

    def test_no_args_no_comment(self) -> None:
        assert args_comment([]) == ""
        assert Options(original_args=["--skip_slack"]).args_comment() == "# github-build --skip_slack\n"


class TestIdentity:
    def test_application_name_is_last_dash_segment(self) -> None:
        assert default_application_name(Path("/src/my-awesome-app")) == "app"
        assert default_application_name(Path("/src/service")) == "service"

    def test_fill_identity_from_remote(self, repo, monkeypatch) -> None:
        monkeypatch.setattr(config, "remote_slug", lambda cwd: ("cloud-officer", "my-tool"))
        opts = Options().fill_identity(repo)
        assert opts.organization == "cloud-officer"
        assert opts.application_name == default_application_name(repo.resolve())

    def test_fill_identity_without_remote(self, tmp_path, monkeypatch) -> None:
        checkout = tmp_path / "acme" / "billing-api"
        checkout.mkdir(parents=True)
        monkeypatch.setattr(config, "remote_slug", lambda cwd: None)
        opts = Options().fill_identity(checkout)
        assert (opts.organization, opts.application_name) == ("acme", "api")

    def test_explicit_values_win(self, repo, monkeypatch) -> None:
        monkeypatch.setattr(config, "remote_slug", lambda cwd: ("x", "y"))
        opts = Options(application_name="web", organization="org").fill_identity(repo)
        assert (opts.organization, opts.application_name) == ("org", "web")


class TestPaths:
    def test_default_paths_are_bundled(self) -> None:
        assert resolve_config_path("config/linters.yaml") == BUNDLED_CONFIG_DIR / "linters.yaml"
        assert resolve_config_path("config/options/apt.yaml") == BUNDLED_CONFIG_DIR / "options" / "apt.yaml"
        assert (BUNDLED_CONFIG_DIR / "languages.yaml").is_file()

    def test_custom_paths_are_kept(self) -> None:
        assert resolve_config_path("ci/linters.yaml") == Path("ci/linters.yaml")

    def test_action_reference(self) -> None:
        assert Defaults().action("setup") == "cloud-officer/ci-actions/setup@master"
        assert Defaults(ci_actions_version="v2").action("slack") == "cloud-officer/ci-actions/slack@v2"
