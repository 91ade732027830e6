"""End-to-end tests of one github-build run against a scratch repository."""

from unittest import mock

import pytest

from github_build.config import Options
from github_build.errors import ConfigError, RepositorySettingsError, VersionMismatchError
from github_build.runner import run_build
from github_build.workflow_file import read_workflow

GITIGNORE_BODY = "*.o\n# End of https://example.com/api/go\n"


@pytest.fixture
def go_repo(write):
    write("main.go", "package main\n")
    write("go.mod", "module example.com/app\n")


@pytest.fixture
def fetch():
    return mock.Mock(return_value=GITIGNORE_BODY)


def _options(**kw) -> Options:
    return Options(application_name="app", organization="org", **kw)


class TestRunBuild:
    def test_writes_every_file(self, repo, go_repo, catalog, fetch, fake_client) -> None:
        client = fake_client(protection=None)
        result = run_build(_options(), root=repo, catalog=catalog, client=client, fetch=fetch)

        assert result.checks == ["Prepare Variables", "Licenses Check", "Go Unit Tests", "Publish Statuses"]
        assert [p.relative_to(repo).as_posix() for p in result.written] == [
            ".github/workflows/build.yml",
            ".github/workflows/soup.yml",
            ".github/dependabot.yml",
            ".gitignore",
        ]
        assert list(read_workflow(repo / ".github/workflows/build.yml").jobs) == list(result.workflow.jobs)
        assert "package-ecosystem: gomod" in (repo / ".github/dependabot.yml").read_text()
        assert (repo / ".gitignore").read_text().startswith("*.o\n")
        assert client.calls[2][2]["required_status_checks"]["contexts"] == result.checks

    def test_header_records_arguments(self, repo, go_repo, catalog) -> None:
        opts = _options(skip_repository_settings=True, skip_gitignore=True, original_args=["--skip_slack"])
        run_build(opts, root=repo, catalog=catalog)
        assert (repo / ".github/workflows/build.yml").read_text().startswith("# github-build --skip_slack\n")

    def test_token_checked_before_writing(self, repo, go_repo, catalog) -> None:
        with pytest.raises(ConfigError, match="GITHUB_TOKEN"):
            run_build(_options(), root=repo, catalog=catalog, env={})
        assert not (repo / ".github").exists()

    def test_settings_mismatch_keeps_generated_files(self, repo, go_repo, catalog, fetch, fake_client) -> None:
        client = fake_client(protection={"required_status_checks": {"contexts": ["Old"]}})
        with pytest.raises(RepositorySettingsError):
            run_build(_options(), root=repo, catalog=catalog, client=client, fetch=fetch)
        assert (repo / ".github/workflows/build.yml").is_file()
        assert client.mutations() == []
        fetch.assert_not_called()

    def test_only_dependabot(self, repo, go_repo, catalog) -> None:
        result = run_build(_options(only_dependabot=True), root=repo, catalog=catalog, env={})
        assert [p.relative_to(repo).as_posix() for p in result.written] == [".github/dependabot.yml"]
        assert not (repo / ".github/workflows/build.yml").exists()

    def test_skips(self, repo, go_repo, catalog, fetch) -> None:
        opts = _options(skip_repository_settings=True, skip_gitignore=True, skip_dependabot=True)
        result = run_build(opts, root=repo, catalog=catalog, fetch=fetch)
        assert not (repo / ".github/dependabot.yml").exists()
        assert not (repo / ".gitignore").exists()
        fetch.assert_not_called()
        assert result.checks[-1] == "Publish Statuses"

    def test_bundled_catalog(self, repo, go_repo) -> None:
        opts = _options(skip_repository_settings=True, skip_gitignore=True)
        result = run_build(opts, root=repo)
        assert "go_unit_tests" in result.workflow.jobs
        assert "golangci" in result.workflow.jobs

    def test_strict_mismatch_writes_nothing(self, repo, go_repo, catalog, write) -> None:
        previous = "env:\n  GO_VERSION: '1.20'\n"
        path = write(".github/workflows/build.yml", previous)
        with pytest.raises(VersionMismatchError):
            run_build(_options(skip_repository_settings=True), root=repo, catalog=catalog)
        assert path.read_text() == previous
        assert not (repo / ".github/dependabot.yml").exists()
