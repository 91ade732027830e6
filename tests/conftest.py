"""Shared fixtures: a small rule catalog and a scratch repository."""

import dataclasses
from pathlib import Path

import pytest

from github_build.catalog import GitignoreCatalog, LanguageRule, LinterRule, RuleCatalog, SetupOption
from github_build.config import Defaults, Options
from github_build.synthesizer import Synthesizer
from github_build.ui.console import Console, set_console

RUBOCOP = {
    "short_name": "RuboCop",
    "long_name": "Ruby Linter",
    "path": ".",
    "pattern": r"\.rb$",
    "uses": "cloud-officer/ci-actions/linters/rubocop@master",
    "config": ".rubocop.yml",
}

SHELLCHECK = {
    "short_name": "ShellCheck",
    "long_name": "Shell Linter",
    "path": ".",
    "pattern": r"\.sh$",
    "uses": "cloud-officer/ci-actions/linters/shellcheck@master",
    "condition": "github.event_name == 'push'",
    "options": {"severity": "warning"},
    "permissions": {"contents": "read"},
}

GO = {
    "short_name": "go",
    "long_name": "Go",
    "file_extension": "go",
    "version_files": [{"file": ".go-version", "option": "go-version"}],
    "setup_options": [{"name": "go-version", "value": "1.22"}],
    "dependencies": [
        {
            "dependency_file": "go.mod",
            "package_manager_name": "Go Modules",
            "package_manager_default": "go mod download",
            "package_manager_update": "go get -u ./...",
            "mongodb_dependency": "go.mongodb.org/mongo-driver",
            "dependabot_ecosystem": "gomod",
        }
    ],
    "unit_test_framework_name": "Go Test",
    "unit_test_framework_default": "go test ./...",
}

RUBY = {
    "short_name": "ruby",
    "long_name": "Ruby",
    "file_extension": "rb",
    "setup_options": [{"name": "ruby-version", "value": "3.3"}],
    "dependencies": [
        {
            "dependency_file": "Gemfile",
            "package_manager_name": "Bundler",
            "package_manager_default": "bundle install",
            "redis_dependency": "redis",
            "dependabot_ecosystem": "bundler",
        }
    ],
    "unit_test_framework_name": "RSpec",
    "unit_test_framework_default": "bundle exec rspec",
}


@pytest.fixture(autouse=True)
def console():
    c = Console(debug=False)
    set_console(c)
    return c


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture
def write(repo):
    """write("a/b.txt", "text") creates a file inside the scratch repository."""

    def _write(rel: str, text: str = "") -> Path:
        path = repo / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def catalog() -> RuleCatalog:
    return RuleCatalog(
        linters={
            "rubocop": LinterRule.model_validate(RUBOCOP),
            "shellcheck": LinterRule.model_validate(SHELLCHECK),
        },
        languages={
            "go": LanguageRule.model_validate(GO),
            "ruby": LanguageRule.model_validate(RUBY),
            "markdown": LanguageRule.model_validate({"short_name": "markdown", "long_name": "Markdown"}),
        },
        service_options={
            "apt": [SetupOption(name="apt-packages", value="zip")],
            "mongodb": [SetupOption(name="mongodb-version", value="7.0")],
            "mysql": [],
            "redis": [SetupOption(name="redis-version", value="7")],
            "elasticsearch": [],
        },
        gitignore=GitignoreCatalog(always=["macos"], extensions={"go": "go", "rb": "ruby"}),
    )


@pytest.fixture
def options() -> Options:
    return Options(application_name="app", organization="org")


@pytest.fixture
def synthesize(repo, catalog, options, console):
    """synthesize(old_workflow, **option_overrides) -> Synthesizer after run()."""

    def _run(old=None, defaults: Defaults = Defaults(), **overrides) -> Synthesizer:
        synth = Synthesizer(
            dataclasses.replace(options, **overrides),
            defaults,
            catalog,
            old,
            root=repo,
            console=console,
        )
        synth.run()
        return synth

    return _run


class FakeClient:
    """In-memory stand-in for GitHubClient that records every call."""

    def __init__(self, protection=None, repository=None):
        self.protection = protection
        self.repository = repository or {"default_branch": "main", "private": False}
        self.calls = []

    def get_repository(self, owner, repo):
        self.calls.append(("get_repository", owner, repo))
        return self.repository

    def get_branch_protection(self, owner, repo, branch):
        self.calls.append(("get_branch_protection", branch))
        return self.protection

    def update_branch_protection(self, owner, repo, branch, payload):
        self.calls.append(("update_branch_protection", branch, payload))

    def enable_vulnerability_alerts(self, owner, repo):
        self.calls.append(("enable_vulnerability_alerts",))

    def enable_automated_security_fixes(self, owner, repo):
        self.calls.append(("enable_automated_security_fixes",))

    def update_repository(self, owner, repo, payload):
        self.calls.append(("update_repository", payload))

    def mutations(self):
        return [c[0] for c in self.calls if not c[0].startswith("get_")]


@pytest.fixture
def fake_client():
    """fake_client(protection=..., repository=...) -> FakeClient"""
    return FakeClient
