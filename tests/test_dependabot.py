"""Tests for dependabot.yml and the dependency update workflow."""

from github_build.config import Defaults
from github_build.dependabot import (
    dependabot_config,
    dependabot_ecosystems,
    dependencies_workflow,
    sync_dependencies_workflow,
    write_dependabot,
)
from github_build.model import Job, Step, Workflow
from github_build.workflow_file import read_workflow, write_workflow


def _build(with_licenses: bool = True) -> Workflow:
    wf = Workflow(name="Build")
    wf.add_job(Job(id="variables"))
    if with_licenses:
        licenses = wf.add_job(Job(id="licenses"))
        licenses.add_step(Step(name="Licenses", uses="org/soup@v1", with_={"parameters": "--custom"}))
    return wf


def _setup() -> Step:
    return Step(name="Setup", uses="org/setup@v1", if_="always()", with_={"go-version": "${{env.GO_VERSION}}"})


class TestEcosystems:
    def test_detected_anywhere_in_tree(self, repo, write, catalog) -> None:
        write("services/api/go.mod")
        write("Gemfile")
        write("node_modules/x/Gemfile")
        assert dependabot_ecosystems(repo, catalog, Defaults()) == ["github-actions", "gomod", "bundler"]

    def test_excluded(self, repo, write, catalog) -> None:
        write("third_party/go.mod")
        assert dependabot_ecosystems(repo, catalog, Defaults(), ["third_party"]) == ["github-actions"]

    def test_file_contents(self, repo) -> None:
        write_dependabot(repo / ".github/dependabot.yml", ["github-actions", "gomod"])
        text = (repo / ".github/dependabot.yml").read_text()
        assert text.startswith("version: 2\n")
        assert "package-ecosystem: gomod" in text
        assert dependabot_config(["gomod"])["updates"][0] == {
            "package-ecosystem": "gomod",
            "directory": "/",
            "schedule": {"interval": "daily"},
        }


class TestDependenciesWorkflow:
    def test_requires_license_job(self) -> None:
        assert dependencies_workflow(_build(with_licenses=False), [_setup()], ["go get -u"], Defaults()) is None

    def test_requires_steps_or_script(self) -> None:
        assert dependencies_workflow(_build(), [], [], Defaults()) is None

    def test_job_layout(self) -> None:
        wf = dependencies_workflow(_build(), [_setup()], ["go get -u ./...", "bundle update"], Defaults())
        assert wf.name == "Dependencies"
        assert wf.on["push"] == {"branches": ["dependabot/**"]}
        job = wf.jobs["update_dependencies"]
        assert job.runs_on == "macos-latest"
        assert job.permissions == {"contents": "write"}
        assert [s.name for s in job.steps] == ["Setup", "Update Dependencies", "Licenses", "Auto Commit Changes"]
        assert job.steps[0].if_ is None
        assert job.steps[1].run == "go get -u ./...\nbundle update"
        assert job.steps[2].with_ == {"parameters": "--custom"}
        assert job.steps[2].uses == "cloud-officer/ci-actions/soup@master"

    def test_previous_customizations(self) -> None:
        previous = Workflow(name="Soup")
        previous.add_job(Job(id="update_dependencies", runs_on="macos-14"))
        wf = dependencies_workflow(_build(), [_setup()], [], Defaults(), previous)
        assert wf.name == "Soup"
        assert wf.jobs["update_dependencies"].runs_on == "macos-14"


class TestSync:
    def test_written_then_removed(self, repo) -> None:
        path = sync_dependencies_workflow(repo, _build(), [_setup()], ["go get -u ./..."], Defaults())
        assert path == repo / ".github/workflows/soup.yml"
        assert read_workflow(path).job("update_dependencies") is not None

        assert sync_dependencies_workflow(repo, _build(with_licenses=False), [], [], Defaults()) is None
        assert not path.exists()

    def test_previous_steps_are_merged(self, repo) -> None:
        path = repo / ".github/workflows/soup.yml"
        previous = Workflow(name="Dependencies")
        job = previous.add_job(Job(id="update_dependencies"))
        job.add_step(Step(name="Update Dependencies", shell="bash", run="make update"))
        write_workflow(previous, path)

        sync_dependencies_workflow(repo, _build(), [_setup()], ["go get -u ./..."], Defaults())
        assert read_workflow(path).jobs["update_dependencies"].steps[1].run == "make update"
