# step_workflows/variables.py
from __future__ import annotations

from typing import TYPE_CHECKING

from ..model import Job

if TYPE_CHECKING:
    from ..synthesizer import BuildState

VARIABLE_OUTPUTS = (
    "BUILD_NAME",
    "BUILD_VERSION",
    "COMMIT_MESSAGE",
    "MODIFIED_GITHUB_RUN_NUMBER",
    "DEPLOY_ON_BETA",
    "DEPLOY_ON_RC",
    "DEPLOY_ON_PROD",
    "DEPLOY_MACOS",
    "DEPLOY_TVOS",
    "DEPLOY_OPTIONS",
    "SKIP_LICENSES",
    "SKIP_LINTERS",
    "SKIP_TESTS",
    "UPDATE_PACKAGES",
    "LINTERS",
)

JOB_ID = "variables"


def output(name: str) -> str:
    """Expression reading one output of the variables job."""
    return f"needs.{JOB_ID}.outputs.{name}"


def add_variables_job(state: "BuildState") -> Job:
    """The first job of every build: resolves metadata for all later conditions."""
    builder = (
        state.job_builder(JOB_ID)
        .name("Prepare Variables")
        .default_runs_on(state.defaults.ubuntu_runner)
        .outputs({name: f"${{{{steps.variables.outputs.{name}}}}}" for name in VARIABLE_OUTPUTS})
        .step(
            "Prepare variables",
            id="variables",
            uses=state.action("variables"),
            default_with={"ssh-key": "${{secrets.SSH_KEY}}"},
        )
    )
    return state.add_job(builder)
