# step_workflows/licenses.py
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from ..dsl import JobBuilder
from ..model import Job
from .variables import output

if TYPE_CHECKING:
    from ..synthesizer import BuildState

LICENSES_STEP = "Licenses"
LICENSES_WITH = {
    "ssh-key": "${{secrets.SSH_KEY}}",
    "github-token": "${{secrets.GITHUB_TOKEN}}",
    "parameters": "--no_prompt",
}


def licenses_step(state: "BuildState", builder: JobBuilder) -> JobBuilder:
    """Append the license scan step to any job."""
    return builder.step(LICENSES_STEP, uses=state.action("soup"), default_with=LICENSES_WITH)


def add_licenses_job(state: "BuildState") -> Optional[Job]:
    """
    Decide how unit tests are gated and emit the standalone license job.

    With a platform lock file, license data is a by-product of the tests, so
    the tests run when either licenses or tests are wanted and the scan runs
    inside the test job. Otherwise the two concerns run as separate jobs.
    """
    skip_tests = f"{output('SKIP_TESTS')} != '1'"

    if state.exists(state.defaults.platform_lock_file):
        state.unit_tests_condition = f"{output('SKIP_LICENSES')} != '1' || {skip_tests}"
        return None

    state.unit_tests_condition = skip_tests
    if state.options.skip_license_check:
        return None

    state.console.print_step("Adding soup...")
    builder = (
        state.job_builder("licenses")
        .name("Licenses Check")
        .default_runs_on(state.defaults.ubuntu_runner)
        .needs("variables")
        .if_(f"${{{{{output('SKIP_LICENSES')} != '1'}}}}")
    )
    return state.add_job(licenses_step(state, builder))
