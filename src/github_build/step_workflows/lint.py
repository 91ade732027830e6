# step_workflows/lint.py
from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List

from ..catalog import LinterRule
from ..detect import files_matching
from ..files import install_linter_config
from ..git_facts.git import scripts_submodule
from ..model import Job
from .variables import output

if TYPE_CHECKING:
    from ..synthesizer import BuildState


# ---------------------------------------------------------------------
# Linter jobs
# ---------------------------------------------------------------------

def linter_default_with(linter: LinterRule) -> Dict[str, object]:
    """Parameters of a freshly generated linter step (catalog options last)."""
    params: Dict[str, object] = {
        "linters": f"${{{{{output('LINTERS')}}}}}",
        "ssh-key": "${{secrets.SSH_KEY}}",
        "github_token": "${{secrets.GITHUB_TOKEN}}",
    }
    params.update(linter.options)
    return params


def linter_condition(linter: LinterRule) -> str:
    condition = f"{output('SKIP_LINTERS')} != '1'"
    if linter.condition:
        condition += f" && {linter.condition}"
    return f"${{{{{condition}}}}}"


def linter_detected(state: "BuildState", linter: LinterRule) -> bool:
    excluded = [
        *state.options.excluded_folders,
        *state.submodules,
        *state.defaults.linter_ignored_substrings,
    ]
    return bool(
        files_matching(
            str(state.path(linter.path)),
            linter.pattern,
            excluded,
            max_depth=state.defaults.max_depth,
            ignored_directories=state.defaults.ignored_directories,
        )
    )


def add_linter_jobs(state: "BuildState") -> List[Job]:
    state.console.print_step("Detecting linters...")
    scripts_dir = scripts_submodule(state.submodules)
    added: List[Job] = []

    for key, linter in state.catalog.linters.items():
        if key in state.options.ignored_linters:
            state.console.print_debug(f"{key} ignored")
            continue
        if not linter_detected(state, linter):
            continue

        state.console.print_detail(f"Enabling {linter.short_name}...")
        installed = install_linter_config(linter, state.root, scripts_dir)
        if installed:
            state.console.print_debug(installed)

        builder = (
            state.job_builder(key)
            .name(linter.long_name)
            .default_runs_on(state.defaults.ubuntu_runner)
            .needs("variables")
            .if_(linter_condition(linter))
            .default_permissions(linter.permissions)
            .step(linter.short_name, uses=linter.uses, default_with=linter_default_with(linter))
        )
        added.append(state.add_job(builder))

    return added
