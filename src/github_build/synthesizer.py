# synthesizer.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .catalog import RuleCatalog
from .config import Defaults, Options
from .dsl import JobBuilder
from .git_facts.git import submodule_paths
from .model import Job, Step, Workflow
from .step_workflows import deploy, licenses, lint, status, test, variables
from .ui.console import Console, get_console

DEFAULT_TRIGGERS = {
    "pull_request": {"types": ["opened", "edited", "reopened", "synchronize"]},
    "push": {"branches": ["master", "[0-9]*"], "tags": ["**"]},
}


@dataclass
class BuildState:
    """
    Everything one synthesis run reads and writes.

    `old` is read-only; `new` is the only workflow that is mutated. Phases
    communicate through the fields below, which is why their order matters.
    """
    options: Options
    defaults: Defaults
    catalog: RuleCatalog
    root: Path
    old: Workflow
    new: Workflow = field(default_factory=Workflow)
    console: Console = field(default_factory=get_console)
    submodules: List[str] = field(default_factory=list)

    # written by the licenses phase, read by language jobs
    unit_tests_condition: str = ""

    # collected by language jobs
    pre_deploy_steps: List[Step] = field(default_factory=list)
    dependency_setup_steps: List[Step] = field(default_factory=list)
    update_script: List[str] = field(default_factory=list)

    # env keys assigned during this run; pinned keys come from version files
    assigned_env: Dict[str, str] = field(default_factory=dict)
    pinned_env: Dict[str, str] = field(default_factory=dict)

    def path(self, rel: str) -> Path:
        return self.root / rel

    def exists(self, rel: str) -> bool:
        return self.path(rel).exists()

    def is_file(self, rel: str) -> bool:
        return self.path(rel).is_file()

    def action(self, name: str) -> str:
        return self.defaults.action(name)

    def job_builder(self, job_id: str) -> JobBuilder:
        return JobBuilder(job_id, self.old.job(job_id))

    def add_job(self, builder: JobBuilder) -> Job:
        builder.default_timeout(self.defaults.job_timeout_minutes)
        return self.new.add_job(builder.build())


class Synthesizer:
    """
    Builds the new workflow from the previous one, the rule catalog and the
    repository at `root`.

        synth = Synthesizer(options, Defaults(), catalog, old_workflow, root=".")
        new_workflow = synth.run()
    """

    def __init__(
        self,
        options: Options,
        defaults: Defaults,
        catalog: RuleCatalog,
        old: Optional[Workflow] = None,
        root: str | Path = ".",
        console: Optional[Console] = None,
    ):
        self.state = BuildState(
            options=options,
            defaults=defaults,
            catalog=catalog,
            root=Path(root),
            old=old or Workflow(),
            console=console or get_console(),
        )

    @property
    def workflow(self) -> Workflow:
        return self.state.new

    def run(self) -> Workflow:
        s = self.state
        self.apply_defaults()

        if s.options.only_dependabot:
            s.console.print_step("Only dependabot requested, skipping build jobs...")
            return s.new

        s.submodules = submodule_paths(s.root)

        variables.add_variables_job(s)
        lint.add_linter_jobs(s)
        licenses.add_licenses_job(s)
        test.add_language_jobs(s)
        deploy.add_codedeploy_jobs(s)
        deploy.add_aws_job(s)
        status.add_status_job(s)
        return s.new

    def apply_defaults(self) -> Workflow:
        old, new = self.state.old, self.state.new
        new.name = old.name or "Build"
        new.run_name = old.run_name
        new.on = copy.deepcopy(DEFAULT_TRIGGERS)
        new.copy_fields(old, ("permissions", "env", "defaults", "concurrency"))
        return new
