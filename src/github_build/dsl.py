# dsl.py
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from .model import JOB_MERGE_FIELDS, STEP_MERGE_FIELDS, Job, Step, find_step


# ---------------------------------------------------------------------
# Step merge
# ---------------------------------------------------------------------

def merge_step(
    name: str,
    previous: Optional[Step] = None,
    *,
    id: str | None = None,
    if_: str | None = None,
    uses: str | None = None,
    run: str | None = None,
    shell: str | None = None,
    with_: Optional[Dict[str, Any]] = None,
    default_run: str | None = None,
    default_with: Optional[Dict[str, Any]] = None,
) -> Step:
    """
    Build a step on top of its previous incarnation.

    Fields of `previous` are inherited first, explicit values then overwrite
    them. Defaults are all-or-nothing: `default_with` is only applied when the
    step ends up with no parameters at all, `default_run` only when it has no
    command.
    """
    s = Step(name=name)
    s.copy_fields(previous, STEP_MERGE_FIELDS)
    s.set("id", id).set("if_", if_).set("uses", uses).set("run", run).set("shell", shell).set("with_", with_)

    if s.run is None and default_run is not None:
        s.run = default_run
    if not s.with_ and default_with:
        s.with_ = dict(default_with)

    return s


# ---------------------------------------------------------------------
# Builder API
# ---------------------------------------------------------------------

class JobBuilder:
    """
    Explicit builder for a job that may have a counterpart in the previous
    workflow. Metadata is inherited from `previous` when the builder is created.

        job = (
            JobBuilder("lint", previous=old.job("lint"))
            .name("Lint")
            .default_runs_on("ubuntu-latest")
            .needs("variables")
            .step("RuboCop", uses="org/rubocop@v1", default_with={...})
            .build()
        )
    """

    def __init__(self, job_id: str, previous: Optional[Job] = None):
        self._job = Job(id=job_id)
        self._job.copy_fields(previous, JOB_MERGE_FIELDS)
        self._previous_steps: List[Step] = list(previous.steps) if previous else []

    @property
    def job(self) -> Job:
        return self._job

    def name(self, name: str):
        self._job.set("name", name)
        return self

    def runs_on(self, runs_on: Any):
        self._job.set("runs_on", runs_on)
        return self

    def default_runs_on(self, *candidates: Any):
        # first non-empty candidate, only when nothing was inherited
        if self._job.runs_on is None:
            for c in candidates:
                if c:
                    self._job.runs_on = c
                    break
        return self

    def needs(self, *job_ids: str):
        self._job.set("needs", list(job_ids))
        return self

    def if_(self, expression: str):
        self._job.set("if_", expression)
        return self

    def permissions(self, permissions: Optional[Dict[str, Any]]):
        self._job.set("permissions", permissions)
        return self

    def default_permissions(self, permissions: Optional[Dict[str, Any]]):
        if not self._job.permissions and permissions:
            self._job.permissions = dict(permissions)
        return self

    def outputs(self, outputs: Dict[str, Any]):
        self._job.set("outputs", outputs)
        return self

    def default_timeout(self, minutes: Optional[int]):
        if self._job.timeout_minutes is None:
            self._job.timeout_minutes = minutes
        return self

    def previous_step(self, name: str) -> Optional[Step]:
        return find_step(self._previous_steps, name)

    def step(self, name: str, **fields: Any):
        """Append a step merged with the previous step of the same name."""
        self._job.add_step(merge_step(name, self.previous_step(name), **fields))
        return self

    def add_steps(self, steps: Iterable[Step]):
        for s in steps:
            self._job.add_step(s)
        return self

    def last_step(self) -> Step:
        return self._job.steps[-1]

    def build(self) -> Job:
        return self._job


def build(job_id: str, previous: Optional[Job] = None) -> JobBuilder:
    """Convenience: build('lint', old_job).name(...).step(...).build()"""
    return JobBuilder(job_id, previous)

