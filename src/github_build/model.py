# model.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Iterable, List, Optional, Union

from .errors import FieldError


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, (dict, list, tuple)) and len(value) == 0


def _sorted_map(value: Any) -> Any:
    # scalar forms such as `permissions: read-all` pass through
    if not isinstance(value, dict):
        return value
    return {k: value[k] for k in sorted(value, key=str)}


class _Node:
    """
    Partial-assignment helpers shared by Step, Job and Workflow.

    `set` never clobbers an existing value with None, and `copy_fields` refuses
    field names that either side does not declare.
    """

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))  # type: ignore[arg-type]

    def set(self, name: str, value: Any):
        if name not in self.field_names():
            raise FieldError(type(self).__name__, name)
        if value is not None:
            setattr(self, name, value)
        return self

    def copy_fields(self, source: Any, names: Iterable[str]):
        if source is None:
            return self
        for name in names:
            if name not in self.field_names():
                raise FieldError(type(self).__name__, name)
            if not hasattr(source, name):
                raise FieldError(type(source).__name__, name)
            # deep copy: the previous document is read-only
            setattr(self, name, copy.deepcopy(getattr(source, name)))
        return self


# ---------------------------------------------------------------------
# Step
# ---------------------------------------------------------------------

@dataclass
class Step(_Node):
    """A single step inside a CI job. `name` is the merge key across runs."""
    name: str
    id: Optional[str] = None
    if_: Optional[str] = None
    uses: Optional[str] = None
    run: Optional[str] = None
    shell: Optional[str] = None
    with_: Dict[str, Any] = field(default_factory=dict)
    env: Dict[str, Any] = field(default_factory=dict)
    continue_on_error: Optional[bool] = None
    timeout_minutes: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        pairs = [
            ("name", self.name),
            ("id", self.id),
            ("uses", self.uses),
            ("shell", self.shell),
            ("if", self.if_),
            ("run", self.run),
            ("with", self.with_),
            ("env", self.env),
            ("continue-on-error", self.continue_on_error),
            ("timeout-minutes", self.timeout_minutes),
        ]
        return {k: v for k, v in pairs if not _is_empty(v)}


def find_step(steps: Optional[List[Step]], name: str) -> Optional[Step]:
    """Return the first step called `name`, or None."""
    for s in steps or []:
        if s.name == name:
            return s
    return None


# ---------------------------------------------------------------------
# Job
# ---------------------------------------------------------------------

@dataclass
class Job(_Node):
    """
    A vertex of the workflow graph.

    A job either runs `steps` directly or delegates to a reusable workflow
    through `uses` / `with_` / `secrets`; the model does not forbid both.
    """
    id: str
    name: Optional[str] = None
    permissions: Dict[str, Any] = field(default_factory=dict)
    needs: List[str] = field(default_factory=list)
    if_: Optional[str] = None
    runs_on: Optional[Any] = None
    environment: Dict[str, Any] = field(default_factory=dict)
    concurrency: Dict[str, Any] = field(default_factory=dict)
    outputs: Dict[str, Any] = field(default_factory=dict)
    env: Dict[str, Any] = field(default_factory=dict)
    defaults: Dict[str, Any] = field(default_factory=dict)
    steps: List[Step] = field(default_factory=list)
    timeout_minutes: Optional[int] = None
    strategy: Dict[str, Any] = field(default_factory=dict)
    continue_on_error: Optional[bool] = None
    container: Dict[str, Any] = field(default_factory=dict)
    services: Dict[str, Any] = field(default_factory=dict)
    uses: Optional[str] = None
    with_: Dict[str, Any] = field(default_factory=dict)
    secrets: Dict[str, Any] = field(default_factory=dict)

    def set(self, name: str, value: Any):
        # a single upstream id is appended, a list replaces
        if name == "needs" and isinstance(value, str):
            if value not in self.needs:
                self.needs.append(value)
            return self
        return super().set(name, value)

    def add_step(self, step: Step) -> Step:
        self.steps.append(step)
        return step

    def to_dict(self) -> Dict[str, Any]:
        pairs = [
            ("name", self.name),
            ("permissions", self.permissions),
            ("runs-on", self.runs_on),
            ("needs", self.needs),
            ("if", self.if_),
            ("environment", self.environment),
            ("concurrency", self.concurrency),
            ("outputs", self.outputs),
            ("env", self.env),
            ("defaults", self.defaults),
            ("timeout-minutes", self.timeout_minutes),
            ("strategy", self.strategy),
            ("continue-on-error", self.continue_on_error),
            ("container", self.container),
            ("services", self.services),
            ("uses", self.uses),
            ("with", self.with_),
            ("secrets", self.secrets),
            ("steps", [s.to_dict() for s in self.steps]),
        ]
        return {k: v for k, v in pairs if not _is_empty(v)}


# ---------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------

@dataclass
class Workflow(_Node):
    """
    Root document. Job insertion order is meaningful: it drives dependency
    lists and status checks, so `jobs` is never re-sorted.
    """
    name: Optional[str] = None
    run_name: Optional[str] = None
    on: Dict[str, Any] = field(default_factory=dict)
    # a mapping of scopes or one of read-all / write-all
    permissions: Union[Dict[str, Any], str] = field(default_factory=dict)
    env: Dict[str, Any] = field(default_factory=dict)
    defaults: Dict[str, Any] = field(default_factory=dict)
    concurrency: Union[Dict[str, Any], str] = field(default_factory=dict)
    jobs: Dict[str, Job] = field(default_factory=dict)

    def add_job(self, job: Job) -> Job:
        self.jobs[job.id] = job
        return job

    def job(self, job_id: str) -> Optional[Job]:
        return self.jobs.get(job_id)

    def to_dict(self) -> Dict[str, Any]:
        pairs = [
            ("name", self.name),
            ("run-name", self.run_name),
            ("on", _sorted_map(self.on)),
            ("permissions", _sorted_map(self.permissions)),
            ("env", _sorted_map(self.env)),
            ("defaults", _sorted_map(self.defaults)),
            ("concurrency", self.concurrency),
            ("jobs", {job_id: j.to_dict() for job_id, j in self.jobs.items()}),
        ]
        return {k: v for k, v in pairs if not _is_empty(v)}


STEP_MERGE_FIELDS: tuple[str, ...] = (
    "id", "if_", "uses", "run", "shell", "with_", "env", "continue_on_error", "timeout_minutes",
)

JOB_MERGE_FIELDS: tuple[str, ...] = (
    "name", "permissions", "needs", "if_", "runs_on", "environment", "concurrency", "outputs",
    "env", "defaults", "timeout_minutes", "strategy", "continue_on_error", "container",
    "services", "uses", "with_", "secrets",
)

# Field lists are checked once against the dataclasses instead of at every copy.
for _names, _cls in ((STEP_MERGE_FIELDS, Step), (JOB_MERGE_FIELDS, Job)):
    for _name in _names:
        if _name not in _cls.field_names():
            raise FieldError(_cls.__name__, _name)
