# status_checks.py
from __future__ import annotations

import itertools
from typing import Any, Dict, List

from .model import Job, Workflow


def matrix_combinations(matrix: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Expand a strategy matrix the way the CI runner does.

    List-valued keys form a cartesian product (in key order), `exclude`
    entries remove matching combinations, and each `include` entry either
    extends the combinations it matches or is added as a new one. Keys whose
    value is not a list (for example a `fromJSON(...)` expression) cannot be
    expanded and are ignored.
    """
    axes = {k: v for k, v in matrix.items() if k not in ("include", "exclude") and isinstance(v, list)}
    combos: List[Dict[str, Any]] = []
    if axes:
        combos = [dict(zip(axes, values)) for values in itertools.product(*axes.values())]

    for entry in matrix.get("exclude") or []:
        if isinstance(entry, dict):
            combos = [c for c in combos if not all(c.get(k) == v for k, v in entry.items())]

    for entry in matrix.get("include") or []:
        if not isinstance(entry, dict):
            continue
        base_keys = [k for k in entry if k in axes]
        extended = False
        if base_keys:
            for combo in combos:
                if all(combo[k] == entry[k] for k in base_keys):
                    for k, v in entry.items():
                        combo.setdefault(k, v)
                    extended = True
        if not extended:
            combos.append(dict(entry))

    return combos


def _check_label(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def job_checks(job: Job) -> List[str]:
    name = job.name or job.id
    matrix = (job.strategy or {}).get("matrix")
    if not isinstance(matrix, dict):
        return [name]

    combos = matrix_combinations(matrix)
    if not combos:
        return [name]
    return [f"{name} ({', '.join(_check_label(v) for v in combo.values())})" for combo in combos]


def required_status_checks(workflow: Workflow) -> List[str]:
    """
    The check names branch protection must require, in job order.

    Matrix jobs contribute one check per combination, named after the job
    and the combination's values.
    """
    checks: List[str] = []
    for job in workflow.jobs.values():
        checks.extend(job_checks(job))
    return checks
