# dag.py
from __future__ import annotations

from collections import deque
from typing import Dict, List, Set, Tuple

from .errors import WorkflowGraphError
from .model import Workflow


def build_dag(workflow: Workflow) -> Tuple[Dict[str, Set[str]], Dict[str, int]]:
    """
    Build the dependency graph of a generated workflow.

    Edges go from an upstream job to the jobs that list it in `needs`.
    Raises WorkflowGraphError when a job needs an unknown job.
    """
    ids = set(workflow.jobs)
    adj: Dict[str, Set[str]] = {n: set() for n in ids}
    indeg: Dict[str, int] = {n: 0 for n in ids}

    for job_id, job in workflow.jobs.items():
        for upstream in job.needs:
            if upstream not in ids:
                raise WorkflowGraphError(
                    f"Job '{job_id}' needs missing job '{upstream}'. "
                    f"Known jobs: {sorted(ids)}"
                )
            if job_id not in adj[upstream]:
                adj[upstream].add(job_id)
                indeg[job_id] += 1

    return adj, indeg


def topo_levels(adj: Dict[str, Set[str]], indeg: Dict[str, int]) -> List[List[str]]:
    """
    Convert the DAG into topological levels. Jobs of one level may run in
    parallel on the CI runner.
    """
    indeg = dict(indeg)  # copy (we mutate it)
    q = deque(sorted([n for n, d in indeg.items() if d == 0]))

    levels: List[List[str]] = []
    processed = 0

    while q:
        level: List[str] = []

        for _ in range(len(q)):
            node = q.popleft()
            level.append(node)
            processed += 1

            for child in sorted(adj.get(node, set())):
                indeg[child] -= 1
                if indeg[child] == 0:
                    q.append(child)

        levels.append(level)

    if processed != len(indeg):
        remaining = sorted([n for n, d in indeg.items() if d > 0])
        raise WorkflowGraphError(f"Job graph has a cycle. Stuck jobs: {remaining}")

    return levels


def validate_workflow(workflow: Workflow) -> List[List[str]]:
    """
    Post-build validation pass: unknown `needs`, cycles and duplicate step ids.

    Returns the topological levels of the graph.
    """
    for job_id, job in workflow.jobs.items():
        step_ids = [s.id for s in job.steps if s.id]
        dupes = sorted({i for i in step_ids if step_ids.count(i) > 1})
        if dupes:
            raise WorkflowGraphError(f"Job '{job_id}' has duplicate step ids: {dupes}")

    adj, indeg = build_dag(workflow)
    return topo_levels(adj, indeg)
