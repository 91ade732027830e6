# dependabot.py
from __future__ import annotations

import copy
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .catalog import RuleCatalog
from .config import Defaults
from .detect import files_matching
from .dsl import JobBuilder, merge_step
from .model import Step, Workflow
from .step_workflows.licenses import LICENSES_STEP, LICENSES_WITH
from .workflow_file import read_workflow, write_workflow, write_yaml

ALWAYS_ECOSYSTEMS = ("github-actions",)
AUTO_COMMIT_ACTION = "stefanzweifel/git-auto-commit-action@v5"


# ---------------------------------------------------------------------
# .github/dependabot.yml
# ---------------------------------------------------------------------

def dependabot_ecosystems(
    root: str | Path,
    catalog: RuleCatalog,
    defaults: Defaults,
    excluded: Iterable[str] = (),
) -> List[str]:
    """`github-actions` plus the ecosystem of every manifest found anywhere in the tree."""
    ecosystems: List[str] = list(ALWAYS_ECOSYSTEMS)
    excluded = list(excluded)

    for language in catalog.languages.values():
        for manifest in language.dependencies:
            ecosystem = manifest.dependabot_ecosystem
            if not ecosystem or ecosystem in ecosystems:
                continue
            found = files_matching(
                str(root),
                rf"^{re.escape(manifest.dependency_file)}$",
                excluded,
                max_depth=defaults.max_depth,
                ignored_directories=defaults.ignored_directories,
            )
            if found:
                ecosystems.append(ecosystem)

    return ecosystems


def dependabot_config(ecosystems: Iterable[str]) -> Dict[str, Any]:
    return {
        "version": 2,
        "updates": [
            {"package-ecosystem": e, "directory": "/", "schedule": {"interval": "daily"}}
            for e in ecosystems
        ],
    }


def write_dependabot(path: str | Path, ecosystems: Iterable[str]) -> str:
    return write_yaml(dependabot_config(ecosystems), path)


# ---------------------------------------------------------------------
# Dependency update workflow (soup.yml)
# ---------------------------------------------------------------------

def dependencies_workflow(
    build: Workflow,
    setup_steps: List[Step],
    update_script: List[str],
    defaults: Defaults,
    previous: Optional[Workflow] = None,
) -> Optional[Workflow]:
    """
    Workflow run on dependabot branches: set the toolchains up, update the
    dependencies, refresh the license files and commit the result.

    Returns None when there is nothing to emit (no license job in the build
    or no language contributed a setup or update step).
    """
    licenses = build.job("licenses")
    if licenses is None or not (setup_steps or update_script):
        return None

    previous = previous or Workflow()
    wf = Workflow(name=previous.name or "Dependencies")
    wf.on = {
        "push": {"branches": ["dependabot/**"]},
        "pull_request": {"branches": ["dependabot/**"]},
    }

    builder = (
        JobBuilder("update_dependencies", previous.job("update_dependencies"))
        .name("Update Dependencies")
        .default_runs_on(defaults.macos_runner)
        .permissions({"contents": "write"})
        .default_timeout(defaults.job_timeout_minutes)
    )

    for step in setup_steps:
        s = copy.deepcopy(step)
        s.if_ = None
        builder.add_steps([s])

    if update_script:
        builder.step("Update Dependencies", shell="bash", default_run="\n".join(update_script))

    license_step = licenses.steps[0] if licenses.steps else None
    builder.add_steps([
        merge_step(
            LICENSES_STEP,
            license_step,
            uses=defaults.action("soup"),
            default_with=LICENSES_WITH,
        )
    ])
    builder.step(
        "Auto Commit Changes",
        uses=AUTO_COMMIT_ACTION,
        default_with={"commit_message": "Updated soup files"},
    )

    wf.add_job(builder.build())
    return wf


def sync_dependencies_workflow(
    root: str | Path,
    build: Workflow,
    setup_steps: List[Step],
    update_script: List[str],
    defaults: Defaults,
) -> Optional[Path]:
    """Write soup.yml, or remove a stale one. Returns the path written, if any."""
    path = Path(root) / defaults.dependencies_workflow_file
    wf = dependencies_workflow(build, setup_steps, update_script, defaults, read_workflow(path))
    if wf is None:
        path.unlink(missing_ok=True)
        return None
    write_workflow(wf, path, secret_renames=defaults.secret_renames)
    return path
