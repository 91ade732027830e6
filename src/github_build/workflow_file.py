# workflow_file.py
"""
Read and write workflow documents.

Reading goes through ruamel's safe loader into plain containers which are then
mapped onto the model. Writing renders `Workflow.to_dict()` in block style with
literal blocks for multi-line scripts, so an unchanged workflow always renders
to the same bytes.
"""
from __future__ import annotations

import re
from io import StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.scalarstring import LiteralScalarString

from .errors import ConfigError
from .files import atomic_write_text
from .model import Job, Step, Workflow

_LEGACY_GITHUB_VAR = re.compile(r"\$\{GITHUB_([A-Z_]+)\}")


# ---------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------

def _step_from_dict(data: Dict[str, Any]) -> Step:
    s = Step(name=str(data.get("name") or ""))
    (
        s.set("id", data.get("id"))
        .set("if_", data.get("if"))
        .set("uses", data.get("uses"))
        .set("run", data.get("run"))
        .set("shell", data.get("shell"))
        .set("with_", data.get("with"))
        .set("env", data.get("env"))
        .set("continue_on_error", data.get("continue-on-error"))
        .set("timeout_minutes", data.get("timeout-minutes"))
    )
    return s


def _job_from_dict(job_id: str, data: Dict[str, Any]) -> Job:
    j = Job(id=job_id)
    needs = data.get("needs")
    if isinstance(needs, str):
        needs = [needs]
    (
        j.set("name", data.get("name"))
        .set("permissions", data.get("permissions"))
        .set("needs", list(needs) if needs is not None else None)
        .set("if_", data.get("if"))
        .set("runs_on", data.get("runs-on"))
        .set("environment", data.get("environment"))
        .set("concurrency", data.get("concurrency"))
        .set("outputs", data.get("outputs"))
        .set("env", data.get("env"))
        .set("defaults", data.get("defaults"))
        .set("timeout_minutes", data.get("timeout-minutes"))
        .set("strategy", data.get("strategy"))
        .set("continue_on_error", data.get("continue-on-error"))
        .set("container", data.get("container"))
        .set("services", data.get("services"))
        .set("uses", data.get("uses"))
        .set("with_", data.get("with"))
        .set("secrets", data.get("secrets"))
    )
    for step in data.get("steps") or []:
        if isinstance(step, dict):
            j.add_step(_step_from_dict(step))
    return j


def workflow_from_dict(data: Optional[Dict[str, Any]]) -> Workflow:
    w = Workflow()
    if not data:
        return w
    (
        w.set("name", data.get("name"))
        .set("run_name", data.get("run-name"))
        .set("on", data.get("on"))
        .set("permissions", data.get("permissions"))
        .set("env", data.get("env"))
        .set("defaults", data.get("defaults"))
        .set("concurrency", data.get("concurrency"))
    )
    for job_id, job_data in (data.get("jobs") or {}).items():
        w.add_job(_job_from_dict(str(job_id), job_data or {}))
    return w


def read_workflow(path: str | Path) -> Workflow:
    """
    Load a previously generated workflow. A missing file gives an empty
    Workflow; a file that is not valid YAML raises ConfigError.
    """
    path = Path(path)
    if not path.is_file():
        return Workflow()
    try:
        with path.open(encoding="utf-8") as f:
            data = YAML(typ="safe", pure=True).load(f)
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in workflow file ({path}): {e}") from e
    if data is not None and not isinstance(data, dict):
        raise ConfigError(f"Invalid workflow file ({path}): expected a mapping at the top level")
    return workflow_from_dict(data)


# ---------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------

def _literal_blocks(value: Any) -> Any:
    if isinstance(value, dict):
        # CommentedMap keeps insertion order on output
        return CommentedMap((k, _literal_blocks(v)) for k, v in value.items())
    if isinstance(value, list):
        return [_literal_blocks(v) for v in value]
    if isinstance(value, str) and "\n" in value:
        return LiteralScalarString(value)
    return value


def _yaml() -> YAML:
    yaml = YAML()
    yaml.default_flow_style = False
    yaml.width = 4096  # never fold long expressions
    yaml.indent(mapping=2, sequence=4, offset=2)
    return yaml


def dump_yaml(data: Dict[str, Any]) -> str:
    stream = StringIO()
    _yaml().dump(_literal_blocks(data), stream)
    return stream.getvalue()


def rewrite_references(text: str, secret_renames: Iterable[Tuple[str, str]] = ()) -> str:
    """
    `${GITHUB_REPOSITORY}` becomes `${{github.repository}}` and every renamed
    secret reference (`secrets.OLD`) points at its new name.
    """
    text = _LEGACY_GITHUB_VAR.sub(lambda m: "${{github." + m.group(1).lower() + "}}", text)
    for old, new in secret_renames:
        text = re.sub(rf"\bsecrets\.{re.escape(old)}\b", f"secrets.{new}", text)
    return text


def render_workflow(
    workflow: Workflow,
    header: str = "",
    secret_renames: Iterable[Tuple[str, str]] = (),
) -> str:
    return header + rewrite_references(dump_yaml(workflow.to_dict()), secret_renames)


def write_workflow(
    workflow: Workflow,
    path: str | Path,
    header: str = "",
    secret_renames: Iterable[Tuple[str, str]] = (),
) -> str:
    """Render and replace `path` (directories are created). Returns the text written."""
    text = render_workflow(workflow, header, secret_renames)
    atomic_write_text(path, text)
    return text


def write_yaml(data: Dict[str, Any], path: str | Path) -> str:
    text = dump_yaml(data)
    atomic_write_text(path, text)
    return text
