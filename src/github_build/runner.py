# runner.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

from .catalog import RuleCatalog, load_catalog
from .config import Defaults, Options, repository_name
from .dag import validate_workflow
from .dependabot import dependabot_ecosystems, sync_dependencies_workflow, write_dependabot
from .git_facts.git import submodule_paths
from .github.api_client import GitHubClient
from .github.settings import SettingsClient, apply_repository_settings, token_from_env
from .gitignore import Fetcher, fetch_templates, update_gitignore
from .model import Workflow
from .status_checks import required_status_checks
from .synthesizer import Synthesizer
from .ui.console import Console, get_console
from .workflow_file import read_workflow, write_workflow


@dataclass
class BuildResult:
    workflow: Workflow
    checks: List[str] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)


def run_build(
    options: Options,
    defaults: Defaults = Defaults(),
    root: str | Path = ".",
    console: Optional[Console] = None,
    client: Optional[SettingsClient] = None,
    fetch: Fetcher = fetch_templates,
    env: Mapping[str, str] = os.environ,
    catalog: Optional[RuleCatalog] = None,
) -> BuildResult:
    """
    One github-build invocation against the checkout at `root`.

    Every catalog file and the API token are checked before anything is
    written; a failure in any phase propagates to the caller.
    """
    console = console or get_console()
    root = Path(root)

    console.print_header("Generating build file...")
    catalog = catalog or load_catalog(options)

    if not options.skip_repository_settings and not options.only_dependabot and client is None:
        client = GitHubClient(token_from_env(env))

    build_path = root / options.build_file
    if build_path.is_file():
        console.print_step(f"Reading current build file {options.build_file}...")
    old = read_workflow(build_path)

    synth = Synthesizer(options, defaults, catalog, old, root=root, console=console)
    workflow = synth.run()
    state = synth.state
    result = BuildResult(workflow=workflow)

    if not options.only_dependabot:
        validate_workflow(workflow)
        result.checks = required_status_checks(workflow)
        write_workflow(workflow, build_path, header=options.args_comment(), secret_renames=defaults.secret_renames)
        result.written.append(build_path)
        console.print_step(f"Wrote {options.build_file}")

        soup = sync_dependencies_workflow(root, workflow, state.dependency_setup_steps, state.update_script, defaults)
        if soup is not None:
            result.written.append(soup)

    if not options.skip_dependabot:
        console.print_step("Adding dependabot...")
        excluded = [*options.excluded_folders, *submodule_paths(root)]
        ecosystems = dependabot_ecosystems(root, catalog, defaults, excluded)
        path = root / defaults.dependabot_file
        write_dependabot(path, ecosystems)
        result.written.append(path)

    if options.only_dependabot:
        return result

    if not options.skip_repository_settings and client is not None:
        console.print_header("Checking repository settings...")
        console.print_checks(result.checks)
        apply_repository_settings(client, options.organization, repository_name(root), result.checks, console)

    if not options.skip_gitignore:
        console.print_header("Updating .gitignore...")
        excluded = [*options.excluded_folders, *state.submodules]
        path = update_gitignore(root, catalog.gitignore, defaults, excluded, fetch=fetch)
        if path is not None:
            result.written.append(path)

    return result
