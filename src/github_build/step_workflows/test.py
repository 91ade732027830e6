# step_workflows/test.py
from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Set

from ..catalog import SERVICES, DependencyMarker, LanguageRule, SetupOption
from ..detect import file_contains, files_matching
from ..errors import VersionMismatchError
from ..model import Job
from .licenses import licenses_step

if TYPE_CHECKING:
    from ..synthesizer import BuildState

SETUP_STEP = "Setup"
SETUP_WITH = {
    "ssh-key": "${{secrets.SSH_KEY}}",
    "aws-access-key-id": "${{secrets.AWS_ACCESS_KEY_ID}}",
    "aws-secret-access-key": "${{secrets.AWS_SECRET_ACCESS_KEY}}",
    "aws-region": "${{secrets.AWS_DEFAULT_REGION}}",
}


def env_key(option_name: str) -> str:
    return option_name.upper().replace("-", "_")


# ---------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------

def language_detected(state: "BuildState", language: LanguageRule) -> bool:
    if not language.file_extension:
        return False
    return bool(
        files_matching(
            str(state.root),
            rf"\.({language.file_extension})$",
            [*state.options.excluded_folders, *state.submodules],
            max_depth=state.defaults.max_depth,
            ignored_directories=state.defaults.ignored_directories,
        )
    )


def present_manifests(state: "BuildState", language: LanguageRule) -> List[DependencyMarker]:
    return [d for d in language.dependencies if state.is_file(d.dependency_file)]


def detected_services(state: "BuildState", manifests: Iterable[DependencyMarker]) -> Set[str]:
    found: Set[str] = set()
    for manifest in manifests:
        path = str(state.path(manifest.dependency_file))
        for service, marker in manifest.service_markers().items():
            if marker and file_contains(path, marker):
                found.add(service)
    return found


def read_version_pin(path: str) -> Optional[str]:
    """First token of the first non-empty, non-comment line of a version file."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#"):
                    return line.split()[0]
    except OSError:
        return None
    return None


# ---------------------------------------------------------------------
# Environment / setup options
# ---------------------------------------------------------------------

def apply_version_pins(state: "BuildState", language: LanguageRule) -> None:
    """Version files in the repository always decide the env value."""
    for version_file in language.version_files:
        if not state.is_file(version_file.file):
            continue
        pin = read_version_pin(str(state.path(version_file.file)))
        if pin is None:
            continue
        key = env_key(version_file.option)
        state.pinned_env[key] = pin
        state.new.env[key] = pin
        state.console.print_debug(f"{key} pinned to {pin} by {version_file.file}")


def resolve_option(state: "BuildState", option: SetupOption) -> Optional[str]:
    """
    Value of one setup option in the workflow env.

    An env value that predates this run wins over the catalog value. A
    mismatch is reported, and fails the run in strict mode when the key names
    a version.
    """
    key = env_key(option.name)
    if key in state.pinned_env:
        return state.pinned_env[key]
    if key in state.assigned_env:
        return state.assigned_env[key]

    existing = state.new.env.get(key)
    recommended = option.value

    if existing is None:
        if recommended is None:
            return None
        state.new.env[key] = recommended
        state.assigned_env[key] = recommended
        return recommended

    existing = str(existing)
    if recommended is not None and existing != recommended:
        if state.options.strict_version_check and "VERSION" in key:
            raise VersionMismatchError(key, existing, recommended)
        state.console.print_warning(f"{key} is set to {existing} but {recommended} is recommended, keeping {existing}")

    state.assigned_env[key] = existing
    return existing


def add_setup_options(state: "BuildState", params: Dict[str, str], options: Iterable[SetupOption]) -> Dict[str, str]:
    for option in options:
        if resolve_option(state, option) is None:
            continue
        params[option.name] = f"${{{{env.{env_key(option.name)}}}}}"
    return params


def setup_parameters(state: "BuildState", language: LanguageRule, services: Set[str]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    add_setup_options(state, params, language.setup_options)
    add_setup_options(state, params, state.catalog.options_for("apt"))
    for service in SERVICES:
        if service in services:
            add_setup_options(state, params, state.catalog.options_for(service))
    return params


# ---------------------------------------------------------------------
# Unit test jobs
# ---------------------------------------------------------------------

def unit_tests_condition(state: "BuildState", language: LanguageRule) -> str:
    condition = state.unit_tests_condition
    if language.condition:
        condition += f" || {language.condition}"
    return f"${{{{{condition}}}}}"


def add_language_job(state: "BuildState", language: LanguageRule) -> Optional[Job]:
    if not language_detected(state, language):
        return None

    # source files alone are not a build target
    manifests = present_manifests(state, language)
    if not manifests:
        state.console.print_debug(f"{language.long_name} sources found but no dependency file")
        return None

    state.console.print_detail(f"Enabling {language.long_name}...")
    apply_version_pins(state, language)
    params = setup_parameters(state, language, detected_services(state, manifests))

    reusable = language.short_name in state.defaults.deploy_setup_languages or state.options.force_codedeploy_setup

    builder = (
        state.job_builder(f"{language.short_name}_unit_tests")
        .name(f"{language.long_name} Unit Tests")
        .default_runs_on(language.runs_on, state.defaults.ubuntu_runner)
        .needs("variables")
        .if_(unit_tests_condition(state, language))
        .step(SETUP_STEP, uses=state.action("setup"), default_with={**SETUP_WITH, **params})
    )
    setup = builder.last_step()
    if reusable:
        state.pre_deploy_steps.append(copy.deepcopy(setup))

    update_lines: List[str] = []
    for manifest in manifests:
        builder.step(manifest.package_manager_name, shell="bash", default_run=manifest.package_manager_default)
        if reusable:
            state.pre_deploy_steps.append(copy.deepcopy(builder.last_step()))
        if manifest.package_manager_update:
            update_lines.append(manifest.package_manager_update)

    if update_lines:
        state.dependency_setup_steps.append(copy.deepcopy(setup))
        state.update_script.extend(update_lines)

    builder.step(language.unit_test_framework_name, shell="bash", default_run=language.unit_test_framework_default)

    if state.exists(state.defaults.platform_lock_file) and not state.options.skip_license_check:
        licenses_step(state, builder)

    return state.add_job(builder)


def add_language_jobs(state: "BuildState") -> List[Job]:
    state.console.print_step("Detecting languages...")
    jobs = []
    for language in state.catalog.languages.values():
        job = add_language_job(state, language)
        if job is not None:
            jobs.append(job)
    return jobs
