# config.py
from __future__ import annotations

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple

from .git_facts.git import remote_slug

ARGS_COMMENT_PREFIX = "# github-build"

# Bundled catalogs live next to the package code.
BUNDLED_CONFIG_DIR = Path(__file__).resolve().parent / "config"

DEFAULT_LINTERS_CONFIG_FILE = "config/linters.yaml"
DEFAULT_LANGUAGES_CONFIG_FILE = "config/languages.yaml"
DEFAULT_GITIGNORE_CONFIG_FILE = "config/gitignore.yaml"
OPTIONS_APT_CONFIG_FILE = "config/options/apt.yaml"
OPTIONS_MONGODB_CONFIG_FILE = "config/options/mongodb.yaml"
OPTIONS_MYSQL_CONFIG_FILE = "config/options/mysql.yaml"
OPTIONS_REDIS_CONFIG_FILE = "config/options/redis.yaml"
OPTIONS_ELASTICSEARCH_CONFIG_FILE = "config/options/elasticsearch.yaml"


@dataclass(frozen=True)
class Defaults:
    """
    Conventions the synthesizer relies on (runner labels, file locations,
    action references). Passed in explicitly so tests can swap any of them.
    """
    build_file: str = ".github/workflows/build.yml"
    dependencies_workflow_file: str = ".github/workflows/soup.yml"
    dependabot_file: str = ".github/dependabot.yml"
    ubuntu_runner: str = "ubuntu-latest"
    macos_runner: str = "macos-latest"
    ci_actions: str = "cloud-officer/ci-actions"
    ci_actions_version: str = "master"
    job_timeout_minutes: int = 30
    platform_lock_file: str = "Podfile.lock"
    deployment_descriptor: str = "appspec.yml"
    aws_marker: str = ".aws"
    deploy_setup_languages: Tuple[str, ...] = ("go", "php")
    deploy_environments: Tuple[str, ...] = ("beta", "rc", "prod")
    ignored_directories: Tuple[str, ...] = (".git", ".hg", ".svn", "node_modules", "vendor")
    linter_ignored_substrings: Tuple[str, ...] = ("linters",)
    max_depth: Optional[int] = 25
    secret_renames: Tuple[Tuple[str, str], ...] = (("GITHUB_TOKEN", "GH_PAT"),)

    def action(self, name: str) -> str:
        """Reference to one of the shared CI actions, e.g. action('setup')."""
        return f"{self.ci_actions}/{name}@{self.ci_actions_version}"


@dataclass
class Options:
    """Per-invocation options, filled by the CLI."""
    application_name: str = ""
    organization: str = ""
    build_file: str = ".github/workflows/build.yml"
    excluded_folders: List[str] = field(default_factory=list)
    force_codedeploy_setup: bool = False
    gitignore_config_file: str = DEFAULT_GITIGNORE_CONFIG_FILE
    ignored_linters: Set[str] = field(default_factory=set)
    languages_config_file: str = DEFAULT_LANGUAGES_CONFIG_FILE
    linters_config_file: str = DEFAULT_LINTERS_CONFIG_FILE
    only_dependabot: bool = False
    options_config_file_apt: str = OPTIONS_APT_CONFIG_FILE
    options_config_file_mongodb: str = OPTIONS_MONGODB_CONFIG_FILE
    options_config_file_mysql: str = OPTIONS_MYSQL_CONFIG_FILE
    options_config_file_redis: str = OPTIONS_REDIS_CONFIG_FILE
    options_config_file_elasticsearch: str = OPTIONS_ELASTICSEARCH_CONFIG_FILE
    skip_dependabot: bool = False
    skip_gitignore: bool = False
    skip_license_check: bool = False
    skip_repository_settings: bool = False
    skip_slack: bool = False
    strict_version_check: bool = True
    debug: bool = False
    original_args: List[str] = field(default_factory=list)

    def args_comment(self) -> str:
        return args_comment(self.original_args)

    def fill_identity(self, cwd: str | Path | None = None) -> "Options":
        """Derive application name / organization from the checkout when not given."""
        here = Path(cwd or Path.cwd()).resolve()
        if not self.application_name:
            self.application_name = default_application_name(here)
        if not self.organization:
            slug = remote_slug(str(here))
            self.organization = slug[0] if slug else here.parent.name
        return self


def default_application_name(cwd: Path) -> str:
    # my-awesome-app -> app
    return cwd.name.split("-")[-1]


def repository_name(cwd: str | Path | None = None) -> str:
    here = Path(cwd or Path.cwd()).resolve()
    slug = remote_slug(str(here))
    return slug[1] if slug else here.name


def resolve_config_path(path: str) -> Path:
    """
    Default catalog paths ("config/...") point at the bundled copy; any other
    path is taken as given by the user.
    """
    p = Path(path)
    if path in _BUNDLED_DEFAULTS:
        return BUNDLED_CONFIG_DIR.joinpath(*p.parts[1:])
    return p


_BUNDLED_DEFAULTS = frozenset({
    DEFAULT_LINTERS_CONFIG_FILE,
    DEFAULT_LANGUAGES_CONFIG_FILE,
    DEFAULT_GITIGNORE_CONFIG_FILE,
    OPTIONS_APT_CONFIG_FILE,
    OPTIONS_MONGODB_CONFIG_FILE,
    OPTIONS_MYSQL_CONFIG_FILE,
    OPTIONS_REDIS_CONFIG_FILE,
    OPTIONS_ELASTICSEARCH_CONFIG_FILE,
})


# ---------------------------------------------------------------------
# Argument round trip through the build file header
# ---------------------------------------------------------------------

def args_from_file(path: str | Path) -> List[str]:
    """
    Arguments recorded on the first line of a previously generated build file.

    Returns [] when the file is missing, empty or does not start with the
    github-build comment.
    """
    try:
        with Path(path).open(encoding="utf-8") as f:
            first_line = f.readline().strip()
    except OSError:
        return []

    if not first_line.startswith(ARGS_COMMENT_PREFIX):
        return []

    return shlex.split(first_line[len(ARGS_COMMENT_PREFIX):].strip())


def args_comment(args: List[str]) -> str:
    if not args:
        return ""
    return f"{ARGS_COMMENT_PREFIX} {shlex.join(args)}\n"
