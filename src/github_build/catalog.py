# catalog.py
"""
Rule Catalog: declarative descriptions of the linters and languages
github-build knows how to detect, plus the option bundles for services.

Everything is validated up front by `load_catalog` so a broken catalog aborts
the run before any file is touched.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import Options, resolve_config_path
from .errors import ConfigError

SERVICES = ("mongodb", "mysql", "redis", "elasticsearch")


class _Rule(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


# ---------------------------------------------------------------------
# Linters
# ---------------------------------------------------------------------

class ConfigTransform(_Rule):
    """Uncomment lines containing `uncomment` when `file` contains `token`."""
    file: str
    token: str
    uncomment: str


class LinterRule(_Rule):
    short_name: str
    long_name: str
    path: str = "."
    pattern: str
    uses: str
    config: Optional[str] = None
    options: Dict[str, Any] = Field(default_factory=dict)
    permissions: Dict[str, Any] = Field(default_factory=dict)
    condition: Optional[str] = None
    preserve_config: bool = False
    transform: Optional[ConfigTransform] = None


# ---------------------------------------------------------------------
# Languages
# ---------------------------------------------------------------------

class SetupOption(_Rule):
    name: str
    value: Optional[str] = None

    @field_validator("value", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> Optional[str]:
        # YAML turns 8.0 into a float; versions are compared as text
        return None if v is None else str(v)


class VersionFile(_Rule):
    file: str
    option: str


class DependencyMarker(_Rule):
    dependency_file: str
    package_manager_name: str
    package_manager_default: str
    package_manager_update: Optional[str] = None
    mongodb_dependency: Optional[str] = None
    mysql_dependency: Optional[str] = None
    redis_dependency: Optional[str] = None
    elasticsearch_dependency: Optional[str] = None
    dependabot_ecosystem: Optional[str] = None

    def service_markers(self) -> Dict[str, Optional[str]]:
        return {s: getattr(self, f"{s}_dependency") for s in SERVICES}


class LanguageRule(_Rule):
    short_name: str
    long_name: str
    file_extension: Optional[str] = None
    runs_on: Optional[str] = Field(default=None, alias="runs-on")
    condition: Optional[str] = None
    version_files: List[VersionFile] = Field(default_factory=list)
    setup_options: List[SetupOption] = Field(default_factory=list)
    dependencies: List[DependencyMarker] = Field(default_factory=list)
    unit_test_framework_name: str = "Unit Tests"
    unit_test_framework_default: str = ""


# ---------------------------------------------------------------------
# .gitignore templates
# ---------------------------------------------------------------------

class PackageTemplate(_Rule):
    file: str
    token: str
    template: str


class CustomBlock(_Rule):
    name: str
    patterns: List[str]
    file: Optional[str] = None


class GitignoreCatalog(_Rule):
    always: List[str] = Field(default_factory=list)
    extensions: Dict[str, str] = Field(default_factory=dict)
    files: Dict[str, str] = Field(default_factory=dict)
    packages: List[PackageTemplate] = Field(default_factory=list)
    custom: List[CustomBlock] = Field(default_factory=list)


@dataclass(frozen=True)
class RuleCatalog:
    linters: Dict[str, LinterRule] = field(default_factory=dict)
    languages: Dict[str, LanguageRule] = field(default_factory=dict)
    service_options: Dict[str, List[SetupOption]] = field(default_factory=dict)
    gitignore: GitignoreCatalog = field(default_factory=GitignoreCatalog)

    def options_for(self, bundle: str) -> List[SetupOption]:
        return self.service_options.get(bundle, [])


# ---------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------

def read_yaml(path: Path, label: str) -> Any:
    if not path.is_file():
        raise ConfigError(f"Missing required {label} file: {path}")
    try:
        with path.open(encoding="utf-8") as f:
            return YAML(typ="safe", pure=True).load(f)
    except YAMLError as e:
        raise ConfigError(f"Invalid YAML in {label} file ({path}): {e}") from e


def _validate(model: Any, data: Any, path: Path, label: str) -> Any:
    try:
        return model(data)
    except (ValidationError, TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {label} file ({path}): {e}") from e


def _rules(kind: type[_Rule], raw: Any) -> Dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise TypeError(f"expected a mapping of rules, got {type(raw).__name__}")
    return {str(key): kind.model_validate(value) for key, value in raw.items()}


def _options(raw: Any) -> List[SetupOption]:
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise TypeError(f"expected a mapping with an 'options' list, got {type(raw).__name__}")
    return [SetupOption.model_validate(o) for o in raw.get("options") or []]


def load_catalog(options: Options) -> RuleCatalog:
    """
    Load and validate every catalog file named by `options`.

    Raises:
        ConfigError: a file is missing, is not valid YAML or does not match
            the catalog schema. The message names the file.
    """
    files = {
        "linters": ("linters config", options.linters_config_file),
        "languages": ("languages config", options.languages_config_file),
        "apt": ("APT options", options.options_config_file_apt),
        "mongodb": ("MongoDB options", options.options_config_file_mongodb),
        "mysql": ("MySQL options", options.options_config_file_mysql),
        "redis": ("Redis options", options.options_config_file_redis),
        "elasticsearch": ("Elasticsearch options", options.options_config_file_elasticsearch),
        "gitignore": ("gitignore config", options.gitignore_config_file),
    }

    loaded: Dict[str, Any] = {}
    for key, (label, raw_path) in files.items():
        path = resolve_config_path(raw_path)
        data = read_yaml(path, label)

        if key == "linters":
            loaded[key] = _validate(lambda d: _rules(LinterRule, d), data, path, label)
        elif key == "languages":
            loaded[key] = _validate(lambda d: _rules(LanguageRule, d), data, path, label)
        elif key == "gitignore":
            loaded[key] = _validate(lambda d: GitignoreCatalog.model_validate(d or {}), data, path, label)
        else:
            loaded[key] = _validate(_options, data, path, label)

    return RuleCatalog(
        linters=loaded["linters"],
        languages=loaded["languages"],
        service_options={k: loaded[k] for k in ("apt", *SERVICES)},
        gitignore=loaded["gitignore"],
    )
