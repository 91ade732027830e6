# errors.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


class GHBError(Exception):
    """Base class for every error github-build raises on purpose."""


class ConfigError(GHBError):
    """A required configuration file or credential is missing or invalid."""


class FieldError(GHBError, AttributeError):
    """Raised when a field list names a field the source object does not have."""

    def __init__(self, owner: str, field_name: str):
        self.owner = owner
        self.field_name = field_name
        super().__init__(f"{owner} does not have a {field_name} field")


@dataclass
class VersionMismatchError(GHBError):
    """An existing version value differs from the recommended one in strict mode."""
    field: str
    existing: str
    recommended: str

    def __str__(self) -> str:
        return (
            f"{self.field} is set to {self.existing!r} but the recommended value is "
            f"{self.recommended!r} (use --no_strict_version_check to keep it)"
        )


class WorkflowGraphError(GHBError):
    """The generated job graph is inconsistent."""


@dataclass
class RepositorySettingsError(GHBError):
    """
    Remote repository configuration does not match the generated workflow.

    `missing` lists checks the workflow produces that the remote does not require,
    `extra` lists checks the remote requires that the workflow no longer produces.
    """
    message: str
    missing: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        lines = [self.message]
        for name in self.missing:
            lines.append(f"  missing check: {name}")
        for name in self.extra:
            lines.append(f"  extra check: {name}")
        return "\n".join(lines)


class APIError(GHBError):
    """Raised when an HTTP request to a remote service fails."""

    def __init__(self, message: str, status: int | None = None, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(message)
