# github/settings.py
from __future__ import annotations

import os
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple

from ..errors import ConfigError, RepositorySettingsError
from ..ui.console import Console, get_console

TOKEN_VARIABLE = "GITHUB_TOKEN"


class SettingsClient(Protocol):
    def get_repository(self, owner: str, repo: str) -> Dict[str, Any]: ...
    def get_branch_protection(self, owner: str, repo: str, branch: str) -> Optional[Dict[str, Any]]: ...
    def update_branch_protection(self, owner: str, repo: str, branch: str, payload: Dict[str, Any]) -> None: ...
    def enable_vulnerability_alerts(self, owner: str, repo: str) -> None: ...
    def enable_automated_security_fixes(self, owner: str, repo: str) -> None: ...
    def update_repository(self, owner: str, repo: str, payload: Dict[str, Any]) -> None: ...


def token_from_env(env: Mapping[str, str] = os.environ) -> str:
    token = env.get(TOKEN_VARIABLE) or ""
    if not token.strip():
        raise ConfigError(f"{TOKEN_VARIABLE} environment variable is required for repository settings")
    return token.strip()


# ---------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------

def protection_payload(checks: List[str]) -> Dict[str, Any]:
    """Branch protection for the default branch, requiring exactly `checks`."""
    return {
        "required_status_checks": {"strict": False, "contexts": list(checks)},
        "enforce_admins": False,
        "required_pull_request_reviews": {
            "dismiss_stale_reviews": True,
            "require_code_owner_reviews": True,
            "require_last_push_approval": True,
            "required_approving_review_count": 1,
        },
        "restrictions": None,
        "required_linear_history": False,
        "allow_force_pushes": False,
        "allow_deletions": False,
        "block_creations": False,
        "required_conversation_resolution": True,
    }


def security_payload(private: bool) -> Dict[str, Any]:
    # advanced security is billed on private repositories
    status = "disabled" if private else "enabled"
    return {
        "security_and_analysis": {
            "advanced_security": {"status": status},
            "secret_scanning": {"status": status},
            "secret_scanning_push_protection": {"status": status},
        }
    }


def required_contexts(protection: Dict[str, Any]) -> List[str]:
    checks = protection.get("required_status_checks") or {}
    contexts = list(checks.get("contexts") or [])
    if not contexts:
        contexts = [c.get("context") for c in checks.get("checks") or [] if c.get("context")]
    return contexts


def compare_checks(expected: List[str], actual: List[str]) -> Tuple[List[str], List[str]]:
    """(missing, extra): checks to add to the remote, checks the remote should drop."""
    missing = [c for c in expected if c not in actual]
    extra = [c for c in actual if c not in expected]
    return missing, extra


# ---------------------------------------------------------------------
# Validation + mutation
# ---------------------------------------------------------------------

def apply_repository_settings(
    client: SettingsClient,
    owner: str,
    repo: str,
    checks: List[str],
    console: Optional[Console] = None,
) -> None:
    """
    Validate the remote required checks against `checks`, then configure the
    repository.

    Nothing is changed when the default branch is already protected with a
    different set of checks: RepositorySettingsError lists the missing and
    extra entries. An unprotected branch is a first-time setup.
    """
    console = console or get_console()

    repository = client.get_repository(owner, repo)
    branch = repository.get("default_branch") or "master"
    private = bool(repository.get("private")) or repository.get("visibility") in ("private", "internal")

    protection = client.get_branch_protection(owner, repo, branch)
    if protection is None:
        console.print_step(f"{branch} is not protected yet, configuring it")
    else:
        missing, extra = compare_checks(checks, required_contexts(protection))
        if missing or extra:
            raise RepositorySettingsError(
                f"{owner}/{repo}: required status checks of {branch} do not match the build file",
                missing=missing,
                extra=extra,
            )

    console.print_step(f"Updating branch protection of {branch}...")
    client.update_branch_protection(owner, repo, branch, protection_payload(checks))
    console.print_step("Enabling vulnerability alerts...")
    client.enable_vulnerability_alerts(owner, repo)
    console.print_step("Enabling automated security fixes...")
    client.enable_automated_security_fixes(owner, repo)
    console.print_step("Updating security features...")
    client.update_repository(owner, repo, security_payload(private))
