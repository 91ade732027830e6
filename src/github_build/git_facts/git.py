# git.py
# Small, focused helpers for the Git facts github-build needs.
# Remote lookups go through the Git CLI with argument lists (never a shell
# string); .gitmodules is parsed in-process so detection never spawns git.

from __future__ import annotations

import re
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple


def _git(args: list[str], cwd: Optional[str] = None) -> str:
    """
    Execute a git command and return its stdout as a clean string.

    This is the single low-level entry point for the Git CLI in this file.

    Args:
        args: List of git arguments (e.g. ["remote", "get-url", "origin"])
        cwd: Optional working directory in which to run the git command.

    Returns:
        Stdout from the git command with surrounding whitespace removed.
    """
    # A non-zero exit raises CalledProcessError; callers decide whether
    # that is fatal.
    out = subprocess.check_output(
        ["git", *args],
        cwd=cwd,
        text=True,
        stderr=subprocess.DEVNULL,
    )
    return out.strip()


def get_remote_url(remote: str = "origin", cwd: Optional[str] = None) -> str:
    """
    Return the URL configured for a remote.

    Raises:
        subprocess.CalledProcessError: the remote does not exist.
        FileNotFoundError: git is not installed.
    """
    return _git(["remote", "get-url", remote], cwd=cwd)


_SLUG_RE = re.compile(r"[:/](?P<owner>[^/:]+)/(?P<repo>[^/]+?)(?:\.git)?/?$")


def parse_repo_slug(url: str) -> Optional[Tuple[str, str]]:
    """
    Extract (owner, repository) from a remote URL.

    Works for both forms GitHub hands out:
        git@github.com:my-org/my-repo.git
        https://github.com/my-org/my-repo
    """
    m = _SLUG_RE.search(url.strip())
    if not m:
        return None
    return m.group("owner"), m.group("repo")


def remote_slug(cwd: Optional[str] = None) -> Optional[Tuple[str, str]]:
    """(owner, repository) of the origin remote, or None when it cannot be resolved."""
    try:
        return parse_repo_slug(get_remote_url("origin", cwd=cwd))
    except (subprocess.CalledProcessError, FileNotFoundError):
        return None


def submodule_paths(root: str | Path = ".") -> List[str]:
    """
    Return the `path = ...` entries of `<root>/.gitmodules`, in file order.

    A missing or unreadable file means "no submodules".
    """
    gitmodules = Path(root) / ".gitmodules"
    paths: List[str] = []

    try:
        with gitmodules.open(encoding="utf-8", errors="replace") as f:
            for line in f:
                key, sep, value = line.partition("=")
                if sep and key.strip() == "path" and value.strip():
                    paths.append(value.strip())
    except OSError:
        return []

    return paths


def scripts_submodule(paths: List[str]) -> Optional[str]:
    """The submodule that ships shared scripts (its path contains 'scripts')."""
    found = None
    for p in paths:
        if "scripts" in p:
            found = p
    return found
