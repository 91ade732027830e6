# detect.py
from __future__ import annotations

import os
import re
from pathlib import PurePosixPath
from typing import Iterable, List, Optional

# Directory names never descended into, whatever the caller excludes.
ALWAYS_IGNORED = (".git", ".hg", ".svn", "node_modules", "vendor")


# ---------------------------------------------------------------------
# File tree scanning
# ---------------------------------------------------------------------
# Everything here runs in-process: file names and manifest contents are
# matched with `re` and plain string search, never handed to a shell.
# Any OS error means "not found".
# ---------------------------------------------------------------------

def _excluded(rel: str, excluded_substrings: Iterable[str]) -> bool:
    return any(s and s in rel for s in excluded_substrings)


def files_matching(
    root: str,
    pattern: str,
    excluded_substrings: Iterable[str] = (),
    max_depth: Optional[int] = None,
    ignored_directories: Iterable[str] = ALWAYS_IGNORED,
) -> List[str]:
    """
    Walk `root` and return the files whose name matches `pattern`.

    A path (relative to `root`, '/' separated) is dropped when it contains any
    of `excluded_substrings`, or when one of its directories is in
    `ignored_directories`. Files directly under `root` are at depth 0 and
    directories deeper than `max_depth` are not visited.

    Returns a sorted list of `os.path.join(root, relative)` paths; a missing
    or unreadable root gives [].
    """
    excluded = [s for s in excluded_substrings if s]
    ignored = set(ignored_directories)
    regex = re.compile(pattern)

    if not os.path.isdir(root):
        return []

    found: List[str] = []

    # os.walk swallows listing errors unless onerror is set
    for dirpath, dirnames, filenames in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root)
        depth = 0 if rel_dir == os.curdir else len(PurePosixPath(rel_dir.replace(os.sep, "/")).parts)

        # prune in place so ignored trees are never read
        dirnames[:] = sorted(
            d for d in dirnames
            if d not in ignored and (max_depth is None or depth < max_depth)
        )

        for filename in filenames:
            rel = filename if rel_dir == os.curdir else f"{rel_dir}/{filename}".replace(os.sep, "/")
            if _excluded(rel, excluded):
                continue
            if regex.search(filename):
                found.append(os.path.join(root, rel))

    return sorted(found)


def file_contains(path: str, substring: str) -> bool:
    """True when `substring` occurs literally on some line of `path`."""
    if not substring:
        return False
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            for line in f:
                if substring in line:
                    return True
    except OSError:
        return False
    return False
