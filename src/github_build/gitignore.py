# gitignore.py
"""
.gitignore assembly.

The body comes from the gitignore template service for the templates that
apply to the repository. Tool-specific custom blocks are appended between
their own markers, and whatever the previous file carried after its last
`# End of ` marker is kept as hand-written content.
"""
from __future__ import annotations

import re
import urllib.error
import urllib.request
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from .catalog import GitignoreCatalog
from .config import Defaults
from .detect import file_contains, files_matching
from .errors import APIError
from .files import atomic_write_text

TEMPLATE_API = "https://www.toptal.com/developers/gitignore/api/"
END_MARKER = "# End of "

Fetcher = Callable[[List[str]], str]


# ---------------------------------------------------------------------
# Template detection
# ---------------------------------------------------------------------

def _unique(items: Iterable[str]) -> List[str]:
    out: List[str] = []
    for i in items:
        if i and i not in out:
            out.append(i)
    return out


def detect_templates(
    catalog: GitignoreCatalog,
    root: str | Path,
    defaults: Defaults,
    excluded: Iterable[str] = (),
) -> List[str]:
    root = str(root)
    excluded = list(excluded)

    def present(pattern: str) -> bool:
        return bool(
            files_matching(
                root,
                pattern,
                excluded,
                max_depth=defaults.max_depth,
                ignored_directories=defaults.ignored_directories,
            )
        )

    templates = list(catalog.always)
    templates += [t for ext, t in catalog.extensions.items() if present(rf"\.{re.escape(ext)}$")]
    templates += [t for name, t in catalog.files.items() if present(rf"^{re.escape(name)}$")]
    templates += [p.template for p in catalog.packages if file_contains(str(Path(root) / p.file), p.token)]
    return _unique(templates)


def custom_rules(catalog: GitignoreCatalog, root: str | Path) -> str:
    blocks = []
    for block in catalog.custom:
        if block.file and not (Path(root) / block.file).exists():
            continue
        lines = [f"# Custom rules for {block.name}", *block.patterns, f"{END_MARKER}custom rules for {block.name}"]
        blocks.append("\n".join(lines) + "\n")
    return "\n".join(blocks)


# ---------------------------------------------------------------------
# Template service
# ---------------------------------------------------------------------

def fetch_templates(templates: List[str], base_url: str = TEMPLATE_API, timeout: float = 30) -> str:
    """
    Fetch the merged .gitignore body for `templates`.

    Raises:
        APIError: the service could not be reached or answered with an error.
    """
    url = base_url + ",".join(templates)
    req = urllib.request.Request(url, headers={"User-Agent": "github-build"})
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return response.read().decode("utf-8")
    except urllib.error.HTTPError as e:
        error_body = e.read().decode("utf-8") if e.fp else ""
        raise APIError(f"gitignore template request failed: {e.code} {e.reason}", status=e.code, body=error_body)
    except urllib.error.URLError as e:
        raise APIError(f"Network error: {e.reason}")


# ---------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------

def trailing_content(previous: str) -> str:
    """
    Hand-written lines of a previous .gitignore: everything after its last
    `# End of ` marker, or the whole file when it was never generated.
    """
    lines = previous.splitlines(keepends=True)
    last = None
    for i, line in enumerate(lines):
        if END_MARKER in line:
            last = i
    if last is None:
        return previous
    return "".join(lines[last + 1:])


def merge_gitignore(body: str, custom: str, previous: Optional[str]) -> str:
    parts = [body.rstrip("\n") + "\n"]
    if custom:
        parts.append(custom)
    if previous:
        trailing = trailing_content(previous).strip("\n")
        if trailing:
            parts.append(trailing + "\n")
    text = "\n".join(parts)
    return re.sub(r"\n{3,}", "\n\n", text)


def update_gitignore(
    root: str | Path,
    catalog: GitignoreCatalog,
    defaults: Defaults,
    excluded: Iterable[str] = (),
    fetch: Fetcher = fetch_templates,
) -> Optional[Path]:
    """Regenerate `<root>/.gitignore`. Returns its path, or None when no template applies."""
    templates = detect_templates(catalog, root, defaults, excluded)
    if not templates:
        return None

    path = Path(root) / ".gitignore"
    previous = path.read_text(encoding="utf-8") if path.is_file() else None
    text = merge_gitignore(fetch(templates), custom_rules(catalog, root), previous)
    atomic_write_text(path, text)
    return path
