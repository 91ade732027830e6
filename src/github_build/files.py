# files.py
from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Callable, Optional

from .catalog import ConfigTransform, LinterRule
from .config import BUNDLED_CONFIG_DIR
from .detect import file_contains

Transform = Callable[[str], str]


def atomic_write_text(target: str | Path, text: str) -> None:
    """
    Replace `target` with `text` in one rename.

    The temporary file lives next to the target so the final `os.replace` never
    crosses a filesystem. On failure the temporary file is removed and the
    existing target is left as it was.
    """
    target = Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
        # a symlink target is replaced by a regular file, not written through
        os.replace(tmp, target)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def atomic_symlink(link: str, target: str | Path) -> None:
    """Point `target` at `link`, swapping out whatever was there in one rename."""
    target = Path(target)
    target.parent.mkdir(parents=True, exist_ok=True)

    tmp = target.with_name(f".{target.name}.{os.getpid()}.link")
    tmp.unlink(missing_ok=True)
    os.symlink(link, tmp)
    try:
        os.replace(tmp, target)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def atomic_copy_config(source: str | Path, target: str | Path, transform: Optional[Transform] = None) -> None:
    with Path(source).open(encoding="utf-8", newline="") as f:
        text = f.read()
    if transform is not None:
        text = transform(text)
    atomic_write_text(target, text)


def uncomment_lines(text: str, marker: str) -> str:
    """Drop the leading "#" of every commented line containing `marker`."""
    out = []
    for line in text.splitlines(keepends=True):
        stripped = line.lstrip()
        if marker in line and stripped.startswith("#"):
            indent = line[: len(line) - len(stripped)]
            line = indent + stripped[1:]
        out.append(line)
    return "".join(out)


def config_transform(rule: Optional[ConfigTransform], root: str | Path = ".") -> Optional[Transform]:
    """The textual transform for a linter config, or None when it does not apply."""
    if rule is None or not file_contains(str(Path(root) / rule.file), rule.token):
        return None
    return lambda text: uncomment_lines(text, rule.uncomment)


# ---------------------------------------------------------------------
# Linter configuration install
# ---------------------------------------------------------------------

def install_linter_config(
    linter: LinterRule,
    root: str | Path = ".",
    scripts_dir: Optional[str] = None,
    bundled_dir: Path = BUNDLED_CONFIG_DIR / "linters",
) -> Optional[str]:
    """
    Make sure the configuration file of an enabled linter exists in `root`.

    Preference order:
      1. a symlink to `<scripts_dir>/linters/<config>` when the shared scripts
         submodule ships one,
      2. an existing regular file when the linter preserves its config,
      3. an atomic copy of the bundled default (with its transform applied).

    Returns a short description of what was done, or None for linters
    without a config file.
    """
    if not linter.config:
        return None

    root = Path(root)
    target = root / linter.config

    if scripts_dir:
        shared = Path(scripts_dir) / "linters" / linter.config
        if (root / shared).is_file():
            # relative link: the checkout may live anywhere
            link = os.path.relpath(root / shared, target.parent)
            if target.is_symlink() and os.readlink(target) == link:
                return f"linked {linter.config}"
            atomic_symlink(link, target)
            return f"linked {linter.config}"

    if linter.preserve_config and target.is_file() and not target.is_symlink():
        return f"kept {linter.config}"

    atomic_copy_config(bundled_dir / linter.config, target, config_transform(linter.transform, root))
    return f"copied {linter.config}"
