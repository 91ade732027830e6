"""Progress and error output of github-build runs."""

from __future__ import annotations

import sys
import traceback
from typing import Iterable, Optional

INDENT = "    "


class Console:
    """
    Everything github-build tells the user goes through one Console.

    Progress goes to stdout, nested by phase: `print_header`, then
    `print_step`, then `print_detail`. Warnings, errors and debug lines go to
    stderr.
    """

    def __init__(self, debug: bool = False):
        self.debug = debug

    # ---------------------------------------------------------------------
    # Progress (stdout)
    # ---------------------------------------------------------------------

    def print_header(self, title: str) -> None:
        print(title)

    def print_step(self, message: str) -> None:
        print(f"{INDENT}{message}")

    def print_detail(self, message: str) -> None:
        print(f"{INDENT * 2}{message}")

    def print_checks(self, checks: Iterable[str]) -> None:
        """List the status checks branch protection has to require."""
        self.print_step("Required status checks:")
        for check in checks:
            self.print_detail(check)

    def print_info(self, message: str) -> None:
        print(message)

    # ---------------------------------------------------------------------
    # Problems (stderr)
    # ---------------------------------------------------------------------

    def print_warning(self, message: str) -> None:
        """A value that is kept although it differs from the recommended one."""
        print(f"WARNING: {message}", file=sys.stderr)

    def print_exception(self, exc: BaseException) -> None:
        """
        Report the error that ended the run: the message always, the
        traceback only in debug mode.
        """
        print(f"Error: {exc}", file=sys.stderr)
        if self.debug:
            traceback.print_exception(type(exc), exc, exc.__traceback__)

    def print_debug(self, message: str) -> None:
        if self.debug:
            print(f"[DEBUG] {message}", file=sys.stderr)


# Set by the CLI; library callers get a non-debug console.
_console: Optional[Console] = None


def get_console() -> Console:
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    global _console
    _console = console
