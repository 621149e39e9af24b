"""
Buildpack hook execution.

Hooks are run one at a time as child processes. stderr is always
inherited; stdout is captured only for the hooks whose protocol defines
output on it (detect and release) and inherited otherwise. Captured
output is decoded as UTF-8 with undecodable bytes replaced.
"""

from __future__ import annotations

import errno
import logging
import subprocess
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buildpack_lifecycle.buildpacks import BuildpackLayout
    from buildpack_lifecycle.observability import StagingLogger

logger = logging.getLogger(__name__)

# shell conventions for "found but not executable" and "not found"
EXIT_NOT_EXECUTABLE = 126
EXIT_NOT_FOUND = 127


def print_error(message: str) -> None:
    """Print a user-facing staging diagnostic on stderr."""
    print(message, file=sys.stderr, flush=True)


@dataclass
class HookResult:
    """Outcome of one hook invocation."""

    hook: str
    ref: str
    returncode: int
    stdout: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class HookRunner:
    """
    Runs buildpack hooks.

    Example:
        runner = HookRunner()
        result = runner.run(layout, "detect", [build_dir], capture=True)
        if result.ok:
            name = result.stdout.strip()
    """

    def __init__(self, staging_logger: StagingLogger | None = None):
        self._staging_logger = staging_logger

    def run(
        self,
        layout: BuildpackLayout,
        hook: str,
        args: list[str],
        *,
        capture: bool = False,
    ) -> HookResult:
        """
        Run ``bin/<hook>`` of a buildpack with positional arguments.

        A hook that cannot be started is reported as a failed invocation
        (126 or 127) rather than raised.
        """
        command = [str(layout.hook(hook)), *[str(arg) for arg in args]]
        logger.debug(f"Running {hook} for {layout.ref}: {command}")

        sys.stdout.flush()
        try:
            completed = subprocess.run(
                command,
                stdout=subprocess.PIPE if capture else None,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            returncode = EXIT_NOT_FOUND if e.errno == errno.ENOENT else EXIT_NOT_EXECUTABLE
            logger.warning(f"Cannot execute {hook} hook of {layout.ref}: {e}")
            result = HookResult(hook=hook, ref=layout.ref, returncode=returncode)
        else:
            result = HookResult(
                hook=hook,
                ref=layout.ref,
                returncode=completed.returncode,
                stdout=completed.stdout or "",
            )

        if self._staging_logger is not None:
            self._staging_logger.hook_invoked(hook, layout.ref, result.returncode)
        return result
