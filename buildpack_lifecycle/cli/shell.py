"""
lifecycle-shell: open a command inside a running app's environment.

Usage:
    lifecycle-shell [<app-directory>] [<command>] [credhub flags]

The app directory defaults to $HOME/app and the command to ``bash``.
Profile scripts are sourced before the command runs.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path

from buildpack_lifecycle.config import parse_credhub_args
from buildpack_lifecycle.errors import LifecycleError, UsageError
from buildpack_lifecycle.observability import configure_logging
from buildpack_lifecycle.runtime import EnvBuilder, LaunchPlan, build_script, execute

DEFAULT_COMMAND = "bash"


def resolve_app_dir(args: list[str], environ: Mapping[str, str]) -> Path:
    """
    Raises:
        UsageError: the given (or inferred) directory does not exist
    """
    if args:
        app_dir = Path(args[0])
        if not app_dir.exists():
            raise UsageError("Provided app directory does not exist")
    else:
        app_dir = Path(environ.get("HOME", "")) / "app"
        if not app_dir.exists():
            raise UsageError("Could not infer app directory, please provide one")
    return Path(os.path.abspath(app_dir))


def main(argv: list[str] | None = None, prog: str | None = None) -> int:
    configure_logging()
    args = sys.argv[1:] if argv is None else argv
    prog = prog or os.path.basename(sys.argv[0]) or "shell"

    try:
        app_dir = resolve_app_dir(args, os.environ)
        command = args[1] if len(args) >= 2 else DEFAULT_COMMAND
        credhub = parse_credhub_args(args[2:], prog)

        env = EnvBuilder(app_dir, credhub).build(os.environ)
        script = build_script(app_dir, announce=False, include_dot_profile=False)
        return execute(LaunchPlan(argv=["bash", "-c", script, prog, str(app_dir), command], env=env))
    except LifecycleError as e:
        print(f"{prog}: {e}", file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
