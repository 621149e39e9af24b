"""
lifecycle-launcher: start an application from its droplet.

Usage:
    lifecycle-launcher <app-directory> <start-command> <metadata> [credhub flags]

Exit codes:
    0 handed over (or the child's code where exec is unavailable),
    1 usage or staging info error, 3 environment assembly failed, 4 exec failed
"""

from __future__ import annotations

import os
import sys

from buildpack_lifecycle.config import parse_credhub_args
from buildpack_lifecycle.errors import LifecycleError, UsageError
from buildpack_lifecycle.observability import configure_logging
from buildpack_lifecycle.runtime import Launcher

POSITIONAL_ARGS = 3


def usage(prog: str, received: int) -> str:
    return (
        f"{prog}: received only {received} arguments\n"
        f"Usage: {prog} <app-directory> <start-command> <metadata>"
    )


def main(argv: list[str] | None = None, prog: str | None = None) -> int:
    configure_logging()
    args = sys.argv[1:] if argv is None else argv
    prog = prog or os.path.basename(sys.argv[0]) or "launcher"

    try:
        if len(args) < POSITIONAL_ARGS:
            raise UsageError(usage(prog, len(args)))

        app_dir, start_command, _metadata = args[:POSITIONAL_ARGS]
        credhub = parse_credhub_args(args[POSITIONAL_ARGS:], prog)
        launcher = Launcher(app_dir, start_command, credhub=credhub, argv0=prog)
        return launcher.launch()
    except UsageError as e:
        print(str(e), file=sys.stderr)
        return e.exit_code
    except LifecycleError as e:
        print(f"{prog}: {e}", file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
