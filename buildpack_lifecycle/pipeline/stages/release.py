"""
Release stage.

Reads the Procfile, runs the release hook and settles the app's process
types. A missing ``web`` process is reported but does not fail staging.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from buildpack_lifecycle.errors import ReleaseFailed
from buildpack_lifecycle.staging import ReleaseInfo, read_procfile

from ..hooks import print_error
from ..stage import Stage

if TYPE_CHECKING:
    from ..context import StagingContext

logger = logging.getLogger(__name__)

MISSING_WEB_MESSAGES = (
    "No start command specified by buildpack or via Procfile.",
    "App will not start unless a command is provided at runtime.",
)


class ReleaseStage(Stage):
    @property
    def name(self) -> str:
        return "release"

    def run(self, ctx: StagingContext) -> None:
        layout = ctx.state.detected_layout
        if layout is None:
            raise ReleaseFailed(cause=ValueError("no buildpack to release"))

        procfile = read_procfile(ctx.build_dir)

        result = ctx.hooks.run(layout, "release", [str(ctx.build_dir)], capture=True)
        if not result.ok:
            raise ReleaseFailed(cause=RuntimeError(f"release exited with status {result.returncode}"))

        release = ReleaseInfo.parse(result.stdout)
        ctx.state.release = release
        # a non-empty Procfile replaces the buildpack's process types wholesale
        ctx.state.process_types = dict(procfile) if procfile else dict(release.default_process_types)

        if not ctx.state.process_types.get("web"):
            logger.warning("No web process type after release")
            for message in MISSING_WEB_MESSAGES:
                print_error(message)
