"""
Detect stage.

Runs each buildpack's detect hook in order; the first to exit 0 wins and
its trimmed stdout becomes the detected buildpack name.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from buildpack_lifecycle.errors import DetectFailed, MalformedLayout

from ..hooks import print_error
from ..stage import Stage

if TYPE_CHECKING:
    from ..context import StagingContext

logger = logging.getLogger(__name__)


class DetectStage(Stage):
    @property
    def name(self) -> str:
        return "detect"

    def run(self, ctx: StagingContext) -> None:
        build_dir = str(ctx.build_dir)

        for ref in ctx.config.buildpack_order:
            try:
                layout = ctx.store.locate(ref)
            except MalformedLayout as e:
                print_error(str(e))
                continue

            result = ctx.hooks.run(layout, "detect", [build_dir], capture=True)
            if not result.ok:
                logger.info(f"Buildpack {ref} did not detect (exit {result.returncode})")
                continue

            ctx.state.detected_buildpack_name = result.stdout.strip()
            ctx.state.detected_buildpack_key = ref
            ctx.state.detected_layout = layout
            logger.info(f"Detected buildpack {ref}: {ctx.state.detected_buildpack_name!r}")
            return

        raise DetectFailed()
