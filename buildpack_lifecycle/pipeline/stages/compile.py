"""
Compile stage.

In detect mode the detected buildpack compiles with the cache root as
its cache. In skip-detect mode the final buildpack either finalizes
(running its own supply first, when it has one) into deps/<final index>,
or compiles with ``""`` in the deps-index slot.
"""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

from buildpack_lifecycle.errors import CompileFailed, MalformedLayout, SupplyFailed

from ..hooks import print_error
from ..stage import Stage

if TYPE_CHECKING:
    from buildpack_lifecycle.buildpacks import BuildpackLayout

    from ..context import StagingContext

logger = logging.getLogger(__name__)


class CompileStage(Stage):
    @property
    def name(self) -> str:
        return "compile"

    def run(self, ctx: StagingContext) -> None:
        if ctx.config.skip_detect:
            self._run_final_buildpack(ctx)
            return

        layout = ctx.state.detected_layout
        if layout is None:
            raise CompileFailed(cause=ValueError("no buildpack was detected"))
        self._compile(ctx, layout)

    def _run_final_buildpack(self, ctx: StagingContext) -> None:
        ref = ctx.config.final_buildpack()
        try:
            layout = ctx.store.locate(ref)
        except MalformedLayout as e:
            print_error(str(e))
            raise CompileFailed(cause=e) from e
        ctx.state.detected_layout = layout

        if not layout.has_hook("finalize"):
            shutil.rmtree(ctx.deps_dir / ctx.config.final_deps_index(), ignore_errors=True)
            self._compile(ctx, layout)
            return

        index = ctx.config.final_deps_index()
        cache_dir = ctx.cache.compile_cache_dir()
        ctx.deps_index_dir(index)
        args = [str(ctx.build_dir), str(cache_dir), index, str(ctx.deps_dir)]

        if layout.has_hook("supply"):
            result = ctx.hooks.run(layout, "supply", args)
            if not result.ok:
                raise SupplyFailed(cause=RuntimeError(f"supply exited with status {result.returncode}"))

        result = ctx.hooks.run(layout, "finalize", args)
        if not result.ok:
            raise CompileFailed(
                "Failed to run finalize script",
                cause=RuntimeError(f"finalize exited with status {result.returncode}"),
            )

    def _compile(self, ctx: StagingContext, layout: BuildpackLayout) -> None:
        cache_dir = ctx.cache.compile_cache_dir()
        result = ctx.hooks.run(
            layout,
            "compile",
            [str(ctx.build_dir), str(cache_dir), "", str(ctx.deps_dir)],
        )
        if not result.ok:
            raise CompileFailed(cause=RuntimeError(f"compile exited with status {result.returncode}"))
