"""
Supply stage (skip-detect mode).

Every buildpack but the last contributes dependencies into its own
deps/<index> directory. A failing supply buildpack is reported and
skipped; the stage fails only when all of them failed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from buildpack_lifecycle.errors import MalformedLayout, SupplyFailed

from ..hooks import print_error
from ..stage import Stage

if TYPE_CHECKING:
    from ..context import StagingContext

logger = logging.getLogger(__name__)


class SupplyStage(Stage):
    @property
    def name(self) -> str:
        return "supply"

    def run(self, ctx: StagingContext) -> None:
        config = ctx.config
        supply_refs = config.supply_buildpacks()
        indices = config.deps_indices()

        for index, ref in zip(indices, supply_refs):
            if not self._supply(ctx, ref, index):
                ctx.state.supply_failures.append(ref)

        if supply_refs and len(ctx.state.supply_failures) == len(supply_refs):
            raise SupplyFailed()

        ctx.state.detected_buildpack_name = ""
        ctx.state.detected_buildpack_key = config.final_buildpack()

    def _supply(self, ctx: StagingContext, ref: str, index: str) -> bool:
        try:
            layout = ctx.store.locate(ref)
        except MalformedLayout as e:
            print_error(str(e))
            logger.error(f"Supply buildpack {ref} skipped: {e}")
            return False

        cache_dir = ctx.cache.supply_cache_dir(ref)
        ctx.state.supply_cache_paths[ref] = cache_dir
        ctx.deps_index_dir(index)

        result = ctx.hooks.run(
            layout,
            "supply",
            [str(ctx.build_dir), str(cache_dir), index, str(ctx.deps_dir)],
        )
        if not result.ok:
            logger.error(f"Supply buildpack {ref} failed with exit code {result.returncode}; continuing")
            return False
        return True
