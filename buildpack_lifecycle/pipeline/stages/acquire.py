"""
Acquire and cache-preparation stages.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..stage import Stage

if TYPE_CHECKING:
    from ..context import StagingContext

logger = logging.getLogger(__name__)


class AcquireStage(Stage):
    """Set up the run's directories and fetch every remote buildpack."""

    @property
    def name(self) -> str:
        return "acquire"

    def run(self, ctx: StagingContext) -> None:
        ctx.prepare_directories()
        ctx.store.ensure_all(ctx.config.buildpack_order)


class PruneCacheStage(Stage):
    """
    Migrate and prune the cache root.

    Only part of multi-buildpack pipelines; runs before any hook.
    """

    @property
    def name(self) -> str:
        return "prune_cache"

    def run(self, ctx: StagingContext) -> None:
        ctx.cache.prepare()
