"""
Assemble and archive stages.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from buildpack_lifecycle.droplet import DropletAssembler
from buildpack_lifecycle.staging import LifecycleMetadata, StagingInfo, StagingInfoConfig, StagingResult

from ..stage import Stage

if TYPE_CHECKING:
    from ..context import StagingContext

logger = logging.getLogger(__name__)


class AssembleStage(Stage):
    """Build the droplet tree and write the droplet archive."""

    @property
    def name(self) -> str:
        return "assemble"

    def run(self, ctx: StagingContext) -> None:
        state = ctx.state
        assembler = DropletAssembler(ctx.contents_dir)

        prefix = state.release.entrypoint_prefix if state.release is not None else ""
        info = StagingInfo(
            detected_buildpack=state.detected_buildpack_name,
            start_command=state.process_types.get("web", ""),
            config=StagingInfoConfig(entrypoint_prefix=prefix) if prefix else None,
        )
        state.staging_info_path = assembler.write_staging_info(info)

        assembler.reset_scratch_dirs()
        assembler.move_app(ctx.build_dir)
        assembler.archive_droplet(Path(ctx.config.output_droplet))


class ArchiveStage(Stage):
    """Write the build artifacts cache archive and the staging result."""

    @property
    def name(self) -> str:
        return "archive"

    def run(self, ctx: StagingContext) -> None:
        DropletAssembler.archive_cache(
            Path(ctx.config.build_artifacts_cache_dir),
            Path(ctx.config.output_build_artifacts_cache),
        )

        result = StagingResult(
            process_types=ctx.state.process_types,
            lifecycle_metadata=LifecycleMetadata(
                detected_buildpack=ctx.state.detected_buildpack_name,
                buildpack_key=ctx.state.detected_buildpack_key,
            ),
        )
        DropletAssembler.write_result(result, Path(ctx.config.output_metadata))
