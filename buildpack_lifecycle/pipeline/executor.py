"""
Pipeline Executor for the buildpack lifecycle.

The Pipeline runs a sequence of stages against one StagingContext. The
first stage that raises ends the run; its error is recorded on the result
rather than propagated, and cleanup always runs.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from buildpack_lifecycle.observability import StagingLogger

from .context import PipelineResult, StagingContext

if TYPE_CHECKING:
    from buildpack_lifecycle.config import BuilderConfig

    from .stage import Stage

logger = logging.getLogger(__name__)


class Pipeline:
    """
    Pipeline orchestrates sequential stage execution.

    Example:
        pipeline = PipelineBuilder.for_config(config).build()
        result = pipeline.execute(StagingContext.create(config))
        if not result.success:
            sys.exit(exit_code_for(result.exception))
    """

    def __init__(self, stages: list[Stage]):
        if not stages:
            raise ValueError("Pipeline must have at least one stage")
        self.stages = stages

    @property
    def stage_names(self) -> list[str]:
        return [s.name for s in self.stages]

    def execute(self, ctx: StagingContext, *, keep_work_dir: bool = False) -> PipelineResult:
        """
        Run every stage in order.

        Args:
            ctx: Staging context for this run
            keep_work_dir: Leave the working directory in place (debugging)

        Returns:
            PipelineResult; ``exception`` holds the error that stopped the run
        """
        events = StagingLogger(run_id=str(ctx.run_id))
        events.pipeline_started(
            stages=self.stage_names,
            buildpacks=list(ctx.config.buildpack_order),
            skip_detect=ctx.config.skip_detect,
        )
        logger.info(f"Staging starting: run_id={ctx.run_id.hex[:8]}..., stages={self.stage_names}")

        result = PipelineResult(context=ctx)
        try:
            for stage in self.stages:
                stage.initialize(ctx)

            for stage in self.stages:
                events.stage_started(stage.name)
                start_time = time.perf_counter()
                try:
                    stage.run(ctx)
                except Exception as e:
                    logger.error(f"Stage '{stage.name}' failed: {e}", exc_info=True)
                    events.stage_failed(stage.name, str(e), type(e).__name__)
                    result.success = False
                    result.error = str(e)
                    result.exception = e
                    result.failed_stage = stage.name
                    break
                finally:
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    ctx.record_timing(stage.name, duration_ms)

                events.stage_completed(stage.name, duration_ms)
        finally:
            for stage in self.stages:
                try:
                    stage.cleanup()
                except Exception as e:
                    logger.warning(f"Cleanup of stage '{stage.name}' failed: {e}")
            if not keep_work_dir:
                ctx.cleanup()

        events.pipeline_completed(result.success, ctx.elapsed_ms, result.error)
        logger.info(
            f"Staging complete: run_id={ctx.run_id.hex[:8]}..., "
            f"success={result.success}, duration={ctx.elapsed_ms:.1f}ms"
        )
        return result

    def __repr__(self) -> str:
        return f"Pipeline(stages={self.stage_names})"


class PipelineBuilder:
    """
    Builder for constructing pipelines with fluent API.

    Example:
        pipeline = (
            PipelineBuilder()
            .add(AcquireStage())
            .add_if(config.is_multi_buildpack(), PruneCacheStage())
            .add(DetectStage())
            .build()
        )
    """

    def __init__(self) -> None:
        self._stages: list[Stage] = []

    def add(self, stage: Stage) -> PipelineBuilder:
        self._stages.append(stage)
        return self

    def add_if(self, condition: bool, stage: Stage) -> PipelineBuilder:
        if condition:
            self._stages.append(stage)
        return self

    def build(self) -> Pipeline:
        return Pipeline(self._stages)

    @classmethod
    def for_config(cls, config: BuilderConfig) -> PipelineBuilder:
        """
        The standard staging pipeline for a configuration.

            Acquire → [PruneCache] → (skip_detect ? Supply : Detect)
                    → Compile → Release → Assemble → Archive
        """
        from .stages import (
            AcquireStage,
            ArchiveStage,
            AssembleStage,
            CompileStage,
            DetectStage,
            PruneCacheStage,
            ReleaseStage,
            SupplyStage,
        )

        return (
            cls()
            .add(AcquireStage())
            .add_if(config.is_multi_buildpack(), PruneCacheStage())
            .add_if(config.skip_detect, SupplyStage())
            .add_if(not config.skip_detect, DetectStage())
            .add(CompileStage())
            .add(ReleaseStage())
            .add(AssembleStage())
            .add(ArchiveStage())
        )
