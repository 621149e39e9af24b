"""
Staging pipeline.

A staging run is a fixed sequence of stages sharing one StagingContext:

    Acquire → [PruneCache] → (skip_detect ? Supply : Detect)
            → Compile → Release → Assemble → Archive

Usage:
    config = parse_builder_args(sys.argv[1:])
    pipeline = PipelineBuilder.for_config(config).build()
    result = pipeline.execute(StagingContext.create(config))
"""

from .context import PipelineResult, PipelineState, StagingContext
from .executor import Pipeline, PipelineBuilder
from .hooks import HookResult, HookRunner, print_error
from .stage import Stage

__all__ = [
    "HookResult",
    "HookRunner",
    "Pipeline",
    "PipelineBuilder",
    "PipelineResult",
    "PipelineState",
    "Stage",
    "StagingContext",
    "print_error",
]
