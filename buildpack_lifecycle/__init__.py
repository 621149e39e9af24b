"""
buildpack-lifecycle: buildpack staging builder and application launcher.

Usage:
    from buildpack_lifecycle.config import parse_builder_args
    from buildpack_lifecycle.pipeline import PipelineBuilder, StagingContext

    config = parse_builder_args(["-buildpackOrder=ruby", "-buildDir=/tmp/app"])
    result = PipelineBuilder.for_config(config).build().execute(StagingContext.create(config))
"""

__version__ = "0.1.0"
