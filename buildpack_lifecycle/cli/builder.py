"""
lifecycle-builder: stage an application into a droplet.

Usage:
    lifecycle-builder -buildDir=/tmp/app -buildpackOrder=ruby,https://example.com/bp.zip ...

Exit codes:
    0 success, 1 invalid arguments or unexpected failure, 222 detect failed,
    223 compile failed, 224 release failed, 225 all supply buildpacks failed
"""

from __future__ import annotations

import json
import logging
import sys

from buildpack_lifecycle.config import parse_builder_args
from buildpack_lifecycle.errors import ConfigError, exit_code_for
from buildpack_lifecycle.observability import configure_logging
from buildpack_lifecycle.pipeline import PipelineBuilder, StagingContext

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = sys.argv[1:] if argv is None else argv

    try:
        config = parse_builder_args(args)
        config.validate_required()
    except ConfigError as e:
        print(str(e), file=sys.stderr)
        return e.exit_code

    pipeline = PipelineBuilder.for_config(config).build()
    result = pipeline.execute(StagingContext.create(config))
    logger.info(f"Staging summary: {json.dumps(result.to_dict(), default=str)}")
    if result.success:
        return 0

    print(f"Staging failed: {result.error}", file=sys.stderr)
    return exit_code_for(result.exception)


if __name__ == "__main__":
    sys.exit(main())
