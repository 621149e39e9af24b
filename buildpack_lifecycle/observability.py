"""
Observability for the buildpack lifecycle.

Structured logging for staging runs. Records are JSON-formatted and routed
through the stdlib logging tree, so the CLI's logging configuration decides
where they go (stderr by default; stdout belongs to the buildpack hooks).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

LOG_LEVEL_ENV = "BUILDPACK_LIFECYCLE_LOG_LEVEL"


class LogLevel(Enum):
    """Standard log levels."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def configure_logging(level: str | None = None) -> None:
    """
    Configure root logging for a CLI entry point.

    The level defaults to $BUILDPACK_LIFECYCLE_LOG_LEVEL, then WARNING.
    """
    name = (level or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@dataclass
class JSONLogger:
    """
    Structured logger that outputs JSON-formatted logs.

    Example output:
        {"timestamp": "2026-01-02T10:30:00Z", "level": "info",
         "message": "Stage completed", "run_id": "abc-123",
         "stage": "compile", "duration_ms": 812.4}
    """

    name: str = "buildpack_lifecycle"
    run_id: str | None = None
    extra_context: dict[str, Any] = field(default_factory=dict)
    _python_logger: logging.Logger | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self._python_logger = logging.getLogger(self.name)

    def _log(self, level: LogLevel, message: str, context: dict[str, Any]) -> None:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.value,
            "message": message,
            **self.extra_context,
            **context,
        }
        if self.run_id:
            record["run_id"] = self.run_id

        getattr(self._python_logger, level.value)(json.dumps(record, default=str))

    def debug(self, message: str, **context: Any) -> None:
        self._log(LogLevel.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(LogLevel.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(LogLevel.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(LogLevel.ERROR, message, context)


@dataclass
class StagingLogger:
    """
    Logger for staging pipeline events.

    Example:
        log = StagingLogger(run_id="abc-123")
        log.pipeline_started(stages=["acquire", "detect"], buildpacks=["ruby"])
        log.stage_completed(stage="detect", duration_ms=120.5)
    """

    run_id: str
    inner: JSONLogger = field(init=False)

    def __post_init__(self) -> None:
        self.inner = JSONLogger(name="buildpack_lifecycle.pipeline", run_id=self.run_id)

    def pipeline_started(self, stages: list[str], buildpacks: list[str], skip_detect: bool) -> None:
        self.inner.info(
            "Staging started",
            stages=stages,
            buildpacks=buildpacks,
            skip_detect=skip_detect,
        )

    def pipeline_completed(self, success: bool, duration_ms: float, error: str | None = None) -> None:
        if success:
            self.inner.info("Staging completed", success=True, duration_ms=round(duration_ms, 2))
        else:
            self.inner.error(
                "Staging failed",
                success=False,
                duration_ms=round(duration_ms, 2),
                error=error,
            )

    def stage_started(self, stage: str) -> None:
        self.inner.debug("Stage started", stage=stage)

    def stage_completed(self, stage: str, duration_ms: float) -> None:
        self.inner.debug("Stage completed", stage=stage, duration_ms=round(duration_ms, 2))

    def stage_failed(self, stage: str, error: str, error_type: str) -> None:
        self.inner.error("Stage failed", stage=stage, error=error, error_type=error_type)

    def hook_invoked(self, hook: str, buildpack: str, returncode: int) -> None:
        self.inner.debug("Hook finished", hook=hook, buildpack=buildpack, returncode=returncode)


def log_retry_attempt(
    operation: str,
    attempt: int,
    max_attempts: int,
    error: str,
    delay_s: float,
) -> None:
    JSONLogger(name="buildpack_lifecycle.retry").warning(
        "Retry attempt",
        operation=operation,
        attempt=attempt,
        max_attempts=max_attempts,
        error=error,
        delay_ms=round(delay_s * 1000, 2),
    )
