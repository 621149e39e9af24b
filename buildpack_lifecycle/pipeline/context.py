"""
Staging Context for the buildpack lifecycle.

The context carries the run's configuration, collaborators and the state
each stage hands to the next. It is created once per staging run and
passed to every stage's run() method.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from buildpack_lifecycle.buildpacks import BuildpackStore
from buildpack_lifecycle.cache import CacheManager
from buildpack_lifecycle.observability import StagingLogger

from .hooks import HookRunner

if TYPE_CHECKING:
    from buildpack_lifecycle.buildpacks import BuildpackLayout
    from buildpack_lifecycle.config import BuilderConfig
    from buildpack_lifecycle.staging import ReleaseInfo

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PipelineState:
    """What the stages have learned so far."""

    # Detect (or the final buildpack in skip-detect mode)
    detected_buildpack_name: str = ""
    detected_buildpack_key: str = ""
    detected_layout: BuildpackLayout | None = None

    # Supply
    supply_cache_paths: dict[str, Path] = field(default_factory=dict)
    supply_failures: list[str] = field(default_factory=list)

    # Release
    release: ReleaseInfo | None = None
    process_types: dict[str, str] = field(default_factory=dict)

    # Assemble
    staging_info_path: Path | None = None


@dataclass
class StagingContext:
    """
    Run-scoped context passed through the staging pipeline.

    The working directory is ``staging-<run id>`` under ``work_root``
    (the system temp dir by default) and is removed by cleanup().
    """

    config: BuilderConfig
    store: BuildpackStore
    cache: CacheManager
    hooks: HookRunner

    work_root: Path | None = None
    run_id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=_utc_now)

    state: PipelineState = field(default_factory=PipelineState)
    stage_timings: dict[str, float] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        config: BuilderConfig,
        *,
        store: BuildpackStore | None = None,
        hooks: HookRunner | None = None,
        work_root: Path | None = None,
    ) -> StagingContext:
        run_id = uuid4()
        return cls(
            config=config,
            store=store or BuildpackStore(config),
            cache=CacheManager(config),
            hooks=hooks or HookRunner(StagingLogger(run_id=str(run_id))),
            work_root=work_root,
            run_id=run_id,
        )

    @property
    def contents_dir(self) -> Path:
        root = self.work_root or Path(tempfile.gettempdir())
        return root / f"staging-{self.run_id.hex}"

    @property
    def deps_dir(self) -> Path:
        return self.contents_dir / "deps"

    @property
    def build_dir(self) -> Path:
        return Path(self.config.build_dir)

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the run started."""
        delta = datetime.now(timezone.utc) - self.started_at
        return delta.total_seconds() * 1000

    def record_timing(self, stage_name: str, duration_ms: float) -> None:
        self.stage_timings[stage_name] = duration_ms

    def prepare_directories(self) -> None:
        """Create output parents, the cache root and the deps tree."""
        for output in (self.config.output_droplet, self.config.output_metadata):
            Path(output).parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        Path(self.config.build_artifacts_cache_dir).mkdir(mode=0o755, parents=True, exist_ok=True)
        self.deps_dir.mkdir(mode=0o755, parents=True, exist_ok=True)

    def deps_index_dir(self, index: str) -> Path:
        path = self.deps_dir / index
        path.mkdir(mode=0o755, parents=True, exist_ok=True)
        return path

    def cleanup(self) -> None:
        """Remove the working directory and buildpacks downloaded by this run."""
        shutil.rmtree(self.contents_dir, ignore_errors=True)
        self.store.cleanup()

    def to_audit_dict(self) -> dict[str, Any]:
        return {
            "run_id": str(self.run_id),
            "started_at": self.started_at.isoformat(),
            "duration_ms": self.elapsed_ms,
            "buildpack_order": list(self.config.buildpack_order),
            "skip_detect": self.config.skip_detect,
            "detected_buildpack": self.state.detected_buildpack_name,
            "buildpack_key": self.state.detected_buildpack_key,
            "supply_failures": list(self.state.supply_failures),
            "stage_timings": self.stage_timings,
        }


@dataclass
class PipelineResult:
    """
    Result of a staging run.

    ``exception`` is the error that aborted the run, if any; the CLI maps
    it to the process exit code.
    """

    context: StagingContext
    success: bool = True
    error: str | None = None
    exception: BaseException | None = None
    failed_stage: str | None = None

    @property
    def run_id(self) -> UUID:
        return self.context.run_id

    @property
    def duration_ms(self) -> float:
        return self.context.elapsed_ms

    @property
    def staging_info_path(self) -> Path | None:
        return self.context.state.staging_info_path

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.context.to_audit_dict(),
            "success": self.success,
            "error": self.error,
            "failed_stage": self.failed_stage,
        }
