"""
Configuration Schemas for the buildpack lifecycle.

Pydantic models for the builder invocation and the secret-store client.
Paths derived from the configuration (buildpack roots, cache entries, deps
indices) are pure functions of the model, so two configs with the same
fields always address the same directories.
"""

from __future__ import annotations

import math
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from buildpack_lifecycle.errors import ConfigError

from .hashing import buildpack_hash, is_remote, legacy_buildpack_hash

FINAL_CACHE_DIR = "final"
LEGACY_FINAL_CACHE_DIR = "primary"

# (field name, original flag name) for every option that must be non-empty
REQUIRED_OPTIONS: tuple[tuple[str, str], ...] = (
    ("build_dir", "buildDir"),
    ("buildpacks_dir", "buildpacksDir"),
    ("buildpack_downloads_dir", "buildpackDownloadsDir"),
    ("build_artifacts_cache_dir", "buildArtifactsCacheDir"),
    ("output_droplet", "outputDroplet"),
    ("output_build_artifacts_cache", "outputBuildArtifactsCache"),
    ("output_metadata", "outputMetadata"),
    ("buildpack_order", "buildpackOrder"),
)


class CredhubSettings(BaseModel):
    """
    Retry budget for the secret-store client.

    Shared by the builder, launcher and shell command lines.
    """

    model_config = ConfigDict(frozen=True)

    connect_attempts: int = Field(3, ge=1, description="Attempts before giving up on the secret store")
    retry_delay: float = Field(1.0, ge=0, description="Seconds between secret-store attempts")

    @property
    def attempt_timeout(self) -> float:
        """Per-attempt request timeout in seconds."""
        return max(self.retry_delay * 5, 5.0)


class BuilderConfig(BaseModel):
    """
    Builder invocation parameters.

    Every field has the default the original lifecycle ships with, so a
    config built with no arguments only fails validation on the
    buildpack order.
    """

    model_config = ConfigDict(frozen=True)

    build_dir: str = Field("/tmp/app", description="Directory containing raw app bits")
    buildpacks_dir: str = Field("/tmp/buildpacks", description="Directory containing system buildpacks")
    buildpack_downloads_dir: str = Field(
        "/tmp/buildpackdownloads",
        description="Directory where remote buildpacks are downloaded",
    )
    build_artifacts_cache_dir: str = Field(
        "/tmp/cache",
        description="Directory holding cached build artifacts from previous runs",
    )
    output_droplet: str = Field("/tmp/droplet", description="File where the droplet archive is written")
    output_build_artifacts_cache: str = Field(
        "/tmp/output-cache",
        description="File where the build artifacts cache archive is written",
    )
    output_metadata: str = Field("/tmp/result.json", description="File where the staging result is written")
    buildpack_order: list[str] = Field(default_factory=list, description="Buildpacks to try, in order")
    skip_detect: bool = False
    skip_cert_verify: bool = False
    credhub: CredhubSettings = Field(default_factory=CredhubSettings)

    @field_validator("buildpack_order", mode="before")
    @classmethod
    def _split_order(cls, value):
        if isinstance(value, str):
            return [ref for ref in value.split(",") if ref]
        return value

    def validate_required(self) -> None:
        """
        Fail with ConfigError if any required option is empty.

        All missing options are reported at once.
        """
        missing = []
        for field_name, flag_name in REQUIRED_OPTIONS:
            if not getattr(self, field_name):
                missing.append(f"missing flag: -{flag_name}")
        if missing:
            raise ConfigError(", ".join(missing))

    # ==================== Buildpacks ====================

    def _buildpack_root(self, ref: str) -> Path:
        if is_remote(ref):
            return Path(self.buildpack_downloads_dir)
        return Path(self.buildpacks_dir)

    def buildpack_path(self, ref: str) -> Path:
        return self._buildpack_root(ref) / buildpack_hash(ref)

    def legacy_buildpack_path(self, ref: str) -> Path:
        return self._buildpack_root(ref) / legacy_buildpack_hash(ref)

    @property
    def num_buildpacks(self) -> int:
        return len(self.buildpack_order)

    def supply_buildpacks(self) -> list[str]:
        """Every buildpack but the last (skip-detect mode)."""
        return self.buildpack_order[:-1]

    def final_buildpack(self) -> str:
        return self.buildpack_order[-1]

    def is_multi_buildpack(self) -> bool:
        return self.skip_detect and self.num_buildpacks > 1

    def deps_indices(self) -> list[str]:
        """
        Zero-padded positional indices, one per buildpack.

        The width is the number of decimal digits of the buildpack count,
        so indices sort lexicographically in numeric order.
        """
        count = self.num_buildpacks
        if count == 0:
            return []
        width = int(math.log10(count)) + 1
        return [str(index).zfill(width) for index in range(count)]

    def final_deps_index(self) -> str:
        return self.deps_indices()[-1]

    # ==================== Cache ====================

    def supply_cache_path(self, ref: str) -> Path:
        return Path(self.build_artifacts_cache_dir) / buildpack_hash(ref)

    def legacy_supply_cache_path(self, ref: str) -> Path:
        return Path(self.build_artifacts_cache_dir) / legacy_buildpack_hash(ref)

    def final_cache_path(self) -> Path:
        return Path(self.build_artifacts_cache_dir) / FINAL_CACHE_DIR

    # ==================== Serialization ====================

    def to_args(self) -> list[str]:
        """Render the config as builder command-line arguments."""
        return [
            f"-buildDir={self.build_dir}",
            f"-buildpacksDir={self.buildpacks_dir}",
            f"-buildpackDownloadsDir={self.buildpack_downloads_dir}",
            f"-buildArtifactsCacheDir={self.build_artifacts_cache_dir}",
            f"-outputDroplet={self.output_droplet}",
            f"-outputBuildArtifactsCache={self.output_build_artifacts_cache}",
            f"-outputMetadata={self.output_metadata}",
            f"-buildpackOrder={','.join(self.buildpack_order)}",
            f"-skipDetect={str(self.skip_detect).lower()}",
            f"-skipCertVerify={str(self.skip_cert_verify).lower()}",
            f"-credhubConnectAttempts={self.credhub.connect_attempts}",
            f"-credhubRetryDelay={self.credhub.retry_delay}s",
        ]
