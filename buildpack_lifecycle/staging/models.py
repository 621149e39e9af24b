"""
Staging documents.

Pydantic models for what the release hook emits, what is persisted beside
the droplet (staging_info.yml) and what the builder reports to its caller
(result.json).

Only the essential fields are validated; everything else in a buildpack's
release output is carried along untouched.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from buildpack_lifecycle.errors import ProcfileInvalid, ReleaseInvalid, StagingInfoError

from .yaml_loader import load_lenient

STAGING_INFO_FILENAME = "staging_info.yml"
PROCFILE_FILENAME = "Procfile"
LIFECYCLE_TYPE = "buildpack"


def _stringify_commands(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError("process types must be a mapping")
    return {str(name): "" if command is None else str(command) for name, command in value.items()}


def _string_or_none(value: Any) -> str | None:
    # opaque tagged nodes and scalars of other types carry no usable prefix
    return value if isinstance(value, str) else None


class ReleaseConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    entrypoint_prefix: str | None = None

    @field_validator("entrypoint_prefix", mode="before")
    @classmethod
    def _drop_opaque_prefix(cls, value: Any) -> str | None:
        return _string_or_none(value)


class ReleaseInfo(BaseModel):
    """
    Parsed output of a buildpack's release hook.

    Example document:
        default_process_types:
          web: bundle exec rackup -p $PORT
        config_vars:
          RACK_ENV: production
    """

    model_config = ConfigDict(extra="allow")

    default_process_types: dict[str, str] = Field(default_factory=dict)
    config: ReleaseConfig | None = None

    @field_validator("default_process_types", mode="before")
    @classmethod
    def _coerce_process_types(cls, value: Any) -> dict[str, str]:
        return _stringify_commands(value)

    @field_validator("config", mode="before")
    @classmethod
    def _ignore_opaque_config(cls, value: Any) -> Any:
        # non-mapping config values are not ours to interpret
        return value if isinstance(value, (dict, ReleaseConfig)) else None

    @classmethod
    def parse(cls, output: str | bytes) -> ReleaseInfo:
        """
        Parse release hook stdout.

        Raises:
            ReleaseInvalid: not YAML, not a mapping, or process types malformed
        """
        try:
            document = load_lenient(output)
        except yaml.YAMLError as e:
            raise ReleaseInvalid(cause=e) from e

        if not isinstance(document, dict):
            raise ReleaseInvalid(cause=ValueError("release output is not a mapping"))

        try:
            return cls.model_validate(document)
        except ValidationError as e:
            raise ReleaseInvalid(cause=e) from e

    @property
    def entrypoint_prefix(self) -> str:
        if self.config is not None and self.config.entrypoint_prefix:
            return self.config.entrypoint_prefix
        return ""


def read_procfile(build_dir: Path) -> dict[str, str]:
    """
    Read the optional Procfile in the build directory.

    Returns:
        Process name to start command; empty when there is no Procfile

    Raises:
        ProcfileInvalid: the Procfile is not a YAML mapping
    """
    path = build_dir / PROCFILE_FILENAME
    if not path.is_file():
        return {}

    try:
        document = load_lenient(path.read_text())
    except yaml.YAMLError as e:
        raise ProcfileInvalid(cause=ValueError("invalid YAML")) from e

    if document is None:
        return {}
    try:
        return _stringify_commands(document)
    except ValueError as e:
        raise ProcfileInvalid(cause=e) from e


class StagingInfoConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    entrypoint_prefix: str | None = None

    @field_validator("entrypoint_prefix", mode="before")
    @classmethod
    def _drop_opaque_prefix(cls, value: Any) -> str | None:
        return _string_or_none(value)


class StagingInfo(BaseModel):
    """Metadata persisted beside the droplet as staging_info.yml."""

    model_config = ConfigDict(extra="ignore")

    detected_buildpack: str = ""
    start_command: str = ""
    config: StagingInfoConfig | None = None

    @field_validator("detected_buildpack", "start_command", mode="before")
    @classmethod
    def _coerce_string(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("config", mode="before")
    @classmethod
    def _ignore_opaque_config(cls, value: Any) -> Any:
        return value if isinstance(value, (dict, StagingInfoConfig)) else None

    @property
    def entrypoint_prefix(self) -> str:
        if self.config is not None and self.config.entrypoint_prefix:
            return self.config.entrypoint_prefix
        return ""

    def to_document(self) -> str:
        """Serialize as JSON, which every YAML reader accepts."""
        return json.dumps(self.model_dump(exclude_none=True)) + "\n"

    @classmethod
    def load(cls, path: Path) -> StagingInfo | None:
        """
        Load staging info if the file exists.

        Unknown tags and unexpected field types are tolerated; only a
        document that is not YAML at all is an error.

        Raises:
            StagingInfoError: the file exists but cannot be parsed
        """
        try:
            text = path.read_text()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StagingInfoError("Invalid staging info", cause=e) from e

        try:
            document = load_lenient(text)
        except yaml.YAMLError as e:
            raise StagingInfoError("Invalid staging info", cause=ValueError("invalid YAML")) from e

        if document is None:
            return cls()
        if not isinstance(document, dict):
            raise StagingInfoError("Invalid staging info", cause=ValueError("not a mapping"))
        try:
            return cls.model_validate(document)
        except ValidationError as e:
            raise StagingInfoError("Invalid staging info", cause=e) from e


class LifecycleMetadata(BaseModel):
    detected_buildpack: str = ""
    buildpack_key: str = ""


class StagingResult(BaseModel):
    """Staging result written to output-metadata (result.json)."""

    process_types: dict[str, str] = Field(default_factory=dict)
    lifecycle_type: str = LIFECYCLE_TYPE
    lifecycle_metadata: LifecycleMetadata = Field(default_factory=LifecycleMetadata)
    execution_metadata: str = ""

    def to_document(self) -> str:
        return json.dumps(self.model_dump()) + "\n"
