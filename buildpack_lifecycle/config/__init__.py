"""
Lifecycle Configuration

Invocation parameters, flag parsing and buildpack path derivation.
"""

from .flags import (
    add_credhub_arguments,
    builder_parser,
    credhub_settings_from,
    parse_builder_args,
    parse_credhub_args,
    parse_duration,
)
from .hashing import buildpack_hash, is_remote, is_zip_url, legacy_buildpack_hash
from .schemas import FINAL_CACHE_DIR, LEGACY_FINAL_CACHE_DIR, BuilderConfig, CredhubSettings

__all__ = [
    "BuilderConfig",
    "CredhubSettings",
    "FINAL_CACHE_DIR",
    "LEGACY_FINAL_CACHE_DIR",
    "add_credhub_arguments",
    "builder_parser",
    "buildpack_hash",
    "credhub_settings_from",
    "is_remote",
    "is_zip_url",
    "legacy_buildpack_hash",
    "parse_builder_args",
    "parse_credhub_args",
    "parse_duration",
]
