"""
Command-line flag parsing.

Each option is accepted in two spellings: the kebab-case long form
(``--build-dir``) and the single-dash camelCase form of the original
lifecycle (``-buildDir``), including ``-flag=value``.
"""

from __future__ import annotations

import argparse
import re

from pydantic import ValidationError

from buildpack_lifecycle.errors import ConfigError

from .schemas import BuilderConfig, CredhubSettings

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_TRUE_VALUES = {"1", "t", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "f", "false", "no", "n", "off"}


def parse_duration(value: str) -> float:
    """
    Parse a duration into seconds.

    Accepts Go-style strings (``500ms``, ``1s``, ``1m30s``) and plain
    numbers, which are read as seconds.
    """
    text = value.strip()
    try:
        return float(text)
    except ValueError:
        pass

    position = 0
    total = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0 or position != len(text):
        raise argparse.ArgumentTypeError(f"invalid duration: {value!r}")
    return total


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean: {value!r}")


def add_credhub_arguments(parser: argparse.ArgumentParser) -> None:
    """Register the secret-store retry flags on a parser."""
    defaults = CredhubSettings()
    parser.add_argument(
        "--credhub-connect-attempts",
        "-credhubConnectAttempts",
        dest="credhub_connect_attempts",
        type=int,
        default=defaults.connect_attempts,
        help="number of times the credhub client will attempt to connect to credhub",
    )
    parser.add_argument(
        "--credhub-retry-delay",
        "-credhubRetryDelay",
        dest="credhub_retry_delay",
        type=parse_duration,
        default=defaults.retry_delay,
        help="delay the credhub client waits before retrying the connection to credhub",
    )


def credhub_settings_from(namespace: argparse.Namespace) -> CredhubSettings:
    try:
        return CredhubSettings(
            connect_attempts=namespace.credhub_connect_attempts,
            retry_delay=namespace.credhub_retry_delay,
        )
    except ValidationError as e:
        raise ConfigError("Invalid credhub flags", cause=e) from e


def _add_bool(parser: argparse.ArgumentParser, long: str, short: str, dest: str, help: str) -> None:
    parser.add_argument(
        long,
        short,
        dest=dest,
        type=parse_bool,
        nargs="?",
        const=True,
        default=False,
        help=help,
    )


def builder_parser(prog: str = "lifecycle-builder") -> argparse.ArgumentParser:
    defaults = BuilderConfig()
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Stage an application into a droplet using buildpacks",
        allow_abbrev=False,
    )

    path_options = (
        ("--build-dir", "-buildDir", "build_dir", "directory containing raw app bits"),
        ("--buildpacks-dir", "-buildpacksDir", "buildpacks_dir", "directory containing the buildpacks to try"),
        (
            "--buildpack-downloads-dir",
            "-buildpackDownloadsDir",
            "buildpack_downloads_dir",
            "directory where remote buildpacks are downloaded",
        ),
        (
            "--build-artifacts-cache-dir",
            "-buildArtifactsCacheDir",
            "build_artifacts_cache_dir",
            "directory where previous cached build artifacts should be extracted",
        ),
        ("--output-droplet", "-outputDroplet", "output_droplet", "file where compressed droplet should be written"),
        (
            "--output-build-artifacts-cache",
            "-outputBuildArtifactsCache",
            "output_build_artifacts_cache",
            "file where compressed contents of new cached build artifacts should be written",
        ),
        ("--output-metadata", "-outputMetadata", "output_metadata", "file where the staging result should be written"),
    )
    for long, short, dest, help in path_options:
        parser.add_argument(long, short, dest=dest, default=getattr(defaults, dest), help=help)

    parser.add_argument(
        "--buildpack-order",
        "-buildpackOrder",
        dest="buildpack_order",
        default="",
        help="comma-separated list of buildpacks, to be tried in order",
    )
    _add_bool(parser, "--skip-detect", "-skipDetect", "skip_detect", "skip buildpack detect")
    _add_bool(parser, "--skip-cert-verify", "-skipCertVerify", "skip_cert_verify", "skip SSL certificate verification")
    add_credhub_arguments(parser)
    return parser


def parse_builder_args(argv: list[str]) -> BuilderConfig:
    """
    Parse builder arguments into a BuilderConfig.

    Raises:
        ConfigError: unknown flags or malformed values
    """
    parser = builder_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as e:
        if e.code == 0:
            raise
        raise ConfigError("Invalid builder arguments") from e

    try:
        return BuilderConfig(
            build_dir=namespace.build_dir,
            buildpacks_dir=namespace.buildpacks_dir,
            buildpack_downloads_dir=namespace.buildpack_downloads_dir,
            build_artifacts_cache_dir=namespace.build_artifacts_cache_dir,
            output_droplet=namespace.output_droplet,
            output_build_artifacts_cache=namespace.output_build_artifacts_cache,
            output_metadata=namespace.output_metadata,
            buildpack_order=namespace.buildpack_order,
            skip_detect=namespace.skip_detect,
            skip_cert_verify=namespace.skip_cert_verify,
            credhub=credhub_settings_from(namespace),
        )
    except ValidationError as e:
        raise ConfigError("Invalid builder arguments", cause=e) from e


def parse_credhub_args(argv: list[str], prog: str) -> CredhubSettings:
    """
    Parse the trailing secret-store flags of the launcher and shell.

    Raises:
        ConfigError: unknown flags or malformed values
    """
    parser = argparse.ArgumentParser(prog=prog, add_help=False, allow_abbrev=False)
    add_credhub_arguments(parser)
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as e:
        raise ConfigError("Could not parse credhub flags") from e
    return credhub_settings_from(namespace)
