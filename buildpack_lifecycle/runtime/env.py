"""
Runtime environment assembly.

Computes the environment an application starts with from the container's
environment: the droplet directories, the mutated VCAP_APPLICATION,
interpolated VCAP_SERVICES and DATABASE_URL.
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any

from buildpack_lifecycle.config import CredhubSettings
from buildpack_lifecycle.credhub import SecretResolver, platform_options

from .database_uri import database_url

logger = logging.getLogger(__name__)

# optional sign and ASCII digits only; no whitespace or underscores
_INTEGER = re.compile(r"[+-]?[0-9]+")


def _parse_int(value: str | None) -> int | None:
    if value is None or not _INTEGER.fullmatch(value):
        return None
    return int(value)


def mutate_vcap_application(raw: str | None, environ: Mapping[str, str]) -> str | None:
    """
    Add the instance's host, id, port and index to VCAP_APPLICATION.

    Returns:
        The re-serialized document, or None when ``raw`` is not a JSON object
    """
    if not raw:
        return None
    try:
        document: Any = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(document, dict):
        return None

    document["host"] = "0.0.0.0"
    document["instance_id"] = environ.get("INSTANCE_GUID", "")

    port = _parse_int(environ.get("PORT"))
    if port is not None:
        document["port"] = port
    index = _parse_int(environ.get("INSTANCE_INDEX"))
    if index is not None:
        document["instance_index"] = index

    return json.dumps(document, separators=(",", ":"))


class EnvBuilder:
    """
    Builds the application's runtime environment.

    Usage:
        env = EnvBuilder("/home/vcap/app", CredhubSettings()).build(os.environ)
        os.execve("/bin/bash", argv, env)

    Args:
        app_dir: Application directory (made absolute)
        credhub_settings: Retry budget for secret interpolation
        resolver: Secret resolver (built from the environment being assembled by default)
    """

    def __init__(
        self,
        app_dir: str | Path,
        credhub_settings: CredhubSettings | None = None,
        resolver: SecretResolver | None = None,
    ):
        self.app_dir = Path(os.path.abspath(app_dir))
        self.credhub_settings = credhub_settings or CredhubSettings()
        self._resolver = resolver

    def build(self, environ: Mapping[str, str] | None = None) -> dict[str, str]:
        """
        Return the runtime environment; ``environ`` is not modified.

        Raises:
            EnvironmentAssemblyError: platform options are invalid or interpolation failed
        """
        env = dict(os.environ if environ is None else environ)

        env["HOME"] = str(self.app_dir)
        env["TMPDIR"] = os.path.abspath(self.app_dir / ".." / "tmp")
        env["DEPS_DIR"] = os.path.abspath(self.app_dir / ".." / "deps")

        vcap_application = mutate_vcap_application(env.get("VCAP_APPLICATION"), env)
        if vcap_application is not None:
            env["VCAP_APPLICATION"] = vcap_application

        options = platform_options.load(env)
        if options is not None and options.credhub_uri:
            resolver = self._resolver or SecretResolver(self.credhub_settings, environ=env)
            env["VCAP_SERVICES"] = resolver.interpolate(env.get("VCAP_SERVICES", ""), options.credhub_uri)

        if env.get("VCAP_SERVICES"):
            url = database_url(env["VCAP_SERVICES"])
            if url:
                env["DATABASE_URL"] = url

        return env

    def apply(self, environ: MutableMapping[str, str] | None = None) -> dict[str, str]:
        """Build the environment and write it into ``environ`` (os.environ by default)."""
        target = os.environ if environ is None else environ
        env = self.build(target)
        for name in [name for name in target if name not in env]:
            del target[name]
        target.update(env)
        return env
