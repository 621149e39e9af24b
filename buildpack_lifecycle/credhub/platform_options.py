"""
Platform options (VCAP_PLATFORM_OPTIONS).

A JSON object the platform hands the launcher; the only option read is
``credhub-uri``. The variable is consumed: it is removed from the
environment whether or not it parses.
"""

from __future__ import annotations

import json
from collections.abc import MutableMapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from buildpack_lifecycle.errors import EnvironmentAssemblyError

PLATFORM_OPTIONS_ENV = "VCAP_PLATFORM_OPTIONS"


class PlatformOptions(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    credhub_uri: str = Field("", alias="credhub-uri")


def load(environ: MutableMapping[str, str]) -> PlatformOptions | None:
    """
    Pop and parse VCAP_PLATFORM_OPTIONS.

    Returns:
        The options, or None when the variable is unset or empty

    Raises:
        EnvironmentAssemblyError: the value is not a JSON object
    """
    raw = environ.pop(PLATFORM_OPTIONS_ENV, None)
    if not raw:
        return None

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as e:
        raise EnvironmentAssemblyError("Invalid platform options", cause=e) from e
    if not isinstance(document, dict):
        raise EnvironmentAssemblyError("Invalid platform options", cause=ValueError("not a JSON object"))

    try:
        return PlatformOptions.model_validate(document)
    except ValidationError as e:
        raise EnvironmentAssemblyError("Invalid platform options", cause=e) from e
