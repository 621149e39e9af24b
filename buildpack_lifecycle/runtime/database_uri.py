"""
DATABASE_URL derivation from service bindings.

The first binding (in document order) whose ``credentials.uri`` uses a
recognized database scheme wins. Schemes are normalized to the names
common application frameworks expect.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from typing import Any

SCHEME_ALIASES = {
    "mysql": "mysql2",
    "mysql2": "mysql2",
    "postgres": "postgres",
    "postgresql": "postgres",
}


def _binding_uris(services: Any) -> Iterator[str]:
    if not isinstance(services, dict):
        return
    for bindings in services.values():
        if not isinstance(bindings, list):
            continue
        for binding in bindings:
            if not isinstance(binding, dict):
                continue
            credentials = binding.get("credentials")
            if isinstance(credentials, dict) and isinstance(credentials.get("uri"), str):
                yield credentials["uri"]


def database_url(vcap_services: str) -> str:
    """
    DATABASE_URL for a VCAP_SERVICES document, or "" when none applies.

    Example:
        >>> database_url('{"db": [{"credentials": {"uri": "mysql://u:p@host/app"}}]}')
        'mysql2://u:p@host/app'
    """
    try:
        services = json.loads(vcap_services)
    except ValueError:
        return ""

    for uri in _binding_uris(services):
        scheme, separator, rest = uri.partition("://")
        if separator and scheme.lower() in SCHEME_ALIASES:
            return f"{SCHEME_ALIASES[scheme.lower()]}://{rest}"
    return ""
