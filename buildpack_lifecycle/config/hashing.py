"""
Buildpack identifier hashing.

Buildpack refs are mapped to on-disk directory names by a pure function.
New directories use a 64-bit xxHash rendered as 16 hex digits; the 128-bit
MD5 scheme is kept for caches and buildpack roots written by older
lifecycles.
"""

from __future__ import annotations

import hashlib
from urllib.parse import urlsplit

import xxhash


def buildpack_hash(ref: str) -> str:
    """Fixed-width hex directory name for a buildpack ref."""
    return xxhash.xxh64(ref.encode("utf-8")).hexdigest()


def legacy_buildpack_hash(ref: str) -> str:
    """MD5 directory name used before the xxHash scheme."""
    return hashlib.md5(ref.encode("utf-8")).hexdigest()


def is_remote(ref: str) -> bool:
    """True when the ref is an absolute URL rather than a system name."""
    try:
        return bool(urlsplit(ref).scheme)
    except ValueError:
        return False


def is_zip_url(ref: str) -> bool:
    return urlsplit(ref).path.endswith(".zip")
