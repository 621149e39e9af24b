"""
Secret store integration: platform options, client and interpolation.
"""

from . import platform_options
from .client import CredhubClient, build_ssl_context, load_trusted_cas
from .platform_options import PlatformOptions
from .resolver import CREDHUB_REF_MARKER, SecretResolver

__all__ = [
    "CREDHUB_REF_MARKER",
    "CredhubClient",
    "PlatformOptions",
    "SecretResolver",
    "build_ssl_context",
    "load_trusted_cas",
    "platform_options",
]
