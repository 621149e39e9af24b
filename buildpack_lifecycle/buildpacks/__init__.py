"""
Buildpack acquisition and layout.
"""

from .git import GitCloneError, GitCloner
from .layout import BuildpackLayout, resolve_layout
from .store import BuildpackStore
from .zip_downloader import ZipDownloader, extract_zip, format_bytes

__all__ = [
    "BuildpackLayout",
    "BuildpackStore",
    "GitCloneError",
    "GitCloner",
    "ZipDownloader",
    "extract_zip",
    "format_bytes",
    "resolve_layout",
]
