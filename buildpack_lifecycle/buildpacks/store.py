"""
Buildpack store.

Acquires remote buildpacks (zip or git) into the downloads root and
locates the hook directory of any buildpack in the order.
"""

from __future__ import annotations

import logging
import shutil
import zipfile
from pathlib import Path

import httpx

from buildpack_lifecycle.config import BuilderConfig, is_remote, is_zip_url
from buildpack_lifecycle.errors import AcquireError

from .git import GitCloneError, GitCloner
from .layout import BuildpackLayout, resolve_layout
from .zip_downloader import ZipDownloader, format_bytes

logger = logging.getLogger(__name__)


class BuildpackStore:
    """
    Acquires and locates buildpacks for one staging run.

    Usage:
        store = BuildpackStore(config)
        for ref in config.buildpack_order:
            store.ensure(ref)
        layout = store.locate(config.final_buildpack())
        ...
        store.cleanup()
    """

    def __init__(
        self,
        config: BuilderConfig,
        *,
        zip_downloader: ZipDownloader | None = None,
        git_cloner: GitCloner | None = None,
    ):
        self._config = config
        self._zip = zip_downloader or ZipDownloader(skip_cert_verify=config.skip_cert_verify)
        self._git = git_cloner or GitCloner()
        self._downloaded: list[Path] = []

    @property
    def downloaded(self) -> list[Path]:
        return list(self._downloaded)

    def ensure(self, ref: str) -> None:
        """
        Make a buildpack available on disk.

        System buildpacks are expected under buildpacks-dir already; remote
        refs are downloaded (zip) or cloned (anything else).

        Raises:
            AcquireError: download, extraction or clone failed
        """
        if not is_remote(ref):
            return

        destination = self._config.buildpack_path(ref)
        try:
            if is_zip_url(ref):
                size = self._zip.download_and_extract(ref, destination)
                print(f"Downloaded buildpack `{ref}` ({format_bytes(size)})", flush=True)
            else:
                self._git.clone(ref, destination)
        except (httpx.HTTPError, zipfile.BadZipFile, GitCloneError, OSError) as e:
            logger.error(f"Failed to acquire buildpack {ref}: {e}")
            raise AcquireError(ref, e) from e

        if destination not in self._downloaded:
            self._downloaded.append(destination)
        logger.info(f"Acquired buildpack {ref} into {destination}")

    def ensure_all(self, refs: list[str]) -> None:
        for ref in refs:
            self.ensure(ref)

    def locate(self, ref: str) -> BuildpackLayout:
        """
        Locate a buildpack's hook directory.

        Buildpacks installed under the legacy MD5 directory name are
        accepted when no directory exists under the current name.

        Raises:
            MalformedLayout: no bin/ directory at the root or in its single child
        """
        path = self._config.buildpack_path(ref)
        if not path.exists():
            legacy = self._config.legacy_buildpack_path(ref)
            if legacy.exists():
                logger.debug(f"Using legacy buildpack directory {legacy} for {ref}")
                path = legacy
        return resolve_layout(ref, path)

    def cleanup(self) -> None:
        """Remove buildpacks downloaded during this run."""
        for path in self._downloaded:
            shutil.rmtree(path, ignore_errors=True)
        self._downloaded = []
        self._zip.close()
