"""
Droplet assembly.

Builds the droplet tree in the run's working directory and writes the
three staging outputs: the droplet archive, the build artifacts cache
archive and the staging result document.

Droplet layout:
    ./app/                 compiled application (the moved build dir)
    ./deps/<index>/        supply buildpack output
    ./staging_info.yml     detected buildpack and start command
    ./tmp/                 empty
    ./logs/                empty
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
from pathlib import Path

from buildpack_lifecycle.errors import AssembleError
from buildpack_lifecycle.staging import STAGING_INFO_FILENAME, StagingInfo, StagingResult

logger = logging.getLogger(__name__)

DROPLET_MEMBERS = ("app", "deps", STAGING_INFO_FILENAME, "tmp", "logs")
SCRATCH_DIRS = ("tmp", "logs")

DIR_MODE = 0o755
FILE_MODE = 0o644


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
    path.write_text(content)
    os.chmod(path, FILE_MODE)


class DropletAssembler:
    """
    Assembles and archives a droplet.

    Args:
        contents_dir: Working directory the droplet tree is built in
    """

    def __init__(self, contents_dir: Path):
        self.contents_dir = contents_dir

    @property
    def app_dir(self) -> Path:
        return self.contents_dir / "app"

    @property
    def staging_info_path(self) -> Path:
        return self.contents_dir / STAGING_INFO_FILENAME

    # ==================== Droplet tree ====================

    def write_staging_info(self, info: StagingInfo) -> Path:
        try:
            _write_file(self.staging_info_path, info.to_document())
        except OSError as e:
            raise AssembleError("Failed to encode generated metadata", cause=e) from e
        return self.staging_info_path

    def reset_scratch_dirs(self) -> None:
        """Recreate empty tmp/ and logs/."""
        try:
            for name in SCRATCH_DIRS:
                path = self.contents_dir / name
                if path.exists():
                    shutil.rmtree(path)
                path.mkdir(mode=DIR_MODE, parents=True)
        except OSError as e:
            raise AssembleError("Failed to set up droplet filesystem", cause=e) from e

    def move_app(self, build_dir: Path) -> None:
        """
        Move the build directory into the droplet as app/.

        The build directory no longer exists at its original path afterwards.
        """
        destination = self.app_dir
        if build_dir.resolve() == destination.resolve():
            return

        try:
            if destination.exists():
                shutil.rmtree(destination)
            shutil.move(str(build_dir), str(destination))
        except OSError as e:
            raise AssembleError("Failed to copy compiled droplet", cause=e) from e
        logger.debug(f"Moved {build_dir} to {destination}")

    def ensure_deps_dir(self) -> None:
        (self.contents_dir / "deps").mkdir(mode=DIR_MODE, parents=True, exist_ok=True)

    # ==================== Archives ====================

    def archive_droplet(self, output: Path) -> None:
        """Write the droplet tree as a gzipped tar rooted at ``./``."""
        self.ensure_deps_dir()
        try:
            output.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            with tarfile.open(output, "w:gz") as archive:
                for name in DROPLET_MEMBERS:
                    archive.add(self.contents_dir / name, arcname=f"./{name}")
        except (OSError, tarfile.TarError) as e:
            raise AssembleError("Failed to compress droplet filesystem", cause=e) from e
        logger.info(f"Wrote droplet {output}")

    @staticmethod
    def archive_cache(cache_root: Path, output: Path) -> None:
        """Write the children of the cache root as a gzipped tar rooted at ``./``."""
        try:
            output.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            with tarfile.open(output, "w:gz") as archive:
                if cache_root.is_dir():
                    for child in sorted(cache_root.iterdir()):
                        archive.add(child, arcname=f"./{child.name}")
        except (OSError, tarfile.TarError) as e:
            raise AssembleError("Failed to compress build artifacts", cause=e) from e
        logger.info(f"Wrote build artifacts cache {output}")

    @staticmethod
    def write_result(result: StagingResult, output: Path) -> None:
        try:
            _write_file(output, result.to_document())
        except OSError as e:
            raise AssembleError("Failed to write staging result", cause=e) from e
