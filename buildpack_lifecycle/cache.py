"""
Build artifacts cache.

The cache root is both an input (extracted from the previous run) and an
output (archived after release). In multi-buildpack runs it holds one
directory per supply buildpack, named by the buildpack hash, and a
``final`` directory for the final buildpack. Single-buildpack runs hand
the cache root itself to the compile hook.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from buildpack_lifecycle.config import FINAL_CACHE_DIR, LEGACY_FINAL_CACHE_DIR, BuilderConfig, buildpack_hash

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Prepares the cache root for a staging run.

    Usage:
        cache = CacheManager(config)
        cache.prepare()                  # before any hook runs
        cache_dir = cache.supply_cache_dir(ref)
        compile_dir = cache.compile_cache_dir()
    """

    def __init__(self, config: BuilderConfig):
        self._config = config

    @property
    def root(self) -> Path:
        return Path(self._config.build_artifacts_cache_dir)

    def retained_names(self) -> set[str]:
        """Top-level entries that survive pruning."""
        names = {FINAL_CACHE_DIR}
        names.update(buildpack_hash(ref) for ref in self._config.supply_buildpacks())
        return names

    def prepare(self) -> None:
        """Create the cache root and, in multi-buildpack runs, migrate and prune it."""
        self.root.mkdir(mode=0o755, parents=True, exist_ok=True)
        if not self._config.is_multi_buildpack():
            return

        self.migrate_legacy()
        self.prune()

    def migrate_legacy(self) -> None:
        """
        Rename entries written under legacy names.

        ``primary`` becomes ``final`` and MD5-named supply caches become
        xxHash-named, unless an entry under the new name already exists.
        """
        renames = [(self.root / LEGACY_FINAL_CACHE_DIR, self._config.final_cache_path())]
        for ref in self._config.supply_buildpacks():
            renames.append((self._config.legacy_supply_cache_path(ref), self._config.supply_cache_path(ref)))

        for legacy, current in renames:
            if legacy.is_dir() and not current.exists():
                logger.info(f"Migrating cache entry {legacy.name} to {current.name}")
                legacy.rename(current)

    def prune(self) -> list[str]:
        """
        Remove cache entries the current buildpack order does not use.

        Top-level files are always removed; directories are kept only if
        named ``final`` or after a supply buildpack's hash.

        Returns:
            Names of the removed entries
        """
        if not self.root.is_dir():
            return []

        keep = self.retained_names()
        removed = []
        for entry in sorted(self.root.iterdir()):
            if entry.is_dir() and not entry.is_symlink():
                if entry.name in keep:
                    continue
                shutil.rmtree(entry)
            else:
                entry.unlink()
            removed.append(entry.name)

        if removed:
            logger.info(f"Pruned cache entries: {removed}")
        return removed

    def supply_cache_dir(self, ref: str) -> Path:
        path = self._config.supply_cache_path(ref)
        path.mkdir(mode=0o755, parents=True, exist_ok=True)
        return path

    def compile_cache_dir(self) -> Path:
        """Cache directory handed to the final buildpack's compile or finalize hook."""
        if not self._config.is_multi_buildpack():
            return self.root
        path = self._config.final_cache_path()
        path.mkdir(mode=0o755, parents=True, exist_ok=True)
        return path
