"""
Pytest configuration and fixtures for buildpack lifecycle tests.
"""

import os
import stat
import sys
from pathlib import Path

import pytest

# Add the repository root to path for imports
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from buildpack_lifecycle.config import BuilderConfig, buildpack_hash  # noqa: E402


def write_executable(path: Path, body: str) -> Path:
    """Write a bash script and mark it executable."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/usr/bin/env bash\nset -e\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


class BuildpackFactory:
    """Creates system buildpacks under a buildpacks dir, keyed like the builder keys them."""

    def __init__(self, buildpacks_dir: Path):
        self.buildpacks_dir = buildpacks_dir

    def path_for(self, ref: str) -> Path:
        return self.buildpacks_dir / buildpack_hash(ref)

    def create(self, ref: str, nested: str | None = None, **hooks: str) -> Path:
        """
        Create a buildpack with the given hook bodies.

        Example:
            buildpacks.create("ruby", detect='echo "Ruby"', compile="touch $1/compiled")
        """
        root = self.path_for(ref)
        if nested:
            root = root / nested
        (root / "bin").mkdir(parents=True, exist_ok=True)
        for name, body in hooks.items():
            write_executable(root / "bin" / name, body)
        return root


@pytest.fixture
def buildpacks_dir(tmp_path):
    path = tmp_path / "buildpacks"
    path.mkdir()
    return path


@pytest.fixture
def buildpacks(buildpacks_dir):
    return BuildpackFactory(buildpacks_dir)


@pytest.fixture
def app_dir(tmp_path):
    """A fake application directory with one source file."""
    path = tmp_path / "app"
    path.mkdir()
    (path / "app.rb").write_text("puts 'hello'\n")
    return path


@pytest.fixture
def make_config(tmp_path, app_dir, buildpacks_dir):
    """Factory for a BuilderConfig rooted in tmp_path."""

    def _make(order, **overrides):
        fields = dict(
            build_dir=str(app_dir),
            buildpacks_dir=str(buildpacks_dir),
            buildpack_downloads_dir=str(tmp_path / "downloads"),
            build_artifacts_cache_dir=str(tmp_path / "cache"),
            output_droplet=str(tmp_path / "out" / "droplet.tgz"),
            output_build_artifacts_cache=str(tmp_path / "out" / "cache.tgz"),
            output_metadata=str(tmp_path / "out" / "result.json"),
            buildpack_order=order,
        )
        fields.update(overrides)
        return BuilderConfig(**fields)

    return _make


@pytest.fixture
def clean_environ(monkeypatch):
    """Drop platform variables the runtime reads so tests start from a known state."""
    for name in (
        "VCAP_APPLICATION",
        "VCAP_SERVICES",
        "VCAP_PLATFORM_OPTIONS",
        "DATABASE_URL",
        "PORT",
        "INSTANCE_GUID",
        "INSTANCE_INDEX",
        "CF_INSTANCE_CERT",
        "CF_INSTANCE_KEY",
        "CF_SYSTEM_CERT_PATH",
        "CF_SYSTEM_CERTS_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    return os.environ
