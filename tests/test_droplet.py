"""
Tests for droplet assembly and archiving.
"""

import json
import stat
import tarfile

import pytest

from buildpack_lifecycle.droplet import DropletAssembler
from buildpack_lifecycle.errors import AssembleError
from buildpack_lifecycle.staging import StagingInfo, StagingResult


def member_names(path):
    with tarfile.open(path, "r:gz") as archive:
        return sorted(archive.getnames())


@pytest.fixture
def assembler(tmp_path):
    contents = tmp_path / "contents"
    contents.mkdir()
    return DropletAssembler(contents)


class TestDropletTree:
    def test_write_staging_info(self, assembler):
        path = assembler.write_staging_info(StagingInfo(detected_buildpack="Ruby", start_command="rackup"))
        assert path == assembler.contents_dir / "staging_info.yml"
        assert json.loads(path.read_text())["start_command"] == "rackup"
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_reset_scratch_dirs(self, assembler):
        (assembler.contents_dir / "tmp").mkdir()
        (assembler.contents_dir / "tmp" / "leftover").write_text("x")

        assembler.reset_scratch_dirs()

        assert list((assembler.contents_dir / "tmp").iterdir()) == []
        assert (assembler.contents_dir / "logs").is_dir()

    def test_move_app(self, assembler, app_dir):
        assembler.move_app(app_dir)
        assert not app_dir.exists()
        assert (assembler.app_dir / "app.rb").read_text() == "puts 'hello'\n"

    def test_move_app_replaces_existing(self, assembler, app_dir):
        (assembler.app_dir).mkdir()
        (assembler.app_dir / "stale").write_text("x")

        assembler.move_app(app_dir)

        assert not (assembler.app_dir / "stale").exists()
        assert (assembler.app_dir / "app.rb").exists()

    def test_move_missing_build_dir(self, assembler, tmp_path):
        with pytest.raises(AssembleError):
            assembler.move_app(tmp_path / "nope")


class TestArchives:
    """Tests for droplet, cache and result outputs."""

    def test_droplet_members(self, assembler, app_dir, tmp_path):
        (assembler.contents_dir / "deps" / "0").mkdir(parents=True)
        (assembler.contents_dir / "deps" / "0" / "supplied").write_text("dep")
        assembler.write_staging_info(StagingInfo(start_command="rackup"))
        assembler.reset_scratch_dirs()
        assembler.move_app(app_dir)

        output = tmp_path / "out" / "droplet.tgz"
        assembler.archive_droplet(output)

        assert member_names(output) == [
            "./app",
            "./app/app.rb",
            "./deps",
            "./deps/0",
            "./deps/0/supplied",
            "./logs",
            "./staging_info.yml",
            "./tmp",
        ]

    def test_droplet_without_deps(self, assembler, app_dir, tmp_path):
        assembler.write_staging_info(StagingInfo())
        assembler.reset_scratch_dirs()
        assembler.move_app(app_dir)

        output = tmp_path / "droplet.tgz"
        assembler.archive_droplet(output)

        assert "./deps" in member_names(output)

    def test_droplet_missing_app(self, assembler, tmp_path):
        assembler.write_staging_info(StagingInfo())
        assembler.reset_scratch_dirs()
        with pytest.raises(AssembleError) as exc_info:
            assembler.archive_droplet(tmp_path / "droplet.tgz")
        assert "Failed to compress droplet filesystem" in str(exc_info.value)

    def test_cache_archive_children(self, tmp_path):
        cache = tmp_path / "cache"
        (cache / "final").mkdir(parents=True)
        (cache / "final" / "gems").write_text("x")
        (cache / "abc").mkdir()

        output = tmp_path / "out" / "cache.tgz"
        DropletAssembler.archive_cache(cache, output)

        assert member_names(output) == ["./abc", "./final", "./final/gems"]

    def test_cache_archive_of_missing_root(self, tmp_path):
        output = tmp_path / "cache.tgz"
        DropletAssembler.archive_cache(tmp_path / "missing", output)
        assert member_names(output) == []

    def test_write_result(self, tmp_path):
        output = tmp_path / "out" / "result.json"
        DropletAssembler.write_result(StagingResult(process_types={"web": "rackup"}), output)
        assert json.loads(output.read_text())["process_types"] == {"web": "rackup"}
