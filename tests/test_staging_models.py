"""
Tests for release, Procfile, staging info and result documents.
"""

import json

import pytest
import yaml

from buildpack_lifecycle.errors import ProcfileInvalid, ReleaseFailed, ReleaseInvalid, StagingInfoError
from buildpack_lifecycle.staging import (
    ReleaseInfo,
    StagingInfo,
    StagingInfoConfig,
    StagingResult,
    load_lenient,
    read_procfile,
)


class TestLenientLoader:
    """Tests for YAML loading with unknown tags."""

    def test_plain_document(self):
        assert load_lenient("a: 1\nb: [x, y]\n") == {"a": 1, "b": ["x", "y"]}

    def test_unknown_mapping_tag(self):
        document = load_lenient("config: !ruby/object:Foo\n  bar: baz\nname: ok\n")
        assert document == {"config": {"bar": "baz"}, "name": "ok"}

    def test_unknown_scalar_and_sequence_tags(self):
        document = load_lenient("a: !custom value\nb: !list [1, 2]\n")
        assert document == {"a": "value", "b": [1, 2]}

    def test_python_tags_are_not_executed(self):
        document = load_lenient("x: !!python/object/apply:os.system ['echo pwned']\n")
        assert document == {"x": ["echo pwned"]}

    def test_json_is_accepted(self):
        assert load_lenient('{"detected_buildpack": "Ruby"}') == {"detected_buildpack": "Ruby"}

    def test_invalid_yaml_raises(self):
        with pytest.raises(yaml.YAMLError):
            load_lenient("a: [unclosed\n")


class TestReleaseInfo:
    """Tests for parsing release hook output."""

    def test_process_types(self):
        release = ReleaseInfo.parse("---\ndefault_process_types:\n  web: the start command\n")
        assert release.default_process_types == {"web": "the start command"}
        assert release.entrypoint_prefix == ""

    def test_extra_fields_tolerated(self):
        release = ReleaseInfo.parse(
            "default_process_types:\n  web: rackup\naddons: []\nconfig_vars: !ruby/hash:Foo\n  A: b\n"
        )
        assert release.default_process_types == {"web": "rackup"}

    def test_entrypoint_prefix(self):
        release = ReleaseInfo.parse("default_process_types: {}\nconfig:\n  entrypoint_prefix: /usr/bin/env\n")
        assert release.entrypoint_prefix == "/usr/bin/env"

    @pytest.mark.parametrize("prefix", ["!opaque {x: 1}", "!custom [a, b]", "[a, b]", "5"])
    def test_unusable_entrypoint_prefix_is_dropped(self, prefix):
        release = ReleaseInfo.parse(f"default_process_types:\n  web: run\nconfig:\n  entrypoint_prefix: {prefix}\n")
        assert release.default_process_types == {"web": "run"}
        assert release.entrypoint_prefix == ""

    def test_missing_process_types(self):
        assert ReleaseInfo.parse("addons: []\n").default_process_types == {}

    def test_non_string_commands_are_stringified(self):
        release = ReleaseInfo.parse("default_process_types:\n  web: 42\n  worker:\n")
        assert release.default_process_types == {"web": "42", "worker": ""}

    @pytest.mark.parametrize("output", ["just a string", "- a\n- b\n", "", "a: [unclosed"])
    def test_invalid_output(self, output):
        with pytest.raises(ReleaseInvalid) as exc_info:
            ReleaseInfo.parse(output)
        assert isinstance(exc_info.value, ReleaseFailed)
        assert exc_info.value.exit_code == 224

    def test_process_types_must_be_mapping(self):
        with pytest.raises(ReleaseInvalid):
            ReleaseInfo.parse("default_process_types: [web]\n")


class TestProcfile:
    def test_missing(self, tmp_path):
        assert read_procfile(tmp_path) == {}

    def test_empty(self, tmp_path):
        (tmp_path / "Procfile").write_text("")
        assert read_procfile(tmp_path) == {}

    def test_mapping(self, tmp_path):
        (tmp_path / "Procfile").write_text("web: pf-cmd\nworker: bundle exec sidekiq\n")
        assert read_procfile(tmp_path) == {"web": "pf-cmd", "worker": "bundle exec sidekiq"}

    def test_not_a_mapping(self, tmp_path):
        (tmp_path / "Procfile").write_text("- web\n")
        with pytest.raises(ProcfileInvalid):
            read_procfile(tmp_path)

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "Procfile").write_text("web: [oops\n")
        with pytest.raises(ProcfileInvalid) as exc_info:
            read_procfile(tmp_path)
        assert "invalid YAML" in str(exc_info.value)


class TestStagingInfo:
    """Tests for staging_info.yml."""

    def test_document_is_json(self):
        info = StagingInfo(detected_buildpack="Ruby", start_command="rackup")
        assert json.loads(info.to_document()) == {"detected_buildpack": "Ruby", "start_command": "rackup"}

    def test_document_with_prefix(self):
        info = StagingInfo(start_command="x", config=StagingInfoConfig(entrypoint_prefix="/lifecycle/entry"))
        assert json.loads(info.to_document())["config"] == {"entrypoint_prefix": "/lifecycle/entry"}

    def test_load_missing(self, tmp_path):
        assert StagingInfo.load(tmp_path / "staging_info.yml") is None

    def test_load_written_document(self, tmp_path):
        path = tmp_path / "staging_info.yml"
        path.write_text(StagingInfo(detected_buildpack="Go", start_command="./app").to_document())
        loaded = StagingInfo.load(path)
        assert loaded.start_command == "./app"
        assert loaded.detected_buildpack == "Go"

    def test_load_tolerates_unknown_tags_and_types(self, tmp_path):
        path = tmp_path / "staging_info.yml"
        path.write_text(
            "detected_buildpack: !ruby/object:Buildpack\n  name: ruby\n"
            "start_command: bundle exec rackup\n"
            "config: 7\n"
            "extra: !weird thing\n"
        )
        loaded = StagingInfo.load(path)
        assert loaded.start_command == "bundle exec rackup"
        assert loaded.entrypoint_prefix == ""

    @pytest.mark.parametrize("prefix", ["!custom [a, b]", "5", "{a: b}"])
    def test_load_drops_unusable_entrypoint_prefix(self, tmp_path, prefix):
        path = tmp_path / "staging_info.yml"
        path.write_text(f"start_command: run-me\nconfig:\n  entrypoint_prefix: {prefix}\n")
        loaded = StagingInfo.load(path)
        assert loaded.start_command == "run-me"
        assert loaded.entrypoint_prefix == ""

    def test_load_empty_document(self, tmp_path):
        path = tmp_path / "staging_info.yml"
        path.write_text("")
        assert StagingInfo.load(path).start_command == ""

    def test_load_unparseable(self, tmp_path):
        path = tmp_path / "staging_info.yml"
        path.write_text("start_command: [unclosed\n")
        with pytest.raises(StagingInfoError):
            StagingInfo.load(path)


class TestStagingResult:
    def test_document_shape(self):
        result = StagingResult(process_types={"web": "the start command"})
        result.lifecycle_metadata.buildpack_key = "ruby"
        assert json.loads(result.to_document()) == {
            "process_types": {"web": "the start command"},
            "lifecycle_type": "buildpack",
            "lifecycle_metadata": {"detected_buildpack": "", "buildpack_key": "ruby"},
            "execution_metadata": "",
        }
