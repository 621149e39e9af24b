"""
Tests for the application launcher.
"""

import os
import subprocess
from unittest.mock import patch

import pytest

from buildpack_lifecycle.errors import ExecError, NoStartCommandError, StagingInfoError
from buildpack_lifecycle.runtime import (
    PRE_START_MESSAGE,
    START_MESSAGE,
    LaunchPlan,
    Launcher,
    build_script,
    execute,
    profile_scripts,
    resolve_start_command,
)
from buildpack_lifecycle.staging import StagingInfo, StagingInfoConfig


@pytest.fixture
def droplet(tmp_path):
    """An extracted droplet: <root>/app plus siblings."""
    app = tmp_path / "droplet" / "app"
    app.mkdir(parents=True)
    return app


def write_staging_info(app_dir, **fields):
    path = app_dir.parent / "staging_info.yml"
    path.write_text(StagingInfo(**fields).to_document())
    return path


def run_plan(plan: LaunchPlan) -> subprocess.CompletedProcess:
    return subprocess.run(plan.argv, executable=plan.executable, env=plan.env, capture_output=True, text=True)


def base_environ():
    return {"PATH": os.environ.get("PATH", "/usr/bin:/bin")}


# =============================================================================
# Script
# =============================================================================


class TestProfileScripts:
    """Tests for profile script discovery."""

    def test_order(self, droplet):
        (droplet.parent / "profile.d").mkdir()
        (droplet.parent / "profile.d" / "b.sh").write_text("")
        (droplet.parent / "profile.d" / "a.sh").write_text("")
        (droplet / ".profile.d").mkdir()
        (droplet / ".profile.d" / "z.sh").write_text("")
        (droplet / ".profile").write_text("")

        assert profile_scripts(droplet) == [
            "../profile.d/a.sh",
            "../profile.d/b.sh",
            ".profile.d/z.sh",
            ".profile",
        ]

    def test_skips_directories(self, droplet):
        (droplet / ".profile.d" / "nested").mkdir(parents=True)
        (droplet / ".profile.d" / "ok.sh").write_text("")
        assert profile_scripts(droplet) == [".profile.d/ok.sh"]

    def test_without_dot_profile(self, droplet):
        (droplet / ".profile").write_text("")
        assert profile_scripts(droplet, include_dot_profile=False) == []

    def test_nothing_to_source(self, droplet):
        assert profile_scripts(droplet) == []


class TestBuildScript:
    def test_structure(self, droplet):
        (droplet / ".profile").write_text("")

        lines = build_script(droplet).splitlines()

        assert lines[0] == 'cd "$1"'
        assert lines.index(f"echo '{PRE_START_MESSAGE}'") < lines.index("source .profile")
        assert lines.index("source .profile") < lines.index("shift")
        assert lines.index("shift") < lines.index(f"echo '{START_MESSAGE}'")
        assert lines[-1] == 'exec bash -c "$@"'

    def test_entrypoint_prefix(self, droplet):
        assert build_script(droplet, "/lifecycle/entry").splitlines()[-1] == 'exec /lifecycle/entry "$@"'

    def test_quiet(self, droplet):
        script = build_script(droplet, announce=False)
        assert PRE_START_MESSAGE not in script
        assert START_MESSAGE not in script


# =============================================================================
# Start command
# =============================================================================


class TestResolveStartCommand:
    def test_explicit_command_wins(self):
        assert resolve_start_command("run-me", StagingInfo(start_command="staged")) == "run-me"

    def test_staged_command(self):
        assert resolve_start_command("", StagingInfo(start_command="staged")) == "staged"

    @pytest.mark.parametrize("info", [None, StagingInfo()])
    def test_no_command(self, info):
        with pytest.raises(NoStartCommandError):
            resolve_start_command("", info)


# =============================================================================
# Launcher
# =============================================================================


class TestLauncher:
    """Tests for Launcher.prepare and end-to-end launch scripts."""

    def test_plan(self, droplet):
        write_staging_info(droplet, start_command="staged")

        plan = Launcher(droplet, argv0="launcher").prepare(base_environ())

        assert plan.executable == "/bin/bash"
        assert plan.argv[:2] == ["bash", "-c"]
        assert plan.argv[3:] == ["launcher", str(droplet), "staged"]
        assert plan.env["HOME"] == str(droplet)

    def test_reads_staging_info_beside_app(self, droplet):
        assert Launcher(droplet).staging_info_path == droplet.parent / "staging_info.yml"

    def test_no_start_command(self, droplet):
        with pytest.raises(NoStartCommandError):
            Launcher(droplet).prepare(base_environ())

    def test_unparseable_staging_info(self, droplet):
        (droplet.parent / "staging_info.yml").write_text("start_command: [oops\n")
        with pytest.raises(StagingInfoError):
            Launcher(droplet, "cmd").prepare(base_environ())

    def test_runs_command_after_profile_scripts(self, droplet):
        (droplet.parent / "profile.d").mkdir()
        (droplet.parent / "profile.d" / "1.sh").write_text('export ORDER="${ORDER}global "\n')
        (droplet / ".profile.d").mkdir()
        (droplet / ".profile.d" / "1.sh").write_text('export ORDER="${ORDER}app "\n')
        (droplet / ".profile").write_text('export ORDER="${ORDER}profile"\n')

        plan = Launcher(droplet, 'echo "$ORDER in $(pwd)"').prepare(base_environ())
        completed = run_plan(plan)

        assert completed.returncode == 0, completed.stderr
        assert completed.stdout.splitlines() == [
            PRE_START_MESSAGE,
            START_MESSAGE,
            f"global app profile in {droplet}",
        ]

    def test_exit_code_of_command(self, droplet):
        completed = run_plan(Launcher(droplet, "exit 7").prepare(base_environ()))
        assert completed.returncode == 7

    def test_entrypoint_prefix_receives_command(self, droplet):
        write_staging_info(
            droplet,
            start_command="the start command",
            config=StagingInfoConfig(entrypoint_prefix="/bin/echo"),
        )

        completed = run_plan(Launcher(droplet).prepare(base_environ()))

        assert completed.stdout.splitlines()[-1] == "the start command"

    def test_missing_entrypoint_prefix_exits_127(self, droplet):
        write_staging_info(
            droplet,
            start_command="the start command",
            config=StagingInfoConfig(entrypoint_prefix="/nonexistent/prefix"),
        )

        completed = run_plan(Launcher(droplet).prepare(base_environ()))

        assert completed.returncode == 127

    def test_opaque_entrypoint_prefix_is_ignored(self, droplet):
        (droplet.parent / "staging_info.yml").write_text(
            "start_command: echo started\nconfig:\n  entrypoint_prefix: !custom [a, b]\n"
        )

        plan = Launcher(droplet).prepare(base_environ())
        completed = run_plan(plan)

        assert plan.argv[2].splitlines()[-1] == 'exec bash -c "$@"'
        assert completed.returncode == 0, completed.stderr
        assert completed.stdout.splitlines()[-1] == "started"


class TestExecute:
    def test_replaces_process(self):
        plan = LaunchPlan(argv=["bash", "-c", "true"], env={"A": "1"})
        with patch("buildpack_lifecycle.runtime.launcher.os.execve") as execve:
            execute(plan)
        execve.assert_called_once_with("/bin/bash", ["bash", "-c", "true"], {"A": "1"})

    def test_exec_failure(self):
        plan = LaunchPlan(argv=["x"], env={}, executable="/nonexistent/bash")
        with patch("buildpack_lifecycle.runtime.launcher.os.execve", side_effect=FileNotFoundError("nope")):
            with pytest.raises(ExecError) as exc_info:
                execute(plan)
        assert exc_info.value.exit_code == 4
