"""
Application launcher.

Resolves the start command, assembles the runtime environment and replaces
the current process with a bash script that sources the droplet's profile
scripts before exec'ing the start command.

Profile sourcing order:
    ../profile.d/*    (lexicographic, regular files only)
    ./.profile.d/*    (lexicographic, regular files only)
    ./.profile
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path

from buildpack_lifecycle.config import CredhubSettings
from buildpack_lifecycle.errors import ExecError, NoStartCommandError
from buildpack_lifecycle.staging import STAGING_INFO_FILENAME, StagingInfo

from .env import EnvBuilder

logger = logging.getLogger(__name__)

BASH = "/bin/bash"
PRE_START_MESSAGE = "Invoking pre-start scripts."
START_MESSAGE = "Invoking start command."


def _regular_files(directory: Path) -> list[Path]:
    if not directory.is_dir():
        return []
    return sorted((entry for entry in directory.iterdir() if entry.is_file()), key=lambda p: p.name)


def profile_scripts(app_dir: Path, *, include_dot_profile: bool = True) -> list[str]:
    """Profile scripts to source, as paths relative to the app directory."""
    scripts = [f"../profile.d/{p.name}" for p in _regular_files(app_dir.parent / "profile.d")]
    scripts += [f".profile.d/{p.name}" for p in _regular_files(app_dir / ".profile.d")]
    if include_dot_profile and (app_dir / ".profile").is_file():
        scripts.append(".profile")
    return scripts


def build_script(
    app_dir: Path,
    entrypoint_prefix: str = "",
    *,
    announce: bool = True,
    include_dot_profile: bool = True,
) -> str:
    """
    The bash script run as ``bash -c <script> <argv0> <app-dir> <command>``.

    With an entrypoint prefix the start command is passed to the prefix as
    its sole argument instead of to ``bash -c``.
    """
    entrypoint = entrypoint_prefix or "bash -c"
    lines = ['cd "$1"', ""]
    if announce:
        lines.append(f"echo {shlex.quote(PRE_START_MESSAGE)}")
    for script in profile_scripts(app_dir, include_dot_profile=include_dot_profile):
        lines.append(f"source {shlex.quote(script)}")
    lines += ["", "shift", ""]
    if announce:
        lines.append(f"echo {shlex.quote(START_MESSAGE)}")
    lines.append(f'exec {entrypoint} "$@"')
    return "\n".join(lines) + "\n"


def resolve_start_command(start_command: str, staging_info: StagingInfo | None) -> str:
    """
    The explicit start command, else the one recorded at staging.

    Raises:
        NoStartCommandError: neither is set
    """
    if start_command:
        return start_command
    if staging_info is not None and staging_info.start_command:
        return staging_info.start_command
    raise NoStartCommandError()


@dataclass(frozen=True)
class LaunchPlan:
    """Everything needed to hand the process over to the application."""

    argv: list[str]
    env: dict[str, str]
    executable: str = BASH


def execute(plan: LaunchPlan) -> int:
    """
    Replace the current process with the plan's command.

    Only returns on platforms without exec, where the command runs as a
    child sharing our stdio and its exit code is returned.

    Raises:
        ExecError: the process could not be replaced
    """
    sys.stdout.flush()
    sys.stderr.flush()

    if os.name != "posix":
        return subprocess.run(plan.argv, executable=plan.executable, env=plan.env).returncode

    try:
        os.execve(plan.executable, plan.argv, plan.env)
    except OSError as e:
        raise ExecError("Failed to run start command", cause=e) from e
    return 0


class Launcher:
    """
    Starts an application from its droplet.

    Usage:
        launcher = Launcher("/home/vcap/app", start_command="", credhub=settings)
        sys.exit(launcher.launch())

    Args:
        app_dir: Application directory
        start_command: Explicit start command ("" to use the staged one)
        credhub: Secret store retry budget
        argv0: Name reported as ``$0`` inside the launch script
    """

    def __init__(
        self,
        app_dir: str | Path,
        start_command: str = "",
        *,
        credhub: CredhubSettings | None = None,
        env_builder: EnvBuilder | None = None,
        argv0: str = "launcher",
    ):
        self.app_dir = Path(os.path.abspath(app_dir))
        self.start_command = start_command
        self.credhub = credhub or CredhubSettings()
        self.env_builder = env_builder or EnvBuilder(self.app_dir, self.credhub)
        self.argv0 = argv0

    @property
    def staging_info_path(self) -> Path:
        return self.app_dir.parent / STAGING_INFO_FILENAME

    def prepare(self, environ: dict[str, str] | None = None) -> LaunchPlan:
        """
        Resolve the command and environment without executing anything.

        Raises:
            StagingInfoError: staging_info.yml exists but is not YAML
            NoStartCommandError: no command given or staged
            EnvironmentAssemblyError: the environment cannot be computed
        """
        staging_info = StagingInfo.load(self.staging_info_path)
        command = resolve_start_command(self.start_command, staging_info)
        prefix = staging_info.entrypoint_prefix if staging_info is not None else ""

        env = self.env_builder.build(environ)
        script = build_script(self.app_dir, prefix)
        logger.debug(f"Launching {command!r} in {self.app_dir}")
        return LaunchPlan(argv=["bash", "-c", script, self.argv0, str(self.app_dir), command], env=env)

    def launch(self, environ: dict[str, str] | None = None) -> int:
        return execute(self.prepare(environ))
