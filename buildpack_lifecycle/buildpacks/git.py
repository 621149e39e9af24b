"""
Git buildpack acquisition.

The URL fragment, if any, names the branch or tag to check out:
``https://github.com/org/buildpack.git#v1.2.3``.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from urllib.parse import urldefrag

logger = logging.getLogger(__name__)


class GitCloneError(Exception):
    """Raised when a git command exits nonzero."""

    def __init__(self, args: list[str], returncode: int, output: str):
        super().__init__(f"git {' '.join(args)} failed ({returncode}):\n{output}")
        self.returncode = returncode
        self.output = output


class GitCloner:
    """
    Clones buildpack repositories with the git CLI.

    A shallow clone is tried first; if it fails (for instance because the
    fragment names a commit rather than a branch) the destination is
    removed and a full clone followed by an explicit checkout is used.
    """

    def __init__(self, git: str = "git"):
        self._git = git

    def clone(self, url: str, destination: Path) -> None:
        """
        Clone ``url`` into ``destination``.

        Raises:
            GitCloneError: both the shallow and the full clone failed
            FileNotFoundError: git is not installed
        """
        repo, branch = urldefrag(url)
        destination.parent.mkdir(parents=True, exist_ok=True)

        shallow = ["clone", "--depth", "1", "--recursive", repo, str(destination)]
        if branch:
            shallow += ["-b", branch]

        try:
            self._run(shallow)
            return
        except GitCloneError as e:
            logger.warning(f"Shallow clone of {repo} failed, retrying with full clone: {e}")

        if destination.exists():
            shutil.rmtree(destination)

        self._run(["clone", "--recursive", repo, str(destination)])
        if branch:
            self._run(["-C", str(destination), "checkout", branch])

    def _run(self, args: list[str]) -> None:
        completed = subprocess.run(
            [self._git, *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )
        if completed.returncode != 0:
            raise GitCloneError(args, completed.returncode, completed.stdout)
