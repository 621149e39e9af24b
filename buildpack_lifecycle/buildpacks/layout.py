"""
On-disk buildpack layout.

A buildpack is a directory with a bin/ subdirectory holding executable
hooks: detect (required), and optionally supply, compile, finalize and
release.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from buildpack_lifecycle.errors import MalformedLayout

@dataclass(frozen=True, slots=True)
class BuildpackLayout:
    """A located buildpack: its ref and the directory containing bin/."""

    ref: str
    root: Path

    def hook(self, name: str) -> Path:
        return self.root / "bin" / name

    def has_hook(self, name: str) -> bool:
        return self.hook(name).is_file()


def has_bin_dir(path: Path) -> bool:
    return (path / "bin").exists()


def resolve_layout(ref: str, path: Path) -> BuildpackLayout:
    """
    Resolve the layout rooted at ``path``.

    A directory holding exactly one child directory that has bin/ is
    treated as that child (archives commonly wrap the buildpack in a
    top-level folder).

    Raises:
        MalformedLayout: neither the directory nor its single child has bin/
    """
    if has_bin_dir(path):
        return BuildpackLayout(ref=ref, root=path)

    try:
        children = list(path.iterdir())
    except OSError as e:
        raise MalformedLayout(ref, str(path)) from e

    if len(children) == 1 and children[0].is_dir() and has_bin_dir(children[0]):
        return BuildpackLayout(ref=ref, root=children[0])

    raise MalformedLayout(ref, str(path))
