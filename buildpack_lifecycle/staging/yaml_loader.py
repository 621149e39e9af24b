"""
Lenient YAML loading for buildpack-produced documents.

Release output and staging info may carry tagged values the lifecycle does
not understand (``!ruby/object:...``, ``!!python/object`` and the like).
Such nodes are read as the plain mapping, sequence or scalar underneath the
tag; only a document that is not valid YAML at all fails to load.
"""

from __future__ import annotations

from typing import Any

import yaml


class LenientLoader(yaml.SafeLoader):
    """SafeLoader that treats unknown tags as opaque plain values."""


def _construct_untagged(loader: LenientLoader, tag_suffix: str, node: yaml.Node) -> Any:
    if isinstance(node, yaml.MappingNode):
        return loader.construct_mapping(node, deep=True)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node, deep=True)
    return loader.construct_scalar(node)


LenientLoader.add_multi_constructor("", _construct_untagged)


def load_lenient(text: str | bytes) -> Any:
    """
    Parse a YAML (or JSON) document.

    Raises:
        yaml.YAMLError: the document is not parseable
    """
    return yaml.load(text, Loader=LenientLoader)
