"""Path codec for materialized paths.

Pure functions that build, measure and match separator-delimited path
strings. Nothing in here touches a store.
"""

import re
from typing import List, Optional, Pattern


def separator_class(separator: str) -> str:
    """Return the separator wrapped in a regex character class."""
    return "[" + re.escape(separator) + "]"


def level(path: Optional[str], separator: str) -> int:
    """Get the level of a node from its path.

    Root nodes are level 1. A missing path (node never saved) also
    reports level 1.

    Args:
        path: Materialized path string, may be None
        separator: Path separator character

    Returns:
        Number of separator-delimited segments
    """
    if not path:
        return 1
    return len(path.split(separator))


def prefix_match(path: str, separator: str) -> str:
    """Build the regex source that selects strict descendants of ``path``.

    The separator is part of the match, so a sibling whose id merely starts
    with the same characters is never selected.

    Args:
        path: Path of the subtree root
        separator: Path separator character

    Returns:
        Anchored regular expression source
    """
    return "^" + re.escape(path) + separator_class(separator)


def compile_prefix_match(path: str, separator: str) -> Pattern:
    """Compiled form of :func:`prefix_match`."""
    return re.compile(prefix_match(path, separator))


def ancestor_ids(path: Optional[str], separator: str) -> List[str]:
    """Split a path into its ancestor ids, root first, self excluded."""
    if not path:
        return []
    segments = path.split(separator)
    segments.pop()
    return segments


def build_path(parent_path: Optional[str], node_id: str, separator: str) -> str:
    """Build a node's path from its parent's path.

    Args:
        parent_path: Path of the parent, or None for a root
        node_id: Textual id of the node
        separator: Path separator character

    Returns:
        ``node_id`` for roots, ``parent_path + separator + node_id`` otherwise
    """
    if parent_path is None:
        return node_id
    return parent_path + separator + node_id


def replace_prefix(path: str, old_prefix: str, new_prefix: str) -> str:
    """Swap the leading ``old_prefix`` of ``path`` for ``new_prefix``.

    The suffix is kept byte for byte; only the first ``len(old_prefix)``
    characters are replaced.
    """
    if not path.startswith(old_prefix):
        raise ValueError(f"Path {path!r} does not start with {old_prefix!r}")
    return new_prefix + path[len(old_prefix):]
