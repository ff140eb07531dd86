"""Tree reconstruction from flat, path-sorted result sets.

The store returns nodes as a flat list. These functions filter that list by
level and nest it back into a tree through each node's ``children`` list.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from . import codec
from .config import SortDirection
from .node import TreeNode

SortSpec = Union[None, Mapping[str, Any], Sequence[Tuple[str, Any]]]


def normalize_sort(sort: SortSpec) -> List[Tuple[str, SortDirection]]:
    """Turn any accepted sort spelling into (field, direction) pairs.

    Args:
        sort: None, a Mongo-style mapping such as ``{"name": 1, "rank": -1}``
            or a sequence of ``(field, direction)`` pairs

    Returns:
        Ordered list of (field, SortDirection), primary key first
    """
    if not sort:
        return []
    items = sort.items() if isinstance(sort, Mapping) else sort
    return [(field, SortDirection.coerce(direction)) for field, direction in items]


def _sort_key(field: str):
    # Missing values go last ascending, first descending
    def key(node: TreeNode):
        value = node.get(field)
        return (value is None, value)
    return key


def sort_nodes(nodes: Iterable[TreeNode], sort: SortSpec) -> List[TreeNode]:
    """Return ``nodes`` ordered by a multi-key sort specification.

    Keys are applied from the last to the first so the stable sort leaves
    the primary key in charge. Full ties keep their input order.
    """
    result = list(nodes)
    for field, direction in reversed(normalize_sort(sort)):
        result.sort(key=_sort_key(field), reverse=direction is SortDirection.DESCENDING)
    return result


def filter_by_level(
    nodes: Iterable[TreeNode],
    separator: str,
    min_level: int = 1,
    max_level: Optional[int] = None,
) -> List[TreeNode]:
    """Keep nodes whose level lies within [min_level, max_level].

    Args:
        nodes: Nodes to filter
        separator: Path separator character
        min_level: Lowest level to keep (root is 1)
        max_level: Highest level to keep, None for no limit

    Returns:
        Filtered list in input order
    """
    kept = []
    for node in nodes:
        node_level = codec.level(node.path, separator)
        if node_level < min_level:
            continue
        if max_level is not None and node_level > max_level:
            continue
        kept.append(node)
    return kept


def list_to_tree(nodes: Sequence[TreeNode], sort: SortSpec = None) -> List[TreeNode]:
    """Nest a flat node list into a tree.

    The input must be ordered by ascending path so every ancestor comes
    before its descendants. Each node's ``children`` is reset and then
    filled. A node whose parent does not appear earlier in the input is
    returned as a root; this is what makes filtered or scoped views work,
    where the real parent was never fetched.

    Sorting every sibling list once at the end gives the same order as
    re-sorting after each append, because the sort is stable and siblings
    arrive in input order.

    Args:
        nodes: Path-ordered nodes
        sort: Optional sort specification applied to siblings and roots

    Returns:
        Root nodes carrying their subtrees
    """
    keys = normalize_sort(sort)
    index: Dict[Any, int] = {}
    roots: List[TreeNode] = []

    for position, node in enumerate(nodes):
        node.children = []
        index[node.id] = position

        if node.parent_id is not None and node.parent_id in index:
            nodes[index[node.parent_id]].children.append(node)
        else:
            roots.append(node)

    if keys:
        for node in nodes:
            if len(node.children) > 1:
                node.children = sort_nodes(node.children, keys)
        roots = sort_nodes(roots, keys)

    return roots
