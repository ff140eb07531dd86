"""Query predicate builders.

Every function here returns a new Mongo-style filter dict. Nothing is
executed and caller-supplied filters are never modified in place.
"""

import copy
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from . import codec
from .node import ID_FIELD, PARENT_FIELD, PATH_FIELD, TreeNode

QUERY_WRAPPER = "$query"

Fields = Union[None, str, Mapping[str, Any], Iterable[str]]


def immediate_children_filter(node: TreeNode) -> Dict[str, Any]:
    return {PARENT_FIELD: node.id}


def descendants_filter(node: TreeNode, separator: str) -> Dict[str, Any]:
    """Filter for every node strictly below ``node``."""
    return {PATH_FIELD: {"$regex": codec.prefix_match(node.path or node.key, separator)}}


def ancestors_filter(node: TreeNode, separator: str) -> Dict[str, Any]:
    """Filter for the ancestors of ``node``, root to immediate parent.

    Path segments are text. When ``node.id`` is not a string the segments
    are converted with its type, so ids of one tree must share a type.
    """
    segments = codec.ancestor_ids(node.path, separator)
    if node.id is not None and not isinstance(node.id, str):
        segments = [type(node.id)(segment) for segment in segments]
    return {ID_FIELD: {"$in": segments}}


def parent_filter(node: TreeNode) -> Dict[str, Any]:
    return {ID_FIELD: node.parent_id}


def merge_filters(
    conditions: Optional[Mapping[str, Any]],
    predicate: Mapping[str, Any],
) -> Dict[str, Any]:
    """Combine caller conditions with a generated predicate.

    If the caller wrapped its conditions in ``$query`` the predicate is
    merged inside the wrapper. A field the caller already constrains is
    kept and the new constraint is added under ``$and``, so neither side
    is overwritten.

    Args:
        conditions: Caller filter, may be None
        predicate: Generated filter, typically one field

    Returns:
        New combined filter
    """
    merged = copy.deepcopy(dict(conditions)) if conditions else {}

    target = merged
    if isinstance(merged.get(QUERY_WRAPPER), dict):
        target = merged[QUERY_WRAPPER]

    for field, constraint in predicate.items():
        if field in target:
            target.setdefault("$and", []).append({field: copy.deepcopy(constraint)})
        else:
            target[field] = copy.deepcopy(constraint)

    return merged


def ensure_fields(fields: Fields) -> Union[None, str, Dict[str, Any], list]:
    """Make sure a projection includes ``path`` and ``parent``.

    Reconstruction needs both, so they are added even when the caller
    left them out. ``None`` means "all fields" and is returned unchanged,
    as is an exclusion-only mapping such as ``{"secret": 0}``.
    The result keeps the caller's spelling: a mapping, a list of names or
    a space-separated string.
    """
    if fields is None:
        return None

    if isinstance(fields, str):
        names = fields.split()
        for required in (PATH_FIELD, PARENT_FIELD):
            if required not in names:
                names.append(required)
        return " ".join(names)

    if isinstance(fields, Mapping):
        projection = dict(fields)
        # An exclusion projection already keeps the tree fields
        if not any(projection.values()):
            return projection
        for required in (PATH_FIELD, PARENT_FIELD):
            projection.setdefault(required, 1)
        return projection

    names = list(fields)
    for required in (PATH_FIELD, PARENT_FIELD):
        if required not in names:
            names.append(required)
    return names
