"""Common components shared by the async engine and its helpers.

This internal package contains the non-I/O code: the path codec, the node
model, configuration, errors, tree reconstruction and query builders.

Important: This package must NEVER import from aio to avoid circular
dependencies.
"""

from .codec import (
    level,
    prefix_match,
    compile_prefix_match,
    ancestor_ids,
    build_path,
    replace_prefix,
)
from .config import TreeConfig, OnDelete, SortDirection
from .exceptions import (
    TreeError,
    StoreError,
    ParentNotFound,
    CascadeIncomplete,
    InvalidConfiguration,
)
from .node import TreeNode, ID_FIELD, PARENT_FIELD, PATH_FIELD
from .reconstruct import normalize_sort, sort_nodes, filter_by_level, list_to_tree
from .queries import (
    immediate_children_filter,
    descendants_filter,
    ancestors_filter,
    parent_filter,
    merge_filters,
    ensure_fields,
)

__all__ = [
    # Codec
    'level',
    'prefix_match',
    'compile_prefix_match',
    'ancestor_ids',
    'build_path',
    'replace_prefix',
    # Configuration
    'TreeConfig',
    'OnDelete',
    'SortDirection',
    # Errors
    'TreeError',
    'StoreError',
    'ParentNotFound',
    'CascadeIncomplete',
    'InvalidConfiguration',
    # Model
    'TreeNode',
    'ID_FIELD',
    'PARENT_FIELD',
    'PATH_FIELD',
    # Reconstruction
    'normalize_sort',
    'sort_nodes',
    'filter_by_level',
    'list_to_tree',
    # Queries
    'immediate_children_filter',
    'descendants_filter',
    'ancestors_filter',
    'parent_filter',
    'merge_filters',
    'ensure_fields',
]
