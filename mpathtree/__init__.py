"""mpathtree - Materialized-path trees for document stores.

mpathtree keeps a tree of flat documents consistent by storing, on every
node, the chain of ancestor ids as a separator-delimited path. Paths are
repaired on create, move and delete, and flat query results are nested back
into trees on the read side.

Layout:
━━━━━━━━━━━━━━━━━━━━━━━━━━
Pure helpers (no I/O):
    from mpathtree import TreeNode, TreeConfig, list_to_tree, level

Async engine and stores:
    from mpathtree.aio import MaterializedPathTree, InMemoryNodeStore
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

from ._common import *  # noqa: F401,F403
from ._common import __all__ as _common_all
from . import aio

__all__ = [
    "__version__",
    "aio",
] + list(_common_all)
