"""High-level async API for mpathtree.

``MaterializedPathTree`` ties a store, a configuration and an observer
together and exposes the persistence workflow (save, remove), the explicit
lifecycle calls and the read-side queries.
"""

from typing import Any, Dict, List, Optional

from .._common import codec
from .._common.config import SortDirection, TreeConfig
from .._common.exceptions import InvalidConfiguration
from .._common.node import ID_FIELD, PATH_FIELD, TreeNode
from .._common.queries import (
    ancestors_filter,
    descendants_filter,
    ensure_fields,
    immediate_children_filter,
    merge_filters,
    parent_filter,
)
from .._common.reconstruct import SortSpec, filter_by_level, list_to_tree
from .caching import CachingNodeStore
from .core import AsyncNodeStore, LoggingObserver, TreeObserver
from .deletion import DeletionPolicy
from .mutation import TreeMutationEngine


class MaterializedPathTree:
    """Materialized-path tree over an async node store.

    Example:
        tree = MaterializedPathTree(InMemoryNodeStore())
        root = TreeNode(id="r1")
        await tree.save(root)
        child = TreeNode(id="c1", parent_id="r1")
        await tree.save(child)            # child.path == "r1#c1"
        roots = await tree.get_children_tree()
    """

    def __init__(
        self,
        store: AsyncNodeStore,
        config: Optional[TreeConfig] = None,
        observer: Optional[TreeObserver] = None,
    ):
        """
        Initialize the tree.

        Args:
            store: Store holding the nodes
            config: Tree configuration (defaults to TreeConfig())
            observer: Diagnostics observer (defaults to LoggingObserver)

        Raises:
            InvalidConfiguration: config.validate() reported errors
        """
        self.config = config or TreeConfig()
        errors = self.config.validate()
        if errors:
            raise InvalidConfiguration(errors)

        if self.config.cache_lookups:
            store = CachingNodeStore(store, max_size=self.config.cache_size, ttl=self.config.cache_ttl)

        self.store = store
        self.observer = observer or LoggingObserver()
        self.engine = TreeMutationEngine(store, self.separator, self.observer)
        self.deletion = DeletionPolicy(
            store,
            self.engine,
            mode=self.config.on_delete,
            observer=self.observer,
            save=self.save,
        )

    @property
    def separator(self) -> str:
        return self.config.path_separator

    # Lifecycle -----------------------------------------------------------

    async def on_create(self, node: TreeNode) -> str:
        return await self.engine.on_create(node)

    async def on_parent_change(self, node: TreeNode) -> str:
        return await self.engine.on_parent_change(node)

    async def on_delete(self, node: TreeNode) -> int:
        return await self.deletion.on_delete(node)

    # Persistence workflow ------------------------------------------------

    async def save(self, node: TreeNode) -> TreeNode:
        """Persist a node, maintaining paths first when needed.

        Path maintenance runs when the node is new or its parent changed
        since it was loaded. Descendants are rewritten before the node
        itself is written.

        Returns:
            The saved node, with its path assigned
        """
        await self.engine.on_save(node, node.is_new, node.is_parent_modified())
        await self.store.save(node)
        return node

    async def move(self, node: TreeNode, new_parent_id: Any) -> TreeNode:
        """Give ``node`` a new parent (None makes it a root) and save it."""
        node.parent_id = new_parent_id
        return await self.save(node)

    async def remove(self, node: TreeNode) -> int:
        """Delete a node and apply the configured OnDelete behavior.

        Returns:
            Number of descendants deleted or children reparented
        """
        await self.store.delete_many({ID_FIELD: node.id})
        return await self.deletion.on_delete(node)

    # Read side -----------------------------------------------------------

    def level(self, node: TreeNode) -> int:
        return codec.level(node.path, self.separator)

    async def get_immediate_children(
        self,
        node: TreeNode,
        conditions: Optional[Dict[str, Any]] = None,
        fields: Any = None,
        sort: SortSpec = None,
    ) -> List[TreeNode]:
        query = merge_filters(conditions, immediate_children_filter(node))
        return await self.store.find(query, fields=fields, sort=sort)

    async def get_all_children(
        self,
        node: TreeNode,
        conditions: Optional[Dict[str, Any]] = None,
        fields: Any = None,
        sort: SortSpec = None,
    ) -> List[TreeNode]:
        """Fetch every descendant of ``node`` (flat)."""
        query = merge_filters(conditions, descendants_filter(node, self.separator))
        return await self.store.find(query, fields=fields, sort=sort)

    async def get_parent(self, node: TreeNode, fields: Any = None) -> Optional[TreeNode]:
        if node.parent_id is None:
            return None
        if fields is None:
            return await self.store.find_one(parent_filter(node))
        found = await self.store.find(parent_filter(node), fields=fields)
        return found[0] if found else None

    async def get_ancestors(
        self,
        node: TreeNode,
        conditions: Optional[Dict[str, Any]] = None,
        fields: Any = None,
        sort: SortSpec = None,
    ) -> List[TreeNode]:
        """Fetch the ancestors of ``node``.

        Without a sort they come back root first.
        """
        query = merge_filters(conditions, ancestors_filter(node, self.separator))
        ancestors = await self.store.find(query, fields=fields, sort=sort)
        if sort:
            return ancestors
        order = {node_id: position for position, node_id
                 in enumerate(codec.ancestor_ids(node.path, self.separator))}
        return sorted(ancestors, key=lambda ancestor: order.get(ancestor.key, len(order)))

    async def get_children_tree(
        self,
        root: Optional[TreeNode] = None,
        fields: Any = None,
        filters: Optional[Dict[str, Any]] = None,
        min_level: int = 1,
        max_level: Optional[int] = None,
        sort: SortSpec = None,
        populate: Any = None,
    ) -> List[TreeNode]:
        """Fetch nodes and nest them into a tree.

        The query always runs ordered by ascending path; ``sort`` is applied
        afterwards to siblings and roots. Level filtering happens before
        nesting, so a node whose parent was filtered out becomes a root of
        the result.

        Args:
            root: Restrict to the strict descendants of this node
            fields: Projection; ``path`` and ``parent`` are always added
            filters: Caller filter, merged with the subtree restriction
            min_level: Lowest level to keep (root is 1)
            max_level: Highest level to keep, None for no limit
            sort: Post-fetch sort of siblings and roots
            populate: Expansion directive handed to the store unchanged

        Returns:
            Root nodes with nested ``children``
        """
        query = dict(filters) if filters else {}
        if root is not None:
            query = merge_filters(query, descendants_filter(root, self.separator))

        nodes = await self.store.find(
            query,
            fields=ensure_fields(fields),
            sort=[(PATH_FIELD, SortDirection.ASCENDING)],
            populate=populate,
        )
        nodes = filter_by_level(nodes, self.separator, min_level or 1, max_level)
        return list_to_tree(nodes, sort)

    async def get_node_children_tree(self, node: TreeNode, **kwargs) -> List[TreeNode]:
        """Tree of the descendants of ``node``; see get_children_tree."""
        kwargs['root'] = node
        return await self.get_children_tree(**kwargs)
