"""Path maintenance for node creation and moves.

The engine computes a node's path from its parent and, when the node moved,
rewrites the path of every existing descendant. The rewrite is a sequence of
single-node updates over a streamed cursor: there is no rollback, so a
failure partway leaves the subtree half moved and is reported as
``CascadeIncomplete``.
"""

import logging
from typing import Any, Optional

from .._common import codec
from .._common.exceptions import CascadeIncomplete, ParentNotFound
from .._common.node import ID_FIELD, PATH_FIELD, TreeNode
from .core import AsyncNodeStore, LoggingObserver, TreeObserver

logger = logging.getLogger(__name__)


class TreeMutationEngine:
    """Keeps paths consistent when nodes are created or moved.

    Callers decide when a write needs path maintenance: a new node, or a
    node whose parent changed. Call the matching lifecycle method before
    persisting the node itself; the method assigns the corrected path to
    the node so the pending write stores it.

    Example:
        engine = TreeMutationEngine(store)
        node.parent_id = new_parent.id
        await engine.on_parent_change(node)
        await store.save(node)
    """

    def __init__(
        self,
        store: AsyncNodeStore,
        separator: str = "#",
        observer: Optional[TreeObserver] = None,
    ):
        """
        Initialize the engine.

        Args:
            store: Store used to look up parents and rewrite descendants
            separator: Path separator character
            observer: Diagnostics observer (defaults to LoggingObserver)
        """
        self.store = store
        self.separator = separator
        self.observer = observer or LoggingObserver()

    async def compute_path(self, node: TreeNode) -> str:
        """Compute the path ``node`` should have under its current parent.

        Raises:
            ParentNotFound: parent_id does not resolve to a stored node
        """
        if node.parent_id is None:
            return node.key

        parent = await self.store.find_one({ID_FIELD: node.parent_id})
        if parent is None:
            raise ParentNotFound(node.id, node.parent_id)

        # A parent stored without a path is treated as a root
        parent_path = parent.path or parent.key
        return codec.build_path(parent_path, node.key, self.separator)

    async def on_create(self, node: TreeNode) -> str:
        """Assign the path of a brand-new node. Never cascades.

        Returns:
            The assigned path
        """
        return await self.on_save(node, is_new=True, parent_modified=False)

    async def on_parent_change(self, node: TreeNode) -> str:
        """Reassign the path of a moved node and rewrite its descendants.

        The node's current ``path`` must still be the previously persisted
        one; it is the prefix replaced in every descendant.

        Returns:
            The assigned path
        """
        return await self.on_save(node, is_new=False, parent_modified=True)

    async def on_save(self, node: TreeNode, is_new: bool, parent_modified: bool) -> Optional[str]:
        """Run path maintenance for a pending write.

        Args:
            node: Node about to be persisted, carrying its new parent_id
            is_new: The node has never been persisted
            parent_modified: parent_id differs from the persisted state

        Returns:
            The assigned path, or None when no maintenance was needed

        Raises:
            ParentNotFound: The parent does not exist; node left untouched
            CascadeIncomplete: Some descendants could not be rewritten
        """
        if not (is_new or parent_modified):
            return None

        old_path = node.path
        new_path = await self.compute_path(node)
        node.path = new_path
        logger.debug("Node %r path %r -> %r", node.id, old_path, new_path)

        if parent_modified and not is_new:
            await self.rewrite_descendants(node.id, old_path, new_path)

        return new_path

    async def rewrite_descendants(self, node_id: Any, old_path: Optional[str], new_path: str) -> int:
        """Replace the ``old_path`` prefix of every descendant with ``new_path``.

        Descendants are streamed and updated one at a time. A node that was
        never persisted (no old path) cannot have descendants and is skipped.

        Args:
            node_id: Id of the moved node
            old_path: Path the moved node had before the move
            new_path: Path the moved node has now

        Returns:
            Number of descendants rewritten

        Raises:
            CascadeIncomplete: A store call failed; already rewritten
                descendants keep their new path
        """
        if not old_path or old_path == new_path:
            return 0

        self.observer.cascade_started(node_id, "move", old_path, new_path)
        descendants = {PATH_FIELD: {"$regex": codec.prefix_match(old_path, self.separator)}}
        updated = []

        try:
            async for descendant in self.store.stream(descendants):
                descendant_path = codec.replace_prefix(descendant.path, old_path, new_path)
                await self.store.update_one(
                    {ID_FIELD: descendant.id},
                    {"$set": {PATH_FIELD: descendant_path}},
                )
                updated.append(descendant.id)
                self.observer.node_updated(descendant.id, descendant.path, descendant_path)
        except Exception as e:
            self.observer.cascade_failed(node_id, "move", len(updated), e)
            raise CascadeIncomplete(
                node_id,
                "move",
                updated_ids=updated,
                old_path=old_path,
                new_path=new_path,
            ) from e

        self.observer.cascade_finished(node_id, "move", len(updated))
        return len(updated)
