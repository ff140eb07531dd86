"""Subtree handling when a node is removed.

Two behaviors are available, chosen by ``OnDelete``:

- DELETE removes every descendant with a single bulk delete.
- REPARENT hands the immediate children to the removed node's parent and
  saves each one through the normal save path, so their own subtrees are
  re-pathed by the mutation engine.
"""

import logging
from typing import Awaitable, Callable, Optional

from .._common import codec
from .._common.config import OnDelete
from .._common.exceptions import CascadeIncomplete
from .._common.node import PARENT_FIELD, PATH_FIELD, TreeNode
from .core import AsyncNodeStore, LoggingObserver, TreeObserver
from .mutation import TreeMutationEngine

logger = logging.getLogger(__name__)

SaveCallable = Callable[[TreeNode], Awaitable[None]]


class DeletionPolicy:
    """Applies the configured ``OnDelete`` behavior to a removed node's subtree."""

    def __init__(
        self,
        store: AsyncNodeStore,
        engine: TreeMutationEngine,
        mode: OnDelete = OnDelete.REPARENT,
        observer: Optional[TreeObserver] = None,
        save: Optional[SaveCallable] = None,
    ):
        """
        Initialize the deletion policy.

        Args:
            store: Store holding the nodes
            engine: Mutation engine used when reparented children are saved
            mode: OnDelete behavior
            observer: Diagnostics observer (defaults to LoggingObserver)
            save: Save path for reparented children; defaults to running
                the engine and then ``store.save``
        """
        self.store = store
        self.engine = engine
        self.mode = mode
        self.observer = observer or LoggingObserver()
        self._save = save or self._default_save

    @property
    def separator(self) -> str:
        return self.engine.separator

    async def _default_save(self, node: TreeNode) -> None:
        await self.engine.on_save(node, node.is_new, node.is_parent_modified())
        await self.store.save(node)

    async def on_delete(self, node: TreeNode) -> int:
        """Run subtree bookkeeping for a removed node.

        A node that was never saved has no path and therefore no subtree;
        nothing happens in that case.

        Args:
            node: The node being removed, with its last persisted state

        Returns:
            Number of descendants deleted (DELETE) or children reparented
            (REPARENT)

        Raises:
            CascadeIncomplete: The subtree was only partly processed
        """
        if not node.path:
            logger.debug("Node %r has no path, skipping subtree handling", node.id)
            return 0

        if self.mode is OnDelete.DELETE:
            return await self.delete_descendants(node)
        return await self.reparent_children(node)

    async def delete_descendants(self, node: TreeNode) -> int:
        """Remove every strict descendant of ``node`` in one bulk call."""
        descendants = {PATH_FIELD: {"$regex": codec.prefix_match(node.path, self.separator)}}
        self.observer.cascade_started(node.id, "delete", node.path, None)

        try:
            count = await self.store.delete_many(descendants)
        except Exception as e:
            # A failed bulk delete may still have removed some documents
            self.observer.cascade_failed(node.id, "delete", None, e)
            raise CascadeIncomplete(node.id, "delete", updated_ids=None, old_path=node.path) from e

        self.observer.subtree_deleted(node.id, count)
        self.observer.cascade_finished(node.id, "delete", count)
        return count

    async def reparent_children(self, node: TreeNode) -> int:
        """Move the immediate children of ``node`` to its parent.

        Children of a removed root become roots themselves.
        """
        new_parent_id = node.parent_id
        self.observer.cascade_started(node.id, "reparent", node.path, None)
        reparented = []

        try:
            async for child in self.store.stream({PARENT_FIELD: node.id}):
                child.parent_id = new_parent_id
                await self._save(child)
                reparented.append(child.id)
                self.observer.child_reparented(child.id, node.id, new_parent_id)
        except Exception as e:
            self.observer.cascade_failed(node.id, "reparent", len(reparented), e)
            raise CascadeIncomplete(
                node.id,
                "reparent",
                updated_ids=reparented,
                old_path=node.path,
            ) from e

        self.observer.cascade_finished(node.id, "reparent", len(reparented))
        return len(reparented)
