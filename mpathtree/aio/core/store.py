"""Async node store abstraction.

Defines the narrow set of document-store operations the tree engine needs.
Key feature: descendants are streamed through an AsyncIterator so a cascade
never holds more than one node in memory.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional, Set

from ..._common.node import TreeNode


class AsyncNodeStore(ABC):
    """Abstract base class for async node stores.

    Stores bridge between the tree engine and a concrete document store.
    Filters and updates use the Mongo query shape over the document field
    names ``_id``, ``parent`` and ``path``.
    """

    def __init__(self):
        self._capabilities = self._define_capabilities()

    @abstractmethod
    async def find_one(self, filter: Dict[str, Any]) -> Optional[TreeNode]:
        """Fetch a single node.

        Args:
            filter: Query filter, usually ``{"_id": some_id}``

        Returns:
            Matching node or None
        """
        pass

    @abstractmethod
    def stream(self, filter: Dict[str, Any]) -> AsyncIterator[TreeNode]:
        """Stream matching nodes one at a time.

        Implementations are async generators; nodes must be materialized
        lazily, cursor style.

        Args:
            filter: Query filter

        Yields:
            Matching nodes
        """
        pass

    @abstractmethod
    async def update_one(self, filter: Dict[str, Any], update: Dict[str, Any]) -> None:
        """Apply a partial update such as ``{"$set": {"path": ...}}`` to one node."""
        pass

    @abstractmethod
    async def delete_many(self, filter: Dict[str, Any]) -> int:
        """Delete every matching node.

        Returns:
            Number of deleted nodes
        """
        pass

    @abstractmethod
    async def save(self, node: TreeNode) -> None:
        """Upsert a full node and mark it persisted."""
        pass

    @abstractmethod
    async def find(
        self,
        filter: Dict[str, Any],
        fields: Any = None,
        sort: Any = None,
        populate: Any = None,
    ) -> List[TreeNode]:
        """Run a read query.

        Args:
            filter: Query filter
            fields: Projection (mapping, list of names or space-separated
                string); None returns all fields
            sort: Sort specification, see ``normalize_sort``
            populate: Related-data expansion directive, store specific

        Returns:
            Matching nodes in the requested order
        """
        pass

    def supports_capability(self, capability: str) -> bool:
        """Check if store supports a specific capability."""
        return capability in self._capabilities

    def _define_capabilities(self) -> Set[str]:
        """Define store capabilities.

        Override in subclasses to declare extra features.
        """
        return {
            'find_one',
            'stream',
            'update_one',
            'delete_many',
            'save',
            'find',
        }

    async def get_stats(self) -> dict:
        """Get store statistics."""
        return {}

    async def close(self):
        """Clean up store resources.

        Override if the store holds connections.
        """
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
