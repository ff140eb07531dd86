"""
Caching store wrapper for mpathtree.

Provides a transparent read-through cache for point lookups, which the
engine issues for every parent resolution. Reparenting many children of the
same node resolves the same parent over and over; the cache turns that into
one store round trip.
"""

from typing import Any, AsyncIterator, Dict, List, Optional

from cachetools import TTLCache

from ..._common.node import ID_FIELD, TreeNode
from ..core import AsyncNodeStore


class CachingNodeStore(AsyncNodeStore):
    """
    Optional caching layer for any node store.

    Only ``find_one`` calls whose filter is a plain ``{"_id": value}`` are
    cached. Any write that goes through this wrapper invalidates: single
    node writes drop their own entry, bulk deletes clear the cache. Writes
    made to the underlying store by other clients are only picked up once
    entries expire.

    Example:
        base_store = InMemoryNodeStore()
        cached_store = CachingNodeStore(base_store, max_size=5000)
        tree = MaterializedPathTree(cached_store)
    """

    def __init__(
        self,
        base_store: AsyncNodeStore,
        max_size: int = 1024,
        ttl: float = 60.0
    ):
        """
        Initialize caching store.

        Args:
            base_store: The underlying store to wrap
            max_size: Maximum number of cached nodes
            ttl: Time-to-live for cache entries in seconds
        """
        super().__init__()
        self._store = base_store
        self._cache = TTLCache(maxsize=max_size, ttl=ttl)

        # Statistics
        self.cache_hits = 0
        self.cache_misses = 0
        self.invalidations = 0

    @property
    def base_store(self) -> AsyncNodeStore:
        return self._store

    def _get_cache_key(self, filter: Dict[str, Any]) -> Optional[Any]:
        """
        Return the id for a cacheable filter, None otherwise.
        """
        if not filter or len(filter) != 1 or ID_FIELD not in filter:
            return None
        node_id = filter[ID_FIELD]
        if node_id is None or isinstance(node_id, (dict, list)):
            return None
        return node_id

    def _invalidate(self, filter: Dict[str, Any]) -> None:
        node_id = self._get_cache_key(filter)
        self.invalidations += 1
        if node_id is None:
            self._cache.clear()
        else:
            self._cache.pop(node_id, None)

    async def find_one(self, filter: Dict[str, Any]) -> Optional[TreeNode]:
        cache_key = self._get_cache_key(filter)
        if cache_key is None:
            return await self._store.find_one(filter)

        if cache_key in self._cache:
            self.cache_hits += 1
            return self._cache[cache_key].copy()

        self.cache_misses += 1
        node = await self._store.find_one(filter)
        # Misses are not cached; the node may be created right after
        if node is not None:
            self._cache[cache_key] = node.copy()
        return node

    async def stream(self, filter: Dict[str, Any]) -> AsyncIterator[TreeNode]:
        async for node in self._store.stream(filter):
            yield node

    async def update_one(self, filter: Dict[str, Any], update: Dict[str, Any]) -> None:
        self._invalidate(filter)
        await self._store.update_one(filter, update)

    async def delete_many(self, filter: Dict[str, Any]) -> int:
        self._invalidate(filter)
        return await self._store.delete_many(filter)

    async def save(self, node: TreeNode) -> None:
        self._invalidate({ID_FIELD: node.id})
        await self._store.save(node)

    async def find(
        self,
        filter: Dict[str, Any],
        fields: Any = None,
        sort: Any = None,
        populate: Any = None,
    ) -> List[TreeNode]:
        return await self._store.find(filter, fields=fields, sort=sort, populate=populate)

    def get_cache_stats(self) -> dict:
        """
        Get cache statistics for monitoring and debugging.
        """
        total_requests = self.cache_hits + self.cache_misses
        hit_rate = self.cache_hits / total_requests if total_requests > 0 else 0

        return {
            'cache_hits': self.cache_hits,
            'cache_misses': self.cache_misses,
            'hit_rate': hit_rate,
            'invalidations': self.invalidations,
            'cache_size': len(self._cache),
            'max_size': self._cache.maxsize,
            'ttl': self._cache.ttl
        }

    def clear_cache(self) -> None:
        """
        Clear all cached entries.
        """
        self._cache.clear()
        self.cache_hits = 0
        self.cache_misses = 0
        self.invalidations = 0

    async def get_stats(self) -> dict:
        stats = await self._store.get_stats()
        stats['cache'] = self.get_cache_stats()
        return stats

    async def close(self):
        await self._store.close()
