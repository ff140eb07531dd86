"""Test fixtures for mpathtree consumers.

These helpers make it easy to seed a store, inject store failures and
assert on the events the engine reports, without capturing log output.
"""

from typing import Any, Iterable, List, NamedTuple, Optional, Tuple

from .._common.exceptions import StoreError
from .._common.node import TreeNode
from ..aio.adapters.memory import InMemoryNodeStore
from ..aio.core.observer import TreeObserver


class TreeEvent(NamedTuple):
    """One recorded observer call."""
    kind: str
    node_id: Any
    details: Tuple


class RecordingObserver(TreeObserver):
    """Observer that records every event in order.

    Example:
        observer = RecordingObserver()
        tree = MaterializedPathTree(store, observer=observer)
        await tree.move(node, "r2")
        assert observer.kinds() == ['cascade_started', 'node_updated', 'cascade_finished']
    """

    def __init__(self):
        self.events: List[TreeEvent] = []

    def _record(self, kind: str, node_id: Any, *details: Any) -> None:
        self.events.append(TreeEvent(kind, node_id, details))

    def cascade_started(self, node_id, operation, old_path, new_path):
        self._record('cascade_started', node_id, operation, old_path, new_path)

    def node_updated(self, node_id, old_path, new_path):
        self._record('node_updated', node_id, old_path, new_path)

    def cascade_finished(self, node_id, operation, count):
        self._record('cascade_finished', node_id, operation, count)

    def cascade_failed(self, node_id, operation, count, error):
        self._record('cascade_failed', node_id, operation, count, error)

    def subtree_deleted(self, node_id, count):
        self._record('subtree_deleted', node_id, count)

    def child_reparented(self, child_id, old_parent_id, new_parent_id):
        self._record('child_reparented', child_id, old_parent_id, new_parent_id)

    def kinds(self) -> List[str]:
        return [event.kind for event in self.events]

    def of_kind(self, kind: str) -> List[TreeEvent]:
        return [event for event in self.events if event.kind == kind]


class FailingStore(InMemoryNodeStore):
    """In-memory store whose chosen method starts failing after N successes.

    Args:
        method_name: Store method to break ('update_one', 'save', ...)
        fail_after: Number of calls that succeed before the first failure
        error: Exception to raise (defaults to StoreError)
        armed: Count calls from construction; pass False to seed the store first
    """

    def __init__(self, method_name: str, fail_after: int = 0,
                 error: Optional[Exception] = None, armed: bool = True):
        super().__init__()
        self.method_name = method_name
        self.fail_after = fail_after
        self.error = error
        self.armed = armed
        self._successes = 0

    def arm(self, fail_after: Optional[int] = None) -> None:
        """Start counting calls from zero, optionally with a new threshold."""
        if fail_after is not None:
            self.fail_after = fail_after
        self._successes = 0
        self.armed = True

    def _check(self, method_name: str) -> None:
        if not self.armed or method_name != self.method_name:
            return
        if self._successes >= self.fail_after:
            raise self.error or StoreError(f"{method_name} failed", method_name)
        self._successes += 1

    async def update_one(self, filter, update):
        self._check('update_one')
        return await super().update_one(filter, update)

    async def save(self, node):
        self._check('save')
        return await super().save(node)

    async def delete_many(self, filter):
        self._check('delete_many')
        return await super().delete_many(filter)

    async def find_one(self, filter):
        self._check('find_one')
        return await super().find_one(filter)


async def build_store(
    tree: Iterable[Tuple[Any, Optional[Any]]],
    store: Optional[InMemoryNodeStore] = None,
    separator: str = "#",
    **data: Any,
) -> InMemoryNodeStore:
    """Seed a store with consistent nodes.

    Args:
        tree: (id, parent_id) pairs, parents listed before their children
        store: Store to fill (defaults to a new InMemoryNodeStore)
        separator: Path separator character
        **data: Per-id data dictionaries, e.g. ``r1={"name": "Root"}``

    Returns:
        The filled store
    """
    store = store if store is not None else InMemoryNodeStore()
    paths = {}
    for node_id, parent_id in tree:
        if parent_id is None:
            path = str(node_id)
        else:
            path = paths[parent_id] + separator + str(node_id)
        paths[node_id] = path
        node = TreeNode(id=node_id, parent_id=parent_id, path=path,
                        data=dict(data.get(str(node_id), {})))
        await store.save(node)
    return store
