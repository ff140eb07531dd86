"""
In-memory node store.

A dictionary-backed implementation of ``AsyncNodeStore`` that understands
the subset of the Mongo query language the tree engine and its callers use.
It is the reference store for tests and small embedded uses.
"""

import asyncio
import copy
import re
from collections import Counter
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional

from ..._common.exceptions import StoreError
from ..._common.node import ID_FIELD, PARENT_FIELD, PATH_FIELD, TreeNode
from ..._common.reconstruct import sort_nodes
from ..core import AsyncNodeStore

_MISSING = object()
_TREE_FIELDS = (ID_FIELD, PARENT_FIELD, PATH_FIELD)


def _match_operator(operator: str, value: Any, argument: Any) -> bool:
    if operator == "$eq":
        return value == argument
    if operator == "$ne":
        return value != argument
    if operator == "$in":
        return value in argument
    if operator == "$nin":
        return value not in argument
    if operator == "$exists":
        return (value is not _MISSING) == bool(argument)
    if operator == "$regex":
        if not isinstance(value, str):
            return False
        pattern = argument if hasattr(argument, "search") else re.compile(argument)
        return pattern.search(value) is not None
    raise StoreError(f"Unsupported query operator: {operator}", "find")


def _match_field(value: Any, condition: Any) -> bool:
    if isinstance(condition, Mapping) and condition and all(
        str(key).startswith("$") for key in condition
    ):
        # $exists is the only operator that can see a missing field
        return all(
            _match_operator(op, value if op == "$exists" or value is not _MISSING else None, arg)
            for op, arg in condition.items()
        )
    if value is _MISSING:
        value = None
    return value == condition


def matches(document: Mapping[str, Any], filter: Optional[Mapping[str, Any]]) -> bool:
    """Check a stored document against a Mongo-style filter.

    Supported: plain equality, ``$eq``, ``$ne``, ``$in``, ``$nin``,
    ``$exists``, ``$regex``, ``$and``, ``$or`` and the ``$query`` wrapper.
    Other top-level ``$`` keys are query modifiers and are ignored.

    Args:
        document: Stored document
        filter: Query filter, None or empty matches everything

    Returns:
        True if the document satisfies every condition
    """
    if not filter:
        return True

    for key, condition in filter.items():
        if key == "$query":
            if not matches(document, condition):
                return False
        elif key == "$and":
            if not all(matches(document, sub) for sub in condition):
                return False
        elif key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif str(key).startswith("$"):
            # Query modifiers such as $orderby do not filter
            continue
        elif not _match_field(document.get(key, _MISSING), condition):
            return False

    return True


def _projection(fields: Any) -> Optional[Callable[[str], bool]]:
    """Return a predicate deciding which data fields survive projection."""
    if fields is None:
        return None

    if isinstance(fields, str):
        names = set(fields.split())
        return lambda name: name in names

    if isinstance(fields, Mapping):
        included = {name for name, flag in fields.items() if flag}
        if included:
            return lambda name: name in included
        excluded = set(fields)
        return lambda name: name not in excluded

    names = set(fields)
    return lambda name: name in names


class InMemoryNodeStore(AsyncNodeStore):
    """
    Dictionary-backed node store.

    Documents are kept in insertion order and copied on every read and
    write, so nodes handed to callers never alias stored state. Streaming
    yields control to the event loop between nodes, like a real cursor.

    Example:
        store = InMemoryNodeStore()
        tree = MaterializedPathTree(store)
        await tree.save(TreeNode(id="r1"))
    """

    def __init__(self, populators: Optional[Dict[str, Callable[[Any], Any]]] = None):
        """
        Initialize the store.

        Args:
            populators: Optional expansion functions for ``find(populate=...)``,
                keyed by field name; each maps the stored value to the
                expanded one
        """
        super().__init__()
        self._documents: Dict[Any, Dict[str, Any]] = {}
        self.populators = populators or {}
        self.calls = Counter()

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, node_id: Any) -> bool:
        return node_id in self._documents

    def document(self, node_id: Any) -> Optional[Dict[str, Any]]:
        """Copy of the stored document for ``node_id``, for inspection."""
        document = self._documents.get(node_id)
        return copy.deepcopy(document) if document is not None else None

    def _matching_ids(self, filter: Optional[Mapping[str, Any]]) -> List[Any]:
        node_id = filter.get(ID_FIELD) if filter else None
        if node_id is not None and not isinstance(node_id, Mapping) and len(filter) == 1:
            return [node_id] if node_id in self._documents else []
        return [key for key, document in self._documents.items() if matches(document, filter)]

    def _load(self, document: Mapping[str, Any]) -> TreeNode:
        return TreeNode.from_document(copy.deepcopy(dict(document)))

    async def find_one(self, filter: Dict[str, Any]) -> Optional[TreeNode]:
        self.calls['find_one'] += 1
        ids = self._matching_ids(filter)
        if not ids:
            return None
        return self._load(self._documents[ids[0]])

    async def stream(self, filter: Dict[str, Any]) -> AsyncIterator[TreeNode]:
        self.calls['stream'] += 1
        # Cursor semantics: the match set is fixed when iteration starts
        for node_id in self._matching_ids(filter):
            await asyncio.sleep(0)
            document = self._documents.get(node_id)
            if document is None:
                continue
            yield self._load(document)

    async def update_one(self, filter: Dict[str, Any], update: Dict[str, Any]) -> None:
        self.calls['update_one'] += 1
        ids = self._matching_ids(filter)
        if not ids:
            return

        document = self._documents[ids[0]]
        for operator, changes in update.items():
            if operator == "$set":
                for name, value in changes.items():
                    document[name] = copy.deepcopy(value)
            elif operator == "$unset":
                for name in changes:
                    document.pop(name, None)
            else:
                raise StoreError(f"Unsupported update operator: {operator}", "update_one")

    async def delete_many(self, filter: Dict[str, Any]) -> int:
        self.calls['delete_many'] += 1
        ids = self._matching_ids(filter)
        for node_id in ids:
            del self._documents[node_id]
        return len(ids)

    async def save(self, node: TreeNode) -> None:
        self.calls['save'] += 1
        if node.id is None:
            raise StoreError("Cannot save a node without an id", "save")
        self._documents[node.id] = copy.deepcopy(node.to_document())
        node.mark_persisted()

    async def find(
        self,
        filter: Dict[str, Any],
        fields: Any = None,
        sort: Any = None,
        populate: Any = None,
    ) -> List[TreeNode]:
        self.calls['find'] += 1
        keep = _projection(fields)
        nodes = []

        for node_id in self._matching_ids(filter):
            node = self._load(self._documents[node_id])
            if keep is not None:
                node.data = {name: value for name, value in node.data.items() if keep(name)}
            nodes.append(node)

        if sort:
            nodes = sort_nodes(nodes, sort)

        if populate:
            self._populate(nodes, populate)

        return nodes

    def _populate(self, nodes: List[TreeNode], populate: Any) -> None:
        names = populate.split() if isinstance(populate, str) else list(populate)
        for name in names:
            if name not in self.populators:
                raise StoreError(f"No populator registered for field {name!r}", "find")
            expand = self.populators[name]
            for node in nodes:
                if name in node.data:
                    node.data[name] = expand(node.data[name])

    async def get_stats(self) -> dict:
        return {
            'documents': len(self._documents),
            'calls': dict(self.calls),
        }
