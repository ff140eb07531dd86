"""Tree node model.

A ``TreeNode`` is the in-memory form of one stored document. It carries the
three tree fields (id, parent id, path), an open dictionary of other document
fields and a transient ``children`` list that only reconstruction fills in.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from . import codec

# Document field names used by stores and filters
ID_FIELD = "_id"
PARENT_FIELD = "parent"
PATH_FIELD = "path"

_UNSAVED = object()


@dataclass
class TreeNode:
    """One node of a materialized-path tree.

    Dirty tracking mirrors what an ORM would offer: ``is_new`` is true until
    a store marks the node persisted, and ``is_parent_modified()`` compares
    the current parent against the last persisted one.

    Attributes:
        id: Unique identifier assigned by the store, immutable once set
        parent_id: Id of the parent node, None for roots
        path: Materialized path, None until the first save
        data: Any other document fields
        children: Filled only by tree reconstruction, never persisted
    """

    id: Any
    parent_id: Any = None
    path: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    children: List["TreeNode"] = field(default_factory=list, repr=False, compare=False)
    _persisted_parent_id: Any = field(default=_UNSAVED, repr=False, compare=False)

    @property
    def is_new(self) -> bool:
        return self._persisted_parent_id is _UNSAVED

    @property
    def key(self) -> str:
        """Textual form of the id, as it appears inside paths."""
        return str(self.id)

    def is_parent_modified(self) -> bool:
        """Check if the parent changed since the node was last persisted.

        New nodes count as modified when they were given a parent.
        """
        if self.is_new:
            return self.parent_id is not None
        return self.parent_id != self._persisted_parent_id

    def mark_persisted(self) -> None:
        """Snapshot the current parent as the persisted state."""
        self._persisted_parent_id = self.parent_id

    def level(self, separator: str = "#") -> int:
        return codec.level(self.path, separator)

    def get(self, name: str, default: Any = None) -> Any:
        """Look up a document field by name.

        Tree fields answer to both their document name and their attribute
        name; everything else is read from ``data``.
        """
        if name in (ID_FIELD, "id"):
            return self.id
        if name in (PARENT_FIELD, "parent_id"):
            return self.parent_id
        if name == PATH_FIELD:
            return self.path
        return self.data.get(name, default)

    def to_document(self) -> Dict[str, Any]:
        """Convert to a plain document; ``children`` is never included."""
        document = dict(self.data)
        document[ID_FIELD] = self.id
        document[PARENT_FIELD] = self.parent_id
        document[PATH_FIELD] = self.path
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any], persisted: bool = True) -> "TreeNode":
        """Build a node from a stored document.

        Args:
            document: Mapping with ``_id``, ``parent`` and ``path`` keys
            persisted: Mark the node as loaded from the store

        Returns:
            New TreeNode
        """
        data = {
            key: value
            for key, value in document.items()
            if key not in (ID_FIELD, PARENT_FIELD, PATH_FIELD, "children")
        }
        node = cls(
            id=document[ID_FIELD],
            parent_id=document.get(PARENT_FIELD),
            path=document.get(PATH_FIELD),
            data=data,
        )
        if persisted:
            node.mark_persisted()
        return node

    def copy(self) -> "TreeNode":
        """Detached copy without children, keeping dirty-tracking state."""
        clone = TreeNode(
            id=self.id,
            parent_id=self.parent_id,
            path=self.path,
            data=dict(self.data),
        )
        clone._persisted_parent_id = self._persisted_parent_id
        return clone
