"""Exceptions raised by mpathtree.

Store-level failures are expected to arrive as ``StoreError`` (or any other
exception the store raises); the engine passes them through untouched unless
they interrupt a cascade, in which case they are chained under
``CascadeIncomplete``.
"""

from typing import Any, List, Optional


class TreeError(Exception):
    """Base class for all tree maintenance errors."""


class StoreError(TreeError):
    """A store primitive failed.

    Raised by store implementations, or produced by
    ``TranslateErrorsPolicy`` from a driver-specific exception.
    """

    def __init__(self, message: str, method_name: Optional[str] = None):
        super().__init__(message)
        self.method_name = method_name


class ParentNotFound(TreeError):
    """The parent referenced by a node does not exist in the store."""

    def __init__(self, node_id: Any, parent_id: Any):
        super().__init__(f"Parent {parent_id!r} of node {node_id!r} was not found")
        self.node_id = node_id
        self.parent_id = parent_id


class CascadeIncomplete(TreeError):
    """A cascade over descendants stopped partway.

    Nothing is rolled back. ``updated_ids`` lists the nodes whose change was
    confirmed before the failure, or is None when the store cannot tell
    (bulk deletes). The store error is available as ``__cause__``.
    """

    def __init__(
        self,
        node_id: Any,
        operation: str,
        updated_ids: Optional[List[Any]] = None,
        old_path: Optional[str] = None,
        new_path: Optional[str] = None,
    ):
        done = "unknown" if updated_ids is None else str(len(updated_ids))
        super().__init__(
            f"{operation} cascade for node {node_id!r} stopped after {done} node(s)"
        )
        self.node_id = node_id
        self.operation = operation
        self.updated_ids = updated_ids
        self.old_path = old_path
        self.new_path = new_path


class InvalidConfiguration(TreeError, ValueError):
    """Raised when a TreeConfig fails validation."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors
