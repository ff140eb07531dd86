"""Diagnostics hooks for tree maintenance.

The engine reports what it does through an injected observer instead of
printing. ``TreeObserver`` does nothing; ``LoggingObserver`` forwards every
event to a standard library logger.
"""

import logging
from typing import Any, Optional


class TreeObserver:
    """Base observer with no-op hooks.

    Subclass and override the hooks you care about. Hooks are synchronous
    and must not raise.
    """

    def cascade_started(self, node_id: Any, operation: str,
                        old_path: Optional[str], new_path: Optional[str]) -> None:
        pass

    def node_updated(self, node_id: Any, old_path: str, new_path: str) -> None:
        pass

    def cascade_finished(self, node_id: Any, operation: str, count: int) -> None:
        pass

    def cascade_failed(self, node_id: Any, operation: str, count: Optional[int],
                       error: BaseException) -> None:
        pass

    def subtree_deleted(self, node_id: Any, count: int) -> None:
        pass

    def child_reparented(self, child_id: Any, old_parent_id: Any, new_parent_id: Any) -> None:
        pass


class LoggingObserver(TreeObserver):
    """Observer that writes events to a logger.

    Per-node events go to DEBUG, summaries to INFO and failures to WARNING.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initialize the observer.

        Args:
            logger: Logger to write to (defaults to this module's logger)
        """
        self.logger = logger or logging.getLogger(__name__)

    def cascade_started(self, node_id, operation, old_path, new_path):
        self.logger.debug("%s cascade started for %r: %r -> %r",
                          operation, node_id, old_path, new_path)

    def node_updated(self, node_id, old_path, new_path):
        self.logger.debug("Path of %r rewritten: %r -> %r", node_id, old_path, new_path)

    def cascade_finished(self, node_id, operation, count):
        self.logger.info("%s cascade for %r finished, %d node(s) updated",
                         operation, node_id, count)

    def cascade_failed(self, node_id, operation, count, error):
        done = "unknown number of" if count is None else str(count)
        self.logger.warning("%s cascade for %r failed after %s node(s): %s",
                            operation, node_id, done, error)

    def subtree_deleted(self, node_id, count):
        self.logger.info("Deleted %d descendant(s) of %r", count, node_id)

    def child_reparented(self, child_id, old_parent_id, new_parent_id):
        self.logger.debug("Reparented %r from %r to %r", child_id, old_parent_id, new_parent_id)
