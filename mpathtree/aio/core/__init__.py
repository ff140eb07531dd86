"""Core abstractions for async tree maintenance.

This module defines the store interface the engine talks to and the
observer hooks it reports through.
"""

from .store import AsyncNodeStore
from .observer import TreeObserver, LoggingObserver

__all__ = [
    # Store
    'AsyncNodeStore',
    # Observers
    'TreeObserver',
    'LoggingObserver',
]
