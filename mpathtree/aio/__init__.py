"""Asynchronous implementation of mpathtree.

This package contains the async/await tree engine: path maintenance,
deletion handling, stores and the high-level MaterializedPathTree API.
"""

# Core abstractions
from .core import (
    AsyncNodeStore,
    TreeObserver,
    LoggingObserver,
)

# Stores
from .adapters import InMemoryNodeStore
from .caching import CachingNodeStore

# Engine
from .mutation import TreeMutationEngine
from .deletion import DeletionPolicy

# Error handling
from .error_handling import ErrorHandlingStore, create_resilient_store
from .error_policies import (
    ErrorPolicy,
    FailFastPolicy,
    TranslateErrorsPolicy,
    CollectErrorsPolicy,
)

# High-level API
from .api import MaterializedPathTree

__all__ = [
    # Core abstractions
    'AsyncNodeStore',
    'TreeObserver',
    'LoggingObserver',
    # Stores
    'InMemoryNodeStore',
    'CachingNodeStore',
    # Engine
    'TreeMutationEngine',
    'DeletionPolicy',
    # Error handling
    'ErrorHandlingStore',
    'create_resilient_store',
    'ErrorPolicy',
    'FailFastPolicy',
    'TranslateErrorsPolicy',
    'CollectErrorsPolicy',
    # High-level API
    'MaterializedPathTree',
]
