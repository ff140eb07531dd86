"""Async node stores.

This module contains stores that implement the engine's store interface
on top of concrete backends.
"""

from .memory import InMemoryNodeStore, matches

__all__ = [
    'InMemoryNodeStore',
    'matches',
]
