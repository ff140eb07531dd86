"""
Caching layer for mpathtree - Optional performance optimization.

This module provides opt-in caching of point lookups, which cuts store
round trips when many nodes resolve the same parent.
"""

from .adapter import CachingNodeStore

__all__ = [
    'CachingNodeStore',
]
