"""Testing utilities for mpathtree consumers."""

from .fixtures import TreeEvent, RecordingObserver, FailingStore, build_store

__all__ = ['TreeEvent', 'RecordingObserver', 'FailingStore', 'build_store']
