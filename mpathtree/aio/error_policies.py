"""
Error handling policies for mpathtree stores.

This module decides what a store failure looks like to the tree engine.
Policies may classify, translate or record errors, but every policy ends by
raising. A store failure is never turned into a default value.
"""

from abc import ABC, abstractmethod
from typing import List

from .._common.exceptions import StoreError, TreeError


class ErrorPolicy(ABC):
    """
    Base class for error handling policies.

    Subclasses implement different strategies for reporting errors
    raised by store operations.
    """

    @abstractmethod
    def handle(self, error: Exception, method_name: str, *args, **kwargs) -> None:
        """
        Handle an error raised by a store method.

        Args:
            error: The exception that was raised
            method_name: Name of the store method that failed (e.g., 'update_one')
            *args: Positional arguments of the failed call
            **kwargs: Keyword arguments of the failed call

        Raises:
            Always; either ``error`` itself or an exception chained to it
        """
        pass


class FailFastPolicy(ErrorPolicy):
    """
    Policy that immediately re-raises any error unchanged.

    This is the default behavior.
    """

    def handle(self, error: Exception, method_name: str, *args, **kwargs) -> None:
        raise error


class TranslateErrorsPolicy(ErrorPolicy):
    """
    Policy that turns driver-specific exceptions into ``StoreError``.

    Errors that already belong to mpathtree pass through unchanged. The
    original exception stays reachable as ``__cause__``.
    """

    def handle(self, error: Exception, method_name: str, *args, **kwargs) -> None:
        if isinstance(error, TreeError):
            raise error
        raise StoreError(
            f"{method_name} failed: {type(error).__name__}: {error}",
            method_name,
        ) from error


class CollectErrorsPolicy(ErrorPolicy):
    """
    Policy that records every error before re-raising it.

    Useful for batch jobs that want a report of which calls failed after
    the fact.
    """

    def __init__(self, inner: ErrorPolicy = None):
        """
        Initialize the policy.

        Args:
            inner: Policy that does the raising (defaults to FailFastPolicy)
        """
        self.inner = inner or FailFastPolicy()
        self.errors: List[dict] = []

    def handle(self, error: Exception, method_name: str, *args, **kwargs) -> None:
        filter = args[0] if args else kwargs.get('filter')
        self.errors.append({
            'method': method_name,
            'filter': filter,
            'error': error,
            'error_type': type(error).__name__,
            'error_message': str(error)
        })
        self.inner.handle(error, method_name, *args, **kwargs)

    def get_statistics(self) -> dict:
        """
        Get statistics about errors encountered.

        Returns:
            Dictionary with error counts and details
        """
        by_method: dict = {}
        for record in self.errors:
            by_method[record['method']] = by_method.get(record['method'], 0) + 1
        return {
            'total_errors': len(self.errors),
            'by_method': by_method,
            'errors': self.errors
        }

