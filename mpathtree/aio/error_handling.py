"""
Error handling store wrapper for mpathtree.

This module provides the ErrorHandlingStore that wraps another store
and delegates error reporting to pluggable policies.
"""

import functools
import asyncio
from typing import Any

from .error_policies import ErrorPolicy, FailFastPolicy, TranslateErrorsPolicy


class ErrorHandlingStore:
    """
    Store wrapper that routes exceptions through an error policy.

    This wrapper uses the dynamic proxy pattern to wrap every method of the
    underlying store, including the ``stream`` async generator, so the
    engine sees errors in the shape the policy chooses.
    """

    def __init__(self, base_store: Any, policy: ErrorPolicy = None):
        """
        Initialize the error handling store.

        Args:
            base_store: The store to wrap (e.g., InMemoryNodeStore)
            policy: Error handling policy (defaults to FailFastPolicy)
        """
        self._base_store = base_store
        self._policy = policy or FailFastPolicy()

    async def __aenter__(self):
        if hasattr(self._base_store, '__aenter__'):
            await self._base_store.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if hasattr(self._base_store, '__aexit__'):
            return await self._base_store.__aexit__(exc_type, exc_val, exc_tb)
        return None

    def __getattr__(self, name: str) -> Any:
        """
        Dynamic proxy that wraps all methods with error handling.

        Args:
            name: The attribute name being accessed

        Returns:
            The attribute from the base store, wrapped if it's a method
        """
        attr = getattr(self._base_store, name)

        # Properties and plain attributes pass through as-is
        if not callable(attr):
            return attr

        @functools.wraps(attr)
        def wrapper(*args, **kwargs):
            try:
                result = attr(*args, **kwargs)
            except Exception as e:
                self._policy.handle(e, name, *args, **kwargs)
                raise

            if asyncio.iscoroutine(result):
                return self._handle_coroutine(result, name, *args, **kwargs)

            # inspect.isasyncgen does not cover every async iterator
            if hasattr(result, '__aiter__'):
                return self._handle_async_generator(result, name, *args, **kwargs)

            return result

        return wrapper

    async def _handle_coroutine(self, coro, method_name: str, *args, **kwargs) -> Any:
        try:
            return await coro
        except Exception as e:
            self._policy.handle(e, method_name, *args, **kwargs)
            raise

    async def _handle_async_generator(self, gen, method_name: str, *args, **kwargs):
        """
        Handle errors raised while iterating a streaming method.

        Yields:
            Items from the wrapped generator
        """
        try:
            async for item in gen:
                yield item
        except Exception as e:
            self._policy.handle(e, method_name, *args, **kwargs)
            raise

    def get_policy(self) -> ErrorPolicy:
        return self._policy

    def set_policy(self, policy: ErrorPolicy) -> None:
        """
        Change the error policy.

        Args:
            policy: The new ErrorPolicy to use
        """
        self._policy = policy

    def get_base_store(self) -> Any:
        return self._base_store

    def get_store_chain(self):
        """
        Return a list of store class names in the wrapping chain.

        Returns:
            List of class names from this wrapper down to the innermost store
        """
        chain = []
        store = self
        while store is not None:
            chain.append(store.__class__.__name__)
            if isinstance(store, ErrorHandlingStore):
                store = store._base_store
            else:
                store = getattr(store, 'base_store', None)
        return chain

    def __repr__(self) -> str:
        return f"ErrorHandlingStore({self._base_store!r}, policy={self._policy.__class__.__name__})"


def create_resilient_store(base_store: Any, strict: bool = False) -> ErrorHandlingStore:
    """
    Convenience function to create an error-handling store.

    Args:
        base_store: The store to wrap
        strict: If True, use FailFastPolicy; if False, translate foreign
            errors into StoreError

    Returns:
        An ErrorHandlingStore configured appropriately
    """
    if strict:
        policy = FailFastPolicy()
    else:
        policy = TranslateErrorsPolicy()

    return ErrorHandlingStore(base_store, policy)
