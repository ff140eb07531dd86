"""Configuration for materialized-path tree maintenance.

This module defines how integrators choose the deletion behavior, the path
separator and the optional lookup cache.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Mapping

from .codec import separator_class


class OnDelete(Enum):
    """What happens to the subtree of a removed node."""
    REPARENT = "REPARENT"   # Children move up to the removed node's parent
    DELETE = "DELETE"       # The whole subtree is removed


class SortDirection(Enum):
    """Direction of one sort key."""
    ASCENDING = 1
    DESCENDING = -1

    @classmethod
    def coerce(cls, value: Any) -> "SortDirection":
        """Accept enum members, 1/-1 and 'asc'/'desc' spellings.

        Args:
            value: Direction in any supported spelling

        Returns:
            Matching SortDirection
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            lowered = value.lower()
            if lowered in ("asc", "ascending"):
                return cls.ASCENDING
            if lowered in ("desc", "descending"):
                return cls.DESCENDING
            raise ValueError(f"Unknown sort direction: {value!r}")
        # Mongo style: anything other than -1 sorts ascending
        return cls.DESCENDING if value == -1 else cls.ASCENDING


@dataclass
class TreeConfig:
    """Complete configuration for a materialized-path tree.

    The separator must never occur inside the textual form of an id. That
    is a contract on the caller and is not checked against stored data.
    """

    on_delete: OnDelete = OnDelete.REPARENT
    path_separator: str = "#"

    # Cache for parent lookups (see CachingNodeStore)
    cache_lookups: bool = False
    cache_size: int = 1024
    cache_ttl: float = 60.0

    @property
    def separator_regex(self) -> str:
        """Separator as a regex character class."""
        return separator_class(self.path_separator)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "TreeConfig":
        """Create config from a plain options mapping.

        Accepts both the snake_case field names and the camelCase option
        names ``onDelete`` and ``pathSeparator``. ``on_delete`` may be given
        as a string.

        Args:
            options: Option mapping, may be empty

        Returns:
            TreeConfig with defaults for anything not given
        """
        on_delete = options.get("on_delete", options.get("onDelete", OnDelete.REPARENT))
        if not isinstance(on_delete, OnDelete):
            on_delete = OnDelete(str(on_delete).upper())

        separator = options.get("path_separator", options.get("pathSeparator")) or "#"

        return cls(
            on_delete=on_delete,
            path_separator=separator,
            cache_lookups=bool(options.get("cache_lookups", False)),
            cache_size=int(options.get("cache_size", 1024)),
            cache_ttl=float(options.get("cache_ttl", 60.0)),
        )

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not isinstance(self.on_delete, OnDelete):
            errors.append("on_delete must be an OnDelete member")

        if not isinstance(self.path_separator, str) or len(self.path_separator) != 1:
            errors.append("path_separator must be a single character")

        if self.cache_size <= 0:
            errors.append("cache_size must be positive")

        if self.cache_ttl <= 0:
            errors.append("cache_ttl must be positive")

        return errors
