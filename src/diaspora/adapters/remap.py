"""Field remapping between entity-facing and store-facing vocabularies.

A collection can be configured with:

- **remaps**: ``{entity_field: store_field}``; its inverse is computed once
  and used for records coming back from the store.
- **filters**: ``{"input": {field: fn}, "output": {field: fn}}``; value
  transforms applied before renaming (e.g. ``datetime`` ↔ ISO string).

Example:
    >>> config = CollectionConfig.build({"name": "full_name"}, {"input": {"name": str.upper}})
    >>> remap_io(config, {"name": "ada", "age": 36}, Direction.INPUT)
    {'full_name': 'ADA', 'age': 36}
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from diaspora.core.errors import ConfigError, ErrorContext

FieldFilter = Callable[[Any], Any]


class Direction(str, Enum):
    """Which way a record travels through the remapper."""

    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class CollectionConfig:
    """Remap and filter tables of one collection."""

    remaps: Mapping[str, str] = field(default_factory=dict)
    inverse: Mapping[str, str] = field(default_factory=dict)
    input_filters: Mapping[str, FieldFilter] = field(default_factory=dict)
    output_filters: Mapping[str, FieldFilter] = field(default_factory=dict)

    @classmethod
    def build(
        cls,
        remaps: Mapping[str, str] | None = None,
        filters: Mapping[str, Mapping[str, FieldFilter]] | None = None,
    ) -> CollectionConfig:
        """Validate the raw tables and precompute the inverse remap."""
        remaps = dict(remaps or {})
        filters = dict(filters or {})

        unknown = set(filters) - {Direction.INPUT.value, Direction.OUTPUT.value}
        if unknown:
            raise ConfigError(
                f"Unknown filter direction(s): {', '.join(sorted(unknown))}",
                context=ErrorContext(metadata={"expected": ["input", "output"]}),
            )
        for direction, table in filters.items():
            for key, fn in table.items():
                if not callable(fn):
                    raise ConfigError(
                        f"Filter for {direction!r} field {key!r} is not callable",
                        context=ErrorContext(option=key),
                    )

        # later keys win when several entity fields target the same store field
        inverse = {store_field: entity_field for entity_field, store_field in remaps.items()}
        return cls(
            remaps=MappingProxyType(remaps),
            inverse=MappingProxyType(inverse),
            input_filters=MappingProxyType(dict(filters.get(Direction.INPUT.value, {}))),
            output_filters=MappingProxyType(dict(filters.get(Direction.OUTPUT.value, {}))),
        )

    def filters_for(self, direction: Direction) -> Mapping[str, FieldFilter]:
        return self.input_filters if direction is Direction.INPUT else self.output_filters

    def renames_for(self, direction: Direction) -> Mapping[str, str]:
        return self.remaps if direction is Direction.INPUT else self.inverse


EMPTY_COLLECTION = CollectionConfig()


def remap_io(
    config: CollectionConfig,
    record: Mapping[str, Any],
    direction: Direction,
) -> dict[str, Any]:
    """Filter then rename every key of *record*; returns a new dict."""
    field_filters = config.filters_for(direction)
    renames = config.renames_for(direction)

    remapped: dict[str, Any] = {}
    for key, value in record.items():
        fn = field_filters.get(key)
        if fn is not None:
            value = fn(value)
        remapped[renames.get(key, key)] = value
    return remapped


__all__ = [
    "CollectionConfig",
    "Direction",
    "EMPTY_COLLECTION",
    "FieldFilter",
    "remap_io",
]
