"""Adapter entities: immutable snapshots of a record in one data source.

An :class:`AdapterEntity` reflects what a single store holds for a logical
entity. Its properties are the record's attributes plus two reserved keys:

``id``
    Identifier of the record in this store.
``id_hash``
    ``{adapter_name: id}`` for every store the entity is known to. Entries
    are only ever added; re-identifying an entity against another adapter
    extends the map.

Entities are never mutated in place. :meth:`AdapterEntity.with_id` and the
pure helpers :func:`with_id_hash` / :func:`set_id` return new values.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from diaspora.adapters.strategies import IdentifierStrategy, StoreAssignedIds
from diaspora.core.entity_uid import EntityUid
from diaspora.core.errors import EntityConstructionError, ErrorContext

if TYPE_CHECKING:
    from diaspora.access.layer import DataAccessLayer
    from diaspora.adapters.base import Adapter

ID_KEY = "id"
ID_HASH_KEY = "id_hash"
RESERVED_KEYS = (ID_KEY, ID_HASH_KEY)

EntityProperties = dict[str, Any]

TEntity = TypeVar("TEntity", bound="AdapterEntity")


def with_id_hash(
    properties: Mapping[str, Any],
    adapter_name: str,
    entity_id: EntityUid,
) -> EntityProperties:
    """Return a copy of *properties* whose ``id_hash`` also maps *adapter_name*.

    Existing ``id_hash`` entries are kept; the rest of the properties are
    copied unchanged.
    """
    result = copy.deepcopy(dict(properties))
    id_hash = dict(result.get(ID_HASH_KEY) or {})
    id_hash[adapter_name] = entity_id
    result[ID_HASH_KEY] = id_hash
    return result


def set_id(
    attributes: Mapping[str, Any],
    adapter_name: str,
    entity_id: EntityUid | None = None,
    prop_name: str = ID_KEY,
    strategy: IdentifierStrategy | None = None,
) -> EntityProperties:
    """Resolve the id of *attributes* and store it in ``id`` and ``id_hash``.

    The id is *entity_id* if given, else ``attributes[prop_name]``; the
    identifier *strategy* may generate one when both are missing.
    """
    strategy = strategy or StoreAssignedIds()
    resolved = strategy.resolve(attributes, entity_id, prop_name)
    properties = with_id_hash(attributes, adapter_name, resolved)
    properties[ID_KEY] = resolved
    return properties


class AdapterEntity:
    """Snapshot of a record as stored by one adapter.

    Args:
        properties: Remapped record; must carry a truthy ``id``.
        data_source: Adapter the record was read from.

    Raises:
        EntityConstructionError: *properties* or *data_source* is ``None``,
            or the record has no id.
    """

    def __init__(self, properties: Mapping[str, Any] | None, data_source: Adapter | None):
        if properties is None:
            raise EntityConstructionError("Can't construct entity from nil value")
        if data_source is None:
            raise EntityConstructionError(
                f'Expect 2nd argument to be the parent of this entity, have "{data_source}"'
            )
        entity_id = properties.get(ID_KEY)
        if not entity_id:
            raise EntityConstructionError(
                "Entity from adapter should have an id.",
                context=ErrorContext(adapter=data_source.name),
            )

        self._properties: EntityProperties = with_id_hash(properties, data_source.name, entity_id)
        self._data_source = data_source

    @property
    def properties(self) -> EntityProperties:
        """Deep copy of every property, ``id`` and ``id_hash`` included."""
        return copy.deepcopy(self._properties)

    @property
    def attributes(self) -> EntityProperties:
        """Properties without the managed ``id`` and ``id_hash`` keys."""
        return {
            key: copy.deepcopy(value)
            for key, value in self._properties.items()
            if key not in RESERVED_KEYS
        }

    @property
    def id(self) -> EntityUid:
        return self._properties[ID_KEY]

    @property
    def id_hash(self) -> dict[str, EntityUid]:
        return dict(self._properties[ID_HASH_KEY])

    @property
    def data_source(self) -> Adapter:
        return self._data_source

    @property
    def data_access_layer(self) -> DataAccessLayer:
        """Facade wrapping this entity's adapter."""
        from diaspora.access.registry import access_layer_registry

        return access_layer_registry.retrieve(self._data_source)

    def matches(self, query: Mapping[str, Any]) -> bool:
        """Evaluate a canonical query using the adapter's matching strategy."""
        return self._data_source.matching.matches(self._properties, query)

    def with_id(
        self: TEntity,
        adapter: Adapter | None = None,
        entity_id: EntityUid | None = None,
        prop_name: str = ID_KEY,
    ) -> TEntity:
        """Return a new entity identified against *adapter* (default: own adapter).

        The id is resolved from :attr:`attributes` (the current ``id`` is not
        a candidate) through the adapter's identifier strategy, so an
        auto-id adapter mints a fresh id. Existing ``id_hash`` entries are
        carried over.

        Raises:
            EntityConstructionError: the strategy resolved no id.
        """
        adapter = adapter or self._data_source
        properties = set_id(
            {**self.attributes, ID_HASH_KEY: self.id_hash},
            adapter.name,
            entity_id,
            prop_name,
            strategy=adapter.id_strategy,
        )
        return type(self)(properties, adapter)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AdapterEntity):
            return NotImplemented
        return self._data_source is other._data_source and self._properties == other._properties

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, adapter={self._data_source.name!r})"


__all__ = [
    "ID_KEY",
    "ID_HASH_KEY",
    "RESERVED_KEYS",
    "EntityProperties",
    "AdapterEntity",
    "with_id_hash",
    "set_id",
]
