"""Store adapters -- the contract every data source implements.

Architecture::

    Adapter (base.py)              lifecycle + remapping + CRUD polyfill
    ReadinessCell (state.py)       PREPARING -> READY | ERROR, settled once
    CollectionConfig (remap.py)    per-collection remap / filter tables
    AdapterEntity (entity.py)      immutable record snapshot with id_hash
    strategies.py                  identifier + matching strategies

Concrete adapters (in-memory, file, network) live outside this package and
only subclass :class:`Adapter`.
"""

from diaspora.adapters.base import FULL_COLLECTION_OPTIONS, POLYFILL_PAIRS, Adapter, iterate_limit
from diaspora.adapters.entity import (
    ID_HASH_KEY,
    ID_KEY,
    AdapterEntity,
    EntityProperties,
    set_id,
    with_id_hash,
)
from diaspora.adapters.remap import CollectionConfig, Direction, remap_io
from diaspora.adapters.state import AdapterState, ReadinessCell
from diaspora.adapters.strategies import (
    IdentifierStrategy,
    MatchingStrategy,
    NoMatching,
    PredicateMatching,
    StoreAssignedIds,
    UuidIds,
)

__all__ = [
    "Adapter",
    "AdapterEntity",
    "AdapterState",
    "CollectionConfig",
    "Direction",
    "EntityProperties",
    "FULL_COLLECTION_OPTIONS",
    "ID_HASH_KEY",
    "ID_KEY",
    "IdentifierStrategy",
    "MatchingStrategy",
    "NoMatching",
    "POLYFILL_PAIRS",
    "PredicateMatching",
    "ReadinessCell",
    "StoreAssignedIds",
    "UuidIds",
    "iterate_limit",
    "remap_io",
    "set_id",
    "with_id_hash",
]
