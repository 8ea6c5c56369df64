"""
Diaspora - storage-agnostic data access.

A canonical query/options language, per-collection field remapping, a
degrade-by-default CRUD polyfill for store adapters, and a facade that
normalizes user input before dispatching to an adapter.

Usage::

    from diaspora import DataAccessLayer

    dal = DataAccessLayer.retrieve_access_layer(adapter)
    await dal.wait_ready()
    users = await dal.find_many("users", {"age": {">=": 18}}, {"limit": 20, "page": 0})
"""

__version__ = "0.4.0"

from diaspora.access import DataAccessLayer, DataAccessLayerRegistry, access_layer_registry
from diaspora.adapters import (
    Adapter,
    AdapterEntity,
    AdapterState,
    NoMatching,
    PredicateMatching,
    StoreAssignedIds,
    UuidIds,
)
from diaspora.core.errors import DiasporaError
from diaspora.query import QueryOptions, matches, normalize_options, normalize_query

__all__ = [
    "__version__",
    "Adapter",
    "AdapterEntity",
    "AdapterState",
    "DataAccessLayer",
    "DataAccessLayerRegistry",
    "DiasporaError",
    "NoMatching",
    "PredicateMatching",
    "QueryOptions",
    "StoreAssignedIds",
    "UuidIds",
    "access_layer_registry",
    "matches",
    "normalize_options",
    "normalize_query",
]
