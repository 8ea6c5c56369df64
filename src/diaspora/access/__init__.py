"""Data access layer: the facade over a single adapter and its registry."""

from diaspora.access.layer import DataAccessLayer, NormalizedInputs
from diaspora.access.registry import DataAccessLayerRegistry, access_layer_registry

__all__ = [
    "DataAccessLayer",
    "DataAccessLayerRegistry",
    "NormalizedInputs",
    "access_layer_registry",
]
