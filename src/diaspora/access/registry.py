"""Registry of data access layers, one per adapter.

Entities, models and application code all reach an adapter through its
facade. The registry guarantees a single :class:`DataAccessLayer` per
adapter instance: the first lookup creates it, later lookups return the
same object.

Entries are keyed by the adapter's opaque ``registry_key`` (assigned at
adapter construction), not by the adapter object, and are removed
explicitly with :meth:`DataAccessLayerRegistry.unregister` when an adapter
is torn down.

Usage:
    dal = access_layer_registry.retrieve(adapter)
    assert access_layer_registry.retrieve(adapter) is dal
    access_layer_registry.unregister(adapter)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from diaspora.access.layer import DataAccessLayer
from diaspora.core.logging import get_logger

if TYPE_CHECKING:
    from diaspora.adapters.base import Adapter

logger = get_logger(__name__)


class DataAccessLayerRegistry:
    """Memoizes one facade per adapter handle."""

    def __init__(self) -> None:
        self._layers: dict[str, DataAccessLayer] = {}

    def retrieve(self, adapter: Adapter) -> DataAccessLayer:
        """Return the facade of *adapter*, creating it on first use."""
        layer = self._layers.get(adapter.registry_key)
        if layer is None:
            layer = DataAccessLayer(adapter)
            self._layers[adapter.registry_key] = layer
            logger.debug("access_layer_created", adapter=adapter.name, key=adapter.registry_key)
        return layer

    def unregister(self, adapter: Adapter) -> bool:
        """Drop the facade of *adapter*. Returns False if none was registered."""
        removed = self._layers.pop(adapter.registry_key, None)
        if removed is not None:
            logger.debug("access_layer_unregistered", adapter=adapter.name, key=adapter.registry_key)
        return removed is not None

    def clear(self) -> None:
        """Drop every facade (test isolation, application shutdown)."""
        self._layers.clear()

    def list_adapters(self) -> list[str]:
        """Names of the adapters currently holding a facade."""
        return sorted(layer.name for layer in self._layers.values())

    def __contains__(self, adapter: object) -> bool:
        key = getattr(adapter, "registry_key", None)
        return key is not None and key in self._layers

    def __len__(self) -> int:
        return len(self._layers)


# Global registry
access_layer_registry = DataAccessLayerRegistry()


__all__ = [
    "DataAccessLayerRegistry",
    "access_layer_registry",
]
