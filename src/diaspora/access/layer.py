"""Data Access Layer: the facade between callers and one adapter.

Callers speak the friendly query language and get entities back::

    dal = DataAccessLayer.retrieve_access_layer(adapter)
    await dal.wait_ready()
    user = await dal.insert_one("users", {"name": "ada", "age": 36})
    adults = await dal.find_many("users", {"age": {">=": 18}}, {"limit": 10, "page": 1})
    same = await dal.find_one("users", user.id)

Every public operation funnels through :meth:`DataAccessLayer.normalize_inputs`
(options → canonical, query → canonical → store field names, payload →
store field names) before dispatching to the adapter. Records coming back
are remapped to entity field names and materialized with
``adapter.make_entity``. Validation always happens before the adapter is
called; errors raised by the adapter itself propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from diaspora.adapters.entity import AdapterEntity, EntityProperties
from diaspora.adapters.remap import FieldFilter
from diaspora.core.entity_uid import is_entity_uid
from diaspora.core.errors import AdapterContractError
from diaspora.core.logging import LogContext, get_logger
from diaspora.query.options import QueryOptions

if TYPE_CHECKING:
    from diaspora.adapters.base import Adapter

logger = get_logger(__name__)

SearchQuery = Any
OptionsInput = Mapping[str, Any] | QueryOptions | None


class _Unset:
    def __repr__(self) -> str:
        return "<unset>"


_UNSET: Any = _Unset()


@dataclass(frozen=True)
class NormalizedInputs:
    """Adapter-ready inputs of one operation."""

    query: dict[str, Any] | None = None
    options: QueryOptions | None = None
    raw: dict[str, Any] | list[dict[str, Any]] | None = None


class DataAccessLayer:
    """Facade wrapping exactly one adapter.

    Use :meth:`retrieve_access_layer` rather than the constructor so each
    adapter gets a single, memoized facade.
    """

    def __init__(self, adapter: Adapter):
        self._adapter = adapter

    @classmethod
    def retrieve_access_layer(cls, adapter: Adapter) -> DataAccessLayer:
        """Return the facade registered for *adapter*, creating it on first use."""
        from diaspora.access.registry import access_layer_registry

        return access_layer_registry.retrieve(adapter)

    @property
    def name(self) -> str:
        return self._adapter.name

    @property
    def adapter(self) -> Adapter:
        return self._adapter

    # -----------------------------------------------------------------
    # Normalize
    # -----------------------------------------------------------------

    @staticmethod
    def ensure_query_object(query: SearchQuery) -> SearchQuery:
        """``None`` → ``{}``; a bare entity id → ``{"id": id}``; anything else as-is."""
        if query is None:
            return {}
        if is_entity_uid(query):
            return {"id": query}
        return query

    def normalize_query(self, query: SearchQuery, options: QueryOptions) -> dict[str, Any]:
        return self._adapter.normalize_query(self.ensure_query_object(query), options)

    def normalize_inputs(
        self,
        collection: str,
        *,
        query: SearchQuery = _UNSET,
        options: OptionsInput = _UNSET,
        raw: Mapping[str, Any] | Sequence[Mapping[str, Any]] | None = None,
    ) -> NormalizedInputs:
        """Canonicalize and remap the inputs of a CRUD operation.

        *query*/*options* are given by find, update, delete and utility
        operations; *raw* by insert and update payloads.
        """
        normalized_query: dict[str, Any] | None = None
        normalized_options: QueryOptions | None = None
        normalized_raw: dict[str, Any] | list[dict[str, Any]] | None = None

        if query is not _UNSET or options is not _UNSET:
            normalized_options = self._adapter.normalize_options(
                None if options is _UNSET else options
            )
            canonical_query = self.normalize_query(
                None if query is _UNSET else query, normalized_options
            )
            normalized_query = self._adapter.remap_input(collection, canonical_query)

        if raw is not None:
            if isinstance(raw, Mapping):
                normalized_raw = self._adapter.remap_input(collection, raw)
            else:
                normalized_raw = [self._adapter.remap_input(collection, item) for item in raw]

        return NormalizedInputs(normalized_query, normalized_options, normalized_raw)

    def _materialize(self, collection: str, record: Mapping[str, Any]) -> AdapterEntity:
        return self._adapter.make_entity(self._adapter.remap_output(collection, record))

    async def _call(self, operation: str, collection: str, *args: Any) -> Any:
        """Await ``adapter.<operation>(collection, *args)`` inside a log context."""
        method = getattr(self._adapter, operation)
        async with LogContext(adapter=self.name, collection=collection, operation=operation):
            logger.debug("dal_dispatch")
            return await method(collection, *args)

    def _contract_violation(self, message: str, collection: str, operation: str) -> AdapterContractError:
        logger.warning(
            "adapter_contract_violation",
            adapter=self.name,
            collection=collection,
            operation=operation,
            reason=message,
        )
        return AdapterContractError(message).with_context(
            adapter=self.name, collection=collection, operation=operation
        )

    # -----------------------------------------------------------------
    # Insert
    # -----------------------------------------------------------------

    async def insert_one(self, collection: str, entity: Mapping[str, Any]) -> AdapterEntity:
        """Insert *entity* and return the stored entity.

        Raises:
            AdapterContractError: the adapter returned nothing.
        """
        inputs = self.normalize_inputs(collection, raw=entity)
        created = await self._call("insert_one", collection, inputs.raw)
        if created is None:
            raise self._contract_violation(
                "The underlying adapter returned a nil value.", collection, "insert_one"
            )
        return self._materialize(collection, created)

    async def insert_many(
        self, collection: str, entities: Sequence[Mapping[str, Any]]
    ) -> list[AdapterEntity]:
        """Insert *entities* in order and return the stored entities.

        Raises:
            AdapterContractError: the adapter returned a different number of
                records than requested, or an empty one.
        """
        inputs = self.normalize_inputs(collection, raw=list(entities))
        created = await self._call("insert_many", collection, inputs.raw)
        if len(created) != len(inputs.raw):
            raise self._contract_violation(
                "The underlying adapter returned an incorrect number of inserted items.",
                collection,
                "insert_many",
            )
        if any(record is None for record in created):
            raise self._contract_violation(
                "The underlying adapter returned a nil value.", collection, "insert_many"
            )
        return [self._materialize(collection, record) for record in created]

    # -----------------------------------------------------------------
    # Find
    # -----------------------------------------------------------------

    async def find_one(
        self,
        collection: str,
        query: SearchQuery = None,
        options: OptionsInput = None,
    ) -> AdapterEntity | None:
        """First entity matching *query*, or ``None``."""
        inputs = self.normalize_inputs(collection, query=query, options=options)
        found = await self._call("find_one", collection, inputs.query, inputs.options)
        if found is None:
            return None
        return self._materialize(collection, found)

    async def find_many(
        self,
        collection: str,
        query: SearchQuery = None,
        options: OptionsInput = None,
    ) -> list[AdapterEntity]:
        """Entities matching *query* (empty list when none match)."""
        inputs = self.normalize_inputs(collection, query=query, options=options)
        found = await self._call("find_many", collection, inputs.query, inputs.options)
        return [self._materialize(collection, record) for record in found]

    # -----------------------------------------------------------------
    # Update
    # -----------------------------------------------------------------

    async def update_one(
        self,
        collection: str,
        query: SearchQuery = None,
        update: Mapping[str, Any] | None = None,
        options: OptionsInput = None,
    ) -> AdapterEntity | None:
        """Apply *update* to the first entity matching *query*; ``None`` if none matched."""
        inputs = self.normalize_inputs(collection, query=query, options=options, raw=update or {})
        updated = await self._call(
            "update_one", collection, inputs.query, inputs.raw, inputs.options
        )
        if updated is None:
            return None
        return self._materialize(collection, updated)

    async def update_many(
        self,
        collection: str,
        query: SearchQuery = None,
        update: Mapping[str, Any] | None = None,
        options: OptionsInput = None,
    ) -> list[AdapterEntity]:
        """Apply *update* to every entity matching *query*."""
        inputs = self.normalize_inputs(collection, query=query, options=options, raw=update or {})
        updated = await self._call(
            "update_many", collection, inputs.query, inputs.raw, inputs.options
        )
        return [self._materialize(collection, record) for record in updated]

    # -----------------------------------------------------------------
    # Delete
    # -----------------------------------------------------------------

    async def delete_one(
        self,
        collection: str,
        query: SearchQuery = None,
        options: OptionsInput = None,
    ) -> EntityProperties | None:
        """Delete the first entity matching *query*; returns the adapter's result as-is."""
        inputs = self.normalize_inputs(collection, query=query, options=options)
        return await self._call("delete_one", collection, inputs.query, inputs.options)

    async def delete_many(
        self,
        collection: str,
        query: SearchQuery = None,
        options: OptionsInput = None,
    ) -> list[EntityProperties]:
        """Delete entities matching *query*; returns the adapter's result as-is."""
        inputs = self.normalize_inputs(collection, query=query, options=options)
        return await self._call("delete_many", collection, inputs.query, inputs.options)

    # -----------------------------------------------------------------
    # Utility
    # -----------------------------------------------------------------

    async def contains(
        self,
        collection: str,
        query: SearchQuery = None,
        options: OptionsInput = None,
    ) -> bool:
        inputs = self.normalize_inputs(collection, query=query, options=options)
        return await self._call("contains", collection, inputs.query, inputs.options)

    async def count(
        self,
        collection: str,
        query: SearchQuery = None,
        options: OptionsInput = None,
    ) -> int:
        inputs = self.normalize_inputs(collection, query=query, options=options)
        return await self._call("count", collection, inputs.query, inputs.options)

    async def every(
        self,
        collection: str,
        query: SearchQuery = None,
        options: OptionsInput = None,
    ) -> bool:
        inputs = self.normalize_inputs(collection, query=query, options=options)
        return await self._call("every", collection, inputs.query, inputs.options)

    # -----------------------------------------------------------------
    # Various
    # -----------------------------------------------------------------

    async def wait_ready(self) -> DataAccessLayer:
        """Wait for the underlying adapter to be ready."""
        await self._adapter.wait_ready()
        return self

    def configure_collection(
        self,
        collection: str,
        remaps: Mapping[str, str] | None = None,
        filters: Mapping[str, Mapping[str, FieldFilter]] | None = None,
    ) -> DataAccessLayer:
        """Relay remap/filter configuration to the adapter.

        See :meth:`Adapter.configure_collection`: input filters also see the
        canonical predicate maps of queries.
        """
        self._adapter.configure_collection(collection, remaps or {}, filters or {})
        return self

    def __repr__(self) -> str:
        return f"DataAccessLayer(adapter={self._adapter!r})"


__all__ = ["DataAccessLayer", "NormalizedInputs"]
