"""Adapter base class: lifecycle, remapping and the CRUD polyfill.

Manifesto:
    Stores differ wildly in what they can do natively. A key/value store
    can fetch one record at a time; a SQL database can fetch pages; a REST
    API may only offer bulk inserts. Adapters implement whichever side of
    each operation pair their store supports and inherit the other one.

Architecture::

    Adapter (base.py)
        lifecycle      ReadinessCell: PREPARING → READY | ERROR
        remapping      per-collection CollectionConfig (remaps, filters)
        normalization  normalize_options / normalize_query
        polyfill       each pair defaults to its counterpart

            insert_one  ⇄ insert_many     (sequential, in order)
            find_one    ⇄ find_many       (pagination-by-polling)
            update_one  ⇄ update_many     (pagination-by-polling)
            delete_one  ⇄ delete_many     (polling, offsets not advanced)
            contains, count, every        (built on find_one / find_many)

Guardrails:
    ❌ Overriding neither side of a pair (the defaults recurse forever)
    ✅ Subclass definition fails with AdapterContractError instead
    ❌ Fanning out multi-item polyfills
    ✅ Strictly sequential; a failure leaves a committed prefix
    ❌ Mutating the caller's QueryOptions to force ``limit=1``
    ✅ ``options.replace(limit=1)``

Tags:
    adapter, polyfill, lifecycle, remapping, diaspora
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any, ClassVar, TypeVar

from diaspora.adapters.entity import AdapterEntity, EntityProperties, set_id
from diaspora.adapters.remap import (
    EMPTY_COLLECTION,
    CollectionConfig,
    Direction,
    FieldFilter,
    remap_io,
)
from diaspora.adapters.state import AdapterState, ReadinessCell
from diaspora.adapters.strategies import (
    IdentifierStrategy,
    MatchingStrategy,
    NoMatching,
    StoreAssignedIds,
)
from diaspora.core.entity_uid import EntityUid
from diaspora.core.errors import AdapterContractError
from diaspora.core.logging import get_logger
from diaspora.core.settings import get_settings
from diaspora.query.canonical import Query, normalize_query
from diaspora.query.options import UNBOUNDED, QueryOptions, normalize_options

logger = get_logger(__name__)

TRet = TypeVar("TRet")

# Operation pairs the base class can degrade into each other.
POLYFILL_PAIRS: tuple[tuple[str, str], ...] = (
    ("insert_one", "insert_many"),
    ("find_one", "find_many"),
    ("update_one", "update_many"),
    ("delete_one", "delete_many"),
)

# Options used by ``every`` to count the whole collection.
FULL_COLLECTION_OPTIONS = QueryOptions(
    skip=0,
    limit=UNBOUNDED,
    remap_input=False,
    remap_output=False,
)


async def iterate_limit(
    options: QueryOptions,
    query: Callable[[QueryOptions], Awaitable[TRet | None]],
    *,
    advance_skip: bool = True,
) -> list[TRet]:
    """Call *query* until ``options.limit`` results are collected or one comes back empty.

    Each call receives ``skip = options.skip + found so far`` when
    *advance_skip* is true. Deletions pass ``advance_skip=False``: a removed
    record no longer occupies an offset.
    """
    found: list[TRet] = []
    local_options = options
    while len(found) < options.limit:
        result = await query(local_options)
        if result is None:
            break
        found.append(result)
        if advance_skip:
            local_options = options.replace(skip=options.skip + len(found))
    return found


async def gather_or_cancel(*aws: Awaitable[TRet]) -> list[TRet]:
    """Await *aws* concurrently; on the first failure cancel the others, then re-raise."""
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class Adapter:
    """
    Base class of every store adapter.

    Subclasses override at least one method of each pair in
    :data:`POLYFILL_PAIRS`; the other one is derived. Once the store is
    usable the adapter calls :meth:`mark_ready` (or :meth:`mark_error`).

    Intermediate base classes that leave pairs open declare themselves with
    ``class SqlAdapterBase(Adapter, abstract=True)``.

    Args:
        name: Identity of the adapter; key of entity ``id_hash`` entries.
        entity_class: Class materializing records (see :meth:`make_entity`).
        id_strategy: How ids are resolved on insert (default: store assigned).
        matching: How entities evaluate queries (default: no matching).
        id_property: Record key holding ids (default: settings ``id_property``).
    """

    __abstract__: ClassVar[bool] = True

    def __init_subclass__(cls, abstract: bool = False, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__abstract__ = abstract
        if abstract:
            return
        for single, plural in POLYFILL_PAIRS:
            if getattr(cls, single) is getattr(Adapter, single) and getattr(cls, plural) is getattr(
                Adapter, plural
            ):
                raise AdapterContractError(
                    f"{cls.__name__} must implement at least one of {single!r} or {plural!r}"
                ).with_context(adapter=cls.__name__)

    def __init__(
        self,
        name: str,
        entity_class: type[AdapterEntity] = AdapterEntity,
        *,
        id_strategy: IdentifierStrategy | None = None,
        matching: MatchingStrategy | None = None,
        id_property: str | None = None,
    ):
        if type(self).__abstract__:
            raise AdapterContractError(
                f"{type(self).__name__} is abstract and cannot be instantiated"
            )
        self.name = name
        self.entity_class = entity_class
        self.id_strategy: IdentifierStrategy = id_strategy or StoreAssignedIds()
        self.matching: MatchingStrategy = matching or NoMatching()
        self.id_property = id_property or get_settings().id_property
        # opaque handle used by the access layer registry
        self.registry_key = uuid.uuid4().hex

        self._readiness = ReadinessCell()
        self._collections: dict[str, CollectionConfig] = {}

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    @property
    def state(self) -> AdapterState:
        return self._readiness.state

    @property
    def error(self) -> BaseException | None:
        """Error that moved the adapter to ERROR, if any."""
        return self._readiness.error

    def mark_ready(self) -> None:
        """Signal that the store is usable. Can only settle once."""
        self._readiness.set_ready()
        logger.info("adapter_ready", adapter=self.name)

    def mark_error(self, error: BaseException) -> None:
        """Signal that preparing the store failed. Can only settle once."""
        self._readiness.set_error(error)
        logger.error(
            "adapter_error",
            adapter=self.name,
            error=str(error),
            error_type=type(error).__name__,
        )

    async def wait_ready(self) -> Adapter:
        """Wait until READY; raises the stored error if the adapter failed."""
        await self._readiness.wait()
        return self

    # -----------------------------------------------------------------
    # Collections & remapping
    # -----------------------------------------------------------------

    def configure_collection(
        self,
        collection: str,
        remaps: Mapping[str, str] | None = None,
        filters: Mapping[str, Mapping[str, FieldFilter]] | None = None,
    ) -> Adapter:
        """Register remap and filter tables for *collection*, replacing previous ones.

        Input filters run on write payloads and on queries alike. For a query
        they receive the canonical predicate map of the field
        (``{"$equal": "ada"}``), not a bare value, so a filter meant for
        payload values must pass such maps through or handle their operands.
        """
        self._collections[collection] = CollectionConfig.build(remaps, filters)
        logger.debug(
            "collection_configured",
            adapter=self.name,
            collection=collection,
            remapped_fields=sorted(self._collections[collection].remaps),
        )
        return self

    def collection_config(self, collection: str) -> CollectionConfig:
        return self._collections.get(collection, EMPTY_COLLECTION)

    def remap_input(self, collection: str, record: Mapping[str, Any]) -> dict[str, Any]:
        """Entity-facing record or query → store-facing."""
        return remap_io(self.collection_config(collection), record, Direction.INPUT)

    def remap_output(self, collection: str, record: Mapping[str, Any]) -> dict[str, Any]:
        """Store-facing record → entity-facing."""
        return remap_io(self.collection_config(collection), record, Direction.OUTPUT)

    # -----------------------------------------------------------------
    # Normalization & materialization
    # -----------------------------------------------------------------

    def normalize_options(self, options: Mapping[str, Any] | QueryOptions | None = None) -> QueryOptions:
        return normalize_options(options)

    def normalize_query(self, query: Query, options: QueryOptions) -> dict[str, Any]:
        return normalize_query(query, options)

    def make_entity(self, record: Mapping[str, Any]) -> AdapterEntity:
        """Materialize a remapped store record."""
        return self.entity_class(record, self)

    def identify(
        self,
        attributes: Mapping[str, Any],
        entity_id: EntityUid | None = None,
    ) -> EntityProperties:
        """Give *attributes* an id (via the identifier strategy) and an ``id_hash`` entry."""
        return set_id(attributes, self.name, entity_id, self.id_property, self.id_strategy)

    def to_dict(self) -> dict[str, Any]:
        """Diagnostic snapshot of the adapter."""
        return {
            "name": self.name,
            "state": self.state.value,
            "error": repr(self.error) if self.error is not None else None,
            "entity_class": self.entity_class.__name__,
            "id_strategy": repr(self.id_strategy),
            "matching": repr(self.matching),
            "collections": {
                name: {"remaps": dict(config.remaps), "inverse": dict(config.inverse)}
                for name, config in self._collections.items()
            },
        }

    def _degrade(self, operation: str, via: str) -> None:
        logger.debug("polyfill_degrade", adapter=self.name, operation=operation, via=via)

    # -----------------------------------------------------------------
    # Insert
    # -----------------------------------------------------------------

    async def insert_one(
        self, collection: str, entity: Mapping[str, Any]
    ) -> EntityProperties | None:
        """Insert one record; defaults to :meth:`insert_many` with a single item."""
        self._degrade("insert_one", "insert_many")
        inserted = await self.insert_many(collection, [entity])
        return inserted[0] if inserted else None

    async def insert_many(
        self, collection: str, entities: Sequence[Mapping[str, Any]]
    ) -> list[EntityProperties]:
        """Insert records in order; defaults to one :meth:`insert_one` per record.

        Empty per-item results are dropped.
        """
        self._degrade("insert_many", "insert_one")
        inserted: list[EntityProperties] = []
        for entity in entities:
            result = await self.insert_one(collection, entity or {})
            if result is not None:
                inserted.append(result)
        return inserted

    # -----------------------------------------------------------------
    # Find
    # -----------------------------------------------------------------

    async def find_one(
        self, collection: str, query: Query, options: QueryOptions
    ) -> EntityProperties | None:
        """Find one record; defaults to :meth:`find_many` with ``limit=1``."""
        self._degrade("find_one", "find_many")
        found = await self.find_many(collection, query, options.replace(limit=1))
        return found[0] if found else None

    async def find_many(
        self, collection: str, query: Query, options: QueryOptions
    ) -> list[EntityProperties]:
        """Find records; defaults to polling :meth:`find_one` with increasing ``skip``."""
        self._degrade("find_many", "find_one")

        async def find_at(local_options: QueryOptions) -> EntityProperties | None:
            return await self.find_one(collection, query, local_options)

        return await iterate_limit(options, find_at)

    # -----------------------------------------------------------------
    # Update
    # -----------------------------------------------------------------

    async def update_one(
        self,
        collection: str,
        query: Query,
        update: Mapping[str, Any],
        options: QueryOptions,
    ) -> EntityProperties | None:
        """Update one record; defaults to :meth:`update_many` with ``limit=1``."""
        self._degrade("update_one", "update_many")
        updated = await self.update_many(collection, query, update, options.replace(limit=1))
        return updated[0] if updated else None

    async def update_many(
        self,
        collection: str,
        query: Query,
        update: Mapping[str, Any],
        options: QueryOptions,
    ) -> list[EntityProperties]:
        """Update records; defaults to polling :meth:`update_one` with increasing ``skip``."""
        self._degrade("update_many", "update_one")

        async def update_at(local_options: QueryOptions) -> EntityProperties | None:
            return await self.update_one(collection, query, update, local_options)

        return await iterate_limit(options, update_at)

    # -----------------------------------------------------------------
    # Delete
    # -----------------------------------------------------------------

    async def delete_one(
        self, collection: str, query: Query, options: QueryOptions
    ) -> EntityProperties | None:
        """Delete one record and return it; defaults to :meth:`delete_many` with ``limit=1``."""
        self._degrade("delete_one", "delete_many")
        deleted = await self.delete_many(collection, query, options.replace(limit=1))
        return deleted[0] if deleted else None

    async def delete_many(
        self, collection: str, query: Query, options: QueryOptions
    ) -> list[EntityProperties]:
        """Delete records and return them; defaults to repeated :meth:`delete_one`."""
        self._degrade("delete_many", "delete_one")

        async def delete_at(local_options: QueryOptions) -> EntityProperties | None:
            return await self.delete_one(collection, query, local_options)

        return await iterate_limit(options, delete_at, advance_skip=False)

    # -----------------------------------------------------------------
    # Utility
    # -----------------------------------------------------------------

    async def contains(self, collection: str, query: Query, options: QueryOptions) -> bool:
        """True if at least one record matches."""
        return await self.find_one(collection, query, options) is not None

    async def count(self, collection: str, query: Query, options: QueryOptions) -> int:
        """Number of matching records."""
        return len(await self.find_many(collection, query, options))

    async def every(self, collection: str, query: Query, options: QueryOptions) -> bool:
        """True if the matching count equals the whole collection's count.

        The two counts run concurrently (if one fails the other is cancelled);
        a write landing between them can produce a false negative.
        """
        matching_count, total_count = await gather_or_cancel(
            self.count(collection, query, options),
            self.count(collection, {}, FULL_COLLECTION_OPTIONS),
        )
        return matching_count == total_count

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, state={self.state.value!r})"


__all__ = [
    "Adapter",
    "FULL_COLLECTION_OPTIONS",
    "POLYFILL_PAIRS",
    "gather_or_cancel",
    "iterate_limit",
]
