"""
Canonical protocol definitions for diaspora.

Manifesto:
    The facade and the adapters expose the same CRUD surface. Describing it
    once as a structural protocol lets tests, wrappers and third-party
    adapters be checked against the contract without inheriting from
    :class:`diaspora.adapters.base.Adapter`.

Architecture:
    ::

        protocols.py
        └── DataSourceQuerier   - async CRUD surface shared by adapters and facades

        Implementations:
        ┌────────────────────────────────────────────────────────┐
        │ Adapter          → canonical query / QueryOptions in   │
        │                    raw store records out               │
        │ DataAccessLayer  → user queries / option mappings in   │
        │                    materialized entities out           │
        └────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Add implementation logic to protocol classes
    ✅ DO: Keep protocols pure contracts

Tags:
    protocol, adapter, contracts, diaspora
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DataSourceQuerier(Protocol):
    """
    Async CRUD surface over named collections.

    Every method targets one collection. ``*_one`` variants return a single
    record (or ``None``), ``*_many`` variants return a list.
    """

    name: str

    async def insert_one(self, collection: str, entity: Any) -> Any: ...

    async def insert_many(self, collection: str, entities: Any) -> Any: ...

    async def find_one(self, collection: str, query: Any, options: Any) -> Any: ...

    async def find_many(self, collection: str, query: Any, options: Any) -> Any: ...

    async def update_one(self, collection: str, query: Any, update: Any, options: Any) -> Any: ...

    async def update_many(self, collection: str, query: Any, update: Any, options: Any) -> Any: ...

    async def delete_one(self, collection: str, query: Any, options: Any) -> Any: ...

    async def delete_many(self, collection: str, query: Any, options: Any) -> Any: ...

    async def contains(self, collection: str, query: Any, options: Any) -> bool: ...

    async def count(self, collection: str, query: Any, options: Any) -> int: ...

    async def every(self, collection: str, query: Any, options: Any) -> bool: ...

    async def wait_ready(self) -> Any: ...


__all__ = ["DataSourceQuerier"]
