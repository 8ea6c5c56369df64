"""Pluggable identifier and matching strategies.

Adapters pick their behaviour at construction instead of subclassing
entity classes::

    adapter = InMemoryAdapter(
        name="memory",
        id_strategy=UuidIds(),            # store has no id generator
        matching=PredicateMatching(),     # entities can evaluate queries
    )

Identifier strategies decide where an entity's id comes from; matching
strategies decide whether an entity can check itself against a canonical
query.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from diaspora.core.entity_uid import EntityUid
from diaspora.query.matcher import matches


# ---------------------------------------------------------------------------
# Identifier strategies
# ---------------------------------------------------------------------------


@runtime_checkable
class IdentifierStrategy(Protocol):
    """Resolve the identifier of a record about to be persisted."""

    def resolve(
        self,
        attributes: Mapping[str, Any],
        explicit_id: EntityUid | None = None,
        prop_name: str = "id",
    ) -> EntityUid | None: ...


class StoreAssignedIds:
    """Use the explicit id, else the record's own id property.

    For stores that generate identifiers themselves; returns ``None`` when
    neither is available.
    """

    def resolve(
        self,
        attributes: Mapping[str, Any],
        explicit_id: EntityUid | None = None,
        prop_name: str = "id",
    ) -> EntityUid | None:
        return explicit_id or attributes.get(prop_name)

    def __repr__(self) -> str:
        return "StoreAssignedIds()"


class UuidIds:
    """Like :class:`StoreAssignedIds`, but falls back to a fresh UUID4 string."""

    def resolve(
        self,
        attributes: Mapping[str, Any],
        explicit_id: EntityUid | None = None,
        prop_name: str = "id",
    ) -> EntityUid:
        return explicit_id or attributes.get(prop_name) or str(uuid.uuid4())

    def __repr__(self) -> str:
        return "UuidIds()"


# ---------------------------------------------------------------------------
# Matching strategies
# ---------------------------------------------------------------------------


@runtime_checkable
class MatchingStrategy(Protocol):
    """Decide whether entity attributes satisfy a canonical query."""

    def matches(self, attributes: Mapping[str, Any], query: Mapping[str, Any]) -> bool: ...


class NoMatching:
    """Entities cannot evaluate queries; every check fails."""

    def matches(self, attributes: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
        return False

    def __repr__(self) -> str:
        return "NoMatching()"


class PredicateMatching:
    """Evaluate queries in-process with :func:`diaspora.query.matcher.matches`."""

    def matches(self, attributes: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
        return matches(attributes, query)

    def __repr__(self) -> str:
        return "PredicateMatching()"


__all__ = [
    "IdentifierStrategy",
    "StoreAssignedIds",
    "UuidIds",
    "MatchingStrategy",
    "NoMatching",
    "PredicateMatching",
]
