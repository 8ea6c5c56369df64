"""Query canonicalization.

Users write queries in a friendly form::

    {"name": "alice", "age": {">=": 18}, "deleted": None}

Adapters only ever see the canonical form, where every field maps to a
predicate map keyed by canonical operators::

    {"name": {"$equal": "alice"}, "age": {"$greaterEqual": 18}, "deleted": {"$exists": False}}
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from datetime import date
from numbers import Number
from typing import Any

from diaspora.core.errors import ErrorContext, QueryConflictError, QueryTypeError
from diaspora.query.options import QueryOptions

# Alias → canonical operator name
CANONICAL_OPERATORS: dict[str, str] = {
    "!=": "$diff",
    "<": "$less",
    "<=": "$lessEqual",
    "==": "$equal",
    ">": "$greater",
    ">=": "$greaterEqual",
    "~": "$exists",
}

ORDERING_OPERATORS = ("$less", "$lessEqual", "$greater", "$greaterEqual")

Query = Mapping[str, Any]


def _is_orderable(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (Number, date))


def normalize_field_query(predicate: Mapping[str, Any]) -> dict[str, Any]:
    """Rewrite operator aliases of a single field predicate to canonical names.

    Raises:
        QueryConflictError: an alias and its canonical name are both present.
        QueryTypeError: an ordering operator has a non numeric, non date operand.
    """
    canonical: dict[str, Any] = {}
    for operator, operand in predicate.items():
        if operator in CANONICAL_OPERATORS:
            target = CANONICAL_OPERATORS[operator]
            if target in predicate:
                raise QueryConflictError(operator, target)
            canonical[target] = operand
        else:
            canonical[operator] = operand

    for operator in ORDERING_OPERATORS:
        if operator in canonical and not _is_orderable(canonical[operator]):
            raise QueryTypeError(
                f'Expect "{operator}" in {canonical!r} to be a numeric value',
                context=ErrorContext(option=operator),
            )
    return canonical


def normalize_query(query: Query, options: QueryOptions) -> dict[str, Any]:
    """Turn a user query into its canonical form.

    When ``options.remap_input`` is false the caller asked for the query to
    reach the adapter as written, so it is only deep-copied.

    Raises:
        QueryTypeError: *query* is not a mapping.
    """
    if not isinstance(query, Mapping):
        raise QueryTypeError(f"Expect query to be a mapping, have {type(query).__name__}")
    if not options.remap_input:
        return copy.deepcopy(dict(query))

    normalized: dict[str, Any] = {}
    for field_name, description in copy.deepcopy(dict(query)).items():
        if description is None:
            normalized[field_name] = {"$exists": False}
        elif not isinstance(description, Mapping):
            normalized[field_name] = {"$equal": description}
        else:
            normalized[field_name] = normalize_field_query(description)
    return normalized


__all__ = [
    "CANONICAL_OPERATORS",
    "ORDERING_OPERATORS",
    "Query",
    "normalize_field_query",
    "normalize_query",
]
