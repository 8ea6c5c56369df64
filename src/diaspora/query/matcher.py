"""In-process evaluation of canonical queries.

Adapters whose store has no native querying (in-memory dicts, flat files,
key/value stores) load candidate records and filter them with
:func:`matches`. The query must already be canonical
(see :func:`diaspora.query.canonical.normalize_query`).

An attribute is *defined* when its key is present and its value is not
``None``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

_UNDEFINED = object()

OperatorCheck = Callable[[Any, Any], bool]


def _is_defined(value: Any) -> bool:
    return value is not _UNDEFINED and value is not None


def _strict_equal(left: Any, right: Any) -> bool:
    # True == 1 in Python; a boolean only ever equals a boolean here
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _compare(check: Callable[[Any, Any], bool]) -> OperatorCheck:
    def operator(entity_value: Any, target: Any) -> bool:
        if not _is_defined(entity_value):
            return False
        try:
            return bool(check(entity_value, target))
        except TypeError:
            # incomparable types (str vs int, date vs number)
            return False

    return operator


def _contains(entity_value: Any, target: Any) -> bool:
    return (
        _is_defined(entity_value)
        and isinstance(entity_value, (list, tuple))
        and any(item == target for item in entity_value)
    )


def _diff(entity_value: Any, target: Any) -> bool:
    return _is_defined(entity_value) and not _strict_equal(entity_value, target)


def _equal(entity_value: Any, target: Any) -> bool:
    return _is_defined(entity_value) and _strict_equal(entity_value, target)


def _exists(entity_value: Any, target: Any) -> bool:
    return target is _is_defined(entity_value)


OPERATORS: dict[str, OperatorCheck] = {
    "$contains": _contains,
    "$diff": _diff,
    "$equal": _equal,
    "$exists": _exists,
    "$greater": _compare(lambda a, b: a > b),
    "$greaterEqual": _compare(lambda a, b: a >= b),
    "$less": _compare(lambda a, b: a < b),
    "$lessEqual": _compare(lambda a, b: a <= b),
}


def matches(attributes: Mapping[str, Any], query: Mapping[str, Any]) -> bool:
    """Check whether *attributes* satisfy every predicate of a canonical *query*.

    A field whose description is not a predicate map, or a predicate using
    an unknown operator, makes the whole match fail.

    >>> matches({"a": 5}, {"a": {"$greater": 3}})
    True
    >>> matches({}, {"a": {"$exists": False}})
    True
    """
    for field_name, description in query.items():
        if not isinstance(description, Mapping):
            return False
        entity_value = attributes.get(field_name, _UNDEFINED)
        for operator_name, target in description.items():
            check = OPERATORS.get(operator_name)
            if check is None or not check(entity_value, target):
                return False
    return True


__all__ = ["OPERATORS", "OperatorCheck", "matches"]
