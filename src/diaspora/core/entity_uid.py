"""Detection of bare entity identifiers.

A caller may pass an identifier where a query is expected
(``dal.find_one("users", "3f2a...")``); the facade rewrites it to
``{"id": value}``. Only non-empty strings and non-zero numbers qualify.
"""

from __future__ import annotations

from numbers import Number
from typing import Any, Union

EntityUid = Union[str, int, float]


def is_entity_uid(value: Any) -> bool:
    """Return True if *value* can be used as an entity identifier.

    ``bool`` is rejected even though it subclasses ``int``.

    >>> is_entity_uid("abc"), is_entity_uid(123456)
    (True, True)
    >>> is_entity_uid(""), is_entity_uid(0), is_entity_uid(True), is_entity_uid(None)
    (False, False, False, False)
    """
    if isinstance(value, str):
        return value != ""
    if isinstance(value, bool):
        return False
    if isinstance(value, Number):
        return value != 0
    return False


__all__ = ["EntityUid", "is_entity_uid"]
