"""Canonical query language: options, operators and in-process matching.

Modules
-------
options     normalize_options -> QueryOptions (limit / skip / page)
canonical   normalize_query, normalize_field_query (operator aliases)
matcher     matches(attributes, canonical_query)
"""

from diaspora.query.canonical import (
    CANONICAL_OPERATORS,
    ORDERING_OPERATORS,
    normalize_field_query,
    normalize_query,
)
from diaspora.query.matcher import OPERATORS, matches
from diaspora.query.options import UNBOUNDED, QueryOptions, normalize_options

__all__ = [
    "CANONICAL_OPERATORS",
    "ORDERING_OPERATORS",
    "OPERATORS",
    "UNBOUNDED",
    "QueryOptions",
    "matches",
    "normalize_field_query",
    "normalize_options",
    "normalize_query",
]
