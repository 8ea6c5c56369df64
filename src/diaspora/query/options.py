"""Query option normalization.

Every operation that targets existing records (find, update, delete,
contains, count, every) accepts user-facing options. Before reaching an
adapter they are validated and turned into a canonical
:class:`QueryOptions`:

    ``limit``   integer in [0, ∞], ``math.inf`` meaning unbounded
    ``skip``    integer in [0, ∞)
    ``page``    input only; resolved into ``skip = page * limit``

Example:
    >>> normalize_options({"limit": "10", "page": 2})
    QueryOptions(limit=10, skip=20, remap_input=True, remap_output=True, extra=mappingproxy({}))
"""

from __future__ import annotations

import copy
import dataclasses
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from diaspora.core.errors import (
    ConflictingOptionsError,
    ErrorContext,
    MissingOptionError,
    OptionRangeError,
    OptionTypeError,
)

UNBOUNDED = math.inf

_CANONICAL_KEYS = ("limit", "skip", "remap_input", "remap_output")


@dataclass(frozen=True)
class QueryOptions:
    """Canonical query options, ready for an adapter to consume.

    Hashable: *extra* is frozen into a read-only mapping and left out of the
    hash (equality still compares it).
    """

    limit: int | float = UNBOUNDED
    skip: int = 0
    remap_input: bool = True
    remap_output: bool = True
    extra: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extra", MappingProxyType(dict(self.extra)))

    @property
    def is_bounded(self) -> bool:
        return not math.isinf(self.limit)

    def replace(self, **changes: Any) -> QueryOptions:
        """Return a copy with *changes* applied (options are never mutated)."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        result = {key: getattr(self, key) for key in _CANONICAL_KEYS}
        result.update(self.extra)
        return result


# =============================================================================
# Validation helpers
# =============================================================================


def _as_integer(key: str, value: Any) -> int | float:
    """Coerce *value* to an integer, accepting numeric strings and infinities."""
    if isinstance(value, bool):
        raise OptionTypeError(
            f'Expect "{key}" to be an integer', context=ErrorContext(option=key)
        )
    if isinstance(value, str):
        try:
            value = int(value.strip(), 10)
        except ValueError:
            raise OptionTypeError(
                f'Expect "{key}" to be an integer, have "{value}"',
                context=ErrorContext(option=key),
            ) from None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isinf(value):
            return value
        if value.is_integer():
            return int(value)
    raise OptionTypeError(
        f'Expect "{key}" to be an integer', context=ErrorContext(option=key)
    )


def _check_range(key: str, value: int | float, *, upper_inclusive: bool) -> int | float:
    # lower bound is always 0 inclusive
    in_range = value >= 0 and (value <= UNBOUNDED if upper_inclusive else value < UNBOUNDED)
    if not in_range:
        bounds = "[0,∞]" if upper_inclusive else "[0,∞["
        raise OptionRangeError(
            f'Expect "{key}" to be within {bounds}, have "{value}"',
            context=ErrorContext(option=key),
        )
    return value


def _transform_limit(opts: dict[str, Any]) -> None:
    opts["limit"] = _check_range("limit", _as_integer("limit", opts["limit"]), upper_inclusive=True)


def _transform_skip(opts: dict[str, Any]) -> None:
    opts["skip"] = _check_range("skip", _as_integer("skip", opts["skip"]), upper_inclusive=False)


def _transform_page(opts: dict[str, Any]) -> None:
    limit = opts.get("limit")
    if limit is None:
        raise MissingOptionError("page", "limit")
    if math.isinf(limit):
        raise OptionRangeError(
            'Usage of "options.page" requires "options.limit" to not be infinite',
            context=ErrorContext(option="page"),
        )
    if opts.get("skip") is not None:
        raise ConflictingOptionsError("page", "skip")
    page = _check_range("page", _as_integer("page", opts["page"]), upper_inclusive=False)
    opts["skip"] = page * limit
    del opts["page"]


# Applied in this order: ``page`` relies on an already-validated ``limit``.
QUERY_OPTIONS_TRANSFORMS: dict[str, Callable[[dict[str, Any]], None]] = {
    "limit": _transform_limit,
    "skip": _transform_skip,
    "page": _transform_page,
}


def normalize_options(raw: Mapping[str, Any] | QueryOptions | None = None) -> QueryOptions:
    """Validate and default *raw* options into a :class:`QueryOptions`.

    The caller's mapping is deep-copied, never modified. Unknown keys are
    kept in :attr:`QueryOptions.extra`.

    Raises:
        OptionTypeError: ``limit``/``skip``/``page`` is not an integer.
        OptionRangeError: value out of range, or ``page`` with infinite ``limit``.
        MissingOptionError: ``page`` without ``limit``.
        ConflictingOptionsError: ``page`` together with ``skip``.
    """
    if raw is None:
        opts: dict[str, Any] = {}
    elif isinstance(raw, QueryOptions):
        opts = copy.deepcopy(raw.to_dict())
    elif isinstance(raw, Mapping):
        opts = copy.deepcopy(dict(raw))
    else:
        raise OptionTypeError(f"Expect options to be a mapping, have {type(raw).__name__}")

    for option_name, transform in QUERY_OPTIONS_TRANSFORMS.items():
        if opts.get(option_name) is not None:
            transform(opts)

    canonical = {
        "limit": UNBOUNDED,
        "skip": 0,
        "remap_input": True,
        "remap_output": True,
    }
    for key in _CANONICAL_KEYS:
        if opts.get(key) is not None:
            canonical[key] = opts.pop(key)
        else:
            opts.pop(key, None)
    # a None page was skipped by the transforms and never reaches canonical form
    opts.pop("page", None)

    return QueryOptions(
        limit=canonical["limit"],
        skip=canonical["skip"],
        remap_input=bool(canonical["remap_input"]),
        remap_output=bool(canonical["remap_output"]),
        extra=opts,
    )


__all__ = [
    "UNBOUNDED",
    "QueryOptions",
    "QUERY_OPTIONS_TRANSFORMS",
    "normalize_options",
]
