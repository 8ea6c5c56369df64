"""
Structured error types for the diaspora data-access layer.

Every failure raised by option normalization, query canonicalization,
the adapter contract or entity construction is a :class:`DiasporaError`
subclass carrying a category, structured context and an optional chained
cause.

Manifesto:
    - **Typed Error Hierarchy:** Validation, adapter and entity failures are
      distinct types, so callers can react to each without string matching
    - **Builtin compatibility:** Type and range failures also subclass
      ``TypeError`` / ``ValueError`` so generic handlers keep working
    - **Rich Context:** Errors carry the adapter, collection and option that
      triggered them
    - **No wrapping of store errors:** Exceptions raised by adapter I/O are
      never reclassified; only errors this layer raises live here

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       DiasporaError                              │
        │  (category, context, cause)                                     │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ValidationError              AdapterError        EntityError   │
        │  (VALIDATION)                 (ADAPTER)           (ENTITY)      │
        │       │                           │                   │          │
        │  OptionTypeError             AdapterContractError  EntityConstructionError
        │  OptionRangeError            AdapterStateError                  │
        │  OptionReferenceError                                           │
        │    ├─ MissingOptionError      ConfigError                       │
        │    └─ ConflictingOptionsError (CONFIG)                          │
        │  QueryError                                                     │
        │    ├─ QueryConflictError                                        │
        │    └─ QueryTypeError                                            │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = OptionRangeError("Expect \\"skip\\" to be within [0,∞[, have \\"-1\\"")
    >>> error.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>
    >>> isinstance(error, ValueError)
    True

    >>> error = AdapterContractError("nil insert").with_context(adapter="mem")
    >>> error.context.adapter
    'mem'

Guardrails:
    ❌ DON'T: Raise bare ``Exception`` from the facade
    ✅ DO: Use the matching DiasporaError subclass

    ❌ DON'T: Wrap errors coming out of an adapter's store I/O
    ✅ DO: Let them propagate unchanged

Tags:
    error-handling, exception-hierarchy, error-context, diaspora
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and routing.

    Attributes:
        VALIDATION: Malformed options or queries, rejected before any I/O
        ADAPTER: Adapter contract violations and lifecycle misuse
        ENTITY: Entity materialization failures
        CONFIG: Invalid settings
        INTERNAL: Bugs, unexpected state
        UNKNOWN: Uncategorized errors
    """

    VALIDATION = "VALIDATION"
    ADAPTER = "ADAPTER"
    ENTITY = "ENTITY"
    CONFIG = "CONFIG"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Attributes:
        adapter: Name of the adapter involved
        collection: Collection (table) name the operation targeted
        operation: Public operation name (``find_many``, ``insert_one``...)
        option: Option or query key that failed validation
        metadata: Additional key-value pairs
    """

    adapter: str | None = None
    collection: str | None = None
    operation: str | None = None
    option: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["adapter", "collection", "operation", "option"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class DiasporaError(Exception):
    """
    Base exception for all diaspora errors.

    Subclasses set ``default_category`` to classify themselves.

    Examples:
        >>> error = DiasporaError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> try:
        ...     raise KeyError("id")
        ... except KeyError as e:
        ...     error = DiasporaError("Lookup failed", cause=e)
        >>> error.cause
        KeyError('id')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> DiasporaError:
        """
        Add context to this error (fluent API).

        Usage:
            raise AdapterContractError("nil insert").with_context(
                adapter="memory",
                collection="users",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for logging/JSON."""
        result = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
            "context": self.context.to_dict(),
        }
        if self.cause:
            result["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(DiasporaError):
    """
    Options or query failed validation.

    Raised eagerly during normalization, before any adapter is called.
    """

    default_category = ErrorCategory.VALIDATION


class OptionTypeError(ValidationError, TypeError):
    """Query option has the wrong type (e.g. non-integer ``limit``)."""


class OptionRangeError(ValidationError, ValueError):
    """Query option is outside of its accepted range."""


class OptionReferenceError(ValidationError):
    """Query options reference a missing option or combine exclusive ones."""


class MissingOptionError(OptionReferenceError):
    """An option requires another option that is not set."""

    def __init__(self, option: str, required: str, message: str | None = None):
        msg = message or f'Usage of "options.{option}" requires "options.{required}" to be defined.'
        super().__init__(msg, context=ErrorContext(option=option, metadata={"required": required}))
        self.option = option
        self.required = required


class ConflictingOptionsError(OptionReferenceError):
    """Two mutually exclusive options were both supplied."""

    def __init__(self, first: str, second: str):
        super().__init__(
            f'Use either "options.{first}" or "options.{second}"',
            context=ErrorContext(option=first, metadata={"conflicts_with": second}),
        )
        self.options = (first, second)


class QueryError(ValidationError):
    """Query could not be canonicalized."""


class QueryConflictError(QueryError):
    """A field predicate carries both an operator alias and its canonical name."""

    def __init__(self, alias: str, canonical: str):
        super().__init__(
            f'Search can\'t have both "{alias}" and "{canonical}" keys, as they are synonyms.',
            context=ErrorContext(option=canonical, metadata={"alias": alias}),
        )
        self.alias = alias
        self.canonical = canonical


class QueryTypeError(QueryError, TypeError):
    """Operand of an ordering operator is neither numeric nor a date."""


# =============================================================================
# ADAPTER ERRORS
# =============================================================================


class AdapterError(DiasporaError):
    """Base for adapter contract and lifecycle errors."""

    default_category = ErrorCategory.ADAPTER


class AdapterContractError(AdapterError):
    """
    Adapter broke the data-access contract.

    Raised by the facade when a single insert returns nothing or a
    multi-insert returns a mismatched count or an empty element, and at
    class definition when an adapter implements neither side of a
    polyfilled operation pair.
    """


class AdapterStateError(AdapterError):
    """Lifecycle state was settled more than once."""


# =============================================================================
# ENTITY ERRORS
# =============================================================================


class EntityError(DiasporaError):
    """Base for entity materialization errors."""

    default_category = ErrorCategory.ENTITY


class EntityConstructionError(EntityError, TypeError):
    """Entity could not be built (nil record, nil adapter or missing id)."""


# =============================================================================
# CONFIG ERRORS
# =============================================================================


class ConfigError(DiasporaError):
    """Invalid diaspora settings."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# UTILITIES
# =============================================================================


def categorize_error(error: Exception) -> ErrorCategory:
    """
    Categorize an exception.

    For DiasporaError, returns its category. Builtin ``TypeError`` and
    ``ValueError`` map to VALIDATION; anything else is UNKNOWN.
    """
    if isinstance(error, DiasporaError):
        return error.category
    if isinstance(error, (TypeError, ValueError)):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "DiasporaError",
    "ValidationError",
    "OptionTypeError",
    "OptionRangeError",
    "OptionReferenceError",
    "MissingOptionError",
    "ConflictingOptionsError",
    "QueryError",
    "QueryConflictError",
    "QueryTypeError",
    "AdapterError",
    "AdapterContractError",
    "AdapterStateError",
    "EntityError",
    "EntityConstructionError",
    "ConfigError",
    "categorize_error",
]
