"""Diaspora Core -- cross-cutting primitives.

Modules
-------
errors        Structured error hierarchy (DiasporaError and subclasses)
logging       Structured logging (structlog)
settings      DiasporaSettings (pydantic-settings, DIASPORA_* env vars)
protocols     DataSourceQuerier protocol
entity_uid    Bare entity identifier detection
"""

from diaspora.core.entity_uid import EntityUid, is_entity_uid
from diaspora.core.errors import (
    AdapterContractError,
    AdapterError,
    AdapterStateError,
    ConfigError,
    ConflictingOptionsError,
    DiasporaError,
    EntityConstructionError,
    EntityError,
    ErrorCategory,
    ErrorContext,
    MissingOptionError,
    OptionRangeError,
    OptionReferenceError,
    OptionTypeError,
    QueryConflictError,
    QueryError,
    QueryTypeError,
    ValidationError,
    categorize_error,
)
from diaspora.core.logging import configure_logging, get_logger
from diaspora.core.protocols import DataSourceQuerier
from diaspora.core.settings import DiasporaSettings, configure_from_settings, get_settings

__all__ = [
    # Errors
    "AdapterContractError",
    "AdapterError",
    "AdapterStateError",
    "ConfigError",
    "ConflictingOptionsError",
    "DiasporaError",
    "EntityConstructionError",
    "EntityError",
    "ErrorCategory",
    "ErrorContext",
    "MissingOptionError",
    "OptionRangeError",
    "OptionReferenceError",
    "OptionTypeError",
    "QueryConflictError",
    "QueryError",
    "QueryTypeError",
    "ValidationError",
    "categorize_error",
    # Logging / settings
    "configure_logging",
    "get_logger",
    "DiasporaSettings",
    "configure_from_settings",
    "get_settings",
    # Protocols
    "DataSourceQuerier",
    # Identifiers
    "EntityUid",
    "is_entity_uid",
]
