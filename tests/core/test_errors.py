"""Tests for diaspora.core.errors module."""

import pytest

from diaspora.core.errors import (
    AdapterContractError,
    AdapterStateError,
    ConflictingOptionsError,
    DiasporaError,
    EntityConstructionError,
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


class TestErrorContext:
    """Test ErrorContext dataclass."""

    def test_create_empty_context(self):
        ctx = ErrorContext()
        assert ctx.adapter is None
        assert ctx.collection is None
        assert ctx.metadata == {}

    def test_to_dict_includes_set_fields(self):
        """to_dict includes only non-None fields."""
        ctx = ErrorContext(adapter="memory", option="limit", metadata={"key": "value"})
        d = ctx.to_dict()
        assert d == {"adapter": "memory", "option": "limit", "key": "value"}
        assert "collection" not in d


class TestDiasporaError:
    """Test DiasporaError base class."""

    def test_create_minimal_error(self):
        err = DiasporaError("Something failed")
        assert err.message == "Something failed"
        assert str(err) == "Something failed"
        assert err.category == ErrorCategory.INTERNAL

    def test_create_with_cause(self):
        cause = KeyError("id")
        err = DiasporaError("Lookup failed", cause=cause)
        assert err.cause is cause
        assert err.__cause__ is cause

    def test_with_context_fluent_api(self):
        err = DiasporaError("Failed").with_context(adapter="memory", collection="users", request="r-1")
        assert err.context.adapter == "memory"
        assert err.context.collection == "users"
        assert err.context.metadata["request"] == "r-1"

    def test_to_dict(self):
        err = AdapterContractError("nil insert", cause=RuntimeError("boom")).with_context(operation="insert_one")
        d = err.to_dict()
        assert d["error_type"] == "AdapterContractError"
        assert d["category"] == "ADAPTER"
        assert d["context"]["operation"] == "insert_one"
        assert d["cause"] == {"type": "RuntimeError", "message": "boom"}

    def test_repr(self):
        assert repr(QueryError("bad")) == "QueryError('bad', category=VALIDATION)"


class TestValidationErrors:
    """Validation errors double as builtin TypeError/ValueError."""

    def test_option_type_error_is_type_error(self):
        err = OptionTypeError("not an int")
        assert isinstance(err, TypeError)
        assert isinstance(err, ValidationError)
        assert err.category == ErrorCategory.VALIDATION

    def test_option_range_error_is_value_error(self):
        assert isinstance(OptionRangeError("too small"), ValueError)

    def test_missing_option_error(self):
        err = MissingOptionError("page", "limit")
        assert isinstance(err, OptionReferenceError)
        assert err.option == "page"
        assert err.required == "limit"
        assert 'requires "options.limit"' in err.message

    def test_conflicting_options_error(self):
        err = ConflictingOptionsError("page", "skip")
        assert isinstance(err, OptionReferenceError)
        assert err.options == ("page", "skip")
        assert err.context.metadata["conflicts_with"] == "skip"

    def test_query_conflict_error(self):
        err = QueryConflictError("<", "$less")
        assert isinstance(err, QueryError)
        assert not isinstance(err, TypeError)
        assert '"<"' in err.message and '"$less"' in err.message

    def test_query_type_error_is_type_error(self):
        assert isinstance(QueryTypeError("nope"), TypeError)


class TestOtherErrors:
    def test_adapter_errors_category(self):
        assert AdapterContractError("x").category == ErrorCategory.ADAPTER
        assert AdapterStateError("x").category == ErrorCategory.ADAPTER

    def test_entity_construction_error(self):
        err = EntityConstructionError("nil")
        assert err.category == ErrorCategory.ENTITY
        assert isinstance(err, TypeError)


class TestCategorizeError:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (AdapterContractError("x"), ErrorCategory.ADAPTER),
            (OptionRangeError("x"), ErrorCategory.VALIDATION),
            (TypeError("x"), ErrorCategory.VALIDATION),
            (ValueError("x"), ErrorCategory.VALIDATION),
            (RuntimeError("x"), ErrorCategory.UNKNOWN),
        ],
    )
    def test_categorize(self, error, expected):
        assert categorize_error(error) == expected
