"""Tests for diaspora.query.canonical."""

from datetime import date, datetime

import pytest

from diaspora.core.errors import QueryConflictError, QueryTypeError
from diaspora.query.canonical import CANONICAL_OPERATORS, normalize_field_query, normalize_query
from diaspora.query.options import QueryOptions

REMAP = QueryOptions()
RAW = QueryOptions(remap_input=False)


class TestNormalizeFieldQuery:
    @pytest.mark.parametrize("alias,canonical", sorted(CANONICAL_OPERATORS.items()))
    def test_alias_rewritten(self, alias, canonical):
        operand = True if canonical == "$exists" else 3
        assert normalize_field_query({alias: operand}) == {canonical: operand}

    def test_canonical_and_unknown_pass_through(self):
        predicate = {"$greater": 1, "$contains": "x", "$regex": "^a"}
        assert normalize_field_query(predicate) == predicate

    def test_alias_and_canonical_conflict(self):
        with pytest.raises(QueryConflictError) as exc_info:
            normalize_field_query({"<": 3, "$less": 4})
        assert exc_info.value.alias == "<"
        assert exc_info.value.canonical == "$less"

    @pytest.mark.parametrize("operand", [3, 2.5, date(2024, 1, 1), datetime(2024, 1, 1, 12)])
    def test_ordering_operands_accepted(self, operand):
        assert normalize_field_query({">=": operand}) == {"$greaterEqual": operand}

    @pytest.mark.parametrize("operand", ["3", None, True, [1], {"a": 1}])
    def test_ordering_operand_type(self, operand):
        with pytest.raises(QueryTypeError):
            normalize_field_query({"$less": operand})

    def test_equality_accepts_any_operand(self):
        assert normalize_field_query({"==": "x", "!=": None}) == {"$equal": "x", "$diff": None}


class TestNormalizeQuery:
    def test_shapes(self):
        query = {"name": "alice", "age": {">=": 18}, "deleted": None, "tags": {"$contains": "a"}}
        assert normalize_query(query, REMAP) == {
            "name": {"$equal": "alice"},
            "age": {"$greaterEqual": 18},
            "deleted": {"$exists": False},
            "tags": {"$contains": "a"},
        }

    def test_empty_query(self):
        assert normalize_query({}, REMAP) == {}

    def test_no_alias_survives(self):
        query = {
            "a": {"<": 1, ">": 0},
            "b": {"<=": 2, ">=": 1},
            "c": {"==": 3, "!=": 4},
            "d": {"~": True},
        }
        normalized = normalize_query(query, REMAP)
        for predicate in normalized.values():
            assert not set(predicate) & set(CANONICAL_OPERATORS)

    def test_remap_input_false_copies_verbatim(self):
        query = {"name": "alice", "age": {">": 3}}
        normalized = normalize_query(query, RAW)
        assert normalized == query
        assert normalized is not query
        assert normalized["age"] is not query["age"]

    def test_input_not_mutated(self):
        query = {"age": {">": 3}}
        normalize_query(query, REMAP)
        assert query == {"age": {">": 3}}

    @pytest.mark.parametrize("query", [0, "", [("a", 1)], None])
    def test_non_mapping_rejected(self, query):
        with pytest.raises(QueryTypeError):
            normalize_query(query, REMAP)

    def test_errors_propagate(self):
        with pytest.raises(QueryConflictError):
            normalize_query({"age": {"==": 1, "$equal": 1}}, REMAP)
