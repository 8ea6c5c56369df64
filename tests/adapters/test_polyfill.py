"""
Tests for the CRUD polyfill.

Tests verify:
- Singular-only adapters get sequential, in-order multi-item operations
- find_many / update_many poll with increasing skip until limit or exhaustion
- delete_many polls without advancing skip
- Plural-only adapters get single-item operations with limit forced to 1
- The caller's options are never mutated
- contains / count / every
"""

import asyncio

import pytest

from diaspora.adapters.base import FULL_COLLECTION_OPTIONS, gather_or_cancel, iterate_limit
from diaspora.query.options import QueryOptions

from tests._support.adapters import PluralAdapter, SingularAdapter


def rows(n: int) -> list[dict]:
    return [{"id": i + 1, "n": i} for i in range(n)]


class TestIterateLimit:
    @pytest.mark.asyncio
    async def test_stops_at_limit(self):
        seen = []

        async def query(options):
            seen.append(options.skip)
            return options.skip

        assert await iterate_limit(QueryOptions(limit=3, skip=10), query) == [10, 11, 12]
        assert seen == [10, 11, 12]

    @pytest.mark.asyncio
    async def test_stops_at_first_none(self):
        async def query(options):
            return options.skip if options.skip < 2 else None

        assert await iterate_limit(QueryOptions(), query) == [0, 1]

    @pytest.mark.asyncio
    async def test_zero_limit_never_calls(self):
        async def query(options):
            raise AssertionError("should not be called")

        assert await iterate_limit(QueryOptions(limit=0), query) == []

    @pytest.mark.asyncio
    async def test_fixed_skip(self):
        seen = []

        async def query(options):
            seen.append(options.skip)
            return "x" if len(seen) < 3 else None

        await iterate_limit(QueryOptions(skip=4), query, advance_skip=False)
        assert seen == [4, 4, 4]


class TestSingularAdapterPolyfill:
    @pytest.mark.asyncio
    async def test_insert_many_calls_insert_one_in_order(self, singular_adapter):
        inserted = await singular_adapter.insert_many("users", [{"name": "a"}, {"name": "b"}])
        assert singular_adapter.calls == [("insert_one", {"name": "a"}), ("insert_one", {"name": "b"})]
        assert inserted == [{"id": 1, "name": "a"}, {"id": 2, "name": "b"}]

    @pytest.mark.asyncio
    async def test_insert_many_drops_empty_results(self, singular_adapter):
        inserted = await singular_adapter.insert_many("users", [{"name": "a"}, {"reject": True}, {"name": "c"}])
        assert [record["name"] for record in inserted] == ["a", "c"]
        assert len(singular_adapter.calls) == 3

    @pytest.mark.asyncio
    async def test_insert_many_is_sequential(self):
        active = 0
        peak = 0

        class SlowAdapter(SingularAdapter):
            async def insert_one(self, collection, entity):
                nonlocal active, peak
                active += 1
                peak = max(peak, active)
                await asyncio.sleep(0)
                active -= 1
                return await super().insert_one(collection, entity)

        await SlowAdapter().insert_many("users", [{}, {}, {}])
        assert peak == 1

    @pytest.mark.asyncio
    async def test_find_many_polls_until_exhausted(self):
        adapter = SingularAdapter(rows(3))
        found = await adapter.find_many("users", {}, QueryOptions())
        assert found == rows(3)
        assert [options.skip for _, options in adapter.calls] == [0, 1, 2, 3]

    @pytest.mark.asyncio
    async def test_find_many_stops_at_limit(self):
        adapter = SingularAdapter(rows(10))
        found = await adapter.find_many("users", {}, QueryOptions(limit=2, skip=3))
        assert [record["n"] for record in found] == [3, 4]
        assert [options.skip for _, options in adapter.calls] == [3, 4]

    @pytest.mark.asyncio
    async def test_update_many_threads_payload(self):
        adapter = SingularAdapter(rows(2))
        updated = await adapter.update_many("users", {}, {"flag": True}, QueryOptions())
        assert [record["flag"] for record in updated] == [True, True]
        assert all(call[1][0] == {"flag": True} for call in adapter.calls)
        assert [call[1][1].skip for call in adapter.calls] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_delete_many_does_not_advance_skip(self):
        adapter = SingularAdapter(rows(3))
        deleted = await adapter.delete_many("users", {}, QueryOptions())
        assert [record["id"] for record in deleted] == [1, 2, 3]
        assert adapter.rows == []
        assert [options.skip for _, options in adapter.calls] == [0, 0, 0, 0]

    @pytest.mark.asyncio
    async def test_delete_many_respects_limit(self):
        adapter = SingularAdapter(rows(5))
        deleted = await adapter.delete_many("users", {}, QueryOptions(limit=2))
        assert len(deleted) == 2
        assert len(adapter.rows) == 3


class TestPluralAdapterPolyfill:
    @pytest.mark.asyncio
    async def test_insert_one_wraps_in_list(self, plural_adapter):
        inserted = await plural_adapter.insert_one("users", {"name": "a"})
        assert inserted == {"id": 1, "name": "a"}
        assert plural_adapter.calls == [("insert_many", [{"name": "a"}])]

    @pytest.mark.asyncio
    async def test_find_one_forces_limit(self):
        adapter = PluralAdapter(rows(5))
        caller_options = QueryOptions(limit=10, skip=2)
        found = await adapter.find_one("users", {}, caller_options)
        assert found == {"id": 3, "n": 2}
        assert adapter.calls[0][1].limit == 1
        assert adapter.calls[0][1].skip == 2
        assert caller_options.limit == 10

    @pytest.mark.asyncio
    async def test_find_one_none_when_empty(self, plural_adapter):
        assert await plural_adapter.find_one("users", {}, QueryOptions()) is None

    @pytest.mark.asyncio
    async def test_update_one_forces_limit(self):
        adapter = PluralAdapter(rows(3))
        updated = await adapter.update_one("users", {}, {"n": 99}, QueryOptions())
        assert updated == {"id": 1, "n": 99}
        update, options = adapter.calls[0][1]
        assert update == {"n": 99}
        assert options.limit == 1

    @pytest.mark.asyncio
    async def test_delete_one_forces_limit(self):
        adapter = PluralAdapter(rows(3))
        deleted = await adapter.delete_one("users", {}, QueryOptions())
        assert deleted == {"id": 1, "n": 0}
        assert adapter.calls[0][1].limit == 1
        assert len(adapter.rows) == 2


class TestUtilityOperations:
    @pytest.mark.asyncio
    async def test_contains(self):
        assert await SingularAdapter(rows(1)).contains("users", {}, QueryOptions())
        assert not await SingularAdapter().contains("users", {}, QueryOptions())

    @pytest.mark.asyncio
    async def test_count(self):
        adapter = PluralAdapter(rows(4))
        assert await adapter.count("users", {}, QueryOptions()) == 4
        assert await adapter.count("users", {}, QueryOptions(skip=3)) == 1

    @pytest.mark.asyncio
    async def test_every_true_when_counts_equal(self):
        adapter = PluralAdapter(rows(4))
        assert await adapter.every("users", {}, QueryOptions())

    @pytest.mark.asyncio
    async def test_every_false_when_counts_differ(self):
        adapter = PluralAdapter(rows(4))
        assert not await adapter.every("users", {}, QueryOptions(limit=2))
        # second count ran against the whole collection, unremapped
        assert FULL_COLLECTION_OPTIONS in [options for _, options in adapter.calls]

    @pytest.mark.asyncio
    async def test_every_matches_count_comparison(self):
        adapter = PluralAdapter(rows(6))
        for options in (QueryOptions(), QueryOptions(limit=3), QueryOptions(skip=1)):
            expected = await adapter.count("users", {}, options) == await adapter.count(
                "users", {}, FULL_COLLECTION_OPTIONS
            )
            assert await adapter.every("users", {}, options) is expected

    @pytest.mark.asyncio
    async def test_every_cancels_other_count_on_failure(self):
        started = asyncio.Event()
        cancelled = []

        class HalfBrokenAdapter(PluralAdapter):
            async def count(self, collection, query, options):
                if options is FULL_COLLECTION_OPTIONS:
                    started.set()
                    try:
                        await asyncio.sleep(10)
                    except asyncio.CancelledError:
                        cancelled.append(collection)
                        raise
                    return 0
                await started.wait()
                raise ConnectionResetError("store went away")

        with pytest.raises(ConnectionResetError):
            await asyncio.wait_for(HalfBrokenAdapter().every("users", {}, QueryOptions()), timeout=1)
        assert cancelled == ["users"]


class TestGatherOrCancel:
    @pytest.mark.asyncio
    async def test_results_in_order(self):
        async def value(n, delay):
            await asyncio.sleep(delay)
            return n

        assert await gather_or_cancel(value(1, 0.02), value(2, 0)) == [1, 2]

    @pytest.mark.asyncio
    async def test_pending_tasks_finished_before_raise(self):
        slow_task = []

        async def slow():
            slow_task.append(asyncio.current_task())
            await asyncio.sleep(10)

        async def failing():
            await asyncio.sleep(0)
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            await gather_or_cancel(slow(), failing())
        assert slow_task[0].cancelled()
