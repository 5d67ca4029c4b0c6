"""Tests for prefix range queries."""
import pytest
from unittest.mock import AsyncMock

from gashapon.shop import PrefixIndex
from gashapon.store import MemoryStore


@pytest.fixture
def index():
    store = MemoryStore({
        "ticket-info": {
            "abc-111": {"memo": "1"},
            "abc-222": {"memo": "2"},
            "abd-333": {"memo": "3"},
            "ab-444": {"memo": "4"},
            "a-b-555": {"memo": "5"},
            "a-666": {"memo": "6"},
        }
    })
    store.range_scan = AsyncMock(wraps=store.range_scan)
    return PrefixIndex(store)


class TestPrefixIndex:
    """Starts-with emulation over range scans."""

    @pytest.mark.asyncio
    async def test_query_by_prefix(self, index):
        rows = await index.query_by_prefix("ticket-info", "abc")
        assert [r["key"] for r in rows] == ["abc-111", "abc-222"]
        assert [r["id"] for r in rows] == [1, 2]
        assert rows[0]["memo"] == "1"
        index.store.range_scan.assert_awaited_once_with("ticket-info", "abc", "abd")

    @pytest.mark.asyncio
    async def test_raw_prefix_includes_longer_tags(self, index):
        rows = await index.query_by_prefix("ticket-info", "ab")
        assert [r["key"] for r in rows] == ["ab-444", "abc-111", "abc-222", "abd-333"]

    @pytest.mark.asyncio
    async def test_shop_query_excludes_tags_it_prefixes(self, index):
        rows = await index.query_by_shop("ticket-info", "ab")
        assert [r["key"] for r in rows] == ["ab-444"]
        assert rows[0]["id"] == 1

    @pytest.mark.asyncio
    async def test_shop_query_excludes_tags_containing_separator(self, index):
        rows = await index.query_by_shop("ticket-info", "a")
        assert [r["key"] for r in rows] == ["a-666"]
        rows = await index.query_by_shop("ticket-info", "a-b")
        assert [r["key"] for r in rows] == ["a-b-555"]

    @pytest.mark.asyncio
    async def test_positions_restart_per_query(self, index):
        first = await index.query_by_shop("ticket-info", "abc")
        second = await index.query_by_shop("ticket-info", "abd")
        assert [r["id"] for r in first] == [1, 2]
        assert [r["id"] for r in second] == [1]

    @pytest.mark.asyncio
    async def test_unknown_prefix_is_empty(self, index):
        assert await index.query_by_shop("ticket-info", "zzz") == []
