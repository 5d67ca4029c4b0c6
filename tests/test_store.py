"""Tests for the in-process document store."""
import pytest
from datetime import datetime

from gashapon.exceptions import StoreFailure
from gashapon.store import MemoryStore, new_document_id
from gashapon.store.abstract import DOCUMENT_ID_LENGTH


@pytest.fixture
def memory():
    return MemoryStore({
        "ticket-info": {
            "abc-111": {"memo": "one"},
            "abc-222": {"memo": "two"},
            "abd-333": {"memo": "three"},
        }
    })


class TestMemoryStore:
    """DocumentStore contract on MemoryStore."""

    @pytest.mark.asyncio
    async def test_get_set_exists_delete(self, memory):
        assert await memory.get("ticket-info", "nope") is None
        await memory.set("ticket-info", "abc-444", {"memo": "four"})
        assert await memory.exists("ticket-info", "abc-444")
        assert (await memory.get("ticket-info", "abc-444")) == {"memo": "four"}
        assert await memory.delete("ticket-info", "abc-444") is True
        assert await memory.delete("ticket-info", "abc-444") is False
        assert not await memory.exists("ticket-info", "abc-444")

    @pytest.mark.asyncio
    async def test_set_replaces_whole_body(self, memory):
        await memory.set("ticket-info", "abc-111", {"email": "x@example.com"})
        assert await memory.get("ticket-info", "abc-111") == {"email": "x@example.com"}

    @pytest.mark.asyncio
    async def test_create_is_create_if_absent(self, memory):
        assert await memory.create("ticket-info", "abc-111", {"memo": "other"}) is False
        assert (await memory.get("ticket-info", "abc-111"))["memo"] == "one"
        assert await memory.create("ticket-info", "abc-555", {"memo": "five"}) is True

    @pytest.mark.asyncio
    async def test_range_scan_is_half_open_and_ordered(self, memory):
        rows = await memory.range_scan("ticket-info", "abc", "abd")
        assert [key for key, _ in rows] == ["abc-111", "abc-222"]
        rows = await memory.range_scan("ticket-info", "abc-222", "abe")
        assert [key for key, _ in rows] == ["abc-222", "abd-333"]

    @pytest.mark.asyncio
    async def test_documents_are_copies(self, memory):
        document = await memory.get("ticket-info", "abc-111")
        document["memo"] = "changed"
        assert (await memory.get("ticket-info", "abc-111"))["memo"] == "one"

    @pytest.mark.asyncio
    async def test_add_assigns_prefixed_key(self, memory):
        key = await memory.add("prizes", {"quantity": 1}, prefix="abc-")
        assert key.startswith("abc-")
        assert len(key) == len("abc-") + DOCUMENT_ID_LENGTH
        assert await memory.get("prizes", key) == {"quantity": 1}

    @pytest.mark.asyncio
    async def test_add_gives_up_when_every_key_conflicts(self, memory):
        async def always_taken(collection, key, document):
            return False
        memory.create = always_taken
        with pytest.raises(StoreFailure):
            await memory.add("prizes", {})

    @pytest.mark.asyncio
    async def test_now(self, memory):
        assert isinstance(await memory.now(), datetime)

    def test_document_ids(self):
        first, second = new_document_id(), new_document_id()
        assert len(first) == DOCUMENT_ID_LENGTH
        assert first.isalnum()
        assert first != second
