"""Tests for the code generator."""
import pytest
from unittest.mock import AsyncMock, MagicMock

from gashapon.exceptions import CodeSpaceExhausted, StoreFailure
from gashapon.keys import is_ticket_code
from gashapon.shop import CodeGenerator, random_suffix
from gashapon.store import MemoryStore


def sequential_suffixes():
    counter = iter(range(1, 10_000))
    return lambda: f"{next(counter):06X}"


def stub_store(exists=None, create=None):
    store = MagicMock()
    store.exists = AsyncMock(side_effect=exists) if exists else AsyncMock(return_value=False)
    store.create = AsyncMock(side_effect=create) if create else AsyncMock(return_value=True)
    return store


class TestRandomSuffix:

    def test_six_uppercase_hex(self):
        for _ in range(50):
            suffix = random_suffix()
            assert len(suffix) == 6
            assert suffix == suffix.upper()
            int(suffix, 16)


class TestCodeGenerator:
    """Collision avoidance and the attempt cap."""

    @pytest.mark.asyncio
    async def test_fresh_code_is_claimed(self):
        store = MemoryStore()
        generator = CodeGenerator(store)
        code = await generator.generate_code("alice", {"memo": "x"})
        assert is_ticket_code(code)
        assert code.startswith("alice-")
        assert await store.get("ticket-info", code) == {"memo": "x"}

    @pytest.mark.asyncio
    async def test_skips_codes_that_exist(self):
        store = stub_store(exists=[True, True, True, False])
        generator = CodeGenerator(store, suffix_factory=sequential_suffixes())
        code = await generator.generate_code("alice", {})
        assert code == "alice-000004"
        taken = [c.args[1] for c in store.exists.await_args_list[:3]]
        assert code not in taken
        store.create.assert_awaited_once_with("ticket-info", "alice-000004", {})

    @pytest.mark.asyncio
    async def test_conflicting_claim_is_retried(self):
        store = stub_store(create=[False, True])
        generator = CodeGenerator(store, suffix_factory=sequential_suffixes())
        code = await generator.generate_code("alice", {})
        assert code == "alice-000002"
        assert store.create.await_count == 2

    @pytest.mark.asyncio
    async def test_stops_after_max_attempts(self):
        store = MagicMock()
        store.exists = AsyncMock(return_value=True)
        store.create = AsyncMock(return_value=True)
        generator = CodeGenerator(store, max_attempts=20)
        with pytest.raises(CodeSpaceExhausted):
            await generator.generate_code("alice", {})
        assert store.exists.await_count == 20
        store.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_collisions_below_cap_succeed(self):
        store = stub_store(exists=[True] * 19 + [False])
        generator = CodeGenerator(store, max_attempts=20)
        code = await generator.generate_code("alice", {})
        assert code.startswith("alice-")

    @pytest.mark.asyncio
    async def test_store_errors_are_not_retried(self):
        store = stub_store(exists=StoreFailure("down"))
        generator = CodeGenerator(store)
        with pytest.raises(StoreFailure):
            await generator.generate_code("alice", {})
        assert store.exists.await_count == 1

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            CodeGenerator(MemoryStore(), max_attempts=0)
