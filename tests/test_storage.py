from __future__ import annotations

import asyncio
from typing import Optional

import pytest

from srs_rewrite import (
    AddressTooLongError,
    AliasBridge,
    AliasStore,
    DBError,
    InMemoryAliasStore,
    OriginalAddress,
    SecretRing,
    StoreDirection,
)

ALICE = OriginalAddress("alice", "example.com")


class FailingStore(AliasStore):
    async def store(self, key: str, address: str) -> bool:
        raise ConnectionError("store is down")

    async def lookup(self, key: str) -> Optional[str]:
        raise ConnectionError("store is down")


class RefusingStore(AliasStore):
    async def store(self, key: str, address: str) -> bool:
        return False

    async def lookup(self, key: str) -> Optional[str]:
        return None


class SlowStore(AliasStore):
    async def store(self, key: str, address: str) -> bool:
        await asyncio.sleep(10)
        return True

    async def lookup(self, key: str) -> Optional[str]:
        await asyncio.sleep(10)
        return None


class CancellingStore(AliasStore):
    async def store(self, key: str, address: str) -> bool:
        raise asyncio.CancelledError()

    async def lookup(self, key: str) -> Optional[str]:
        raise asyncio.CancelledError()


class FixedStore(AliasStore):
    def __init__(self, result: str) -> None:
        self.result = result

    async def store(self, key: str, address: str) -> bool:
        return True

    async def lookup(self, key: str) -> Optional[str]:
        return self.result


@pytest.fixture
def ring() -> SecretRing:
    return SecretRing.build(["primary"])


async def test_memory_store_round_trip(memory_store: InMemoryAliasStore) -> None:
    assert await memory_store.lookup("KEY") is None
    assert await memory_store.store("KEY", "alice@example.com")
    assert await memory_store.lookup("KEY") == "alice@example.com"
    assert len(memory_store) == 1

    await memory_store.delete("KEY")
    assert await memory_store.lookup("KEY") is None


async def test_bridge_store_and_lookup(ring: SecretRing, memory_store: InMemoryAliasStore) -> None:
    bridge = AliasBridge(ring, forward=memory_store, reverse=memory_store)

    token = await bridge.store_mapping(ALICE)
    assert token == bridge.token_for(ALICE)
    assert len(token) == 16
    assert await memory_store.lookup(token) == "alice@example.com"

    assert await bridge.lookup_mapping(token, max_length=512) == ALICE


async def test_bridge_unset_directions(ring: SecretRing, memory_store: InMemoryAliasStore) -> None:
    bridge = AliasBridge(ring)

    with pytest.raises(DBError):
        await bridge.store_mapping(ALICE)
    with pytest.raises(DBError):
        await bridge.lookup_mapping("ABCDEFGHIJKLMNOP", max_length=512)

    bridge.set(StoreDirection.FORWARD, memory_store)
    assert bridge.get(StoreDirection.FORWARD) is memory_store
    assert bridge.get(StoreDirection.REVERSE) is None

    bridge.clear()
    assert bridge.get(StoreDirection.FORWARD) is None


async def test_bridge_store_failures_are_db_errors(ring: SecretRing) -> None:
    failing = AliasBridge(ring, forward=FailingStore(), reverse=FailingStore())
    with pytest.raises(DBError):
        await failing.store_mapping(ALICE)
    with pytest.raises(DBError):
        await failing.lookup_mapping("ABCDEFGHIJKLMNOP", max_length=512)

    refusing = AliasBridge(ring, forward=RefusingStore(), reverse=RefusingStore())
    with pytest.raises(DBError):
        await refusing.store_mapping(ALICE)
    with pytest.raises(DBError):
        await refusing.lookup_mapping("ABCDEFGHIJKLMNOP", max_length=512)


async def test_bridge_timeout_is_db_error(ring: SecretRing) -> None:
    bridge = AliasBridge(ring, forward=SlowStore(), reverse=SlowStore())

    with pytest.raises(DBError, match="timed out"):
        await bridge.store_mapping(ALICE, timeout=0.01)
    with pytest.raises(DBError, match="timed out"):
        await bridge.lookup_mapping("ABCDEFGHIJKLMNOP", max_length=512, timeout=0.01)


async def test_bridge_store_cancellation_is_db_error(ring: SecretRing) -> None:
    bridge = AliasBridge(ring, forward=CancellingStore(), reverse=CancellingStore())

    with pytest.raises(DBError, match="cancelled"):
        await bridge.store_mapping(ALICE)
    with pytest.raises(DBError, match="cancelled"):
        await bridge.lookup_mapping("ABCDEFGHIJKLMNOP", max_length=512)


async def test_caller_cancellation_propagates(ring: SecretRing) -> None:
    bridge = AliasBridge(ring, forward=SlowStore())

    task = asyncio.ensure_future(bridge.store_mapping(ALICE))
    await asyncio.sleep(0)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


async def test_lookup_length_budget(ring: SecretRing) -> None:
    bridge = AliasBridge(ring, reverse=FixedStore("alice@example.com"))

    assert await bridge.lookup_mapping("KEY", max_length=17) == ALICE
    with pytest.raises(AddressTooLongError):
        await bridge.lookup_mapping("KEY", max_length=16)


async def test_lookup_malformed_result(ring: SecretRing) -> None:
    bridge = AliasBridge(ring, reverse=FixedStore("not-an-address"))

    with pytest.raises(DBError, match="malformed"):
        await bridge.lookup_mapping("KEY", max_length=512)
