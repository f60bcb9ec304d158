from __future__ import annotations

import asyncio
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest
import redis
from sqlalchemy import select
from sqlalchemy.orm import Session

from tests.conftest import NOW, FakeClock
from zcorp_launcher.models import UsedNonce
from zcorp_launcher.services.nonce_store import (
    DatabaseNonceStore,
    InMemoryNonceStore,
    NonceStoreError,
    NonceSweeper,
    RedisNonceStore,
    derive_nonce,
    nonce_timestamp,
)

ADDRESS = "0xAbCdEf0123456789aBcDeF0123456789AbCdEf01"


def test_derive_nonce_uses_timestamp_lowercased_address_and_message_prefix() -> None:
    message = "x" * 40
    nonce = derive_nonce(NOW, ADDRESS, message)

    assert nonce == f"{NOW}-{ADDRESS.lower()}-{'x' * 32}"
    assert nonce_timestamp(nonce) == NOW


def test_derive_nonce_ignores_address_letter_case() -> None:
    upper = "0x" + ADDRESS[2:].upper()
    assert derive_nonce(NOW, ADDRESS.lower(), "hello") == derive_nonce(NOW, upper, "hello")


def test_in_memory_store_accepts_each_nonce_once() -> None:
    store = InMemoryNonceStore()
    nonce = derive_nonce(NOW, ADDRESS, "hello")

    assert store.accept(nonce) is True
    assert store.accept(nonce) is False
    assert nonce in store
    assert len(store) == 1


def test_in_memory_store_accepts_exactly_one_of_concurrent_duplicates() -> None:
    store = InMemoryNonceStore()
    nonce = derive_nonce(NOW, ADDRESS, "race")
    workers = 16
    barrier = Barrier(workers)

    def attempt() -> bool:
        barrier.wait()
        return store.accept(nonce)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda _: attempt(), range(workers)))

    assert results.count(True) == 1


def test_evict_older_than_drops_only_expired_nonces() -> None:
    store = InMemoryNonceStore()
    old = derive_nonce(NOW - 601, ADDRESS, "old")
    edge = derive_nonce(NOW - 600, ADDRESS, "edge")
    fresh = derive_nonce(NOW, ADDRESS, "fresh")
    for nonce in (old, edge, fresh):
        store.accept(nonce)

    removed = store.evict_older_than(600, NOW)

    assert removed == 1
    assert old not in store
    assert edge in store
    assert fresh in store


def test_in_memory_store_evicts_lazily_on_accept() -> None:
    clock = FakeClock()
    store = InMemoryNonceStore(max_age_seconds=600, clock=clock)
    stale = derive_nonce(NOW, ADDRESS, "stale")
    store.accept(stale)

    clock.advance(601)
    store.accept(derive_nonce(NOW + 601, ADDRESS, "new"))

    assert stale not in store
    assert len(store) == 1


def test_in_memory_store_evicts_at_most_once_per_interval(mocker) -> None:
    clock = FakeClock()
    store = InMemoryNonceStore(max_age_seconds=600, clock=clock, eviction_interval=5)
    evict = mocker.spy(store, "_evict_locked")

    for index in range(10):
        store.accept(derive_nonce(NOW, ADDRESS, f"burst-{index}"))
    assert evict.call_count == 1

    clock.advance(5)
    store.accept(derive_nonce(NOW + 5, ADDRESS, "later"))
    assert evict.call_count == 2
    assert len(store) == 11


def test_redis_store_uses_set_nx_with_remaining_ttl(mocker) -> None:
    client = mocker.MagicMock(spec=redis.Redis)
    client.set.return_value = True
    store = RedisNonceStore(client, max_age_seconds=600, clock=FakeClock(NOW + 100))
    nonce = derive_nonce(NOW, ADDRESS, "hello")

    assert store.accept(nonce) is True
    client.set.assert_called_once_with(f"nonce:{nonce}", "1", nx=True, ex=500)


def test_redis_store_reports_replay_when_key_exists(mocker) -> None:
    client = mocker.MagicMock(spec=redis.Redis)
    client.set.return_value = None
    store = RedisNonceStore(client, max_age_seconds=600, clock=FakeClock())

    assert store.accept(derive_nonce(NOW, ADDRESS, "hello")) is False


def test_redis_store_wraps_connection_errors(mocker) -> None:
    client = mocker.MagicMock(spec=redis.Redis)
    client.set.side_effect = redis.ConnectionError("down")
    store = RedisNonceStore(client, max_age_seconds=600, clock=FakeClock())

    with pytest.raises(NonceStoreError):
        store.accept(derive_nonce(NOW, ADDRESS, "hello"))


def test_database_store_rejects_duplicates(
    session_factory: Callable[[], Session], db_session: Session
) -> None:
    store = DatabaseNonceStore(session_factory)
    nonce = derive_nonce(NOW, ADDRESS, "hello")

    assert store.accept(nonce) is True
    assert store.accept(nonce) is False

    stored = db_session.scalars(select(UsedNonce)).all()
    assert [(row.nonce, row.issued_at) for row in stored] == [(nonce, NOW)]


def test_database_store_eviction(
    session_factory: Callable[[], Session], db_session: Session
) -> None:
    store = DatabaseNonceStore(session_factory)
    store.accept(derive_nonce(NOW - 700, ADDRESS, "old"))
    store.accept(derive_nonce(NOW, ADDRESS, "fresh"))

    assert store.evict_older_than(600, NOW) == 1
    remaining = db_session.scalars(select(UsedNonce.issued_at)).all()
    assert remaining == [NOW]


def test_sweep_once_evicts_with_configured_age() -> None:
    store = InMemoryNonceStore()
    store.accept(derive_nonce(NOW - 601, ADDRESS, "old"))
    store.accept(derive_nonce(NOW, ADDRESS, "fresh"))
    sweeper = NonceSweeper(store, max_age_seconds=600, interval_seconds=60, clock=FakeClock())

    assert sweeper.sweep_once() == 1
    assert len(store) == 1


@pytest.mark.asyncio
async def test_sweeper_runs_in_background_until_stopped() -> None:
    store = InMemoryNonceStore()
    store.accept(derive_nonce(NOW - 601, ADDRESS, "old"))
    sweeper = NonceSweeper(store, max_age_seconds=600, interval_seconds=0.1, clock=FakeClock())

    await sweeper.start()
    for _ in range(50):
        if len(store) == 0:
            break
        await asyncio.sleep(0.02)
    await sweeper.stop()

    assert len(store) == 0


@pytest.mark.asyncio
async def test_sweeper_keeps_running_when_store_is_unreachable(mocker) -> None:
    store = mocker.MagicMock()
    store.evict_older_than.side_effect = NonceStoreError("down")
    sweeper = NonceSweeper(store, max_age_seconds=600, interval_seconds=0.1, clock=FakeClock())

    await sweeper.start()
    await asyncio.sleep(0.25)
    await sweeper.stop()

    assert store.evict_older_than.call_count >= 2
