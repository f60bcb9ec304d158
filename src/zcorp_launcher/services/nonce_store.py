"""Replay protection nonce stores for signed requests."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from functools import lru_cache
from threading import Lock
from typing import Protocol

import redis
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from zcorp_launcher.models import UsedNonce

logger = logging.getLogger(__name__)

_MESSAGE_PREFIX_CHARS = 32


class NonceStoreError(RuntimeError):
    """Raised when the backing store of a nonce registry is unreachable."""


def derive_nonce(timestamp: int, caller_address: str, message: str) -> str:
    """Build the consumption token for a signed request.

    The address is lower-cased so letter-case variants of one address cannot
    yield distinct nonces for the same request.
    """
    return f"{timestamp}-{caller_address.lower()}-{message[:_MESSAGE_PREFIX_CHARS]}"


def nonce_timestamp(nonce: str) -> int:
    """Return the request timestamp embedded at the front of a nonce."""
    head, _, _ = nonce.partition("-")
    return int(head)


class NonceStore(Protocol):
    """Set of consumed nonces with age-based eviction."""

    def accept(self, nonce: str) -> bool:
        """Insert ``nonce``; return False if it is already resident."""
        ...

    def evict_older_than(self, max_age_seconds: int, now: int) -> int:
        """Drop nonces whose embedded timestamp is before ``now - max_age_seconds``."""
        ...


class InMemoryNonceStore:
    """Process-local nonce set guarded by a lock.

    A restart forgets every consumed nonce; the freshness window bounds how
    long such a gap is exploitable. With ``max_age_seconds`` set, ``accept``
    also evicts expired nonces, at most once every ``eviction_interval``
    seconds.
    """

    def __init__(
        self,
        max_age_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
        eviction_interval: float = 1.0,
    ) -> None:
        self._nonces: dict[str, int] = {}
        self._lock = Lock()
        self._max_age_seconds = max_age_seconds
        self._clock = clock
        self._eviction_interval = eviction_interval
        self._next_eviction = float("-inf")

    def __len__(self) -> int:
        with self._lock:
            return len(self._nonces)

    def __contains__(self, nonce: object) -> bool:
        with self._lock:
            return nonce in self._nonces

    def accept(self, nonce: str) -> bool:
        issued_at = nonce_timestamp(nonce)
        with self._lock:
            if self._max_age_seconds is not None:
                now = self._clock()
                if now >= self._next_eviction:
                    self._next_eviction = now + self._eviction_interval
                    self._evict_locked(int(now) - self._max_age_seconds)
            if nonce in self._nonces:
                return False
            self._nonces[nonce] = issued_at
            return True

    def evict_older_than(self, max_age_seconds: int, now: int) -> int:
        with self._lock:
            return self._evict_locked(now - max_age_seconds)

    def _evict_locked(self, cutoff: int) -> int:
        stale = [nonce for nonce, issued_at in self._nonces.items() if issued_at < cutoff]
        for nonce in stale:
            del self._nonces[nonce]
        return len(stale)


class RedisNonceStore:
    """Nonce set shared between processes through Redis.

    Acceptance is a single ``SET NX``; expiry is handled by key TTLs measured
    from the embedded timestamp, so explicit eviction is a no-op.
    """

    def __init__(
        self,
        client: redis.Redis,
        max_age_seconds: int,
        clock: Callable[[], float] = time.time,
        prefix: str = "nonce",
    ) -> None:
        self._redis = client
        self._max_age_seconds = max_age_seconds
        self._clock = clock
        self._prefix = prefix

    def accept(self, nonce: str) -> bool:
        remaining = nonce_timestamp(nonce) + self._max_age_seconds - int(self._clock())
        try:
            stored = self._redis.set(
                f"{self._prefix}:{nonce}", "1", nx=True, ex=max(1, remaining)
            )
        except redis.RedisError as exc:
            raise NonceStoreError(f"Redis nonce store unavailable: {exc}") from exc
        return bool(stored)

    def evict_older_than(self, max_age_seconds: int, now: int) -> int:
        return 0


class DatabaseNonceStore:
    """Durable nonce set backed by the ``used_nonce`` table."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def accept(self, nonce: str) -> bool:
        with self._session_factory() as session:
            session.add(UsedNonce(nonce=nonce, issued_at=nonce_timestamp(nonce)))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                return False
            except SQLAlchemyError as exc:
                session.rollback()
                raise NonceStoreError(f"Database nonce store unavailable: {exc}") from exc
        return True

    def evict_older_than(self, max_age_seconds: int, now: int) -> int:
        cutoff = now - max_age_seconds
        with self._session_factory() as session:
            try:
                result = session.execute(delete(UsedNonce).where(UsedNonce.issued_at < cutoff))
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                raise NonceStoreError(f"Database nonce sweep failed: {exc}") from exc
        return int(result.rowcount or 0)


class NonceSweeper:
    """Periodically evicts expired nonces in the background."""

    def __init__(
        self,
        store: NonceStore,
        max_age_seconds: int,
        interval_seconds: float,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.max_age_seconds = max_age_seconds
        self.interval_seconds = max(0.1, float(interval_seconds))
        self._clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    async def start(self) -> None:
        """Start the background sweep loop."""
        if self._task is None or self._task.done():
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    def sweep_once(self) -> int:
        removed = self.store.evict_older_than(self.max_age_seconds, int(self._clock()))
        if removed:
            logger.debug("Evicted %d expired nonces", removed)
        return removed

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await asyncio.to_thread(self.sweep_once)
            except NonceStoreError as e:
                logger.warning("NonceSweeper could not reach the nonce store: %s", e)
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue


@lru_cache(maxsize=1)
def get_nonce_store() -> NonceStore:
    """Return the process-wide nonce store selected by configuration."""
    from zcorp_launcher.core.settings import settings

    if settings.nonce_backend == "redis":
        client = redis.from_url(settings.redis_url)  # type: ignore[no-untyped-call]
        return RedisNonceStore(client, settings.nonce_max_age_seconds)
    if settings.nonce_backend == "database":
        from zcorp_launcher.db.session import SessionLocal

        return DatabaseNonceStore(SessionLocal)
    return InMemoryNonceStore(max_age_seconds=settings.nonce_max_age_seconds)
