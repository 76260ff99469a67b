"""
Ephemeral keyed store – short-lived OTP challenges and counters.

Two implementations of the same contract:

  • RedisStore  – production backend; every compound operation is a single
                  server-side Lua script, so it is atomic across processes.
  • MemoryStore – single-process fallback for local development and tests;
                  atomicity comes from one asyncio.Lock per instance.

Every Redis call is bounded by a short per-call timeout so a degraded store
fails fast with StoreUnavailable instead of hanging the request.

Usage::

    store = RedisStore.from_url("redis://localhost:6379/0", timeout=2.0)
    count = await store.incr_with_expiry("rate_limit:+15551234567", 60)
    await store.close()
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Protocol, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError

from otp_auth.errors import StoreUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EphemeralStore(Protocol):
    """String key/value store with store-enforced expiry."""

    async def set(self, key: str, value: str, ttl: float) -> None: ...

    async def get(self, key: str) -> str | None: ...

    async def delete(self, key: str) -> None: ...

    async def incr_with_expiry(self, key: str, ttl: float) -> int: ...

    async def delete_if_equals(self, key: str, value: str) -> bool: ...

    async def ping(self) -> None: ...

    async def close(self) -> None: ...


# ══════════════════════════════════════════════════════════════════════════
#                              REDIS
# ══════════════════════════════════════════════════════════════════════════

# Fixed window: the expiry is set by the first INCR only and later INCRs
# leave it alone, so the window never slides forward. A counter that
# somehow lost its TTL gets one again instead of living forever.
_INCR_WITH_EXPIRY = """
local count = redis.call('INCR', KEYS[1])
if count == 1 or redis.call('PTTL', KEYS[1]) < 0 then
    redis.call('PEXPIRE', KEYS[1], ARGV[1])
end
return count
"""

_DELETE_IF_EQUALS = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


def _ms(seconds: float) -> int:
    return max(1, int(seconds * 1000))


class RedisStore:
    """EphemeralStore backed by redis.asyncio."""

    def __init__(self, client: redis.Redis, *, timeout: float = 2.0) -> None:
        self._client = client
        self._timeout = timeout
        self._incr_script = client.register_script(_INCR_WITH_EXPIRY)
        self._delete_if_equals_script = client.register_script(_DELETE_IF_EQUALS)

    @classmethod
    def from_url(cls, url: str, *, timeout: float = 2.0) -> RedisStore:
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        return cls(client, timeout=timeout)

    async def _call(self, op: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, self._timeout)
        except (RedisError, OSError, asyncio.TimeoutError) as exc:
            logger.warning("Redis %s failed: %r", op, exc)
            raise StoreUnavailable(f"Redis {op} failed") from exc

    async def set(self, key: str, value: str, ttl: float) -> None:
        await self._call("SET", self._client.set(key, value, px=_ms(ttl)))

    async def get(self, key: str) -> str | None:
        return await self._call("GET", self._client.get(key))

    async def delete(self, key: str) -> None:
        await self._call("DEL", self._client.delete(key))

    async def incr_with_expiry(self, key: str, ttl: float) -> int:
        count = await self._call(
            "INCR", self._incr_script(keys=[key], args=[_ms(ttl)])
        )
        return int(count)

    async def delete_if_equals(self, key: str, value: str) -> bool:
        deleted = await self._call(
            "DELIFEQ", self._delete_if_equals_script(keys=[key], args=[value])
        )
        return bool(deleted)

    async def ping(self) -> None:
        await self._call("PING", self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("Redis connection closed")


# ══════════════════════════════════════════════════════════════════════════
#                              IN-MEMORY
# ══════════════════════════════════════════════════════════════════════════


class MemoryStore:
    """
    In-process EphemeralStore.

    Entries expire lazily on access; a sweep drops every expired entry at
    most once per *sweep_interval* seconds so abandoned keys do not pile up.
    The *clock* is injectable so tests can move time forward.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        self._data: dict[str, tuple[str, float | None]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._last_sweep = clock()

    # ── Internals (caller holds the lock) ──────────────────────────────

    def _live(self, key: str, now: float) -> str | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= now:
            del self._data[key]
            return None
        return value

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        expired = [
            k for k, (_, exp) in self._data.items() if exp is not None and exp <= now
        ]
        for k in expired:
            del self._data[k]
        self._last_sweep = now
        if expired:
            logger.debug("MemoryStore sweep dropped %d expired keys", len(expired))

    # ── Contract ───────────────────────────────────────────────────────

    async def set(self, key: str, value: str, ttl: float) -> None:
        async with self._lock:
            now = self._clock()
            self._maybe_sweep(now)
            self._data[key] = (value, now + ttl)

    async def get(self, key: str) -> str | None:
        async with self._lock:
            return self._live(key, self._clock())

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    async def incr_with_expiry(self, key: str, ttl: float) -> int:
        async with self._lock:
            now = self._clock()
            self._maybe_sweep(now)
            current = self._live(key, now)
            if current is None:
                self._data[key] = ("1", now + ttl)
                return 1
            _, expires_at = self._data[key]
            count = int(current) + 1
            self._data[key] = (str(count), expires_at if expires_at is not None else now + ttl)
            return count

    async def delete_if_equals(self, key: str, value: str) -> bool:
        async with self._lock:
            if self._live(key, self._clock()) != value:
                return False
            del self._data[key]
            return True

    async def ping(self) -> None:
        return None

    async def close(self) -> None:
        async with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
