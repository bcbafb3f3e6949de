"""Response caching and retry-with-backoff for external API calls."""

from __future__ import annotations

import asyncio
import json
import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, TypeVar

T = TypeVar("T")

DEFAULT_TTL = 24 * 60 * 60  # seconds
DEFAULT_MAX_RETRIES = 5
DEFAULT_MAX_BACKOFF = 30.0  # seconds


def make_cache_key(name: str, params: Any) -> str:
    """Build a deterministic cache key from an operation name and its params."""
    return f"{name}:{json.dumps(params, sort_keys=True, ensure_ascii=False)}"


def backoff_delay(
    attempt: int,
    *,
    rng: Callable[[], float] = random.random,
    cap: float = DEFAULT_MAX_BACKOFF,
) -> float:
    """Seconds to wait before retry ``attempt`` (exponential with jitter).

    The jitter factor is drawn from [0.5, 1.5), so the delay for attempt n
    lies in [2**n * 0.5, 2**n * 1.5] seconds, never above ``cap``.
    """
    return min(2**attempt * (0.5 + rng()), cap)


@dataclass
class CacheEntry:
    timestamp: float
    response: Any


class ResponseCache:
    """In-memory, process-lifetime cache with a fixed expiry window."""

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        """Return the cached response, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp >= self._ttl:
            del self._entries[key]
            return None
        return entry.response

    def put(self, key: str, value: Any, ts: float | None = None) -> None:
        self._entries[key] = CacheEntry(
            timestamp=self._clock() if ts is None else ts,
            response=value,
        )

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None


class ResilientExecutor:
    """Run async operations with a response cache and exponential backoff.

    Not safe for concurrent callers sharing a key: the cache is filled only
    after a success, so parallel misses each invoke the operation.
    """

    def __init__(
        self,
        cache: ResponseCache | None = None,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        max_backoff: float = DEFAULT_MAX_BACKOFF,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        rng: Callable[[], float] = random.random,
        logger: logging.Logger | None = None,
    ) -> None:
        self.cache = cache if cache is not None else ResponseCache()
        self._max_retries = max_retries
        self._max_backoff = max_backoff
        self._sleep = sleep
        self._rng = rng
        self._log = logger or logging.getLogger(__name__)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        cache_key: str | None = None,
        max_retries: int | None = None,
        timeout: float | None = None,
    ) -> T:
        """Return the cached result for ``cache_key`` or run ``operation``.

        Failures are retried up to ``max_retries`` times; after that the last
        exception is re-raised unchanged. ``timeout`` bounds the whole call
        including retries and raises ``asyncio.TimeoutError`` when exceeded.
        """
        if cache_key:
            cached = self.cache.get(cache_key)
            if cached is not None:
                self._log.debug("キャッシュを使用: %s", cache_key)
                return cached

        retries = self._max_retries if max_retries is None else max_retries
        run = self._run_with_retries(operation, cache_key, retries)
        if timeout is None:
            return await run
        return await asyncio.wait_for(run, timeout)

    async def _run_with_retries(
        self,
        operation: Callable[[], Awaitable[T]],
        cache_key: str | None,
        max_retries: int,
    ) -> T:
        retries = 0
        while True:
            try:
                result = await operation()
            except Exception as e:
                self._log.warning("API呼び出しエラー: %s", e)
                if retries >= max_retries:
                    self._log.error("最大リトライ回数に達しました (%d)", max_retries)
                    raise
                retries += 1
                delay = backoff_delay(retries, rng=self._rng, cap=self._max_backoff)
                self._log.info(
                    "%.1f 秒後にリトライします (%d/%d)", delay, retries, max_retries
                )
                await self._sleep(delay)
                continue

            if cache_key:
                self.cache.put(cache_key, result)
            return result
