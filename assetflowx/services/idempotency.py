"""Idempotency-Key replay cache for the mutating endpoints.

A client that retries a POST with the same ``Idempotency-Key`` inside the
replay window gets the response of the first successful attempt back,
verbatim, and nothing is executed a second time.

  first call:   key unseen → run operation → store (response, now) → return
  retry:        key seen, age < window → return stored response
  late retry:   key seen, age >= window → run operation again, overwrite

Only successful responses are stored.  An operation that raises leaves no
record, so a retry after a failure re-attempts the operation.

Once the operation has returned, its mutation is committed and the client
gets the response even if writing the record then fails (Redis down).  That
failure is logged; the price is that a retry under the same key runs again.
A failed lookup, on the other hand, raises before anything is executed.

The cache may be shared across instances (Redis) while the order and
credential ledgers are process-local.  A replay on another instance returns
the first response, but the ids in it only resolve on the instance that
ran the operation, so deployments with more than one instance need sticky
routing per client.

Keys are namespaced by operation scope ("orders.create", ...) so a key
reused against a different endpoint never replays a foreign response.

The gate does not lock anything itself: callers run it while holding the
lock that guards the operation's store mutations, which makes
check → execute → store a single atomic step.
"""

from __future__ import annotations

import copy
import datetime
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from redis.exceptions import RedisError

from assetflowx.core.clock import Clock, utcnow
from assetflowx.core.config import SETTINGS
from assetflowx.core.metrics import IDEMPOTENCY_LOOKUPS
from assetflowx.db.redis import redis_pool

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IdempotencyRecord:
    key: str
    response: dict[str, Any]
    timestamp: datetime.datetime

    def is_fresh(self, now: datetime.datetime, window: datetime.timedelta) -> bool:
        return now - self.timestamp < window


@runtime_checkable
class IdempotencyStore(Protocol):
    async def get(self, key: str) -> IdempotencyRecord | None:
        """Return the stored record, stale or not.  None if never stored."""
        ...

    async def set(self, record: IdempotencyRecord) -> None: ...

    async def clear(self) -> None: ...


class InMemoryIdempotencyStore:
    """Process-local store.  Stale records are ignored, never evicted."""

    def __init__(self) -> None:
        self._records: dict[str, IdempotencyRecord] = {}

    async def get(self, key: str) -> IdempotencyRecord | None:
        return self._records.get(key)

    async def set(self, record: IdempotencyRecord) -> None:
        self._records[record.key] = record

    async def clear(self) -> None:
        self._records.clear()


class RedisIdempotencyStore:
    """Redis-backed store shared by every API instance.

    The Redis TTL only does housekeeping; freshness is still decided from
    the stored timestamp, so both backends agree on the window.
    """

    _PREFIX = "idempotency:"

    def __init__(self, redis_client, ttl_seconds: int) -> None:
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds

    async def get(self, key: str) -> IdempotencyRecord | None:
        raw = await self._redis.get(f"{self._PREFIX}{key}")
        if raw is None:
            return None
        data = json.loads(raw)
        return IdempotencyRecord(
            key=data["key"],
            response=data["response"],
            timestamp=datetime.datetime.fromisoformat(data["timestamp"]),
        )

    async def set(self, record: IdempotencyRecord) -> None:
        payload = json.dumps(
            {
                "key": record.key,
                "response": record.response,
                "timestamp": record.timestamp.isoformat(),
            }
        )
        await self._redis.set(f"{self._PREFIX}{record.key}", payload, ex=self._ttl_seconds)

    async def clear(self) -> None:
        # SCAN, not KEYS: KEYS blocks the server while it walks the keyspace.
        cursor = 0
        while True:
            cursor, keys = await self._redis.scan(
                cursor, match=f"{self._PREFIX}*", count=100
            )
            if keys:
                await self._redis.delete(*keys)
            if cursor == 0:
                break


class IdempotencyGate:
    def __init__(
        self,
        store: IdempotencyStore,
        *,
        ttl_seconds: int,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._window = datetime.timedelta(seconds=ttl_seconds)
        self.clock = clock

    @property
    def store(self) -> IdempotencyStore:
        return self._store

    async def run(
        self,
        scope: str,
        key: str | None,
        operation: Callable[[], dict[str, Any]],
    ) -> dict[str, Any]:
        """Run ``operation`` at most once per (scope, key) inside the window."""
        if not key:
            return operation()

        store_key = f"{scope}:{key}"
        record = await self._store.get(store_key)
        if record is not None:
            if record.is_fresh(self.clock(), self._window):
                IDEMPOTENCY_LOOKUPS.labels(result="hit").inc()
                logger.info(
                    "Idempotent replay scope=%s",
                    scope,
                    extra={"idempotency_key": key},
                )
                return copy.deepcopy(record.response)
            IDEMPOTENCY_LOOKUPS.labels(result="expired").inc()
            logger.debug("Idempotency record expired scope=%s key=%s", scope, key)
        else:
            IDEMPOTENCY_LOOKUPS.labels(result="miss").inc()

        # Errors propagate before anything is stored.
        response = operation()

        try:
            await self._store.set(
                IdempotencyRecord(
                    key=store_key,
                    response=copy.deepcopy(response),
                    timestamp=self.clock(),
                )
            )
        except (RedisError, OSError):
            # The mutation is committed; the response goes out regardless.
            logger.exception(
                "Idempotency record not stored scope=%s",
                scope,
                extra={"idempotency_key": key},
            )
        return response


# Shared by every service: Redis when configured, else process-local.
if redis_pool is not None:
    idempotency_store: IdempotencyStore = RedisIdempotencyStore(
        redis_pool, SETTINGS.idempotency_ttl_seconds
    )
else:
    idempotency_store = InMemoryIdempotencyStore()
