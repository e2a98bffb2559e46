"""Nonce storage backends for challenge replay protection.

The verifier only depends on the `NonceStore` interface. Backends that can
delete-if-present atomically override `consume`; the default implementation
is a separate get followed by a delete, so two concurrent verifications of
the same nonce may both observe it before either removes it.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from threading import Lock

import redis

from scablanders_auth.core.errors import NonceStoreError
from scablanders_auth.core.settings import Settings, settings

logger = logging.getLogger(__name__)


def nonce_key(nonce: str, config: Settings | None = None) -> str:
    """Return the namespaced store key for `nonce`."""
    return f"{(config or settings).nonce_key_prefix}{nonce}"


class NonceStore(ABC):
    """Key/value capability consumed by the nonce issuer and verifier."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if missing or expired."""

    @abstractmethod
    def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        """Store `value` under `key`, optionally expiring after `ttl_seconds`."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove `key` if present."""

    def consume(self, key: str) -> bool:
        """Delete `key` and report whether it was present.

        Not atomic: a concurrent caller may consume the same key between the
        read and the delete.
        """
        if self.get(key) is None:
            return False
        self.delete(key)
        return True


class InMemoryNonceStore(NonceStore):
    """Process-local store guarded by a lock.

    Expired entries are dropped when read, and writes sweep the whole table
    at most once every `sweep_interval` seconds so abandoned nonces are freed.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        self._entries: dict[str, tuple[str, float | None]] = {}
        self._lock = Lock()
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval

    def _live_entry(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._entries[key]
            return None
        return value

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._live_entry(key)

    def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        now = self._clock()
        expires_at = now + ttl_seconds if ttl_seconds else None
        with self._lock:
            if now >= self._next_sweep:
                removed = self._remove_expired(now)
                if removed:
                    logger.debug("Removed %d expired nonces", removed)
            self._entries[key] = (value, expires_at)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def consume(self, key: str) -> bool:
        with self._lock:
            if self._live_entry(key) is None:
                return False
            del self._entries[key]
            return True

    def _remove_expired(self, now: float) -> int:
        expired = [
            key
            for key, (_, expires_at) in self._entries.items()
            if expires_at is not None and expires_at <= now
        ]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._sweep_interval
        return len(expired)

    def cleanup_expired(self) -> int:
        """Remove expired entries. Return count of removed entries."""
        with self._lock:
            removed = self._remove_expired(self._clock())
        if removed:
            logger.debug("Removed %d expired nonces", removed)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class RedisNonceStore(NonceStore):
    """Redis-backed store; `consume` uses GETDEL so a nonce is spent at most once."""

    def __init__(self, client: redis.Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> RedisNonceStore:
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> str | None:
        try:
            value = self._redis.get(key)
        except redis.RedisError as err:
            raise NonceStoreError(f"Nonce lookup failed: {err}") from err
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes) else str(value)

    def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        try:
            if ttl_seconds:
                self._redis.set(key, value, ex=int(ttl_seconds))
            else:
                self._redis.set(key, value)
        except redis.RedisError as err:
            raise NonceStoreError(f"Nonce write failed: {err}") from err

    def delete(self, key: str) -> None:
        try:
            self._redis.delete(key)
        except redis.RedisError as err:
            raise NonceStoreError(f"Nonce delete failed: {err}") from err

    def consume(self, key: str) -> bool:
        try:
            return self._redis.getdel(key) is not None
        except redis.RedisError as err:
            raise NonceStoreError(f"Nonce consume failed: {err}") from err


def build_nonce_store(config: Settings | None = None) -> NonceStore:
    """Build the nonce store for the configured backend."""
    config = config or settings
    if config.redis_url:
        logger.info("Using Redis nonce store")
        return RedisNonceStore.from_url(config.redis_url)
    logger.info("REDIS_URL not set; using in-memory nonce store")
    return InMemoryNonceStore()
