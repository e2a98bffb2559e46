# tests/services/test_nonce.py
"""Tests for nonce issuance and the nonce store backends."""

from __future__ import annotations

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest
import redis

from scablanders_auth.core.errors import NonceStoreError
from scablanders_auth.core.settings import Settings
from scablanders_auth.services.challenge import ChallengeMessage
from scablanders_auth.services.nonce import NONCE_LENGTH, NonceIssuer, generate_nonce
from scablanders_auth.services.nonce_store import (
    InMemoryNonceStore,
    NonceStore,
    RedisNonceStore,
    build_nonce_store,
    nonce_key,
)


class FakeMonotonic:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class TestNonceIssuer:
    def test_generated_nonces_are_alphanumeric_and_distinct(self) -> None:
        nonces = {generate_nonce() for _ in range(200)}
        assert len(nonces) == 200
        assert all(len(n) == NONCE_LENGTH and n.isalnum() for n in nonces)

    def test_issue_persists_before_returning(self, issuer, nonce_store) -> None:
        issued = issuer.issue_nonce()

        assert nonce_store.get(nonce_key(issued.nonce)) == "valid"
        assert issued.nonce in issued.message
        assert issued.message.startswith("Welcome to Scablanders!")

    def test_issue_writes_with_configured_ttl(self) -> None:
        store = MagicMock(spec=NonceStore)
        issued = NonceIssuer(store, Settings(NONCE_TTL_SECONDS=120)).issue_nonce()
        store.put.assert_called_once_with(f"nonce:{issued.nonce}", "valid", 120)

    def test_key_prefix_follows_config(self) -> None:
        store = MagicMock(spec=NonceStore)
        config = Settings(NONCE_KEY_PREFIX="siwe:")
        issued = NonceIssuer(store, config).issue_nonce()

        assert nonce_key(issued.nonce, config) == f"siwe:{issued.nonce}"
        store.put.assert_called_once_with(f"siwe:{issued.nonce}", "valid", config.nonce_ttl_seconds)

    def test_store_failure_propagates(self) -> None:
        store = MagicMock(spec=NonceStore)
        store.put.side_effect = NonceStoreError("down")
        with pytest.raises(NonceStoreError):
            NonceIssuer(store).issue_nonce()

    def test_build_challenge_uses_configured_fields(self, issuer, wallet, test_settings) -> None:
        issued_at = datetime(2024, 1, 2, 3, 4, 5, tzinfo=UTC)
        text = issuer.build_challenge(wallet.address, "abcdefgh12345678", issued_at=issued_at)
        message = ChallengeMessage.parse(text)

        assert message.domain == test_settings.siwe_domain
        assert message.uri == test_settings.siwe_uri
        assert message.chain_id == test_settings.siwe_chain_id
        assert message.statement == test_settings.siwe_statement
        assert message.address == wallet.address
        assert message.issued_at == issued_at


class TestInMemoryNonceStore:
    def test_get_put_delete(self) -> None:
        store = InMemoryNonceStore()
        store.put("nonce:a", "valid", 60)
        assert store.get("nonce:a") == "valid"
        store.delete("nonce:a")
        assert store.get("nonce:a") is None
        store.delete("nonce:a")

    def test_entries_expire(self) -> None:
        clock = FakeMonotonic()
        store = InMemoryNonceStore(clock=clock)
        store.put("nonce:a", "valid", 300)

        clock.now += 299
        assert store.get("nonce:a") == "valid"
        clock.now += 1
        assert store.get("nonce:a") is None
        assert store.consume("nonce:a") is False

    def test_consume_only_once(self) -> None:
        store = InMemoryNonceStore()
        store.put("nonce:a", "valid", 60)
        assert store.consume("nonce:a") is True
        assert store.consume("nonce:a") is False

    def test_cleanup_expired(self) -> None:
        clock = FakeMonotonic()
        store = InMemoryNonceStore(clock=clock)
        store.put("nonce:old", "valid", 10)
        store.put("nonce:new", "valid", 100)
        store.put("nonce:forever", "valid")

        clock.now += 50
        assert store.cleanup_expired() == 1
        assert len(store) == 2

    def test_writes_sweep_abandoned_entries(self) -> None:
        clock = FakeMonotonic()
        store = InMemoryNonceStore(clock=clock, sweep_interval=60)
        for i in range(500):
            store.put(f"nonce:{i}", "valid", 300)

        clock.now += 10_000
        store.put("nonce:fresh", "valid", 300)

        assert len(store) == 1
        assert store.get("nonce:fresh") == "valid"

    def test_sweep_waits_for_interval(self) -> None:
        clock = FakeMonotonic()
        store = InMemoryNonceStore(clock=clock, sweep_interval=60)
        store.put("nonce:a", "valid", 10)

        clock.now += 30
        store.put("nonce:b", "valid", 10)
        assert len(store) == 2

        clock.now += 30
        store.put("nonce:c", "valid", 10)
        assert len(store) == 1


class TestRedisNonceStore:
    def test_put_sets_expiry(self) -> None:
        client = MagicMock(spec=redis.Redis)
        RedisNonceStore(client).put("nonce:a", "valid", 300)
        client.set.assert_called_once_with("nonce:a", "valid", ex=300)

    def test_get_decodes_bytes(self) -> None:
        client = MagicMock(spec=redis.Redis)
        client.get.return_value = b"valid"
        assert RedisNonceStore(client).get("nonce:a") == "valid"

    def test_get_missing(self) -> None:
        client = MagicMock(spec=redis.Redis)
        client.get.return_value = None
        assert RedisNonceStore(client).get("nonce:a") is None

    def test_consume_uses_getdel(self) -> None:
        client = MagicMock(spec=redis.Redis)
        client.getdel.side_effect = ["valid", None]
        store = RedisNonceStore(client)

        assert store.consume("nonce:a") is True
        assert store.consume("nonce:a") is False
        client.delete.assert_not_called()

    @pytest.mark.parametrize("method, args", [("get", ()), ("put", ("valid", 5)), ("delete", ()), ("consume", ())])
    def test_redis_errors_become_store_errors(self, method: str, args: tuple) -> None:
        client = MagicMock(spec=redis.Redis)
        for name in ("get", "set", "delete", "getdel"):
            getattr(client, name).side_effect = redis.ConnectionError("refused")

        with pytest.raises(NonceStoreError):
            getattr(RedisNonceStore(client), method)("nonce:a", *args)


def test_build_nonce_store_defaults_to_memory() -> None:
    assert isinstance(build_nonce_store(Settings(REDIS_URL=None)), InMemoryNonceStore)


def test_build_nonce_store_uses_redis_url() -> None:
    store = build_nonce_store(Settings(REDIS_URL="redis://localhost:6379/0"))
    assert isinstance(store, RedisNonceStore)
