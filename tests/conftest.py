# tests/conftest.py
from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from typing import Any

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from fastapi import FastAPI
from fastapi.testclient import TestClient

from scablanders_auth.core.security import SigningContext
from scablanders_auth.core.settings import Settings
from scablanders_auth.main import create_app
from scablanders_auth.services.nonce import NonceIssuer
from scablanders_auth.services.nonce_store import InMemoryNonceStore
from scablanders_auth.services.session import SessionCodec
from scablanders_auth.services.verifier import SignatureVerifier

TEST_SECRET = "test-session-secret"


def sign_text(wallet: LocalAccount, text: str) -> str:
    """Return a 0x-prefixed personal_sign signature of `text` by `wallet`."""
    signed = Account.sign_message(encode_defunct(text=text), private_key=wallet.key)
    return "0x" + bytes(signed.signature).hex()


def flip_hex_char(signature: str, index: int = 10) -> str:
    """Return `signature` with one hex digit changed."""
    chars = list(signature)
    chars[index] = "1" if chars[index] != "1" else "2"
    return "".join(chars)


@pytest.fixture()
def test_settings() -> Settings:
    """Settings with insecure cookies so the test client echoes them back."""
    return Settings(SESSION_COOKIE_SECURE=False, REDIS_URL=None, SESSION_SECRET_KEY=None)


@pytest.fixture()
def nonce_store() -> InMemoryNonceStore:
    return InMemoryNonceStore()


@pytest.fixture(scope="session")
def signing_context() -> SigningContext:
    return SigningContext()


@pytest.fixture()
def issuer(nonce_store: InMemoryNonceStore, test_settings: Settings) -> NonceIssuer:
    return NonceIssuer(nonce_store, test_settings)


@pytest.fixture()
def verifier(
    nonce_store: InMemoryNonceStore,
    signing_context: SigningContext,
    test_settings: Settings,
) -> SignatureVerifier:
    return SignatureVerifier(nonce_store, signing_context, test_settings)


@pytest.fixture()
def codec() -> SessionCodec:
    return SessionCodec()


@pytest.fixture()
def signed_codec() -> SessionCodec:
    return SessionCodec(TEST_SECRET)


@pytest.fixture()
def wallet() -> LocalAccount:
    return Account.create()


@pytest.fixture()
def other_wallet() -> LocalAccount:
    return Account.create()


@pytest.fixture()
def signed_challenge(issuer: NonceIssuer, wallet: LocalAccount):
    """Issue a nonce and return a factory producing a signed challenge for it."""

    def _build(issued_at: datetime | None = None, signer: LocalAccount | None = None) -> dict[str, Any]:
        issued = issuer.issue_nonce()
        message = issuer.build_challenge(wallet.address, issued.nonce, issued_at=issued_at)
        return {
            "nonce": issued.nonce,
            "message": message,
            "signature": sign_text(signer or wallet, message),
        }

    return _build


@pytest.fixture()
def app(test_settings: Settings, nonce_store: InMemoryNonceStore) -> FastAPI:
    return create_app(test_settings, nonce_store=nonce_store)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client
