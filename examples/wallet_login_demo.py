#!/usr/bin/env python3
"""Demonstration of the wallet sign-in flow against an in-process app.

This script shows how to:
1. Request a nonce from the API
2. Sign the challenge with a throwaway wallet
3. Submit the signature and use the returned session token

Usage:
    python examples/wallet_login_demo.py
"""

import sys

from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi.testclient import TestClient

# Add the src directory to the path so we can import scablanders_auth modules
sys.path.insert(0, "src")

from scablanders_auth.core.settings import Settings
from scablanders_auth.main import create_app
from scablanders_auth.services.nonce import NonceIssuer
from scablanders_auth.services.nonce_store import InMemoryNonceStore


def demonstrate_login() -> int:
    """Walk through nonce -> sign -> verify -> authenticated request."""
    print("Scablanders wallet sign-in demonstration")
    print("=" * 50)

    config = Settings(SESSION_COOKIE_SECURE=False)
    store = InMemoryNonceStore()
    client = TestClient(create_app(config, nonce_store=store))
    wallet = Account.create()
    print(f"Wallet: {wallet.address}")

    nonce = client.get("/auth/nonce").json()["nonce"]
    print(f"Nonce: {nonce}")

    message = NonceIssuer(store, config).build_challenge(wallet.address, nonce)
    print("\nChallenge to sign:\n" + message + "\n")

    signed = Account.sign_message(encode_defunct(text=message), private_key=wallet.key)
    signature = "0x" + bytes(signed.signature).hex()

    result = client.post("/auth/verify", json={"message": message, "signature": signature}).json()
    print(f"Verify: {result.get('success')} {result.get('address') or result.get('error')}")
    if not result.get("success"):
        return 1

    replay = client.post("/auth/verify", json={"message": message, "signature": signature}).json()
    print(f"Replay: {replay}")

    client.cookies.clear()
    session = client.get("/auth/session", headers={"Authorization": f"Bearer {result['token']}"})
    print(f"Session: {session.status_code} {session.json()}")
    return 0


if __name__ == "__main__":
    sys.exit(demonstrate_login())
