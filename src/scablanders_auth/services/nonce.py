"""Nonce issuance for the wallet sign-in handshake."""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime

from scablanders_auth.core.settings import Settings, settings
from scablanders_auth.services.challenge import ChallengeMessage
from scablanders_auth.services.nonce_store import NonceStore, nonce_key
from scablanders_auth.utils.time import Clock, utcnow

logger = logging.getLogger(__name__)

NONCE_LENGTH = 17
NONCE_ALPHABET = string.ascii_letters + string.digits
NONCE_STORE_VALUE = "valid"


def generate_nonce() -> str:
    """Return a fresh alphanumeric nonce drawn from a CSPRNG."""
    return "".join(secrets.choice(NONCE_ALPHABET) for _ in range(NONCE_LENGTH))


@dataclass(frozen=True)
class IssuedNonce:
    """A stored nonce and the sign-in prompt shown to the player."""

    nonce: str
    message: str


class NonceIssuer:
    """Generate single-use nonces and the challenge text clients must sign."""

    def __init__(
        self,
        store: NonceStore,
        config: Settings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._settings = config or settings
        self._clock = clock

    def issue_nonce(self) -> IssuedNonce:
        """Create and persist a nonce.

        The nonce is written to the store before this returns, so a
        verification racing the response still finds it.

        Raises:
            NonceStoreError: If the store write fails.
        """
        nonce = generate_nonce()
        self._store.put(nonce_key(nonce, self._settings), NONCE_STORE_VALUE, self._settings.nonce_ttl_seconds)
        logger.info("Issued sign-in nonce")
        return IssuedNonce(nonce=nonce, message=self.prompt_for(nonce))

    @staticmethod
    def prompt_for(nonce: str) -> str:
        """Return the human-readable sign-in prompt embedding `nonce`."""
        return (
            "Welcome to Scablanders!\n\n"
            "Sign this message to authenticate with your wallet.\n\n"
            f"Nonce: {nonce}"
        )

    def build_challenge(
        self,
        address: str,
        nonce: str,
        issued_at: datetime | None = None,
    ) -> str:
        """Render the full sign-in challenge for `address` using the configured domain.

        Args:
            address: Wallet address that will sign the message.
            nonce: A nonce previously returned by `issue_nonce`.
            issued_at: Issuance time; defaults to now.

        Returns:
            The exact text the wallet should sign.
        """
        message = ChallengeMessage(
            domain=self._settings.siwe_domain,
            address=address,
            statement=self._settings.siwe_statement,
            uri=self._settings.siwe_uri,
            version="1",
            chain_id=self._settings.siwe_chain_id,
            nonce=nonce,
            issued_at=issued_at or self._clock(),
        )
        return message.prepare_message()
