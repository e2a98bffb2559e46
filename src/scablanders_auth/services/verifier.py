"""Verification of signed sign-in challenges."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from scablanders_auth.core.errors import AuthError
from scablanders_auth.core.security import SigningContext, normalize_address
from scablanders_auth.core.settings import Settings, settings
from scablanders_auth.services.challenge import ChallengeMessage
from scablanders_auth.services.nonce_store import NonceStore, nonce_key
from scablanders_auth.utils.time import Clock, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a challenge verification."""

    success: bool
    address: str | None = None
    error: AuthError | None = None

    @classmethod
    def ok(cls, address: str) -> VerificationResult:
        return cls(success=True, address=normalize_address(address))

    @classmethod
    def fail(cls, error: AuthError) -> VerificationResult:
        return cls(success=False, error=error)

    def to_payload(self) -> dict[str, object]:
        """Return the JSON body reported to the client."""
        if self.success:
            return {"success": True, "address": self.address}
        error = self.error or AuthError.VERIFICATION_FAILED
        return {"success": False, "error": error.detail}


class SignatureVerifier:
    """Check a signed challenge and consume its nonce exactly once.

    Checks run in a fixed order and the first failure is reported:
    message parsing, nonce existence, signature, then freshness. The store is
    only mutated when every check passes.
    """

    def __init__(
        self,
        store: NonceStore,
        context: SigningContext,
        config: Settings | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._store = store
        self._context = context
        self._settings = config or settings
        self._clock = clock

    @property
    def max_message_age(self) -> timedelta:
        return timedelta(seconds=self._settings.message_max_age_seconds)

    def verify(self, message: str, signature: str) -> VerificationResult:
        """Verify `signature` over `message` and consume the embedded nonce.

        Unexpected errors (for example an unreachable store) are logged and
        reported as a generic failure without internal detail.
        """
        try:
            return self._verify(message, signature)
        except Exception:
            logger.error("Unexpected error during challenge verification", exc_info=True)
            return VerificationResult.fail(AuthError.VERIFICATION_FAILED)

    def _verify(self, message: str, signature: str) -> VerificationResult:
        try:
            challenge = ChallengeMessage.parse(message)
        except ValueError as err:
            logger.warning("Rejected unparseable challenge message: %s", err)
            return VerificationResult.fail(AuthError.INVALID_MESSAGE)

        key = nonce_key(challenge.nonce, self._settings)
        if self._store.get(key) is None:
            logger.warning("Rejected challenge with unknown nonce for %s", challenge.address)
            return VerificationResult.fail(AuthError.INVALID_NONCE)

        if not self._context.verify(challenge.address, message, signature):
            logger.warning("Rejected challenge with invalid signature for %s", challenge.address)
            return VerificationResult.fail(AuthError.INVALID_SIGNATURE)

        now = self._clock()
        if challenge.issued_at is not None and now - challenge.issued_at > self.max_message_age:
            logger.warning("Rejected stale challenge for %s", challenge.address)
            return VerificationResult.fail(AuthError.MESSAGE_EXPIRED)
        if challenge.expiration_time is not None and challenge.expiration_time <= now:
            logger.warning("Rejected challenge past its expiration time for %s", challenge.address)
            return VerificationResult.fail(AuthError.MESSAGE_EXPIRED)
        if challenge.not_before is not None and challenge.not_before > now:
            logger.warning("Rejected challenge that is not yet valid for %s", challenge.address)
            return VerificationResult.fail(AuthError.INVALID_MESSAGE)

        if not self._store.consume(key):
            # Another request spent the nonce between the lookup and now.
            logger.warning("Nonce already consumed for %s", challenge.address)
            return VerificationResult.fail(AuthError.INVALID_NONCE)

        logger.info("Verified wallet sign-in for %s", normalize_address(challenge.address))
        return VerificationResult.ok(challenge.address)

