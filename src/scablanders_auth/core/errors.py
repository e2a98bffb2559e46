"""Error taxonomy for the authentication boundary."""

from __future__ import annotations

from enum import StrEnum


class AuthError(StrEnum):
    """Expected authentication failures, returned as results rather than raised."""

    INVALID_MESSAGE = "InvalidMessage"
    INVALID_NONCE = "InvalidNonce"
    INVALID_SIGNATURE = "InvalidSignature"
    MESSAGE_EXPIRED = "MessageExpired"
    MALFORMED_TOKEN = "MalformedToken"
    TOKEN_EXPIRED = "TokenExpired"
    MISSING_TOKEN = "MissingToken"
    VERIFICATION_FAILED = "VerificationFailed"

    @property
    def detail(self) -> str:
        """Return the caller-facing text for this failure."""
        return _DETAILS[self]


_DETAILS: dict[AuthError, str] = {
    AuthError.INVALID_MESSAGE: "Invalid message",
    AuthError.INVALID_NONCE: "Invalid or expired nonce",
    AuthError.INVALID_SIGNATURE: "Invalid signature",
    AuthError.MESSAGE_EXPIRED: "Message expired",
    AuthError.MALFORMED_TOKEN: "Invalid or expired token",
    AuthError.TOKEN_EXPIRED: "Invalid or expired token",
    AuthError.MISSING_TOKEN: "No authentication token provided",
    AuthError.VERIFICATION_FAILED: "Verification failed",
}


class NonceStoreError(RuntimeError):
    """Raised when the backing nonce store cannot be reached or written."""
