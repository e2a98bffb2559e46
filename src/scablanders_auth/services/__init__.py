"""Authentication services for the Scablanders backend."""

from .authenticator import AuthContext, RequestAuthenticator
from .nonce import NonceIssuer
from .nonce_store import InMemoryNonceStore, NonceStore, RedisNonceStore
from .session import SessionCodec
from .verifier import SignatureVerifier, VerificationResult

__all__ = [
    "AuthContext",
    "InMemoryNonceStore",
    "NonceIssuer",
    "NonceStore",
    "RedisNonceStore",
    "RequestAuthenticator",
    "SessionCodec",
    "SignatureVerifier",
    "VerificationResult",
]
