"""Stateless session tokens minted after a successful wallet sign-in.

A session is the JSON object ``{"address", "issuedAt", "random"}`` where
``issuedAt`` is epoch milliseconds and ``random`` only makes repeated tokens
for one address differ. It is carried in one of two encodings:

* unsigned: standard base64 of the JSON text. Anyone who knows the format can
  forge one; this is the encoding existing clients understand.
* signed: an HS256 JWT with the same claims, used whenever
  ``SESSION_SECRET_KEY`` is configured.

Tokens are never stored server-side and cannot be revoked before they expire.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import math
import secrets
import string
import time
from collections.abc import Callable
from typing import Any

from jose import JWTError, jwt

from scablanders_auth.core.errors import AuthError
from scablanders_auth.core.security import normalize_address
from scablanders_auth.core.settings import Settings, settings

logger = logging.getLogger(__name__)

_RANDOM_ALPHABET = string.ascii_lowercase + string.digits
_RANDOM_LENGTH = 6


def _now_ms() -> int:
    return int(time.time() * 1000)


class SessionRejected(Exception):
    """Internal signal carrying why a token was refused."""

    def __init__(self, reason: AuthError) -> None:
        super().__init__(reason.value)
        self.reason = reason


class SessionCodec:
    """Mint and validate session tokens without any storage lookup."""

    def __init__(
        self,
        secret_key: str | None = None,
        *,
        algorithm: str = "HS256",
        ttl_seconds: int = 60 * 60 * 24,
        now_ms: Callable[[], int] = _now_ms,
    ) -> None:
        self._secret_key = secret_key or None
        self._algorithm = algorithm
        self._ttl_ms = ttl_seconds * 1000
        self._now_ms = now_ms

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> SessionCodec:
        config = config or settings
        if not config.session_signing_enabled:
            logger.warning("SESSION_SECRET_KEY not set; session tokens are unsigned")
        return cls(
            config.session_secret_key,
            algorithm=config.jwt_algorithm,
            ttl_seconds=config.session_ttl_seconds,
        )

    @property
    def signed(self) -> bool:
        return self._secret_key is not None

    def create_session_token(self, address: str) -> str:
        """Return an opaque bearer token for `address`."""
        session = {
            "address": normalize_address(address),
            "issuedAt": self._now_ms(),
            "random": "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(_RANDOM_LENGTH)),
        }
        if self._secret_key is not None:
            token: str = jwt.encode(session, self._secret_key, algorithm=self._algorithm)
            return token
        return base64.b64encode(json.dumps(session).encode("utf-8")).decode("ascii")

    def parse_session_token(self, token: str) -> dict[str, str] | None:
        """Return ``{"address": ...}`` for a valid, unexpired token, otherwise None."""
        try:
            return {"address": self.decode(token)}
        except SessionRejected as rejection:
            logger.debug("Session token rejected: %s", rejection.reason)
            return None

    def decode(self, token: str) -> str:
        """Return the address carried by `token`.

        Raises:
            SessionRejected: With `MalformedToken` or `TokenExpired`.
        """
        claims = self._decode_claims(token)

        address = claims.get("address")
        if not address or not isinstance(address, str):
            raise SessionRejected(AuthError.MALFORMED_TOKEN)

        issued_at = claims.get("issuedAt")
        if isinstance(issued_at, bool) or not isinstance(issued_at, int | float):
            raise SessionRejected(AuthError.MALFORMED_TOKEN)
        if not math.isfinite(issued_at):
            raise SessionRejected(AuthError.MALFORMED_TOKEN)
        if issued_at < self._now_ms() - self._ttl_ms:
            raise SessionRejected(AuthError.TOKEN_EXPIRED)

        return normalize_address(address)

    def _decode_claims(self, token: str) -> dict[str, Any]:
        if not token:
            raise SessionRejected(AuthError.MALFORMED_TOKEN)
        if self._secret_key is not None:
            try:
                claims = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
            except JWTError as err:
                raise SessionRejected(AuthError.MALFORMED_TOKEN) from err
        else:
            try:
                claims = json.loads(base64.b64decode(token, validate=True).decode("utf-8"))
            except (binascii.Error, UnicodeDecodeError, ValueError) as err:
                raise SessionRejected(AuthError.MALFORMED_TOKEN) from err
        if not isinstance(claims, dict):
            raise SessionRejected(AuthError.MALFORMED_TOKEN)
        return claims
