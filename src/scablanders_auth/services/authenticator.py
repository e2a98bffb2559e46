"""Per-request resolution of session tokens into an authenticated address."""

from __future__ import annotations

from dataclasses import dataclass

from starlette.requests import HTTPConnection

from scablanders_auth.core.errors import AuthError
from scablanders_auth.services.session import SessionCodec

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class AuthContext:
    """Resolved identity for one request: an address, or the reason there is none."""

    address: str | None = None
    error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.address is not None and self.error is None

    def to_payload(self) -> dict[str, str]:
        if self.address is not None and self.error is None:
            return {"address": self.address}
        return {"error": self.error or AuthError.MISSING_TOKEN.detail}


class RequestAuthenticator:
    """Locate a session token on a request and validate it with the codec.

    The cookie is checked first, then an ``Authorization: Bearer`` header.
    Holds no per-request state, so one instance serves every request.
    """

    def __init__(self, codec: SessionCodec, cookie_name: str = "CF_ACCESS_TOKEN") -> None:
        self._codec = codec
        self._cookie_name = cookie_name

    def extract_token(self, conn: HTTPConnection) -> str | None:
        """Return the candidate token carried by `conn`, if any."""
        token = conn.cookies.get(self._cookie_name)
        if token:
            return token
        header = conn.headers.get("authorization")
        if header and header.startswith(BEARER_PREFIX):
            return header[len(BEARER_PREFIX):] or None
        return None

    def authenticate(self, conn: HTTPConnection) -> AuthContext:
        """Resolve `conn` to an `AuthContext`."""
        token = self.extract_token(conn)
        if token is None:
            return AuthContext(error=AuthError.MISSING_TOKEN.detail)

        session = self._codec.parse_session_token(token)
        if session is None:
            return AuthContext(error=AuthError.MALFORMED_TOKEN.detail)
        return AuthContext(address=session["address"])
