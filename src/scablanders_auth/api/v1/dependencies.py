"""Shared API dependencies for authentication.

Services are built once by `create_app` and kept on ``app.state``; these
helpers hand them to route functions.
"""

from typing import Annotated

from fastapi import Depends, Request

from scablanders_auth.core.errors import AuthError
from scablanders_auth.core.settings import Settings
from scablanders_auth.services.authenticator import AuthContext, RequestAuthenticator
from scablanders_auth.services.nonce import NonceIssuer
from scablanders_auth.services.session import SessionCodec
from scablanders_auth.services.verifier import SignatureVerifier


class AuthenticationRequired(Exception):
    """Raised by `require_auth` when no player is attached to the request."""

    def __init__(self, reason: str = AuthError.MISSING_TOKEN.detail) -> None:
        super().__init__(reason)
        self.reason = reason


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_nonce_issuer(request: Request) -> NonceIssuer:
    """Return a nonce issuer bound to the application's nonce store."""
    return NonceIssuer(request.app.state.nonce_store, request.app.state.settings)


def get_signature_verifier(request: Request) -> SignatureVerifier:
    """Return a verifier bound to the application's store and signing context."""
    return SignatureVerifier(
        request.app.state.nonce_store,
        request.app.state.signing_context,
        request.app.state.settings,
    )


def get_session_codec(request: Request) -> SessionCodec:
    return request.app.state.session_codec


def get_auth_context(request: Request) -> AuthContext:
    """Return the context resolved by the middleware, authenticating now if it did not run."""
    context: AuthContext | None = getattr(request.state, "auth_context", None)
    if context is None:
        authenticator: RequestAuthenticator = request.app.state.authenticator
        context = authenticator.authenticate(request)
    return context


AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]


def require_auth(context: AuthContextDep) -> str:
    """Return the authenticated player address.

    Raises:
        AuthenticationRequired: If the request carries no valid session.
    """
    if not context.is_authenticated or context.address is None:
        raise AuthenticationRequired(context.error or AuthError.MISSING_TOKEN.detail)
    return context.address


# Type aliases for route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
NonceIssuerDep = Annotated[NonceIssuer, Depends(get_nonce_issuer)]
VerifierDep = Annotated[SignatureVerifier, Depends(get_signature_verifier)]
SessionCodecDep = Annotated[SessionCodec, Depends(get_session_codec)]
PlayerAddressDep = Annotated[str, Depends(require_auth)]
