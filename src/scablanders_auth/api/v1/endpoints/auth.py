# src/scablanders_auth/api/v1/endpoints/auth.py
"""Wallet sign-in endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status
from fastapi.responses import JSONResponse

from scablanders_auth.api.v1.dependencies import (
    NonceIssuerDep,
    PlayerAddressDep,
    SessionCodecDep,
    SettingsDep,
    VerifierDep,
)
from scablanders_auth.core.errors import NonceStoreError
from scablanders_auth.core.settings import Settings
from scablanders_auth.schemas.auth import (
    LogoutResponse,
    NonceResponse,
    SessionResponse,
    VerifyRequest,
    VerifyResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _set_session_cookie(response: Response, config: Settings, token: str, max_age: int) -> None:
    response.set_cookie(
        key=config.session_cookie_name,
        value=token,
        max_age=max_age,
        path="/",
        secure=config.session_cookie_secure,
        httponly=True,
        samesite="strict",
    )


@router.get(
    "/nonce",
    summary="Issue a single-use sign-in nonce",
    response_model=NonceResponse,
)
async def get_nonce(issuer: NonceIssuerDep) -> NonceResponse | JSONResponse:
    """Generate a nonce for the client to embed in its signed challenge."""
    try:
        issued = issuer.issue_nonce()
    except NonceStoreError:
        logger.error("Nonce generation failed", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to generate nonce"},
        )
    return NonceResponse(nonce=issued.nonce, message=issued.message)


@router.post(
    "/verify",
    summary="Verify a signed challenge and start a session",
    response_model=VerifyResponse,
    response_model_exclude_none=True,
)
async def verify_signature(
    payload: VerifyRequest,
    response: Response,
    verifier: VerifierDep,
    codec: SessionCodecDep,
    config: SettingsDep,
) -> VerifyResponse | JSONResponse:
    """Verify a signed challenge; on success set the session cookie.

    - **message**: The challenge text exactly as signed by the wallet.
    - **signature**: The hex-encoded signature string.
    """
    message, signature = payload.message, payload.signature
    if not (isinstance(message, str) and message and isinstance(signature, str) and signature):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": "Message and signature required"},
        )

    result = verifier.verify(message, signature)
    if not result.success or result.address is None:
        return VerifyResponse.model_validate(result.to_payload())

    token = codec.create_session_token(result.address)
    _set_session_cookie(response, config, token, config.session_ttl_seconds)
    logger.info("Session started for %s", result.address)
    return VerifyResponse(success=True, address=result.address, token=token)


@router.post(
    "/logout",
    summary="Clear the session cookie",
    response_model=LogoutResponse,
)
async def logout(response: Response, config: SettingsDep) -> LogoutResponse:
    """Expire the session cookie. Bearer tokens stay valid until they expire."""
    _set_session_cookie(response, config, "", 0)
    return LogoutResponse()


@router.get(
    "/session",
    summary="Return the authenticated player",
    response_model=SessionResponse,
)
async def get_session(address: PlayerAddressDep) -> SessionResponse:
    """Echo the address resolved from the presented session token."""
    return SessionResponse(address=address)
