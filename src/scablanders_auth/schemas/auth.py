"""Authentication-related Pydantic schemas."""

from typing import Any

from pydantic import BaseModel, Field


class NonceResponse(BaseModel):
    """Nonce handed to a client before it signs a challenge."""

    nonce: str = Field(..., description="Single-use nonce to embed in the challenge")
    message: str = Field(..., description="Human-readable sign-in prompt")


class VerifyRequest(BaseModel):
    """Signed challenge submitted for verification.

    Fields are left untyped so a missing or non-string value reaches the
    endpoint and is reported as a 400 rather than a validation error.
    """

    message: Any = Field(None, description="Exact challenge text that was signed")
    signature: Any = Field(None, description="Hex-encoded wallet signature")


class VerifyResponse(BaseModel):
    """Verification outcome; failures are reported in the body, not the status."""

    success: bool = Field(..., description="True if the wallet proved control of the address")
    address: str | None = Field(None, description="Lowercase verified address")
    token: str | None = Field(None, description="Session token, also set as a cookie")
    error: str | None = Field(None, description="Failure reason when success is false")


class LogoutResponse(BaseModel):
    success: bool = True


class SessionResponse(BaseModel):
    """Identity resolved from the presented session token."""

    address: str = Field(..., description="Lowercase address of the authenticated player")
