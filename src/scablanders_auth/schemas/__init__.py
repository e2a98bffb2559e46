"""Pydantic schemas for request/response validation."""

from .auth import LogoutResponse, NonceResponse, SessionResponse, VerifyRequest, VerifyResponse

__all__ = [
    "LogoutResponse",
    "NonceResponse",
    "SessionResponse",
    "VerifyRequest",
    "VerifyResponse",
]
