# src/scablanders_auth/main.py
"""Main entry point for the Scablanders auth service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from scablanders_auth.api.middleware import AuthContextMiddleware
from scablanders_auth.api.v1 import auth_router
from scablanders_auth.api.v1.dependencies import AuthenticationRequired
from scablanders_auth.core.security import SigningContext
from scablanders_auth.core.settings import Settings, settings
from scablanders_auth.services.authenticator import RequestAuthenticator
from scablanders_auth.services.nonce_store import NonceStore, build_nonce_store
from scablanders_auth.services.session import SessionCodec

logger = logging.getLogger(__name__)


def configure_logging(config: Settings) -> None:
    """Configure root logging once from LOG_LEVEL."""
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def _authentication_required_handler(
    request: Request, exc: AuthenticationRequired
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"error": "Authentication required"},
        headers={"WWW-Authenticate": "Bearer"},
    )


def create_app(config: Settings | None = None, nonce_store: NonceStore | None = None) -> FastAPI:
    """Build the FastAPI application and its long-lived auth services.

    Args:
        config: Settings to use; defaults to the environment-loaded settings.
        nonce_store: Store override, mainly for tests; built from
            ``REDIS_URL`` when omitted.

    Returns:
        Configured FastAPI application.
    """
    config = config or settings

    app = FastAPI(
        title="Scablanders Auth API",
        description="Wallet sign-in and session validation",
        version=config.app_version,
    )

    codec = SessionCodec.from_settings(config)
    authenticator = RequestAuthenticator(codec, cookie_name=config.session_cookie_name)

    app.state.settings = config
    app.state.nonce_store = nonce_store if nonce_store is not None else build_nonce_store(config)
    app.state.signing_context = SigningContext()
    app.state.session_codec = codec
    app.state.authenticator = authenticator

    app.add_middleware(AuthContextMiddleware, authenticator=authenticator)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )
    app.add_exception_handler(AuthenticationRequired, _authentication_required_handler)  # type: ignore[arg-type]

    app.include_router(auth_router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with basic information about the API."""
        return {
            "name": config.app_name,
            "version": config.app_version,
            "docs": "/docs",
        }

    return app


configure_logging(settings)
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("scablanders_auth.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
