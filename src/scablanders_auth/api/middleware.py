"""Session middleware that attaches the authenticated player to each request.

The middleware never rejects a request itself: it records the resolved
`AuthContext` and, on success, the player address in ``request.state``.
Routes that require a player depend on `require_auth`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from starlette.requests import HTTPConnection

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

    from scablanders_auth.services.authenticator import RequestAuthenticator

logger = logging.getLogger(__name__)


class AuthContextMiddleware:
    """Resolve the session token on every HTTP and WebSocket connection."""

    def __init__(self, app: ASGIApp, authenticator: RequestAuthenticator) -> None:
        self.app = app
        self._authenticator = authenticator

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        context = self._authenticator.authenticate(HTTPConnection(scope))

        if "state" not in scope:
            scope["state"] = {}
        scope["state"]["auth_context"] = context
        scope["state"]["player_address"] = context.address
        await self.app(scope, receive, send)
