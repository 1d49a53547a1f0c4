# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Per-connection authentication and session scoping.

Each network connection runs the configured authenticator once, against the
HTTP request that opened it.  The resulting session is bound to the
connection through a :class:`~contextvars.ContextVar` set before the
protocol session starts; every request task the SDK spawns for that
connection inherits the binding, and other connections never see it.

If the authenticator raises, :meth:`SessionManager.connection` raises before
anything is bound, so no request can be dispatched on that connection.  The
stdio transport has no request object and never authenticates.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic
import uuid

from mcp.server.lowlevel.server import request_ctx

from ..context import Context, SessionT
from ..utils import get_logger, maybe_await
from .config import Authenticator


if TYPE_CHECKING:  # pragma: no cover - typing only
    from starlette.requests import Request


class AuthenticationError(Exception):
    """Raised by authenticators to reject a connection."""


@dataclass(frozen=True, slots=True)
class Connection(Generic[SessionT]):
    """A live transport connection and the session established for it."""

    id: str
    session: SessionT | None


_CURRENT_CONNECTION: ContextVar[Connection[Any] | None] = ContextVar("catalogmcp_connection", default=None)


class SessionManager(Generic[SessionT]):
    """Runs the authenticator and scopes its result to one connection."""

    def __init__(self, authenticate: Authenticator | None = None) -> None:
        self._authenticate = authenticate
        self._logger = get_logger("catalogmcp.sessions")

    @property
    def authenticates(self) -> bool:
        return self._authenticate is not None

    async def establish(self, request: Request | None) -> SessionT | None:
        """Return the session for a new connection opened by *request*.

        Yields ``None`` without calling the authenticator when none is
        configured or when *request* is ``None`` (stdio).  Authenticator
        errors propagate unchanged.
        """
        if self._authenticate is None or request is None:
            return None
        return await maybe_await(self._authenticate(request))

    @asynccontextmanager
    async def connection(self, request: Request | None = None) -> AsyncIterator[Connection[SessionT]]:
        """Establish a session and keep it bound while the block runs."""
        session = await self.establish(request)
        with self.bind(session) as current:
            yield current

    @contextmanager
    def bind(self, session: SessionT | None) -> Iterator[Connection[SessionT]]:
        """Bind an already established *session* to a new connection."""
        current = Connection(id=uuid.uuid4().hex, session=session)
        token = _CURRENT_CONNECTION.set(current)
        self._logger.debug(
            "connection opened",
            extra={"connection_id": current.id, "authenticated": session is not None},
        )
        try:
            yield current
        finally:
            _CURRENT_CONNECTION.reset(token)
            self._logger.debug("connection closed", extra={"connection_id": current.id})

    def current(self) -> Context[SessionT]:
        """Build a fresh :class:`Context` for the request being served."""
        connection = _CURRENT_CONNECTION.get()
        try:
            request_id: str | None = str(request_ctx.get().request_id)
        except LookupError:
            request_id = None
        if connection is None:
            return Context(request_id=request_id)
        return Context(session=connection.session, connection_id=connection.id, request_id=request_id)


def bearer_token(request: Request) -> str:
    """Return the credential from an ``Authorization: Bearer`` header.

    Raises:
        AuthenticationError: When the header is missing or uses another scheme.
    """
    header = request.headers.get("authorization")
    if not header:
        raise AuthenticationError("missing Authorization header")
    scheme, _, credential = header.partition(" ")
    if scheme.lower() != "bearer" or not credential.strip():
        raise AuthenticationError("expected a bearer token")
    return credential.strip()


__all__ = ["AuthenticationError", "Connection", "SessionManager", "bearer_token"]
