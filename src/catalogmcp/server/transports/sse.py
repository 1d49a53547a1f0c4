# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""SSE transport adapter.

Clients open an event stream with ``GET {endpoint}`` and send messages with
``POST /messages/?session_id=...``; the SDK's ``SseServerTransport`` pairs the
two.  Each event stream is one connection: the authenticator runs against the
``GET`` request before the stream opens, and its session stays bound for the
life of that stream.  A rejected request gets ``401`` with a ``Bearer``
challenge and no stream.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from mcp.server.sse import SseServerTransport
from starlette.applications import Starlette
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route
from uvicorn import Config, Server

from ..sessions import AuthenticationError
from .base import BaseTransport


if TYPE_CHECKING:
    from starlette.requests import Request

    from ..core import MCPServer


class _ReadyServer(Server):
    """uvicorn server that reports once its sockets are listening."""

    def __init__(self, config: Config, on_ready: Callable[[], None] | None = None) -> None:
        super().__init__(config)
        self._on_ready = on_ready

    async def startup(self, sockets: Any = None) -> None:
        await super().startup(sockets=sockets)
        if self.started and self._on_ready is not None:
            self._on_ready()


class SSETransport(BaseTransport):
    """Serve an :class:`~catalogmcp.server.core.MCPServer` over HTTP + SSE."""

    TRANSPORT = ("sse", "SSE", "Server-Sent Events")

    DEFAULT_HOST: str = "127.0.0.1"
    DEFAULT_LOG_LEVEL: str = "info"
    MESSAGE_PATH: str = "/messages/"

    def __init__(self, server: MCPServer) -> None:
        super().__init__(server)
        self._logger = server.logger.getChild("sse")

    def build_app(self, endpoint: str | None = None) -> Starlette:
        """Return the Starlette application serving *endpoint* and the message path."""
        endpoint = endpoint or self.server.config.sse.endpoint
        sse = SseServerTransport(self.MESSAGE_PATH)
        server = self.server
        sessions = server.sessions

        async def handle_sse(request: Request) -> Response:
            try:
                session = await sessions.establish(request)
            except AuthenticationError as exc:
                client = request.client.host if request.client else None
                self._logger.info("rejected SSE connection: %s", exc, extra={"client": client})
                return self._challenge_response(str(exc))

            with sessions.bind(session):
                async with sse.connect_sse(
                    request.scope,
                    request.receive,
                    request._send,  # type: ignore[attr-defined]
                ) as (read_stream, write_stream):
                    await server.run(read_stream, write_stream, server.create_initialization_options())
            return Response()

        routes = [
            Route(endpoint, endpoint=handle_sse, methods=["GET"]),
            Mount(self.MESSAGE_PATH, app=sse.handle_post_message),
        ]
        return Starlette(routes=routes)

    async def run(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        endpoint: str | None = None,
        log_level: str | None = None,
        on_ready: Callable[[], None] | None = None,
        **uvicorn_options: Any,
    ) -> None:
        """Serve until uvicorn exits.

        *on_ready* is called once the listening socket is bound; it is never
        called when startup fails.
        """
        host = host or self.DEFAULT_HOST
        port = port or self.server.config.sse.port
        log_level = log_level or self.DEFAULT_LOG_LEVEL

        app = self.build_app(endpoint)
        config = Config(app=app, host=host, port=port, log_level=log_level, **uvicorn_options)
        server_instance = _ReadyServer(config, on_ready)
        await server_instance.serve()

    def _challenge_response(self, reason: str | None = None) -> Response:
        challenge = f'Bearer realm="{self.server.name}", error="invalid_token"'
        headers = {"WWW-Authenticate": challenge}
        payload = {"error": "unauthorized", "detail": reason}
        return JSONResponse(payload, status_code=401, headers=headers)


__all__ = ["SSETransport"]
