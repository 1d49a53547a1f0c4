# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Catalog server built on the reference SDK's low-level ``Server``."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
import logging
from typing import Any

from mcp import types
from mcp.server.lowlevel.server import Server

from .config import ServerConfig
from .dispatcher import Dispatcher
from .registry import Registry
from .sessions import SessionManager
from .transports import BaseTransport, SSETransport, StdioTransport, TransportFactory
from ..utils import get_logger


class ServerValidationError(RuntimeError):
    """Raised when the server cannot start with its configuration."""


class UnsupportedTransportError(ServerValidationError):
    """Raised when ``serve()`` is asked for a transport nobody registered."""


_REQUIRED_HANDLERS: tuple[type[types.Request[Any, Any]], ...] = (
    types.ListToolsRequest,
    types.CallToolRequest,
    types.ListResourcesRequest,
    types.ListResourceTemplatesRequest,
    types.ReadResourceRequest,
    types.PingRequest,
)


class MCPServer(Server[Any, Any]):
    """Serves a fixed catalog of tools, resources and resource templates.

    Everything served is taken from *config* at construction time.  Protocol
    requests are answered by a :class:`~catalogmcp.server.dispatcher.Dispatcher`
    registered directly in the SDK's ``request_handlers`` table, so protocol
    faults it raises reach the client as JSON-RPC errors.
    """

    def __init__(self, config: ServerConfig) -> None:
        super().__init__(config.name, version=config.version, instructions=config.instructions)
        self._config = config
        self._logger = get_logger(f"catalogmcp.server.{config.name}")

        self._registry = Registry.from_config(config)
        self._sessions: SessionManager[Any] = SessionManager(config.authenticate)
        self._dispatcher: Dispatcher[Any] = Dispatcher(
            self._registry,
            self._sessions,
            logger=self._logger,
            handler_timeout=config.handler_timeout,
        )

        self._transport_factories: dict[str, TransportFactory] = {}
        self.register_transport("stdio", lambda server: StdioTransport(server))
        self.register_transport("sse", lambda server: SSETransport(server))

        # //////////////////////////////////////////////////////////////////
        # Register protocol handlers
        # //////////////////////////////////////////////////////////////////

        self.request_handlers[types.ListToolsRequest] = self._handle_list_tools
        self.request_handlers[types.CallToolRequest] = self._handle_call_tool
        self.request_handlers[types.ListResourcesRequest] = self._handle_list_resources
        self.request_handlers[types.ListResourceTemplatesRequest] = self._handle_list_resource_templates
        self.request_handlers[types.ReadResourceRequest] = self._handle_read_resource
        self.request_handlers[types.PingRequest] = self._handle_ping

    # //////////////////////////////////////////////////////////////////
    # Accessors
    # //////////////////////////////////////////////////////////////////

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def dispatcher(self) -> Dispatcher[Any]:
        return self._dispatcher

    @property
    def sessions(self) -> SessionManager[Any]:
        return self._sessions

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    @property
    def tool_names(self) -> list[str]:
        return self._registry.tool_names

    # //////////////////////////////////////////////////////////////////
    # Protocol handlers
    # //////////////////////////////////////////////////////////////////

    async def _handle_list_tools(self, _request: types.ListToolsRequest) -> types.ServerResult:
        described = await self._dispatcher.list_tools()
        return types.ServerResult(types.ListToolsResult(tools=[item.to_tool() for item in described]))

    async def _handle_call_tool(self, request: types.CallToolRequest) -> types.ServerResult:
        result = await self._dispatcher.call_tool(request.params.name, request.params.arguments)
        return types.ServerResult(result)

    async def _handle_list_resources(self, _request: types.ListResourcesRequest) -> types.ServerResult:
        resources = await self._dispatcher.list_resources()
        return types.ServerResult(types.ListResourcesResult(resources=[spec.to_resource() for spec in resources]))

    async def _handle_list_resource_templates(
        self, _request: types.ListResourceTemplatesRequest
    ) -> types.ServerResult:
        templates = await self._dispatcher.list_resource_templates()
        return types.ServerResult(
            types.ListResourceTemplatesResult(resourceTemplates=[spec.to_resource_template() for spec in templates])
        )

    async def _handle_read_resource(self, request: types.ReadResourceRequest) -> types.ServerResult:
        result = await self._dispatcher.read_resource(str(request.params.uri))
        return types.ServerResult(result.to_protocol())

    async def _handle_ping(self, _request: types.PingRequest) -> types.ServerResult:
        return types.ServerResult(await self._dispatcher.ping())

    # //////////////////////////////////////////////////////////////////
    # Transport registry
    # //////////////////////////////////////////////////////////////////

    def register_transport(self, name: str, factory: TransportFactory, *, aliases: Iterable[str] | None = None) -> None:
        canonical = name.lower()
        self._transport_factories[canonical] = factory
        for alias in aliases or ():
            self._transport_factories[alias.lower()] = factory

    def _transport_for_name(self, name: str) -> BaseTransport:
        factory = self._transport_factories.get(name.lower())
        if factory is None:
            raise UnsupportedTransportError(f"Unsupported transport: {name}")
        transport = factory(self)
        if not isinstance(transport, BaseTransport):
            raise TypeError("Transport factory must return a BaseTransport instance")
        return transport

    # //////////////////////////////////////////////////////////////////
    # Transport helpers
    # //////////////////////////////////////////////////////////////////

    async def serve(
        self,
        *,
        transport: str | None = None,
        validate: bool = True,
        verbose: bool = True,
        host: str | None = None,
        port: int | None = None,
        endpoint: str | None = None,
        log_level: str = "info",
        raise_exceptions: bool = False,
        uvicorn_options: Mapping[str, Any] | None = None,
        **transport_kwargs: Any,
    ) -> None:
        """Serve on *transport*, defaulting to ``config.transport``.

        Raises:
            UnsupportedTransportError: When no transport is registered under
                the selected name.  Nothing is served in that case.
        """
        selected = (transport or self._config.transport).lower()
        transport_instance = self._transport_for_name(selected)

        if validate:
            self.validate()

        if isinstance(transport_instance, StdioTransport):
            if transport_kwargs:
                unexpected = ", ".join(sorted(transport_kwargs))
                raise TypeError(f"Unsupported STDIO serve() parameters: {unexpected}")
            await self.serve_stdio(raise_exceptions=raise_exceptions, validate=False, announce=verbose)
            return

        if isinstance(transport_instance, SSETransport):
            if transport_kwargs:
                unexpected = ", ".join(sorted(transport_kwargs))
                raise TypeError(f"Unsupported SSE serve() parameters: {unexpected}")
            await self.serve_sse(
                host=host,
                port=port,
                endpoint=endpoint,
                log_level=log_level,
                validate=False,
                announce=verbose,
                **dict(uvicorn_options or {}),
            )
            return

        if verbose:
            self._logger.info("Serving %s via %s transport", self.name, transport_instance.transport_display_name)
        await transport_instance.run(**transport_kwargs)

    async def serve_stdio(
        self,
        *,
        raise_exceptions: bool = False,
        stateless: bool = False,
        validate: bool = True,
        announce: bool = True,
    ) -> None:
        if validate:
            self.validate()
        transport = self._transport_for_name("stdio")
        if announce:
            self._logger.info("Serving %s on stdio", self.name)
        await transport.run(raise_exceptions=raise_exceptions, stateless=stateless)

    async def serve_sse(
        self,
        host: str | None = None,
        port: int | None = None,
        endpoint: str | None = None,
        log_level: str = "info",
        *,
        validate: bool = True,
        announce: bool = True,
        **uvicorn_options: Any,
    ) -> None:
        if validate:
            self.validate()
        transport = self._transport_for_name("sse")
        host = host or SSETransport.DEFAULT_HOST
        port = port or self._config.sse.port
        endpoint = endpoint or self._config.sse.endpoint

        def announce_ready() -> None:
            self._logger.info("Serving %s via SSE at http://%s:%s%s", self.name, host, port, endpoint)

        await transport.run(
            host=host,
            port=port,
            endpoint=endpoint,
            log_level=log_level,
            on_ready=announce_ready if announce else None,
            **uvicorn_options,
        )

    # //////////////////////////////////////////////////////////////////
    # Validation
    # //////////////////////////////////////////////////////////////////

    def validate(self) -> None:
        """Check that every catalog request has a handler before serving.

        Duplicate tool names and resource URIs are allowed (the first entry
        wins) but logged, since the later entries can never be reached.
        """
        missing = [request.__name__ for request in _REQUIRED_HANDLERS if request not in self.request_handlers]
        if missing:
            bullet_list = "\n - ".join(missing)
            raise ServerValidationError(f"MCPServer is missing request handlers:\n - {bullet_list}")

        for label, keys in (
            ("tool", [spec.name for spec in self._registry.tools]),
            ("resource", [spec.uri for spec in self._registry.resources]),
        ):
            for key, count in Counter(keys).items():
                if count > 1:
                    self._logger.warning("%s %r registered %d times; only the first is reachable", label, key, count)


__all__ = ["MCPServer", "ServerValidationError", "UnsupportedTransportError"]
