# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared test helpers for catalog server tests."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import anyio
from mcp import types
from mcp.client.session import ClientSession
from pydantic import BaseModel

from catalogmcp import ServerConfig, ToolSpec
from catalogmcp.server import Dispatcher, MCPServer, Registry, SessionManager


class EchoArgs(BaseModel):
    message: str


def echo_tool(arguments: EchoArgs, context: Any) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": arguments.message}]}


ECHO = ToolSpec(name="echo", handler=echo_tool, description="Echo a message", parameters=EchoArgs)


class Recorder:
    """Handler double that records every call it receives."""

    def __init__(self, result: Any = "ok") -> None:
        self.result = result
        self.calls: list[tuple[Any, ...]] = []

    def __call__(self, *args: Any) -> Any:
        self.calls.append(args)
        return self.result


def make_dispatcher(
    *,
    tools: tuple[Any, ...] = (),
    resources: tuple[Any, ...] = (),
    resource_templates: tuple[Any, ...] = (),
    authenticate: Any = None,
    handler_timeout: float | None = None,
) -> Dispatcher[Any]:
    registry = Registry.build(tools=tools, resources=resources, resource_templates=resource_templates)
    return Dispatcher(registry, SessionManager(authenticate), handler_timeout=handler_timeout)


def make_server(**overrides: Any) -> MCPServer:
    options: dict[str, Any] = {"name": "catalog-test", "tools": (ECHO,)}
    options.update(overrides)
    return MCPServer(ServerConfig(**options))


@asynccontextmanager
async def closed_stdio() -> AsyncIterator[tuple[Any, Any]]:
    """Stand-in for ``stdio_server`` whose input is already at EOF."""
    read_send, read_recv = anyio.create_memory_object_stream[Any](1)
    write_send, write_recv = anyio.create_memory_object_stream[Any](16)
    await read_send.aclose()
    try:
        yield read_recv, write_send
    finally:
        await write_recv.aclose()


@asynccontextmanager
async def connected_client(server: MCPServer, *, session: Any = None) -> AsyncIterator[ClientSession]:
    """Run *server* on in-memory streams and yield an initialized client.

    The server task is started while *session* is bound, exactly as a
    transport does for a freshly authenticated connection.
    """
    client_to_server_send, client_to_server_recv = anyio.create_memory_object_stream[Any](0)
    server_to_client_send, server_to_client_recv = anyio.create_memory_object_stream[Any](0)
    init_options = server.create_initialization_options()

    async with anyio.create_task_group() as tg:
        with server.sessions.bind(session):
            tg.start_soon(server.run, client_to_server_recv, server_to_client_send, init_options)

        client = ClientSession(
            server_to_client_recv,
            client_to_server_send,
            client_info=types.Implementation(name="catalog-test-client", version="0.0.1"),
        )
        async with client as client_session:
            await client_session.initialize()
            yield client_session

        tg.cancel_scope.cancel()
