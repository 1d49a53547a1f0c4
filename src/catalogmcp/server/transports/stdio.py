# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""STDIO transport adapter built on the reference MCP SDK.

The SDK's ``stdio_server`` frames newline-delimited JSON-RPC over
``stdin``/``stdout``.  A stdio process serves exactly one connection and has
no HTTP request to authenticate, so handlers always see ``session=None``.
"""

from __future__ import annotations

from mcp.server.stdio import stdio_server

from .base import BaseTransport


def get_stdio_server():
    """Return the SDK's stdio context manager.

    Separated into a helper so tests can patch it with in-memory transports.
    """
    return stdio_server


class StdioTransport(BaseTransport):
    """Run an :class:`~catalogmcp.server.core.MCPServer` over STDIO."""

    TRANSPORT = ("stdio", "STDIO", "Standard IO")

    async def run(self, *, raise_exceptions: bool = False, stateless: bool = False) -> None:
        stdio_ctx = get_stdio_server()
        init_options = self.server.create_initialization_options()

        async with stdio_ctx() as (read_stream, write_stream):
            async with self.server.sessions.connection(None):
                await self.server.run(
                    read_stream, write_stream, init_options, raise_exceptions=raise_exceptions, stateless=stateless
                )


__all__ = ["StdioTransport", "get_stdio_server"]
