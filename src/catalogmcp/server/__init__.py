# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Public server-side surface for catalogmcp.

The heavy lifting lives in :mod:`catalogmcp.server.core`; this module re-exports
the primitives that host applications are expected to import.
"""

from __future__ import annotations

from .config import ConfigurationError, SSEConfig, ServerConfig, TransportLiteral
from .core import MCPServer, ServerValidationError, UnsupportedTransportError
from .dispatcher import Dispatcher, HandlerTimeoutError, ResourceReadResult, ToolDescription
from .registry import Registry
from .sessions import AuthenticationError, SessionManager, bearer_token


__all__ = [
    "MCPServer",
    "ServerConfig",
    "SSEConfig",
    "ConfigurationError",
    "ServerValidationError",
    "UnsupportedTransportError",
    "TransportLiteral",
    "Dispatcher",
    "HandlerTimeoutError",
    "ResourceReadResult",
    "ToolDescription",
    "Registry",
    "AuthenticationError",
    "SessionManager",
    "bearer_token",
]
