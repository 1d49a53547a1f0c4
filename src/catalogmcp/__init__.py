# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""catalogmcp: serve a fixed catalog of MCP tools and resources."""

from __future__ import annotations

from .context import Context, SessionContext, get_context
from .resource import ResourceSpec, resource
from .resource_template import ResourceTemplateSpec, resource_template
from .server import (
    AuthenticationError,
    MCPServer,
    SSEConfig,
    ServerConfig,
    bearer_token,
)
from .tool import ToolSpec, tool
from .utils.schema import JSONSchema, PydanticSchema, SchemaAdapter


__all__ = [
    "MCPServer",
    "ServerConfig",
    "SSEConfig",
    "tool",
    "resource",
    "resource_template",
    "ToolSpec",
    "ResourceSpec",
    "ResourceTemplateSpec",
    "Context",
    "SessionContext",
    "get_context",
    "AuthenticationError",
    "bearer_token",
    "SchemaAdapter",
    "PydanticSchema",
    "JSONSchema",
]
