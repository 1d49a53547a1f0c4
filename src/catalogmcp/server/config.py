# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Immutable server configuration.

Everything a :class:`~catalogmcp.server.MCPServer` serves is fixed here at
construction time; there is no module-level catalog to mutate.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
import os
import re
from typing import TYPE_CHECKING, Any, Final, Literal

from ..resource import ResourceHandler, ResourceSpec
from ..resource_template import ResourceTemplateHandler, ResourceTemplateSpec
from ..tool import ToolHandler, ToolSpec


if TYPE_CHECKING:  # pragma: no cover - typing only
    from starlette.requests import Request


TransportLiteral = Literal["stdio", "sse"]
Authenticator = Callable[["Request"], "Awaitable[Any] | Any"]

DEFAULT_SSE_ENDPOINT: Final[str] = "/sse"
DEFAULT_SSE_PORT: Final[int] = 3000
ENV_SSE_ENDPOINT: Final[str] = "CATALOGMCP_SSE_ENDPOINT"
ENV_SSE_PORT: Final[str] = "CATALOGMCP_SSE_PORT"

_VERSION_RE: Final = re.compile(r"^\d+\.\d+\.\d+(?:[-+][0-9A-Za-z.\-+]*)?$")


class ConfigurationError(ValueError):
    """Raised when a server configuration value is invalid."""


@dataclass(frozen=True, slots=True)
class SSEConfig:
    """Network endpoint settings: the event-stream path and the port."""

    endpoint: str = DEFAULT_SSE_ENDPOINT
    port: int = DEFAULT_SSE_PORT

    def __post_init__(self) -> None:
        if not self.endpoint.startswith("/"):
            raise ConfigurationError(f"SSE endpoint must start with '/', got {self.endpoint!r}")
        if isinstance(self.port, bool) or not isinstance(self.port, int) or not 0 < self.port < 65536:
            raise ConfigurationError(f"SSE port must be an integer in 1-65535, got {self.port!r}")

    @classmethod
    def from_env(cls, *, default_port: int = DEFAULT_SSE_PORT) -> SSEConfig:
        """Build settings from ``CATALOGMCP_SSE_ENDPOINT`` and ``CATALOGMCP_SSE_PORT``.

        ``PORT`` is honoured when the package-specific variable is unset, which
        is what most container platforms inject.
        """
        endpoint = os.getenv(ENV_SSE_ENDPOINT) or DEFAULT_SSE_ENDPOINT
        raw_port = os.getenv(ENV_SSE_PORT) or os.getenv("PORT")
        if raw_port is None:
            return cls(endpoint=endpoint, port=default_port)
        try:
            port = int(raw_port)
        except ValueError as exc:
            raise ConfigurationError(f"SSE port must be an integer, got {raw_port!r}") from exc
        return cls(endpoint=endpoint, port=port)


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Catalog and runtime settings for one server instance.

    ``tools``, ``resources`` and ``resource_templates`` accept specs or
    functions decorated with :func:`~catalogmcp.tool.tool`,
    :func:`~catalogmcp.resource.resource` and
    :func:`~catalogmcp.resource_template.resource_template`; registration
    order is the order clients see.
    """

    name: str
    version: str = "0.1.0"
    transport: TransportLiteral | str = "stdio"
    sse: SSEConfig = field(default_factory=SSEConfig)
    tools: Sequence[ToolSpec | ToolHandler] = ()
    resources: Sequence[ResourceSpec | ResourceHandler] = ()
    resource_templates: Sequence[ResourceTemplateSpec | ResourceTemplateHandler] = ()
    authenticate: Authenticator | None = None
    instructions: str | None = None
    handler_timeout: float | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("server name must be non-empty")
        if not _VERSION_RE.match(self.version):
            raise ConfigurationError(f"version must look like MAJOR.MINOR.PATCH, got {self.version!r}")
        if self.authenticate is not None and not callable(self.authenticate):
            raise ConfigurationError("authenticate must be callable")
        if self.handler_timeout is not None and self.handler_timeout <= 0:
            raise ConfigurationError(f"handler_timeout must be positive, got {self.handler_timeout!r}")
        object.__setattr__(self, "transport", self.transport.lower())
        object.__setattr__(self, "tools", tuple(self.tools))
        object.__setattr__(self, "resources", tuple(self.resources))
        object.__setattr__(self, "resource_templates", tuple(self.resource_templates))


__all__ = [
    "Authenticator",
    "ConfigurationError",
    "DEFAULT_SSE_ENDPOINT",
    "DEFAULT_SSE_PORT",
    "SSEConfig",
    "ServerConfig",
    "TransportLiteral",
]
