# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Shared transport primitives for :mod:`catalogmcp.server`.

Provides a minimal base class that custom transports can subclass and a factory
signature that `MCPServer` uses to instantiate transports lazily.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable


if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from ..core import MCPServer


class BaseTransport(ABC):
    """Common base for server transports.

    Subclasses receive the owning :class:`MCPServer` so they can reach its
    session manager and initialization options.  ``TRANSPORT`` lists the
    canonical name first, then display aliases.
    """

    TRANSPORT: ClassVar[tuple[str, ...]] = ()

    def __init__(self, server: MCPServer) -> None:
        self._server = server

    @property
    def server(self) -> MCPServer:
        return self._server

    @property
    def transport_display_name(self) -> str:
        if len(self.TRANSPORT) > 1:
            return self.TRANSPORT[1]
        if self.TRANSPORT:
            return self.TRANSPORT[0]
        return type(self).__name__

    @abstractmethod
    async def run(self, **kwargs: Any) -> None:
        """Start the transport and block until it stops.

        Keyword arguments are transport specific (host/port for SSE,
        ``raise_exceptions`` for stdio).
        """


@runtime_checkable
class TransportFactory(Protocol):
    """Callable that produces a configured transport for an ``MCPServer``."""

    def __call__(self, server: MCPServer) -> BaseTransport:  # pragma: no cover - protocol
        ...


__all__ = ["BaseTransport", "TransportFactory"]
