# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Per-request context handed to tool and resource handlers.

A :class:`Context` is built fresh for every dispatched request from the
session of the connection the request arrived on.  Handlers receive it as an
argument; :func:`get_context` exposes the same object to helpers deeper in
the call stack.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeVar


SessionT = TypeVar("SessionT")
SessionT_co = TypeVar("SessionT_co", covariant=True)


class SessionContext(Protocol[SessionT_co]):
    """The part of :class:`Context` a handler may rely on."""

    @property
    def session(self) -> SessionT_co | None: ...


@dataclass(frozen=True, slots=True)
class Context(Generic[SessionT]):
    """Read-only view of the current connection for one request.

    Attributes:
        session: Value produced by the authenticator for this connection, or
            ``None`` when no authenticator ran (stdio, or none configured).
        connection_id: Identifier of the transport connection.
        request_id: JSON-RPC id of the request being served, when known.
    """

    session: SessionT | None = None
    connection_id: str | None = None
    request_id: str | None = None

    @property
    def authenticated(self) -> bool:
        return self.session is not None


_CURRENT_CONTEXT: ContextVar[Context[Any] | None] = ContextVar("catalogmcp_current_context", default=None)


def get_context() -> Context[Any]:
    """Return the context of the request currently being dispatched.

    Raises:
        LookupError: If called outside of a tool or resource handler.
    """
    ctx = _CURRENT_CONTEXT.get()
    if ctx is None:
        raise LookupError("No active context; use get_context() from within a request handler")
    return ctx


@contextmanager
def context_scope(context: Context[Any]) -> Iterator[Context[Any]]:
    """Make *context* visible to :func:`get_context` for the enclosed block."""
    token = _CURRENT_CONTEXT.set(context)
    try:
        yield context
    finally:
        _CURRENT_CONTEXT.reset(token)


__all__ = ["Context", "SessionContext", "context_scope", "get_context"]
