# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Tool definitions.

A tool is a named action with an optional parameter schema.  Its handler is
called as ``handler(arguments, context)`` where ``arguments`` is the value
produced by the schema (an empty dict when the tool declares none) and
``context`` is the :class:`~catalogmcp.context.Context` of the request.
Handlers may be plain functions or coroutine functions.

The :func:`tool` decorator only attaches a :class:`ToolSpec` to the function;
nothing is registered until the function is listed in
:attr:`ServerConfig.tools <catalogmcp.server.config.ServerConfig.tools>`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .utils.schema import SchemaAdapter, as_schema


ToolHandler = Callable[[Any, Any], Any]


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Immutable description of one tool."""

    name: str
    handler: ToolHandler
    description: str | None = None
    parameters: SchemaAdapter | None = field(default=None)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("tool name must be non-empty")
        if not callable(self.handler):
            raise TypeError(f"tool {self.name!r} handler must be callable")
        object.__setattr__(self, "parameters", as_schema(self.parameters))


_TOOL_ATTR = "__catalogmcp_tool__"


def tool(
    name: str | None = None,
    *,
    description: str | None = None,
    parameters: Any = None,
) -> Callable[[ToolHandler], ToolHandler]:
    """Mark a callable as a tool.

    Args:
        name: Tool name; defaults to the function name.
        description: Defaults to the stripped docstring.
        parameters: Anything :func:`~catalogmcp.utils.schema.as_schema`
            accepts: a pydantic model, a JSON Schema mapping or a
            :class:`~catalogmcp.utils.schema.SchemaAdapter`.
    """

    def decorator(fn: ToolHandler) -> ToolHandler:
        doc = description if description is not None else (fn.__doc__ or "").strip()
        spec = ToolSpec(
            name=name or fn.__name__,
            handler=fn,
            description=doc or None,
            parameters=parameters,
        )
        setattr(fn, _TOOL_ATTR, spec)
        return fn

    return decorator


def extract_tool_spec(fn: Any) -> ToolSpec | None:
    """Return the :class:`ToolSpec` attached by :func:`tool`, if any."""
    spec = getattr(fn, _TOOL_ATTR, None)
    return spec if isinstance(spec, ToolSpec) else None


def coerce_tool(target: ToolSpec | ToolHandler) -> ToolSpec:
    if isinstance(target, ToolSpec):
        return target
    spec = extract_tool_spec(target)
    if spec is None:
        raise TypeError(f"{target!r} is neither a ToolSpec nor decorated with @tool")
    return spec


__all__ = ["ToolHandler", "ToolSpec", "coerce_tool", "extract_tool_spec", "tool"]
