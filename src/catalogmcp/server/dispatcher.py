# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Request routing for tools and resources.

The dispatcher answers ``tools/list``, ``tools/call``, ``resources/list``,
``resources/templates/list``, ``resources/read`` and ``ping`` against a
:class:`~catalogmcp.server.registry.Registry`.  It is transport agnostic:
:class:`~catalogmcp.server.core.MCPServer` adapts its return values to SDK
result models.

Error policy:

* Unknown tools and unresolvable resource URIs raise ``McpError`` with
  ``METHOD_NOT_FOUND``.
* Arguments rejected by a tool's schema raise ``INVALID_PARAMS``.  The
  validation issues are logged, never sent back; the message only names the
  tool.
* A read without a URI raises ``INVALID_REQUEST``.
* Anything a tool handler raises is converted into a normal
  ``CallToolResult`` with ``isError=True``.  Tool failures are data, not
  protocol faults, so a broken tool cannot end the client's session.  Resource
  handler errors are not converted.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
import logging
from typing import Any, Generic

import anyio
from mcp import types
from mcp.shared.exceptions import McpError

from ..context import Context, SessionT, context_scope
from ..resource import ResourceSpec
from ..resource_template import ResourceTemplateSpec
from ..utils import get_logger, maybe_await_with_args
from ..utils.schema import EMPTY_OBJECT_SCHEMA, JsonSchema, describe_schema, validate_schema
from ..utils.uri_template import normalize_uri
from .adapters import error_result, normalize_resource_payload, normalize_tool_result
from .registry import Registry
from .sessions import SessionManager


@dataclass(frozen=True, slots=True)
class ToolDescription:
    """What ``tools/list`` advertises for one tool."""

    name: str
    description: str | None = None
    input_schema: JsonSchema | None = None

    def to_tool(self) -> types.Tool:
        # The wire model requires an input schema; a tool without one takes no arguments.
        schema = self.input_schema if self.input_schema is not None else dict(EMPTY_OBJECT_SCHEMA)
        return types.Tool(name=self.name, description=self.description, inputSchema=schema)


@dataclass(frozen=True, slots=True)
class ResourceReadResult:
    """Outcome of ``resources/read``.

    Attributes:
        uri: URI the handler was called with (canonical form for templates).
        payload: The handler's return value, untouched.
        mime_type: MIME type declared by the matching entry.
        variables: Variables extracted by a template match, else ``None``.
    """

    uri: str
    payload: Any
    mime_type: str | None = None
    variables: Mapping[str, str] | None = None

    def to_protocol(self) -> types.ReadResourceResult:
        return normalize_resource_payload(self.uri, self.mime_type, self.payload)


class HandlerTimeoutError(TimeoutError):
    """Raised when a handler outlives the configured `handler_timeout`."""


def _fault(code: int, message: str) -> McpError:
    return McpError(types.ErrorData(code=code, message=message))


class Dispatcher(Generic[SessionT]):
    """Routes decoded requests to registry entries."""

    def __init__(
        self,
        registry: Registry,
        sessions: SessionManager[SessionT],
        *,
        logger: logging.Logger | None = None,
        handler_timeout: float | None = None,
    ) -> None:
        self._registry = registry
        self._sessions = sessions
        self._logger = logger or get_logger("catalogmcp.dispatcher")
        self._handler_timeout = handler_timeout

    @property
    def registry(self) -> Registry:
        return self._registry

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def list_tools(self) -> list[ToolDescription]:
        """Describe every tool, in registration order.

        Schemas are described concurrently; each result is written to its
        tool's slot so completion order does not affect the listing.
        """
        tools = self._registry.list_tools()
        described: list[ToolDescription | None] = [None] * len(tools)

        async def describe(index: int) -> None:
            spec = tools[index]
            schema = await describe_schema(spec.parameters)
            described[index] = ToolDescription(name=spec.name, description=spec.description, input_schema=schema)

        async with anyio.create_task_group() as tg:
            for index in range(len(tools)):
                tg.start_soon(describe, index)

        return [item for item in described if item is not None]

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None = None) -> types.CallToolResult:
        spec = self._registry.find_tool(name)
        if spec is None:
            raise _fault(types.METHOD_NOT_FOUND, f"Unknown tool: {name}")

        outcome = await validate_schema(spec.parameters, dict(arguments) if arguments is not None else {})
        if not outcome.ok:
            self._logger.info(
                "rejected arguments for tool %s",
                name,
                extra={"tool": name, "issues": [str(issue) for issue in outcome.issues]},
            )
            raise _fault(types.INVALID_PARAMS, f"Invalid {name} parameters")

        context = self._sessions.current()
        try:
            with context_scope(context):
                result = await self._invoke(spec.handler, outcome.value, context)
            return normalize_tool_result(result)
        except HandlerTimeoutError:
            self._logger.warning("tool %s timed out after %ss", name, self._handler_timeout)
            return error_result(f"Error: tool {name} timed out after {self._handler_timeout}s")
        except Exception as exc:
            self._logger.exception("tool %s failed", name, extra={"tool": name})
            return error_result(f"Error: {exc}")

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    async def list_resources(self) -> Sequence[ResourceSpec]:
        return self._registry.list_resources()

    async def list_resource_templates(self) -> Sequence[ResourceTemplateSpec]:
        return self._registry.list_resource_templates()

    async def read_resource(self, uri: str | None) -> ResourceReadResult:
        """Read *uri*: exact resources first, then templates in registration order."""
        if not uri:
            raise _fault(types.INVALID_REQUEST, "Unknown resource request")
        uri = normalize_uri(uri)

        context = self._sessions.current()

        spec = self._registry.find_resource(uri)
        if spec is not None:
            payload = await self._read(spec.handler, uri, context=context)
            return ResourceReadResult(uri=uri, payload=payload, mime_type=spec.mime_type)

        for template_spec in self._registry.list_resource_templates():
            template = template_spec.template
            variables = template.match(uri)
            if variables is None:
                continue

            canonical = template.fill(variables)
            arguments: Any = variables
            if template_spec.parameters is not None:
                outcome = await validate_schema(template_spec.parameters, variables)
                if not outcome.ok:
                    self._logger.info(
                        "rejected variables for template %s",
                        template_spec.uri_template,
                        extra={"uri": uri, "issues": [str(issue) for issue in outcome.issues]},
                    )
                    label = template_spec.name or template_spec.uri_template
                    raise _fault(types.INVALID_PARAMS, f"Invalid {label} parameters")
                arguments = outcome.value

            payload = await self._read(template_spec.handler, canonical, arguments, context=context)
            return ResourceReadResult(
                uri=canonical,
                payload=payload,
                mime_type=template_spec.mime_type,
                variables=variables,
            )

        raise _fault(types.METHOD_NOT_FOUND, f"Unknown resource: {uri}")

    # ------------------------------------------------------------------
    # Liveness
    # ------------------------------------------------------------------

    async def ping(self) -> types.EmptyResult:
        return types.EmptyResult()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _invoke(self, fn: Callable[..., Any], *args: Any) -> Any:
        if self._handler_timeout is None:
            return await maybe_await_with_args(fn, *args)
        with anyio.move_on_after(self._handler_timeout):
            return await maybe_await_with_args(fn, *args)
        raise HandlerTimeoutError(f"handler exceeded {self._handler_timeout}s")

    async def _read(self, fn: Callable[..., Any], *args: Any, context: Context[Any]) -> Any:
        uri = args[0]
        try:
            with context_scope(context):
                return await self._invoke(fn, *args, context)
        except HandlerTimeoutError as exc:
            self._logger.warning("resource %s timed out after %ss", uri, self._handler_timeout)
            raise _fault(types.INTERNAL_ERROR, f"Resource read timed out: {uri}") from exc


__all__ = ["Dispatcher", "HandlerTimeoutError", "ResourceReadResult", "ToolDescription"]
