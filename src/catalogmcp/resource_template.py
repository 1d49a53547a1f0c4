# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Parameterised resource definitions.

A template such as ``repo://{owner}/{name}/readme`` answers every URI that
matches it.  Its handler is called as ``handler(uri, variables, context)``:
``uri`` is the canonical form rebuilt from the template, and ``variables``
is the mapping extracted from the request URI (validated by ``parameters``
when the template declares a schema).
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from mcp import types

from .utils.schema import SchemaAdapter, as_schema
from .utils.uri_template import UriTemplate, compile_template, normalize_template


ResourceTemplateHandler = Callable[[str, Any, Any], Any]


@dataclass(frozen=True, slots=True)
class ResourceTemplateSpec:
    uri_template: str
    handler: ResourceTemplateHandler
    name: str | None = None
    description: str | None = None
    mime_type: str | None = None
    parameters: SchemaAdapter | None = field(default=None)

    def __post_init__(self) -> None:
        if not callable(self.handler):
            raise TypeError(f"resource template {self.uri_template!r} handler must be callable")
        object.__setattr__(self, "uri_template", normalize_template(self.uri_template))
        # Compile eagerly so malformed templates fail at definition time.
        compile_template(self.uri_template)
        object.__setattr__(self, "parameters", as_schema(self.parameters))

    @property
    def template(self) -> UriTemplate:
        return compile_template(self.uri_template)

    def to_resource_template(self) -> types.ResourceTemplate:
        return types.ResourceTemplate(
            uriTemplate=self.uri_template,
            name=self.name or self.uri_template,
            description=self.description,
            mimeType=self.mime_type,
        )


_TEMPLATE_ATTR = "__catalogmcp_resource_template__"


def resource_template(
    uri_template: str,
    *,
    name: str | None = None,
    description: str | None = None,
    mime_type: str | None = None,
    parameters: Any = None,
) -> Callable[[ResourceTemplateHandler], ResourceTemplateHandler]:
    """Mark a callable as the reader for every URI matching *uri_template*."""

    def decorator(fn: ResourceTemplateHandler) -> ResourceTemplateHandler:
        spec = ResourceTemplateSpec(
            uri_template=uri_template,
            handler=fn,
            name=name or fn.__name__,
            description=description if description is not None else ((fn.__doc__ or "").strip() or None),
            mime_type=mime_type,
            parameters=parameters,
        )
        setattr(fn, _TEMPLATE_ATTR, spec)
        return fn

    return decorator


def extract_resource_template_spec(fn: Any) -> ResourceTemplateSpec | None:
    spec = getattr(fn, _TEMPLATE_ATTR, None)
    if isinstance(spec, ResourceTemplateSpec):
        return spec
    return None


def coerce_resource_template(target: ResourceTemplateSpec | ResourceTemplateHandler) -> ResourceTemplateSpec:
    if isinstance(target, ResourceTemplateSpec):
        return target
    spec = extract_resource_template_spec(target)
    if spec is None:
        raise TypeError(f"{target!r} is neither a ResourceTemplateSpec nor decorated with @resource_template")
    return spec


__all__ = [
    "ResourceTemplateHandler",
    "ResourceTemplateSpec",
    "coerce_resource_template",
    "extract_resource_template_spec",
    "resource_template",
]
