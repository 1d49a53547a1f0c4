# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Static resource definitions.

A resource is addressed by one exact URI.  Its handler is called as
``handler(uri, context)`` and should return a ``ReadResourceResult``-shaped
value (``{"contents": [...]}``); bare ``str`` and ``bytes`` are accepted and
wrapped as text or blob contents.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from mcp import types

from .utils.uri_template import normalize_uri


ResourceHandler = Callable[[str, Any], Any]


@dataclass(frozen=True, slots=True)
class ResourceSpec:
    uri: str
    handler: ResourceHandler
    name: str | None = None
    description: str | None = None
    mime_type: str | None = None

    def __post_init__(self) -> None:
        if not self.uri:
            raise ValueError("resource uri must be non-empty")
        if not callable(self.handler):
            raise TypeError(f"resource {self.uri!r} handler must be callable")
        object.__setattr__(self, "uri", normalize_uri(self.uri))

    def to_resource(self) -> types.Resource:
        return types.Resource(
            uri=self.uri,  # type: ignore[arg-type]
            name=self.name or self.uri,
            description=self.description,
            mimeType=self.mime_type,
        )


_RESOURCE_ATTR = "__catalogmcp_resource__"


def resource(
    uri: str,
    *,
    name: str | None = None,
    description: str | None = None,
    mime_type: str | None = None,
) -> Callable[[ResourceHandler], ResourceHandler]:
    """Mark a callable as the reader for the resource at *uri*."""

    def decorator(fn: ResourceHandler) -> ResourceHandler:
        spec = ResourceSpec(
            uri=uri,
            handler=fn,
            name=name or fn.__name__,
            description=description if description is not None else ((fn.__doc__ or "").strip() or None),
            mime_type=mime_type,
        )
        setattr(fn, _RESOURCE_ATTR, spec)
        return fn

    return decorator


def extract_resource_spec(fn: Any) -> ResourceSpec | None:
    spec = getattr(fn, _RESOURCE_ATTR, None)
    if isinstance(spec, ResourceSpec):
        return spec
    return None


def coerce_resource(target: ResourceSpec | ResourceHandler) -> ResourceSpec:
    if isinstance(target, ResourceSpec):
        return target
    spec = extract_resource_spec(target)
    if spec is None:
        raise TypeError(f"{target!r} is neither a ResourceSpec nor decorated with @resource")
    return spec


__all__ = ["ResourceHandler", "ResourceSpec", "coerce_resource", "extract_resource_spec", "resource"]
