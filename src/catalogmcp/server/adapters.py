# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Coerce handler return values into MCP result models.

Tool handlers are expected to return ``{"content": [...], "isError": ...}``
and resource handlers ``{"contents": [...]}``, but both may also hand back
the SDK models directly or simpler values (strings, bytes, mappings).
"""

from __future__ import annotations

import base64
from collections.abc import Iterable, Mapping
import json
from typing import Any

from mcp import types
from pydantic import ValidationError


__all__ = ["error_result", "normalize_resource_payload", "normalize_tool_result", "text_result"]


def text_result(text: str, *, is_error: bool = False) -> types.CallToolResult:
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=is_error)


def error_result(message: str) -> types.CallToolResult:
    """Error-flagged result carrying *message* as its only content item."""
    return text_result(message, is_error=True)


def normalize_tool_result(value: Any) -> types.CallToolResult:
    """Coerce arbitrary tool handler output into ``CallToolResult``."""
    if isinstance(value, types.CallToolResult):
        return value

    if isinstance(value, Mapping) and "content" in value:
        try:
            return types.CallToolResult.model_validate(dict(value))
        except ValidationError:
            pass

    return types.CallToolResult(content=_coerce_content_blocks(value))


def _coerce_content_blocks(source: Any) -> list[types.ContentBlock]:
    if source is None:
        return []

    if isinstance(source, (types.TextContent, types.ImageContent, types.AudioContent, types.EmbeddedResource)):
        return [source]

    if isinstance(source, str):
        return [types.TextContent(type="text", text=source)]

    if isinstance(source, (bytes, bytearray)):
        encoded = base64.b64encode(bytes(source)).decode("ascii")
        return [types.TextContent(type="text", text=encoded)]

    if isinstance(source, Mapping):
        block = _content_from_mapping(source)
        return [block] if block is not None else [_as_text_content(source)]

    if isinstance(source, Iterable):
        blocks: list[types.ContentBlock] = []
        for item in source:
            blocks.extend(_coerce_content_blocks(item))
        return blocks

    return [_as_text_content(source)]


def _content_from_mapping(data: Mapping[str, Any]) -> types.ContentBlock | None:
    marker = data.get("type")
    model = {
        "text": types.TextContent,
        "image": types.ImageContent,
        "audio": types.AudioContent,
        "resource": types.EmbeddedResource,
    }.get(marker)  # type: ignore[arg-type]
    if model is None:
        return None
    try:
        return model.model_validate(dict(data))
    except ValidationError:
        return None


def _as_text_content(value: Any) -> types.TextContent:
    try:
        text = json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        text = str(value)
    return types.TextContent(type="text", text=text)


def normalize_resource_payload(uri: str, declared_mime: str | None, payload: Any) -> types.ReadResourceResult:
    """Coerce resource handler output into ``ReadResourceResult``.

    Content items that omit ``uri`` or ``mimeType`` inherit the read URI and
    the declared MIME type.
    """
    if isinstance(payload, types.ReadResourceResult):
        return payload

    if isinstance(payload, (types.TextResourceContents, types.BlobResourceContents)):
        return types.ReadResourceResult(contents=[payload])

    if isinstance(payload, Mapping) and "contents" in payload:
        items = [_resource_contents(uri, declared_mime, item) for item in payload["contents"]]
        return types.ReadResourceResult(contents=items)

    if isinstance(payload, Mapping):
        return types.ReadResourceResult(contents=[_resource_contents(uri, declared_mime, payload)])

    if isinstance(payload, (bytes, bytearray)):
        encoded = base64.b64encode(bytes(payload)).decode("ascii")
        blob = types.BlobResourceContents(
            uri=uri,  # type: ignore[arg-type]
            mimeType=declared_mime or "application/octet-stream",
            blob=encoded,
        )
        return types.ReadResourceResult(contents=[blob])

    text = payload if isinstance(payload, str) else str(payload)
    return types.ReadResourceResult(
        contents=[
            types.TextResourceContents(uri=uri, mimeType=declared_mime or "text/plain", text=text)  # type: ignore[arg-type]
        ]
    )


def _resource_contents(
    uri: str, declared_mime: str | None, item: Any
) -> types.TextResourceContents | types.BlobResourceContents:
    if isinstance(item, (types.TextResourceContents, types.BlobResourceContents)):
        return item
    if not isinstance(item, Mapping):
        raise TypeError(f"Unsupported resource content item: {type(item)!r}")

    data = {"uri": uri, **dict(item)}
    if declared_mime is not None:
        data.setdefault("mimeType", declared_mime)
    if "blob" in data:
        return types.BlobResourceContents.model_validate(data)
    return types.TextResourceContents.model_validate(data)
