# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

from __future__ import annotations

import base64
import json

from mcp import types
import pytest

from catalogmcp.server.adapters import error_result, normalize_resource_payload, normalize_tool_result


def test_normalize_tool_result_from_string() -> None:
    result = normalize_tool_result("hello")
    assert isinstance(result, types.CallToolResult)
    assert result.content[0].text == "hello"
    assert result.isError is False


def test_normalize_tool_result_from_dict_payload() -> None:
    payload = {"content": [{"type": "text", "text": "ok"}], "isError": True}
    result = normalize_tool_result(payload)

    assert result.content[0].text == "ok"
    assert result.isError is True


def test_normalize_tool_result_passthrough() -> None:
    existing = types.CallToolResult(content=[types.TextContent(type="text", text="ready")])
    assert normalize_tool_result(existing) is existing


def test_normalize_tool_result_flattens_lists() -> None:
    result = normalize_tool_result(["a", {"type": "text", "text": "b"}, 3])
    assert [block.text for block in result.content] == ["a", "b", "3"]


def test_normalize_tool_result_mapping_without_type_is_json() -> None:
    result = normalize_tool_result({"rows": [1, 2]})
    assert json.loads(result.content[0].text) == {"rows": [1, 2]}


def test_normalize_tool_result_none_is_empty() -> None:
    assert normalize_tool_result(None).content == []


def test_error_result_has_single_text_item() -> None:
    result = error_result("Error: nope")
    assert result.isError is True
    assert len(result.content) == 1
    assert result.content[0].text == "Error: nope"


def test_normalize_resource_payload_bytes() -> None:
    data = b"\x00\x01demo"
    result = normalize_resource_payload("resource://demo/blob", None, data)
    content = result.contents[0]

    assert isinstance(content, types.BlobResourceContents)
    assert content.mimeType == "application/octet-stream"
    assert base64.b64decode(content.blob) == data


def test_normalize_resource_payload_text_default_mime() -> None:
    result = normalize_resource_payload("resource://demo/text", None, "hello")
    content = result.contents[0]

    assert isinstance(content, types.TextResourceContents)
    assert content.mimeType == "text/plain"
    assert content.text == "hello"


def test_normalize_resource_payload_contents_inherit_uri_and_mime() -> None:
    payload = {"contents": [{"text": "{}"}, {"uri": "resource://demo/other", "text": "x", "mimeType": "text/csv"}]}
    result = normalize_resource_payload("resource://demo/json", "application/json", payload)

    first, second = result.contents
    assert str(first.uri) == "resource://demo/json"
    assert first.mimeType == "application/json"
    assert str(second.uri) == "resource://demo/other"
    assert second.mimeType == "text/csv"


def test_normalize_resource_payload_blob_item() -> None:
    encoded = base64.b64encode(b"png").decode()
    result = normalize_resource_payload("resource://demo/img", "image/png", {"contents": [{"blob": encoded}]})
    assert isinstance(result.contents[0], types.BlobResourceContents)


def test_normalize_resource_payload_passthrough() -> None:
    existing = types.ReadResourceResult(
        contents=[types.TextResourceContents(uri="resource://demo/ready", mimeType="text/plain", text="ok")]
    )
    assert normalize_resource_payload("resource://demo/ready", None, existing) is existing


def test_normalize_resource_payload_rejects_odd_items() -> None:
    with pytest.raises(TypeError):
        normalize_resource_payload("resource://demo/x", None, {"contents": [42]})
