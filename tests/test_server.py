# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""End-to-end protocol tests over in-memory streams."""

from __future__ import annotations

from typing import Any

from mcp import types
from mcp.shared.exceptions import McpError
from pydantic import AnyUrl
import pytest

from catalogmcp import ResourceSpec, ResourceTemplateSpec, ToolSpec
from tests.helpers import ECHO, connected_client, make_server


def _status(uri: str, context: Any) -> dict[str, Any]:
    return {"contents": [{"text": "green"}]}


def _item(uri: str, variables: dict[str, str], context: Any) -> dict[str, Any]:
    return {"contents": [{"text": f"item {variables['id']}", "mimeType": "application/json"}]}


def _catalog_server(**overrides: Any):
    options: dict[str, Any] = {
        "tools": (ECHO, ToolSpec(name="explode", handler=_explode)),
        "resources": (ResourceSpec(uri="catalog://status", handler=_status, name="status", mime_type="text/plain"),),
        "resource_templates": (ResourceTemplateSpec(uri_template="catalog://items/{id}", handler=_item, name="item"),),
    }
    options.update(overrides)
    return make_server(**options)


def _explode(arguments: Any, context: Any) -> None:
    raise ValueError("kaboom")


def test_capabilities_advertise_tools_and_resources() -> None:
    capabilities = _catalog_server().create_initialization_options().capabilities

    assert capabilities.tools is not None
    assert capabilities.resources is not None
    assert capabilities.prompts is None


@pytest.mark.anyio
async def test_list_tools_over_protocol() -> None:
    async with connected_client(_catalog_server()) as client:
        result = await client.list_tools()

    assert [tool.name for tool in result.tools] == ["echo", "explode"]
    assert result.tools[0].description == "Echo a message"
    assert result.tools[0].inputSchema["required"] == ["message"]
    assert result.tools[1].inputSchema == {"type": "object", "properties": {}}


@pytest.mark.anyio
async def test_call_tool_over_protocol() -> None:
    async with connected_client(_catalog_server()) as client:
        result = await client.call_tool("echo", {"message": "hi"})

    assert result.isError is False
    assert result.content[0].type == "text"
    assert result.content[0].text == "hi"


@pytest.mark.anyio
async def test_protocol_faults_reach_the_client() -> None:
    async with connected_client(_catalog_server()) as client:
        with pytest.raises(McpError) as missing:
            await client.call_tool("nonexistent", {})
        with pytest.raises(McpError) as invalid:
            await client.call_tool("echo", {"message": 3})
        with pytest.raises(McpError) as unknown_resource:
            await client.read_resource(AnyUrl("catalog://nowhere"))

    assert missing.value.error.code == types.METHOD_NOT_FOUND
    assert invalid.value.error.code == types.INVALID_PARAMS
    assert invalid.value.error.message == "Invalid echo parameters"
    assert unknown_resource.value.error.code == types.METHOD_NOT_FOUND


@pytest.mark.anyio
async def test_failing_tool_keeps_session_usable() -> None:
    async with connected_client(_catalog_server()) as client:
        failed = await client.call_tool("explode", {})
        after = await client.call_tool("echo", {"message": "still here"})

    assert failed.isError is True
    assert failed.content[0].text == "Error: kaboom"
    assert after.content[0].text == "still here"


@pytest.mark.anyio
async def test_resources_over_protocol() -> None:
    async with connected_client(_catalog_server()) as client:
        listed = await client.list_resources()
        templates = await client.list_resource_templates()
        status = await client.read_resource(AnyUrl("catalog://status"))
        item = await client.read_resource(AnyUrl("catalog://items/42"))

    assert [str(resource.uri) for resource in listed.resources] == ["catalog://status"]
    assert [template.uriTemplate for template in templates.resourceTemplates] == ["catalog://items/{id}"]

    (status_contents,) = status.contents
    assert status_contents.text == "green"
    assert status_contents.mimeType == "text/plain"
    assert str(status_contents.uri) == "catalog://status"

    (item_contents,) = item.contents
    assert item_contents.text == "item 42"
    assert item_contents.mimeType == "application/json"
    assert str(item_contents.uri) == "catalog://items/42"


@pytest.mark.anyio
@pytest.mark.parametrize("uri", ["https://x/y", "https://example.com", "https://Example.com/docs"])
async def test_listed_resource_is_readable_by_its_advertised_uri(uri: str) -> None:
    server = _catalog_server(resources=(ResourceSpec(uri=uri, handler=lambda u, c: "ok"),), resource_templates=())

    async with connected_client(server) as client:
        listed = await client.list_resources()
        read = await client.read_resource(listed.resources[0].uri)

    assert read.contents[0].text == "ok"
    assert read.contents[0].uri == listed.resources[0].uri


@pytest.mark.anyio
async def test_template_with_mixed_case_host_matches_protocol_uris() -> None:
    seen: list[tuple[str, dict[str, str]]] = []

    def page(uri: str, variables: dict[str, str], context: Any) -> str:
        seen.append((uri, variables))
        return "page"

    server = _catalog_server(
        resource_templates=(ResourceTemplateSpec(uri_template="https://Docs.Example.com/pages/{slug}", handler=page),),
    )

    async with connected_client(server) as client:
        templates = await client.list_resource_templates()
        read = await client.read_resource(AnyUrl("https://Docs.Example.com/pages/intro"))

    assert templates.resourceTemplates[0].uriTemplate == "https://docs.example.com/pages/{slug}"
    assert read.contents[0].text == "page"
    assert seen == [("https://docs.example.com/pages/intro", {"slug": "intro"})]


@pytest.mark.anyio
async def test_ping_over_protocol() -> None:
    async with connected_client(_catalog_server()) as client:
        result = await client.send_ping()

    assert isinstance(result, types.EmptyResult)


@pytest.mark.anyio
async def test_unauthenticated_connection_sees_absent_session() -> None:
    def whoami(arguments: Any, context: Any) -> str:
        return "anonymous" if context.session is None else str(context.session)

    server = _catalog_server(tools=(ToolSpec(name="whoami", handler=whoami),))

    async with connected_client(server) as client:
        result = await client.call_tool("whoami", {})

    assert result.isError is False
    assert result.content[0].text == "anonymous"


@pytest.mark.anyio
async def test_connection_session_reaches_handlers() -> None:
    seen: list[Any] = []

    def whoami(arguments: Any, context: Any) -> str:
        seen.append(context)
        return str(context.session["user"])

    def read_profile(uri: str, context: Any) -> str:
        return f"profile of {context.session['user']}"

    server = _catalog_server(
        tools=(ToolSpec(name="whoami", handler=whoami),),
        resources=(ResourceSpec(uri="catalog://me", handler=read_profile),),
    )

    async with connected_client(server, session={"user": "alice"}) as client:
        tool_result = await client.call_tool("whoami", {})
        await client.call_tool("whoami", {})
        resource_result = await client.read_resource(AnyUrl("catalog://me"))

    assert tool_result.content[0].text == "alice"
    assert resource_result.contents[0].text == "profile of alice"
    assert seen[0] is not seen[1]
    assert seen[0].connection_id == seen[1].connection_id
    assert seen[0].request_id != seen[1].request_id


@pytest.mark.anyio
async def test_separate_connections_do_not_share_sessions() -> None:
    server = _catalog_server(tools=(ToolSpec(name="whoami", handler=lambda args, ctx: str(ctx.session)),))

    async with connected_client(server, session="alice") as alice:
        async with connected_client(server, session="bob") as bob:
            from_bob = await bob.call_tool("whoami", {})
            from_alice = await alice.call_tool("whoami", {})

    assert from_alice.content[0].text == "alice"
    assert from_bob.content[0].text == "bob"
