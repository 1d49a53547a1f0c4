# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Project catalog served over stdio or SSE.

Demonstrates:
- Tools with pydantic parameters and a schema-less tool
- A static resource and a resource template
- Bearer-token authentication producing a per-connection session

Usage:
    python examples/catalog_server.py                        # stdio
    CATALOGMCP_TRANSPORT=sse python examples/catalog_server.py
    curl -N -H "Authorization: Bearer demo" http://127.0.0.1:9990/sse
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import json
import os
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from catalogmcp import (
    MCPServer,
    SSEConfig,
    ServerConfig,
    SessionContext,
    bearer_token,
    resource,
    resource_template,
    tool,
)
from catalogmcp.utils import setup_logger


@dataclass
class ProjectStore:
    """In-memory stand-in for a remote projects API."""

    owner: str
    projects: dict[str, dict[str, Any]] = field(default_factory=dict)

    def create(self, name: str, region: str) -> dict[str, Any]:
        project_id = f"p-{len(self.projects) + 1}"
        project = {"id": project_id, "name": name, "region": region, "owner": self.owner}
        self.projects[project_id] = project
        return project


@dataclass
class CatalogSession:
    token: str
    store: ProjectStore


# stdio has no request to authenticate, so it works against a local store.
_LOCAL_STORE = ProjectStore(owner="local")


def _store(context: SessionContext[CatalogSession]) -> ProjectStore:
    session = context.session
    return session.store if session is not None else _LOCAL_STORE


async def authenticate(request: Request) -> CatalogSession:
    token = bearer_token(request)
    return CatalogSession(token=token, store=ProjectStore(owner=token))


class EchoParams(BaseModel):
    text: str


class CreateProjectParams(BaseModel):
    name: str = Field(min_length=1)
    region: str = "aws-us-east-2"


@tool(parameters=EchoParams)
def echo(arguments: EchoParams, context: SessionContext[CatalogSession]) -> dict[str, Any]:
    """Echo the given text."""
    return {"content": [{"type": "text", "text": arguments.text}]}


@tool()
def list_projects(arguments: dict[str, Any], context: SessionContext[CatalogSession]) -> str:
    """List the projects visible to this connection."""
    return json.dumps(list(_store(context).projects.values()))


@tool(parameters=CreateProjectParams)
async def create_project(arguments: CreateProjectParams, context: SessionContext[CatalogSession]) -> str:
    """Create a project."""
    project = _store(context).create(arguments.name, arguments.region)
    return json.dumps(project)


@resource("catalog://projects", mime_type="application/json")
def projects(uri: str, context: SessionContext[CatalogSession]) -> dict[str, Any]:
    """All projects as JSON."""
    return {"contents": [{"text": json.dumps(list(_store(context).projects.values()))}]}


@resource_template("catalog://projects/{project_id}", name="project", mime_type="application/json")
def project(uri: str, variables: dict[str, str], context: SessionContext[CatalogSession]) -> dict[str, Any]:
    """One project by id."""
    found = _store(context).projects.get(variables["project_id"])
    if found is None:
        raise KeyError(f"no project {variables['project_id']}")
    return {"contents": [{"uri": uri, "text": json.dumps(found)}]}


def build_config() -> ServerConfig:
    return ServerConfig(
        name="project-catalog",
        version="0.1.0",
        transport=os.getenv("CATALOGMCP_TRANSPORT", "stdio"),
        sse=SSEConfig.from_env(default_port=9990),
        tools=[echo, list_projects, create_project],
        resources=[projects],
        resource_templates=[project],
        authenticate=authenticate,
    )


async def main() -> None:
    setup_logger()
    await MCPServer(build_config()).serve()


if __name__ == "__main__":
    asyncio.run(main())
