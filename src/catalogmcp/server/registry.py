# ==============================================================================
#                  © 2025 Dedalus Labs, Inc. and affiliates
#                            Licensed under MIT
#               github.com/dedalus-labs/openmcp-python/LICENSE
# ==============================================================================

"""Read-only catalog of tools, resources and resource templates."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..resource import ResourceHandler, ResourceSpec, coerce_resource
from ..resource_template import ResourceTemplateHandler, ResourceTemplateSpec, coerce_resource_template
from ..tool import ToolHandler, ToolSpec, coerce_tool
from .config import ServerConfig


@dataclass(frozen=True, slots=True)
class Registry:
    """Entries in registration order.

    Names and URIs are not deduplicated: lookups return the first entry that
    matches.  The registry never changes after construction, so concurrent
    readers need no locking.
    """

    tools: tuple[ToolSpec, ...] = ()
    resources: tuple[ResourceSpec, ...] = ()
    resource_templates: tuple[ResourceTemplateSpec, ...] = ()

    @classmethod
    def build(
        cls,
        *,
        tools: Iterable[ToolSpec | ToolHandler] = (),
        resources: Iterable[ResourceSpec | ResourceHandler] = (),
        resource_templates: Iterable[ResourceTemplateSpec | ResourceTemplateHandler] = (),
    ) -> Registry:
        return cls(
            tools=tuple(coerce_tool(item) for item in tools),
            resources=tuple(coerce_resource(item) for item in resources),
            resource_templates=tuple(coerce_resource_template(item) for item in resource_templates),
        )

    @classmethod
    def from_config(cls, config: ServerConfig) -> Registry:
        return cls.build(
            tools=config.tools,
            resources=config.resources,
            resource_templates=config.resource_templates,
        )

    @property
    def tool_names(self) -> list[str]:
        return [spec.name for spec in self.tools]

    def list_tools(self) -> tuple[ToolSpec, ...]:
        return self.tools

    def list_resources(self) -> tuple[ResourceSpec, ...]:
        return self.resources

    def list_resource_templates(self) -> tuple[ResourceTemplateSpec, ...]:
        return self.resource_templates

    def find_tool(self, name: str) -> ToolSpec | None:
        return next((spec for spec in self.tools if spec.name == name), None)

    def find_resource(self, uri: str) -> ResourceSpec | None:
        """Exact URI lookup; templates are the dispatcher's concern."""
        return next((spec for spec in self.resources if spec.uri == uri), None)


__all__ = ["Registry"]
