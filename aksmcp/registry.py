"""Registry of the tools the server offers, filtered by access level."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Union

from .cache import AzureCache
from .client import AzureClient, AzureResourceProvider
from .clusterhandlers import get_cluster_info_handler, list_clusters_handler
from .config import Config
from .networkhandlers import (
    get_nsg_info_handler,
    get_route_table_info_handler,
    get_subnet_info_handler,
    get_vnet_info_handler,
)
from .tooltypes import Tool, ToolAccessLevel, ToolCategory, ToolHandler, ToolParameter

_CLUSTER_ARGUMENTS = (
    ToolParameter("subscription_id", "Azure Subscription ID", required=True),
    ToolParameter(
        "resource_group", "Azure Resource Group containing the AKS cluster", required=True
    ),
    ToolParameter("cluster_name", "Name of the AKS cluster", required=True),
)

_LIST_CLUSTERS_ARGUMENTS = (
    ToolParameter("subscription_id", "Azure Subscription ID", required=True),
    ToolParameter(
        "resource_group", "Optional: Azure Resource Group to filter clusters by"
    ),
)


class _ToolSink(Protocol):
    def add_tool(self, tool: Tool, handler: ToolHandler) -> None: ...


@dataclass(frozen=True)
class ToolDefinition:
    """A tool together with its handler, category and required access level."""

    tool: Tool
    handler: ToolHandler
    category: ToolCategory
    access_level: ToolAccessLevel


def should_register_tool(
    tool_access_level: Union[ToolAccessLevel, str],
    config_access_level: Union[ToolAccessLevel, str],
) -> bool:
    """Tell whether a tool needing one access level is offered at another.

    Unknown configured levels are treated as read-only.
    """
    tool_level = str(tool_access_level)
    config_level = str(config_access_level)
    if config_level == "admin":
        return True
    if config_level == "readwrite":
        return tool_level in ("read", "readwrite")
    return tool_level == "read"


class ToolRegistry:
    """The set of tools known to the server."""

    def __init__(self, azure_provider: AzureResourceProvider, cfg: Config) -> None:
        self.azure_provider = azure_provider
        self.config = cfg
        self.tools: dict[str, ToolDefinition] = {}

    @property
    def client(self) -> AzureClient:
        return self.azure_provider.client

    @property
    def cache(self) -> AzureCache:
        return self.azure_provider.cache

    def register_tool(
        self,
        name: str,
        tool: Tool,
        handler: ToolHandler,
        category: Union[ToolCategory, str],
        access_level: Union[ToolAccessLevel, str],
    ) -> None:
        """Add or replace the tool stored under a name."""
        self.tools[name] = ToolDefinition(
            tool=tool,
            handler=handler,
            category=ToolCategory(category),
            access_level=ToolAccessLevel(access_level),
        )

    def register_all_tools(self) -> None:
        """Register the cluster tools and the network tools."""
        self._register_cluster_tools()
        self._register_network_tools()

    def configure_mcp_server(self, mcp_server: _ToolSink) -> None:
        """Add to the server every tool the configured access level allows."""
        for definition in self.tools.values():
            if should_register_tool(definition.access_level, self.config.access_level):
                mcp_server.add_tool(definition.tool, definition.handler)

    def _cluster_tool(self, name: str, description: str) -> Tool:
        parameters = () if self.config.single_cluster_mode else _CLUSTER_ARGUMENTS
        return Tool(name=name, description=description, parameters=parameters)

    def _register_cluster_tools(self) -> None:
        cfg = self.config
        self.register_tool(
            "get_cluster_info",
            self._cluster_tool("get_cluster_info", "Get information about the AKS cluster"),
            get_cluster_info_handler(self.client, self.cache, cfg),
            ToolCategory.CLUSTER,
            ToolAccessLevel.READ,
        )

        if not cfg.single_cluster_mode:
            self.register_tool(
                "list_aks_clusters",
                Tool(
                    name="list_aks_clusters",
                    description="List AKS clusters in a subscription and optional resource group",
                    parameters=_LIST_CLUSTERS_ARGUMENTS,
                ),
                list_clusters_handler(self.client, self.cache, cfg),
                ToolCategory.CLUSTER,
                ToolAccessLevel.READ,
            )

    def _register_network_tools(self) -> None:
        cfg = self.config
        network_tools = (
            (
                "get_vnet_info",
                "Get information about the VNet used by the AKS cluster",
                get_vnet_info_handler,
            ),
            (
                "get_route_table_info",
                "Get information about the route tables used by the AKS cluster",
                get_route_table_info_handler,
            ),
            (
                "get_nsg_info",
                "Get information about the network security groups used by the AKS cluster",
                get_nsg_info_handler,
            ),
            (
                "get_subnet_info",
                "Get information about the subnets used by the AKS cluster",
                get_subnet_info_handler,
            ),
        )
        for name, description, make_handler in network_tools:
            self.register_tool(
                name,
                self._cluster_tool(name, description),
                make_handler(self.client, self.cache, cfg),
                ToolCategory.NETWORK,
                ToolAccessLevel.READ,
            )