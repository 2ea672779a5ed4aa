import json

import pytest
import responses

from aksmcp.cache import AzureCache
from aksmcp.client import AzureClient, AzureResourceProvider
from aksmcp.config import Config
from aksmcp.registry import ToolRegistry, should_register_tool
from aksmcp.resourceid import parse_resource_id
from aksmcp.tooltypes import Tool, ToolAccessLevel, ToolCategory, ToolError, ToolResult

CLUSTER_ID = (
    "/subscriptions/sub/resourceGroups/rg/providers/"
    "Microsoft.ContainerService/managedClusters/aks"
)

NETWORK_TOOLS = {"get_vnet_info", "get_route_table_info", "get_nsg_info", "get_subnet_info"}


class _Credential:
    def get_token(self):
        return "token"


class _Sink:
    def __init__(self):
        self.added = []

    def add_tool(self, tool, handler):
        self.added.append((tool, handler))


def _registry(cfg):
    client = AzureClient(credential=_Credential())
    provider = AzureResourceProvider(cfg.parsed_resource_id, client, AzureCache())
    return ToolRegistry(provider, cfg)


def _single_cluster_config(access_level="read"):
    return Config(
        resource_id_string=CLUSTER_ID,
        single_cluster_mode=True,
        parsed_resource_id=parse_resource_id(CLUSTER_ID),
        access_level=access_level,
    )


def test_multi_cluster_registers_all_tools():
    registry = _registry(Config())
    registry.register_all_tools()
    assert set(registry.tools) == {"get_cluster_info", "list_aks_clusters"} | NETWORK_TOOLS


def test_single_cluster_skips_listing():
    registry = _registry(_single_cluster_config())
    registry.register_all_tools()
    assert set(registry.tools) == {"get_cluster_info"} | NETWORK_TOOLS


def test_single_cluster_tools_take_no_arguments():
    registry = _registry(_single_cluster_config())
    registry.register_all_tools()
    for definition in registry.tools.values():
        assert definition.tool.parameters == ()


def test_multi_cluster_tools_require_cluster_arguments():
    registry = _registry(Config())
    registry.register_all_tools()
    for name in {"get_cluster_info"} | NETWORK_TOOLS:
        schema = registry.tools[name].tool.to_dict()["inputSchema"]
        assert schema["required"] == ["subscription_id", "resource_group", "cluster_name"]
        assert schema["properties"]["subscription_id"]["description"] == "Azure Subscription ID"


def test_list_clusters_only_requires_subscription():
    registry = _registry(Config())
    registry.register_all_tools()
    schema = registry.tools["list_aks_clusters"].tool.to_dict()["inputSchema"]
    assert schema["required"] == ["subscription_id"]
    assert set(schema["properties"]) == {"subscription_id", "resource_group"}


def test_categories_and_access_levels():
    registry = _registry(Config())
    registry.register_all_tools()
    for name, definition in registry.tools.items():
        expected = ToolCategory.NETWORK if name in NETWORK_TOOLS else ToolCategory.CLUSTER
        assert definition.category == expected
        assert definition.access_level == ToolAccessLevel.READ
        assert definition.tool.name == name


def test_register_tool_accepts_strings():
    registry = _registry(Config())
    tool = Tool(name="custom")
    registry.register_tool("custom", tool, lambda arguments=None: ToolResult(), "security", "admin")
    definition = registry.tools["custom"]
    assert definition.category is ToolCategory.SECURITY
    assert definition.access_level is ToolAccessLevel.ADMIN


@pytest.mark.parametrize(
    "tool_level, config_level, expected",
    [
        ("read", "read", True),
        ("readwrite", "read", False),
        ("admin", "read", False),
        ("read", "readwrite", True),
        ("readwrite", "readwrite", True),
        ("admin", "readwrite", False),
        ("read", "admin", True),
        ("readwrite", "admin", True),
        ("admin", "admin", True),
        ("read", "bogus", True),
        ("readwrite", "bogus", False),
        (ToolAccessLevel.READWRITE, ToolAccessLevel.ADMIN, True),
    ],
)
def test_should_register_tool(tool_level, config_level, expected):
    assert should_register_tool(tool_level, config_level) is expected


def test_configure_mcp_server_filters_by_access_level():
    registry = _registry(Config(access_level="read"))
    registry.register_all_tools()
    registry.register_tool(
        "admin_tool", Tool(name="admin_tool"), lambda arguments=None: ToolResult(),
        ToolCategory.GENERAL, ToolAccessLevel.ADMIN,
    )
    sink = _Sink()
    registry.configure_mcp_server(sink)
    names = {tool.name for tool, _ in sink.added}
    assert "admin_tool" not in names
    assert names == set(registry.tools) - {"admin_tool"}


def test_configure_mcp_server_admin_gets_everything():
    registry = _registry(Config(access_level="admin"))
    registry.register_all_tools()
    registry.register_tool(
        "admin_tool", Tool(name="admin_tool"), lambda arguments=None: ToolResult(),
        ToolCategory.GENERAL, ToolAccessLevel.ADMIN,
    )
    sink = _Sink()
    registry.configure_mcp_server(sink)
    assert {tool.name for tool, _ in sink.added} == set(registry.tools)


def test_registered_handler_validates_arguments():
    registry = _registry(Config())
    registry.register_all_tools()
    handler = registry.tools["get_cluster_info"].handler
    with pytest.raises(ToolError, match="missing required parameters"):
        handler({"subscription_id": "sub"})


def test_registered_handler_fetches_cluster():
    registry = _registry(Config())
    registry.register_all_tools()
    handler = registry.tools["get_cluster_info"].handler
    url = (
        "https://management.azure.com/subscriptions/sub/resourceGroups/rg/providers/"
        "Microsoft.ContainerService/managedClusters/aks"
    )
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, url, json={"id": CLUSTER_ID, "name": "aks"})
        result = handler({"subscription_id": "sub", "resource_group": "rg", "cluster_name": "aks"})
    assert json.loads(result.text) == {"id": CLUSTER_ID, "name": "aks"}
    assert registry.cache.get(f"akscluster:{CLUSTER_ID}") == {"id": CLUSTER_ID, "name": "aks"}