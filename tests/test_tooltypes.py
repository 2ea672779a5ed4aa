import pytest

from aksmcp.tooltypes import (
    Tool,
    ToolAccessLevel,
    ToolCategory,
    ToolParameter,
    ToolResult,
)


def test_enum_values_match_source_constants():
    assert ToolCategory("cluster") is ToolCategory.CLUSTER
    assert ToolCategory("network") is ToolCategory.NETWORK
    assert ToolAccessLevel("readwrite") is ToolAccessLevel.READWRITE
    assert str(ToolAccessLevel.ADMIN) == "admin"


def test_unknown_access_level_rejected():
    with pytest.raises(ValueError):
        ToolAccessLevel("superuser")


def test_tool_to_dict_lists_parameters_and_required():
    tool = Tool(
        "get_cluster_info",
        "Get information about the AKS cluster",
        (
            ToolParameter("subscription_id", "Azure Subscription ID", required=True),
            ToolParameter("resource_group", "Optional group"),
        ),
    )
    data = tool.to_dict()
    assert data["name"] == "get_cluster_info"
    assert data["description"] == "Get information about the AKS cluster"
    schema = data["inputSchema"]
    assert list(schema["properties"]) == ["subscription_id", "resource_group"]
    assert schema["properties"]["subscription_id"]["description"] == "Azure Subscription ID"
    assert schema["required"] == ["subscription_id"]


def test_tool_without_required_parameters_omits_required():
    data = Tool("list", "List things", (ToolParameter("x"),)).to_dict()
    assert "required" not in data["inputSchema"]
    assert data["inputSchema"]["properties"]["x"]["type"] == "string"


def test_tool_without_parameters_has_empty_properties():
    data = Tool("t", "d").to_dict()
    assert data["inputSchema"]["properties"] == {}


def test_result_from_text_round_trip():
    result = ToolResult.from_text('{"a": 1}')
    assert result.text == '{"a": 1}'
    data = result.to_dict()
    assert data["content"] == [{"type": "text", "text": '{"a": 1}'}]
    assert "isError" not in data


def test_error_result_marks_is_error():
    result = ToolResult.from_text("boom")
    result.is_error = True
    assert result.to_dict()["isError"] is True