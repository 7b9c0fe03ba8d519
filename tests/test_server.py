"""Tool registry and MCP dispatch"""

import pytest

from legis_mcp.server import SERVER_NAME, ToolFailed, create_server, dispatch
from legis_mcp.tools import ALL_TOOLS, TOOLS

EXPECTED_TOOLS = {
    "analyze_bill",
    "get_bill",
    "list_recent_bills",
    "list_enacted_laws",
    "list_committees",
    "list_nominations",
    "list_house_votes",
    "list_hearings",
    "recent_summaries",
    "trending_bills",
    "congress_summary",
    "daily_congressional_record",
    "member_search",
    "member_details",
    "get_subresource",
}


def test_registry_is_complete():
    assert set(TOOLS) == EXPECTED_TOOLS
    assert len(ALL_TOOLS) == len(TOOLS)


@pytest.mark.parametrize("spec", ALL_TOOLS, ids=lambda s: s.name)
def test_tool_schemas(spec):
    tool = spec.to_tool()
    assert tool.name == spec.name
    assert tool.description
    assert tool.inputSchema["type"] == "object"
    assert "properties" in tool.inputSchema


def test_required_arguments_in_schema():
    schema = TOOLS["get_bill"].to_tool().inputSchema
    assert set(schema["required"]) == {"congress", "bill_type", "bill_number"}


async def test_unknown_tool(ctx):
    result = await dispatch("no_such_tool", {}, ctx)

    assert result.isError
    assert result.content[0].text == "Unknown tool: no_such_tool"


async def test_dispatch_runs_tool(ctx, upstream):
    upstream.add("/house-vote/118", {"houseRollCallVotes": []})

    result = await dispatch("list_house_votes", {"congress": 118}, ctx)

    assert not result.isError
    assert "Found 0 vote(s):" in result.content[0].text


async def test_dispatch_reports_errors(ctx):
    result = await dispatch("list_house_votes", {"congress": 117}, ctx)

    assert result.isError
    assert result.content[0].text.startswith("Failed to list House votes: ValidationError:")


def test_create_server(ctx):
    server = create_server(ctx)
    assert server.name == SERVER_NAME


def test_tool_failed_carries_message():
    assert str(ToolFailed("Failed to get bill details: NotFoundError: x")) == "Failed to get bill details: NotFoundError: x"
