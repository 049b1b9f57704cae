"""Integration tests: verify the MCP server works over stdio transport."""

import json

import pytest

ALL_EXPECTED_TOOLS = [
    "run_scratch",
    "check_scratch",
    "list_expressions",
]


@pytest.mark.asyncio(loop_scope="session")
async def test_server_lists_all_tools(mcp_session):
    """Verify all registered tools are discoverable."""
    result = await mcp_session.list_tools()
    tool_names = [t.name for t in result.tools]

    for expected in ALL_EXPECTED_TOOLS:
        assert expected in tool_names, f"Missing tool: {expected}"


@pytest.mark.asyncio(loop_scope="session")
async def test_run_scratch_over_stdio(mcp_session):
    """Run a snippet end to end through the server."""
    result = await mcp_session.call_tool("run_scratch", {"code": "a = 20\nprint('side')\na + 22\n"})
    parsed = json.loads(result.content[0].text)

    assert parsed["success"] is True, parsed
    expressions = parsed["data"]["expressions"]
    assert expressions[0]["lineStart"] == 1
    assert expressions[0]["outputs"] == [{"type": "output", "text": "side"}]
    assert expressions[1]["outputs"] == [{"type": "result", "text": "42"}]


@pytest.mark.asyncio(loop_scope="session")
async def test_check_scratch_over_stdio(mcp_session):
    """Verify tool calls return parseable JSON with StandardResponse shape."""
    result = await mcp_session.call_tool("check_scratch", {"code": "x = (\n"})
    parsed = json.loads(result.content[0].text)

    assert parsed["success"] is True
    assert parsed["data"]["valid"] is False


@pytest.mark.asyncio(loop_scope="session")
async def test_run_scratch_requires_code(mcp_session):
    """Verify run_scratch fails gracefully when called without required arg."""
    # FastMCP should either reject the call or the handler returns an error
    try:
        result = await mcp_session.call_tool("run_scratch", {})
        text = result.content[0].text
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            assert result.isError
            return
        assert parsed["success"] is False
    except Exception:
        # FastMCP may raise on missing required args, that's also acceptable
        pass
