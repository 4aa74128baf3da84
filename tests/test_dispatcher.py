import asyncio
import sys

import pytest

import mcp_tools
from mcp_errors import LaunchFailure
from mcp_registry import TOOL, CapabilityRegistry, Declaration
from mcp_stdio_server import MCPServer

from conftest import requires_git


@pytest.fixture
def server():
    return MCPServer()


def call(server, method, params=None, message_id=1):
    message = {"jsonrpc": "2.0", "id": message_id, "method": method}
    if params is not None:
        message["params"] = params
    return asyncio.run(server.handle_message(message))


def test_initialize(server):
    response = call(server, "initialize", {"protocolVersion": "2025-03-26"})
    result = response["result"]
    assert response["id"] == 1
    assert result["protocolVersion"] == "2025-03-26"
    assert result["capabilities"] == {"prompts": {}, "tools": {}}
    assert result["serverInfo"] == {"name": "mcp-house-rules", "version": "0.1.0"}


def test_ping(server):
    assert call(server, "ping", message_id="abc") == {"jsonrpc": "2.0", "id": "abc", "result": {}}


def test_notifications_get_no_response(server):
    message = {"jsonrpc": "2.0", "method": "notifications/initialized"}
    assert asyncio.run(server.handle_message(message)) is None


def test_null_id_is_still_a_request(server):
    response = asyncio.run(server.handle_message({"jsonrpc": "2.0", "id": None, "method": "ping"}))
    assert response == {"jsonrpc": "2.0", "id": None, "result": {}}


def test_list_prompts(server):
    prompts = call(server, "prompts/list")["result"]["prompts"]
    assert [p["name"] for p in prompts] == ["house_rules"]


def test_list_tools(server):
    tools = call(server, "tools/list")["result"]["tools"]
    assert [t["name"] for t in tools] == ["git_context"]
    assert tools[0]["inputSchema"]["required"] == ["repoPath"]


def test_get_prompt_default_mode(server):
    result = call(server, "prompts/get", {"name": "house_rules", "arguments": {}})["result"]
    assert result["description"] == "My reusable assistant rules"
    assert "Mode: general" in result["messages"][0]["content"]["text"].splitlines()


def test_get_prompt_without_arguments(server):
    result = call(server, "prompts/get", {"name": "house_rules"})["result"]
    assert "Mode: general" in result["messages"][0]["content"]["text"]


def test_get_prompt_with_mode(server):
    result = call(server, "prompts/get", {"name": "house_rules", "arguments": {"mode": "review"}})["result"]
    assert "Mode: review" in result["messages"][0]["content"]["text"].splitlines()


def test_get_unknown_prompt(server):
    response = call(server, "prompts/get", {"name": "nope", "arguments": {}})
    assert "result" not in response
    assert response["error"]["code"] == -32602
    assert response["error"]["data"]["kind"] == "NotFound"
    assert response["error"]["message"] == "Unknown prompt: nope"


def test_call_unknown_tool(server):
    response = call(server, "tools/call", {"name": "rm_rf", "arguments": {}})
    assert response["error"]["data"]["kind"] == "NotFound"


def test_unknown_method(server):
    response = call(server, "resources/list")
    assert response["error"]["code"] == -32601


def test_invalid_request_shapes(server):
    assert asyncio.run(server.handle_message([1, 2]))["error"]["code"] == -32600
    response = asyncio.run(server.handle_message({"jsonrpc": "2.0", "id": 4, "params": {}}))
    assert response["error"]["code"] == -32600
    assert response["id"] == 4
    assert call(server, "tools/list", params=["x"])["error"]["code"] == -32600


def test_missing_required_tool_argument(server):
    response = call(server, "tools/call", {"name": "git_context", "arguments": {}})
    assert response["error"]["code"] == -32602
    assert response["error"]["data"] == {"kind": "MissingField", "field": "repoPath"}


@pytest.mark.parametrize("max_commits", [0, 51])
def test_out_of_range_rejected_before_any_process(server, monkeypatch, max_commits):
    async def forbidden(*args, **kwargs):
        raise AssertionError("no process should run")

    monkeypatch.setattr(mcp_tools, "run_command", forbidden)
    monkeypatch.setattr(mcp_tools, "run_checked", forbidden)

    response = call(server, "tools/call", {"name": "git_context", "arguments": {"repoPath": "/tmp", "maxCommits": max_commits}})
    assert response["error"]["data"] == {"kind": "TypeMismatch", "field": "maxCommits"}


@requires_git
def test_call_tool_not_a_repository(server, not_a_repo):
    response = call(server, "tools/call", {"name": "git_context", "arguments": {"repoPath": str(not_a_repo)}})
    result = response["result"]
    assert result["isError"] is False
    assert result["content"] == [{"type": "text", "text": f"Not a git repository: {not_a_repo}"}]


@requires_git
def test_call_tool_on_repository(server, make_repo):
    repo = make_repo(commits=4)
    params = {"name": "git_context", "arguments": {"repoPath": str(repo), "maxCommits": 3}}
    first = call(server, "tools/call", params)
    second = call(server, "tools/call", params)
    text = first["result"]["content"][0]["text"]
    assert "- Branch: main" in text
    assert text.count("commit number") == 4  # three listed plus the diffstat header
    assert first == second


def test_launch_failure_becomes_error_frame(server, monkeypatch):
    async def inside_work_tree(command, args, **kwargs):
        class Ok:
            ok = True
            stdout = "true"
        return Ok()

    async def broken(command, args, **kwargs):
        raise LaunchFailure([command, *args], "git exited with status 128: fatal", exit_code=128, stderr="fatal")

    monkeypatch.setattr(mcp_tools, "run_command", inside_work_tree)
    monkeypatch.setattr(mcp_tools, "run_checked", broken)

    response = call(server, "tools/call", {"name": "git_context", "arguments": {"repoPath": "/r"}})
    assert response["error"]["code"] == -32603
    assert response["error"]["data"]["kind"] == "LaunchFailure"
    assert response["error"]["data"]["exitCode"] == 128


def test_unexpected_handler_exception_is_internal_error():
    async def explode(args):
        raise RuntimeError("boom")

    registry = CapabilityRegistry()
    registry.declare(TOOL, Declaration(kind=TOOL, name="explode", description="fails"), explode)
    server = MCPServer(registry.freeze())

    response = call(server, "tools/call", {"name": "explode"})
    assert response["error"] == {"code": -32603, "message": "Internal error: boom"}

    # The server keeps working after a failure
    assert call(server, "tools/list", message_id=2)["result"]["tools"][0]["name"] == "explode"


def test_overlapping_tool_calls_leave_stdout_alone():
    async def slow(args):
        await asyncio.sleep(0.2)
        return [{"type": "text", "text": "slow"}]

    async def fast(args):
        await asyncio.sleep(0.05)
        return [{"type": "text", "text": "fast"}]

    registry = CapabilityRegistry()
    registry.declare(TOOL, Declaration(kind=TOOL, name="slow", description="slow"), slow)
    registry.declare(TOOL, Declaration(kind=TOOL, name="fast", description="fast"), fast)
    server = MCPServer(registry.freeze())

    async def both():
        return await asyncio.gather(
            server.handle_message({"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "slow"}}),
            server.handle_message({"jsonrpc": "2.0", "id": 2, "method": "tools/call", "params": {"name": "fast"}}),
        )

    original = sys.stdout
    slow_response, fast_response = asyncio.run(both())
    assert sys.stdout is original
    assert slow_response["result"]["content"][0]["text"] == "slow"
    assert fast_response["result"]["content"][0]["text"] == "fast"
