"""Tests for the MCP server wiring, driven through its request handlers."""

from __future__ import annotations

import asyncio
import json
import os
import signal
from contextlib import asynccontextmanager

import anyio
import mcp.types as types
import pytest

import codex_mcp.server as server_module
from codex_mcp.config import CodexSettings
from codex_mcp.server import SERVER_NAME, build_server, install_interrupt_handler, serve
from codex_mcp.tools import CodexTools

SLEEP_FOREVER = "import time; time.sleep(60)"


@pytest.fixture
def server(supervisor):
    return build_server(CodexTools(supervisor))


async def _call(server, name: str, arguments: dict) -> types.CallToolResult:
    handler = server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments),
    )
    return (await handler(request)).root


def test_server_name(server):
    assert server.name == SERVER_NAME == "codex-mcp"


@pytest.mark.asyncio
async def test_list_tools(server):
    handler = server.request_handlers[types.ListToolsRequest]
    result = (await handler(types.ListToolsRequest(method="tools/list"))).root
    names = {tool.name for tool in result.tools}
    assert "spawn_agent" in names
    assert "check_codex_available" in names
    assert len(names) == 7


@pytest.mark.asyncio
async def test_call_tool_returns_json_text(server, supervisor):
    record = await supervisor.spawn("print('hi')")
    await supervisor.wait_for(record.id, 5000)

    result = await _call(server, "get_agent_output", {"agent_id": record.id})
    assert not result.isError
    payload = json.loads(result.content[0].text)
    assert payload["stdout"] == "hi\n"
    assert payload["status"] == "completed"


@pytest.mark.asyncio
async def test_call_tool_error_is_flagged(server):
    result = await _call(server, "stop_agent", {"agent_id": "missing"})
    assert result.isError
    assert json.loads(result.content[0].text) == {"error": "Agent missing not found"}


# ── Shutdown wiring ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_interrupt_signals_running_agents_before_exit(supervisor, monkeypatch):
    calls: list[str] = []
    record = await supervisor.spawn(SLEEP_FOREVER)
    broadcast = supervisor.shutdown

    def recording_shutdown(*args, **kwargs):
        calls.append("shutdown")
        return broadcast(*args, **kwargs)

    def fake_exit(code):
        calls.append(f"exit {code}")

    monkeypatch.setattr(supervisor, "shutdown", recording_shutdown)
    monkeypatch.setattr(server_module.os, "_exit", fake_exit)
    monkeypatch.setattr(server_module.logging, "shutdown", lambda: None)

    loop = asyncio.get_running_loop()
    install_interrupt_handler(supervisor)
    try:
        os.kill(os.getpid(), signal.SIGINT)
        snap = await supervisor.wait_for(record.id, 5000)
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)

    assert calls == ["shutdown", "exit 0"]
    assert snap.exit_code == -signal.SIGTERM
    assert snap.exit_signal == "SIGTERM"


@pytest.mark.asyncio
async def test_client_disconnect_signals_running_agents(supervisor, monkeypatch):
    @asynccontextmanager
    async def disconnected_stdio():
        client_send, read_stream = anyio.create_memory_object_stream(1)
        write_stream, client_receive = anyio.create_memory_object_stream(1)
        await client_send.aclose()
        try:
            yield read_stream, write_stream
        finally:
            await client_receive.aclose()

    monkeypatch.setattr(server_module, "stdio_server", disconnected_stdio)
    monkeypatch.setattr(server_module, "install_interrupt_handler", lambda supervisor: None)

    record = await supervisor.spawn(SLEEP_FOREVER)
    await asyncio.wait_for(serve(CodexSettings(), supervisor=supervisor), timeout=5)

    snap = await supervisor.wait_for(record.id, 5000)
    assert snap.exit_signal == "SIGTERM"
