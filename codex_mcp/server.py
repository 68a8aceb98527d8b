"""MCP stdio server — exposes the codex tools over Model Context Protocol.

stdout carries the JSON-RPC stream, so everything else (logs included) goes
to stderr.
"""

from __future__ import annotations

import asyncio
import logging
import os
import signal

import mcp.types as types
from mcp.server import Server
from mcp.server.stdio import stdio_server

from codex_mcp import __version__
from codex_mcp.config import CodexSettings
from codex_mcp.supervisor.manager import AgentSupervisor
from codex_mcp.tools import CodexTools

_logger = logging.getLogger(__name__)

SERVER_NAME = "codex-mcp"


class ToolCallError(Exception):
    """Raised with a JSON error payload so the SDK flags the result isError."""


def build_server(tools: CodexTools) -> Server:
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def _list_tools() -> list[types.Tool]:
        return [types.Tool(**d) for d in tools.definitions()]

    @server.call_tool()
    async def _call_tool(name: str, arguments: dict) -> list[types.TextContent]:
        response = await tools.respond(name, arguments)
        if response.is_error:
            raise ToolCallError(response.to_json())
        return [types.TextContent(type="text", text=response.to_json())]

    return server


def install_interrupt_handler(supervisor: AgentSupervisor) -> None:
    """On SIGINT/SIGTERM, signal every live agent and exit at once.

    The stdin reader thread cannot be cancelled, so the process exits without
    unwinding the event loop.
    """
    loop = asyncio.get_running_loop()

    def _on_interrupt() -> None:
        supervisor.shutdown()
        _logger.info("Interrupted, exiting")
        logging.shutdown()
        os._exit(0)

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _on_interrupt)


async def serve(
    settings: CodexSettings, supervisor: AgentSupervisor | None = None,
) -> None:
    """Run the MCP server on stdio until the client disconnects.

    Agents still running when the client goes away are sent SIGTERM.
    """
    if supervisor is None:
        supervisor = AgentSupervisor.from_settings(settings)
    server = build_server(CodexTools(supervisor))
    install_interrupt_handler(supervisor)

    async with stdio_server() as (read_stream, write_stream):
        _logger.info("Codex MCP server running on stdio")
        _logger.info("Using codex binary: %s", settings.binary)
        _logger.info("Default model: %s", settings.default_model)
        _logger.info(
            "Max output size: %d bytes (%.2fMB)",
            settings.max_output_size, settings.max_output_size / 1024 / 1024,
        )
        _logger.info("Server ready to accept tool calls")
        try:
            await server.run(
                read_stream, write_stream, server.create_initialization_options(),
            )
        finally:
            supervisor.shutdown()
