"""MCP stdio server exposing the git and Kimai tools."""

import logging

from anyio import to_thread
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from ..config import AppConfig
from ..git.log_query import GitLogService
from ..services.timesheet_pusher import TimesheetPusher
from ..utils.logging import ToolCallLogger
from .dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)

SERVER_NAME = "mcp-git"
SERVER_VERSION = "1.0.0"


def create_dispatcher(config: AppConfig) -> ToolDispatcher:
    """Wire capabilities from configuration."""
    return ToolDispatcher(
        git_service=GitLogService(config.git),
        timesheet_pusher=TimesheetPusher(config.kimai),
        call_logger=ToolCallLogger(config.server.log_dir),
    )


def create_server(dispatcher: ToolDispatcher) -> Server:
    """Create the MCP server.

    The tools/call handler is registered directly rather than through
    ``Server.call_tool()``: that decorator turns every exception into an
    ``isError`` result, while ``McpError`` raised here reaches the client as
    a JSON-RPC error carrying the dispatcher's error code.

    Args:
        dispatcher: Tool dispatcher serving list and call requests

    Returns:
        Low-level MCP server with tool handlers registered
    """
    server: Server = Server(SERVER_NAME, version=SERVER_VERSION)

    async def list_tools(_: types.ListToolsRequest) -> types.ServerResult:
        return types.ServerResult(types.ListToolsResult(tools=dispatcher.list_tools()))

    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        # git and Kimai calls block; keep the session's event loop free
        content = await to_thread.run_sync(
            dispatcher.call, request.params.name, request.params.arguments
        )
        return types.ServerResult(types.CallToolResult(content=content, isError=False))

    server.request_handlers[types.ListToolsRequest] = list_tools
    server.request_handlers[types.CallToolRequest] = call_tool

    return server


async def run_stdio(config: AppConfig) -> None:
    """Serve over stdin/stdout until the client disconnects."""
    server = create_server(create_dispatcher(config))
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Running 🚀🚀")
        await server.run(read_stream, write_stream, server.create_initialization_options())
