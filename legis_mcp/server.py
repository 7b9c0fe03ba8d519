#!/usr/bin/env python3
"""
LegisMCP Server
Congressional data tools over the MCP stdio transport
"""

import asyncio
from typing import Any, Dict, List, Optional

import mcp.server.stdio
import mcp.types as types
import structlog
from dotenv import load_dotenv
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from . import __version__
from .config import Settings
from .congress_api import CongressApiService
from .logging_setup import configure_logging
from .tools import ALL_TOOLS, TOOLS, ToolContext, run_tool

logger = structlog.get_logger()

SERVER_NAME = "legis-mcp"


class ToolFailed(Exception):
    """Raised inside call_tool so the MCP runtime reports an isError result"""


async def dispatch(name: str, arguments: Optional[Dict[str, Any]], context: ToolContext) -> types.CallToolResult:
    spec = TOOLS.get(name)
    if spec is None:
        logger.warning("unknown_tool", tool=name)
        return types.CallToolResult(
            content=[types.TextContent(type="text", text=f"Unknown tool: {name}")],
            isError=True,
        )
    logger.info("tool_called", tool=name)
    return await run_tool(spec, arguments, context)


def create_server(context: ToolContext) -> Server:
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        """List all available tools"""
        return [spec.to_tool() for spec in ALL_TOOLS]

    @server.call_tool()
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        """Handle tool calls"""
        result = await dispatch(name, arguments, context)
        if result.isError:
            raise ToolFailed(result.content[0].text)
        return result.content

    return server


async def run(settings: Settings) -> None:
    """Run the server over stdin/stdout"""
    async with CongressApiService.from_settings(settings) as api:
        server = create_server(ToolContext(api=api, settings=settings))
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            logger.info("mcp_server_started", name=SERVER_NAME, tools=len(ALL_TOOLS))
            await server.run(
                read_stream,
                write_stream,
                InitializationOptions(
                    server_name=SERVER_NAME,
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                ),
            )


def main() -> None:
    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    if not settings.api_keys:
        logger.warning("api_key_missing", variable="CONGRESS_GOV_API_KEY")
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
