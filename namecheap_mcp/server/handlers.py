"""MCP handler functions - registered on the MCP server instance."""

import json
import logging
from typing import Any, Dict, List, Optional

from mcp import types as mcp_types
from mcp.server import Server as McpServer

from namecheap_mcp.server.dispatcher import ToolDispatcher
from namecheap_mcp.server.tools import NAMECHEAP_TOOLS

logger = logging.getLogger(__name__)


def to_text_content(result: Any) -> List[mcp_types.TextContent]:
    """Serialise a tool result as a single pretty-printed JSON text block."""
    return [mcp_types.TextContent(type="text", text=json.dumps(result, indent=2))]


def register_handlers(mcp_server: McpServer, dispatcher: ToolDispatcher) -> None:
    """Register the MCP protocol handlers on the server instance.

    Errors raised by the dispatcher propagate to the MCP server, which
    reports them to the client as an ``isError`` tool result carrying the
    exception message.
    """

    @mcp_server.list_tools()
    async def handle_list_tools() -> List[mcp_types.Tool]:
        logger.debug("Handling listTools request...")
        return list(NAMECHEAP_TOOLS)

    @mcp_server.call_tool()
    async def handle_call_tool(
        name: str, arguments: Optional[Dict[str, Any]]
    ) -> List[mcp_types.TextContent]:
        logger.debug("Handling callTool: name='%s'", name)
        result = await dispatcher.call(name, arguments or {})
        return to_text_content(result)

    logger.debug("All MCP protocol handlers registered on server instance.")
