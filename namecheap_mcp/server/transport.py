"""stdio, SSE and streamable HTTP transport handling for MCP connections."""

import logging
from typing import Any, Awaitable, Callable, MutableMapping

from mcp.server import Server as McpServer
from mcp.server.lowlevel import NotificationOptions
from mcp.server.models import InitializationOptions
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.requests import Request
from starlette.responses import Response

from namecheap_mcp.constants import SERVER_NAME, SERVER_VERSION

logger = logging.getLogger(__name__)

Scope = MutableMapping[str, Any]
Receive = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send = Callable[[MutableMapping[str, Any]], Awaitable[None]]


def build_init_options(mcp_server: McpServer) -> InitializationOptions:
    """Initialization options advertised to every connecting client."""
    return InitializationOptions(
        server_name=SERVER_NAME,
        server_version=SERVER_VERSION,
        capabilities=mcp_server.get_capabilities(NotificationOptions(), {}),
    )


async def run_stdio(mcp_server: McpServer) -> None:
    """Serve a single MCP session over stdin/stdout until the client disconnects."""
    logger.info("Starting MCP session on stdio.")
    async with stdio_server() as (read_stream, write_stream):
        await mcp_server.run(read_stream, write_stream, build_init_options(mcp_server))
    logger.info("stdio session closed.")


def make_sse_endpoint(
    mcp_server: McpServer, sse_transport: SseServerTransport
) -> Callable[[Request], Awaitable[Response]]:
    """Build the Starlette endpoint that opens an SSE stream per GET request."""

    async def handle_sse(request: Request) -> Response:
        logger.debug("Received new SSE connection request (GET): %s", request.url)
        async with sse_transport.connect_sse(
            request.scope,
            request.receive,
            request._send,
        ) as (read_stream, write_stream):
            await mcp_server.run(read_stream, write_stream, build_init_options(mcp_server))
        logger.debug("SSE connection closed: %s", request.url)
        return Response()

    return handle_sse


class StreamableHTTPEndpoint:
    """ASGI app forwarding ``/mcp`` requests to the session manager.

    The session manager must be running (see :meth:`StreamableHTTPSessionManager.run`)
    for the lifetime of the application.
    """

    def __init__(self, session_manager: StreamableHTTPSessionManager) -> None:
        self.session_manager = session_manager

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        logger.debug(
            "Received streamable HTTP request (%s): %s", scope.get("method"), scope.get("path")
        )
        await self.session_manager.handle_request(scope, receive, send)
