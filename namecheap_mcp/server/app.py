"""Server assembly: API client, TLD cache, dispatcher, MCP server, ASGI app."""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional

from mcp.server import Server as McpServer
from mcp.server.sse import SseServerTransport
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.routing import BaseRoute, Mount, Route

from namecheap_mcp.config.schema import NamecheapMcpConfig
from namecheap_mcp.constants import (
    POST_MESSAGES_PATH,
    SERVER_NAME,
    SERVER_VERSION,
    SSE_PATH,
    STREAMABLE_HTTP_PATH,
)
from namecheap_mcp.namecheap.client import NamecheapClient
from namecheap_mcp.server.dispatcher import ToolDispatcher
from namecheap_mcp.server.handlers import register_handlers
from namecheap_mcp.server.transport import StreamableHTTPEndpoint, make_sse_endpoint
from namecheap_mcp.tlds.cache import TldCache

logger = logging.getLogger(__name__)


@dataclass
class NamecheapServer:
    """Everything one running server owns."""

    client: NamecheapClient
    tld_cache: TldCache
    dispatcher: ToolDispatcher
    mcp_server: McpServer

    async def aclose(self) -> None:
        await self.client.close()
        logger.info("Namecheap API client closed.")


def create_mcp_server(dispatcher: ToolDispatcher) -> McpServer:
    """Create the low-level MCP server and register its handlers."""
    mcp_server = McpServer(SERVER_NAME, version=SERVER_VERSION)
    register_handlers(mcp_server, dispatcher)
    logger.debug("Underlying MCP server instance '%s' created.", mcp_server.name)
    return mcp_server


def build_server(
    config: NamecheapMcpConfig, *, client: Optional[NamecheapClient] = None
) -> NamecheapServer:
    """Wire the API client, TLD cache and dispatcher from *config*.

    Credentials are not checked here; call
    :meth:`NamecheapSettings.require_credentials` first.
    """
    settings = config.namecheap
    if client is None:
        client = NamecheapClient(
            settings.api_user or "",
            settings.active_api_key or "",
            settings.client_ip or "",
            use_sandbox=settings.use_sandbox,
            username=settings.username,
            timeout=settings.timeout,
        )
    cache_cfg = config.tld_cache
    tld_cache = TldCache(
        client,
        ttl=cache_cfg.ttl,
        default_page_size=cache_cfg.default_page_size,
        max_page_size=cache_cfg.max_page_size,
    )
    dispatcher = ToolDispatcher(client, tld_cache)
    mcp_server = create_mcp_server(dispatcher)
    logger.info(
        "Server components built (api=%s, tld_cache_ttl=%ss).",
        client.base_url,
        cache_cfg.ttl,
    )
    return NamecheapServer(
        client=client, tld_cache=tld_cache, dispatcher=dispatcher, mcp_server=mcp_server
    )


def create_app(server: NamecheapServer, transport: str) -> Starlette:
    """Create the Starlette ASGI application for an HTTP *transport*.

    ``sse`` serves GET ``/sse`` plus POST ``/messages/``;
    ``streamable-http`` serves ``/mcp``.
    """
    routes: List[BaseRoute] = []
    session_manager: Optional[StreamableHTTPSessionManager] = None

    if transport == "sse":
        sse_transport = SseServerTransport(POST_MESSAGES_PATH)
        routes = [
            Route(SSE_PATH, endpoint=make_sse_endpoint(server.mcp_server, sse_transport)),
            Mount(POST_MESSAGES_PATH, app=sse_transport.handle_post_message),
        ]
    elif transport == "streamable-http":
        session_manager = StreamableHTTPSessionManager(app=server.mcp_server)
        routes = [
            Route(
                STREAMABLE_HTTP_PATH,
                endpoint=StreamableHTTPEndpoint(session_manager),
                methods=["GET", "POST", "DELETE"],
            ),
        ]
    else:
        raise ValueError(f"Transport '{transport}' is not served over HTTP")

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("Server '%s' v%s startup (%s).", SERVER_NAME, SERVER_VERSION, transport)
        try:
            if session_manager is not None:
                async with session_manager.run():
                    yield
            else:
                yield
        finally:
            logger.info("Server '%s' shutting down.", SERVER_NAME)
            await server.aclose()

    application = Starlette(lifespan=lifespan, routes=routes)
    logger.info(
        "Starlette ASGI app '%s' created for %s transport: %s",
        SERVER_NAME,
        transport,
        ", ".join(getattr(r, "path", "?") for r in routes),
    )
    return application
