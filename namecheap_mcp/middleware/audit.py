"""Audit middleware: request/response logging for every tool call."""

from __future__ import annotations

import logging
from typing import Any

from namecheap_mcp.middleware.chain import RequestContext, ToolHandler

logger = logging.getLogger("namecheap_mcp.audit")


class AuditMiddleware:
    """Log one line when a tool call starts and one when it finishes."""

    async def __call__(self, ctx: RequestContext, next_handler: ToolHandler) -> Any:
        logger.info(
            "AUDIT REQUEST  id=%s tool=%s args_keys=%s",
            ctx.request_id,
            ctx.tool_name,
            sorted(ctx.arguments.keys()),
        )
        try:
            return await next_handler(ctx)
        finally:
            logger.info(
                "AUDIT RESPONSE id=%s tool=%s outcome=%s elapsed_ms=%.1f",
                ctx.request_id,
                ctx.tool_name,
                "error" if ctx.error else "success",
                ctx.elapsed_ms,
            )
