"""Recovery middleware: exception normalisation.

Anything that is not already a tool-level error (bad arguments, unknown
tool) is wrapped in :class:`ToolExecutionError`, keeping the original
message so upstream failures stay diagnosable by the caller.
"""

from __future__ import annotations

import logging
from typing import Any

from namecheap_mcp.errors import InvalidParamsError, ToolExecutionError, UnknownToolError
from namecheap_mcp.middleware.chain import RequestContext, ToolHandler

logger = logging.getLogger(__name__)

_PASSTHROUGH = (InvalidParamsError, UnknownToolError, ToolExecutionError)


class RecoveryMiddleware:
    """Record the failure on the context and re-raise it in normalised form."""

    async def __call__(self, ctx: RequestContext, next_handler: ToolHandler) -> Any:
        try:
            return await next_handler(ctx)
        except _PASSTHROUGH as exc:
            ctx.error = exc
            logger.warning("[%s] Tool '%s' rejected: %s", ctx.request_id, ctx.tool_name, exc)
            raise
        except Exception as exc:
            wrapped = ToolExecutionError(str(exc) or type(exc).__name__, orig_exc=exc)
            ctx.error = wrapped
            logger.error(
                "[%s] Tool '%s' failed: %s",
                ctx.request_id,
                ctx.tool_name,
                exc,
                exc_info=True,
            )
            raise wrapped from exc
