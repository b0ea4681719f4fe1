"""Middleware chain wrapped around tool dispatch."""

from namecheap_mcp.middleware.audit import AuditMiddleware
from namecheap_mcp.middleware.chain import RequestContext, ToolHandler, ToolMiddleware, build_chain
from namecheap_mcp.middleware.recovery import RecoveryMiddleware

__all__ = [
    "AuditMiddleware",
    "RecoveryMiddleware",
    "RequestContext",
    "ToolHandler",
    "ToolMiddleware",
    "build_chain",
]
