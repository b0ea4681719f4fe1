"""Tool-call context and the onion-style middleware composer.

A tool call becomes a :class:`RequestContext`; each middleware receives it
together with the next handler and decides whether and how to call on.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence


class ToolHandler(Protocol):
    async def __call__(self, ctx: RequestContext) -> Any: ...


class ToolMiddleware(Protocol):
    async def __call__(self, ctx: RequestContext, next_handler: ToolHandler) -> Any: ...


@dataclass
class RequestContext:
    """State for a single tool call.

    ``error`` is filled in by :class:`RecoveryMiddleware` so that outer
    middleware (audit) can report the outcome after the call unwinds.
    """

    tool_name: str
    arguments: Dict[str, Any] = field(default_factory=dict)
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    start_time: float = field(default_factory=time.monotonic)
    error: Optional[Exception] = None

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.start_time) * 1000.0


class _Link:
    """One middleware bound to the handler it forwards to."""

    __slots__ = ("_middleware", "_next")

    def __init__(self, middleware: ToolMiddleware, next_handler: ToolHandler) -> None:
        self._middleware = middleware
        self._next = next_handler

    async def __call__(self, ctx: RequestContext) -> Any:
        return await self._middleware(ctx, self._next)


def build_chain(middlewares: Sequence[ToolMiddleware], handler: ToolHandler) -> ToolHandler:
    """Wrap *handler* so that ``middlewares[0]`` sees each call first.

    An empty sequence returns *handler* itself.
    """
    chain = handler
    for middleware in reversed(middlewares):
        chain = _Link(middleware, chain)
    return chain
