"""
Defines project-specific exception classes.
"""
from typing import List, Optional


class NamecheapMcpError(Exception):
    """Base class for all custom exceptions in Namecheap MCP."""
    pass


class ConfigurationError(NamecheapMcpError):
    """Raised when loading or validating the configuration fails."""
    pass


class UpstreamError(NamecheapMcpError):
    """
    Raised when a Namecheap API call fails: transport failure, HTTP error,
    unparseable XML, or an ``ApiResponse`` with ``Status="ERROR"``.
    """

    def __init__(self,
                 message: str,
                 command: Optional[str] = None,
                 error_numbers: Optional[List[str]] = None):
        self.message = message
        self.command = command
        self.error_numbers = list(error_numbers or [])
        super().__init__(message)


class UpstreamUnavailableError(UpstreamError):
    """
    Raised when the TLD catalog cannot be fetched and no cached
    snapshot exists to fall back on.
    """

    def __init__(self, orig_exc: Exception):
        self.orig_exc = orig_exc
        reason = getattr(orig_exc, "message", None) or str(orig_exc) or type(orig_exc).__name__
        super().__init__(
            f"TLD catalog unavailable: {reason}",
            command=getattr(orig_exc, "command", None),
            error_numbers=getattr(orig_exc, "error_numbers", None),
        )


class InvalidParamsError(NamecheapMcpError):
    """Raised when a tool call is missing required arguments or has bad types."""
    pass


class UnknownToolError(NamecheapMcpError):
    """Raised when a tool call names a tool that is not registered."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class ToolExecutionError(NamecheapMcpError):
    """Wraps an unexpected failure raised while executing a tool handler."""

    def __init__(self, message: str, orig_exc: Optional[Exception] = None):
        self.orig_exc = orig_exc
        super().__init__(f"Tool execution failed: {message}")
