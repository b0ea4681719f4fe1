"""
Namecheap MCP - Namecheap registrar operations exposed as MCP tools.

Translates MCP tool calls into Namecheap XML API commands (domains, contacts,
registrar lock, DNS) and serves the TLD catalog from an in-memory cache.
"""

from namecheap_mcp.constants import SERVER_NAME, SERVER_VERSION

__version__ = SERVER_VERSION
__app_name__ = SERVER_NAME

__all__ = [
    "SERVER_NAME",
    "SERVER_VERSION",
    "__version__",
    "__app_name__",
]
