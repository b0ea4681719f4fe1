"""MCP server layer: tool definitions, dispatch, transports."""
