"""Shared constants for Namecheap MCP."""

SERVER_NAME = "mcp-namecheap"
SERVER_VERSION = "1.0.0"

# Namecheap XML API endpoints
NAMECHEAP_API_URL = "https://api.namecheap.com/xml.response"
NAMECHEAP_SANDBOX_API_URL = "https://api.sandbox.namecheap.com/xml.response"
DEFAULT_API_TIMEOUT = 30.0  # seconds per upstream request

# Network defaults (sse / streamable-http transports)
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9000

# HTTP transport paths
SSE_PATH = "/sse"
POST_MESSAGES_PATH = "/messages/"
STREAMABLE_HTTP_PATH = "/mcp"

# Logging defaults
LOG_DIR = "logs"
DEFAULT_LOG_LEVEL = "INFO"

# TLD catalog cache
TLD_CACHE_TTL = 24 * 60 * 60.0  # seconds
TLD_DEFAULT_PAGE_SIZE = 50
TLD_MAX_PAGE_SIZE = 200

# DNS host record defaults
DEFAULT_HOST_TTL = 1800
