"""Configuration loading and validation for Namecheap MCP."""

from namecheap_mcp.config.env import apply_env_overrides, expand_env_vars
from namecheap_mcp.config.loader import find_config_file, load_config
from namecheap_mcp.config.schema import (
    LoggingSettings,
    NamecheapMcpConfig,
    NamecheapSettings,
    ServerSettings,
    TldCacheSettings,
)

__all__ = [
    "LoggingSettings",
    "NamecheapMcpConfig",
    "NamecheapSettings",
    "ServerSettings",
    "TldCacheSettings",
    "apply_env_overrides",
    "expand_env_vars",
    "find_config_file",
    "load_config",
]
