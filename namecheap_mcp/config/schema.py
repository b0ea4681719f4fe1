"""Pydantic configuration models for Namecheap MCP.

Defines the validated config structure using the versioned v1 format.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from namecheap_mcp.constants import (
    DEFAULT_API_TIMEOUT,
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_PORT,
    TLD_CACHE_TTL,
    TLD_DEFAULT_PAGE_SIZE,
    TLD_MAX_PAGE_SIZE,
)
from namecheap_mcp.errors import ConfigurationError

# ── Upstream API ─────────────────────────────────────────────────────────


class NamecheapSettings(BaseModel):
    """Credentials and endpoint selection for the Namecheap API."""

    api_user: Optional[str] = Field(default=None, description="Namecheap API user (ApiUser).")
    api_key: Optional[str] = Field(
        default=None, description="Production API key. Supports ${ENV_VAR}."
    )
    sandbox_api_key: Optional[str] = Field(
        default=None, description="Sandbox API key, used when use_sandbox is true."
    )
    username: Optional[str] = Field(
        default=None, description="Account to act on (UserName). Defaults to api_user."
    )
    client_ip: Optional[str] = Field(
        default=None, description="Whitelisted client IP sent as ClientIp."
    )
    use_sandbox: bool = Field(default=False, description="Target the sandbox API.")
    timeout: float = Field(
        default=DEFAULT_API_TIMEOUT, gt=0, description="HTTP request timeout in seconds."
    )

    @field_validator("api_user", "api_key", "sandbox_api_key", "username", "client_ip")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        # Unexpanded ${VAR} placeholders count as unset.
        if not v or (v.startswith("${") and v.endswith("}")):
            return None
        return v

    @property
    def active_api_key(self) -> Optional[str]:
        return self.sandbox_api_key if self.use_sandbox else self.api_key

    def missing_credentials(self) -> List[str]:
        """Return the environment variable names for unset credentials."""
        missing: List[str] = []
        if not self.active_api_key:
            missing.append(
                "NAMECHEAP_SANDBOX_API_KEY" if self.use_sandbox else "NAMECHEAP_API_KEY"
            )
        if not self.api_user:
            missing.append("NAMECHEAP_API_USER")
        if not self.client_ip:
            missing.append("NAMECHEAP_CLIENT_IP")
        return missing

    def require_credentials(self) -> None:
        """Raise :class:`ConfigurationError` if any credential is missing."""
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(
                "Missing required Namecheap credentials: "
                + ", ".join(missing)
                + f" (use_sandbox={self.use_sandbox})"
            )


# ── TLD cache ────────────────────────────────────────────────────────────


class TldCacheSettings(BaseModel):
    """TLD catalog cache tuning."""

    ttl: float = Field(
        default=TLD_CACHE_TTL,
        ge=0,
        description="Seconds before the cached TLD catalog is refreshed.",
    )
    default_page_size: int = Field(default=TLD_DEFAULT_PAGE_SIZE, ge=1)
    max_page_size: int = Field(default=TLD_MAX_PAGE_SIZE, ge=1)

    @model_validator(mode="after")
    def _check_page_sizes(self) -> TldCacheSettings:
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) exceeds "
                f"max_page_size ({self.max_page_size})"
            )
        return self


# ── Server settings ─────────────────────────────────────────────────────


class ServerSettings(BaseModel):
    """MCP transport settings (host/port only apply to HTTP transports)."""

    transport: Literal["stdio", "sse", "streamable-http"] = "stdio"
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)

    @field_validator("transport", mode="before")
    @classmethod
    def _normalise_transport(cls, v: str) -> str:
        """Accept 'http' as a shorthand for 'streamable-http'."""
        if isinstance(v, str) and v.strip().lower() == "http":
            return "streamable-http"
        return v


class LoggingSettings(BaseModel):
    """File logging settings."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = DEFAULT_LOG_LEVEL

    @field_validator("level", mode="before")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.strip().upper() if isinstance(v, str) else v


# ── Top-level config ────────────────────────────────────────────────────


class NamecheapMcpConfig(BaseModel):
    """Top-level validated configuration for Namecheap MCP.

    Supports version ``"1"`` format::

        version: "1"
        server: { transport: stdio }
        namecheap: { api_user: ..., api_key: ${NAMECHEAP_API_KEY}, ... }
        tld_cache: { ttl: 86400 }
        logging: { level: INFO }
    """

    version: str = "1"
    server: ServerSettings = Field(default_factory=ServerSettings)
    namecheap: NamecheapSettings = Field(default_factory=NamecheapSettings)
    tld_cache: TldCacheSettings = Field(default_factory=TldCacheSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
