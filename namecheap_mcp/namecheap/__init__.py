"""Namecheap XML API client and payload models."""

from namecheap_mcp.namecheap.client import NamecheapClient
from namecheap_mcp.namecheap.models import TldRecord

__all__ = ["NamecheapClient", "TldRecord"]
