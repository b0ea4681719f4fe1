"""Async client for the Namecheap XML API.

Each public method issues one ``namecheap.*`` command and returns a
JSON-ready result; :meth:`NamecheapClient.fetch_all_tlds` doubles as the
catalog source for :class:`~namecheap_mcp.tlds.cache.TldCache`.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from namecheap_mcp.constants import (
    DEFAULT_API_TIMEOUT,
    DEFAULT_HOST_TTL,
    NAMECHEAP_API_URL,
    NAMECHEAP_SANDBOX_API_URL,
)
from namecheap_mcp.errors import UpstreamError
from namecheap_mcp.namecheap import parsing
from namecheap_mcp.namecheap.models import TldRecord

logger = logging.getLogger(__name__)


def _pascal_key(name: str) -> str:
    return name[:1].upper() + name[1:]


class NamecheapClient:
    """Async HTTP client for the Namecheap API.

    Parameters
    ----------
    api_user:
        Namecheap account the API key belongs to (``ApiUser``).
    api_key:
        API key for the selected environment (production or sandbox).
    client_ip:
        Whitelisted IPv4 address sent as ``ClientIp``.
    use_sandbox:
        Target ``api.sandbox.namecheap.com`` instead of production.
    username:
        Account to act on (``UserName``); defaults to *api_user*.
    timeout:
        HTTP request timeout in seconds.
    transport:
        Optional ``httpx`` transport, used by tests to fake the API.
    """

    def __init__(
        self,
        api_user: str,
        api_key: str,
        client_ip: str,
        *,
        use_sandbox: bool = False,
        username: Optional[str] = None,
        timeout: float = DEFAULT_API_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_user = api_user
        self._api_key = api_key
        self._client_ip = client_ip
        self._username = username or api_user
        self._use_sandbox = use_sandbox
        self._base_url = NAMECHEAP_SANDBOX_API_URL if use_sandbox else NAMECHEAP_API_URL
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def use_sandbox(self) -> bool:
        return self._use_sandbox

    # ── lifecycle ───────────────────────────────────────────────────

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> NamecheapClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ── transport ───────────────────────────────────────────────────

    def _auth_params(self) -> Dict[str, str]:
        return {
            "ApiUser": self._api_user,
            "ApiKey": self._api_key,
            "UserName": self._username,
            "ClientIp": self._client_ip,
        }

    async def _request(
        self,
        command: str,
        params: Optional[Mapping[str, Any]] = None,
        *,
        method: str = "GET",
    ) -> ET.Element:
        """Send *command* and return the parsed ``CommandResponse`` element."""
        payload: Dict[str, Any] = {**self._auth_params(), "Command": command}
        for key, value in (params or {}).items():
            if value is not None:
                payload[key] = str(value)

        # Never log the payload: it carries the API key.
        logger.debug("Namecheap request: %s (%s, %d param(s))", command, method, len(params or {}))
        client = await self._ensure_client()
        try:
            if method.upper() == "POST":
                resp = await client.post(self._base_url, data=payload)
            else:
                resp = await client.get(self._base_url, params=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamError(
                f"Namecheap API returned HTTP {exc.response.status_code} for {command}",
                command=command,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"Request to Namecheap API failed for {command}: {str(exc) or type(exc).__name__}",
                command=command,
            ) from exc

        return parsing.parse_api_response(resp.text, command)

    # ── domains ─────────────────────────────────────────────────────

    async def domains_list(
        self,
        *,
        list_type: str = "ALL",
        search_term: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
        sort_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        """List domains in the account (``namecheap.domains.getList``)."""
        command = "namecheap.domains.getList"
        resp = await self._request(
            command,
            {
                "ListType": list_type,
                "SearchTerm": search_term or None,
                "Page": page,
                "PageSize": page_size,
                "SortBy": sort_by,
            },
        )
        return parsing.parse_domains_list(resp, command)

    async def domains_check(self, domain_list: Sequence[str]) -> Dict[str, Any]:
        """Check availability for one or more domains."""
        command = "namecheap.domains.check"
        resp = await self._request(command, {"DomainList": ",".join(domain_list)})
        return parsing.parse_domains_check(resp, command)

    async def domains_get_info(
        self, domain_name: str, host_name: Optional[str] = None
    ) -> Dict[str, Any]:
        command = "namecheap.domains.getInfo"
        resp = await self._request(command, {"DomainName": domain_name, "HostName": host_name})
        return parsing.parse_domains_get_info(resp, command)

    async def domains_get_contacts(self, domain_name: str) -> Dict[str, Any]:
        command = "namecheap.domains.getContacts"
        resp = await self._request(command, {"DomainName": domain_name})
        return parsing.parse_domains_get_contacts(resp, command)

    async def domains_get_tld_list(self) -> List[TldRecord]:
        """Fetch the full TLD catalog in one call."""
        command = "namecheap.domains.getTldList"
        resp = await self._request(command)
        records = parsing.parse_tld_list(resp, command)
        logger.info("Fetched %d TLD(s) from Namecheap.", len(records))
        return records

    async def fetch_all_tlds(self) -> List[TldRecord]:
        """Catalog source hook used by the TLD cache."""
        return await self.domains_get_tld_list()

    async def domains_set_contacts(
        self, domain_name: str, contacts: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """Update contacts; *contacts* uses camelCase keys (``registrantFirstName``)."""
        command = "namecheap.domains.setContacts"
        params: Dict[str, Any] = {"DomainName": domain_name}
        for key, value in contacts.items():
            if key == "domainName" or value is None:
                continue
            params[_pascal_key(key)] = value
        resp = await self._request(command, params, method="POST")
        return parsing.parse_simple_result(resp, "DomainSetContactResult", command)

    async def domains_get_registrar_lock(self, domain_name: str) -> Dict[str, Any]:
        command = "namecheap.domains.getRegistrarLock"
        resp = await self._request(command, {"DomainName": domain_name})
        return parsing.parse_simple_result(resp, "DomainGetRegistrarLockResult", command)

    async def domains_set_registrar_lock(
        self, domain_name: str, lock_action: str
    ) -> Dict[str, Any]:
        command = "namecheap.domains.setRegistrarLock"
        resp = await self._request(
            command,
            {"DomainName": domain_name, "LockAction": lock_action.upper()},
            method="POST",
        )
        return parsing.parse_simple_result(resp, "DomainSetRegistrarLockResult", command)

    # ── dns ─────────────────────────────────────────────────────────

    async def dns_get_list(self, sld: str, tld: str) -> Dict[str, Any]:
        """Return the nameservers a domain currently delegates to."""
        command = "namecheap.domains.dns.getList"
        resp = await self._request(command, {"SLD": sld, "TLD": tld})
        return parsing.parse_dns_get_list(resp, command)

    async def dns_get_hosts(self, sld: str, tld: str) -> Dict[str, Any]:
        """Return the DNS host records for a domain using Namecheap DNS."""
        command = "namecheap.domains.dns.getHosts"
        resp = await self._request(command, {"SLD": sld, "TLD": tld})
        return parsing.parse_dns_get_hosts(resp, command)

    async def dns_set_custom(
        self, sld: str, tld: str, nameservers: Sequence[str]
    ) -> Dict[str, Any]:
        command = "namecheap.domains.dns.setCustom"
        resp = await self._request(
            command,
            {"SLD": sld, "TLD": tld, "Nameservers": ",".join(nameservers)},
            method="POST",
        )
        return parsing.parse_simple_result(resp, "DomainDNSSetCustomResult", command)

    async def dns_set_hosts(
        self, sld: str, tld: str, hosts: Sequence[Mapping[str, Any]]
    ) -> Dict[str, Any]:
        """Replace all host records for a domain.

        Namecheap has no per-record update: every call sends the complete
        record set as numbered parameters (``HostName1``, ``RecordType1``...).
        """
        command = "namecheap.domains.dns.setHosts"
        params: Dict[str, Any] = {"SLD": sld, "TLD": tld}
        has_mx = False
        for idx, host in enumerate(hosts, start=1):
            record_type = str(host["recordType"]).upper()
            params[f"HostName{idx}"] = host["hostname"]
            params[f"RecordType{idx}"] = record_type
            params[f"Address{idx}"] = host["address"]
            params[f"TTL{idx}"] = host.get("ttl") or DEFAULT_HOST_TTL
            if host.get("mxPriority") is not None:
                params[f"MXPref{idx}"] = host["mxPriority"]
            if record_type == "MX":
                has_mx = True
        if has_mx:
            params["EmailType"] = "MX"
        resp = await self._request(command, params, method="POST")
        return parsing.parse_simple_result(resp, "DomainDNSSetHostsResult", command)
