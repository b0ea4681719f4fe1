"""Tool dispatch: argument validation and routing to the API client or TLD cache."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from namecheap_mcp.errors import InvalidParamsError, UnknownToolError
from namecheap_mcp.middleware import (
    AuditMiddleware,
    RecoveryMiddleware,
    RequestContext,
    ToolMiddleware,
    build_chain,
)
from namecheap_mcp.namecheap.client import NamecheapClient
from namecheap_mcp.server import tools
from namecheap_mcp.tlds.cache import TldCache, TldQuery

logger = logging.getLogger(__name__)

ToolFn = Callable[[Dict[str, Any]], Awaitable[Any]]


# ── Argument helpers ────────────────────────────────────────────────────


def _has_str(args: Mapping[str, Any], *names: str) -> bool:
    return all(isinstance(args.get(n), str) and args[n].strip() for n in names)


def _is_list(value: Any) -> bool:
    return isinstance(value, list)


def _optional_int(args: Mapping[str, Any], name: str) -> Optional[int]:
    value = args.get(name)
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidParamsError(f"{name} must be a number")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidParamsError(f"{name} must be a number") from exc


def _optional_bool(args: Mapping[str, Any], name: str) -> Optional[bool]:
    value = args.get(name)
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise InvalidParamsError(f"{name} must be a boolean")


def _optional_str(args: Mapping[str, Any], name: str) -> Optional[str]:
    value = args.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidParamsError(f"{name} must be a string")
    return value


class ToolDispatcher:
    """Validate tool arguments and route each tool to its handler.

    The TLD list tool is answered by :class:`TldCache`; every other tool
    is a single call on :class:`NamecheapClient`.  Calls run through the
    middleware chain (audit logging, error normalisation).
    """

    def __init__(
        self,
        client: NamecheapClient,
        tld_cache: TldCache,
        *,
        middlewares: Optional[List[ToolMiddleware]] = None,
    ) -> None:
        self._client = client
        self._tld_cache = tld_cache
        self._handlers: Dict[str, ToolFn] = {
            tools.DOMAINS_LIST: self._domains_list,
            tools.DOMAINS_CHECK: self._domains_check,
            tools.DOMAINS_GET_INFO: self._domains_get_info,
            tools.DOMAINS_GET_CONTACTS: self._domains_get_contacts,
            tools.DOMAINS_GET_TLD_LIST: self._domains_get_tld_list,
            tools.DOMAINS_SET_CONTACTS: self._domains_set_contacts,
            tools.DOMAINS_GET_REGISTRAR_LOCK: self._domains_get_registrar_lock,
            tools.DOMAINS_SET_REGISTRAR_LOCK: self._domains_set_registrar_lock,
            tools.DNS_GET_LIST: self._dns_get_list,
            tools.DNS_GET_HOSTS: self._dns_get_hosts,
            tools.DNS_SET_CUSTOM: self._dns_set_custom,
            tools.DNS_SET_HOSTS: self._dns_set_hosts,
        }
        if middlewares is None:
            middlewares = [AuditMiddleware(), RecoveryMiddleware()]
        self._chain = build_chain(middlewares, self._dispatch)

    @property
    def client(self) -> NamecheapClient:
        return self._client

    @property
    def tld_cache(self) -> TldCache:
        return self._tld_cache

    async def call(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> Any:
        """Run tool *name* through the middleware chain and return its JSON-ready result."""
        ctx = RequestContext(tool_name=name, arguments=dict(arguments or {}))
        return await self._chain(ctx)

    async def _dispatch(self, ctx: RequestContext) -> Any:
        handler = self._handlers.get(ctx.tool_name)
        if handler is None:
            raise UnknownToolError(ctx.tool_name)
        return await handler(ctx.arguments)

    # ── domains ─────────────────────────────────────────────────────

    async def _domains_list(self, args: Dict[str, Any]) -> Any:
        return await self._client.domains_list(
            list_type=_optional_str(args, "listType") or "ALL",
            search_term=_optional_str(args, "searchTerm"),
            page=_optional_int(args, "page") or 1,
            page_size=_optional_int(args, "pageSize") or 20,
            sort_by=_optional_str(args, "sortBy"),
        )

    async def _domains_check(self, args: Dict[str, Any]) -> Any:
        domain_list = args.get("domainList")
        if not _is_list(domain_list):
            raise InvalidParamsError("domainList parameter must be an array")
        return await self._client.domains_check([str(d) for d in domain_list])

    async def _domains_get_info(self, args: Dict[str, Any]) -> Any:
        if not _has_str(args, "domainName"):
            raise InvalidParamsError("domainName parameter is required")
        return await self._client.domains_get_info(
            args["domainName"], host_name=_optional_str(args, "hostName")
        )

    async def _domains_get_contacts(self, args: Dict[str, Any]) -> Any:
        if not _has_str(args, "domainName"):
            raise InvalidParamsError("domainName parameter is required")
        return await self._client.domains_get_contacts(args["domainName"])

    async def _domains_get_tld_list(self, args: Dict[str, Any]) -> Any:
        query = TldQuery(
            search=_optional_str(args, "search"),
            registerable=_optional_bool(args, "registerable"),
            sort_by=_optional_str(args, "sortBy") or "name",
            page=_optional_int(args, "page"),
            page_size=_optional_int(args, "pageSize"),
        )
        page = await self._tld_cache.get_tlds(query)
        return page.to_dict()

    async def _domains_set_contacts(self, args: Dict[str, Any]) -> Any:
        if not _has_str(args, "domainName"):
            raise InvalidParamsError("domainName parameter is required")
        contacts = {k: v for k, v in args.items() if k != "domainName"}
        return await self._client.domains_set_contacts(args["domainName"], contacts)

    async def _domains_get_registrar_lock(self, args: Dict[str, Any]) -> Any:
        if not _has_str(args, "domainName"):
            raise InvalidParamsError("domainName parameter is required")
        return await self._client.domains_get_registrar_lock(args["domainName"])

    async def _domains_set_registrar_lock(self, args: Dict[str, Any]) -> Any:
        if not _has_str(args, "domainName", "lockAction"):
            raise InvalidParamsError("domainName and lockAction parameters are required")
        lock_action = args["lockAction"].strip().upper()
        if lock_action not in tools.LOCK_ACTIONS:
            raise InvalidParamsError(
                f"lockAction must be one of {', '.join(tools.LOCK_ACTIONS)}"
            )
        return await self._client.domains_set_registrar_lock(args["domainName"], lock_action)

    # ── dns ─────────────────────────────────────────────────────────

    async def _dns_get_list(self, args: Dict[str, Any]) -> Any:
        if not _has_str(args, "sld", "tld"):
            raise InvalidParamsError("sld and tld parameters are required")
        return await self._client.dns_get_list(args["sld"], args["tld"])

    async def _dns_get_hosts(self, args: Dict[str, Any]) -> Any:
        if not _has_str(args, "sld", "tld"):
            raise InvalidParamsError("sld and tld parameters are required")
        return await self._client.dns_get_hosts(args["sld"], args["tld"])

    async def _dns_set_custom(self, args: Dict[str, Any]) -> Any:
        if not _has_str(args, "sld", "tld") or not _is_list(args.get("nameservers")):
            raise InvalidParamsError("sld, tld, and nameservers (array) parameters are required")
        nameservers = [str(ns) for ns in args["nameservers"]]
        return await self._client.dns_set_custom(args["sld"], args["tld"], nameservers)

    async def _dns_set_hosts(self, args: Dict[str, Any]) -> Any:
        if not _has_str(args, "sld", "tld") or not _is_list(args.get("hosts")):
            raise InvalidParamsError("sld, tld, and hosts (array) parameters are required")
        hosts = args["hosts"]
        for idx, host in enumerate(hosts):
            if not isinstance(host, dict) or not _has_str(host, "hostname", "recordType", "address"):
                raise InvalidParamsError(
                    f"hosts[{idx}] requires hostname, recordType, and address"
                )
            if host["recordType"].upper() not in tools.DNS_RECORD_TYPES:
                raise InvalidParamsError(
                    f"hosts[{idx}].recordType must be one of {', '.join(tools.DNS_RECORD_TYPES)}"
                )
        return await self._client.dns_set_hosts(args["sld"], args["tld"], hosts)
