"""MCP tool definitions (names, descriptions, JSON input schemas)."""

from typing import Any, Dict, List

from mcp import types as mcp_types

from namecheap_mcp.constants import DEFAULT_HOST_TTL, TLD_DEFAULT_PAGE_SIZE, TLD_MAX_PAGE_SIZE

DOMAINS_LIST = "namecheap_domains_list"
DOMAINS_CHECK = "namecheap_domains_check"
DOMAINS_GET_INFO = "namecheap_domains_getinfo"
DOMAINS_GET_CONTACTS = "namecheap_domains_getcontacts"
DOMAINS_GET_TLD_LIST = "namecheap_domains_gettldlist"
DOMAINS_SET_CONTACTS = "namecheap_domains_setcontacts"
DOMAINS_GET_REGISTRAR_LOCK = "namecheap_domains_getregistrarlock"
DOMAINS_SET_REGISTRAR_LOCK = "namecheap_domains_setregistrarlock"
DNS_GET_LIST = "namecheap_dns_getlist"
DNS_GET_HOSTS = "namecheap_dns_gethosts"
DNS_SET_CUSTOM = "namecheap_dns_setcustom"
DNS_SET_HOSTS = "namecheap_dns_sethosts"

DNS_RECORD_TYPES = ["A", "AAAA", "CNAME", "MX", "TXT", "NS", "SRV", "CAA"]
LOCK_ACTIONS = ["LOCK", "UNLOCK"]

# camelCase contact fields accepted by namecheap_domains_setcontacts
CONTACT_FIELDS: Dict[str, str] = {
    "registrantFirstName": "Registrant first name",
    "registrantLastName": "Registrant last name",
    "registrantAddress1": "Registrant address",
    "registrantCity": "Registrant city",
    "registrantStateProvince": "Registrant state/province",
    "registrantPostalCode": "Registrant postal code",
    "registrantCountry": "Registrant country code",
    "registrantPhone": "Registrant phone",
    "registrantEmailAddress": "Registrant email",
    "techFirstName": "Tech contact first name",
    "techLastName": "Tech contact last name",
    "techEmailAddress": "Tech contact email",
    "adminFirstName": "Admin contact first name",
    "adminLastName": "Admin contact last name",
    "adminEmailAddress": "Admin contact email",
}


def _domain_name_schema(description: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "domainName": {"type": "string", "description": description},
        },
        "required": ["domainName"],
    }


def _sld_tld_properties(example: bool = False) -> Dict[str, Any]:
    if example:
        return {
            "sld": {
                "type": "string",
                "description": 'Second level domain (e.g., "example" from "example.com")',
            },
            "tld": {
                "type": "string",
                "description": 'Top level domain (e.g., "com" from "example.com")',
            },
        }
    return {
        "sld": {"type": "string", "description": "Second level domain"},
        "tld": {"type": "string", "description": "Top level domain"},
    }


NAMECHEAP_TOOLS: List[mcp_types.Tool] = [
    mcp_types.Tool(
        name=DOMAINS_LIST,
        description="Get a list of domains in your Namecheap account",
        inputSchema={
            "type": "object",
            "properties": {
                "listType": {
                    "type": "string",
                    "description": "Type of list: ALL, EXPIRING, EXPIRED",
                    "enum": ["ALL", "EXPIRING", "EXPIRED"],
                    "default": "ALL",
                },
                "searchTerm": {"type": "string", "description": "Filter domains by search term"},
                "page": {"type": "number", "description": "Page number (pagination)", "default": 1},
                "pageSize": {
                    "type": "number",
                    "description": "Number of domains per page",
                    "default": 20,
                },
                "sortBy": {
                    "type": "string",
                    "description": "Sort order for results",
                    "enum": [
                        "NAME",
                        "NAME_DESC",
                        "EXPIREDATE",
                        "EXPIREDATE_DESC",
                        "CREATEDATE",
                        "CREATEDATE_DESC",
                    ],
                },
            },
        },
    ),
    mcp_types.Tool(
        name=DOMAINS_CHECK,
        description="Check if domains are available for registration (supports bulk checks)",
        inputSchema={
            "type": "object",
            "properties": {
                "domainList": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "List of domain names to check (supports bulk lookup)",
                },
            },
            "required": ["domainList"],
        },
    ),
    mcp_types.Tool(
        name=DOMAINS_GET_INFO,
        description="Get detailed information about a specific domain",
        inputSchema={
            "type": "object",
            "properties": {
                "domainName": {
                    "type": "string",
                    "description": "Domain name to get information for",
                },
                "hostName": {
                    "type": "string",
                    "description": "Hosted domain name for which domain information "
                    "needs to be requested",
                },
            },
            "required": ["domainName"],
        },
    ),
    mcp_types.Tool(
        name=DOMAINS_GET_CONTACTS,
        description="Get contact information for a domain",
        inputSchema=_domain_name_schema("Domain name to get contacts for"),
    ),
    mcp_types.Tool(
        name=DOMAINS_GET_TLD_LIST,
        description="Get a list of all supported TLDs with filtering and pagination",
        inputSchema={
            "type": "object",
            "properties": {
                "search": {
                    "type": "string",
                    "description": 'Search for TLDs containing this text (e.g., "com", "org", "tech")',
                },
                "registerable": {
                    "type": "boolean",
                    "description": "Filter to only show TLDs that can be registered via API",
                },
                "page": {
                    "type": "number",
                    "description": "Page number for pagination (default: 1)",
                    "default": 1,
                },
                "pageSize": {
                    "type": "number",
                    "description": f"Number of TLDs per page (default: {TLD_DEFAULT_PAGE_SIZE}, "
                    f"max: {TLD_MAX_PAGE_SIZE})",
                    "default": TLD_DEFAULT_PAGE_SIZE,
                },
                "sortBy": {
                    "type": "string",
                    "description": 'Sort TLDs by "name" or "popularity" (other values sort by name)',
                    "default": "name",
                },
            },
        },
    ),
    mcp_types.Tool(
        name=DOMAINS_SET_CONTACTS,
        description="Update contact information for a domain",
        inputSchema={
            "type": "object",
            "properties": {
                "domainName": {
                    "type": "string",
                    "description": "Domain name to update contacts for",
                },
                **{
                    key: {"type": "string", "description": desc}
                    for key, desc in CONTACT_FIELDS.items()
                },
            },
            "required": ["domainName"],
        },
    ),
    mcp_types.Tool(
        name=DOMAINS_GET_REGISTRAR_LOCK,
        description="Get the registrar lock status of a domain",
        inputSchema=_domain_name_schema("Domain name to check lock status"),
    ),
    mcp_types.Tool(
        name=DOMAINS_SET_REGISTRAR_LOCK,
        description="Set the registrar lock status for a domain",
        inputSchema={
            "type": "object",
            "properties": {
                "domainName": {"type": "string", "description": "Domain name to lock/unlock"},
                "lockAction": {
                    "type": "string",
                    "enum": LOCK_ACTIONS,
                    "description": "Lock or unlock the domain",
                },
            },
            "required": ["domainName", "lockAction"],
        },
    ),
    mcp_types.Tool(
        name=DNS_GET_LIST,
        description="Get the nameservers a domain is delegated to",
        inputSchema={
            "type": "object",
            "properties": _sld_tld_properties(example=True),
            "required": ["sld", "tld"],
        },
    ),
    mcp_types.Tool(
        name=DNS_GET_HOSTS,
        description="Get DNS host records for a domain",
        inputSchema={
            "type": "object",
            "properties": _sld_tld_properties(example=True),
            "required": ["sld", "tld"],
        },
    ),
    mcp_types.Tool(
        name=DNS_SET_CUSTOM,
        description="Set custom nameservers for a domain",
        inputSchema={
            "type": "object",
            "properties": {
                **_sld_tld_properties(),
                "nameservers": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "List of nameserver addresses",
                },
            },
            "required": ["sld", "tld", "nameservers"],
        },
    ),
    mcp_types.Tool(
        name=DNS_SET_HOSTS,
        description="Set DNS host records for a domain",
        inputSchema={
            "type": "object",
            "properties": {
                **_sld_tld_properties(),
                "hosts": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "hostname": {
                                "type": "string",
                                "description": "Subdomain or @ for root",
                            },
                            "recordType": {
                                "type": "string",
                                "enum": DNS_RECORD_TYPES,
                                "description": "DNS record type",
                            },
                            "address": {
                                "type": "string",
                                "description": "Value for the DNS record",
                            },
                            "mxPriority": {
                                "type": "number",
                                "description": "Priority for MX records",
                            },
                            "ttl": {
                                "type": "number",
                                "description": "Time to live in seconds",
                                "default": DEFAULT_HOST_TTL,
                            },
                        },
                        "required": ["hostname", "recordType", "address"],
                    },
                    "description": "Array of DNS host records",
                },
            },
            "required": ["sld", "tld", "hosts"],
        },
    ),
]

TOOL_NAMES = frozenset(t.name for t in NAMECHEAP_TOOLS)
