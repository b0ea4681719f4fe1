"""XML response parsing for the Namecheap API.

Namecheap answers every command with an ``<ApiResponse>`` envelope::

    <ApiResponse Status="OK" xmlns="http://api.namecheap.com/xml.response">
      <Errors />
      <RequestedCommand>namecheap.domains.check</RequestedCommand>
      <CommandResponse Type="namecheap.domains.check">
        <DomainCheckResult Domain="example.com" Available="false" />
      </CommandResponse>
    </ApiResponse>

:func:`parse_api_response` validates the envelope and returns the
``<CommandResponse>`` element; the ``parse_*`` helpers turn that element
into JSON-ready dicts with camelCase keys.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any, Dict, List

from namecheap_mcp.errors import UpstreamError
from namecheap_mcp.namecheap.models import TldRecord, parse_bool, parse_int

logger = logging.getLogger(__name__)


# ── Generic helpers ─────────────────────────────────────────────────────


def camel_key(name: str) -> str:
    """Convert a Namecheap PascalCase name to camelCase (``MXPref`` -> ``mxPref``)."""
    if not name:
        return name
    if name.isupper():
        return name.lower()
    i = 0
    while i < len(name) and name[i].isupper():
        i += 1
    if i <= 1:
        return name[:1].lower() + name[1:]
    return name[: i - 1].lower() + name[i - 1 :]


def _scalar(value: str) -> Any:
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return value


def _strip_namespaces(root: ET.Element) -> None:
    for elem in root.iter():
        if isinstance(elem.tag, str) and "}" in elem.tag:
            elem.tag = elem.tag.split("}", 1)[1]


def attrs_to_dict(elem: ET.Element) -> Dict[str, Any]:
    """Return *elem*'s attributes with camelCase keys and boolean coercion."""
    return {camel_key(k): _scalar(v) for k, v in elem.attrib.items()}


def element_to_dict(elem: ET.Element) -> Any:
    """Recursively convert an element into plain JSON-ready data.

    Leaf elements without attributes collapse to their text.  Repeated
    child tags become lists.  Text alongside attributes or children is
    stored under ``"value"``.
    """
    children = list(elem)
    text = (elem.text or "").strip()
    if not children and not elem.attrib:
        return _scalar(text) if text else None

    result: Dict[str, Any] = attrs_to_dict(elem)
    for child in children:
        key = camel_key(child.tag)
        value = element_to_dict(child)
        if key in result:
            existing = result[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                result[key] = [existing, value]
        else:
            result[key] = value
    if text:
        result["value"] = _scalar(text)
    return result


def _require(parent: ET.Element, tag: str, command: str) -> ET.Element:
    found = parent.find(tag)
    if found is None:
        raise UpstreamError(
            f"Malformed response for {command}: missing <{tag}> element",
            command=command,
        )
    return found


# ── Envelope ────────────────────────────────────────────────────────────


def parse_api_response(text: str, command: str) -> ET.Element:
    """Parse the ``ApiResponse`` envelope and return its ``CommandResponse``.

    Raises:
        UpstreamError: On malformed XML, ``Status="ERROR"``, or a
            missing ``CommandResponse`` element.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as exc:
        raise UpstreamError(
            f"Unable to parse Namecheap response for {command}: {exc}",
            command=command,
        ) from exc

    _strip_namespaces(root)
    if root.tag != "ApiResponse":
        raise UpstreamError(
            f"Unexpected root element <{root.tag}> in response for {command}",
            command=command,
        )

    status = (root.get("Status") or "").upper()
    if status != "OK":
        messages: List[str] = []
        numbers: List[str] = []
        errors_elem = root.find("Errors")
        if errors_elem is not None:
            for err in errors_elem.findall("Error"):
                number = err.get("Number", "")
                numbers.append(number)
                err_text = (err.text or "").strip()
                messages.append(f"[{number}] {err_text}" if number else err_text)
        detail = "; ".join(messages) or f"status {status or 'missing'}"
        logger.debug("Namecheap %s returned error status: %s", command, detail)
        raise UpstreamError(
            f"Namecheap API error ({command}): {detail}",
            command=command,
            error_numbers=numbers,
        )

    return _require(root, "CommandResponse", command)


# ── Per-command parsers ─────────────────────────────────────────────────


def parse_domains_list(resp: ET.Element, command: str) -> Dict[str, Any]:
    result = _require(resp, "DomainGetListResult", command)
    domains = [attrs_to_dict(d) for d in result.findall("Domain")]
    paging: Dict[str, Any] = {}
    paging_elem = resp.find("Paging")
    if paging_elem is not None:
        for child in paging_elem:
            paging[camel_key(child.tag)] = parse_int(child.text)
    return {"domains": domains, "paging": paging}


def parse_domains_check(resp: ET.Element, command: str) -> Dict[str, Any]:
    results = [attrs_to_dict(r) for r in resp.findall("DomainCheckResult")]
    if not results:
        raise UpstreamError(
            f"Malformed response for {command}: no <DomainCheckResult> elements",
            command=command,
        )
    return {"results": results}


def parse_domains_get_info(resp: ET.Element, command: str) -> Dict[str, Any]:
    return element_to_dict(_require(resp, "DomainGetInfoResult", command))


def parse_domains_get_contacts(resp: ET.Element, command: str) -> Dict[str, Any]:
    return element_to_dict(_require(resp, "DomainContactsResult", command))


def parse_tld_list(resp: ET.Element, command: str) -> List[TldRecord]:
    tlds_elem = _require(resp, "Tlds", command)
    records: List[TldRecord] = []
    for tld in tlds_elem.findall("Tld"):
        categories: List[str] = []
        cats_elem = tld.find("Categories")
        if cats_elem is not None:
            categories = [c.get("Name", "") for c in cats_elem.findall("TldCategory")]
        record = TldRecord.from_attrs(
            tld.attrib,
            description=tld.text or "",
            categories=categories,
        )
        if not record.name:
            logger.debug("Skipping <Tld> element without a Name attribute.")
            continue
        records.append(record)
    return records


def parse_simple_result(resp: ET.Element, tag: str, command: str) -> Dict[str, Any]:
    """Return the attributes of a single ``<...Result>`` element."""
    return attrs_to_dict(_require(resp, tag, command))


def parse_dns_get_list(resp: ET.Element, command: str) -> Dict[str, Any]:
    result = _require(resp, "DomainDNSGetListResult", command)
    return {
        "domain": result.get("Domain", ""),
        "isUsingOurDns": parse_bool(result.get("IsUsingOurDNS")),
        "nameservers": [(ns.text or "").strip() for ns in result.findall("Nameserver")],
    }


def parse_dns_get_hosts(resp: ET.Element, command: str) -> Dict[str, Any]:
    result = _require(resp, "DomainDNSGetHostsResult", command)
    hosts: List[Dict[str, Any]] = []
    # Namecheap emits <host> in lowercase; accept either spelling.
    for host in result.findall("host") + result.findall("Host"):
        hosts.append(attrs_to_dict(host))
    return {
        "domain": result.get("Domain", ""),
        "isUsingOurDns": parse_bool(result.get("IsUsingOurDNS")),
        "hosts": hosts,
    }

