"""Tests for the Namecheap API client and its XML response parsing."""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, List
from urllib.parse import parse_qsl

import httpx
import pytest

from namecheap_mcp.constants import NAMECHEAP_API_URL, NAMECHEAP_SANDBOX_API_URL
from namecheap_mcp.errors import UpstreamError
from namecheap_mcp.namecheap import parsing
from namecheap_mcp.namecheap.client import NamecheapClient
from namecheap_mcp.namecheap.models import TldRecord, popularity_from_rank
from namecheap_mcp.tlds.cache import sort_records

NS = "http://api.namecheap.com/xml.response"


def envelope(command: str, body: str) -> str:
    return (
        f'<?xml version="1.0" encoding="utf-8"?>'
        f'<ApiResponse Status="OK" xmlns="{NS}">'
        f"<Errors /><RequestedCommand>{command}</RequestedCommand>"
        f'<CommandResponse Type="{command}">{body}</CommandResponse>'
        f"<Server>PHX01APIEXT01</Server><ExecutionTime>0.02</ExecutionTime>"
        f"</ApiResponse>"
    )


ERROR_XML = (
    f'<ApiResponse Status="ERROR" xmlns="{NS}">'
    '<Errors><Error Number="1011102">Parameter APIKey is missing</Error></Errors>'
    "<RequestedCommand>namecheap.domains.check</RequestedCommand>"
    "</ApiResponse>"
)

TLD_LIST_XML = envelope(
    "namecheap.domains.getTldList",
    "<Tlds>"
    '<Tld Name="COM" NonRealTime="false" MinRegisterYears="1" MaxRegisterYears="10" '
    'IsApiRegisterable="true" IsApiRenewable="true" IsApiTransferable="true" '
    'IsSupportsIDN="true" Type="GTLD" Category="G" SequenceNumber="1">'
    "Most recognized top level domain"
    '<Categories><TldCategory Name="popular" SequenceNumber="10" /></Categories>'
    "</Tld>"
    '<Tld Name="bz" IsApiRegisterable="false" Type="CCTLD" SequenceNumber="0">Belize</Tld>'
    '<Tld IsApiRegisterable="true">nameless</Tld>'
    "</Tlds>",
)


class Recorder:
    """Collects the requests a MockTransport handled."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: List[httpx.Request] = []
        self._responder = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    def params(self, idx: int = -1) -> Dict[str, str]:
        req = self.requests[idx]
        if req.method == "POST":
            return dict(parse_qsl(req.content.decode(), keep_blank_values=True))
        return dict(req.url.params)


def make_client(text: str, status_code: int = 200, **kwargs) -> tuple:
    recorder = Recorder(lambda request: httpx.Response(status_code, text=text))
    client = NamecheapClient(
        "apiuser",
        "secret-key",
        "203.0.113.7",
        transport=httpx.MockTransport(recorder),
        **kwargs,
    )
    return client, recorder


def run_with(client: NamecheapClient, coro_fn):
    async def _run():
        async with client:
            return await coro_fn(client)

    return asyncio.run(_run())


# ════════════════════════════════════════════════════════════════════════
#  Envelope parsing
# ════════════════════════════════════════════════════════════════════════


class TestEnvelope:
    def test_ok_returns_command_response(self) -> None:
        resp = parsing.parse_api_response(
            envelope("namecheap.domains.check", '<DomainCheckResult Domain="a.com" />'),
            "namecheap.domains.check",
        )
        assert resp.tag == "CommandResponse"
        assert resp.find("DomainCheckResult").get("Domain") == "a.com"

    def test_error_status_carries_numbers(self) -> None:
        with pytest.raises(UpstreamError, match=r"\[1011102\] Parameter APIKey is missing") as ei:
            parsing.parse_api_response(ERROR_XML, "namecheap.domains.check")
        assert ei.value.error_numbers == ["1011102"]
        assert ei.value.command == "namecheap.domains.check"

    def test_malformed_xml(self) -> None:
        with pytest.raises(UpstreamError, match="Unable to parse"):
            parsing.parse_api_response("<html>oops", "namecheap.domains.check")

    def test_unexpected_root(self) -> None:
        with pytest.raises(UpstreamError, match="Unexpected root element"):
            parsing.parse_api_response("<html></html>", "namecheap.domains.check")

    def test_missing_command_response(self) -> None:
        xml = f'<ApiResponse Status="OK" xmlns="{NS}"><Errors /></ApiResponse>'
        with pytest.raises(UpstreamError, match="missing <CommandResponse>"):
            parsing.parse_api_response(xml, "namecheap.domains.check")

    @pytest.mark.parametrize(
        "name, expected",
        [("MXPref", "mxPref"), ("ID", "id"), ("IsExpired", "isExpired"), ("TTL", "ttl"), ("", "")],
    )
    def test_camel_key(self, name: str, expected: str) -> None:
        assert parsing.camel_key(name) == expected


# ════════════════════════════════════════════════════════════════════════
#  TLD catalog
# ════════════════════════════════════════════════════════════════════════


class TestTldList:
    def test_parse_records(self) -> None:
        client, recorder = make_client(TLD_LIST_XML)
        records = run_with(client, lambda c: c.fetch_all_tlds())
        assert [r.name for r in records] == ["com", "bz"]

        com = records[0]
        assert isinstance(com, TldRecord)
        assert com.registerable is True
        assert com.popularity == 1.0
        assert com.description == "Most recognized top level domain"
        assert com.min_register_years == 1
        assert com.max_register_years == 10
        assert com.supports_idn is True
        assert com.categories == ("popular",)

        bz = records[1]
        assert bz.registerable is False
        assert bz.popularity == 0.0
        assert bz.categories == ()
        assert recorder.params()["Command"] == "namecheap.domains.getTldList"

    def test_popularity_from_rank(self) -> None:
        assert popularity_from_rank(1) > popularity_from_rank(2) > popularity_from_rank(50)
        assert popularity_from_rank(0) == 0.0
        assert popularity_from_rank(-1) == 0.0

    def test_deep_ranks_keep_distinct_popularity(self) -> None:
        records = [
            TldRecord(name="zz", registerable=True, popularity=popularity_from_rank(2000)),
            TldRecord(name="aa", registerable=True, popularity=popularity_from_rank(2001)),
        ]
        assert records[0].popularity > records[1].popularity
        assert [r.name for r in sort_records(records, "popularity")] == ["zz", "aa"]

    def test_to_dict(self) -> None:
        record = TldRecord(name="io", registerable=True, popularity=0.25, categories=("tech",))
        d = record.to_dict()
        assert d["name"] == "io"
        assert d["registerable"] is True
        assert d["supportsIdn"] is False
        assert d["categories"] == ["tech"]


# ════════════════════════════════════════════════════════════════════════
#  Commands
# ════════════════════════════════════════════════════════════════════════


class TestClientCommands:
    def test_auth_params_and_production_url(self) -> None:
        client, recorder = make_client(
            envelope("namecheap.domains.check", '<DomainCheckResult Domain="a.com" Available="true" />')
        )
        run_with(client, lambda c: c.domains_check(["a.com"]))
        req = recorder.requests[0]
        assert str(req.url).startswith(NAMECHEAP_API_URL)
        params = recorder.params()
        assert params["ApiUser"] == "apiuser"
        assert params["ApiKey"] == "secret-key"
        assert params["UserName"] == "apiuser"
        assert params["ClientIp"] == "203.0.113.7"

    def test_sandbox_url_and_username(self) -> None:
        client, recorder = make_client(
            envelope("namecheap.domains.check", '<DomainCheckResult Domain="a.com" />'),
            use_sandbox=True,
            username="reseller",
        )
        assert client.base_url == NAMECHEAP_SANDBOX_API_URL
        run_with(client, lambda c: c.domains_check(["a.com"]))
        assert str(recorder.requests[0].url).startswith(NAMECHEAP_SANDBOX_API_URL)
        assert recorder.params()["UserName"] == "reseller"

    def test_domains_check_bulk(self) -> None:
        body = (
            '<DomainCheckResult Domain="a.com" Available="false" IsPremiumName="false" />'
            '<DomainCheckResult Domain="b.io" Available="true" IsPremiumName="false" />'
        )
        client, recorder = make_client(envelope("namecheap.domains.check", body))
        result = run_with(client, lambda c: c.domains_check(["a.com", "b.io"]))
        assert recorder.params()["DomainList"] == "a.com,b.io"
        assert result["results"] == [
            {"domain": "a.com", "available": False, "isPremiumName": False},
            {"domain": "b.io", "available": True, "isPremiumName": False},
        ]

    def test_domains_check_empty_result_is_error(self) -> None:
        client, _ = make_client(envelope("namecheap.domains.check", ""))
        with pytest.raises(UpstreamError, match="DomainCheckResult"):
            run_with(client, lambda c: c.domains_check(["a.com"]))

    def test_domains_list_with_paging(self) -> None:
        body = (
            '<DomainGetListResult>'
            '<Domain ID="127" Name="example.com" User="apiuser" IsExpired="false" AutoRenew="true" />'
            "</DomainGetListResult>"
            "<Paging><TotalItems>1</TotalItems><CurrentPage>1</CurrentPage>"
            "<PageSize>20</PageSize></Paging>"
        )
        client, recorder = make_client(envelope("namecheap.domains.getList", body))
        result = run_with(client, lambda c: c.domains_list(search_term="exa", sort_by="NAME"))
        params = recorder.params()
        assert params["ListType"] == "ALL"
        assert params["SearchTerm"] == "exa"
        assert params["SortBy"] == "NAME"
        assert params["Page"] == "1"
        assert params["PageSize"] == "20"
        assert result["domains"][0]["name"] == "example.com"
        assert result["domains"][0]["id"] == "127"
        assert result["domains"][0]["autoRenew"] is True
        assert result["paging"] == {"totalItems": 1, "currentPage": 1, "pageSize": 20}

    def test_domains_list_omits_unset_params(self) -> None:
        client, recorder = make_client(
            envelope("namecheap.domains.getList", "<DomainGetListResult />")
        )
        result = run_with(client, lambda c: c.domains_list())
        params = recorder.params()
        assert "SearchTerm" not in params
        assert "SortBy" not in params
        assert result == {"domains": [], "paging": {}}

    def test_domains_get_info(self) -> None:
        body = (
            '<DomainGetInfoResult Status="Ok" ID="57579" DomainName="example.com" IsOwner="true">'
            "<DomainDetails><CreatedDate>10/22/2020</CreatedDate>"
            "<ExpiredDate>10/22/2026</ExpiredDate></DomainDetails>"
            '<DnsDetails ProviderType="FREE" IsUsingOurDNS="true">'
            "<Nameserver>dns1.registrar-servers.com</Nameserver>"
            "<Nameserver>dns2.registrar-servers.com</Nameserver>"
            "</DnsDetails>"
            "</DomainGetInfoResult>"
        )
        client, recorder = make_client(envelope("namecheap.domains.getInfo", body))
        result = run_with(client, lambda c: c.domains_get_info("example.com"))
        assert recorder.params()["DomainName"] == "example.com"
        assert "HostName" not in recorder.params()
        assert result["domainName"] == "example.com"
        assert result["isOwner"] is True
        assert result["domainDetails"]["expiredDate"] == "10/22/2026"
        assert result["dnsDetails"]["nameserver"] == [
            "dns1.registrar-servers.com",
            "dns2.registrar-servers.com",
        ]

    def test_domains_get_contacts(self) -> None:
        body = (
            '<DomainContactsResult Domain="example.com" domainnameid="3152456">'
            '<Registrant ReadOnly="false"><FirstName>Ada</FirstName>'
            "<LastName>Lovelace</LastName></Registrant>"
            "</DomainContactsResult>"
        )
        client, _ = make_client(envelope("namecheap.domains.getContacts", body))
        result = run_with(client, lambda c: c.domains_get_contacts("example.com"))
        assert result["domain"] == "example.com"
        assert result["registrant"]["firstName"] == "Ada"
        assert result["registrant"]["readOnly"] is False

    def test_set_contacts_posts_pascal_case(self) -> None:
        body = '<DomainSetContactResult Domain="example.com" IsSuccess="true" />'
        client, recorder = make_client(envelope("namecheap.domains.setContacts", body))
        result = run_with(
            client,
            lambda c: c.domains_set_contacts(
                "example.com",
                {
                    "domainName": "ignored.com",
                    "registrantFirstName": "Ada",
                    "techEmailAddress": "ada@example.com",
                    "adminLastName": None,
                },
            ),
        )
        assert recorder.requests[0].method == "POST"
        params = recorder.params()
        assert params["DomainName"] == "example.com"
        assert params["RegistrantFirstName"] == "Ada"
        assert params["TechEmailAddress"] == "ada@example.com"
        assert "AdminLastName" not in params
        assert result == {"domain": "example.com", "isSuccess": True}

    def test_registrar_lock(self) -> None:
        body = '<DomainGetRegistrarLockResult Domain="example.com" RegistrarLockStatus="true" />'
        client, _ = make_client(envelope("namecheap.domains.getRegistrarLock", body))
        result = run_with(client, lambda c: c.domains_get_registrar_lock("example.com"))
        assert result == {"domain": "example.com", "registrarLockStatus": True}

    def test_set_registrar_lock_uppercases_action(self) -> None:
        body = '<DomainSetRegistrarLockResult Domain="example.com" IsSuccess="true" />'
        client, recorder = make_client(envelope("namecheap.domains.setRegistrarLock", body))
        run_with(client, lambda c: c.domains_set_registrar_lock("example.com", "unlock"))
        assert recorder.params()["LockAction"] == "UNLOCK"

    def test_dns_get_list(self) -> None:
        body = (
            '<DomainDNSGetListResult Domain="example.com" IsUsingOurDNS="false">'
            "<Nameserver>ns1.example.net</Nameserver><Nameserver>ns2.example.net</Nameserver>"
            "</DomainDNSGetListResult>"
        )
        client, recorder = make_client(envelope("namecheap.domains.dns.getList", body))
        result = run_with(client, lambda c: c.dns_get_list("example", "com"))
        assert recorder.params()["SLD"] == "example"
        assert recorder.params()["TLD"] == "com"
        assert result == {
            "domain": "example.com",
            "isUsingOurDns": False,
            "nameservers": ["ns1.example.net", "ns2.example.net"],
        }

    def test_dns_get_hosts(self) -> None:
        body = (
            '<DomainDNSGetHostsResult Domain="example.com" IsUsingOurDNS="true">'
            '<host HostId="12" Name="@" Type="A" Address="192.0.2.1" MXPref="10" TTL="1800" />'
            '<host HostId="14" Name="www" Type="CNAME" Address="example.com." MXPref="10" TTL="1800" />'
            "</DomainDNSGetHostsResult>"
        )
        client, _ = make_client(envelope("namecheap.domains.dns.getHosts", body))
        result = run_with(client, lambda c: c.dns_get_hosts("example", "com"))
        assert result["isUsingOurDns"] is True
        assert [h["name"] for h in result["hosts"]] == ["@", "www"]
        assert result["hosts"][0]["hostId"] == "12"
        assert result["hosts"][0]["mxPref"] == "10"

    def test_dns_set_custom(self) -> None:
        body = '<DomainDNSSetCustomResult Domain="example.com" Updated="true" />'
        client, recorder = make_client(envelope("namecheap.domains.dns.setCustom", body))
        result = run_with(
            client, lambda c: c.dns_set_custom("example", "com", ["ns1.a.net", "ns2.a.net"])
        )
        assert recorder.params()["Nameservers"] == "ns1.a.net,ns2.a.net"
        assert result == {"domain": "example.com", "updated": True}

    def test_dns_set_hosts_numbered_params(self) -> None:
        body = '<DomainDNSSetHostsResult Domain="example.com" IsSuccess="true" />'
        client, recorder = make_client(envelope("namecheap.domains.dns.setHosts", body))
        hosts = [
            {"hostname": "@", "recordType": "a", "address": "192.0.2.1"},
            {"hostname": "@", "recordType": "MX", "address": "mx.example.net", "mxPriority": 5, "ttl": 300},
        ]
        result = run_with(client, lambda c: c.dns_set_hosts("example", "com", hosts))
        params = recorder.params()
        assert recorder.requests[0].method == "POST"
        assert params["HostName1"] == "@"
        assert params["RecordType1"] == "A"
        assert params["Address1"] == "192.0.2.1"
        assert params["TTL1"] == "1800"
        assert "MXPref1" not in params
        assert params["RecordType2"] == "MX"
        assert params["MXPref2"] == "5"
        assert params["TTL2"] == "300"
        assert params["EmailType"] == "MX"
        assert result["isSuccess"] is True

    def test_dns_set_hosts_without_mx_has_no_email_type(self) -> None:
        body = '<DomainDNSSetHostsResult Domain="example.com" IsSuccess="true" />'
        client, recorder = make_client(envelope("namecheap.domains.dns.setHosts", body))
        hosts = [{"hostname": "www", "recordType": "CNAME", "address": "example.com."}]
        run_with(client, lambda c: c.dns_set_hosts("example", "com", hosts))
        assert "EmailType" not in recorder.params()


# ════════════════════════════════════════════════════════════════════════
#  Error mapping
# ════════════════════════════════════════════════════════════════════════


class TestClientErrors:
    def test_api_error_status(self) -> None:
        client, _ = make_client(ERROR_XML)
        with pytest.raises(UpstreamError, match="Parameter APIKey is missing"):
            run_with(client, lambda c: c.domains_check(["a.com"]))

    def test_http_status_error(self) -> None:
        client, _ = make_client("Service Unavailable", status_code=503)
        with pytest.raises(UpstreamError, match="HTTP 503") as ei:
            run_with(client, lambda c: c.domains_get_contacts("example.com"))
        assert ei.value.command == "namecheap.domains.getContacts"

    def test_transport_error(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = NamecheapClient(
            "apiuser", "secret-key", "203.0.113.7", transport=httpx.MockTransport(refuse)
        )
        with pytest.raises(UpstreamError, match="connection refused"):
            run_with(client, lambda c: c.fetch_all_tlds())

    def test_close_is_idempotent(self) -> None:
        client, _ = make_client(TLD_LIST_XML)

        async def run():
            await client.fetch_all_tlds()
            await client.close()
            await client.close()

        asyncio.run(run())
