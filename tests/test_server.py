"""Tests for MCP handler registration, server assembly, the ASGI app and the CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import tempfile
from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from mcp import types as mcp_types
from starlette.testclient import TestClient

from namecheap_mcp import cli
from namecheap_mcp.config.schema import NamecheapMcpConfig
from namecheap_mcp.constants import SERVER_NAME, SERVER_VERSION
from namecheap_mcp.namecheap.client import NamecheapClient
from namecheap_mcp.namecheap.models import TldRecord
from namecheap_mcp.server import tools
from namecheap_mcp.server.app import build_server, create_app
from namecheap_mcp.server.handlers import to_text_content

RECORDS = [
    TldRecord(name="com", registerable=True, popularity=1.0),
    TldRecord(name="co", registerable=False, popularity=0.5),
    TldRecord(name="coffee", registerable=True, popularity=0.1),
]


def _fake_client() -> MagicMock:
    client = MagicMock(spec=NamecheapClient)
    client.base_url = "https://api.sandbox.namecheap.com/xml.response"
    client.fetch_all_tlds = AsyncMock(return_value=list(RECORDS))
    client.domains_check = AsyncMock(return_value={"results": []})
    client.close = AsyncMock()
    return client


def _config(**server: Any) -> NamecheapMcpConfig:
    return NamecheapMcpConfig.model_validate(
        {
            "server": server,
            "namecheap": {
                "api_user": "apiuser",
                "sandbox_api_key": "sandbox-key",
                "client_ip": "203.0.113.7",
                "use_sandbox": True,
            },
            "tld_cache": {"ttl": 60, "default_page_size": 10, "max_page_size": 20},
        }
    )


# ════════════════════════════════════════════════════════════════════════
#  MCP handlers
# ════════════════════════════════════════════════════════════════════════


class TestHandlers:
    def test_to_text_content(self) -> None:
        content = to_text_content({"a": [1, 2]})
        assert len(content) == 1
        assert content[0].type == "text"
        assert json.loads(content[0].text) == {"a": [1, 2]}
        assert "\n" in content[0].text

    def test_list_tools(self) -> None:
        server = build_server(_config(), client=_fake_client())
        handler = server.mcp_server.request_handlers[mcp_types.ListToolsRequest]
        result = asyncio.run(handler(mcp_types.ListToolsRequest(method="tools/list")))
        names = [t.name for t in result.root.tools]
        assert set(names) == set(tools.TOOL_NAMES)
        assert tools.DNS_GET_HOSTS in names

    def _call_tool(self, server, name: str, arguments: Dict[str, Any]):
        handler = server.mcp_server.request_handlers[mcp_types.CallToolRequest]
        request = mcp_types.CallToolRequest(
            method="tools/call",
            params=mcp_types.CallToolRequestParams(name=name, arguments=arguments),
        )
        return asyncio.run(handler(request)).root

    def test_call_tool_returns_json_text(self) -> None:
        server = build_server(_config(), client=_fake_client())
        result = self._call_tool(
            server, tools.DOMAINS_GET_TLD_LIST, {"search": "co", "pageSize": 2}
        )
        assert not result.isError
        payload = json.loads(result.content[0].text)
        assert [item["name"] for item in payload["items"]] == ["co", "coffee"]
        assert payload["totalCount"] == 3

    def test_listed_schema_does_not_reject_clamped_arguments(self) -> None:
        server = build_server(_config(), client=_fake_client())
        list_handler = server.mcp_server.request_handlers[mcp_types.ListToolsRequest]
        asyncio.run(list_handler(mcp_types.ListToolsRequest(method="tools/list")))

        result = self._call_tool(server, tools.DOMAINS_GET_TLD_LIST, {"pageSize": 500})
        assert not result.isError
        assert json.loads(result.content[0].text)["pageSize"] == 20

        result = self._call_tool(server, tools.DOMAINS_GET_TLD_LIST, {"sortBy": "price"})
        assert not result.isError
        payload = json.loads(result.content[0].text)
        assert [item["name"] for item in payload["items"]] == ["co", "coffee", "com"]

    def test_call_tool_error_is_reported(self) -> None:
        server = build_server(_config(), client=_fake_client())
        result = self._call_tool(server, "namecheap_domains_renew", {})
        assert result.isError
        assert "Unknown tool: namecheap_domains_renew" in result.content[0].text


# ════════════════════════════════════════════════════════════════════════
#  Assembly and ASGI app
# ════════════════════════════════════════════════════════════════════════


class TestBuildServer:
    def test_client_built_from_config(self) -> None:
        server = build_server(_config())
        assert isinstance(server.client, NamecheapClient)
        assert server.client.use_sandbox is True
        assert server.dispatcher.client is server.client
        assert server.dispatcher.tld_cache is server.tld_cache
        assert server.mcp_server.name == SERVER_NAME
        asyncio.run(server.aclose())

    def test_cache_settings_applied(self) -> None:
        server = build_server(_config(), client=_fake_client())
        page = asyncio.run(server.tld_cache.get_tlds())
        assert page.page_size == 10

    def test_sse_routes(self) -> None:
        server = build_server(_config(), client=_fake_client())
        app = create_app(server, "sse")
        assert [r.path for r in app.routes] == ["/sse", "/messages"]

    def test_streamable_http_routes(self) -> None:
        server = build_server(_config(), client=_fake_client())
        app = create_app(server, "streamable-http")
        assert [r.path for r in app.routes] == ["/mcp"]

    def test_stdio_is_not_an_http_app(self) -> None:
        server = build_server(_config(), client=_fake_client())
        with pytest.raises(ValueError, match="stdio"):
            create_app(server, "stdio")

    @pytest.mark.parametrize("transport", ["sse", "streamable-http"])
    def test_lifespan_closes_client(self, transport: str) -> None:
        client = _fake_client()
        server = build_server(_config(), client=client)
        app = create_app(server, transport)
        with TestClient(app):
            client.close.assert_not_awaited()
        client.close.assert_awaited_once()


# ════════════════════════════════════════════════════════════════════════
#  CLI
# ════════════════════════════════════════════════════════════════════════


class TestCli:
    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])
        assert exc_info.value.code == 0
        assert f"{SERVER_NAME} {SERVER_VERSION}" in capsys.readouterr().out

    def test_resolve_config_path_order(self) -> None:
        with patch.dict(os.environ, {"NAMECHEAP_MCP_CONFIG": "/etc/nc.yaml"}):
            assert cli.resolve_config_path("/tmp/flag.yaml") == "/tmp/flag.yaml"
            assert cli.resolve_config_path(None) == "/etc/nc.yaml"
        with patch.dict(os.environ, {}, clear=True), patch.object(
            cli, "find_config_file", return_value=None
        ):
            assert cli.resolve_config_path(None) is None

    def test_cli_overrides(self) -> None:
        args = argparse.Namespace(transport="http", host="0.0.0.0", port=8123, log_level="debug")
        cfg = cli.apply_cli_overrides(_config(), args)
        assert cfg.server.transport == "streamable-http"
        assert cfg.server.host == "0.0.0.0"
        assert cfg.server.port == 8123
        assert cfg.logging.level == "DEBUG"
        assert cfg.namecheap.api_user == "apiuser"

    def test_cli_without_overrides_keeps_config(self) -> None:
        args = argparse.Namespace(transport=None, host=None, port=None, log_level=None)
        cfg = cli.apply_cli_overrides(_config(transport="sse", port=9200), args)
        assert cfg.server.transport == "sse"
        assert cfg.server.port == 9200
        assert cfg.logging.level == "INFO"

    def test_missing_credentials_exit(self, capsys) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg_path = os.path.join(tmpdir, "config.yaml")
            with open(cfg_path, "w", encoding="utf-8") as f:
                f.write("namecheap:\n  api_user: apiuser\n")
            with patch.dict(os.environ, {}, clear=True), patch.object(
                cli, "setup_logging", return_value=("test.log", "INFO")
            ), patch.object(cli, "build_server") as build:
                with pytest.raises(SystemExit) as exc_info:
                    cli.main(["--config", cfg_path])
        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "NAMECHEAP_API_KEY" in err
        assert "NAMECHEAP_CLIENT_IP" in err
        build.assert_not_called()

    def test_bad_config_exit(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--config", "/nonexistent/config.yaml"])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err

    def test_stdio_run(self) -> None:
        with patch.dict(
            os.environ,
            {
                "NAMECHEAP_API_USER": "apiuser",
                "NAMECHEAP_API_KEY": "prod-key-123",
                "NAMECHEAP_CLIENT_IP": "203.0.113.7",
            },
            clear=True,
        ), patch.object(cli, "find_config_file", return_value=None), patch.object(
            cli, "setup_logging", return_value=("test.log", "INFO")
        ), patch.object(cli, "run_stdio", new_callable=AsyncMock) as run_stdio, patch.object(
            cli, "build_server"
        ) as build:
            build.return_value.aclose = AsyncMock()
            cli.main([])
        run_stdio.assert_awaited_once_with(build.return_value.mcp_server)
        build.return_value.aclose.assert_awaited_once()
