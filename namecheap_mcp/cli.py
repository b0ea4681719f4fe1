"""CLI argument parsing and main entry point.

``namecheap-mcp`` serves the Namecheap tools over stdio (the default),
SSE or streamable HTTP.  With stdio, stdout carries the MCP protocol, so
every notice printed here goes to stderr.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

import uvicorn

from namecheap_mcp.config.loader import CONFIG_ENV_VAR, find_config_file, load_config
from namecheap_mcp.config.schema import NamecheapMcpConfig, ServerSettings
from namecheap_mcp.constants import SERVER_NAME, SERVER_VERSION
from namecheap_mcp.display.logging_config import secret_redaction_filter, setup_logging
from namecheap_mcp.errors import ConfigurationError
from namecheap_mcp.server.app import NamecheapServer, build_server, create_app
from namecheap_mcp.server.transport import run_stdio

module_logger = logging.getLogger(__name__)


def resolve_config_path(cli_path: Optional[str]) -> Optional[str]:
    """Resolve config path: CLI flag → env var → auto-detect (may be ``None``)."""
    if cli_path:
        return cli_path
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return env_path
    return find_config_file()


def apply_cli_overrides(config: NamecheapMcpConfig, args: argparse.Namespace) -> NamecheapMcpConfig:
    """Return *config* with ``--transport``/``--host``/``--port``/``--log-level`` applied."""
    server_data = config.server.model_dump()
    for key in ("transport", "host", "port"):
        value = getattr(args, key, None)
        if value is not None:
            server_data[key] = value
    update = {"server": ServerSettings.model_validate(server_data)}
    if getattr(args, "log_level", None):
        update["logging"] = config.logging.model_copy(update={"level": args.log_level.upper()})
    return config.model_copy(update=update)


async def _serve_stdio(server: NamecheapServer) -> None:
    try:
        await run_stdio(server.mcp_server)
    finally:
        await server.aclose()


async def _serve_http(server: NamecheapServer, transport: str, host: str, port: int, log_lvl: str) -> None:
    app = create_app(server, transport)
    uvicorn_cfg = uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_config=None,
        log_level=log_lvl.lower() if log_lvl == "DEBUG" else "warning",
    )
    uvicorn_svr_inst = uvicorn.Server(uvicorn_cfg)
    module_logger.info("Preparing to start Uvicorn server: http://%s:%s", host, port)
    try:
        await uvicorn_svr_inst.serve()
    finally:
        module_logger.info("%s has shut down or is shutting down.", SERVER_NAME)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="namecheap-mcp",
        description=f"{SERVER_NAME} v{SERVER_VERSION}: Namecheap domain and DNS tools over MCP",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        metavar="PATH",
        help=(
            "Path to configuration file (YAML). "
            f"Default: ${CONFIG_ENV_VAR}, then auto-detect config.yaml/config.yml"
        ),
    )
    parser.add_argument(
        "--transport",
        type=str,
        default=None,
        choices=["stdio", "sse", "streamable-http", "http"],
        help="MCP transport (overrides config; default: stdio)",
    )
    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host address for HTTP transports (overrides config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for HTTP transports (overrides config)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Set file logging level (overrides config; default: info)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"{SERVER_NAME} {SERVER_VERSION}",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Program entry point: parse arguments, load config, run the chosen transport."""
    args = _build_parser().parse_args(argv)

    config_path = resolve_config_path(args.config)
    try:
        config = apply_cli_overrides(load_config(config_path), args)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    log_fpath, log_lvl = setup_logging(config.logging.level)
    for secret in (config.namecheap.api_key, config.namecheap.sandbox_api_key):
        secret_redaction_filter.register(secret)

    module_logger.info(
        "---- %s v%s starting (file log level: %s, log file: %s) ----",
        SERVER_NAME,
        SERVER_VERSION,
        log_lvl,
        log_fpath,
    )
    module_logger.info(
        "Configuration source: %s", os.path.abspath(config_path) if config_path else "environment"
    )

    try:
        config.namecheap.require_credentials()
    except ConfigurationError as exc:
        module_logger.error("%s", exc)
        print(f"Configuration error: {exc}", file=sys.stderr)
        sys.exit(1)

    server = build_server(config)
    transport = config.server.transport
    try:
        if transport == "stdio":
            asyncio.run(_serve_stdio(server))
        else:
            asyncio.run(
                _serve_http(server, transport, config.server.host, config.server.port, log_lvl)
            )
    except KeyboardInterrupt:
        module_logger.info("%s main program interrupted by KeyboardInterrupt.", SERVER_NAME)
    except Exception as e_fatal:
        module_logger.exception(
            "%s main program encountered an uncaught fatal error: %s", SERVER_NAME, e_fatal
        )
        sys.exit(1)
    finally:
        module_logger.info("%s application finished.", SERVER_NAME)
