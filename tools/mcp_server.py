# =============================================================================
# tools/mcp_server.py  —  MCP stdio server
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Wires the tool catalog and the dispatcher to the MCP protocol and runs
#   the server over stdin/stdout.
#
# HOW IT WORKS (the flow):
#   1. The agent host spawns this process and speaks line-delimited
#      JSON-RPC 2.0 on its stdin/stdout
#   2. tools/list  → the catalog descriptors, in catalog order
#   3. tools/call  → ToolDispatcher.invoke(name, arguments)
#   4. The result goes back as one text content block: the JSON payload, or
#      "Error: <message>" with isError set
#
#   Argument validation by the MCP library is switched off; the dispatcher
#   owns validation and coercion so that loosely typed arguments still work.
#
# RUNNING THIS SERVER:
#     a) python -m tools.mcp_server
#     b) hedera-defi-mcp            (console script)
#     c) spawned by main.py's demo client
# =============================================================================

import asyncio
import logging
import sys
from importlib.metadata import PackageNotFoundError, version

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from core.aggregator import DefiAggregator
from core.config import Settings, load_settings
from core.errors import ConfigError, ToolError
from core.ledger import HederaLedger
from core.quotes import placeholder_sources
from core.saucerswap import SaucerSwapRouter
from tools.catalog import TOOL_CATALOG
from tools.dispatcher import ToolDispatcher
from tools.handlers import build_handlers

SERVER_NAME = "hedera-defi-mcp"

try:
    SERVER_VERSION = version(SERVER_NAME)
except PackageNotFoundError:
    SERVER_VERSION = "1.0.0"

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


# =============================================================================
# Logging Setup
# =============================================================================
# Logs go to STDERR.  STDOUT carries the JSON-RPC stream; anything else
# written there corrupts the protocol.
# =============================================================================
def configure_logging(level: str = "info") -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(level, logging.INFO),
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )


# =============================================================================
# Composition
# =============================================================================
def build_dispatcher(settings: Settings, ledger: HederaLedger) -> ToolDispatcher:
    """Create the router, aggregator and handlers around one ledger client."""
    router = SaucerSwapRouter(settings)
    aggregator = DefiAggregator([router, *placeholder_sources()], timeout=settings.quote_timeout)
    handlers = build_handlers(settings, ledger, router, aggregator)
    return ToolDispatcher(TOOL_CATALOG, handlers)


def create_server(dispatcher: ToolDispatcher) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        logging.info("Listing available tools")
        return [
            types.Tool(
                name=descriptor.name,
                description=descriptor.description,
                inputSchema=descriptor.input_schema(),
            )
            for descriptor in dispatcher.list_operations()
        ]

    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict | None) -> list[types.TextContent]:
        result = await dispatcher.invoke(name, arguments)
        if not result.ok:
            # The MCP server turns a raised error into an isError result.
            raise ToolError(result.to_text())
        return [types.TextContent(type="text", text=result.to_text())]

    return server


async def serve(settings: Settings, ledger: HederaLedger) -> None:
    try:
        server = create_server(build_dispatcher(settings, ledger))
        async with stdio_server() as (read_stream, write_stream):
            logging.info("%s %s running on stdio (%s)", SERVER_NAME, SERVER_VERSION, settings.network)
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        ledger.close()


def main() -> None:
    configure_logging()
    try:
        settings = load_settings()
        ledger = HederaLedger(settings)
    except ConfigError as exc:
        logging.error("%s", exc)
        sys.exit(1)

    configure_logging(settings.log_level)
    try:
        asyncio.run(serve(settings, ledger))
    except KeyboardInterrupt:
        logging.info("Shutting down")


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    main()
