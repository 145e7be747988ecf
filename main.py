# =============================================================================
# main.py  —  Demo client for the Hedera DeFi MCP server
# =============================================================================
#
# HOW TO RUN:
#   python main.py                    (reads .env for the server's settings)
#   python main.py 0.0.1234           (also looks up that account's balance)
#
# WHAT HAPPENS:
#   1. Spawns tools/mcp_server.py as a subprocess over stdio, the same way
#      an agent host would
#   2. Lists the tool catalog
#   3. Calls a handful of read-only tools and prints the text results
#   4. Calls an unknown tool to show the error path
#
#   Nothing here moves funds: transfers, swaps and token operations are
#   listed but not called.
# =============================================================================

import asyncio
import os
import sys

from dotenv import load_dotenv
from fastmcp import Client
from fastmcp.client.transports import StdioTransport

# Load .env before spawning the server: the subprocess gets this environment.
load_dotenv()

HBAR = "0x0000000000000000000000000000000000000000"
USDC = "0x0000000000000000000000000000000000000001"


def _print_result(name: str, result) -> None:
    marker = "❌" if result.isError else "✅"
    print(f"\n{marker} {name}")
    for block in result.content:
        if getattr(block, "type", None) == "text":
            print(block.text)


async def run_demo(account_id: str | None = None) -> None:
    project_root = os.path.dirname(os.path.abspath(__file__))
    transport = StdioTransport(
        command=sys.executable,
        args=["-m", "tools.mcp_server"],
        env=dict(os.environ),
        cwd=project_root,
    )

    print("=" * 70)
    print("  HEDERA DEFI MCP - demo client")
    print("=" * 70)

    async with Client(transport) as client:
        tools = await client.list_tools()
        print(f"\n🔧 {len(tools)} tools available:")
        for tool in tools:
            print(f"   • {tool.name:28s} {tool.description}")

        calls = [
            ("hedera_get_network_info", {}),
            ("defi_get_yield_strategies", {}),
            ("defi_find_best_rate", {"tokenIn": HBAR, "tokenOut": USDC, "amount": "100"}),
            ("defi_optimize_portfolio", {"walletAddress": "0.0.1234", "riskTolerance": "low"}),
            ("nonexistent_tool", {}),
        ]
        if account_id:
            calls.insert(0, ("hedera_get_balance", {"accountId": account_id}))

        for name, arguments in calls:
            result = await client.call_tool_mcp(name, arguments)
            _print_result(name, result)

    print("\n" + "=" * 70)


# =============================================================================
# Script entry point
# =============================================================================
if __name__ == "__main__":
    asyncio.run(run_demo(sys.argv[1] if len(sys.argv) > 1 else None))
