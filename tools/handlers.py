# =============================================================================
# tools/handlers.py  —  One handler per catalog tool
# =============================================================================
#
# Each handler receives the already-validated argument dict (defaults
# applied, types coerced by the dispatcher) and calls exactly one core/
# method.  Handlers do not catch anything: errors travel up to the
# dispatcher, which turns them into failure results.
#
# The ledger SDK is blocking, so its calls run in a worker thread.
# =============================================================================

import asyncio
from typing import Any, Awaitable, Callable

from core.aggregator import DefiAggregator
from core.config import Settings
from core.models import utc_timestamp

Handler = Callable[[dict[str, Any]], Awaitable[Any]]


def build_handlers(
    settings: Settings,
    ledger: Any,
    router: Any,
    aggregator: DefiAggregator,
) -> dict[str, Handler]:
    """Bind every tool name to its coroutine.

    Args:
        settings: Validated configuration.
        ledger: A core.ledger.HederaLedger (or anything with its methods).
        router: A core.saucerswap.SaucerSwapRouter (or anything with its methods).
        aggregator: The DefiAggregator over all quote sources.
    """

    # -------- Hedera accounts --------
    async def get_balance(args):
        return await asyncio.to_thread(ledger.get_balance, args["accountId"])

    async def get_account_info(args):
        return await asyncio.to_thread(ledger.get_account_info, args["accountId"])

    async def get_network_info(args):
        return {
            "network": settings.network,
            "operatorId": settings.operator_id,
            "endpoints": list(settings.mirror_endpoints),
            "jsonRpcUrl": settings.json_rpc_url,
            "saucerSwapApiUrl": settings.saucerswap_api_url,
            "routerAddress": settings.router_address,
            "timestamp": utc_timestamp(),
        }

    async def transfer_hbar(args):
        return await asyncio.to_thread(
            ledger.transfer_hbar,
            args["fromAccountId"],
            args["toAccountId"],
            args["amount"],
            args.get("memo"),
        )

    # -------- SaucerSwap --------
    async def get_quote(args):
        return await router.get_quote(
            args["tokenIn"], args["tokenOut"], args["amount"], args["slippageTolerance"]
        )

    async def execute_swap(args):
        return await router.build_swap(
            args["tokenIn"],
            args["tokenOut"],
            args["amount"],
            args["recipient"],
            args["slippageTolerance"],
        )

    async def add_liquidity(args):
        return await router.build_add_liquidity(
            args["tokenA"],
            args["tokenB"],
            args["amountA"],
            args["amountB"],
            args["slippageTolerance"],
        )

    # -------- Hedera Token Service --------
    async def create_token(args):
        return await asyncio.to_thread(
            ledger.create_token,
            args["name"],
            args["symbol"],
            args["decimals"],
            args["initialSupply"],
            args["treasury"],
        )

    async def mint_token(args):
        return await asyncio.to_thread(
            ledger.mint_token, args["tokenId"], args["amount"], args["recipient"]
        )

    async def burn_token(args):
        return await asyncio.to_thread(ledger.burn_token, args["tokenId"], args["amount"])

    async def transfer_token(args):
        return await asyncio.to_thread(
            ledger.transfer_token,
            args["tokenId"],
            args["fromAccountId"],
            args["toAccountId"],
            args["amount"],
        )

    async def get_token_info(args):
        return await asyncio.to_thread(ledger.get_token_info, args["tokenId"])

    async def create_nft(args):
        return await asyncio.to_thread(
            ledger.create_nft, args["name"], args["symbol"], args["treasury"]
        )

    async def mint_nft(args):
        return await asyncio.to_thread(ledger.mint_nft, args["tokenId"], args["metadata"])

    # -------- DeFi aggregator --------
    async def find_best_rate(args):
        return await aggregator.find_best_rate(args["tokenIn"], args["tokenOut"], args["amount"])

    async def find_arbitrage(args):
        return await aggregator.find_arbitrage(
            args["tokenA"], args["tokenB"], args["minProfitThreshold"]
        )

    async def yield_strategies(args):
        return aggregator.yield_strategies()

    async def optimize_portfolio(args):
        return aggregator.optimize_portfolio(args["walletAddress"], args["riskTolerance"])

    return {
        "hedera_get_balance": get_balance,
        "hedera_get_account_info": get_account_info,
        "hedera_get_network_info": get_network_info,
        "hedera_transfer_hbar": transfer_hbar,
        "saucerswap_get_quote": get_quote,
        "saucerswap_execute_swap": execute_swap,
        "saucerswap_add_liquidity": add_liquidity,
        "hts_create_token": create_token,
        "hts_mint_token": mint_token,
        "hts_burn_token": burn_token,
        "hts_transfer_token": transfer_token,
        "hts_get_token_info": get_token_info,
        "hts_create_nft": create_nft,
        "hts_mint_nft": mint_nft,
        "defi_find_best_rate": find_best_rate,
        "defi_find_arbitrage": find_arbitrage,
        "defi_get_yield_strategies": yield_strategies,
        "defi_optimize_portfolio": optimize_portfolio,
    }
