# =============================================================================
# tools/catalog.py  —  The Tool Catalog
# =============================================================================
#
# The fixed, ordered list of tools this server offers.  tools/list returns
# exactly these descriptors, and the dispatcher refuses to start unless it
# has one handler per name here.
#
# NAMING:
#   hedera_*      → HBAR accounts and transfers
#   saucerswap_*  → router quotes and unsigned router transactions
#   hts_*         → Hedera Token Service (fungible tokens)
#   defi_*        → cross-exchange aggregation and placeholder yield data
#
# Amounts travel as strings so that no precision is lost in JSON.
# =============================================================================

from core.aggregator import RISK_LEVELS
from core.models import ParamSpec, ToolDescriptor


def _str(name: str, description: str = "", required: bool = True) -> ParamSpec:
    return ParamSpec(name=name, type="string", description=description, required=required)


_SLIPPAGE = ParamSpec(
    name="slippageTolerance",
    type="number",
    description="Maximum accepted slippage in percent",
    default=0.5,
)


TOOL_CATALOG: tuple[ToolDescriptor, ...] = (
    # -------- Hedera accounts --------
    ToolDescriptor(
        name="hedera_get_balance",
        description="Get HBAR balance for a Hedera account",
        params=(_str("accountId", "Hedera account ID, e.g. 0.0.1234"),),
    ),
    ToolDescriptor(
        name="hedera_get_account_info",
        description="Get HBAR balance and per-token balances for a Hedera account",
        params=(_str("accountId", "Hedera account ID, e.g. 0.0.1234"),),
    ),
    ToolDescriptor(
        name="hedera_get_network_info",
        description="Show the Hedera network, operator account and endpoints this server uses",
    ),
    ToolDescriptor(
        name="hedera_transfer_hbar",
        description="Transfer HBAR between Hedera accounts",
        params=(
            _str("fromAccountId"),
            _str("toAccountId"),
            _str("amount", "Amount in HBAR, e.g. \"1.5\""),
            _str("memo", required=False),
        ),
    ),
    # -------- SaucerSwap --------
    ToolDescriptor(
        name="saucerswap_get_quote",
        description="Get swap quote from SaucerSwap",
        params=(
            _str("tokenIn", "Input token EVM address"),
            _str("tokenOut", "Output token EVM address"),
            _str("amount", "Input amount in token units"),
            _SLIPPAGE,
        ),
    ),
    ToolDescriptor(
        name="saucerswap_execute_swap",
        description="Build a token swap transaction on SaucerSwap",
        params=(
            _str("tokenIn", "Input token EVM address"),
            _str("tokenOut", "Output token EVM address"),
            _str("amount", "Input amount in token units"),
            _SLIPPAGE,
            _str("recipient", "EVM address or Hedera account ID receiving the output"),
        ),
    ),
    ToolDescriptor(
        name="saucerswap_add_liquidity",
        description="Build an add-liquidity transaction for a SaucerSwap pool",
        params=(
            _str("tokenA"),
            _str("tokenB"),
            _str("amountA"),
            _str("amountB"),
            _SLIPPAGE,
        ),
    ),
    # -------- Hedera Token Service --------
    ToolDescriptor(
        name="hts_create_token",
        description="Create new HTS token",
        params=(
            _str("name"),
            _str("symbol"),
            ParamSpec(name="decimals", type="integer", required=True),
            _str("initialSupply", "Initial supply in base units"),
            _str("treasury", "Treasury account ID"),
        ),
    ),
    ToolDescriptor(
        name="hts_mint_token",
        description="Mint HTS tokens",
        params=(
            _str("tokenId"),
            _str("amount", "Amount in base units"),
            _str("recipient"),
        ),
    ),
    ToolDescriptor(
        name="hts_burn_token",
        description="Burn HTS tokens from the treasury",
        params=(
            _str("tokenId"),
            _str("amount", "Amount in base units"),
        ),
    ),
    ToolDescriptor(
        name="hts_transfer_token",
        description="Transfer HTS tokens between accounts",
        params=(
            _str("tokenId"),
            _str("fromAccountId"),
            _str("toAccountId"),
            _str("amount", "Amount in base units"),
        ),
    ),
    ToolDescriptor(
        name="hts_get_token_info",
        description="Get HTS token metadata: supply, treasury and keys",
        params=(_str("tokenId"),),
    ),
    ToolDescriptor(
        name="hts_create_nft",
        description="Create a non-fungible HTS token collection",
        params=(
            _str("name"),
            _str("symbol"),
            _str("treasury", "Treasury account ID"),
        ),
    ),
    ToolDescriptor(
        name="hts_mint_nft",
        description="Mint one NFT with the given metadata",
        params=(
            _str("tokenId"),
            _str("metadata", "UTF-8 metadata, at most 100 bytes"),
        ),
    ),
    # -------- DeFi aggregator --------
    ToolDescriptor(
        name="defi_find_best_rate",
        description="Find best swap rate across multiple DEXs",
        params=(
            _str("tokenIn"),
            _str("tokenOut"),
            _str("amount"),
        ),
    ),
    ToolDescriptor(
        name="defi_find_arbitrage",
        description="Look for round-trip price differences between DEXs",
        params=(
            _str("tokenA"),
            _str("tokenB"),
            ParamSpec(
                name="minProfitThreshold",
                type="number",
                description="Minimum profit in percent",
                default=0.5,
            ),
        ),
    ),
    ToolDescriptor(
        name="defi_get_yield_strategies",
        description="List yield farming and staking strategies",
    ),
    ToolDescriptor(
        name="defi_optimize_portfolio",
        description="Optimize DeFi portfolio for maximum yield",
        params=(
            _str("walletAddress"),
            ParamSpec(
                name="riskTolerance",
                type="string",
                default="medium",
                enum=RISK_LEVELS,
            ),
        ),
    ),
)
