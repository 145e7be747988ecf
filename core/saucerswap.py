# =============================================================================
# core/saucerswap.py  —  SaucerSwap Router Client
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Talks to the SaucerSwap (Uniswap-V2 style) router contract through the
#   Hedera JSON-RPC relay:
#     - get_quote()            → getAmountsOut() view call, with slippage floor
#     - build_swap()           → unsigned swapExactTokensForTokens calldata
#     - build_add_liquidity()  → unsigned addLiquidity calldata
#   It also implements QuoteSource, so the aggregator can use it as its live
#   price source.
#
# NOTHING IS SIGNED OR SUBMITTED HERE.
#   Swap and liquidity tools return {to, data, value}; the wallet on the
#   agent side signs and sends.
#
# TOKEN METADATA:
#   A small table of known tokens supplies symbols and decimals.  Unknown
#   addresses fall back to 18 decimals.
# =============================================================================

import logging
import math
import re
import time
from decimal import Decimal
from typing import Any, Optional

from web3 import AsyncHTTPProvider, AsyncWeb3, Web3

from core.config import Settings
from core.errors import InvalidArguments
from core.models import Quote, TokenInfo, utc_timestamp
from core.quotes import parse_amount

logger = logging.getLogger(__name__)

DEADLINE_SECONDS = 20 * 60
DEFAULT_SLIPPAGE = 0.5
NATIVE_TOKEN = "0x0000000000000000000000000000000000000000"

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
_ACCOUNT_ID_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")

_KNOWN_TOKENS: dict[str, TokenInfo] = {
    "0x0000000000000000000000000000000000000000": TokenInfo("HBAR", "Hedera", 8),
    "0x0000000000000000000000000000000000000001": TokenInfo("USDC", "USD Coin", 6),
    "0x0000000000000000000000000000000000000002": TokenInfo("USDT", "Tether USD", 6),
}
_UNKNOWN_TOKEN = TokenInfo("UNKNOWN", "Unknown Token", 18)


def _uint(name: str) -> dict[str, str]:
    return {"name": name, "type": "uint256", "internalType": "uint256"}


def _address(name: str) -> dict[str, str]:
    return {"name": name, "type": "address", "internalType": "address"}


def _address_array(name: str) -> dict[str, str]:
    return {"name": name, "type": "address[]", "internalType": "address[]"}


ROUTER_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "getAmountsOut",
        "stateMutability": "view",
        "inputs": [_uint("amountIn"), _address_array("path")],
        "outputs": [{"name": "amounts", "type": "uint256[]", "internalType": "uint256[]"}],
    },
    {
        "type": "function",
        "name": "swapExactTokensForTokens",
        "stateMutability": "nonpayable",
        "inputs": [
            _uint("amountIn"),
            _uint("amountOutMin"),
            _address_array("path"),
            _address("to"),
            _uint("deadline"),
        ],
        "outputs": [{"name": "amounts", "type": "uint256[]", "internalType": "uint256[]"}],
    },
    {
        "type": "function",
        "name": "addLiquidity",
        "stateMutability": "nonpayable",
        "inputs": [
            _address("tokenA"),
            _address("tokenB"),
            _uint("amountADesired"),
            _uint("amountBDesired"),
            _uint("amountAMin"),
            _uint("amountBMin"),
            _address("to"),
            _uint("deadline"),
        ],
        "outputs": [_uint("amountA"), _uint("amountB"), _uint("liquidity")],
    },
]


# =============================================================================
# Unit helpers
# =============================================================================
def parse_units(amount: str, decimals: int) -> int:
    """Decimal string → integer base units ("1.5", 6 → 1500000)."""
    value = parse_amount(amount).scaleb(decimals)
    if value != value.to_integral_value():
        raise InvalidArguments(f"Amount {amount!r} has more than {decimals} decimals")
    return int(value)


def format_units(value: int, decimals: int) -> Decimal:
    return Decimal(value).scaleb(-decimals)


def apply_slippage(amount: int, slippage_tolerance: float) -> int:
    """Minimum acceptable amount after slippage, in base units."""
    if not 0 <= slippage_tolerance < 100:
        raise InvalidArguments("slippageTolerance must be between 0 and 100")
    basis_points = math.floor((100 - Decimal(str(slippage_tolerance))) * 100)
    return amount * basis_points // 10000


def to_evm_address(value: str) -> str:
    """Checksummed EVM address for a 0x address or a Hedera account id.

    ``0.0.N`` ids become long-zero addresses (shard 4 bytes, realm 8 bytes,
    num 8 bytes).
    """
    value = value.strip()
    if _EVM_ADDRESS_RE.match(value):
        return Web3.to_checksum_address(value)
    match = _ACCOUNT_ID_RE.match(value)
    if match:
        shard, realm, num = (int(part) for part in match.groups())
        raw = f"0x{shard:08x}{realm:016x}{num:016x}"
        return Web3.to_checksum_address(raw)
    raise InvalidArguments(f"Not an EVM address or Hedera account id: {value!r}")


def token_info(address: str) -> TokenInfo:
    return _KNOWN_TOKENS.get(address.strip().lower(), _UNKNOWN_TOKEN)


def price_impact(amount_in: int) -> str:
    # Placeholder until pool reserves are read.
    impact = (amount_in / 1e18) * 0.001
    return f"{impact * 100:.2f}%"


# =============================================================================
# Router client
# =============================================================================
class SaucerSwapRouter:
    """Router contract client and live QuoteSource."""

    name = "SaucerSwap"

    def __init__(self, settings: Settings, w3: Optional[AsyncWeb3] = None):
        self.router_address = Web3.to_checksum_address(settings.router_address)
        self.operator_id = settings.operator_id
        self.w3 = w3 or AsyncWeb3(AsyncHTTPProvider(settings.json_rpc_url))
        self.contract = self.w3.eth.contract(address=self.router_address, abi=ROUTER_ABI)

    async def _amounts_out(self, amount_in: int, path: list[str]) -> int:
        amounts = await self.contract.functions.getAmountsOut(amount_in, path).call()
        return int(amounts[-1])

    async def _price(
        self,
        token_in: str,
        token_out: str,
        amount: str,
        slippage_tolerance: float,
    ) -> tuple[Quote, int, int, int]:
        info_in = token_info(token_in)
        info_out = token_info(token_out)
        amount_in = parse_units(amount, info_in.decimals)
        path = [to_evm_address(token_in), to_evm_address(token_out)]

        amount_out = await self._amounts_out(amount_in, path)
        logger.debug("getAmountsOut %s %s -> %s", amount_in, path, amount_out)
        amount_out_min = apply_slippage(amount_out, slippage_tolerance)

        quote = Quote(
            dex=self.name,
            token_in=token_in,
            token_out=token_out,
            amount_in=amount,
            expected_amount=format_units(amount_out, info_out.decimals),
            price_impact=price_impact(amount_in),
            token_in_symbol=info_in.symbol,
            token_out_symbol=info_out.symbol,
            minimum_amount=format_units(amount_out_min, info_out.decimals),
        )
        return quote, amount_in, amount_out, amount_out_min

    async def quote(self, token_in: str, token_out: str, amount: str) -> Quote:
        quote, _, _, _ = await self._price(token_in, token_out, amount, DEFAULT_SLIPPAGE)
        return quote

    async def get_quote(
        self,
        token_in: str,
        token_out: str,
        amount: str,
        slippage_tolerance: float = DEFAULT_SLIPPAGE,
    ) -> dict[str, Any]:
        quote, amount_in, amount_out, amount_out_min = await self._price(
            token_in, token_out, amount, slippage_tolerance
        )
        info_out = token_info(token_out)
        return {
            "tokenIn": {
                "address": token_in,
                "symbol": quote.token_in_symbol,
                "amount": amount,
                "amountWei": str(amount_in),
            },
            "tokenOut": {
                "address": token_out,
                "symbol": quote.token_out_symbol,
                "expectedAmount": str(format_units(amount_out, info_out.decimals)),
                "amountWei": str(amount_out),
                "minimumAmount": str(format_units(amount_out_min, info_out.decimals)),
            },
            "priceImpact": quote.price_impact,
            "slippageTolerance": slippage_tolerance,
            "timestamp": utc_timestamp(),
        }

    async def build_swap(
        self,
        token_in: str,
        token_out: str,
        amount: str,
        recipient: str,
        slippage_tolerance: float = DEFAULT_SLIPPAGE,
    ) -> dict[str, Any]:
        quote = await self.get_quote(token_in, token_out, amount, slippage_tolerance)
        amount_in = int(quote["tokenIn"]["amountWei"])
        amount_out_min = apply_slippage(int(quote["tokenOut"]["amountWei"]), slippage_tolerance)
        deadline = int(time.time()) + DEADLINE_SECONDS
        path = [to_evm_address(token_in), to_evm_address(token_out)]

        data = self.contract.encode_abi(
            "swapExactTokensForTokens",
            args=[amount_in, amount_out_min, path, to_evm_address(recipient), deadline],
        )
        is_native = token_in.strip().lower() == NATIVE_TOKEN
        return {
            "transaction": {
                "to": self.router_address,
                "data": data,
                "value": str(amount_in) if is_native else "0",
            },
            "quote": quote,
            "recipient": recipient,
            "deadline": deadline,
            "timestamp": utc_timestamp(),
        }

    async def build_add_liquidity(
        self,
        token_a: str,
        token_b: str,
        amount_a: str,
        amount_b: str,
        slippage_tolerance: float = DEFAULT_SLIPPAGE,
    ) -> dict[str, Any]:
        info_a = token_info(token_a)
        info_b = token_info(token_b)
        desired_a = parse_units(amount_a, info_a.decimals)
        desired_b = parse_units(amount_b, info_b.decimals)
        min_a = apply_slippage(desired_a, slippage_tolerance)
        min_b = apply_slippage(desired_b, slippage_tolerance)
        deadline = int(time.time()) + DEADLINE_SECONDS

        data = self.contract.encode_abi(
            "addLiquidity",
            args=[
                to_evm_address(token_a),
                to_evm_address(token_b),
                desired_a,
                desired_b,
                min_a,
                min_b,
                to_evm_address(self.operator_id),
                deadline,
            ],
        )
        return {
            "transaction": {"to": self.router_address, "data": data, "value": "0"},
            "pool": {
                "tokenA": {
                    "address": token_a,
                    "symbol": info_a.symbol,
                    "amount": amount_a,
                    "amountWei": str(desired_a),
                    "minimumAmount": str(format_units(min_a, info_a.decimals)),
                },
                "tokenB": {
                    "address": token_b,
                    "symbol": info_b.symbol,
                    "amount": amount_b,
                    "amountWei": str(desired_b),
                    "minimumAmount": str(format_units(min_b, info_b.decimals)),
                },
            },
            "slippageTolerance": slippage_tolerance,
            "deadline": deadline,
            "timestamp": utc_timestamp(),
        }
