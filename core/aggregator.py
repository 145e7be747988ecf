# =============================================================================
# core/aggregator.py  —  Cross-Exchange Rate Aggregator
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Compares quotes from several QuoteSources and reports the best one, and
#   serves the placeholder yield / portfolio data.
#
# find_best_rate: the only handler with real control flow:
#   1. Ask every source for a quote at the same time (asyncio.gather),
#      each bounded by the configured timeout
#   2. Drop the sources that failed; fail if none are left
#   3. Sort the survivors by expected output, highest first
#   4. Report the best, the unweighted mean ("averageRate") and
#      best - mean ("savings")
#
#   "savings" is kept as that literal difference.  It is not a realizable
#   gain and nothing else in the server builds on it.
#
# PLACEHOLDER DATA:
#   Yield strategies, the current portfolio and the APY figures are fixed
#   constants, not on-chain data.
# =============================================================================

import asyncio
import logging
from decimal import Decimal
from typing import Any, Optional, Sequence

from core.errors import DownstreamFailure
from core.models import Quote, utc_timestamp
from core.quotes import QuoteSource

logger = logging.getLogger(__name__)

SIX_PLACES = Decimal("0.000001")
ARBITRAGE_PROBE_AMOUNT = Decimal("1000")
RISK_LEVELS = ("low", "medium", "high")

YIELD_STRATEGIES: tuple[dict[str, Any], ...] = (
    {
        "name": "SaucerSwap HBAR-USDC LP",
        "apy": "12.5%",
        "risk": "medium",
        "tvl": "$1,234,567",
        "rewards": ["SAUCE", "HBAR"],
        "requirements": ["Provide HBAR-USDC liquidity"],
        "strategy": "Stake LP tokens in SaucerSwap farm",
    },
    {
        "name": "HeliSwap HBAR-USDT LP",
        "apy": "15.2%",
        "risk": "medium",
        "tvl": "$2,345,678",
        "rewards": ["HELI"],
        "requirements": ["Provide HBAR-USDT liquidity"],
        "strategy": "Stake LP tokens in HeliSwap farm",
    },
    {
        "name": "Pangolin HBAR-ETH LP",
        "apy": "18.7%",
        "risk": "high",
        "tvl": "$3,456,789",
        "rewards": ["PNG"],
        "requirements": ["Provide HBAR-ETH liquidity"],
        "strategy": "Stake LP tokens in Pangolin farm",
    },
    {
        "name": "Staking HBAR",
        "apy": "6.5%",
        "risk": "low",
        "tvl": "$10,000,000",
        "rewards": ["HBAR"],
        "requirements": ["Stake HBAR"],
        "strategy": "Stake HBAR for network rewards",
    },
)

# Fractions of portfolio value per bucket, by risk tolerance.
_ALLOCATION_SPLITS = {
    "low": {"staking": 0.6, "farming": 0.3, "liquidity": 0.1},
    "medium": {"staking": 0.4, "farming": 0.5, "liquidity": 0.1},
    "high": {"staking": 0.2, "farming": 0.7, "liquidity": 0.1},
}

_STRATEGY_APY = {"Staking": 6.5, "Farming": 15.0, "Liquidity": 8.0}

_ACCEPTED_RISK = {
    "low": ("low",),
    "medium": ("low", "medium"),
    "high": ("low", "medium", "high"),
}


def _fmt(value: Decimal) -> str:
    return f"{value.quantize(SIX_PLACES):.6f}"


class DefiAggregator:
    """Fans quote requests out to every source and summarizes the answers."""

    def __init__(self, sources: Sequence[QuoteSource], timeout: Optional[float] = 10.0):
        self.sources = list(sources)
        self.timeout = timeout

    # -------------------------------------------------------------------------
    # Quote fan-out
    # -------------------------------------------------------------------------
    async def _quote(self, source: QuoteSource, token_in: str, token_out: str, amount: str) -> Quote:
        return await asyncio.wait_for(
            source.quote(token_in, token_out, amount),
            timeout=self.timeout,
        )

    async def collect_quotes(self, token_in: str, token_out: str, amount: str) -> list[Quote]:
        """Quotes from every source that answered, in source order."""
        results = await asyncio.gather(
            *(self._quote(source, token_in, token_out, amount) for source in self.sources),
            return_exceptions=True,
        )
        quotes = []
        for source, result in zip(self.sources, results):
            if isinstance(result, BaseException):
                logger.warning("%s quote failed: %s", source.name, str(result) or type(result).__name__)
                continue
            if result is not None:
                quotes.append(result)
        return quotes

    async def find_best_rate(self, token_in: str, token_out: str, amount: str) -> dict[str, Any]:
        logger.info("Finding best rate %s -> %s amount=%s", token_in, token_out, amount)
        quotes = await self.collect_quotes(token_in, token_out, amount)
        if not quotes:
            raise DownstreamFailure("No valid quotes found from any DEX")

        quotes.sort(key=lambda q: q.expected_amount, reverse=True)
        best = quotes[0]
        average = sum((q.expected_amount for q in quotes), Decimal(0)) / len(quotes)

        return {
            "bestQuote": best.to_dict(),
            "allQuotes": [q.to_dict() for q in quotes],
            "averageRate": _fmt(average),
            "savings": _fmt(best.expected_amount - average),
            "dexCount": len(quotes),
            "timestamp": utc_timestamp(),
        }

    async def find_arbitrage(
        self,
        token_a: str,
        token_b: str,
        min_profit_threshold: float = 0.5,
    ) -> dict[str, Any]:
        """Round trips A → B on one source and B → A on another."""
        opportunities = []
        for i, first in enumerate(self.sources):
            for second in self.sources[i + 1:]:
                try:
                    out_leg = await self._quote(first, token_a, token_b, str(ARBITRAGE_PROBE_AMOUNT))
                    back_leg = await self._quote(
                        second, token_b, token_a, _fmt(out_leg.expected_amount)
                    )
                except Exception as exc:
                    logger.warning("Skipping %s/%s: %s", first.name, second.name, exc)
                    continue

                profit = back_leg.expected_amount - ARBITRAGE_PROBE_AMOUNT
                profit_pct = profit / ARBITRAGE_PROBE_AMOUNT * 100
                if profit_pct >= Decimal(str(min_profit_threshold)):
                    opportunities.append({
                        "dex1": first.name,
                        "dex2": second.name,
                        "tokenA": token_a,
                        "tokenB": token_b,
                        "initialAmount": str(ARBITRAGE_PROBE_AMOUNT),
                        "finalAmount": _fmt(back_leg.expected_amount),
                        "profit": float(profit),
                        "profitPercentage": float(profit_pct),
                        "route": f"{token_a} → {token_b} ({first.name}) → {token_a} ({second.name})",
                    })

        average = (
            sum(o["profitPercentage"] for o in opportunities) / len(opportunities)
            if opportunities else 0
        )
        return {
            "opportunities": opportunities,
            "totalOpportunities": len(opportunities),
            "averageProfit": average,
            "timestamp": utc_timestamp(),
        }

    # -------------------------------------------------------------------------
    # Placeholder yield / portfolio data
    # -------------------------------------------------------------------------
    def yield_strategies(self) -> dict[str, Any]:
        strategies = [dict(s) for s in YIELD_STRATEGIES]
        average_apy = sum(float(s["apy"].rstrip("%")) for s in strategies) / len(strategies)
        return {
            "strategies": strategies,
            "totalStrategies": len(strategies),
            "averageAPY": average_apy,
            "timestamp": utc_timestamp(),
        }

    def current_portfolio(self, wallet_address: str) -> dict[str, Any]:
        # Fixed sample holdings; wallet balances are not read yet.
        return {
            "HBAR": {"amount": "1000", "value": "$500"},
            "USDC": {"amount": "2000", "value": "$2000"},
            "USDT": {"amount": "1500", "value": "$1500"},
            "totalValue": "$4000",
        }

    def optimize_portfolio(self, wallet_address: str, risk_tolerance: str = "medium") -> dict[str, Any]:
        logger.info("Optimizing portfolio wallet=%s risk=%s", wallet_address, risk_tolerance)
        portfolio = self.current_portfolio(wallet_address)
        accepted = _ACCEPTED_RISK.get(risk_tolerance, ("medium",))
        opportunities = [dict(s) for s in YIELD_STRATEGIES if s["risk"] in accepted]

        allocation = self._allocate(portfolio, risk_tolerance)
        return {
            "currentPortfolio": portfolio,
            "yieldOpportunities": opportunities,
            "optimalAllocation": allocation,
            "riskTolerance": risk_tolerance,
            "estimatedAPY": self._estimated_apy(allocation),
            "rebalanceActions": self._rebalance_actions(portfolio, allocation),
            "timestamp": utc_timestamp(),
        }

    @staticmethod
    def _allocate(portfolio: dict[str, Any], risk_tolerance: str) -> dict[str, Any]:
        total = float(portfolio["totalValue"].lstrip("$"))
        split = _ALLOCATION_SPLITS.get(risk_tolerance, _ALLOCATION_SPLITS["medium"])
        return {
            "HBAR": {"allocation": split["staking"] * total, "strategy": "Staking"},
            "HBAR-USDC LP": {"allocation": split["farming"] * total * 0.5, "strategy": "Farming"},
            "HBAR-USDT LP": {"allocation": split["farming"] * total * 0.5, "strategy": "Farming"},
            "Liquidity Pools": {"allocation": split["liquidity"] * total, "strategy": "Liquidity"},
        }

    @staticmethod
    def _estimated_apy(allocation: dict[str, Any]) -> str:
        total = sum(item["allocation"] for item in allocation.values())
        weighted = sum(
            item["allocation"] / total * _STRATEGY_APY[item["strategy"]]
            for item in allocation.values()
        )
        return f"{weighted:.2f}%"

    @staticmethod
    def _rebalance_actions(portfolio: dict[str, Any], allocation: dict[str, Any]) -> list[dict[str, Any]]:
        held = float(portfolio["HBAR"]["amount"])
        target = allocation["HBAR"]["allocation"]
        if held >= target:
            return []
        return [{
            "action": "buy",
            "token": "HBAR",
            "amount": f"{target - held:.2f}",
            "reason": "Increase staking allocation",
        }]
