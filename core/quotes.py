# =============================================================================
# core/quotes.py  —  Price Sources
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Defines the one capability every exchange integration offers to the
#   aggregator:
#
#       quote(token_in, token_out, amount) -> Quote     (or raise)
#
#   The aggregator only ever sees QuoteSource objects, so a live integration
#   replaces a placeholder here without any change to core/aggregator.py.
#
# PLACEHOLDERS:
#   HeliSwap and Pangolin have no integration yet.  FixedRateSource answers
#   with amount * multiplier; these numbers are NOT market data.
# =============================================================================

from decimal import Decimal, InvalidOperation
from typing import Protocol, runtime_checkable

from core.errors import InvalidArguments
from core.models import Quote


@runtime_checkable
class QuoteSource(Protocol):
    """Anything that can price a token_in → token_out swap."""

    name: str

    async def quote(self, token_in: str, token_out: str, amount: str) -> Quote:
        ...


def parse_amount(amount: str) -> Decimal:
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise InvalidArguments(f"Invalid amount: {amount!r}")
    if not value.is_finite() or value <= 0:
        raise InvalidArguments(f"Amount must be positive: {amount!r}")
    return value


class FixedRateSource:
    """Placeholder exchange quoting a constant fraction of the input."""

    def __init__(self, name: str, multiplier: str, price_impact: str):
        self.name = name
        self.multiplier = Decimal(multiplier)
        self.price_impact = price_impact

    async def quote(self, token_in: str, token_out: str, amount: str) -> Quote:
        expected = (parse_amount(amount) * self.multiplier).quantize(Decimal("0.000001"))
        return Quote(
            dex=self.name,
            token_in=token_in,
            token_out=token_out,
            amount_in=amount,
            expected_amount=expected,
            price_impact=self.price_impact,
        )

    def __repr__(self) -> str:
        return f"FixedRateSource({self.name!r}, x{self.multiplier})"


def placeholder_sources() -> list[FixedRateSource]:
    return [
        FixedRateSource("HeliSwap", "0.98", "0.1%"),
        FixedRateSource("Pangolin", "0.97", "0.2%"),
    ]
