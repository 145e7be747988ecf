# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the server)
# =============================================================================
#
# These dataclasses describe every piece of information that crosses the
# dispatch boundary:
#   - ParamSpec / ToolDescriptor  →  the static tool catalog
#   - InvocationResult            →  what one tool call produces
#   - Quote / TokenInfo           →  price data shared by the DEX sources
#
# Wire shapes are camelCase (the agent host sees them as JSON); attribute
# names stay snake_case and the to_dict() methods do the renaming.
# =============================================================================

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-01T00:00:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# -----------------------------------------------------------------------------
# ParamSpec: one parameter of a tool
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ParamSpec:
    """A single tool parameter: JSON type, required flag and default."""

    name: str
    type: str                          # "string" | "number" | "integer" | "boolean"
    description: str = ""
    required: bool = False
    default: Any = None
    enum: Optional[tuple[str, ...]] = None

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        if self.default is not None:
            schema["default"] = self.default
        if self.enum:
            schema["enum"] = list(self.enum)
        return schema


# -----------------------------------------------------------------------------
# ToolDescriptor: one entry of the catalog
# -----------------------------------------------------------------------------
# Defined once at import time and never mutated.  The descriptor is what the
# agent host reads on tools/list to decide WHEN and HOW to call a tool.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ToolDescriptor:
    """A named operation with a human-readable description and parameters."""

    name: str
    description: str
    params: tuple[ParamSpec, ...] = ()

    def input_schema(self) -> dict[str, Any]:
        """Render the JSON-schema object advertised on tools/list."""
        return {
            "type": "object",
            "properties": {p.name: p.to_schema() for p in self.params},
            "required": [p.name for p in self.params if p.required],
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


# -----------------------------------------------------------------------------
# InvocationResult: tagged union of success / failure
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class InvocationResult:
    """Outcome of one tool invocation.

    Exactly one side is populated: ``payload`` when ``ok`` is True,
    ``error_type`` and ``message`` otherwise.  Build instances through
    :meth:`success` and :meth:`failure`.
    """

    ok: bool
    payload: Any = None
    error_type: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, payload: Any) -> "InvocationResult":
        return cls(ok=True, payload=payload)

    @classmethod
    def failure(cls, error_type: str, message: str) -> "InvocationResult":
        return cls(ok=False, error_type=error_type, message=message)

    def to_text(self) -> str:
        """Text carried in the tools/call content block."""
        if self.ok:
            return json.dumps(self.payload, indent=2, default=str)
        return f"Error: {self.message}"


# -----------------------------------------------------------------------------
# TokenInfo: symbol and precision of a router token
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class TokenInfo:
    symbol: str
    name: str
    decimals: int


# -----------------------------------------------------------------------------
# Quote: one DEX's answer to "how much tokenOut for this much tokenIn?"
# -----------------------------------------------------------------------------
@dataclass
class Quote:
    """A price estimate from a single exchange."""

    dex: str
    token_in: str
    token_out: str
    amount_in: str
    expected_amount: Decimal
    price_impact: str = "0.00%"
    token_in_symbol: Optional[str] = None
    token_out_symbol: Optional[str] = None
    minimum_amount: Optional[Decimal] = None

    def to_dict(self) -> dict[str, Any]:
        token_in: dict[str, Any] = {"address": self.token_in, "amount": self.amount_in}
        token_out: dict[str, Any] = {
            "address": self.token_out,
            "expectedAmount": f"{self.expected_amount:.6f}",
        }
        if self.token_in_symbol:
            token_in["symbol"] = self.token_in_symbol
        if self.token_out_symbol:
            token_out["symbol"] = self.token_out_symbol
        if self.minimum_amount is not None:
            token_out["minimumAmount"] = f"{self.minimum_amount:.6f}"
        return {
            "dex": self.dex,
            "tokenIn": token_in,
            "tokenOut": token_out,
            "priceImpact": self.price_impact,
        }
