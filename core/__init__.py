# =============================================================================
# core/__init__.py
# =============================================================================
# This package contains the domain logic of the Hedera DeFi MCP server:
# configuration, the ledger client, the SaucerSwap router client, the price
# sources and the aggregator.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports the MCP SDK or knows about JSON-RPC.
#   The tools/ package wraps these classes as MCP tools; the classes here
#   only talk to their downstream network (Hedera or the router contract)
#   and return plain Python values.
# =============================================================================
