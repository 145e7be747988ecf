# =============================================================================
# tools/__init__.py
# =============================================================================
# This package is the MCP-facing layer of the server.
#
#   catalog.py     the fixed list of tool descriptors (names, parameters)
#   handlers.py    one coroutine per tool, each calling one core/ method
#   dispatcher.py  lookup, argument validation/coercion, error translation
#   mcp_server.py  the stdio JSON-RPC server and process entry point
#
# WHAT TOOLS DO NOT DO:
#   - They do NOT talk to Hedera or the router directly (that's core/)
#   - They do NOT catch errors per tool (the dispatcher does, once)
# =============================================================================
