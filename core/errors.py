# =============================================================================
# core/errors.py  —  Error kinds
# =============================================================================
#
# Two families reach the caller:
#   - caller misuse, detected at the dispatch boundary
#       UnknownOperation, InvalidArguments
#   - anything that went wrong downstream (ledger, router, price sources)
#       DownstreamFailure
#
# ConfigError never reaches a caller: it stops the process at startup.
# =============================================================================


class ToolError(Exception):
    """Base class for errors reported back to the agent host."""


class UnknownOperation(ToolError):
    pass


class InvalidArguments(ToolError):
    pass


class DownstreamFailure(ToolError):
    """The Hedera network or a price source failed the request."""


class ConfigError(Exception):
    """Environment configuration did not validate."""

    def __init__(self, issues: list[str]):
        self.issues = issues
        super().__init__("Configuration validation failed:\n" + "\n".join(issues))
