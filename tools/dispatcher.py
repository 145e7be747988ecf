# =============================================================================
# tools/dispatcher.py  —  The Tool Dispatcher
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Sits between the MCP transport and the handlers.  For every tools/call:
#     1. Look the name up in the catalog      → UnknownOperation if absent
#     2. Check the arguments are a mapping    → InvalidArguments if not
#     3. Coerce each argument to its declared type, apply defaults,
#        reject missing required values       → InvalidArguments
#     4. Log the call, run the handler
#     5. Wrap the payload, or the error text, in an InvocationResult
#
#   invoke() never raises.  A handler failure becomes a failure result and
#   the transport keeps running.
#
# LOG COLOURS (stderr):
#   CYAN   incoming call with its arguments
#   YELLOW intermediate status
#   GREEN  successful response
# =============================================================================

import json
import logging
from collections.abc import Mapping
from functools import lru_cache
from typing import Any, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from core.errors import DownstreamFailure, InvalidArguments, ToolError, UnknownOperation
from core.models import InvocationResult, ParamSpec, ToolDescriptor
from tools.handlers import Handler

logger = logging.getLogger(__name__)

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"


def _log_request(tool_name: str, arguments: Mapping[str, Any]) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in arguments.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: Any) -> None:
    """Log the tool response as compact JSON in GREEN."""
    body = json.dumps(result, separators=(",", ":"), default=str)
    logger.info(f"{_GREEN}  ← {tool_name} response: {body}{_RESET}")


# =============================================================================
# Argument coercion
# =============================================================================
# Agent hosts are loose about types: "0.5" for a number, 100 for a string
# amount.  Each descriptor gets a pydantic model built from its ParamSpecs,
# validated in lax mode so the obvious spellings are accepted.
# =============================================================================
_JSON_TYPES: dict[str, Any] = {"string": str, "number": float, "integer": int, "boolean": bool}

_ARGUMENT_CONFIG = ConfigDict(coerce_numbers_to_str=True, extra="ignore")


def _field(spec: ParamSpec) -> tuple[Any, Any]:
    if spec.enum:
        annotation: Any = Literal[spec.enum]
    elif spec.type in _JSON_TYPES:
        annotation = _JSON_TYPES[spec.type]
    else:
        raise ValueError(f"{spec.name} has unsupported type {spec.type!r}")
    default = ... if spec.required else spec.default
    if spec.type == "number":
        return annotation, Field(default, allow_inf_nan=False)
    return annotation, default


@lru_cache(maxsize=None)
def argument_model(descriptor: ToolDescriptor) -> type[BaseModel]:
    """Pydantic model validating the arguments of ``descriptor``."""
    fields = {spec.name: _field(spec) for spec in descriptor.params}
    return create_model(f"{descriptor.name}_arguments", __config__=_ARGUMENT_CONFIG, **fields)


def coerce_arguments(descriptor: ToolDescriptor, arguments: Mapping[str, Any]) -> dict[str, Any]:
    """Validated argument dict for ``descriptor``; unknown keys are dropped."""
    present = {key: value for key, value in arguments.items() if value is not None}
    try:
        return argument_model(descriptor).model_validate(present).model_dump()
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        missing = [str(e["loc"][0]) for e in errors if e["type"] == "missing"]
        if missing:
            raise InvalidArguments(f"Missing required arguments: {', '.join(missing)}") from None
        first = errors[0]
        raise InvalidArguments(f"{first['loc'][0]}: {first['msg']}") from None


# =============================================================================
# Dispatcher
# =============================================================================
class ToolDispatcher:
    """Routes tool calls by exact name and translates every error.

    Args:
        catalog: Ordered tool descriptors, as advertised on tools/list.
        handlers: One coroutine per descriptor name.

    Raises:
        ValueError: if ``handlers`` and ``catalog`` name different tools.
    """

    def __init__(self, catalog: Sequence[ToolDescriptor], handlers: Mapping[str, Handler]):
        names = [d.name for d in catalog]
        if len(set(names)) != len(names):
            raise ValueError("Duplicate tool names in catalog")
        if set(names) != set(handlers):
            missing = sorted(set(names) - set(handlers))
            extra = sorted(set(handlers) - set(names))
            raise ValueError(f"Catalog/handler mismatch: missing={missing} extra={extra}")
        for descriptor in catalog:
            argument_model(descriptor)
        self._catalog = tuple(catalog)
        self._descriptors = {d.name: d for d in catalog}
        self._handlers = dict(handlers)

    def list_operations(self) -> tuple[ToolDescriptor, ...]:
        return self._catalog

    def describe(self, name: str) -> Optional[ToolDescriptor]:
        return self._descriptors.get(name)

    async def invoke(self, name: str, arguments: Any) -> InvocationResult:
        descriptor = self._descriptors.get(name)
        if descriptor is None:
            logger.warning("Unknown tool requested: %s", name)
            return self._fail(UnknownOperation(f"Unknown tool: {name}"))

        if not isinstance(arguments, Mapping):
            logger.warning("%s called without an argument object", name)
            return self._fail(InvalidArguments("Invalid arguments provided"))

        _log_request(name, arguments)
        try:
            args = coerce_arguments(descriptor, arguments)
        except InvalidArguments as exc:
            _log_status(f"Rejected arguments: {exc}")
            return self._fail(exc)

        try:
            payload = await self._handlers[name](args)
        except Exception as exc:
            logger.error("Error executing tool %s: %s", name, exc, exc_info=logger.isEnabledFor(logging.DEBUG))
            return self._fail(exc)

        _log_response(name, payload)
        return InvocationResult.success(payload)

    @staticmethod
    def _fail(exc: Exception) -> InvocationResult:
        error_type = type(exc).__name__ if isinstance(exc, ToolError) else DownstreamFailure.__name__
        return InvocationResult.failure(error_type, str(exc) or type(exc).__name__)
