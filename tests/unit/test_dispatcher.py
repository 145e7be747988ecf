import asyncio

import pytest

from core.aggregator import DefiAggregator
from core.errors import InvalidArguments
from core.models import ParamSpec, ToolDescriptor
from tests.fakes import FakeSource, RecordingBackend
from tools.catalog import TOOL_CATALOG
from tools.dispatcher import ToolDispatcher, coerce_arguments
from tools.handlers import build_handlers


def _dispatcher(settings, backend=None, sources=None):
    backend = backend or RecordingBackend()
    aggregator = DefiAggregator(sources or [FakeSource("A", "2")], timeout=1.0)
    handlers = build_handlers(settings, backend, backend, aggregator)
    return ToolDispatcher(TOOL_CATALOG, handlers)


@pytest.mark.unit
def test_catalog_and_handlers_name_the_same_tools(settings):
    dispatcher = _dispatcher(settings)
    names = [d.name for d in dispatcher.list_operations()]
    assert len(names) == 18
    assert names[0] == "hedera_get_balance"
    assert names[-1] == "defi_optimize_portfolio"


@pytest.mark.unit
def test_unknown_tool_is_reported_not_raised(settings):
    result = asyncio.run(_dispatcher(settings).invoke("nonexistent_tool", {}))
    assert not result.ok
    assert result.error_type == "UnknownOperation"
    assert result.to_text() == "Error: Unknown tool: nonexistent_tool"


@pytest.mark.unit
@pytest.mark.parametrize("arguments", [None, ["0.0.1"], "0.0.1"])
def test_non_mapping_arguments_rejected_for_every_tool(settings, arguments):
    dispatcher = _dispatcher(settings)
    for descriptor in TOOL_CATALOG:
        result = asyncio.run(dispatcher.invoke(descriptor.name, arguments))
        assert result.error_type == "InvalidArguments"
        assert result.message == "Invalid arguments provided"


@pytest.mark.unit
def test_missing_required_argument(settings):
    result = asyncio.run(_dispatcher(settings).invoke("hedera_transfer_hbar", {"fromAccountId": "0.0.1"}))
    assert result.error_type == "InvalidArguments"
    assert "toAccountId" in result.message
    assert "amount" in result.message


@pytest.mark.unit
def test_arguments_are_coerced_and_defaults_applied(settings):
    backend = RecordingBackend()
    dispatcher = _dispatcher(settings, backend)
    result = asyncio.run(dispatcher.invoke(
        "saucerswap_get_quote",
        {"tokenIn": "0xa", "tokenOut": "0xb", "amount": 100, "ignored": True},
    ))
    assert result.ok
    assert backend.calls == [("get_quote", ("0xa", "0xb", "100", 0.5))]


@pytest.mark.unit
def test_optional_memo_defaults_to_none(settings):
    backend = RecordingBackend()
    dispatcher = _dispatcher(settings, backend)
    asyncio.run(dispatcher.invoke(
        "hedera_transfer_hbar",
        {"fromAccountId": "0.0.1", "toAccountId": "0.0.2", "amount": "1.5"},
    ))
    assert backend.calls == [("transfer_hbar", ("0.0.1", "0.0.2", "1.5", None))]


@pytest.mark.unit
def test_enum_violation_rejected(settings):
    result = asyncio.run(_dispatcher(settings).invoke(
        "defi_optimize_portfolio", {"walletAddress": "0.0.5", "riskTolerance": "extreme"}
    ))
    assert result.error_type == "InvalidArguments"


@pytest.mark.unit
def test_integer_and_number_coercion():
    descriptor = ToolDescriptor(
        name="t",
        description="",
        params=(
            ParamSpec(name="n", type="integer", required=True),
            ParamSpec(name="x", type="number", default=0.5),
            ParamSpec(name="flag", type="boolean", default=False),
        ),
    )
    assert coerce_arguments(descriptor, {"n": "8", "x": "1.25", "flag": "true"}) == {
        "n": 8, "x": 1.25, "flag": True,
    }
    with pytest.raises(InvalidArguments, match="integer"):
        coerce_arguments(descriptor, {"n": "8.5"})
    with pytest.raises(InvalidArguments, match="number"):
        coerce_arguments(descriptor, {"n": 1, "x": "abc"})


@pytest.mark.unit
def test_handler_exception_becomes_downstream_failure(settings):
    class Exploding(RecordingBackend):
        def get_balance(self, account_id):
            raise RuntimeError("connection refused")

    result = asyncio.run(_dispatcher(settings, Exploding()).invoke("hedera_get_balance", {"accountId": "0.0.2"}))
    assert not result.ok
    assert result.error_type == "DownstreamFailure"
    assert result.to_text() == "Error: connection refused"


@pytest.mark.unit
def test_no_quotes_surfaces_as_failure_result(settings):
    sources = [FakeSource("A", error=RuntimeError("down")), FakeSource("B", error=RuntimeError("down"))]
    result = asyncio.run(_dispatcher(settings, sources=sources).invoke(
        "defi_find_best_rate", {"tokenIn": "0xa", "tokenOut": "0xb", "amount": "1"}
    ))
    assert result.error_type == "DownstreamFailure"
    assert result.message == "No valid quotes found from any DEX"


@pytest.mark.unit
def test_network_info_echoes_settings(settings):
    result = asyncio.run(_dispatcher(settings).invoke("hedera_get_network_info", {}))
    assert result.ok
    assert result.payload["network"] == "testnet"
    assert result.payload["operatorId"] == "0.0.1001"
    assert result.payload["timestamp"].endswith("Z")


@pytest.mark.unit
def test_catalog_handler_mismatch_refused(settings):
    handlers = build_handlers(settings, RecordingBackend(), RecordingBackend(), DefiAggregator([]))
    handlers.pop("hts_burn_token")
    with pytest.raises(ValueError, match="hts_burn_token"):
        ToolDispatcher(TOOL_CATALOG, handlers)


@pytest.mark.unit
def test_non_finite_number_rejected(settings):
    result = asyncio.run(_dispatcher(settings).invoke(
        "defi_find_arbitrage", {"tokenA": "0xa", "tokenB": "0xb", "minProfitThreshold": "nan"}
    ))
    assert result.error_type == "InvalidArguments"
    assert result.message.startswith("minProfitThreshold:")


@pytest.mark.unit
def test_unsupported_param_type_refused_at_startup():
    descriptor = ToolDescriptor(name="t", description="", params=(ParamSpec(name="p", type="array"),))
    with pytest.raises(ValueError, match="unsupported type"):
        ToolDispatcher([descriptor], {"t": None})


@pytest.mark.unit
def test_nft_tools_route_to_the_ledger(settings):
    backend = RecordingBackend()
    dispatcher = _dispatcher(settings, backend)
    asyncio.run(dispatcher.invoke("hts_mint_nft", {"tokenId": "0.0.5005", "metadata": "ipfs://art/1"}))
    asyncio.run(dispatcher.invoke("hts_get_token_info", {"tokenId": "0.0.5005"}))
    assert backend.calls == [
        ("mint_nft", ("0.0.5005", "ipfs://art/1")),
        ("get_token_info", ("0.0.5005",)),
    ]
