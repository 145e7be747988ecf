from types import SimpleNamespace

import pytest

from core import ledger as ledger_module
from core.errors import ConfigError, DownstreamFailure, InvalidArguments
from core.ledger import HederaLedger, hbar_to_tinybars, parse_token_units, tinybars_to_hbar
from tests.fakes import FakeTransaction

SUCCESS = ledger_module.ResponseCode.SUCCESS


class FakeHbars:
    def __init__(self, tinybars):
        self.tinybars = tinybars

    def to_tinybars(self):
        return self.tinybars


class FakeBalanceQuery:
    def set_account_id(self, account_id):
        self.account_id = account_id
        return self

    def execute(self, client):
        return SimpleNamespace(hbars=FakeHbars(150_000_000), token_balances={"0.0.777": 42})


class FakeTokenInfoQuery:
    def set_token_id(self, token_id):
        self.token_id = token_id
        return self

    def execute(self, client):
        return SimpleNamespace(
            token_id=self.token_id,
            name="Sauce",
            symbol="SAUCE",
            decimals=6,
            total_supply=1_000_000,
            treasury="0.0.1001",
            admin_key=object(),
            kyc_key=None,
            freeze_key=None,
            supply_key=object(),
            wipe_key=None,
            pause_key=None,
            memo=None,
        )


@pytest.fixture
def ledger(settings, monkeypatch):
    monkeypatch.setattr(ledger_module, "CryptoGetAccountBalanceQuery", FakeBalanceQuery)
    monkeypatch.setattr(ledger_module, "TokenInfoQuery", FakeTokenInfoQuery)
    return HederaLedger(settings, client=SimpleNamespace(close=lambda: None))


@pytest.fixture
def builder(monkeypatch):
    """Swap every SDK transaction class for a recording double."""

    class Builder(FakeTransaction):
        instances = []
        receipt = SimpleNamespace(status=SUCCESS, token_id="0.0.5005", serial_numbers=[1])

    for name in ("TransferTransaction", "TokenCreateTransaction", "TokenMintTransaction", "TokenBurnTransaction"):
        monkeypatch.setattr(ledger_module, name, Builder)
    return Builder


@pytest.mark.unit
def test_hbar_conversions():
    assert hbar_to_tinybars("1.5") == 150_000_000
    assert hbar_to_tinybars("0.00000001") == 1
    assert tinybars_to_hbar(150_000_000) == "1.5"
    assert tinybars_to_hbar(0) == "0"


@pytest.mark.unit
@pytest.mark.parametrize("amount", ["0", "-1", "abc", "0.000000001"])
def test_bad_hbar_amounts(amount):
    with pytest.raises(InvalidArguments):
        hbar_to_tinybars(amount)


@pytest.mark.unit
def test_token_units():
    assert parse_token_units("100") == 100
    assert parse_token_units("0", allow_zero=True) == 0
    with pytest.raises(InvalidArguments):
        parse_token_units("0")
    with pytest.raises(InvalidArguments):
        parse_token_units("1.5")


@pytest.mark.unit
def test_malformed_operator_key_is_a_config_error(settings):
    bad = settings.model_copy(update={"operator_key": "not-a-key"})
    with pytest.raises(ConfigError) as excinfo:
        HederaLedger(bad, client=SimpleNamespace(close=lambda: None))
    assert excinfo.value.issues[0].startswith("HEDERA_OPERATOR_KEY:")


@pytest.mark.unit
def test_balance_echoes_account_id(ledger):
    result = ledger.get_balance("0.0.1234")
    assert result["accountId"] == "0.0.1234"
    assert result["balance"] == "1.5"
    assert result["balanceInTinybars"] == "150000000"
    assert result["tokens"] == 1


@pytest.mark.unit
def test_account_info_lists_tokens(ledger):
    result = ledger.get_account_info("0.0.1234")
    assert result["tokens"] == [{"tokenId": "0.0.777", "balance": "42"}]


@pytest.mark.unit
def test_submit_freezes_signs_and_checks_receipt(ledger, builder):
    transaction = builder()
    receipt, transaction_id = ledger._submit(transaction, "Transaction")
    assert transaction.frozen_with is ledger.client
    assert transaction.signed_with is ledger.operator_key
    assert transaction_id == FakeTransaction.transaction_id
    assert receipt.status == SUCCESS


@pytest.mark.unit
def test_transfer_uses_default_memo(ledger, builder):
    result = ledger.transfer_hbar("0.0.1001", "0.0.2002", "2")
    transaction = builder.instances[-1]
    assert [args[1] for args in transaction.calls["add_hbar_transfer"]] == [-200_000_000, 200_000_000]
    assert transaction.calls["set_transaction_memo"] == [(ledger_module.DEFAULT_TRANSFER_MEMO,)]
    assert result["status"] == "SUCCESS"
    assert result["amount"] == "2"
    assert result["memo"] is None


@pytest.mark.unit
def test_create_token(ledger, builder):
    result = ledger.create_token("Sauce", "SAUCE", 2, "1000", "0.0.1001")
    transaction = builder.instances[-1]
    assert transaction.calls["set_decimals"] == [(2,)]
    assert transaction.calls["set_initial_supply"] == [(1000,)]
    assert transaction.calls["set_supply_key"] == [(ledger.operator_key,)]
    assert result["tokenId"] == "0.0.5005"
    assert result["initialSupply"] == "1000"
    assert result["transactionId"] == FakeTransaction.transaction_id


@pytest.mark.unit
def test_create_token_rejects_negative_decimals(ledger, builder):
    with pytest.raises(InvalidArguments):
        ledger.create_token("Sauce", "SAUCE", -1, "1000", "0.0.1001")
    assert builder.instances == []


@pytest.mark.unit
def test_create_token_without_token_id_in_receipt(ledger, builder):
    builder.receipt = SimpleNamespace(status=SUCCESS, token_id=None)
    with pytest.raises(DownstreamFailure, match="Token ID not found in receipt"):
        ledger.create_token("Sauce", "SAUCE", 2, "0", "0.0.1001")


@pytest.mark.unit
def test_mint_token(ledger, builder):
    result = ledger.mint_token("0.0.5005", "250", "0.0.2002")
    assert builder.instances[-1].calls["set_amount"] == [(250,)]
    assert result["amount"] == "250"
    assert result["recipient"] == "0.0.2002"


@pytest.mark.unit
def test_mint_token_failed_receipt(ledger, builder):
    builder.receipt = SimpleNamespace(status=ledger_module.ResponseCode.INVALID_TOKEN_ID)
    with pytest.raises(DownstreamFailure, match="Token minting failed with status: INVALID_TOKEN_ID"):
        ledger.mint_token("0.0.5005", "250", "0.0.2002")


@pytest.mark.unit
def test_burn_token(ledger, builder):
    result = ledger.burn_token("0.0.5005", "40")
    assert builder.instances[-1].calls["set_amount"] == [(40,)]
    assert result == {
        "tokenId": "0.0.5005",
        "amount": "40",
        "transactionId": FakeTransaction.transaction_id,
        "status": "SUCCESS",
        "timestamp": result["timestamp"],
    }


@pytest.mark.unit
def test_transfer_token_balances_out(ledger, builder):
    result = ledger.transfer_token("0.0.5005", "0.0.1001", "0.0.2002", "7")
    amounts = [args[2] for args in builder.instances[-1].calls["add_token_transfer"]]
    assert amounts == [-7, 7]
    assert result["amount"] == "7"


@pytest.mark.unit
def test_token_info_reports_key_presence(ledger):
    result = ledger.get_token_info("0.0.5005")
    assert result["tokenId"] == "0.0.5005"
    assert result["totalSupply"] == "1000000"
    assert result["treasury"] == "0.0.1001"
    assert result["adminKey"] == "Present"
    assert result["kycKey"] == "None"
    assert result["memo"] == ""


@pytest.mark.unit
def test_create_nft(ledger, builder):
    result = ledger.create_nft("Art", "ART", "0.0.1001")
    transaction = builder.instances[-1]
    assert transaction.calls["set_token_type"] == [(ledger_module.TokenType.NON_FUNGIBLE_UNIQUE,)]
    assert transaction.calls["set_initial_supply"] == [(0,)]
    assert result["tokenId"] == "0.0.5005"


@pytest.mark.unit
def test_mint_nft(ledger, builder):
    result = ledger.mint_nft("0.0.5005", "ipfs://art/1")
    assert builder.instances[-1].calls["set_metadata"] == [([b"ipfs://art/1"],)]
    assert result["serialNumbers"] == ["1"]


@pytest.mark.unit
@pytest.mark.parametrize("metadata", ["", "x" * 101])
def test_mint_nft_metadata_size(ledger, builder, metadata):
    with pytest.raises(InvalidArguments):
        ledger.mint_nft("0.0.5005", metadata)


@pytest.mark.unit
def test_failed_receipt_names_status():
    receipt = SimpleNamespace(status=ledger_module.ResponseCode.INVALID_ACCOUNT_ID)
    with pytest.raises(DownstreamFailure, match="Transaction failed with status: INVALID_ACCOUNT_ID"):
        ledger_module._ensure_success(receipt, "Transaction")
